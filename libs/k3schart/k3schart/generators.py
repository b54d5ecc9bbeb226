"""
Kubernetes manifest generators for the web-service chart.

Generates Deployment, Service, Ingress, HorizontalPodAutoscaler,
PodDisruptionBudget, ConfigMap, Secret, NetworkPolicy, ServiceAccount,
Role, RoleBinding and ServiceMonitor.
"""

import base64
import logging
from typing import Any, Dict, List, Optional

from .render import dump_manifest, sort_manifests
from .types import (
    ChartMetadata,
    MetricConfig,
    MetricTargetType,
    MetricType,
    ProbeConfig,
    ProbeType,
    ReleaseConfig,
    ServiceType,
)
from .values import sha256_digest

logger = logging.getLogger(__name__)

MANAGED_BY = "k3schart"
CONFIG_CHECKSUM_ANNOTATION = "checksum/config"
SECRET_CHECKSUM_ANNOTATION = "checksum/secret"


def _trunc(name: str, length: int = 63) -> str:
    """Truncate to a valid K8s name length, dropping a trailing dash."""
    return name[:length].rstrip("-")


def chart_name(chart: ChartMetadata, release: ReleaseConfig) -> str:
    """Chart name, honouring nameOverride."""
    return _trunc(release.name_override or chart.name)


def fullname(chart: ChartMetadata, release: ReleaseConfig) -> str:
    """
    Fully qualified app name used for every generated resource.

    fullnameOverride wins. Otherwise the release name is used as-is when it
    already contains the chart name, else "<release>-<chart>".
    """
    if release.fullname_override:
        return _trunc(release.fullname_override)

    name = release.name_override or chart.name
    if name in release.name:
        return _trunc(release.name)
    return _trunc(f"{release.name}-{name}")


def selector_labels(chart: ChartMetadata, release: ReleaseConfig) -> Dict[str, str]:
    """Labels used in selectors. Must stay stable across upgrades."""
    return {
        "app.kubernetes.io/name": chart_name(chart, release),
        "app.kubernetes.io/instance": release.name,
    }


def common_labels(chart: ChartMetadata, release: ReleaseConfig) -> Dict[str, str]:
    """Labels applied to every generated resource."""
    labels = {"helm.sh/chart": chart.label}
    labels.update(selector_labels(chart, release))
    if chart.app_version:
        labels["app.kubernetes.io/version"] = chart.app_version
    labels["app.kubernetes.io/managed-by"] = MANAGED_BY
    return labels


def service_account_name(chart: ChartMetadata, release: ReleaseConfig) -> str:
    """Name of the service account the pods run as."""
    if release.service_account.name:
        return release.service_account.name
    if release.service_account.create:
        return fullname(chart, release)
    return "default"


def _metadata(
    chart: ChartMetadata,
    release: ReleaseConfig,
    name: Optional[str] = None,
    annotations: Optional[Dict[str, str]] = None,
    extra_labels: Optional[Dict[str, str]] = None,
    namespace: Optional[str] = None,
) -> Dict[str, Any]:
    labels = common_labels(chart, release)
    if extra_labels:
        labels.update(extra_labels)

    metadata: Dict[str, Any] = {
        "name": name or fullname(chart, release),
        "namespace": namespace or release.namespace,
        "labels": labels,
    }
    if annotations:
        metadata["annotations"] = dict(annotations)
    return metadata


def _build_probe(probe: ProbeConfig, default_port: str) -> Dict[str, Any]:
    """Build Kubernetes probe spec."""
    port = probe.port if probe.port is not None else default_port

    result: Dict[str, Any] = {}
    if probe.type == ProbeType.HTTP:
        result["httpGet"] = {
            "path": probe.path,
            "port": port,
        }
    elif probe.type == ProbeType.TCP:
        result["tcpSocket"] = {
            "port": port,
        }
    elif probe.type == ProbeType.EXEC and probe.command:
        result["exec"] = {
            "command": probe.command,
        }

    if probe.initial_delay > 0:
        result["initialDelaySeconds"] = probe.initial_delay

    result.update({
        "periodSeconds": probe.period,
        "timeoutSeconds": probe.timeout,
        "successThreshold": probe.success_threshold,
        "failureThreshold": probe.failure_threshold,
    })
    return result


def _build_container_security_context(release: ReleaseConfig) -> Optional[Dict[str, Any]]:
    sec_ctx = release.security_context
    if not sec_ctx:
        return None

    result: Dict[str, Any] = {
        "allowPrivilegeEscalation": sec_ctx.allow_privilege_escalation,
        "readOnlyRootFilesystem": sec_ctx.read_only_root_filesystem,
    }
    if sec_ctx.privileged:
        result["privileged"] = True
    if sec_ctx.capabilities_drop or sec_ctx.capabilities_add:
        result["capabilities"] = {}
        if sec_ctx.capabilities_drop:
            result["capabilities"]["drop"] = sec_ctx.capabilities_drop
        if sec_ctx.capabilities_add:
            result["capabilities"]["add"] = sec_ctx.capabilities_add
    return result


def _build_pod_security_context(release: ReleaseConfig) -> Optional[Dict[str, Any]]:
    psc = release.pod_security_context
    if not psc:
        return None

    pod_sec: Dict[str, Any] = {}
    if psc.run_as_non_root:
        pod_sec["runAsNonRoot"] = True
    if psc.run_as_user is not None:
        pod_sec["runAsUser"] = psc.run_as_user
    if psc.run_as_group is not None:
        pod_sec["runAsGroup"] = psc.run_as_group
    if psc.fs_group is not None:
        pod_sec["fsGroup"] = psc.fs_group
    if psc.seccomp_profile:
        pod_sec["seccompProfile"] = {"type": psc.seccomp_profile}
    return pod_sec or None


def generate_service_account(
    chart: ChartMetadata,
    release: ReleaseConfig,
) -> Optional[Dict[str, Any]]:
    """
    Generate Kubernetes ServiceAccount manifest.

    Returns:
        ServiceAccount manifest dict or None if serviceAccount.create is false
    """
    if not release.service_account.create:
        return None

    return {
        "apiVersion": "v1",
        "kind": "ServiceAccount",
        "metadata": _metadata(
            chart,
            release,
            name=service_account_name(chart, release),
            annotations=release.service_account.annotations,
        ),
        "automountServiceAccountToken": release.service_account.automount,
    }


def generate_configmap(
    chart: ChartMetadata,
    release: ReleaseConfig,
) -> Optional[Dict[str, Any]]:
    """Generate the application ConfigMap, or None if disabled."""
    if not release.config_map.enabled:
        return None

    return {
        "apiVersion": "v1",
        "kind": "ConfigMap",
        "metadata": _metadata(chart, release),
        "data": dict(release.config_map.data),
    }


def generate_secret(
    chart: ChartMetadata,
    release: ReleaseConfig,
) -> Optional[Dict[str, Any]]:
    """Generate the application Secret with base64 encoded data, or None if disabled."""
    if not release.secret.enabled:
        return None

    data = {
        key: base64.b64encode(value.encode("utf-8")).decode("ascii")
        for key, value in release.secret.data.items()
    }

    return {
        "apiVersion": "v1",
        "kind": "Secret",
        "metadata": _metadata(chart, release),
        "type": release.secret.type,
        "data": data,
    }


def generate_role(
    chart: ChartMetadata,
    release: ReleaseConfig,
) -> Optional[Dict[str, Any]]:
    """Generate a namespaced Role, or None if rbac.create is false."""
    if not release.rbac.create:
        return None

    return {
        "apiVersion": "rbac.authorization.k8s.io/v1",
        "kind": "Role",
        "metadata": _metadata(chart, release),
        "rules": [dict(rule) for rule in release.rbac.rules],
    }


def generate_role_binding(
    chart: ChartMetadata,
    release: ReleaseConfig,
) -> Optional[Dict[str, Any]]:
    """Bind the Role to the pods' service account, or None if rbac.create is false."""
    if not release.rbac.create:
        return None

    name = fullname(chart, release)

    return {
        "apiVersion": "rbac.authorization.k8s.io/v1",
        "kind": "RoleBinding",
        "metadata": _metadata(chart, release),
        "roleRef": {
            "apiGroup": "rbac.authorization.k8s.io",
            "kind": "Role",
            "name": name,
        },
        "subjects": [
            {
                "kind": "ServiceAccount",
                "name": service_account_name(chart, release),
                "namespace": release.namespace,
            }
        ],
    }


def generate_service(
    chart: ChartMetadata,
    release: ReleaseConfig,
) -> Dict[str, Any]:
    """
    Generate Kubernetes Service manifest.

    The Service targets the container's named port and selects pods by the
    selector labels.
    """
    svc = release.service

    port: Dict[str, Any] = {
        "name": svc.port_name,
        "port": svc.port,
        "targetPort": svc.port_name,
        "protocol": "TCP",
    }
    if svc.node_port and svc.type in (ServiceType.NODE_PORT, ServiceType.LOAD_BALANCER):
        port["nodePort"] = svc.node_port

    return {
        "apiVersion": "v1",
        "kind": "Service",
        "metadata": _metadata(chart, release, annotations=svc.annotations),
        "spec": {
            "type": svc.type.value,
            "ports": [port],
            "selector": selector_labels(chart, release),
        },
    }


def generate_deployment(
    chart: ChartMetadata,
    release: ReleaseConfig,
    checksums: Optional[Dict[str, str]] = None,
) -> Dict[str, Any]:
    """
    Generate Kubernetes Deployment manifest.

    Args:
        chart: Chart metadata
        release: Release configuration
        checksums: Pod template annotations such as checksum/config. A change
            in any of them changes the pod template and triggers a rollout.

    Returns:
        Deployment manifest dict
    """
    name = fullname(chart, release)
    port_name = release.service.port_name

    container: Dict[str, Any] = {
        "name": chart_name(chart, release),
        "image": release.image.reference(chart.app_version),
        "imagePullPolicy": release.image.pull_policy,
        "ports": [
            {
                "name": port_name,
                "containerPort": release.container_port,
                "protocol": "TCP",
            }
        ],
    }

    if release.env:
        container["env"] = [{"name": k, "value": v} for k, v in release.env.items()]

    env_from = []
    if release.config_map.enabled:
        env_from.append({"configMapRef": {"name": name}})
    if release.secret.enabled:
        env_from.append({"secretRef": {"name": name}})
    if env_from:
        container["envFrom"] = env_from

    # Probes
    if release.probes.startup:
        container["startupProbe"] = _build_probe(release.probes.startup, port_name)
    if release.probes.readiness:
        container["readinessProbe"] = _build_probe(release.probes.readiness, port_name)
    if release.probes.liveness:
        container["livenessProbe"] = _build_probe(release.probes.liveness, port_name)

    resources = release.resources.to_dict()
    if resources:
        container["resources"] = resources

    container_sec = _build_container_security_context(release)
    if container_sec:
        container["securityContext"] = container_sec

    pod_spec: Dict[str, Any] = {
        "serviceAccountName": service_account_name(chart, release),
        "automountServiceAccountToken": release.service_account.automount,
    }

    pod_sec = _build_pod_security_context(release)
    if pod_sec:
        pod_spec["securityContext"] = pod_sec

    if release.image_pull_secrets:
        pod_spec["imagePullSecrets"] = [{"name": s} for s in release.image_pull_secrets]

    # Writable /tmp when the root filesystem is read-only
    if release.security_context and release.security_context.read_only_root_filesystem:
        container["volumeMounts"] = [{"name": "tmp", "mountPath": "/tmp"}]
        pod_spec["volumes"] = [{"name": "tmp", "emptyDir": {}}]

    pod_spec["containers"] = [container]
    pod_spec["terminationGracePeriodSeconds"] = release.termination_grace_period_seconds

    if release.node_selector:
        pod_spec["nodeSelector"] = dict(release.node_selector)
    if release.tolerations:
        pod_spec["tolerations"] = list(release.tolerations)
    if release.affinity:
        pod_spec["affinity"] = dict(release.affinity)

    pod_annotations: Dict[str, str] = {}
    if checksums:
        pod_annotations.update(checksums)
    pod_annotations.update(release.pod_annotations)

    pod_labels = common_labels(chart, release)
    pod_labels.update(release.pod_labels)
    # Selector labels always win so the selector keeps matching
    pod_labels.update(selector_labels(chart, release))

    template_metadata: Dict[str, Any] = {"labels": pod_labels}
    if pod_annotations:
        template_metadata["annotations"] = pod_annotations

    spec: Dict[str, Any] = {
        "replicas": release.replica_count,
        "revisionHistoryLimit": release.revision_history_limit,
        "selector": {
            "matchLabels": selector_labels(chart, release),
        },
    }
    if release.strategy:
        strategy = dict(release.strategy)
        # rollingUpdate is rejected by the API server for Recreate
        if strategy.get("type") == "Recreate":
            strategy.pop("rollingUpdate", None)
        spec["strategy"] = strategy
    spec["template"] = {
        "metadata": template_metadata,
        "spec": pod_spec,
    }

    return {
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "metadata": _metadata(chart, release),
        "spec": spec,
    }


def _build_metric_target(metric: MetricConfig) -> Dict[str, Any]:
    if metric.target_type == MetricTargetType.UTILIZATION:
        return {"type": "Utilization", "averageUtilization": int(metric.target_value)}
    if metric.target_type == MetricTargetType.AVERAGE_VALUE:
        return {"type": "AverageValue", "averageValue": metric.target_value}
    return {"type": "Value", "value": metric.target_value}


def _build_metric(metric: MetricConfig) -> Dict[str, Any]:
    """Build an autoscaling/v2 MetricSpec."""
    target = _build_metric_target(metric)

    if metric.type == MetricType.RESOURCE:
        return {
            "type": "Resource",
            "resource": {"name": metric.name, "target": target},
        }

    metric_id: Dict[str, Any] = {"name": metric.name}
    if metric.selector:
        metric_id["selector"] = metric.selector

    if metric.type == MetricType.PODS:
        return {
            "type": "Pods",
            "pods": {"metric": metric_id, "target": target},
        }
    if metric.type == MetricType.OBJECT:
        return {
            "type": "Object",
            "object": {
                "metric": metric_id,
                "describedObject": metric.described_object,
                "target": target,
            },
        }
    return {
        "type": "External",
        "external": {"metric": metric_id, "target": target},
    }


def generate_hpa(
    chart: ChartMetadata,
    release: ReleaseConfig,
) -> Optional[Dict[str, Any]]:
    """
    Generate Kubernetes HorizontalPodAutoscaler manifest.

    Returns:
        HPA manifest dict or None if autoscaling is disabled
    """
    scaling = release.autoscaling
    if not scaling.enabled:
        return None

    metrics = []
    if scaling.target_cpu_utilization:
        metrics.append({
            "type": "Resource",
            "resource": {
                "name": "cpu",
                "target": {
                    "type": "Utilization",
                    "averageUtilization": scaling.target_cpu_utilization,
                },
            },
        })
    if scaling.target_memory_utilization:
        metrics.append({
            "type": "Resource",
            "resource": {
                "name": "memory",
                "target": {
                    "type": "Utilization",
                    "averageUtilization": scaling.target_memory_utilization,
                },
            },
        })
    metrics.extend(_build_metric(m) for m in scaling.metrics)

    spec: Dict[str, Any] = {
        "scaleTargetRef": {
            "apiVersion": "apps/v1",
            "kind": "Deployment",
            "name": fullname(chart, release),
        },
        "minReplicas": scaling.min_replicas,
        "maxReplicas": scaling.max_replicas,
        "metrics": metrics,
    }
    if scaling.behavior:
        spec["behavior"] = scaling.behavior

    return {
        "apiVersion": "autoscaling/v2",
        "kind": "HorizontalPodAutoscaler",
        "metadata": _metadata(chart, release),
        "spec": spec,
    }


def generate_pdb(
    chart: ChartMetadata,
    release: ReleaseConfig,
) -> Optional[Dict[str, Any]]:
    """
    Generate Kubernetes PodDisruptionBudget manifest.

    Returns:
        PDB manifest dict or None if not enabled or not configured
    """
    pdb = release.pod_disruption_budget
    if not pdb.enabled:
        return None
    if pdb.min_available is None and pdb.max_unavailable is None:
        return None

    spec: Dict[str, Any] = {
        "selector": {
            "matchLabels": selector_labels(chart, release),
        },
    }

    if pdb.min_available is not None:
        spec["minAvailable"] = pdb.min_available
    else:
        spec["maxUnavailable"] = pdb.max_unavailable

    return {
        "apiVersion": "policy/v1",
        "kind": "PodDisruptionBudget",
        "metadata": _metadata(chart, release),
        "spec": spec,
    }


def generate_ingress(
    chart: ChartMetadata,
    release: ReleaseConfig,
) -> Optional[Dict[str, Any]]:
    """
    Generate networking.k8s.io/v1 Ingress manifest.

    Every path routes to the release's Service on its service port.

    Returns:
        Ingress manifest dict or None if ingress is disabled
    """
    ingress = release.ingress
    if not ingress.enabled:
        return None

    name = fullname(chart, release)

    rules = []
    for host in ingress.hosts:
        rules.append({
            "host": host.host,
            "http": {
                "paths": [
                    {
                        "path": p.path,
                        "pathType": p.path_type.value,
                        "backend": {
                            "service": {
                                "name": name,
                                "port": {"number": release.service.port},
                            },
                        },
                    }
                    for p in host.paths
                ],
            },
        })

    spec: Dict[str, Any] = {}
    if ingress.class_name:
        spec["ingressClassName"] = ingress.class_name
    if ingress.tls:
        spec["tls"] = [
            {
                "hosts": tls.hosts,
                "secretName": tls.secret_name,
            }
            for tls in ingress.tls
        ]
    spec["rules"] = rules

    return {
        "apiVersion": "networking.k8s.io/v1",
        "kind": "Ingress",
        "metadata": _metadata(chart, release, annotations=ingress.annotations),
        "spec": spec,
    }


def _normalize_ports(ports: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    normalized = []
    for p in ports:
        entry = {"protocol": p.get("protocol", "TCP"), "port": p["port"]}
        if p.get("endPort") is not None:
            entry["endPort"] = p["endPort"]
        normalized.append(entry)
    return normalized


def generate_network_policy(
    chart: ChartMetadata,
    release: ReleaseConfig,
) -> Optional[Dict[str, Any]]:
    """
    Generate Kubernetes NetworkPolicy manifest with ingress and egress.

    Ingress is always restricted. Egress is restricted only once egress rules
    are configured, and then DNS to kube-dns is allowed unless allowDNS is
    false.

    Returns:
        NetworkPolicy manifest dict or None if network policy disabled
    """
    policy = release.network_policy
    if not policy.enabled:
        return None

    app_port = [{"protocol": "TCP", "port": release.service.port_name}]

    ingress_rules = []

    # Same namespace: any pod in the release namespace
    if policy.allow_same_namespace:
        ingress_rules.append({
            "from": [{"podSelector": {}}],
            "ports": app_port,
        })

    for rule in policy.ingress:
        ingress_entry: Dict[str, Any] = {}
        if rule.peers:
            ingress_entry["from"] = rule.peers
        ingress_entry["ports"] = _normalize_ports(rule.ports) if rule.ports else app_port
        ingress_rules.append(ingress_entry)

    egress_rules = []
    policy_types = ["Ingress"]

    if policy.egress:
        policy_types.append("Egress")

        # DNS (kube-dns) for service discovery
        if policy.allow_dns:
            egress_rules.append({
                "to": [
                    {
                        "namespaceSelector": {},
                        "podSelector": {
                            "matchLabels": {
                                "k8s-app": "kube-dns",
                            },
                        },
                    },
                ],
                "ports": [
                    {"protocol": "UDP", "port": 53},
                    {"protocol": "TCP", "port": 53},
                ],
            })

        for rule in policy.egress:
            egress_entry: Dict[str, Any] = {}
            if rule.peers:
                egress_entry["to"] = rule.peers
            if rule.ports:
                egress_entry["ports"] = _normalize_ports(rule.ports)
            egress_rules.append(egress_entry)

    network_policy: Dict[str, Any] = {
        "apiVersion": "networking.k8s.io/v1",
        "kind": "NetworkPolicy",
        "metadata": _metadata(chart, release),
        "spec": {
            "podSelector": {
                "matchLabels": selector_labels(chart, release),
            },
            "policyTypes": policy_types,
            "ingress": ingress_rules,
        },
    }

    if egress_rules:
        network_policy["spec"]["egress"] = egress_rules

    return network_policy


def generate_service_monitor(
    chart: ChartMetadata,
    release: ReleaseConfig,
) -> Optional[Dict[str, Any]]:
    """
    Generate Prometheus Operator ServiceMonitor manifest.

    Selects the release's Service by its selector labels and scrapes the
    named service port.

    Returns:
        ServiceMonitor manifest dict or None if disabled
    """
    monitor = release.service_monitor
    if not monitor.enabled:
        return None

    endpoint: Dict[str, Any] = {
        "port": release.service.port_name,
        "path": monitor.path,
        "interval": monitor.interval,
        "scrapeTimeout": monitor.scrape_timeout,
    }
    if monitor.honor_labels:
        endpoint["honorLabels"] = True

    return {
        "apiVersion": "monitoring.coreos.com/v1",
        "kind": "ServiceMonitor",
        "metadata": _metadata(
            chart,
            release,
            extra_labels=monitor.labels,
            namespace=monitor.namespace or release.namespace,
        ),
        "spec": {
            "selector": {
                "matchLabels": selector_labels(chart, release),
            },
            "namespaceSelector": {
                "matchNames": [release.namespace],
            },
            "endpoints": [endpoint],
        },
    }


def compute_checksums(
    configmap: Optional[Dict[str, Any]],
    secret: Optional[Dict[str, Any]],
) -> Dict[str, str]:
    """
    Checksum annotations for the pod template.

    Each checksum is the sha256 of the rendered document, so any change to
    the ConfigMap or Secret content rolls the Deployment.
    """
    checksums = {}
    if configmap is not None:
        checksums[CONFIG_CHECKSUM_ANNOTATION] = sha256_digest(dump_manifest(configmap))
    if secret is not None:
        checksums[SECRET_CHECKSUM_ANNOTATION] = sha256_digest(dump_manifest(secret))
    return checksums


def generate_all_manifests(
    chart: ChartMetadata,
    release: ReleaseConfig,
) -> List[Dict[str, Any]]:
    """
    Generate all Kubernetes manifests for a release.

    Args:
        chart: Chart metadata
        release: Release configuration

    Returns:
        List of all manifest dicts in install order
    """
    configmap = generate_configmap(chart, release)
    secret = generate_secret(chart, release)
    checksums = compute_checksums(configmap, secret)

    candidates = [
        generate_service_account(chart, release),
        secret,
        configmap,
        generate_role(chart, release),
        generate_role_binding(chart, release),
        generate_service(chart, release),
        generate_deployment(chart, release, checksums),
        generate_hpa(chart, release),
        generate_pdb(chart, release),
        generate_ingress(chart, release),
        generate_network_policy(chart, release),
        generate_service_monitor(chart, release),
    ]
    manifests = [m for m in candidates if m is not None]

    logger.debug(
        "Generated %d manifests for release %s",
        len(manifests),
        release.name,
    )
    return sort_manifests(manifests)
