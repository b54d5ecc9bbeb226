"""
Structural checks for rendered manifests.

check_manifest validates the shape of a single document. check_references
verifies that documents which point at each other by name or labels agree.
"""

import logging
import re
from typing import Any, Dict, List, Optional

from kubernetes_validate.utils import SchemaNotFoundError, ValidationError, validate

logger = logging.getLogger(__name__)

# Kubernetes release whose OpenAPI schemas documents are validated against
KUBERNETES_VERSION = "1.28"

# Custom resources have no upstream schema
CRD_KINDS = {"ServiceMonitor"}

DNS_1123_LABEL = re.compile(r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?$")
DNS_1123_SUBDOMAIN = re.compile(
    r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?(\.[a-z0-9]([-a-z0-9]*[a-z0-9])?)*$"
)
LABEL_NAME = re.compile(r"^([A-Za-z0-9]([-A-Za-z0-9_.]*[A-Za-z0-9])?)?$")
LABEL_PREFIX = DNS_1123_SUBDOMAIN
# resource.Quantity syntax; the OpenAPI schema types it as a plain string
QUANTITY = re.compile(
    r"^[+-]?([0-9]+(\.[0-9]*)?|\.[0-9]+)"
    r"(Ki|Mi|Gi|Ti|Pi|Ei|n|u|m|k|M|G|T|P|E|[eE][+-]?[0-9]+)?$"
)

# Kinds whose names may be DNS subdomains (up to 253 characters)
SUBDOMAIN_NAMED_KINDS = {
    "ConfigMap",
    "Secret",
    "ServiceAccount",
    "Role",
    "RoleBinding",
    "ServiceMonitor",
}

# Required fields per kind, as dotted paths
REQUIRED_FIELDS = {
    "Deployment": [
        "spec.selector.matchLabels",
        "spec.template.metadata.labels",
        "spec.template.spec.containers",
    ],
    "Service": ["spec.ports", "spec.selector"],
    "Ingress": ["spec.rules"],
    "HorizontalPodAutoscaler": ["spec.scaleTargetRef.name", "spec.maxReplicas"],
    "PodDisruptionBudget": ["spec.selector.matchLabels"],
    "NetworkPolicy": ["spec.podSelector", "spec.policyTypes"],
    "Role": ["rules"],
    "RoleBinding": ["roleRef.name", "subjects"],
    "ServiceMonitor": ["spec.selector.matchLabels", "spec.endpoints"],
}


def _get_path(doc: Dict[str, Any], path: str) -> Optional[Any]:
    current: Any = doc
    for part in path.split("."):
        if not isinstance(current, dict) or part not in current:
            return None
        current = current[part]
    return current


def _ref(doc: Dict[str, Any]) -> str:
    return f"{doc.get('kind', '?')}/{doc.get('metadata', {}).get('name', '?')}"


def _check_name(kind: str, name: str) -> Optional[str]:
    if kind in SUBDOMAIN_NAMED_KINDS:
        if len(name) > 253 or not DNS_1123_SUBDOMAIN.match(name):
            return f"invalid name {name!r}: must be a DNS-1123 subdomain"
        return None
    if len(name) > 63 or not DNS_1123_LABEL.match(name):
        return f"invalid name {name!r}: must be a DNS-1123 label of at most 63 characters"
    return None


def _check_labels(labels: Dict[str, Any]) -> List[str]:
    errors = []
    for key, value in labels.items():
        prefix, _, name = key.rpartition("/")
        if prefix and (len(prefix) > 253 or not LABEL_PREFIX.match(prefix)):
            errors.append(f"invalid label key prefix {key!r}")
        if not name or len(name) > 63 or not LABEL_NAME.match(name):
            errors.append(f"invalid label key {key!r}")
        if not isinstance(value, str):
            errors.append(f"label {key!r} value must be a string, got {type(value).__name__}")
        elif len(value) > 63 or not LABEL_NAME.match(value):
            errors.append(f"invalid label value {value!r} for {key!r}")
    return errors


def _check_schema(doc: Dict[str, Any], kube_version: str) -> List[str]:
    """Validate a built-in kind against the upstream Kubernetes OpenAPI schema."""
    if doc.get("kind") in CRD_KINDS:
        return []
    try:
        validate(doc, kube_version, strict=True)
    except ValidationError as e:
        error = e
        path = ".".join(str(p) for p in error.path)
        message = f"{path}: {error.message}" if path else error.message
        return [f"does not validate against Kubernetes {kube_version}: {message}"]
    except SchemaNotFoundError:
        return [
            f"no Kubernetes {kube_version} schema for "
            f"{doc.get('apiVersion')}/{doc.get('kind')}"
        ]
    return []


def _check_quantities(doc: Dict[str, Any]) -> List[str]:
    errors = []
    for container in _get_path(doc, "spec.template.spec.containers") or []:
        resources = container.get("resources") or {}
        for section in ("requests", "limits"):
            for resource, value in (resources.get(section) or {}).items():
                if isinstance(value, bool) or not QUANTITY.match(str(value)):
                    errors.append(
                        f"container {container.get('name')!r}: invalid quantity "
                        f"{value!r} for resources.{section}.{resource}"
                    )
    return errors


def check_manifest(doc: Dict[str, Any], kube_version: str = KUBERNETES_VERSION) -> List[str]:
    """
    Check a single manifest.

    Built-in kinds are validated against the Kubernetes OpenAPI schemas
    with kubernetes-validate. Names, labels, quantities and a few fields the
    API server requires beyond the schema are checked here.

    Returns list of problems prefixed with "Kind/name: " (empty if valid).
    """
    errors = []
    for field in ("apiVersion", "kind", "metadata"):
        if not doc.get(field):
            errors.append(f"missing {field}")

    metadata = doc.get("metadata") or {}
    name = metadata.get("name")
    kind = doc.get("kind", "")
    if not name:
        errors.append("missing metadata.name")
    else:
        name_error = _check_name(kind, name)
        if name_error:
            errors.append(name_error)

    errors.extend(_check_labels(metadata.get("labels") or {}))

    for path in REQUIRED_FIELDS.get(kind, []):
        if _get_path(doc, path) in (None, [], ""):
            errors.append(f"missing {path}")

    if kind == "Deployment":
        errors.extend(_check_labels(_get_path(doc, "spec.template.metadata.labels") or {}))
        errors.extend(_check_quantities(doc))
    elif kind == "HorizontalPodAutoscaler":
        min_replicas = _get_path(doc, "spec.minReplicas") or 1
        max_replicas = _get_path(doc, "spec.maxReplicas") or 0
        if min_replicas > max_replicas:
            errors.append(f"minReplicas {min_replicas} exceeds maxReplicas {max_replicas}")

    if doc.get("apiVersion") and kind:
        errors.extend(_check_schema(doc, kube_version))

    return [f"{_ref(doc)}: {e}" for e in errors]


def _matches(selector: Dict[str, str], labels: Dict[str, str]) -> bool:
    """True if every selector label is present with the same value."""
    return bool(selector) and all(labels.get(k) == v for k, v in selector.items())


def _by_kind(docs: List[Dict[str, Any]], kind: str) -> Dict[str, Dict[str, Any]]:
    return {
        d["metadata"]["name"]: d
        for d in docs
        if d.get("kind") == kind and d.get("metadata", {}).get("name")
    }


def check_references(docs: List[Dict[str, Any]]) -> List[str]:
    """
    Check cross references between rendered manifests.

    Returns list of problems (empty if consistent).
    """
    errors = []
    deployments = _by_kind(docs, "Deployment")
    services = _by_kind(docs, "Service")
    configmaps = _by_kind(docs, "ConfigMap")
    secrets = _by_kind(docs, "Secret")
    roles = _by_kind(docs, "Role")
    service_accounts = _by_kind(docs, "ServiceAccount")

    pod_labels = {
        name: _get_path(d, "spec.template.metadata.labels") or {}
        for name, d in deployments.items()
    }

    def selects_any_pod(selector: Dict[str, str]) -> bool:
        return any(_matches(selector, labels) for labels in pod_labels.values())

    for name, deployment in deployments.items():
        selector = _get_path(deployment, "spec.selector.matchLabels") or {}
        if not _matches(selector, pod_labels[name]):
            errors.append(f"Deployment/{name}: selector does not match its pod template labels")

        for container in _get_path(deployment, "spec.template.spec.containers") or []:
            port_names = {p.get("name") for p in container.get("ports", [])}
            for probe_key in ("startupProbe", "readinessProbe", "livenessProbe"):
                probe = container.get(probe_key) or {}
                action = probe.get("httpGet") or probe.get("tcpSocket") or {}
                port = action.get("port")
                if isinstance(port, str) and port not in port_names:
                    errors.append(
                        f"Deployment/{name}: {probe_key} uses unknown container port {port!r}"
                    )
            for source in container.get("envFrom", []):
                if "configMapRef" in source and source["configMapRef"]["name"] not in configmaps:
                    errors.append(
                        f"Deployment/{name}: envFrom references missing ConfigMap "
                        f"{source['configMapRef']['name']!r}"
                    )
                if "secretRef" in source and source["secretRef"]["name"] not in secrets:
                    errors.append(
                        f"Deployment/{name}: envFrom references missing Secret "
                        f"{source['secretRef']['name']!r}"
                    )

        sa_name = _get_path(deployment, "spec.template.spec.serviceAccountName")
        if sa_name and sa_name != "default" and service_accounts and sa_name not in service_accounts:
            errors.append(f"Deployment/{name}: serviceAccountName {sa_name!r} is not rendered")

    for name, service in services.items():
        selector = _get_path(service, "spec.selector") or {}
        if deployments and not selects_any_pod(selector):
            errors.append(f"Service/{name}: selector matches no Deployment pod labels")

        container_ports = set()
        for deployment in deployments.values():
            for container in _get_path(deployment, "spec.template.spec.containers") or []:
                for p in container.get("ports", []):
                    container_ports.add(p.get("name"))
                    container_ports.add(p.get("containerPort"))
        for port in _get_path(service, "spec.ports") or []:
            target = port.get("targetPort", port.get("port"))
            if deployments and target not in container_ports:
                errors.append(f"Service/{name}: targetPort {target!r} matches no container port")

    for doc in docs:
        kind = doc.get("kind")
        name = doc.get("metadata", {}).get("name")

        if kind == "Ingress":
            for rule in _get_path(doc, "spec.rules") or []:
                for path in _get_path(rule, "http.paths") or []:
                    backend = _get_path(path, "backend.service") or {}
                    svc_name = backend.get("name")
                    if svc_name not in services:
                        errors.append(f"Ingress/{name}: backend Service {svc_name!r} is not rendered")
                        continue
                    port = backend.get("port") or {}
                    svc_ports = _get_path(services[svc_name], "spec.ports") or []
                    known = {p.get("port") for p in svc_ports} | {p.get("name") for p in svc_ports}
                    wanted = port.get("number", port.get("name"))
                    if wanted not in known:
                        errors.append(
                            f"Ingress/{name}: backend port {wanted!r} not exposed by Service/{svc_name}"
                        )

        elif kind == "HorizontalPodAutoscaler":
            target = _get_path(doc, "spec.scaleTargetRef") or {}
            if target.get("kind") != "Deployment" or target.get("name") not in deployments:
                errors.append(
                    f"HorizontalPodAutoscaler/{name}: scaleTargetRef "
                    f"{target.get('kind')}/{target.get('name')} is not rendered"
                )

        elif kind == "PodDisruptionBudget":
            selector = _get_path(doc, "spec.selector.matchLabels") or {}
            if not selects_any_pod(selector):
                errors.append(f"PodDisruptionBudget/{name}: selector matches no Deployment pods")

        elif kind == "NetworkPolicy":
            selector = _get_path(doc, "spec.podSelector.matchLabels") or {}
            if not selects_any_pod(selector):
                errors.append(f"NetworkPolicy/{name}: podSelector matches no Deployment pods")

        elif kind == "RoleBinding":
            role_ref = doc.get("roleRef") or {}
            if role_ref.get("kind") == "Role" and role_ref.get("name") not in roles:
                errors.append(f"RoleBinding/{name}: roleRef Role {role_ref.get('name')!r} is not rendered")
            for subject in doc.get("subjects") or []:
                if (
                    subject.get("kind") == "ServiceAccount"
                    and service_accounts
                    and subject.get("name") not in service_accounts
                ):
                    errors.append(
                        f"RoleBinding/{name}: subject ServiceAccount "
                        f"{subject.get('name')!r} is not rendered"
                    )

        elif kind == "ServiceMonitor":
            selector = _get_path(doc, "spec.selector.matchLabels") or {}
            selected = [
                s for s in services.values()
                if _matches(selector, s.get("metadata", {}).get("labels") or {})
            ]
            if not selected:
                errors.append(f"ServiceMonitor/{name}: selector matches no Service labels")
                continue
            port_names = {
                p.get("name")
                for s in selected
                for p in _get_path(s, "spec.ports") or []
            }
            for endpoint in _get_path(doc, "spec.endpoints") or []:
                if endpoint.get("port") not in port_names:
                    errors.append(
                        f"ServiceMonitor/{name}: endpoint port {endpoint.get('port')!r} "
                        f"is not a named Service port"
                    )

    return errors


def check_all(
    docs: List[Dict[str, Any]],
    kube_version: str = KUBERNETES_VERSION,
) -> List[str]:
    """Run every per-document and cross-reference check."""
    errors = []
    for doc in docs:
        errors.extend(check_manifest(doc, kube_version))
    errors.extend(check_references(docs))
    logger.debug("Checked %d manifests: %d problems", len(docs), len(errors))
    return errors
