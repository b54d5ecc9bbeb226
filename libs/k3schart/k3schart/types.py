"""
Type definitions for k3schart release configuration.

These dataclasses represent the chart's values.yaml. Values keys follow the
Helm camelCase convention; attributes are snake_case.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union


IntOrString = Union[int, str]


def _stringify(value: Any) -> str:
    """Render a scalar the way Helm's quote does; booleans become true/false."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class ProbeType(str, Enum):
    """Health check probe type."""
    HTTP = "http"
    TCP = "tcp"
    EXEC = "exec"


class ServiceType(str, Enum):
    """Kubernetes Service type."""
    CLUSTER_IP = "ClusterIP"
    NODE_PORT = "NodePort"
    LOAD_BALANCER = "LoadBalancer"


class PathType(str, Enum):
    """Ingress path matching type."""
    PREFIX = "Prefix"
    EXACT = "Exact"
    IMPLEMENTATION_SPECIFIC = "ImplementationSpecific"


class MetricType(str, Enum):
    """autoscaling/v2 metric source type."""
    RESOURCE = "Resource"
    PODS = "Pods"
    OBJECT = "Object"
    EXTERNAL = "External"


class MetricTargetType(str, Enum):
    """autoscaling/v2 metric target type."""
    UTILIZATION = "Utilization"
    AVERAGE_VALUE = "AverageValue"
    VALUE = "Value"


@dataclass
class ChartMetadata:
    """Chart.yaml contents."""
    name: str
    version: str
    app_version: str = ""
    description: str = ""
    api_version: str = "v2"

    @classmethod
    def from_dict(cls, data: Dict) -> "ChartMetadata":
        return cls(
            name=data["name"],
            version=str(data["version"]),
            app_version=str(data.get("appVersion", "")),
            description=data.get("description", ""),
            api_version=data.get("apiVersion", "v2"),
        )

    @property
    def label(self) -> str:
        """Value of the helm.sh/chart label."""
        return f"{self.name}-{self.version}".replace("+", "_")[:63].rstrip("-")


@dataclass
class ImageConfig:
    """Container image reference."""
    repository: str = "nginx"
    tag: str = ""
    digest: str = ""
    pull_policy: str = "IfNotPresent"

    @classmethod
    def from_dict(cls, data: Optional[Dict]) -> "ImageConfig":
        if not data:
            return cls()
        tag = data.get("tag")
        return cls(
            repository=data.get("repository", "nginx"),
            tag=str(tag) if tag not in (None, "") else "",
            digest=data.get("digest") or "",
            pull_policy=data.get("pullPolicy", "IfNotPresent"),
        )

    def reference(self, app_version: str = "") -> str:
        """Full image reference; a digest wins over the tag."""
        if self.digest:
            return f"{self.repository}@{self.digest}"
        tag = self.tag or app_version or "latest"
        return f"{self.repository}:{tag}"


@dataclass
class ResourcesConfig:
    """Container resource requests and limits."""
    requests: Dict[str, str] = field(default_factory=dict)
    limits: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Optional[Dict]) -> "ResourcesConfig":
        if not data:
            return cls()
        return cls(
            requests={k: str(v) for k, v in (data.get("requests") or {}).items()},
            limits={k: str(v) for k, v in (data.get("limits") or {}).items()},
        )

    def to_dict(self) -> Dict[str, Dict[str, str]]:
        result = {}
        if self.requests:
            result["requests"] = dict(self.requests)
        if self.limits:
            result["limits"] = dict(self.limits)
        return result


@dataclass
class ProbeConfig:
    """Health check probe configuration."""
    type: ProbeType = ProbeType.HTTP
    path: str = "/healthz"
    port: Optional[IntOrString] = None
    command: Optional[List[str]] = None
    initial_delay: int = 0
    period: int = 10
    timeout: int = 1
    success_threshold: int = 1
    failure_threshold: int = 3

    @classmethod
    def from_dict(cls, data: Optional[Dict]) -> Optional["ProbeConfig"]:
        if not data:
            return None
        probe_type = data.get("type", "http")
        return cls(
            type=ProbeType(probe_type) if probe_type else ProbeType.HTTP,
            path=data.get("path", "/healthz"),
            port=data.get("port"),
            command=data.get("command"),
            initial_delay=data.get("initialDelaySeconds", 0),
            period=data.get("periodSeconds", 10),
            timeout=data.get("timeoutSeconds", 1),
            success_threshold=data.get("successThreshold", 1),
            failure_threshold=data.get("failureThreshold", 3),
        )


@dataclass
class ProbesConfig:
    """Collection of health check probes."""
    startup: Optional[ProbeConfig] = None
    readiness: Optional[ProbeConfig] = None
    liveness: Optional[ProbeConfig] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict]) -> "ProbesConfig":
        if not data:
            return cls()
        return cls(
            startup=ProbeConfig.from_dict(data.get("startup")),
            readiness=ProbeConfig.from_dict(data.get("readiness")),
            liveness=ProbeConfig.from_dict(data.get("liveness")),
        )


@dataclass
class MetricConfig:
    """Extra autoscaling metric.

    Pods, Object and External metrics require a metrics adapter in the
    cluster; the renderer only emits the HPA spec.
    """
    type: MetricType
    name: str
    target_type: MetricTargetType
    target_value: IntOrString
    selector: Dict[str, Any] = field(default_factory=dict)
    described_object: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict) -> "MetricConfig":
        target = data.get("target") or {}
        return cls(
            type=MetricType(data["type"]),
            name=data["name"],
            target_type=MetricTargetType(target.get("type", "AverageValue")),
            target_value=target["value"],
            selector=data.get("selector") or {},
            described_object=data.get("describedObject") or {},
        )


@dataclass
class AutoscalingConfig:
    """HorizontalPodAutoscaler configuration."""
    enabled: bool = False
    min_replicas: int = 1
    max_replicas: int = 10
    target_cpu_utilization: Optional[int] = 80
    target_memory_utilization: Optional[int] = None
    metrics: List[MetricConfig] = field(default_factory=list)
    behavior: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Optional[Dict]) -> "AutoscalingConfig":
        if not data:
            return cls()
        return cls(
            enabled=data.get("enabled", False),
            min_replicas=data.get("minReplicas", 1),
            max_replicas=data.get("maxReplicas", 10),
            target_cpu_utilization=data.get("targetCPUUtilizationPercentage"),
            target_memory_utilization=data.get("targetMemoryUtilizationPercentage"),
            metrics=[MetricConfig.from_dict(m) for m in data.get("metrics") or []],
            behavior=data.get("behavior") or {},
        )


@dataclass
class PodDisruptionBudgetConfig:
    """Pod disruption budget configuration."""
    enabled: bool = False
    min_available: Optional[IntOrString] = None
    max_unavailable: Optional[IntOrString] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict]) -> "PodDisruptionBudgetConfig":
        if not data:
            return cls()
        return cls(
            enabled=data.get("enabled", False),
            min_available=data.get("minAvailable"),
            max_unavailable=data.get("maxUnavailable"),
        )


@dataclass
class ServiceConfig:
    """Service configuration."""
    type: ServiceType = ServiceType.CLUSTER_IP
    port: int = 80
    port_name: str = "http"
    node_port: Optional[int] = None
    annotations: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Optional[Dict]) -> "ServiceConfig":
        if not data:
            return cls()
        service_type = data.get("type", "ClusterIP")
        return cls(
            type=ServiceType(service_type) if service_type else ServiceType.CLUSTER_IP,
            port=data.get("port", 80),
            port_name=data.get("portName", "http"),
            node_port=data.get("nodePort"),
            annotations=data.get("annotations") or {},
        )


@dataclass
class IngressPathConfig:
    """Single ingress path."""
    path: str = "/"
    path_type: PathType = PathType.PREFIX

    @classmethod
    def from_dict(cls, data: Dict) -> "IngressPathConfig":
        path_type = data.get("pathType", "Prefix")
        return cls(
            path=data.get("path", "/"),
            path_type=PathType(path_type) if path_type else PathType.PREFIX,
        )


@dataclass
class IngressHostConfig:
    """Ingress host rule."""
    host: str
    paths: List[IngressPathConfig] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict) -> "IngressHostConfig":
        paths = [IngressPathConfig.from_dict(p) for p in data.get("paths") or []]
        return cls(
            host=data["host"],
            paths=paths or [IngressPathConfig()],
        )


@dataclass
class IngressTlsConfig:
    """Ingress TLS entry."""
    secret_name: str
    hosts: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict) -> "IngressTlsConfig":
        return cls(
            secret_name=data["secretName"],
            hosts=data.get("hosts") or [],
        )


@dataclass
class IngressConfig:
    """Ingress configuration."""
    enabled: bool = False
    class_name: str = ""
    annotations: Dict[str, str] = field(default_factory=dict)
    hosts: List[IngressHostConfig] = field(default_factory=list)
    tls: List[IngressTlsConfig] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Optional[Dict]) -> "IngressConfig":
        if not data:
            return cls()
        return cls(
            enabled=data.get("enabled", False),
            class_name=data.get("className") or "",
            annotations=data.get("annotations") or {},
            hosts=[IngressHostConfig.from_dict(h) for h in data.get("hosts") or []],
            tls=[IngressTlsConfig.from_dict(t) for t in data.get("tls") or []],
        )


@dataclass
class ConfigMapConfig:
    """Application ConfigMap."""
    enabled: bool = False
    data: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Optional[Dict]) -> "ConfigMapConfig":
        if not data:
            return cls()
        return cls(
            enabled=data.get("enabled", False),
            data={k: _stringify(v) for k, v in (data.get("data") or {}).items()},
        )


@dataclass
class SecretConfig:
    """Application Secret. Values are plain text and get base64 encoded."""
    enabled: bool = False
    type: str = "Opaque"
    data: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Optional[Dict]) -> "SecretConfig":
        if not data:
            return cls()
        return cls(
            enabled=data.get("enabled", False),
            type=data.get("type") or "Opaque",
            data={k: _stringify(v) for k, v in (data.get("data") or {}).items()},
        )


@dataclass
class NetworkPolicyRuleConfig:
    """Ingress or egress rule.

    Peers are passed through verbatim (podSelector, namespaceSelector,
    ipBlock). An empty ports list means the service target port for ingress
    rules and all ports for egress rules.
    """
    peers: List[Dict[str, Any]] = field(default_factory=list)
    ports: List[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict) -> "NetworkPolicyRuleConfig":
        return cls(
            peers=data.get("peers") or [],
            ports=data.get("ports") or [],
        )


@dataclass
class NetworkPolicyConfig:
    """Network policy configuration."""
    enabled: bool = False
    allow_same_namespace: bool = True
    allow_dns: bool = True
    ingress: List[NetworkPolicyRuleConfig] = field(default_factory=list)
    egress: List[NetworkPolicyRuleConfig] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> "NetworkPolicyConfig":
        if data is None:
            return cls()
        if isinstance(data, bool):
            return cls(enabled=data)
        return cls(
            enabled=data.get("enabled", False),
            allow_same_namespace=data.get("allowSameNamespace", True),
            allow_dns=data.get("allowDNS", True),
            ingress=[NetworkPolicyRuleConfig.from_dict(r) for r in data.get("ingress") or []],
            egress=[NetworkPolicyRuleConfig.from_dict(r) for r in data.get("egress") or []],
        )


@dataclass
class ServiceAccountConfig:
    """Service account configuration."""
    create: bool = True
    name: str = ""
    annotations: Dict[str, str] = field(default_factory=dict)
    automount: bool = False

    @classmethod
    def from_dict(cls, data: Optional[Dict]) -> "ServiceAccountConfig":
        if not data:
            return cls()
        return cls(
            create=data.get("create", True),
            name=data.get("name") or "",
            annotations=data.get("annotations") or {},
            automount=data.get("automount", False),
        )


@dataclass
class RbacConfig:
    """Namespaced Role/RoleBinding for the service account."""
    create: bool = False
    rules: List[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Optional[Dict]) -> "RbacConfig":
        if not data:
            return cls()
        return cls(
            create=data.get("create", False),
            rules=data.get("rules") or [],
        )


@dataclass
class ServiceMonitorConfig:
    """Prometheus Operator ServiceMonitor configuration."""
    enabled: bool = False
    namespace: str = ""
    interval: str = "30s"
    scrape_timeout: str = "10s"
    path: str = "/metrics"
    labels: Dict[str, str] = field(default_factory=dict)
    honor_labels: bool = False

    @classmethod
    def from_dict(cls, data: Optional[Dict]) -> "ServiceMonitorConfig":
        if not data:
            return cls()
        return cls(
            enabled=data.get("enabled", False),
            namespace=data.get("namespace") or "",
            interval=data.get("interval", "30s"),
            scrape_timeout=data.get("scrapeTimeout", "10s"),
            path=data.get("path", "/metrics"),
            labels=data.get("labels") or {},
            honor_labels=data.get("honorLabels", False),
        )


@dataclass
class PodSecurityContext:
    """Pod security context."""
    run_as_non_root: bool = True
    run_as_user: Optional[int] = None
    run_as_group: Optional[int] = None
    fs_group: Optional[int] = None
    seccomp_profile: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict]) -> Optional["PodSecurityContext"]:
        if not data:
            return None
        return cls(
            run_as_non_root=data.get("runAsNonRoot", True),
            run_as_user=data.get("runAsUser"),
            run_as_group=data.get("runAsGroup"),
            fs_group=data.get("fsGroup"),
            seccomp_profile=data.get("seccompProfile") or None,
        )


@dataclass
class ContainerSecurityContext:
    """Container security context."""
    allow_privilege_escalation: bool = False
    read_only_root_filesystem: bool = False
    privileged: bool = False
    capabilities_drop: List[str] = field(default_factory=list)
    capabilities_add: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Optional[Dict]) -> Optional["ContainerSecurityContext"]:
        if not data:
            return None
        caps = data.get("capabilities") or {}
        return cls(
            allow_privilege_escalation=data.get("allowPrivilegeEscalation", False),
            read_only_root_filesystem=data.get("readOnlyRootFilesystem", False),
            privileged=data.get("privileged", False),
            capabilities_drop=caps.get("drop") or [],
            capabilities_add=caps.get("add") or [],
        )


@dataclass
class ReleaseConfig:
    """Complete release configuration: a release name plus merged values."""
    name: str
    namespace: str = "default"
    name_override: str = ""
    fullname_override: str = ""

    # Workload
    replica_count: int = 1
    revision_history_limit: int = 10
    termination_grace_period_seconds: int = 30
    image: ImageConfig = field(default_factory=ImageConfig)
    image_pull_secrets: List[str] = field(default_factory=list)
    strategy: Dict[str, Any] = field(default_factory=dict)
    pod_annotations: Dict[str, str] = field(default_factory=dict)
    pod_labels: Dict[str, str] = field(default_factory=dict)
    container_port: int = 8080
    env: Dict[str, str] = field(default_factory=dict)
    resources: ResourcesConfig = field(default_factory=ResourcesConfig)
    probes: ProbesConfig = field(default_factory=ProbesConfig)
    pod_security_context: Optional[PodSecurityContext] = None
    security_context: Optional[ContainerSecurityContext] = None
    node_selector: Dict[str, str] = field(default_factory=dict)
    tolerations: List[Dict[str, Any]] = field(default_factory=list)
    affinity: Dict[str, Any] = field(default_factory=dict)

    # Networking
    service: ServiceConfig = field(default_factory=ServiceConfig)
    ingress: IngressConfig = field(default_factory=IngressConfig)
    network_policy: NetworkPolicyConfig = field(default_factory=NetworkPolicyConfig)

    # Scaling & availability
    autoscaling: AutoscalingConfig = field(default_factory=AutoscalingConfig)
    pod_disruption_budget: PodDisruptionBudgetConfig = field(
        default_factory=PodDisruptionBudgetConfig
    )

    # Configuration
    config_map: ConfigMapConfig = field(default_factory=ConfigMapConfig)
    secret: SecretConfig = field(default_factory=SecretConfig)

    # Identity & RBAC
    service_account: ServiceAccountConfig = field(default_factory=ServiceAccountConfig)
    rbac: RbacConfig = field(default_factory=RbacConfig)

    # Observability
    service_monitor: ServiceMonitorConfig = field(default_factory=ServiceMonitorConfig)

    @classmethod
    def from_dict(
        cls,
        name: str,
        data: Optional[Dict],
        namespace: str = "default",
    ) -> "ReleaseConfig":
        """Create ReleaseConfig from merged values."""
        data = data or {}
        return cls(
            name=name,
            namespace=namespace,
            name_override=data.get("nameOverride") or "",
            fullname_override=data.get("fullnameOverride") or "",
            replica_count=data.get("replicaCount", 1),
            revision_history_limit=data.get("revisionHistoryLimit", 10),
            termination_grace_period_seconds=data.get("terminationGracePeriodSeconds", 30),
            image=ImageConfig.from_dict(data.get("image")),
            image_pull_secrets=[s["name"] for s in data.get("imagePullSecrets") or []],
            strategy=data.get("strategy") or {},
            pod_annotations=data.get("podAnnotations") or {},
            pod_labels=data.get("podLabels") or {},
            container_port=data.get("containerPort", 8080),
            env={k: _stringify(v) for k, v in (data.get("env") or {}).items()},
            resources=ResourcesConfig.from_dict(data.get("resources")),
            probes=ProbesConfig.from_dict(data.get("probes")),
            pod_security_context=PodSecurityContext.from_dict(data.get("podSecurityContext")),
            security_context=ContainerSecurityContext.from_dict(data.get("securityContext")),
            node_selector=data.get("nodeSelector") or {},
            tolerations=data.get("tolerations") or [],
            affinity=data.get("affinity") or {},
            service=ServiceConfig.from_dict(data.get("service")),
            ingress=IngressConfig.from_dict(data.get("ingress")),
            network_policy=NetworkPolicyConfig.from_dict(data.get("networkPolicy")),
            autoscaling=AutoscalingConfig.from_dict(data.get("autoscaling")),
            pod_disruption_budget=PodDisruptionBudgetConfig.from_dict(
                data.get("podDisruptionBudget")
            ),
            config_map=ConfigMapConfig.from_dict(data.get("configMap")),
            secret=SecretConfig.from_dict(data.get("secret")),
            service_account=ServiceAccountConfig.from_dict(data.get("serviceAccount")),
            rbac=RbacConfig.from_dict(data.get("rbac")),
            service_monitor=ServiceMonitorConfig.from_dict(data.get("serviceMonitor")),
        )
