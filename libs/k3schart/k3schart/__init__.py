"""
K3s Chart - renderer for the web-service chart

Generates Kubernetes manifests from chart values and a release name.
"""

__version__ = "0.1.0"

from .types import (
    ChartMetadata,
    ReleaseConfig,
    ImageConfig,
    ResourcesConfig,
    ProbeConfig,
    ProbesConfig,
    ProbeType,
    AutoscalingConfig,
    MetricConfig,
    MetricType,
    MetricTargetType,
    PodDisruptionBudgetConfig,
    ServiceConfig,
    ServiceType,
    IngressConfig,
    PathType,
    ConfigMapConfig,
    SecretConfig,
    NetworkPolicyConfig,
    ServiceAccountConfig,
    RbacConfig,
    ServiceMonitorConfig,
)

from .values import (
    deep_merge,
    parse_set_value,
    parse_set_values,
)

from .schema import (
    load_chart_metadata,
    load_default_values,
    load_values,
    load_release,
    validate_values,
)

from .generators import (
    fullname,
    selector_labels,
    common_labels,
    generate_service_account,
    generate_configmap,
    generate_secret,
    generate_role,
    generate_role_binding,
    generate_service,
    generate_deployment,
    generate_hpa,
    generate_pdb,
    generate_ingress,
    generate_network_policy,
    generate_service_monitor,
    generate_all_manifests,
)

from .checks import (
    check_manifest,
    check_references,
    check_all,
)

from .render import (
    sort_manifests,
    render_manifests,
    write_manifests,
)

__all__ = [
    # Types
    "ChartMetadata",
    "ReleaseConfig",
    "ImageConfig",
    "ResourcesConfig",
    "ProbeConfig",
    "ProbesConfig",
    "ProbeType",
    "AutoscalingConfig",
    "MetricConfig",
    "MetricType",
    "MetricTargetType",
    "PodDisruptionBudgetConfig",
    "ServiceConfig",
    "ServiceType",
    "IngressConfig",
    "PathType",
    "ConfigMapConfig",
    "SecretConfig",
    "NetworkPolicyConfig",
    "ServiceAccountConfig",
    "RbacConfig",
    "ServiceMonitorConfig",
    # Values
    "deep_merge",
    "parse_set_value",
    "parse_set_values",
    # Schema
    "load_chart_metadata",
    "load_default_values",
    "load_values",
    "load_release",
    "validate_values",
    # Generators
    "fullname",
    "selector_labels",
    "common_labels",
    "generate_service_account",
    "generate_configmap",
    "generate_secret",
    "generate_role",
    "generate_role_binding",
    "generate_service",
    "generate_deployment",
    "generate_hpa",
    "generate_pdb",
    "generate_ingress",
    "generate_network_policy",
    "generate_service_monitor",
    "generate_all_manifests",
    # Checks
    "check_manifest",
    "check_references",
    "check_all",
    # Render
    "sort_manifests",
    "render_manifests",
    "write_manifests",
]
