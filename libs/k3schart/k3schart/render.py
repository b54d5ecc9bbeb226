"""
Ordering and serialisation of rendered manifests.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List

import yaml

logger = logging.getLogger(__name__)

# Helm's install order; kinds not listed go last
INSTALL_ORDER = [
    "Namespace",
    "NetworkPolicy",
    "ResourceQuota",
    "LimitRange",
    "PodDisruptionBudget",
    "ServiceAccount",
    "Secret",
    "ConfigMap",
    "StorageClass",
    "PersistentVolume",
    "PersistentVolumeClaim",
    "CustomResourceDefinition",
    "ClusterRole",
    "ClusterRoleBinding",
    "Role",
    "RoleBinding",
    "Service",
    "DaemonSet",
    "Pod",
    "ReplicaSet",
    "Deployment",
    "HorizontalPodAutoscaler",
    "StatefulSet",
    "Job",
    "CronJob",
    "IngressClass",
    "Ingress",
    "APIService",
]

_ORDER_INDEX = {kind: i for i, kind in enumerate(INSTALL_ORDER)}


def sort_manifests(manifests: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Stable sort by install order, then by kind and name."""
    def key(manifest: Dict[str, Any]):
        kind = manifest.get("kind", "")
        name = manifest.get("metadata", {}).get("name", "")
        return (_ORDER_INDEX.get(kind, len(INSTALL_ORDER)), kind, name)

    return sorted(manifests, key=key)


def dump_manifest(manifest: Dict[str, Any]) -> str:
    """Canonical YAML for a single manifest."""
    return yaml.safe_dump(manifest, default_flow_style=False, sort_keys=False)


def render_manifests(
    manifests: List[Dict[str, Any]],
    output_format: str = "yaml",
) -> str:
    """
    Render manifests as one multi-document YAML stream or a JSON list.

    Args:
        manifests: Manifest dicts
        output_format: "yaml" or "json"

    Returns:
        Rendered text
    """
    if output_format == "json":
        return json.dumps(manifests, indent=2) + "\n"
    if output_format != "yaml":
        raise ValueError(f"Unsupported output format: {output_format}")

    # Multi-document YAML
    docs = [dump_manifest(m) for m in manifests]
    return "---\n" + "---\n".join(docs)


def manifest_filename(manifest: Dict[str, Any], output_format: str = "yaml") -> str:
    """File name for a manifest, e.g. deployment-web.yaml."""
    kind = manifest.get("kind", "unknown").lower()
    name = manifest.get("metadata", {}).get("name", "unnamed")
    return f"{kind}-{name}.{output_format}"


def write_manifests(
    manifests: List[Dict[str, Any]],
    output_dir: str,
    output_format: str = "yaml",
) -> List[Path]:
    """
    Write one file per manifest into output_dir.

    Returns:
        Paths written, in manifest order
    """
    out_dir = Path(output_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    written = []
    for manifest in manifests:
        out_file = out_dir / manifest_filename(manifest, output_format)
        if output_format == "json":
            content = json.dumps(manifest, indent=2) + "\n"
        else:
            content = dump_manifest(manifest)
        out_file.write_text(content)
        logger.debug("Wrote %s", out_file)
        written.append(out_file)
    return written
