"""
Chart loading and values schema validation for k3schart.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

import jsonschema
import yaml

from .types import ChartMetadata, ReleaseConfig
from .values import deep_merge, parse_set_values

logger = logging.getLogger(__name__)


def get_chart_dir() -> Path:
    """Get path to the packaged chart directory."""
    return Path(__file__).parent / "chart"


def _load_yaml_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"{path.name} not found at {path}")

    with open(path) as f:
        data = yaml.safe_load(f)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a YAML mapping, got {type(data).__name__}")
    return data


def load_chart_metadata(chart_dir: Optional[Path] = None) -> ChartMetadata:
    """Load Chart.yaml."""
    chart_dir = chart_dir or get_chart_dir()
    return ChartMetadata.from_dict(_load_yaml_file(chart_dir / "Chart.yaml"))


def load_default_values(chart_dir: Optional[Path] = None) -> Dict[str, Any]:
    """Load the chart's default values.yaml."""
    chart_dir = chart_dir or get_chart_dir()
    return _load_yaml_file(chart_dir / "values.yaml")


def load_values_schema(chart_dir: Optional[Path] = None) -> Dict[str, Any]:
    """Load the JSON schema for values."""
    chart_dir = chart_dir or get_chart_dir()
    schema_path = chart_dir / "values.schema.json"
    with open(schema_path) as f:
        return json.load(f)


def _check_semantics(data: Dict[str, Any]) -> List[str]:
    """Cross-field rules that JSON schema cannot express."""
    errors = []

    autoscaling = data.get("autoscaling") or {}
    if autoscaling.get("enabled"):
        min_replicas = autoscaling.get("minReplicas", 1)
        max_replicas = autoscaling.get("maxReplicas", 10)
        if min_replicas > max_replicas:
            errors.append(
                f"autoscaling: minReplicas ({min_replicas}) must not exceed "
                f"maxReplicas ({max_replicas})"
            )
        has_metrics = (
            autoscaling.get("targetCPUUtilizationPercentage")
            or autoscaling.get("targetMemoryUtilizationPercentage")
            or autoscaling.get("metrics")
        )
        if not has_metrics:
            errors.append("autoscaling: enabled but no target utilization or metrics configured")

    pdb = data.get("podDisruptionBudget") or {}
    if pdb.get("enabled"):
        min_available = pdb.get("minAvailable")
        max_unavailable = pdb.get("maxUnavailable")
        if min_available is None and max_unavailable is None:
            errors.append("podDisruptionBudget: set one of minAvailable or maxUnavailable")
        elif min_available is not None and max_unavailable is not None:
            errors.append(
                "podDisruptionBudget: minAvailable and maxUnavailable are mutually exclusive"
            )

    ingress = data.get("ingress") or {}
    if ingress.get("enabled") and not ingress.get("hosts"):
        errors.append("ingress: enabled but no hosts configured")

    return errors


def validate_values(
    data: Dict[str, Any],
    schema: Optional[Dict[str, Any]] = None,
) -> List[str]:
    """
    Validate values against the chart's JSON schema.

    Returns list of validation errors (empty if valid).
    """
    if schema is None:
        schema = load_values_schema()

    validator = jsonschema.Draft7Validator(schema)
    errors = []
    found = sorted(
        validator.iter_errors(data),
        key=lambda e: [str(p) for p in e.absolute_path],
    )
    for error in found:
        path = ".".join(str(p) for p in error.absolute_path)
        errors.append(f"{path}: {error.message}" if path else error.message)

    # Only run semantic checks on structurally valid values
    if not errors:
        errors.extend(_check_semantics(data))
    return errors


def load_values(
    values_files: Sequence[str] = (),
    set_values: Sequence[str] = (),
    validate: bool = True,
    chart_dir: Optional[Path] = None,
) -> Dict[str, Any]:
    """
    Merge chart defaults, values files and --set expressions.

    Args:
        values_files: Paths to values files, lowest precedence first
        set_values: --set expressions, applied after all files
        validate: Whether to validate the merged values
        chart_dir: Chart directory (default: packaged chart)

    Returns:
        Merged values dict

    Raises:
        FileNotFoundError: If a values file is not found
        ValueError: If a --set expression is malformed or validation fails
    """
    values = load_default_values(chart_dir)

    for path in values_files:
        logger.debug("Merging values file %s", path)
        values = deep_merge(values, _load_yaml_file(Path(path)))

    if set_values:
        values = deep_merge(values, parse_set_values(list(set_values)))

    if validate:
        errors = validate_values(values, load_values_schema(chart_dir))
        if errors:
            raise ValueError("values validation failed:\n" + "\n".join(errors))

    return values


def load_release(
    release_name: str,
    namespace: str = "default",
    values_files: Sequence[str] = (),
    set_values: Sequence[str] = (),
    validate: bool = True,
    chart_dir: Optional[Path] = None,
) -> Tuple[ChartMetadata, ReleaseConfig]:
    """
    Load chart metadata and the release configuration.

    Args:
        release_name: Helm-style release name
        namespace: Target namespace
        values_files: Values files, lowest precedence first
        set_values: --set expressions
        validate: Whether to validate the merged values
        chart_dir: Chart directory (default: packaged chart)

    Returns:
        (ChartMetadata, ReleaseConfig)
    """
    chart = load_chart_metadata(chart_dir)
    values = load_values(values_files, set_values, validate=validate, chart_dir=chart_dir)
    release = ReleaseConfig.from_dict(release_name, values, namespace=namespace)
    logger.debug("Loaded release %s for chart %s-%s", release_name, chart.name, chart.version)
    return chart, release
