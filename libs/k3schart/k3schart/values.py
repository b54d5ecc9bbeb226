"""
Values layering for k3schart.

Chart defaults, values files and --set expressions are merged in that order.
"""

import copy
import hashlib
import logging
import re
from typing import Any, Dict, List

logger = logging.getLogger(__name__)

INTEGER = re.compile(r"^(0|-?[1-9][0-9]*)$")


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Merge override into base and return a new dict.

    Maps merge recursively. Lists and scalars from override replace the base
    value. An explicit None in override removes the key, matching Helm's
    null semantics for values files.

    Args:
        base: Lower precedence values
        override: Higher precedence values

    Returns:
        Merged values (inputs are not modified)
    """
    result = copy.deepcopy(base)
    for key, value in override.items():
        if value is None:
            result.pop(key, None)
            continue
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = deep_merge(result[key], value)
            continue
        result[key] = copy.deepcopy(value)
    return result


def _split_unescaped(text: str, sep: str) -> List[str]:
    """Split on sep, ignoring escaped separators and separators inside {}."""
    parts = []
    current = []
    depth = 0
    i = 0
    while i < len(text):
        char = text[i]
        if char == "\\" and i + 1 < len(text):
            current.append(text[i:i + 2])
            i += 2
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
        if char == sep and depth == 0:
            parts.append("".join(current))
            current = []
        else:
            current.append(char)
        i += 1
    parts.append("".join(current))
    return parts


def _unescape(text: str) -> str:
    return text.replace("\\,", ",").replace("\\.", ".").replace("\\=", "=")


def _coerce_scalar(raw: str) -> Any:
    """Turn a --set value into a typed scalar (true, 3, null, ...).

    Only true/false/null (any case) and base-10 integers without a leading
    zero are coerced. Everything else, including 010, 1:20, 1.10 and on,
    stays a literal string.
    """
    raw = _unescape(raw)
    lowered = raw.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    if lowered == "null":
        return None
    if INTEGER.match(raw):
        return int(raw)
    return raw


def _coerce_value(raw: str) -> Any:
    if raw.startswith("{") and raw.endswith("}"):
        inner = raw[1:-1]
        if not inner:
            return []
        return [_coerce_scalar(item) for item in _split_unescaped(inner, ",")]
    return _coerce_scalar(raw)


def parse_set_value(expr: str) -> Dict[str, Any]:
    """
    Parse a --set expression into nested values.

    Supports "a.b.c=value", several assignments separated by commas and
    list values written as "{x,y}". Dots, commas and equals signs can be
    escaped with a backslash.

    Args:
        expr: Expression such as "image.tag=1.2.3,replicaCount=3"

    Returns:
        Nested values dict

    Raises:
        ValueError: If an assignment has no "=" or an empty key
    """
    result: Dict[str, Any] = {}
    for assignment in _split_unescaped(expr, ","):
        if not assignment:
            continue
        key_value = _split_unescaped(assignment, "=")
        if len(key_value) < 2:
            raise ValueError(f"Invalid --set expression (missing '='): {assignment}")
        raw_key = key_value[0]
        raw_value = "=".join(key_value[1:])

        keys = [_unescape(k) for k in _split_unescaped(raw_key, ".")]
        if not all(keys):
            raise ValueError(f"Invalid --set key: {raw_key!r}")

        nested: Dict[str, Any] = {}
        cursor = nested
        for key in keys[:-1]:
            cursor[key] = {}
            cursor = cursor[key]
        value = _coerce_value(raw_value)
        # "null" deletes, the same as a null in a values file
        cursor[keys[-1]] = value
        result = _merge_set(result, nested)
    return result


def _merge_set(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Like deep_merge, but keeps None so it can delete in a later merge."""
    result = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = _merge_set(result[key], value)
        else:
            result[key] = value
    return result


def parse_set_values(exprs: List[str]) -> Dict[str, Any]:
    """Parse several --set expressions; later expressions win."""
    result: Dict[str, Any] = {}
    for expr in exprs:
        result = _merge_set(result, parse_set_value(expr))
    logger.debug("Parsed %d --set expressions", len(exprs))
    return result


def sha256_digest(text: str) -> str:
    """Hex sha256 of text, used for checksum annotations."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()
