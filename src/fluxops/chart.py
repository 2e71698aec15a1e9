"""Chart loading.

Builds a :class:`~fluxops.models.ReleaseContext` from a chart directory so
the naming helpers can be evaluated for a release without running Helm.
"""

import copy
from pathlib import Path
from typing import Any

from icecream import ic

from fluxops.exceptions import ManifestError
from fluxops.manifests import load_mapping
from fluxops.models import ReleaseContext


def _coerce(raw: str) -> Any:
    """Convert a ``--set`` value the way Helm does for the common scalar cases."""
    lowered = raw.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    if lowered == "null":
        return None
    try:
        return int(raw)
    except ValueError:
        return raw


def parse_set_values(assignments: list[str]) -> dict[str, Any]:
    """Turn ``key.path=value`` strings into a nested mapping.

    Raises:
        ManifestError: If an assignment has no '=' or an empty key.

    """
    result: dict[str, Any] = {}
    for assignment in assignments:
        key, sep, raw = assignment.partition("=")
        if not sep or not key.strip():
            raise ManifestError(f"Invalid value assignment '{assignment}', expected key=value")

        node = result
        parts = key.strip().split(".")
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = node[part] = {}
            node = child
        node[parts[-1]] = _coerce(raw)
    return result


def merge_values(base: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    """Deep-merge overrides into a copy of base; mappings merge, everything else replaces."""
    merged = copy.deepcopy(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_values(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def load_release_context(
    chart_dir: Path,
    release_name: str,
    overrides: dict[str, Any] | None = None,
) -> ReleaseContext:
    """Load Chart.yaml and values.yaml into a release context.

    Args:
        chart_dir: Directory containing Chart.yaml.
        release_name: Name of the release to evaluate.
        overrides: Values merged on top of values.yaml.

    Returns:
        The release context.

    Raises:
        ManifestError: If Chart.yaml is missing or has no name/version.

    """
    chart_meta = load_mapping(chart_dir / "Chart.yaml")
    values_file = chart_dir / "values.yaml"
    values = load_mapping(values_file) if values_file.exists() else {}

    chart_name = chart_meta.get("name")
    chart_version = chart_meta.get("version")
    if not chart_name or not chart_version:
        raise ManifestError(f"Chart '{chart_dir}' must define both name and version in Chart.yaml")

    ctx = ReleaseContext(
        chart_name=str(chart_name),
        release_name=release_name,
        chart_version=str(chart_version),
        app_version=str(chart_meta.get("appVersion") or ""),
        values=merge_values(values, overrides or {}),
    )
    ic(ctx.chart_name, ctx.chart_version, ctx.app_version)
    return ctx
