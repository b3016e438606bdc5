"""Region-scoped Overpass query construction."""

from __future__ import annotations

from typing import Iterable

from alpr_sync.common.constants import DEFAULT_CAMERA_FILTERS


def _camera_filters(overpass_config: dict) -> list[str]:
    configured = overpass_config.get("camera_filters")
    if not configured:
        return list(DEFAULT_CAMERA_FILTERS)
    values: Iterable[object]
    if isinstance(configured, str):
        values = [configured]
    else:
        values = configured
    filters = [str(item).strip() for item in values if str(item).strip()]
    return filters or list(DEFAULT_CAMERA_FILTERS)


def _quote(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def build_region_query(region: str, overpass_config: dict | None = None) -> str:
    """Overpass QL selecting ALPR camera nodes inside the named admin area."""
    overpass_config = overpass_config or {}
    timeout = int(overpass_config.get("timeout_seconds", 120))
    node_filters = "".join(f"  node(area){flt};\n" for flt in _camera_filters(overpass_config))
    return (
        f"[out:json][timeout:{timeout}];\n"
        "area\n"
        f'  ["name"="{_quote(region.strip())}"]\n'
        '  ["boundary"="administrative"]\n'
        '  ["admin_level"~"4|5"];\n'
        "(\n"
        f"{node_filters}"
        ");\n"
        "out body; >; out skel qt;"
    )
