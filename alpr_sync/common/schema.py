"""Minimal strict schemas for YAML config validation."""

from __future__ import annotations

from alpr_sync.common.errors import ConfigError


def _assert_required_keys(obj: dict, required: set[str], ctx: str) -> None:
    if not isinstance(obj, dict):
        raise ConfigError(f"{ctx} must be a mapping")
    missing = required - set(obj)
    if missing:
        missing_str = ", ".join(sorted(missing))
        raise ConfigError(f"Missing keys in {ctx}: {missing_str}")


def _assert_no_unknown_keys(obj: dict, known: set[str], ctx: str, allow_unknown: bool) -> None:
    if allow_unknown:
        return
    unknown = set(obj) - known
    if unknown:
        unknown_str = ", ".join(sorted(unknown))
        raise ConfigError(f"Unknown keys in {ctx}: {unknown_str}")


def _assert_string_list(value, ctx: str) -> None:
    if not isinstance(value, list) or not value:
        raise ConfigError(f"{ctx} must be a non-empty list")
    for idx, item in enumerate(value):
        if not isinstance(item, str) or not item.strip():
            raise ConfigError(f"{ctx}[{idx}] must be a non-empty string")


def _assert_positive_number(value, ctx: str, *, allow_zero: bool = False) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"{ctx} must be a number")
    if value < 0 or (value == 0 and not allow_zero):
        raise ConfigError(f"{ctx} must be {'non-negative' if allow_zero else 'positive'}")


def validate_pipeline_config(cfg: dict, *, allow_unknown: bool = False) -> dict:
    top_required = {"overpass", "output", "raw_export"}
    _assert_required_keys(cfg, top_required, "pipeline config")
    _assert_no_unknown_keys(cfg, top_required, "pipeline config", allow_unknown)

    overpass = cfg["overpass"]
    overpass_required = {
        "endpoints",
        "attempts_per_endpoint",
        "backoff_base_seconds",
        "timeout_seconds",
        "politeness_delay_seconds",
    }
    overpass_known = overpass_required | {"camera_filters", "connect_timeout_seconds", "read_timeout_seconds"}
    _assert_required_keys(overpass, overpass_required, "overpass")
    _assert_no_unknown_keys(overpass, overpass_known, "overpass", allow_unknown)
    _assert_string_list(overpass["endpoints"], "overpass.endpoints")
    attempts = overpass["attempts_per_endpoint"]
    if isinstance(attempts, bool) or not isinstance(attempts, int) or attempts < 1:
        raise ConfigError("overpass.attempts_per_endpoint must be an integer >= 1")
    _assert_positive_number(overpass["backoff_base_seconds"], "overpass.backoff_base_seconds", allow_zero=True)
    _assert_positive_number(overpass["timeout_seconds"], "overpass.timeout_seconds")
    _assert_positive_number(
        overpass["politeness_delay_seconds"], "overpass.politeness_delay_seconds", allow_zero=True
    )
    if "camera_filters" in overpass:
        _assert_string_list(overpass["camera_filters"], "overpass.camera_filters")

    _assert_required_keys(cfg["output"], {"dir", "region_subdir", "index_filename", "metadata"}, "output")
    _assert_required_keys(
        cfg["output"]["metadata"], {"source", "license", "attribution"}, "output.metadata"
    )

    raw_export = cfg["raw_export"]
    _assert_required_keys(raw_export, {"candidates", "output", "label"}, "raw_export")
    _assert_no_unknown_keys(raw_export, {"candidates", "output", "label", "metadata"}, "raw_export", allow_unknown)
    _assert_string_list(raw_export["candidates"], "raw_export.candidates")
    if "metadata" in raw_export:
        _assert_required_keys(
            raw_export["metadata"], {"source", "license", "attribution"}, "raw_export.metadata"
        )

    return cfg


def validate_regions_config(cfg: dict) -> list[str]:
    _assert_required_keys(cfg, {"regions"}, "regions config")
    regions = cfg["regions"]
    _assert_string_list(regions, "regions")

    names = [name.strip() for name in regions]
    dupes = {name for name in names if names.count(name) > 1}
    if dupes:
        raise ConfigError(f"Duplicate regions: {', '.join(sorted(dupes))}")
    return names
