"""Configuration loading and validation."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from alpr_sync.common.errors import ConfigError
from alpr_sync.common.fs import read_yaml
from alpr_sync.common.schema import validate_pipeline_config, validate_regions_config


@dataclass(frozen=True)
class ConfigBundle:
    pipeline: dict
    regions: list[str]

    @property
    def overpass(self) -> dict:
        return self.pipeline["overpass"]

    @property
    def output(self) -> dict:
        return self.pipeline["output"]

    @property
    def raw_export(self) -> dict:
        return self.pipeline["raw_export"]


def _deep_merge(base: Any, overlay: Any) -> Any:
    if isinstance(base, dict) and isinstance(overlay, dict):
        merged = dict(base)
        for key, value in overlay.items():
            if key in merged:
                merged[key] = _deep_merge(merged[key], value)
            else:
                merged[key] = value
        return merged
    return overlay


def _load_yaml_with_overlay(path: Path, overlay_path: Path | None) -> dict:
    if not path.exists():
        raise ConfigError(f"Missing config file: {path}")
    base = read_yaml(path)
    if overlay_path is None or not overlay_path.exists():
        return base
    overlay = read_yaml(overlay_path)
    if overlay is None:
        return base
    if not isinstance(overlay, dict):
        raise ConfigError(f"Overlay config must be a mapping: {overlay_path}")
    return _deep_merge(base, overlay)


def load_all_configs(
    config_dir: Path,
    *,
    allow_unknown: bool = False,
    overlay_config_dir: Path | None = None,
) -> ConfigBundle:
    def _overlay(name: str) -> Path | None:
        return (overlay_config_dir / name) if overlay_config_dir is not None else None

    pipeline = validate_pipeline_config(
        _load_yaml_with_overlay(config_dir / "pipeline.yml", _overlay("pipeline.yml")),
        allow_unknown=allow_unknown,
    )
    regions = validate_regions_config(
        _load_yaml_with_overlay(config_dir / "regions.yml", _overlay("regions.yml"))
    )
    return ConfigBundle(pipeline=pipeline, regions=regions)


def resolve_regions(configured: list[str], requested: list[str] | None) -> list[str]:
    """Return the requested subset of configured regions, in request order."""
    if not requested:
        return list(configured)
    unknown = [name for name in requested if name not in configured]
    if unknown:
        raise ConfigError(f"Unknown regions requested: {', '.join(unknown)}")
    out: list[str] = []
    for name in requested:
        if name not in out:
            out.append(name)
    return out
