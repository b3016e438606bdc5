"""GeoJSON feature collection export."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Mapping

from alpr_sync.common.fs import write_json
from alpr_sync.common.models import CanonicalFeature
from alpr_sync.common.time_utils import utc_timestamp_iso

META_KEYS = ("source", "license", "attribution")


def build_feature_collection(
    features: Iterable[CanonicalFeature],
    metadata: Mapping[str, str],
    *,
    generated_at: str | None = None,
) -> dict:
    meta = {"generated_at": generated_at or utc_timestamp_iso()}
    for key in META_KEYS:
        meta[key] = metadata.get(key)
    return {
        "type": "FeatureCollection",
        "features": [feature.to_geojson() for feature in features],
        "meta": meta,
    }


def write_feature_collection(
    path: Path,
    features: list[CanonicalFeature],
    metadata: Mapping[str, str],
    *,
    generated_at: str | None = None,
) -> Path:
    write_json(path, build_feature_collection(features, metadata, generated_at=generated_at), compact=True)
    return path
