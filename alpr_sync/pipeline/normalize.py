"""Schema-agnostic conversion of raw camera records into canonical features.

Every resolution path below is a side-effect-free strategy that returns a
value or ``None``; strategies are tried in a fixed order and the first hit
wins. Alias order matters: sources rely on ``lng`` winning over ``lon`` and so
on, so the tuples here must not be reordered.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping, Sequence
from typing import Any, Callable, Optional

from alpr_sync.common.constants import DEFAULT_KIND
from alpr_sync.common.errors import MalformedRecord, UnresolvableGeometry
from alpr_sync.common.ids import synthetic_feature_id
from alpr_sync.common.models import CanonicalFeature, Rejected

LNG_ALIASES = ("lng", "lon", "long", "longitude", "x")
LAT_ALIASES = ("lat", "latitude", "y")
CONTAINER_ALIASES = ("coordinates", "coord", "location", "loc", "pos")
DIRECTION_ALIASES = (
    "dir",
    "direction",
    "bearing",
    "heading",
    "azimuth",
    "angle",
    "yaw",
    "camera:direction",
    "surveillance:direction",
)
ID_ALIASES = ("id", "camera_id", "cam_id")
KIND_ALIASES = ("type", "kind", "camera:type", "surveillance:type")
TIMESTAMP_ALIASES = ("last_seen", "updated_at", "timestamp", "seen_at")

_NUMBER_RE = re.compile(r"-?\d+(?:\.\d+)?")

Pair = tuple[float, float]
CoordinateStrategy = Callable[[Mapping[str, Any]], Optional[Pair]]


def to_number(value: Any) -> float | None:
    """Finite float from an int, float or numeric string; otherwise None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if not math.isfinite(number):
        return None
    return number


def properties_of(record: Mapping[str, Any]) -> Mapping[str, Any]:
    for key in ("properties", "tags"):
        container = record.get(key)
        if isinstance(container, Mapping):
            return container
    return record


def _scopes(record: Mapping[str, Any]) -> list[Mapping[str, Any]]:
    props = properties_of(record)
    if props is record:
        return [record]
    return [props, record]


def _first_number(mapping: Mapping[str, Any], aliases: Sequence[str]) -> float | None:
    for key in aliases:
        number = to_number(mapping.get(key))
        if number is not None:
            return number
    return None


def _first_present(scopes: Sequence[Mapping[str, Any]], aliases: Sequence[str]) -> Any:
    for scope in scopes:
        for key in aliases:
            value = scope.get(key)
            if value not in (None, ""):
                return value
    return None


def _pair_from_sequence(values: Any) -> Pair | None:
    if isinstance(values, (str, bytes, Mapping)) or not isinstance(values, Sequence):
        return None
    if len(values) < 2:
        return None
    x, y = to_number(values[0]), to_number(values[1])
    if x is None or y is None:
        return None
    return x, y


def _pair_from_aliases(mapping: Mapping[str, Any]) -> Pair | None:
    x = _first_number(mapping, LNG_ALIASES)
    y = _first_number(mapping, LAT_ALIASES)
    if x is None or y is None:
        return None
    return x, y


def _pair_from_text(text: str) -> Pair | None:
    matches = _NUMBER_RE.findall(text)
    if len(matches) < 2:
        return None
    return float(matches[0]), float(matches[1])


def coords_from_geometry(record: Mapping[str, Any]) -> Pair | None:
    geometry = record.get("geometry")
    if not isinstance(geometry, Mapping) or geometry.get("type") != "Point":
        return None
    return _pair_from_sequence(geometry.get("coordinates"))


def coords_from_flat_fields(record: Mapping[str, Any]) -> Pair | None:
    for scope in _scopes(record):
        pair = _pair_from_aliases(scope)
        if pair is not None:
            return pair
    return None


def coords_from_container(record: Mapping[str, Any]) -> Pair | None:
    for scope in _scopes(record):
        container = next(
            (scope[key] for key in CONTAINER_ALIASES if scope.get(key) is not None),
            None,
        )
        if container is None:
            continue
        if isinstance(container, str):
            pair = _pair_from_text(container)
        elif isinstance(container, Mapping):
            pair = _pair_from_aliases(container)
        else:
            pair = _pair_from_sequence(container)
        if pair is not None:
            return pair
    return None


COORDINATE_STRATEGIES: tuple[CoordinateStrategy, ...] = (
    coords_from_geometry,
    coords_from_flat_fields,
    coords_from_container,
)


def correct_and_validate(x: float, y: float) -> Pair | None:
    """Undo an obvious lat/lng transposition, then bounds-check as (lng, lat).

    Pairs where both values fit in [-90, 90] are ambiguous and left as given.
    """
    if abs(x) <= 90 and abs(y) > 90:
        x, y = y, x
    if abs(x) <= 180 and abs(y) <= 90:
        return x, y
    return None


def resolve_direction(record: Mapping[str, Any]) -> float:
    """Bearing in [0, 360) from the first numeric alias; 0 (north) if none."""
    value = None
    for scope in _scopes(record):
        value = _first_number(scope, DIRECTION_ALIASES)
        if value is not None:
            break
    if value is None:
        return 0.0
    normalised = ((value % 360) + 360) % 360
    # -1e-20 % 360 rounds to 360.0
    return 0.0 if normalised >= 360 else normalised


def resolve_id(record: Mapping[str, Any], index: int) -> str:
    """First string or numeric id alias; mappings, lists and booleans are skipped."""
    for scope in _scopes(record):
        for key in ID_ALIASES:
            value = scope.get(key)
            if isinstance(value, bool):
                continue
            if isinstance(value, str) and value.strip():
                return value
            if isinstance(value, (int, float)):
                return str(value)
    return synthetic_feature_id(index)


def resolve_kind(record: Mapping[str, Any]) -> str:
    for scope in _scopes(record):
        for key in KIND_ALIASES:
            value = scope.get(key)
            if value in (None, ""):
                continue
            # GeoJSON envelope type, not a camera kind
            if scope is record and key == "type" and value == "Feature":
                continue
            return str(value)
    return DEFAULT_KIND


def resolve_timestamp(record: Mapping[str, Any]) -> str:
    value = _first_present(_scopes(record), TIMESTAMP_ALIASES)
    return "" if value is None else str(value)


def resolve_tags(record: Mapping[str, Any]) -> dict[str, Any]:
    for scope in _scopes(record):
        tags = scope.get("tags")
        if isinstance(tags, Mapping):
            return dict(tags)
    props = record.get("properties")
    if isinstance(props, Mapping):
        return dict(props)
    return {}


def _normalize(record: Any, region: str, index: int) -> CanonicalFeature:
    if not isinstance(record, Mapping):
        raise MalformedRecord(f"record {index} is {type(record).__name__}, not an object")

    pair = None
    for strategy in COORDINATE_STRATEGIES:
        pair = strategy(record)
        if pair is not None:
            break
    if pair is None:
        raise UnresolvableGeometry(f"record {index} has no coordinate pair")

    corrected = correct_and_validate(*pair)
    if corrected is None:
        raise UnresolvableGeometry(f"record {index} coordinates out of range: {pair}")
    lng, lat = corrected

    return CanonicalFeature(
        id=resolve_id(record, index),
        lng=lng,
        lat=lat,
        direction=resolve_direction(record),
        kind=resolve_kind(record),
        timestamp=resolve_timestamp(record),
        region=region,
        tags=resolve_tags(record),
    )


def normalize_record(record: Any, region: str, index: int) -> CanonicalFeature | Rejected:
    """Canonical feature for one raw record, or an explicit rejection."""
    try:
        return _normalize(record, region, index)
    except (MalformedRecord, UnresolvableGeometry) as exc:
        return Rejected(error_code=exc.error_code, message=str(exc))


def normalize_records(records: Sequence[Any], region: str) -> tuple[list[CanonicalFeature], list[Rejected]]:
    features: list[CanonicalFeature] = []
    rejected: list[Rejected] = []
    for index, record in enumerate(records):
        outcome = normalize_record(record, region, index)
        if isinstance(outcome, Rejected):
            rejected.append(outcome)
        else:
            features.append(outcome)
    return features, rejected
