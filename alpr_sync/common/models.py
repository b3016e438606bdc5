"""Data models used across the pipeline."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from types import MappingProxyType
from typing import Any, Mapping


@dataclass(frozen=True)
class CanonicalFeature:
    id: str
    lng: float
    lat: float
    direction: float
    kind: str
    timestamp: str
    region: str
    tags: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Read-only view so the feature cannot be mutated through its tags.
        object.__setattr__(self, "tags", MappingProxyType(dict(self.tags)))

    def to_geojson(self) -> dict[str, Any]:
        return {
            "type": "Feature",
            "geometry": {"type": "Point", "coordinates": [self.lng, self.lat]},
            "properties": {
                "id": self.id,
                "region": self.region,
                "type": self.kind,
                "dir": self.direction,
                "last_seen": self.timestamp,
                "tags": dict(self.tags),
            },
        }


@dataclass(frozen=True)
class Rejected:
    error_code: str
    message: str


@dataclass(frozen=True)
class FetchOutcome:
    endpoint: str
    attempt: int
    ok: bool
    cause: Exception | None = None


@dataclass(frozen=True)
class RegionResult:
    region: str
    status: str
    feature_count: int | None
    error: str | None
    file: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        return {
            "region": payload["region"],
            "file": payload["file"],
            "count": payload["feature_count"],
            "status": payload["status"],
            "error": payload["error"],
        }
