"""Within-pass deduplication by feature identity."""

from __future__ import annotations

from typing import Iterable

from alpr_sync.common.models import CanonicalFeature


def dedupe_features(features: Iterable[CanonicalFeature]) -> list[CanonicalFeature]:
    """Keep the first feature per id; relative order of survivors is preserved."""
    seen_ids: set[str] = set()
    out: list[CanonicalFeature] = []
    for feature in features:
        if feature.id in seen_ids:
            continue
        seen_ids.add(feature.id)
        out.append(feature)
    return out
