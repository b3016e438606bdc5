"""Run and feature identifier helpers."""

from __future__ import annotations

from datetime import datetime, timezone


def generate_run_id() -> str:
    now = datetime.now(tz=timezone.utc)
    return now.strftime("run-%Y%m%dT%H%M%S%fZ")


def synthetic_feature_id(index: int) -> str:
    # Stable for a given position within one input document only.
    return f"cam_{index:06d}"


def region_slug(region: str) -> str:
    return region.strip().replace(" ", "_")
