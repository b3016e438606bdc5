"""Overpass harvest for a single region."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable

from alpr_sync.common.ids import region_slug
from alpr_sync.common.logging import log_event
from alpr_sync.harvest.fetch_client import ResilientFetchClient
from alpr_sync.harvest.query import build_region_query
from alpr_sync.pipeline.dedupe import dedupe_features
from alpr_sync.pipeline.export import write_feature_collection
from alpr_sync.pipeline.normalize import normalize_records


def element_records(elements: Iterable[Any]) -> list[dict]:
    """Raw records for the node elements of an Overpass response."""
    records: list[dict] = []
    for element in elements:
        if not isinstance(element, dict) or element.get("type") != "node":
            continue
        records.append(
            {
                "id": element.get("id"),
                "lat": element.get("lat"),
                "lon": element.get("lon"),
                "tags": element.get("tags") or {},
            }
        )
    return records


def region_output_ref(region: str, output_config: dict) -> str:
    return f"{output_config['region_subdir']}/{region_slug(region)}.json"


def run_overpass_harvest(
    region: str,
    overpass_config: dict,
    output_config: dict,
    out_dir: Path,
    fetch_client: ResilientFetchClient,
    *,
    run_id: str | None = None,
    logger: logging.Logger | None = None,
) -> dict:
    query = build_region_query(region, overpass_config)
    payload = fetch_client.fetch(query)

    records = element_records(payload.get("elements") or [])
    features, rejected = normalize_records(records, region)
    features = dedupe_features(features)

    output_ref = region_output_ref(region, output_config)
    write_feature_collection(out_dir / output_ref, features, output_config["metadata"])

    log_event(
        logger,
        f"{len(features)} features -> {output_ref}",
        run_id=run_id,
        stage="fetch",
        region=region,
        source="overpass",
        event="REGION_WRITTEN",
        status="ok",
        rows_in=len(records),
        rows_out=len(features),
    )
    return {
        "region": region,
        "file": output_ref,
        "count": len(features),
        "rejected": len(rejected),
    }
