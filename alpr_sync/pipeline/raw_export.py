"""Raw export transform: unknown-shape JSON/NDJSON dumps to canonical points."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from alpr_sync.common.errors import NoUsableInput, StageError
from alpr_sync.common.fs import first_existing
from alpr_sync.common.logging import log_event
from alpr_sync.pipeline.dedupe import dedupe_features
from alpr_sync.pipeline.export import write_feature_collection
from alpr_sync.pipeline.normalize import normalize_records

ITEM_CONTAINER_KEYS = ("features", "records", "data", "items", "results")
DEFAULT_RAW_METADATA = {
    "source": "raw camera export",
    "license": "unknown",
    "attribution": "",
}


def select_raw_source(candidates: list[Path]) -> Path:
    chosen = first_existing(candidates)
    if chosen is None:
        expected = "\n".join(f" - {path}" for path in candidates)
        raise StageError(f"No raw input found. Expected one of:\n{expected}")
    return chosen


def parse_ndjson(data: str | bytes) -> list[Any]:
    """Values of every line that parses; blank, broken and badly encoded lines are skipped."""
    values: list[Any] = []
    for line in data.splitlines():
        line = line.strip()
        if not line:
            continue
        try:
            # UnicodeDecodeError is a ValueError
            values.append(json.loads(line))
        except ValueError:
            continue
    return values


def load_raw_document(path: Path) -> Any:
    data = path.read_bytes()
    try:
        return json.loads(data)
    except ValueError:
        pass
    values = parse_ndjson(data)
    if not values and data.strip():
        raise NoUsableInput(f"{path} is neither JSON nor NDJSON; no line could be parsed")
    return values


def extract_items(document: Any) -> list[Any] | None:
    """The record array of a bare list or of the first conventional container key.

    Returns None when the document has no recognisable record array.
    """
    if isinstance(document, list):
        return document
    if not isinstance(document, dict):
        return None
    for key in ITEM_CONTAINER_KEYS:
        value = document.get(key)
        if value is not None:
            return value if isinstance(value, list) else None
    return None


def run_raw_export(
    raw_config: dict,
    work_dir: Path,
    *,
    run_id: str | None = None,
    logger: logging.Logger | None = None,
    generated_at: str | None = None,
) -> dict:
    candidates = [work_dir / candidate for candidate in raw_config["candidates"]]
    source_path = select_raw_source(candidates)
    label = raw_config["label"]

    document = load_raw_document(source_path)
    items = extract_items(document)
    if items is None:
        keys = sorted(document) if isinstance(document, dict) else type(document).__name__
        raise NoUsableInput(f"{source_path} has no record array; top level is {keys}")
    features, rejected = normalize_records(items, label)
    features = dedupe_features(features)

    if items and not features:
        raise NoUsableInput(
            f"{source_path} produced 0 features from {len(items)} raw records; format not recognised"
        )

    out_path = work_dir / raw_config["output"]
    write_feature_collection(
        out_path,
        features,
        raw_config.get("metadata") or DEFAULT_RAW_METADATA,
        generated_at=generated_at,
    )

    rejected_by_code: dict[str, int] = {}
    for rejection in rejected:
        rejected_by_code[rejection.error_code] = rejected_by_code.get(rejection.error_code, 0) + 1

    log_event(
        logger,
        f"wrote {out_path} with {len(features)} points from {len(items)} raw records",
        run_id=run_id,
        stage="transform",
        source=str(source_path),
        event="TRANSFORM_DONE",
        status="ok",
        rows_in=len(items),
        rows_out=len(features),
    )
    return {
        "source": str(source_path),
        "output": str(out_path),
        "rows_in": len(items),
        "rows_out": len(features),
        "rejected": dict(sorted(rejected_by_code.items())),
    }
