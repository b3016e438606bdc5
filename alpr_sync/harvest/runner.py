"""Region-by-region harvest orchestration with fail-soft semantics."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Callable

from alpr_sync.common.logging import log_event
from alpr_sync.harvest.fetch_client import ResilientFetchClient
from alpr_sync.harvest.overpass_harvest import run_overpass_harvest
from alpr_sync.pipeline.index import RunIndex


def run_regions(
    regions: list[str],
    overpass_config: dict,
    output_config: dict,
    out_dir: Path,
    fetch_client: ResilientFetchClient,
    *,
    run_id: str | None = None,
    logger: logging.Logger | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> RunIndex:
    """Harvest regions strictly one at a time, in the given order.

    A failing region is recorded in the index and never stops the run. The
    politeness delay follows every region whatever its outcome.
    """
    index = RunIndex(run_id=run_id)
    delay = float(overpass_config["politeness_delay_seconds"])

    for region in regions:
        log_event(logger, f"fetching {region}", run_id=run_id, stage="fetch", region=region, event="REGION_START")
        started = time.monotonic()
        try:
            result = run_overpass_harvest(
                region,
                overpass_config,
                output_config,
                out_dir,
                fetch_client,
                run_id=run_id,
                logger=logger,
            )
            index.record_success(region, result["count"], result["file"])
        except Exception as exc:
            index.record_failure(region, str(exc) or type(exc).__name__)
            log_event(
                logger,
                f"skipping {region}: {exc}",
                level=logging.WARNING,
                run_id=run_id,
                stage="fetch",
                region=region,
                event="REGION_FAIL",
                status="error",
                duration_ms=int((time.monotonic() - started) * 1000),
                error_code=getattr(exc, "error_code", "UNEXPECTED_ERROR"),
            )
        finally:
            sleep(delay)

    index_path = out_dir / output_config["index_filename"]
    index.write(index_path)
    log_event(
        logger,
        f"wrote index -> {index_path}",
        run_id=run_id,
        stage="fetch",
        event="INDEX_WRITTEN",
        status="error" if index.failed else "ok",
        rows_out=len(index.results),
    )
    return index
