"""CLI entrypoint for the ALPR camera feed pipeline."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from alpr_sync.common.config_loader import ConfigBundle, load_all_configs, resolve_regions
from alpr_sync.common.constants import COMMANDS, EXIT_HARD_FAIL, EXIT_PARTIAL, EXIT_SUCCESS
from alpr_sync.common.errors import PipelineError, StageError
from alpr_sync.common.http import HttpClient, TimeoutConfig
from alpr_sync.common.ids import generate_run_id
from alpr_sync.common.logging import build_logger, log_event
from alpr_sync.harvest.fetch_client import FetchPolicy, ResilientFetchClient
from alpr_sync.harvest.runner import run_regions
from alpr_sync.pipeline.raw_export import run_raw_export


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("command", choices=[*COMMANDS, "all"])
    parser.add_argument("--region", action="append", default=None, help="Repeatable; defaults to every configured region")
    parser.add_argument("--run-id", default=None)
    parser.add_argument("--config-dir", default="./config")
    parser.add_argument("--overlay-config-dir", default=None)
    parser.add_argument("--work-dir", default=".")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--strict", action="store_true")
    return parser.parse_args(argv)


def _timeout(overpass_config: dict) -> TimeoutConfig:
    return TimeoutConfig(
        connect=float(overpass_config.get("connect_timeout_seconds", 20)),
        read=float(overpass_config.get("read_timeout_seconds", overpass_config["timeout_seconds"] + 60)),
    )


def execute_fetch(bundle: ConfigBundle, args: argparse.Namespace, work_dir: Path, run_id: str, logger) -> int:
    regions = resolve_regions(bundle.regions, args.region)
    out_dir = work_dir / bundle.output["dir"]

    with HttpClient(timeout=_timeout(bundle.overpass)) as http_client:
        fetch_client = ResilientFetchClient(
            FetchPolicy.from_config(bundle.overpass),
            http_client.post_query,
            logger=logger,
        )
        index = run_regions(
            regions,
            bundle.overpass,
            bundle.output,
            out_dir,
            fetch_client,
            run_id=run_id,
            logger=logger,
        )

    if index.failed:
        return EXIT_HARD_FAIL if args.strict else EXIT_PARTIAL
    return EXIT_SUCCESS


def execute_transform(bundle: ConfigBundle, work_dir: Path, run_id: str, logger) -> int:
    run_raw_export(bundle.raw_export, work_dir, run_id=run_id, logger=logger)
    return EXIT_SUCCESS


def run_command(args: argparse.Namespace) -> int:
    run_id = args.run_id or generate_run_id()
    work_dir = Path(args.work_dir)
    config_dir = Path(args.config_dir)
    overlay_config_dir = Path(args.overlay_config_dir) if args.overlay_config_dir else None

    logger = build_logger(run_id, work_dir=work_dir, level=args.log_level)
    try:
        bundle = load_all_configs(config_dir, overlay_config_dir=overlay_config_dir)
    except PipelineError as exc:
        log_event(logger, str(exc), run_id=run_id, event="CONFIG_FAIL", status="error", error_code=exc.error_code)
        return EXIT_HARD_FAIL

    exit_code = EXIT_SUCCESS

    if args.command in ("fetch", "all"):
        log_event(logger, "stage start", run_id=run_id, stage="fetch", event="STAGE_START", status="ok")
        try:
            exit_code = max(exit_code, execute_fetch(bundle, args, work_dir, run_id, logger))
        except PipelineError as exc:
            log_event(logger, str(exc), run_id=run_id, stage="fetch", event="STAGE_FAIL", status="error", error_code=exc.error_code)
            return EXIT_HARD_FAIL
        log_event(logger, "stage end", run_id=run_id, stage="fetch", event="STAGE_END", status="ok")

    if args.command in ("transform", "all"):
        log_event(logger, "stage start", run_id=run_id, stage="transform", event="STAGE_START", status="ok")
        try:
            exit_code = max(exit_code, execute_transform(bundle, work_dir, run_id, logger))
        except StageError as exc:
            log_event(logger, str(exc), run_id=run_id, stage="transform", event="STAGE_FAIL", status="error", error_code=exc.error_code)
            if args.command == "transform" or args.strict:
                return EXIT_HARD_FAIL
            return exit_code
        except PipelineError as exc:
            log_event(logger, str(exc), run_id=run_id, stage="transform", event="STAGE_FAIL", status="error", error_code=exc.error_code)
            return EXIT_HARD_FAIL
        log_event(logger, "stage end", run_id=run_id, stage="transform", event="STAGE_END", status="ok")

    return exit_code


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv if argv is not None else sys.argv[1:])
    try:
        return run_command(args)
    except PipelineError:
        return EXIT_HARD_FAIL
    except Exception:
        return EXIT_HARD_FAIL


if __name__ == "__main__":
    raise SystemExit(main())
