from __future__ import annotations

import shutil
from pathlib import Path

import pytest

from alpr_sync import cli
from alpr_sync.cli import parse_args, run_command
from alpr_sync.common.constants import EXIT_HARD_FAIL, EXIT_PARTIAL, EXIT_SUCCESS
from alpr_sync.common.errors import EndpointFailure
from alpr_sync.common.fs import read_json

FIXTURE = Path("tests/fixtures/raw/mixed_export.ndjson")


class FakeHttpClient:
    """Stands in for HttpClient; fails every query for regions in ``down``."""

    down: set[str] = set()

    def __init__(self, *args, **kwargs):
        pass

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return None

    def post_query(self, url: str, query: str) -> dict:
        for region in self.down:
            if f'"name"="{region}"' in query:
                raise EndpointFailure(f"HTTP 503 @ {url}")
        return {"elements": [{"type": "node", "id": 7, "lat": 44.0, "lon": -72.5, "tags": {}}]}


def _overlay(tmp_path: Path) -> Path:
    overlay = tmp_path / "overlay"
    overlay.mkdir()
    (overlay / "pipeline.yml").write_text(
        "overpass:\n  backoff_base_seconds: 0\n  politeness_delay_seconds: 0\n",
        encoding="utf-8",
    )
    return overlay


def _args(tmp_path: Path, command: str, *extra: str):
    return parse_args(
        [
            command,
            "--config-dir",
            "config",
            "--overlay-config-dir",
            str(_overlay(tmp_path)),
            "--work-dir",
            str(tmp_path / "work"),
            "--run-id",
            "run-test",
            *extra,
        ]
    )


@pytest.mark.integration
def test_cli_transform_generates_collection(tmp_path: Path):
    raw_dir = tmp_path / "work" / "data"
    raw_dir.mkdir(parents=True)
    shutil.copy(FIXTURE, raw_dir / "flock_raw.json")

    exit_code = run_command(_args(tmp_path, "transform"))

    assert exit_code == EXIT_SUCCESS
    collection = read_json(tmp_path / "work" / "data" / "cameras.geojson")
    ids = [feature["properties"]["id"] for feature in collection["features"]]
    assert ids == ["atl-1", "sd-7", "cam_000002", "chi-2"]
    assert collection["features"][2]["geometry"]["coordinates"] == [-122.33, 47.61]
    assert collection["meta"]["source"] == "DeFlock raw export"
    assert (tmp_path / "work" / "run_meta" / "run-test.log.jsonl").exists()


@pytest.mark.integration
def test_cli_transform_without_raw_input_is_hard_fail(tmp_path: Path):
    assert run_command(_args(tmp_path, "transform")) == EXIT_HARD_FAIL


@pytest.mark.integration
def test_cli_transform_with_unrecognised_records_is_hard_fail(tmp_path: Path):
    raw_dir = tmp_path / "work" / "data"
    raw_dir.mkdir(parents=True)
    (raw_dir / "raw_deflock.json").write_text('{"items": [{"name": "a"}, {"name": "b"}]}', encoding="utf-8")

    assert run_command(_args(tmp_path, "transform")) == EXIT_HARD_FAIL
    assert not (raw_dir / "cameras.geojson").exists()


@pytest.mark.integration
def test_cli_fetch_records_partial_failure(monkeypatch, tmp_path: Path):
    monkeypatch.setattr(cli, "HttpClient", FakeHttpClient)
    monkeypatch.setattr(FakeHttpClient, "down", {"Vermont"})

    exit_code = run_command(_args(tmp_path, "fetch", "--region", "Vermont", "--region", "New Hampshire"))

    assert exit_code == EXIT_PARTIAL
    ledger = read_json(tmp_path / "work" / "public" / "index.json")
    assert [(e["region"], e["status"]) for e in ledger["regions"]] == [
        ("Vermont", "failed"),
        ("New Hampshire", "ok"),
    ]
    assert ledger["regions"][0]["error"] == "HTTP 503 @ https://overpass.kumi.systems/api/interpreter"
    assert (tmp_path / "work" / "public" / "usa" / "New_Hampshire.json").exists()


@pytest.mark.integration
def test_cli_fetch_strict_turns_partial_into_hard_fail(monkeypatch, tmp_path: Path):
    monkeypatch.setattr(cli, "HttpClient", FakeHttpClient)
    monkeypatch.setattr(FakeHttpClient, "down", {"Maine"})

    assert run_command(_args(tmp_path, "fetch", "--region", "Maine", "--strict")) == EXIT_HARD_FAIL


@pytest.mark.integration
def test_cli_all_without_raw_input_still_succeeds(monkeypatch, tmp_path: Path):
    monkeypatch.setattr(cli, "HttpClient", FakeHttpClient)
    monkeypatch.setattr(FakeHttpClient, "down", set())

    assert run_command(_args(tmp_path, "all", "--region", "Maine")) == EXIT_SUCCESS


@pytest.mark.integration
def test_cli_unknown_region_is_hard_fail(tmp_path: Path):
    assert run_command(_args(tmp_path, "fetch", "--region", "Atlantis")) == EXIT_HARD_FAIL
