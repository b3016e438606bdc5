from __future__ import annotations

import json
from pathlib import Path

import pytest

from alpr_sync.common.fs import read_json
from alpr_sync.harvest.fetch_client import FetchPolicy, ResilientFetchClient
from alpr_sync.harvest.overpass_harvest import element_records, run_overpass_harvest

OVERPASS_CONFIG = {
    "endpoints": ["https://a.test/api/interpreter", "https://b.test/api/interpreter"],
    "attempts_per_endpoint": 2,
    "backoff_base_seconds": 1.5,
    "timeout_seconds": 120,
    "politeness_delay_seconds": 0,
}
OUTPUT_CONFIG = {
    "dir": "public",
    "region_subdir": "usa",
    "index_filename": "index.json",
    "metadata": {
        "source": "OpenStreetMap (via Overpass)",
        "license": "ODbL 1.0",
        "attribution": "© OpenStreetMap contributors",
    },
}


def _payload() -> dict:
    return json.loads(Path("tests/fixtures/harvest/overpass_payload.json").read_text(encoding="utf-8"))


class FakeTransport:
    def __init__(self, payload: dict):
        self.payload = payload
        self.queries: list[str] = []

    def __call__(self, endpoint: str, query: str) -> dict:
        self.queries.append(query)
        return self.payload


def _client(payload: dict) -> tuple[ResilientFetchClient, FakeTransport]:
    transport = FakeTransport(payload)
    client = ResilientFetchClient(FetchPolicy.from_config(OVERPASS_CONFIG), transport, sleep=lambda _s: None)
    return client, transport


def test_element_records_keep_only_nodes():
    records = element_records(_payload()["elements"])
    assert [record["id"] for record in records] == [11001, 11002, 11001, 11003]
    assert records[0]["tags"]["brand"] == "Flock Safety"


@pytest.mark.integration
def test_overpass_harvest_writes_region_collection(tmp_path: Path):
    client, transport = _client(_payload())

    result = run_overpass_harvest("Texas", OVERPASS_CONFIG, OUTPUT_CONFIG, tmp_path, client)

    assert result == {"region": "Texas", "file": "usa/Texas.json", "count": 2, "rejected": 1}
    assert '["name"="Texas"]' in transport.queries[0]

    collection = read_json(tmp_path / "usa" / "Texas.json")
    assert collection["type"] == "FeatureCollection"
    assert collection["meta"]["license"] == "ODbL 1.0"
    assert collection["meta"]["generated_at"]

    first, second = collection["features"]
    assert first["geometry"] == {"type": "Point", "coordinates": [-97.7431, 30.2672]}
    assert first["properties"]["id"] == "11001"
    assert first["properties"]["dir"] == 135.0
    assert first["properties"]["region"] == "Texas"
    assert first["properties"]["tags"]["operator"] == "Austin Police Department"
    assert second["properties"]["dir"] == 315.0


@pytest.mark.integration
def test_overpass_harvest_handles_missing_elements(tmp_path: Path):
    client, _transport = _client({"remark": "runtime error: timeout"})

    result = run_overpass_harvest("New Hampshire", OVERPASS_CONFIG, OUTPUT_CONFIG, tmp_path, client)

    assert result["count"] == 0
    assert result["file"] == "usa/New_Hampshire.json"
    assert read_json(tmp_path / "usa" / "New_Hampshire.json")["features"] == []
