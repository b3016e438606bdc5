"""Run-level ledger of per-region outcomes."""

from __future__ import annotations

from pathlib import Path

from alpr_sync.common.errors import ContractError
from alpr_sync.common.fs import write_json
from alpr_sync.common.models import RegionResult
from alpr_sync.common.time_utils import utc_timestamp_iso


class RunIndex:
    """Collects exactly one RegionResult per region, in the order recorded."""

    def __init__(self, run_id: str | None = None) -> None:
        self.run_id = run_id
        self._results: list[RegionResult] = []
        self._regions: set[str] = set()

    def _append(self, result: RegionResult) -> RegionResult:
        if result.region in self._regions:
            raise ContractError(f"Region already recorded in run index: {result.region}")
        self._regions.add(result.region)
        self._results.append(result)
        return result

    def record_success(self, region: str, feature_count: int, file: str) -> RegionResult:
        return self._append(
            RegionResult(region=region, status="ok", feature_count=feature_count, error=None, file=file)
        )

    def record_failure(self, region: str, error: str) -> RegionResult:
        return self._append(
            RegionResult(region=region, status="failed", feature_count=None, error=error or "unknown error")
        )

    @property
    def results(self) -> list[RegionResult]:
        return list(self._results)

    @property
    def failed(self) -> list[RegionResult]:
        return [result for result in self._results if not result.ok]

    def to_dict(self, *, generated_at: str | None = None) -> dict:
        return {
            "generated_at": generated_at or utc_timestamp_iso(),
            "run_id": self.run_id,
            "ok_count": sum(1 for result in self._results if result.ok),
            "failed_count": len(self.failed),
            "regions": [result.to_dict() for result in self._results],
        }

    def write(self, path: Path, *, generated_at: str | None = None) -> Path:
        write_json(path, self.to_dict(generated_at=generated_at))
        return path
