"""Query execution across equivalent mirrors with per-endpoint retry."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable

from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_incrementing

from alpr_sync.common.errors import EndpointFailure, FetchExhausted
from alpr_sync.common.logging import log_event
from alpr_sync.common.models import FetchOutcome

Transport = Callable[[str, str], dict[str, Any]]


@dataclass(frozen=True)
class FetchPolicy:
    endpoints: tuple[str, ...]
    attempts_per_endpoint: int = 2
    backoff_base_seconds: float = 1.5

    def __post_init__(self) -> None:
        if not self.endpoints:
            raise ValueError("FetchPolicy needs at least one endpoint")
        if self.attempts_per_endpoint < 1:
            raise ValueError("attempts_per_endpoint must be >= 1")

    @classmethod
    def from_config(cls, overpass_config: dict) -> "FetchPolicy":
        return cls(
            endpoints=tuple(overpass_config["endpoints"]),
            attempts_per_endpoint=int(overpass_config["attempts_per_endpoint"]),
            backoff_base_seconds=float(overpass_config["backoff_base_seconds"]),
        )

    def backoff(self):
        # base * attempt_number: 1x after the first failure, 2x after the second, ...
        return wait_incrementing(start=self.backoff_base_seconds, increment=self.backoff_base_seconds)


class ResilientFetchClient:
    """Tries endpoints strictly in order, up to K attempts each.

    The first successful payload is returned immediately. When every
    endpoint/attempt combination fails, ``FetchExhausted`` is raised carrying
    the most recent failure only.
    """

    def __init__(
        self,
        policy: FetchPolicy,
        transport: Transport,
        *,
        sleep: Callable[[float], None] = time.sleep,
        logger: logging.Logger | None = None,
    ) -> None:
        self.policy = policy
        self.transport = transport
        self.sleep = sleep
        self.logger = logger
        self.outcomes: list[FetchOutcome] = []

    def _retrying(self) -> Retrying:
        return Retrying(
            stop=stop_after_attempt(self.policy.attempts_per_endpoint),
            wait=self.policy.backoff(),
            retry=retry_if_exception_type(EndpointFailure),
            sleep=self.sleep,
            reraise=True,
        )

    def _fetch_from(self, endpoint: str, query: str) -> dict[str, Any]:
        for attempt in self._retrying():
            with attempt:
                number = attempt.retry_state.attempt_number
                try:
                    payload = self.transport(endpoint, query)
                except EndpointFailure as exc:
                    self.outcomes.append(FetchOutcome(endpoint=endpoint, attempt=number, ok=False, cause=exc))
                    log_event(
                        self.logger,
                        f"attempt failed: {exc}",
                        level=logging.WARNING,
                        event="FETCH_ATTEMPT_FAIL",
                        status="error",
                        endpoint=endpoint,
                        attempt=number,
                        error_code=exc.error_code,
                    )
                    raise
                self.outcomes.append(FetchOutcome(endpoint=endpoint, attempt=number, ok=True))
                return payload
        raise AssertionError("unreachable: tenacity reraises on stop")

    def fetch(self, query: str) -> dict[str, Any]:
        self.outcomes = []
        last_failure: EndpointFailure | None = None
        for endpoint in self.policy.endpoints:
            try:
                return self._fetch_from(endpoint, query)
            except EndpointFailure as exc:
                last_failure = exc

        raise FetchExhausted(
            str(last_failure),
            attempts=len(self.outcomes),
            cause=last_failure,
        ) from last_failure
