"""HTTP transport for the query service: timeouts, headers, JSON decoding."""

from __future__ import annotations

from dataclasses import dataclass
from types import TracebackType
from typing import Any

import requests

from alpr_sync.common.constants import USER_AGENT
from alpr_sync.common.errors import EndpointFailure


@dataclass(frozen=True)
class TimeoutConfig:
    connect: float = 20.0
    read: float = 180.0


class HttpClient:
    def __init__(self, *, timeout: TimeoutConfig | None = None) -> None:
        self.timeout = timeout or TimeoutConfig()
        self.session = requests.Session()

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "HttpClient":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def _headers(self, headers: dict[str, str] | None) -> dict[str, str]:
        out = {"User-Agent": USER_AGENT, "Accept": "application/json"}
        if headers:
            out.update(headers)
        return out

    def _raise_for_status(self, response: requests.Response, url: str) -> None:
        status = response.status_code
        if not 200 <= status < 300:
            raise EndpointFailure(f"HTTP {status} @ {url}")

    def request_json(
        self,
        method: str,
        url: str,
        *,
        data: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        timeout: TimeoutConfig | None = None,
    ) -> dict[str, Any]:
        req_timeout = timeout or self.timeout
        try:
            response = self.session.request(
                method=method,
                url=url,
                data=data,
                headers=self._headers(headers),
                timeout=(req_timeout.connect, req_timeout.read),
            )
        except requests.RequestException as exc:
            raise EndpointFailure(f"Transport error @ {url}: {exc}") from exc

        self._raise_for_status(response, url)

        try:
            payload = response.json()
        except ValueError as exc:
            raise EndpointFailure(f"Invalid JSON payload from {url}") from exc
        if not isinstance(payload, dict):
            raise EndpointFailure(f"Unexpected JSON payload shape from {url}")
        return payload

    def post_form_json(
        self,
        url: str,
        *,
        data: dict[str, Any],
        headers: dict[str, str] | None = None,
        timeout: TimeoutConfig | None = None,
    ) -> dict[str, Any]:
        merged = {"Content-Type": "application/x-www-form-urlencoded"}
        if headers:
            merged.update(headers)
        return self.request_json("POST", url, data=data, headers=merged, timeout=timeout)

    def post_query(self, url: str, query: str) -> dict[str, Any]:
        """Transport callable for the fetch client: one POST, one attempt."""
        return self.post_form_json(url, data={"data": query})
