from __future__ import annotations

import pytest
import requests

from alpr_sync.common.errors import EndpointFailure
from alpr_sync.common.http import HttpClient


class FakeResponse:
    def __init__(self, status_code: int, payload=None, raises_json: bool = False):
        self.status_code = status_code
        self._payload = payload
        self._raises_json = raises_json

    def json(self):
        if self._raises_json:
            raise ValueError("bad json")
        return self._payload


def test_post_query_success_sends_form_field(monkeypatch):
    client = HttpClient()
    seen = {}

    def fake_request(**kwargs):
        seen.update(kwargs)
        return FakeResponse(200, {"elements": []})

    monkeypatch.setattr(client.session, "request", fake_request)
    payload = client.post_query("https://example.com/api/interpreter", "[out:json];")

    assert payload == {"elements": []}
    assert seen["method"] == "POST"
    assert seen["data"] == {"data": "[out:json];"}
    assert seen["headers"]["Content-Type"] == "application/x-www-form-urlencoded"
    assert seen["headers"]["User-Agent"].startswith("alpr-sync/")


@pytest.mark.parametrize("status", [301, 404, 429, 504])
def test_non_success_status_is_endpoint_failure(monkeypatch, status):
    client = HttpClient()
    monkeypatch.setattr(client.session, "request", lambda **_kwargs: FakeResponse(status, {"x": 1}))

    with pytest.raises(EndpointFailure, match=f"HTTP {status}"):
        client.post_query("https://example.com", "q")


def test_transport_error_is_endpoint_failure(monkeypatch):
    client = HttpClient()

    def boom(**_kwargs):
        raise requests.ConnectionError("refused")

    monkeypatch.setattr(client.session, "request", boom)

    with pytest.raises(EndpointFailure, match="Transport error"):
        client.post_query("https://example.com", "q")


def test_invalid_json_is_endpoint_failure(monkeypatch):
    client = HttpClient()
    monkeypatch.setattr(client.session, "request", lambda **_kwargs: FakeResponse(200, raises_json=True))

    with pytest.raises(EndpointFailure):
        client.post_query("https://example.com", "q")


def test_non_object_json_is_endpoint_failure(monkeypatch):
    client = HttpClient()
    monkeypatch.setattr(client.session, "request", lambda **_kwargs: FakeResponse(200, [1, 2]))

    with pytest.raises(EndpointFailure):
        client.post_query("https://example.com", "q")


def test_client_closes_session_as_context_manager(monkeypatch):
    closed = []
    with HttpClient() as client:
        monkeypatch.setattr(client.session, "close", lambda: closed.append(True))
    assert closed == [True]
