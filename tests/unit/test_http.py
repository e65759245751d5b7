from __future__ import annotations

import pytest
import requests

from statpipe.common.errors import FormatError, SourceUnavailable
from statpipe.common.http import HttpClient, HttpRequestError, RetryConfig, RetryableHttpError, TimeoutConfig


class FakeResponse:
    def __init__(self, status_code: int, payload=None, raises_json: bool = False, text: str = "", encoding=None):
        self.status_code = status_code
        self._payload = payload
        self._raises_json = raises_json
        self.text = text
        self.encoding = encoding

    def json(self):
        if self._raises_json:
            raise ValueError("bad json")
        return self._payload


def test_http_get_json_success(monkeypatch):
    client = HttpClient(retry=RetryConfig(max_attempts=1))

    monkeypatch.setattr(client.session, "request", lambda **_kwargs: FakeResponse(200, {"ok": True}))
    payload = client.get_json("https://example.com")

    assert payload == {"ok": True}


def test_http_retryable_status_raises_retryable_error(monkeypatch):
    client = HttpClient(retry=RetryConfig(max_attempts=1))
    monkeypatch.setattr(client.session, "request", lambda **_kwargs: FakeResponse(503, {"x": 1}))

    with pytest.raises(RetryableHttpError) as excinfo:
        client.get_json("https://example.com")
    assert excinfo.value.status_code == 503


def test_http_client_error_is_not_retried(monkeypatch):
    calls = []

    def fake_request(**kwargs):
        calls.append(kwargs)
        return FakeResponse(404)

    client = HttpClient(retry=RetryConfig(max_attempts=3, multiplier=0, max_wait=0))
    monkeypatch.setattr(client.session, "request", fake_request)

    with pytest.raises(HttpRequestError) as excinfo:
        client.get_text("https://example.com/missing.csv")
    assert not isinstance(excinfo.value, RetryableHttpError)
    assert excinfo.value.error_code == "HTTP_ERROR"
    assert len(calls) == 1


def test_http_retries_then_succeeds(monkeypatch):
    responses = [FakeResponse(502), FakeResponse(200, text="a,b\n1,2\n", encoding="utf-8")]

    client = HttpClient(retry=RetryConfig(max_attempts=3, multiplier=0, max_wait=0))
    monkeypatch.setattr(client.session, "request", lambda **_kwargs: responses.pop(0))

    assert client.get_text("https://example.com/data.csv") == "a,b\n1,2\n"
    assert responses == []


def test_http_invalid_json_raises(monkeypatch):
    client = HttpClient(retry=RetryConfig(max_attempts=1))
    monkeypatch.setattr(client.session, "request", lambda **_kwargs: FakeResponse(200, raises_json=True))

    with pytest.raises(FormatError):
        client.get_json("https://example.com")


def test_http_get_text_forces_utf8_and_strips_bom(monkeypatch):
    response = FakeResponse(200, text="\ufeffYear,Value\n", encoding="ISO-8859-1")
    client = HttpClient(retry=RetryConfig(max_attempts=1))
    monkeypatch.setattr(client.session, "request", lambda **_kwargs: response)

    assert client.get_text("https://example.com/data.csv") == "Year,Value\n"
    assert response.encoding == "utf-8"


def test_http_passes_timeout_and_headers(monkeypatch):
    seen = {}

    def fake_request(**kwargs):
        seen.update(kwargs)
        return FakeResponse(200, {"ok": True})

    client = HttpClient(retry=RetryConfig(max_attempts=1), timeout=TimeoutConfig(connect=1, read=2))
    monkeypatch.setattr(client.session, "request", fake_request)

    client.get_json("https://example.com")
    assert seen["timeout"] == (1, 2)
    assert seen["headers"]["Accept"] == "application/json"

    client.get_json("https://example.com", timeout=TimeoutConfig(connect=3, read=4))
    assert seen["timeout"] == (3, 4)


def test_http_network_error_becomes_source_unavailable(monkeypatch):
    def fake_request(**_kwargs):
        raise requests.ConnectionError("refused")

    client = HttpClient(retry=RetryConfig(max_attempts=1))
    monkeypatch.setattr(client.session, "request", fake_request)

    with pytest.raises(SourceUnavailable) as excinfo:
        client.get_text("https://example.com/data.csv")
    assert excinfo.value.error_code == "SOURCE_UNAVAILABLE"
