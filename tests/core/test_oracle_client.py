from __future__ import annotations

import base64
import io
import json
from urllib import error

import pytest

import hirepipeline.llm as llm
from hirepipeline.errors import OracleError, OracleUnavailableError
from hirepipeline.llm import HTTPOracleClient


class FakeResponse:
    def __init__(self, payload: object) -> None:
        self._body = json.dumps(payload).encode("utf-8")

    def __enter__(self) -> "FakeResponse":
        return self

    def __exit__(self, *exc_info) -> None:
        return None

    def read(self) -> bytes:
        return self._body


@pytest.fixture
def captured(monkeypatch: pytest.MonkeyPatch) -> list:
    requests: list = []

    def fake_urlopen(req, timeout):
        requests.append((req, timeout))
        return FakeResponse({"choices": [{"message": {"content": '{"total_score": 8}'}}]})

    monkeypatch.setattr(llm.request, "urlopen", fake_urlopen)
    return requests


def test_complete_posts_chat_payload(captured):
    client = HTTPOracleClient("https://oracle.test/v1/chat", "secret", model="test-model", timeout=12)

    answer = client.complete("system prompt", "user prompt")

    assert answer == '{"total_score": 8}'
    req, timeout = captured[0]
    assert timeout == 12
    assert req.full_url == "https://oracle.test/v1/chat"
    assert req.get_header("Authorization") == "Bearer secret"
    body = json.loads(req.data.decode("utf-8"))
    assert body["model"] == "test-model"
    assert body["messages"] == [
        {"role": "system", "content": "system prompt"},
        {"role": "user", "content": "user prompt"},
    ]


def test_extract_text_sends_data_url(captured):
    client = HTTPOracleClient(model="text-model", vision_model="vision-model")

    client.extract_text(b"\x89PNG", "image/png")

    body = json.loads(captured[0][0].data.decode("utf-8"))
    assert body["model"] == "vision-model"
    image_part = body["messages"][0]["content"][1]
    encoded = base64.b64encode(b"\x89PNG").decode("ascii")
    assert image_part["image_url"]["url"] == f"data:image/png;base64,{encoded}"


@pytest.mark.parametrize("status", [402, 429, 503])
def test_transient_http_errors_are_retryable(monkeypatch: pytest.MonkeyPatch, status):
    def fake_urlopen(req, timeout):
        raise error.HTTPError(req.full_url, status, "nope", {}, io.BytesIO(b""))

    monkeypatch.setattr(llm.request, "urlopen", fake_urlopen)

    with pytest.raises(OracleUnavailableError) as excinfo:
        HTTPOracleClient().complete("s", "u")

    assert excinfo.value.status == status
    assert excinfo.value.retryable is True


def test_other_failures(monkeypatch: pytest.MonkeyPatch):
    def bad_request(req, timeout):
        raise error.HTTPError(req.full_url, 400, "bad request", {}, io.BytesIO(b""))

    monkeypatch.setattr(llm.request, "urlopen", bad_request)
    with pytest.raises(OracleError) as excinfo:
        HTTPOracleClient().complete("s", "u")
    assert not isinstance(excinfo.value, OracleUnavailableError)

    def unreachable(req, timeout):
        raise error.URLError("connection refused")

    monkeypatch.setattr(llm.request, "urlopen", unreachable)
    with pytest.raises(OracleUnavailableError):
        HTTPOracleClient().complete("s", "u")

    monkeypatch.setattr(llm.request, "urlopen", lambda req, timeout: FakeResponse({"error": "x"}))
    with pytest.raises(OracleError):
        HTTPOracleClient().complete("s", "u")
