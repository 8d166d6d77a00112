"""Tests for the Gemini client."""

from __future__ import annotations

import io
import json
import socket
from urllib.error import HTTPError, URLError

import pytest

from ecospray.config import GeminiConfig
from ecospray.errors import InputValidationError, UpstreamError, UpstreamTimeoutError
from ecospray.llm.gemini import GeminiClient


class FakeResponse:
    def __init__(self, payload):
        self._payload = payload

    def read(self):
        return json.dumps(self._payload).encode("utf-8")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False


def _candidate(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


@pytest.fixture(autouse=True)
def _no_env_keys(monkeypatch) -> None:
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)


def test_client_constructs_request() -> None:
    captured = {}

    def fake_runner(request):
        captured["prompt"] = request.prompt
        captured["model"] = request.model
        captured["api_key"] = request.api_key
        captured["temperature"] = request.temperature
        captured["request_timeout"] = request.request_timeout
        return "response"

    client = GeminiClient(
        GeminiConfig(api_key="server-key", model="gemini-test", temperature=0.3, request_timeout=12),
        runner=fake_runner,
    )

    assert client.generate("Hello") == "response"
    assert captured == {
        "prompt": "Hello",
        "model": "gemini-test",
        "api_key": "server-key",
        "temperature": 0.3,
        "request_timeout": 12,
    }


def test_caller_key_wins_over_server_key() -> None:
    seen = []
    client = GeminiClient(GeminiConfig(api_key="server-key"), runner=lambda req: seen.append(req.api_key) or "ok")

    client.generate("x", api_key="caller-key")

    assert seen == ["caller-key"]


def test_environment_key_is_last_fallback(monkeypatch) -> None:
    monkeypatch.setenv("GEMINI_API_KEY", "env-key")
    seen = []
    client = GeminiClient(runner=lambda req: seen.append(req.api_key) or "ok")

    client.generate("x")

    assert seen == ["env-key"]


def test_missing_key_is_a_validation_error() -> None:
    client = GeminiClient(runner=lambda req: "unused")

    with pytest.raises(InputValidationError):
        client.generate("x")


def test_http_runner_posts_generate_content(monkeypatch) -> None:
    captured = {}

    def fake_urlopen(request, timeout=None):
        captured["url"] = request.full_url
        captured["payload"] = json.loads(request.data.decode("utf-8"))
        captured["timeout"] = timeout
        return FakeResponse(_candidate("  Foam keeps homes warm.  "))

    monkeypatch.setattr("ecospray.llm.gemini.urlopen", fake_urlopen)

    client = GeminiClient(GeminiConfig(api_key="k-1", temperature=0.1, request_timeout=30))
    result = client.generate("Write a tagline")

    assert result == "Foam keeps homes warm."
    assert captured["url"] == (
        "https://generativelanguage.googleapis.com/v1beta/models/gemini-2.0-flash:generateContent?key=k-1"
    )
    assert captured["payload"]["contents"][0]["parts"][0]["text"] == "Write a tagline"
    assert captured["payload"]["generationConfig"] == {"temperature": 0.1}
    assert captured["timeout"] == 30


def test_http_error_keeps_upstream_status_and_message(monkeypatch) -> None:
    def fake_urlopen(request, timeout=None):
        body = json.dumps({"error": {"message": "API key not valid"}}).encode("utf-8")
        raise HTTPError(request.full_url, 403, "Forbidden", {}, io.BytesIO(body))

    monkeypatch.setattr("ecospray.llm.gemini.urlopen", fake_urlopen)

    with pytest.raises(UpstreamError) as excinfo:
        GeminiClient(GeminiConfig(api_key="bad")).generate("x")

    assert excinfo.value.status_code == 403
    assert "API key not valid" in excinfo.value.message


def test_timeout_is_reported_distinctly(monkeypatch) -> None:
    def fake_urlopen(request, timeout=None):
        raise URLError(socket.timeout("timed out"))

    monkeypatch.setattr("ecospray.llm.gemini.urlopen", fake_urlopen)

    with pytest.raises(UpstreamTimeoutError):
        GeminiClient(GeminiConfig(api_key="k")).generate("x")


def test_empty_candidate_is_an_upstream_error(monkeypatch) -> None:
    monkeypatch.setattr(
        "ecospray.llm.gemini.urlopen", lambda request, timeout=None: FakeResponse({"candidates": []})
    )

    with pytest.raises(UpstreamError, match="empty response"):
        GeminiClient(GeminiConfig(api_key="k")).generate("x")
