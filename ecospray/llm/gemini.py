"""Adapter around the Gemini generateContent REST endpoint."""

from __future__ import annotations

import json
import os
import socket
from dataclasses import dataclass
from typing import Callable, Optional, Sequence
from urllib.error import HTTPError, URLError
from urllib.parse import quote
from urllib.request import Request, urlopen

from ..config import GeminiConfig
from ..errors import InputValidationError, UpstreamError, UpstreamTimeoutError, upstream_status
from ..logging import get_logger


@dataclass
class GenerationRequest:
    """Represents a single generateContent call."""

    prompt: str
    model: str
    api_key: str
    temperature: Optional[float]
    base_url: str
    request_timeout: float


class GeminiClient:
    """Sends prompts to Gemini and returns the response text."""

    DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
    ENV_API_KEY_KEYS = ("GEMINI_API_KEY", "GOOGLE_API_KEY")

    def __init__(
        self,
        config: GeminiConfig | None = None,
        *,
        base_url: str | None = None,
        runner: Callable[[GenerationRequest], str] | None = None,
    ) -> None:
        self.config = config or GeminiConfig()
        self.base_url = (base_url or self.DEFAULT_BASE_URL).rstrip("/")
        self._runner = runner or self._http_runner
        self.logger = get_logger("gemini")

    def generate(
        self,
        prompt: str,
        *,
        api_key: str | None = None,
        model: str | None = None,
        temperature: float | None = None,
    ) -> str:
        """Run ``prompt`` once; a caller-supplied key wins over the server key."""
        request = GenerationRequest(
            prompt=prompt,
            model=model or self.config.model,
            api_key=self._resolve_api_key(api_key),
            temperature=temperature if temperature is not None else self.config.temperature,
            base_url=self.base_url,
            request_timeout=self.config.request_timeout,
        )
        self.logger.debug("Calling %s with %d prompt characters", request.model, len(prompt))
        return self._runner(request)

    def _resolve_api_key(self, api_key: str | None) -> str:
        if api_key:
            return api_key
        if self.config.api_key:
            return self.config.api_key
        env_value = self._first_env_value(self.ENV_API_KEY_KEYS)
        if env_value:
            return env_value
        raise InputValidationError("geminiKey is required")

    @staticmethod
    def _first_env_value(keys: Sequence[str]) -> str | None:
        for key in keys:
            value = os.getenv(key)
            if value:
                return value
        return None

    @staticmethod
    def _http_runner(request: GenerationRequest) -> str:
        endpoint = (
            f"{request.base_url}/models/{quote(request.model, safe='')}:generateContent"
            f"?key={quote(request.api_key, safe='')}"
        )
        payload: dict[str, object] = {
            "contents": [{"role": "user", "parts": [{"text": request.prompt}]}],
        }
        if request.temperature is not None:
            payload["generationConfig"] = {"temperature": request.temperature}

        data = json.dumps(payload).encode("utf-8")
        http_request = Request(
            endpoint,
            data=data,
            headers={"Content-Type": "application/json"},
            method="POST",
        )

        try:
            with urlopen(http_request, timeout=request.request_timeout) as response:  # type: ignore[arg-type]
                raw = response.read()
        except HTTPError as exc:
            detail = exc.read().decode("utf-8", errors="ignore") if hasattr(exc, "read") else ""
            message = GeminiClient._error_message(detail) or str(exc.reason)
            raise UpstreamError(
                f"Gemini request failed: {message}",
                status_code=upstream_status(exc.code),
            ) from exc
        except (socket.timeout, TimeoutError) as exc:
            raise UpstreamTimeoutError(
                f"Gemini request timed out after {request.request_timeout:g}s"
            ) from exc
        except URLError as exc:
            if isinstance(exc.reason, (socket.timeout, TimeoutError)):
                raise UpstreamTimeoutError(
                    f"Gemini request timed out after {request.request_timeout:g}s"
                ) from exc
            raise UpstreamError(f"Gemini request failed: {exc.reason}") from exc

        try:
            response_payload = json.loads(raw.decode("utf-8"))
        except json.JSONDecodeError as exc:
            raise UpstreamError("Gemini returned an invalid response envelope") from exc

        content = GeminiClient._extract_text(response_payload)
        if not content:
            raise UpstreamError("Gemini returned an empty response")
        return content.strip()

    @staticmethod
    def _error_message(detail: str) -> str:
        if not detail.strip():
            return ""
        try:
            payload = json.loads(detail)
        except json.JSONDecodeError:
            return detail.strip()
        error = payload.get("error") if isinstance(payload, dict) else None
        if isinstance(error, dict) and isinstance(error.get("message"), str):
            return error["message"]
        return detail.strip()

    @staticmethod
    def _extract_text(payload: object) -> str:
        if not isinstance(payload, dict):
            return ""
        candidates = payload.get("candidates")
        if not isinstance(candidates, list) or not candidates:
            return ""
        first = candidates[0]
        if not isinstance(first, dict):
            return ""
        content = first.get("content")
        if not isinstance(content, dict):
            return ""
        parts = content.get("parts")
        if not isinstance(parts, list):
            return ""
        texts = [part["text"] for part in parts if isinstance(part, dict) and isinstance(part.get("text"), str)]
        return "".join(texts)
