"""Client for the OpenAI-compatible generative text service."""

from __future__ import annotations

import json
import os
import socket
from dataclasses import dataclass
from http.client import HTTPException
from typing import Callable, Optional, Sequence
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

_AUTO_API_KEY = object()


class GenerationServiceError(RuntimeError):
    """Base class for failures reported by the generative text service."""


class TransientServiceError(GenerationServiceError):
    """Server-side or transport failure that may succeed when retried."""

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class RateLimitedError(TransientServiceError):
    """The service rejected the call because of rate limiting (HTTP 429)."""

    def __init__(self, message: str, *, retry_after: float | None = None) -> None:
        super().__init__(message, status=429)
        self.retry_after = retry_after


class PermanentServiceError(GenerationServiceError):
    """Bad request or authentication failure; retrying will not help."""

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


@dataclass
class LLMRequest:
    """Represents one chat completion request."""

    prompt: str
    system: Optional[str]
    model: str
    temperature: Optional[float]
    max_tokens: Optional[int]
    base_url: str
    api_key: Optional[str]
    request_timeout: Optional[float]


class LLMRunner:
    """Executes prompts against the configured chat completions endpoint."""

    DEFAULT_MODEL = "grok-3-latest"
    DEFAULT_BASE_URL = "https://api.x.ai/v1"
    ENV_MODEL_KEYS = ("DOCFORGE_LLM_MODEL", "XAI_MODEL", "OPENAI_MODEL")
    ENV_BASE_URL_KEYS = ("DOCFORGE_LLM_BASE_URL", "XAI_BASE_URL", "OPENAI_BASE_URL")
    ENV_API_KEY_KEYS = ("DOCFORGE_LLM_API_KEY", "XAI_API_KEY", "OPENAI_API_KEY")

    def __init__(
        self,
        model: str | None = None,
        *,
        base_url: str | None = None,
        temperature: Optional[float] = 0.2,
        max_tokens: Optional[int] = 4096,
        api_key: str | None | object = _AUTO_API_KEY,
        request_timeout: Optional[float] = 60.0,
        runner: Callable[[LLMRequest], str] | None = None,
    ) -> None:
        self.model = model or self._first_env_value(self.ENV_MODEL_KEYS) or self.DEFAULT_MODEL
        self.base_url = (
            base_url or self._first_env_value(self.ENV_BASE_URL_KEYS) or self.DEFAULT_BASE_URL
        ).rstrip("/")
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.api_key = self._resolve_api_key(api_key)
        self.request_timeout = request_timeout
        self._runner = runner if runner is not None else self._http_runner

    def run(
        self, prompt: str, *, system: str | None = None, temperature: float | None = None
    ) -> str:
        """Send the prompt and return the response text.

        Raises ``TransientServiceError`` (incl. ``RateLimitedError``) for
        failures worth retrying and ``PermanentServiceError`` otherwise.
        """
        request = LLMRequest(
            prompt=prompt,
            system=system,
            model=self.model,
            temperature=self.temperature if temperature is None else temperature,
            max_tokens=self.max_tokens,
            base_url=self.base_url,
            api_key=self.api_key,
            request_timeout=self.request_timeout,
        )
        return self._runner(request)

    @staticmethod
    def _http_runner(request: LLMRequest) -> str:
        endpoint = f"{request.base_url}/chat/completions"
        payload: dict[str, object] = {
            "model": request.model,
            "messages": LLMRunner._build_messages(request.system, request.prompt),
        }
        if request.temperature is not None:
            payload["temperature"] = request.temperature
        if request.max_tokens is not None:
            payload["max_tokens"] = request.max_tokens

        data = json.dumps(payload).encode("utf-8")
        headers = {"Content-Type": "application/json"}
        if request.api_key:
            headers["Authorization"] = f"Bearer {request.api_key}"

        http_request = Request(endpoint, data=data, headers=headers, method="POST")
        timeout = request.request_timeout or 60.0

        try:
            with urlopen(http_request, timeout=timeout) as response:  # type: ignore[arg-type]
                raw = response.read()
        except HTTPError as exc:
            raise _classify_http_error(exc) from exc
        except URLError as exc:
            raise TransientServiceError(f"LLM request failed: {exc.reason}") from exc
        except (socket.timeout, TimeoutError) as exc:
            raise TransientServiceError(f"LLM request timed out after {timeout}s") from exc
        except (OSError, HTTPException) as exc:
            raise TransientServiceError(f"LLM connection failed: {exc!r}") from exc

        try:
            response_payload = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise TransientServiceError("LLM service returned invalid JSON") from exc
        if not isinstance(response_payload, dict):
            raise TransientServiceError("LLM service returned an unexpected payload")

        return LLMRunner._extract_content(response_payload).strip()

    @staticmethod
    def _build_messages(system: str | None, prompt: str) -> list[dict[str, str]]:
        messages: list[dict[str, str]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        return messages

    @staticmethod
    def _extract_content(payload: dict[str, object]) -> str:
        choices = payload.get("choices")
        if not isinstance(choices, list) or not choices:
            return ""
        first = choices[0]
        if not isinstance(first, dict):
            return ""
        message = first.get("message")
        if isinstance(message, dict):
            content = message.get("content")
            if isinstance(content, str):
                return content
        text = first.get("text")
        if isinstance(text, str):
            return text
        return ""

    def _resolve_api_key(self, api_key: str | None | object) -> str | None:
        if api_key is _AUTO_API_KEY:
            return self._first_env_value(self.ENV_API_KEY_KEYS)
        return api_key  # type: ignore[return-value]

    @staticmethod
    def _first_env_value(keys: Sequence[str]) -> str | None:
        for key in keys:
            value = os.getenv(key)
            if value:
                return value
        return None


def _classify_http_error(exc: HTTPError) -> GenerationServiceError:
    try:
        detail = exc.read().decode("utf-8", errors="ignore").strip()
    except (OSError, AttributeError):
        detail = ""
    message = f"LLM service returned status {exc.code}: {detail or exc.reason}"
    if exc.code == 429:
        return RateLimitedError(message, retry_after=_retry_after(exc))
    if exc.code >= 500 or exc.code == 408:
        return TransientServiceError(message, status=exc.code)
    return PermanentServiceError(message, status=exc.code)


def _retry_after(exc: HTTPError) -> float | None:
    headers = exc.headers
    value = headers.get("Retry-After") if headers is not None else None
    if value is None:
        return None
    try:
        return max(0.0, float(value))
    except ValueError:
        return None


__all__ = [
    "GenerationServiceError",
    "LLMRequest",
    "LLMRunner",
    "PermanentServiceError",
    "RateLimitedError",
    "TransientServiceError",
]
