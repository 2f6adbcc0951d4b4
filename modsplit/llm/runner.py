"""Chat-completion client for OpenAI-compatible local model servers."""

from __future__ import annotations

import ipaddress
import json
import os
from dataclasses import dataclass
from typing import Callable, Iterator, Optional, Sequence
from urllib.error import HTTPError, URLError
from urllib.parse import urlparse
from urllib.request import Request, urlopen

_AUTO_BASE_URL = object()
_AUTO_API_KEY = object()

_LOCAL_HOSTS = frozenset(
    {"localhost", "127.0.0.1", "0.0.0.0", "::1", "model-runner.docker.internal"}
)


@dataclass
class LLMRequest:
    """One categorization prompt together with the settings to send it with."""

    prompt: str
    system: Optional[str]
    model: str
    temperature: Optional[float]
    max_tokens: Optional[int]
    base_url: Optional[str]
    api_key: Optional[str]
    request_timeout: Optional[float]

    def to_http(self, *, stream: bool) -> Request:
        if not self.base_url:
            raise RuntimeError("No model server configured. Set llm.base_url or MODSPLIT_LLM_BASE_URL.")
        messages = [{"role": "user", "content": self.prompt}]
        if self.system:
            messages.insert(0, {"role": "system", "content": self.system})
        payload: dict[str, object] = {"model": self.model, "messages": messages}
        if self.temperature is not None:
            payload["temperature"] = self.temperature
        if self.max_tokens is not None:
            payload["max_tokens"] = self.max_tokens
        if stream:
            payload["stream"] = True

        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return Request(
            f"{self.base_url}/chat/completions",
            data=json.dumps(payload).encode("utf-8"),
            headers=headers,
            method="POST",
        )


class LLMRunner:
    """Sends prompts to a chat-completion endpoint, whole or streamed."""

    DEFAULT_MODEL = "ai/smollm2:360M-Q4_K_M"
    DEFAULT_BASE_URL = "http://localhost:12434/engines/v1"
    ENV_MODEL_KEYS = ("MODSPLIT_LLM_MODEL", "MODEL_RUNNER_MODEL", "OPENAI_MODEL")
    ENV_BASE_URL_KEYS = ("MODSPLIT_LLM_BASE_URL", "MODEL_RUNNER_BASE_URL", "OPENAI_BASE_URL")
    ENV_API_KEY_KEYS = ("MODSPLIT_LLM_API_KEY", "MODEL_RUNNER_API_KEY", "OPENAI_API_KEY")

    def __init__(
        self,
        model: str | None = None,
        *,
        base_url: str | None | object = _AUTO_BASE_URL,
        temperature: Optional[float] = 0.0,
        max_tokens: Optional[int] = None,
        api_key: str | None | object = _AUTO_API_KEY,
        request_timeout: Optional[float] = 60.0,
        allow_remote: bool = False,
        runner: Callable[[LLMRequest], str] | None = None,
    ) -> None:
        self.allow_remote = allow_remote
        self.model = model or _first_env_value(self.ENV_MODEL_KEYS) or self.DEFAULT_MODEL
        self.base_url = self._resolve_base_url(base_url)
        self.temperature = temperature
        self.max_tokens = max_tokens
        if api_key is _AUTO_API_KEY:
            api_key = _first_env_value(self.ENV_API_KEY_KEYS)
        self.api_key: Optional[str] = api_key  # type: ignore[assignment]
        self.request_timeout = request_timeout
        self._custom_runner = runner

    def run(self, prompt: str, *, system: str | None = None) -> str:
        """Send the prompt and return the complete response text."""
        request = self._request(prompt, system)
        if self._custom_runner is not None:
            return self._custom_runner(request)
        return _complete(request)

    def stream(self, prompt: str, *, system: str | None = None) -> Iterator[str]:
        """Yield the response text in chunks as the server produces it.

        An injected runner yields its whole response as a single chunk.
        """
        request = self._request(prompt, system)
        if self._custom_runner is not None:
            yield self._custom_runner(request)
        else:
            yield from _stream(request)

    def _request(self, prompt: str, system: str | None) -> LLMRequest:
        return LLMRequest(
            prompt=prompt,
            system=system,
            model=self.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            base_url=self.base_url,
            api_key=self.api_key,
            request_timeout=self.request_timeout,
        )

    def _resolve_base_url(self, base_url: str | None | object) -> str | None:
        if base_url is None:
            return None
        if base_url is _AUTO_BASE_URL:
            base_url = _first_env_value(self.ENV_BASE_URL_KEYS) or self.DEFAULT_BASE_URL
        url = str(base_url).rstrip("/")
        host = urlparse(url).hostname
        if self.allow_remote or host is None or _is_local_host(host):
            return url
        raise RuntimeError(
            f"Remote base_url '{base_url}' is not permitted. Set llm.allow_remote to use it."
        )


def _complete(request: LLMRequest) -> str:
    try:
        with urlopen(request.to_http(stream=False), timeout=request.request_timeout or 60.0) as response:
            raw = response.read()
    except HTTPError as exc:  # pragma: no cover - depends on runtime
        raise _http_error(exc) from exc
    except URLError as exc:  # pragma: no cover - depends on runtime
        raise RuntimeError(f"LLM HTTP runner failed: {exc.reason}") from exc

    try:
        payload = json.loads(raw.decode("utf-8"))
    except json.JSONDecodeError as exc:
        raise RuntimeError("LLM HTTP runner returned invalid JSON") from exc
    content = _choice_text(payload, "message")
    if not content:
        raise RuntimeError("LLM HTTP runner returned an empty response")
    return content.strip()


def _stream(request: LLMRequest) -> Iterator[str]:
    """Read server-sent events, yielding each ``delta.content`` until ``[DONE]``."""
    try:
        with urlopen(request.to_http(stream=True), timeout=request.request_timeout or 60.0) as response:
            for raw_line in response:
                line = raw_line.decode("utf-8", errors="ignore").strip()
                if not line.startswith("data:"):
                    continue
                data = line[len("data:") :].strip()
                if data == "[DONE]":
                    break
                try:
                    chunk = json.loads(data)
                except json.JSONDecodeError as exc:
                    raise RuntimeError("LLM HTTP runner streamed invalid JSON") from exc
                delta = _choice_text(chunk, "delta")
                if delta:
                    yield delta
    except HTTPError as exc:  # pragma: no cover - depends on runtime
        raise _http_error(exc) from exc
    except URLError as exc:  # pragma: no cover - depends on runtime
        raise RuntimeError(f"LLM HTTP runner failed: {exc.reason}") from exc


def _choice_text(payload: object, key: str) -> str:
    """Pull ``choices[0][key].content`` (or the legacy ``choices[0].text``)."""
    choices = payload.get("choices") if isinstance(payload, dict) else None
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return ""
    first = choices[0]
    message = first.get(key)
    if isinstance(message, dict) and isinstance(message.get("content"), str):
        return message["content"]
    text = first.get("text")
    return text if isinstance(text, str) else ""


def _http_error(exc: HTTPError) -> RuntimeError:
    detail = exc.read().decode("utf-8", errors="ignore") if hasattr(exc, "read") else ""
    return RuntimeError(f"LLM HTTP runner failed with status {exc.code}: {detail.strip() or exc.reason}")


def _first_env_value(keys: Sequence[str]) -> str | None:
    for key in keys:
        value = os.getenv(key)
        if value:
            return value
    return None


def _is_local_host(host: str) -> bool:
    lowered = host.lower()
    if lowered in _LOCAL_HOSTS or lowered.endswith((".local", ".localdomain")):
        return True
    try:
        return ipaddress.ip_address(lowered).is_loopback
    except ValueError:
        return False


__all__ = ["LLMRequest", "LLMRunner"]
