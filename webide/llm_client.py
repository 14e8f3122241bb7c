"""LLM client -- the AI-service collaborator behind chat, commit messages
and code commands (Anthropic + OpenAI over httpx).

The workspace only depends on the ``LLMClient`` protocol: one streaming
chat call yielding text chunks and one single-shot completion.
``HTTPLLMClient`` is the production implementation.
"""

from __future__ import annotations

import asyncio
import json as _json
import logging
from collections.abc import AsyncIterator
from typing import Protocol, runtime_checkable

import httpx

from webide.config import Settings, settings as default_settings
from webide.errors import CollaboratorFailure

logger = logging.getLogger(__name__)

# ── Shared HTTP client (connection pooling) ─────────────────────────────────

_client: httpx.AsyncClient | None = None


def _get_client() -> httpx.AsyncClient:
    """Return (or create) the shared httpx client for LLM API calls."""
    global _client
    if _client is None:
        _client = httpx.AsyncClient(timeout=default_settings.LLM_TIMEOUT_SECS)
    return _client


async def close_client() -> None:
    """Close the shared LLM HTTP client."""
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None


def _timeout(timeout: float | None) -> float:
    """Per-request timeout; falls back to the process-wide setting."""
    return default_settings.LLM_TIMEOUT_SECS if timeout is None else timeout


# ---------------------------------------------------------------------------
# Retry configuration
# ---------------------------------------------------------------------------

RETRY_BACKOFF_BASE = 2.0  # seconds — exponential: 2, 4, 8, ...
_RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 529})


def _compute_wait(exc: httpx.HTTPStatusError | None, attempt: int) -> float:
    """Return seconds to wait before retrying.

    Prefers the ``retry-after`` header for 429s. Falls back to exponential
    backoff capped at 90 seconds.
    """
    if exc is not None and exc.response is not None:
        retry_after = exc.response.headers.get("retry-after")
        if retry_after:
            try:
                return min(float(retry_after), 120.0)
            except (ValueError, TypeError):
                pass
    return min(RETRY_BACKOFF_BASE ** (attempt + 1), 90.0)


async def _retry_on_transient(
    coro_factory,
    *,
    max_retries: int,
    backoff_base: float = RETRY_BACKOFF_BASE,
):
    """Retry a coroutine factory on transient HTTP / timeout errors.

    ``coro_factory`` is a zero-arg callable that returns a new awaitable each
    time (so we can retry fresh).
    """
    last_exc: Exception | None = None
    for attempt in range(max_retries + 1):
        try:
            return await coro_factory()
        except (httpx.TimeoutException, httpx.TransportError) as exc:
            last_exc = exc
            if attempt < max_retries:
                wait = min(backoff_base ** (attempt + 1), 90.0)
                logger.warning(
                    "LLM request %s (attempt %d/%d), retrying in %.1fs",
                    type(exc).__name__, attempt + 1, max_retries + 1, wait,
                )
                await asyncio.sleep(wait)
            else:
                raise
        except httpx.HTTPStatusError as exc:
            last_exc = exc
            if exc.response.status_code in _RETRYABLE_STATUS_CODES and attempt < max_retries:
                wait = _compute_wait(exc, attempt)
                logger.warning(
                    "LLM request %d (attempt %d/%d), retrying in %.1fs",
                    exc.response.status_code, attempt + 1, max_retries + 1, wait,
                )
                await asyncio.sleep(wait)
            else:
                raise
    raise last_exc  # type: ignore[misc]  # pragma: no cover


def _error_message(body: bytes | str) -> str:
    text = body.decode(errors="replace") if isinstance(body, bytes) else body
    try:
        return _json.loads(text).get("error", {}).get("message", text)
    except (ValueError, AttributeError):
        return text


# ---------------------------------------------------------------------------
# Anthropic
# ---------------------------------------------------------------------------

ANTHROPIC_MESSAGES_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_API_VERSION = "2023-06-01"


def _anthropic_headers(api_key: str) -> dict:
    """Return standard Anthropic API headers."""
    return {
        "x-api-key": api_key,
        "anthropic-version": ANTHROPIC_API_VERSION,
        "Content-Type": "application/json",
    }


def _anthropic_body(model: str, system_prompt: str, prompt: str, max_tokens: int) -> dict:
    body: dict = {
        "model": model,
        "max_tokens": max_tokens,
        "messages": [{"role": "user", "content": prompt}],
    }
    if system_prompt:
        body["system"] = system_prompt
    return body


async def complete_anthropic(
    api_key: str,
    model: str,
    prompt: str,
    system_prompt: str = "",
    max_tokens: int = 2048,
    max_retries: int = 3,
    timeout: float | None = None,
) -> str:
    """Single-shot request to the Anthropic Messages API; returns the text."""

    async def _call():
        client = _get_client()
        response = await client.post(
            ANTHROPIC_MESSAGES_URL,
            headers=_anthropic_headers(api_key),
            json=_anthropic_body(model, system_prompt, prompt, max_tokens),
            timeout=_timeout(timeout),
        )
        if response.status_code in _RETRYABLE_STATUS_CODES:
            response.raise_for_status()
        if response.status_code >= 400:
            raise ValueError(
                f"Anthropic API {response.status_code}: {_error_message(response.text)}"
            )

        data = response.json()
        text_parts = [
            block["text"] for block in data.get("content", []) if block.get("type") == "text"
        ]
        if not text_parts:
            raise ValueError("No text block in Anthropic API response")
        return "\n".join(text_parts)

    return await _retry_on_transient(_call, max_retries=max_retries)


async def stream_anthropic(
    api_key: str,
    model: str,
    prompt: str,
    system_prompt: str = "",
    max_tokens: int = 2048,
    timeout: float | None = None,
) -> AsyncIterator[str]:
    """Stream an Anthropic reply, yielding each text delta as it arrives.

    Streams are not retried: chunks already handed out cannot be recalled.
    """
    body = _anthropic_body(model, system_prompt, prompt, max_tokens)
    body["stream"] = True

    client = _get_client()
    async with client.stream(
        "POST",
        ANTHROPIC_MESSAGES_URL,
        headers=_anthropic_headers(api_key),
        json=body,
        timeout=_timeout(timeout),
    ) as response:
        if response.status_code >= 400:
            error_body = await response.aread()
            raise ValueError(
                f"Anthropic API {response.status_code}: {_error_message(error_body)}"
            )

        async for raw_line in response.aiter_lines():
            if not raw_line.startswith("data: "):
                continue
            data = _json.loads(raw_line[6:])
            event_type = data.get("type", "")
            if event_type == "content_block_delta":
                delta = data.get("delta", {})
                if delta.get("type") == "text_delta":
                    yield delta.get("text", "")
            elif event_type == "error":
                raise ValueError(
                    f"Anthropic stream error: {data.get('error', {}).get('message', '')}"
                )


# ---------------------------------------------------------------------------
# OpenAI
# ---------------------------------------------------------------------------

OPENAI_CHAT_URL = "https://api.openai.com/v1/chat/completions"


def _openai_headers(api_key: str) -> dict:
    """Return standard OpenAI API headers."""
    return {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
    }


def _openai_body(model: str, system_prompt: str, prompt: str, max_tokens: int) -> dict:
    messages = []
    if system_prompt:
        messages.append({"role": "system", "content": system_prompt})
    messages.append({"role": "user", "content": prompt})
    return {"model": model, "messages": messages, "max_completion_tokens": max_tokens}


async def complete_openai(
    api_key: str,
    model: str,
    prompt: str,
    system_prompt: str = "",
    max_tokens: int = 2048,
    max_retries: int = 3,
    timeout: float | None = None,
) -> str:
    """Single-shot request to the OpenAI Chat Completions API."""

    async def _call():
        client = _get_client()
        response = await client.post(
            OPENAI_CHAT_URL,
            headers=_openai_headers(api_key),
            json=_openai_body(model, system_prompt, prompt, max_tokens),
            timeout=_timeout(timeout),
        )
        if response.status_code == 400:
            raise ValueError(f"OpenAI API error: {_error_message(response.text)}")
        response.raise_for_status()

        choices = response.json().get("choices", [])
        if not choices:
            raise ValueError("Empty response from OpenAI API")
        content = choices[0].get("message", {}).get("content")
        if not content:
            raise ValueError("No content in OpenAI API response")
        return content

    return await _retry_on_transient(_call, max_retries=max_retries)


async def stream_openai(
    api_key: str,
    model: str,
    prompt: str,
    system_prompt: str = "",
    max_tokens: int = 2048,
    timeout: float | None = None,
) -> AsyncIterator[str]:
    """Stream an OpenAI reply, yielding each content delta."""
    body = _openai_body(model, system_prompt, prompt, max_tokens)
    body["stream"] = True

    client = _get_client()
    async with client.stream(
        "POST",
        OPENAI_CHAT_URL,
        headers=_openai_headers(api_key),
        json=body,
        timeout=_timeout(timeout),
    ) as response:
        if response.status_code >= 400:
            error_body = await response.aread()
            raise ValueError(f"OpenAI API {response.status_code}: {_error_message(error_body)}")

        async for raw_line in response.aiter_lines():
            if not raw_line.startswith("data: "):
                continue
            payload = raw_line[6:].strip()
            if payload == "[DONE]":
                break
            choices = _json.loads(payload).get("choices", [])
            if choices:
                text = choices[0].get("delta", {}).get("content")
                if text:
                    yield text


# ---------------------------------------------------------------------------
# Collaborator protocol + unified client
# ---------------------------------------------------------------------------


@runtime_checkable
class LLMClient(Protocol):
    """What the workspace needs from the AI service."""

    def stream_chat(self, message: str, system_prompt: str = "") -> AsyncIterator[str]: ...

    async def complete(self, prompt: str, system_prompt: str = "") -> str: ...


class HTTPLLMClient:
    """``LLMClient`` backed by the configured provider's HTTP API."""

    def __init__(self, config: Settings | None = None) -> None:
        self.config = config or default_settings

    @property
    def provider(self) -> str:
        return self.config.resolved_provider()

    def _api_key(self) -> str:
        key = (
            self.config.OPENAI_API_KEY
            if self.provider == "openai"
            else self.config.ANTHROPIC_API_KEY
        )
        if not key:
            raise CollaboratorFailure(self.provider, "No API key configured")
        return key

    async def stream_chat(self, message: str, system_prompt: str = "") -> AsyncIterator[str]:
        """Yield reply chunks; transport and API errors become ``CollaboratorFailure``."""
        stream = stream_openai if self.provider == "openai" else stream_anthropic
        try:
            async for chunk in stream(
                self._api_key(),
                self.config.resolved_model(),
                message,
                system_prompt,
                self.config.LLM_MAX_TOKENS,
                timeout=self.config.LLM_TIMEOUT_SECS,
            ):
                yield chunk
        except (httpx.HTTPError, ValueError) as exc:
            raise CollaboratorFailure(self.provider, str(exc)) from exc

    async def complete(self, prompt: str, system_prompt: str = "") -> str:
        complete = complete_openai if self.provider == "openai" else complete_anthropic
        try:
            return await complete(
                self._api_key(),
                self.config.resolved_model(),
                prompt,
                system_prompt,
                self.config.LLM_MAX_TOKENS,
                self.config.LLM_MAX_RETRIES,
                timeout=self.config.LLM_TIMEOUT_SECS,
            )
        except (httpx.HTTPError, ValueError) as exc:
            raise CollaboratorFailure(self.provider, str(exc)) from exc

    async def aclose(self) -> None:
        """Release pooled connections held by the shared HTTP client."""
        await close_client()
