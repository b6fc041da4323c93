"""Async chat-completion client with bounded, cancellable retries."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Protocol

import httpx

from deepseek_json import __version__
from deepseek_json.api.errors import ChatError
from deepseek_json.api.models import ChatRequest, ChatResponse
from deepseek_json.api.retry import RetryDecision, RetryPolicy
from deepseek_json.cancellation import CancellationSource
from deepseek_json.config import Settings

logger = logging.getLogger(__name__)

SERVER_BUSY_STATUS_CODES = frozenset({429, 502, 503, 504})
DEFAULT_USER_AGENT = f"deepseek-json/{__version__}"
CONNECT_TIMEOUT_SECONDS = 10.0

SleepFn = Callable[[float], Awaitable[None]]


class ChatEngine(Protocol):
    """Anything that can deliver one chat-completion request."""

    async def send(self, request: ChatRequest, cancellation: CancellationSource) -> ChatResponse:
        """Return the assistant content or raise `ChatError`."""


class DeepSeekClient:
    """Send chat-completion requests to a DeepSeek-compatible endpoint."""

    def __init__(
        self,
        settings: Settings,
        *,
        retry_policy: RetryPolicy | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        try:
            settings.validate()
        except ValueError as error:
            raise ChatError.config(str(error)) from error

        self.settings = settings
        self.retry_policy = retry_policy or RetryPolicy()
        self._sleep = sleep
        self._timeout_seconds = settings.timeout_seconds
        self._client = httpx.AsyncClient(
            base_url=settings.base_url,
            timeout=httpx.Timeout(
                settings.timeout_seconds,
                connect=min(CONNECT_TIMEOUT_SECONDS, settings.timeout_seconds),
            ),
            headers={
                "Authorization": f"Bearer {settings.api_key}",
                "Content-Type": "application/json",
                "User-Agent": DEFAULT_USER_AGENT,
            },
            transport=transport,
        )

    async def send(self, request: ChatRequest, cancellation: CancellationSource) -> ChatResponse:
        """Send one logical request, retrying transient failures.

        Raises `ChatError`: CANCELED as soon as cancellation wins a race,
        fatal kinds on first occurrence, or the last retryable error once all
        attempts are spent.
        """

        policy = self.retry_policy
        last_error: ChatError | None = None
        for attempt in range(1, policy.max_attempts + 1):
            cancellation.raise_if_fired()
            logger.debug(
                "Sending chat request attempt=%d/%d model=%s messages=%d",
                attempt,
                policy.max_attempts,
                request.model,
                len(request.messages),
            )
            try:
                return await cancellation.race(self._send_once(request))
            except ChatError as error:
                if error.is_canceled:
                    raise
                if policy.classify(error) is RetryDecision.FATAL:
                    raise
                last_error = error

            if attempt < policy.max_attempts:
                delay = policy.delay_for(attempt)
                logger.warning(
                    "Request attempt %d failed: %s, retrying in %.2fs",
                    attempt,
                    last_error,
                    delay,
                )
                await cancellation.race(self._sleep(delay))

        if last_error is None:
            raise ChatError.network("request failed")
        raise last_error

    async def _send_once(self, request: ChatRequest) -> ChatResponse:
        try:
            response = await asyncio.wait_for(
                self._client.post("/chat/completions", json=request.to_payload()),
                timeout=self._timeout_seconds,
            )
        except (httpx.TimeoutException, asyncio.TimeoutError) as error:
            raise ChatError.timeout(self._timeout_seconds) from error
        except httpx.HTTPError as error:
            raise _map_transport_error(error) from error

        if not response.is_success:
            raise _map_status_error(response)
        return ChatResponse(raw_content=_extract_content(response))

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> DeepSeekClient:
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.aclose()


def _map_transport_error(error: httpx.HTTPError) -> ChatError:
    if isinstance(error, httpx.ConnectError):
        detail = str(error) or "failed to connect to server"
        lowered = detail.lower()
        if "name or service not known" in lowered or "nodename" in lowered or "dns" in lowered:
            return ChatError.network(f"DNS resolution failed: {detail}")
        if "connection refused" in lowered:
            return ChatError.network(f"Connection refused by server: {detail}")
        return ChatError.network(f"Failed to connect to server: {detail}")
    return ChatError.network(f"Request error: {error}")


def _map_status_error(response: httpx.Response) -> ChatError:
    body = response.text or "Unknown error"
    if response.status_code in SERVER_BUSY_STATUS_CODES:
        return ChatError.server_busy(status_code=response.status_code, body=body)
    return ChatError.api(response.status_code, body)


def _extract_content(response: httpx.Response) -> str:
    try:
        body: Any = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as error:
        raise ChatError.parse(
            f"Failed to parse API response: {error}",
            raw=response.text,
        ) from error
    if not isinstance(body, dict):
        raise ChatError.parse("API response must be a JSON object", raw=response.text)

    choices = body.get("choices")
    if not isinstance(choices, list) or not choices:
        raise ChatError.parse("No choices in API response", raw=response.text)
    first = choices[0]
    message = first.get("message") if isinstance(first, dict) else None
    content = message.get("content") if isinstance(message, dict) else None
    if not isinstance(content, str):
        raise ChatError.parse("choices[0].message.content must be a string", raw=response.text)
    return content
