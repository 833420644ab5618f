"""
Backoff Transport

One JSON POST with exponential backoff on HTTP 429.

Only rate limiting is retried. Any other status is handed back to the
caller untouched, and so is the last 429 once the retry ceiling is hit:
callers inspect `response.status_code` themselves. Network failures are
raised as TransportError.

Delays are 2**retry * base seconds (1, 2, 4, 8, 16 with the defaults) and
are plain asyncio sleeps, so cancelling the calling task cancels the wait.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    before_sleep_log,
    retry_if_result,
    stop_after_attempt,
    wait_exponential,
)

from paperinsight.core.exceptions import TransportError

logger = logging.getLogger(__name__)

RATE_LIMIT_STATUS = 429
DEFAULT_MAX_RETRIES = 5

SleepFn = Callable[[float], Awaitable[Any]]


def _is_rate_limited(response: httpx.Response) -> bool:
    return response.status_code == RATE_LIMIT_STATUS


def _return_last_response(retry_state: RetryCallState) -> httpx.Response:
    """Hand back the final 429 instead of raising RetryError."""
    logger.warning(
        "Still rate limited after %d attempts; giving up", retry_state.attempt_number
    )
    return retry_state.outcome.result()


class BackoffTransport:
    """
    POST transport with bounded retry on rate limiting.

    Usage:
        async with BackoffTransport(base_url="https://api.example.com") as transport:
            response = await transport.send("models/x:generateContent", {"contents": []})
            if response.is_success:
                ...
    """

    def __init__(
        self,
        base_url: str = "",
        client: httpx.AsyncClient | None = None,
        timeout: float = 120.0,
        max_retries: int = DEFAULT_MAX_RETRIES,
        backoff_base: float = 1.0,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        """
        Args:
            base_url: Prefix for relative endpoints.
            client: Shared httpx client. When omitted the transport creates
                and owns one.
            timeout: Request timeout in seconds (owned client only).
            max_retries: Retries after the first attempt (ceiling for 429s).
            backoff_base: Delay before the first retry; doubles each retry.
            sleep: Awaitable sleep, injectable for tests.
        """
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url,
            headers={"Content-Type": "application/json"},
            timeout=httpx.Timeout(timeout),
        )
        self._max_retries = max_retries
        self._backoff_base = backoff_base
        self._sleep = sleep

    @property
    def max_retries(self) -> int:
        return self._max_retries

    def _retrying(self) -> AsyncRetrying:
        # A fresh controller per logical call: the attempt count never carries over.
        return AsyncRetrying(
            stop=stop_after_attempt(self._max_retries + 1),
            wait=wait_exponential(multiplier=self._backoff_base, exp_base=2, min=0),
            retry=retry_if_result(_is_rate_limited),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            retry_error_callback=_return_last_response,
            sleep=self._sleep,
        )

    async def _post(
        self, endpoint: str, payload: dict[str, Any], headers: dict[str, str] | None
    ) -> httpx.Response:
        try:
            return await self._client.post(endpoint, json=payload, headers=headers)
        except httpx.HTTPError as e:
            raise TransportError(f"Request to {endpoint} failed: {e}", endpoint=endpoint) from e

    async def send(
        self,
        endpoint: str,
        payload: dict[str, Any],
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """
        POST payload as JSON, retrying on 429.

        Args:
            endpoint: URL or path relative to the base URL.
            payload: JSON body, resent unchanged on every attempt.
            headers: Extra per-request headers.

        Returns:
            The first non-429 response, or the last 429 once retries run out.

        Raises:
            TransportError: The request could not be delivered.
        """
        logger.debug("POST %s", endpoint)
        return await self._retrying()(self._post, endpoint, payload, headers)

    async def aclose(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> BackoffTransport:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
