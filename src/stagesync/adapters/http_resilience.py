"""Async HTTP client with retries and rate limiting."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, TypedDict, Unpack

import httpx
from aiolimiter import AsyncLimiter
from httpx_retries import Retry, RetryTransport

if TYPE_CHECKING:
    from types import TracebackType

    from httpx._client import UseClientDefault
    from httpx._types import HeaderTypes, RequestExtensions, TimeoutTypes, URLTypes

    from stagesync.config.http_resilience import ResilienceConfig, RetryPolicy


class RequestOptions(TypedDict, total=False):
    headers: HeaderTypes | None
    follow_redirects: bool | UseClientDefault
    timeout: TimeoutTypes | UseClientDefault
    extensions: RequestExtensions | None


class AsyncClientOptions(TypedDict, total=False):
    timeout: TimeoutTypes
    headers: HeaderTypes
    transport: httpx.AsyncBaseTransport
    follow_redirects: bool


def build_retry(policy: RetryPolicy) -> Retry:
    return Retry(
        total=policy.total,
        backoff_factor=policy.backoff_factor,
        max_backoff_wait=policy.max_backoff_wait,
        respect_retry_after_header=policy.respect_retry_after_header,
        allowed_methods=tuple(policy.allowed_methods),
        status_forcelist=tuple(policy.status_forcelist),
        retry_on_exceptions=policy.retry_on_exceptions,
        backoff_jitter=policy.backoff_jitter,
    )


class ResilientClient:
    """``httpx.AsyncClient`` behind a retrying transport and an optional limiter."""

    def __init__(self, config: ResilienceConfig) -> None:
        self.config = config
        self._limiter: AsyncLimiter | None = (
            AsyncLimiter(config.ratelimit.max_calls, config.ratelimit.per_seconds)
            if config.ratelimit
            else None
        )

        client_kwargs: AsyncClientOptions = {
            "timeout": config.timeout_seconds,
            "transport": RetryTransport(retry=build_retry(config.retry)),
            "follow_redirects": config.follow_redirects,
            "headers": {"User-Agent": config.user_agent},
        }
        self._client = httpx.AsyncClient(**client_kwargs)

    async def __aenter__(self) -> ResilientClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request(
        self,
        method: str,
        url: URLTypes,
        *,
        deadline: float | None = None,
        **kwargs: Unpack[RequestOptions],
    ) -> httpx.Response:
        """Send one request.

        ``deadline`` bounds the request and its retries in seconds. The clock
        starts once the rate limiter lets the request through, so time spent
        queued behind other requests does not count against it.
        """

        async def do_request() -> httpx.Response:
            return await self._client.request(method, url, **kwargs)

        return await self._send(do_request, deadline)

    async def head(
        self,
        url: URLTypes,
        *,
        deadline: float | None = None,
        **kwargs: Unpack[RequestOptions],
    ) -> httpx.Response:
        return await self.request("HEAD", url, deadline=deadline, **kwargs)

    async def _send(
        self,
        func: Callable[[], Awaitable[httpx.Response]],
        deadline: float | None,
    ) -> httpx.Response:
        if self._limiter is None:
            return await _within(func(), deadline)
        async with self._limiter:
            return await _within(func(), deadline)


async def _within(call: Awaitable[httpx.Response], deadline: float | None) -> httpx.Response:
    if deadline is None:
        return await call
    return await asyncio.wait_for(call, deadline)
