from __future__ import annotations

import asyncio
import sys
from logging import getLogger
from typing import TYPE_CHECKING, Final, TypedDict, Unpack

import httpx
from aiolimiter import AsyncLimiter
from hishel import AsyncSqliteStorage, FilterPolicy
from hishel import Response as HishelCacheResponse
from hishel._policies import BaseFilter
from hishel.httpx import AsyncCacheClient
from httpx_retries import Retry, RetryTransport

from worldtidy.config.http_resilience import (
    CacheConfig,
    RateLimit,
    RateLimitBackoff,
    ResilienceConfig,
)
from worldtidy.config.storage import get_storage_config

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable
    from types import TracebackType

    from httpx._types import (
        CookieTypes,
        HeaderTypes,
        QueryParamTypes,
        RequestContent,
        RequestData,
        RequestExtensions,
        TimeoutTypes,
        URLTypes,
    )

log = getLogger(__name__)

__all__ = [
    "CacheConfig",
    "FetchTimeoutError",
    "FixedBackoffRetry",
    "RateLimit",
    "RateLimitBackoff",
    "ResilienceConfig",
    "ResilientClient",
]

UNLIMITED_ATTEMPTS: Final[int] = sys.maxsize
RETRYABLE_METHODS: Final[tuple[str, ...]] = (
    "DELETE",
    "GET",
    "HEAD",
    "OPTIONS",
    "PATCH",
    "POST",
    "PUT",
)


class FetchTimeoutError(httpx.TimeoutException):
    """Raised when a request exceeds the hard per-attempt timeout."""


class FixedBackoffRetry(Retry):
    """Retry throttled responses forever, waiting ``backoff_factor`` seconds each time."""

    def backoff_strategy(self) -> float:
        log.warning("Throttled by server, retrying in %ss", self.backoff_factor)
        return self.backoff_factor

    def is_retryable_exception(self, exception: httpx.HTTPError) -> bool:  # noqa: ARG002
        return False


class RequestOptions(TypedDict, total=False):
    content: RequestContent | None
    data: RequestData | None
    json: object
    params: QueryParamTypes | None
    headers: HeaderTypes | None
    cookies: CookieTypes | None
    timeout: TimeoutTypes
    extensions: RequestExtensions | None


class AsyncClientOptions(TypedDict, total=False):
    base_url: str
    timeout: TimeoutTypes
    headers: HeaderTypes
    follow_redirects: bool
    transport: httpx.AsyncBaseTransport


class ResilientClient:
    """``httpx.AsyncClient`` wrapper adding hard timeouts, 429 backoff and caching.

    Throttled responses are retried forever after a fixed sleep; every other
    status and transport error is left to the caller. With ``config.cache`` set,
    GET and HEAD responses (never throttled ones) are served from a hishel cache
    until they age out. Requests carrying their own headers always go to the
    network.
    """

    def __init__(
        self,
        config: ResilienceConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self._limiter: AsyncLimiter | None = (
            AsyncLimiter(config.ratelimit.max_calls, config.ratelimit.per_seconds)
            if config.ratelimit
            else None
        )
        self._cacheable_methods = config.cache.cacheable_methods if config.cache else frozenset()

        storage, policy = _build_cache_components(config.cache, config.backoff)

        self._client = httpx.AsyncClient(**self._client_options(transport))
        self._cached_client: httpx.AsyncClient | None = None
        if storage is not None:
            self._cached_client = AsyncCacheClient(
                **self._client_options(transport),
                storage=storage,
                policy=policy,
            )

    def _client_options(self, transport: httpx.AsyncBaseTransport | None) -> AsyncClientOptions:
        config = self.config
        retry_transport = RetryTransport(
            transport=_HardTimeoutTransport(
                transport or httpx.AsyncHTTPTransport(),
                name=config.name,
                timeout=config.timeout_seconds,
            ),
            retry=_build_retry(config.backoff),
        )
        client_kwargs: AsyncClientOptions = {
            "timeout": config.timeout_seconds,
            "follow_redirects": config.follow_redirects,
            "transport": retry_transport,
        }
        if config.base_url is not None:
            client_kwargs["base_url"] = config.base_url
        if config.default_headers:
            client_kwargs["headers"] = dict(config.default_headers)
        return client_kwargs

    @property
    def cached(self) -> bool:
        return self._cached_client is not None

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
        if self._cached_client is not None:
            await self._cached_client.aclose()

    async def request(
        self,
        method: str,
        url: URLTypes,
        **kwargs: Unpack[RequestOptions],
    ) -> httpx.Response:
        client = self._client_for(method, kwargs)

        async def do_request() -> httpx.Response:
            return await client.request(method, url, **kwargs)

        return await self._send(do_request)

    async def get(
        self,
        url: URLTypes,
        **kwargs: Unpack[RequestOptions],
    ) -> httpx.Response:
        return await self.request("GET", url, **kwargs)

    async def post(
        self,
        url: URLTypes,
        **kwargs: Unpack[RequestOptions],
    ) -> httpx.Response:
        return await self.request("POST", url, **kwargs)

    def _client_for(self, method: str, options: RequestOptions) -> httpx.AsyncClient:
        if self._cached_client is None or options.get("headers"):
            return self._client
        if method.upper() not in self._cacheable_methods:
            return self._client
        return self._cached_client

    async def _send(self, func: Callable[[], Awaitable[httpx.Response]]) -> httpx.Response:
        if self._limiter is None:
            return await func()
        async with self._limiter:
            return await func()


class _HardTimeoutTransport(httpx.AsyncBaseTransport):
    """Cancel a single attempt that has not answered within ``timeout`` seconds."""

    def __init__(self, transport: httpx.AsyncBaseTransport, *, name: str, timeout: float) -> None:
        self._transport = transport
        self._name = name
        self._timeout = timeout

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        try:
            async with asyncio.timeout(self._timeout):
                return await self._transport.handle_async_request(request)
        except TimeoutError as exc:
            msg = f"{self._name}: no response from {request.url} within {self._timeout}s"
            raise FetchTimeoutError(msg, request=request) from exc
        except httpx.TimeoutException as exc:
            msg = f"{self._name}: {request.url} timed out ({type(exc).__name__})"
            raise FetchTimeoutError(msg, request=request) from exc

    async def aclose(self) -> None:
        await self._transport.aclose()


class _NotThrottledFilter(BaseFilter[HishelCacheResponse]):
    """Hishel response filter that refuses to store throttled responses."""

    def __init__(self, status_codes: frozenset[int]) -> None:
        self._status_codes = status_codes

    def needs_body(self) -> bool:
        return False

    def apply(self, item: HishelCacheResponse, body: bytes | None) -> bool:  # noqa: ARG002
        return item.status_code not in self._status_codes


def _build_retry(backoff: RateLimitBackoff) -> Retry:
    return FixedBackoffRetry(
        total=UNLIMITED_ATTEMPTS,
        backoff_factor=backoff.seconds,
        max_backoff_wait=backoff.seconds,
        respect_retry_after_header=False,
        allowed_methods=RETRYABLE_METHODS,
        status_forcelist=tuple(backoff.status_codes),
        retry_on_exceptions=(),
        backoff_jitter=0.0,
    )


def _build_cache_components(
    config: CacheConfig | None,
    backoff: RateLimitBackoff,
) -> tuple[AsyncSqliteStorage | None, FilterPolicy | None]:
    if config is None or not config.enabled:
        return None, None

    if config.backend not in {"sqlite", "memory"}:
        msg = f"Unsupported cache backend: {config.backend}"
        raise ValueError(msg)

    if config.backend == "sqlite":
        database_path = config.sqlite_path or str(get_storage_config().http_cache_path())
    else:
        database_path = ":memory:"
    storage = AsyncSqliteStorage(
        database_path=database_path,
        default_ttl=config.default_ttl_seconds,
        refresh_ttl_on_access=config.refresh_ttl_on_access,
    )
    policy = FilterPolicy(response_filters=[_NotThrottledFilter(backoff.status_codes)])
    return storage, policy
