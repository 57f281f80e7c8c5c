"""Fixed-backoff retry for writes throttled by the record store."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING, TypeVar

from worldtidy.config.http_resilience import DEFAULT_BACKOFF_SECONDS
from worldtidy.domain.ports import TooManyRequestsError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

log = getLogger(__name__)

T = TypeVar("T")


async def retry_when_throttled(
    operation: Callable[[], Awaitable[T]],
    *,
    description: str,
    backoff_seconds: float = DEFAULT_BACKOFF_SECONDS,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Run ``operation`` until it is no longer rejected with :class:`TooManyRequestsError`."""

    attempt = 1
    while True:
        try:
            return await operation()
        except TooManyRequestsError as exc:
            log.warning(
                "%s throttled (%s), retrying in %ss (attempt %s)",
                description,
                exc,
                backoff_seconds,
                attempt,
            )
        await sleep(backoff_seconds)
        attempt += 1
