"""Configuration types for resilient HTTP clients."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Final, Literal

if TYPE_CHECKING:
    from collections.abc import Mapping

DEFAULT_TIMEOUT_SECONDS: Final[float] = 100.0
DEFAULT_BACKOFF_SECONDS: Final[float] = 10.0
DEFAULT_CACHE_TTL_SECONDS: Final[float] = 30 * 60.0
USER_AGENT: Final[str] = "worldtidy (https://wikibase.world/wiki/User:Addbot)"


@dataclass(slots=True, frozen=True)
class RateLimitBackoff:
    """Fixed sleep applied before re-sending a request the server throttled."""

    seconds: float = DEFAULT_BACKOFF_SECONDS
    status_codes: frozenset[int] = field(default_factory=lambda: frozenset({429}))


@dataclass(slots=True, frozen=True)
class RateLimit:
    max_calls: int
    per_seconds: float


@dataclass(slots=True, frozen=True)
class CacheConfig:
    enabled: bool = True
    backend: Literal["sqlite", "memory"] = "sqlite"
    sqlite_path: str | None = None
    default_ttl_seconds: float | None = DEFAULT_CACHE_TTL_SECONDS
    refresh_ttl_on_access: bool = False
    cacheable_methods: frozenset[str] = field(default_factory=lambda: frozenset({"GET", "HEAD"}))


@dataclass(slots=True, frozen=True)
class ResilienceConfig:
    name: str
    base_url: str | None = None
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    backoff: RateLimitBackoff = field(default_factory=RateLimitBackoff)
    ratelimit: RateLimit | None = None
    cache: CacheConfig | None = None
    default_headers: Mapping[str, str] | None = field(
        default_factory=lambda: {"User-Agent": USER_AGENT}
    )
    follow_redirects: bool = True

    def cached(self, cache: CacheConfig | None = None) -> ResilienceConfig:
        """Return the cached variant of this configuration."""

        return replace(self, cache=cache or CacheConfig())

    def uncached(self) -> ResilienceConfig:
        return replace(self, cache=None)
