"""Fetch a site's main page and resolve its hosting details."""

from __future__ import annotations

import asyncio
import socket
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from worldtidy.adapters.http_resilience import ResilienceConfig, ResilientClient
from worldtidy.config.world import external_api_resilience
from worldtidy.domain.ports import PageFetch

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

log = getLogger(__name__)


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


async def reverse_dns(domain: str) -> tuple[str, ...]:
    """Resolve ``domain`` and return the reverse DNS names of its first address."""

    loop = asyncio.get_running_loop()
    try:
        infos = await loop.getaddrinfo(domain, None, type=socket.SOCK_STREAM)
    except OSError as exc:
        log.warning("DNS lookup for %s failed: %s", domain, exc)
        return ()
    if not infos:
        return ()
    address = str(infos[0][4][0])
    try:
        hostname, aliases, _ = await loop.run_in_executor(None, socket.gethostbyaddr, address)
    except OSError as exc:
        log.debug("No reverse DNS for %s (%s): %s", address, domain, exc)
        return ()
    names = (hostname, *aliases)
    log.debug("Reverse DNS for %s (%s): %s", address, domain, ", ".join(names))
    return names


@dataclass(slots=True)
class SiteProber:
    resilience: ResilienceConfig = field(default_factory=lambda: external_api_resilience("sites"))
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )
    resolver: Callable[[str], Awaitable[tuple[str, ...]]] = field(default=reverse_dns)
    _client: ResilientClient | None = field(default=None, init=False, repr=False)

    @property
    def http(self) -> ResilientClient:
        if self._client is None:
            self._client = self.client_factory(self.resilience)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def fetch_page(self, url: str) -> PageFetch:
        response = await self.http.get(url)
        return PageFetch(
            status=response.status_code,
            final_url=str(response.url),
            html=response.text,
        )

    async def final_url(self, url: str) -> str | None:
        """Where ``url`` ends up after redirects, or None if it does not load."""

        response = await self.http.get(url)
        if response.status_code != 200:
            return None
        return str(response.url)

    async def reverse_dns(self, domain: str) -> tuple[str, ...]:
        return await self.resolver(domain)
