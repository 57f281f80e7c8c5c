"""Discover registered wikis through the world SPARQL endpoint."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Final

from worldtidy.adapters.http_resilience import ResilienceConfig, ResilientClient
from worldtidy.config.world import WorldConfig
from worldtidy.domain.context import DiscoveredSite

from .schema import SparqlResponse

if TYPE_CHECKING:
    from collections.abc import Callable

log = getLogger(__name__)

_PREFIXES: Final[str] = """PREFIX wdt: <https://wikibase.world/prop/direct/>
PREFIX wd: <https://wikibase.world/entity/>
"""

ACTIVE_WIKIS_QUERY: Final[str] = (
    _PREFIXES
    + """SELECT ?item ?site WHERE {
  ?item wdt:P3 wd:Q10.
  ?item wdt:P1 ?site.
  FILTER NOT EXISTS { ?item wdt:P13 wd:Q57 }
  FILTER NOT EXISTS { ?item wdt:P13 wd:Q72 }
}"""
)
"""Wikis with a URL, minus the permanently (Q57) and indefinitely (Q72) offline ones."""

ALL_WIKIS_QUERY: Final[str] = (
    _PREFIXES
    + """SELECT ?item ?site WHERE {
  ?item wdt:P3 wd:Q10.
  ?item wdt:P1 ?site.
}"""
)


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


class SparqlAPIError(RuntimeError):
    """Raised when the query service answers with something other than results."""


def _entity_id(uri: str) -> str:
    return uri.rstrip("/").rsplit("/", 1)[-1]


def sites_from_response(response: SparqlResponse) -> list[DiscoveredSite]:
    sites: list[DiscoveredSite] = []
    seen: set[tuple[str, str]] = set()
    for row in response.results.bindings:
        item = row.get("item")
        site = row.get("site")
        if item is None or site is None:
            continue
        key = (_entity_id(item.value), site.value)
        if key in seen:
            continue
        seen.add(key)
        sites.append(DiscoveredSite(item=key[0], url=key[1]))
    return sites


@dataclass(slots=True)
class SparqlDiscovery:
    config: WorldConfig = field(default_factory=WorldConfig)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )

    async def active_sites(self) -> list[DiscoveredSite]:
        return await self._query(ACTIVE_WIKIS_QUERY)

    async def all_sites(self) -> list[DiscoveredSite]:
        return await self._query(ALL_WIKIS_QUERY)

    async def _query(self, query: str) -> list[DiscoveredSite]:
        async with self.client_factory(self.config.resilience) as client:
            response = await client.get(
                self.config.sparql_endpoint,
                params={"query": query, "format": "json"},
                headers={"Accept": "application/sparql-results+json"},
            )
        response.raise_for_status()
        try:
            payload = SparqlResponse.model_validate(response.json())
        except ValueError as exc:
            raise SparqlAPIError(f"Unexpected SPARQL response from {response.url}") from exc
        sites = sites_from_response(payload)
        log.info("SPARQL returned %s wikis", len(sites))
        return sites
