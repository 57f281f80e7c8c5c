"""Per-site context threaded through the pipeline stages.

Each stage returns an updated copy; a context is never modified after it has
been handed to another stage.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import TYPE_CHECKING
from urllib.parse import urlsplit

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .records import Record


@dataclass(frozen=True, slots=True)
class DiscoveredSite:
    item: str
    url: str

    @property
    def domain(self) -> str:
        return (urlsplit(self.url).hostname or "").lower()


@dataclass(frozen=True, slots=True)
class PageMeta:
    title: str | None = None
    description: str | None = None
    generator: str | None = None
    mw_version: str | None = None
    language: str = "en"


@dataclass(frozen=True, slots=True)
class SiteContext:
    item: str
    site: str
    domain: str
    status: int | None = None
    final_url: str | None = None
    html: str | None = field(default=None, repr=False)
    action_api: str | None = None
    rest_api: str | None = None
    meta: PageMeta = field(default_factory=PageMeta)
    reverse_dns: tuple[str, ...] = ()
    record: Record | None = field(default=None, repr=False)
    world_domains: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType({}), repr=False
    )
    """Domain of every wiki known to the world, mapped to its item id."""

    @classmethod
    def for_site(
        cls, site: DiscoveredSite, world_domains: Mapping[str, str] | None = None
    ) -> SiteContext:
        return cls(
            item=site.item,
            site=site.url,
            domain=site.domain,
            world_domains=MappingProxyType(dict(world_domains or {})),
        )

    def with_page(self, *, status: int, final_url: str, html: str) -> SiteContext:
        return replace(self, status=status, final_url=final_url, html=html)

    def with_endpoints(self, *, action_api: str | None, rest_api: str | None) -> SiteContext:
        return replace(self, action_api=action_api, rest_api=rest_api)

    def with_meta(self, meta: PageMeta) -> SiteContext:
        return replace(self, meta=meta)

    def with_reverse_dns(self, names: tuple[str, ...]) -> SiteContext:
        return replace(self, reverse_dns=names)

    def with_record(self, record: Record) -> SiteContext:
        return replace(self, record=record)

    @property
    def label(self) -> str:
        return f"{self.item} ({self.site})"
