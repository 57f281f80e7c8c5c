"""Read-only lookups against a discovered wiki's Action API."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Final
from urllib.parse import urlsplit

import httpx
from pydantic import ValidationError

from worldtidy.adapters.http_resilience import ResilienceConfig, ResilientClient
from worldtidy.config.world import external_api_resilience
from worldtidy.domain.facts import ExternalLinks, Inception, SiteInfo, SiteStatistics
from worldtidy.domain.pipeline.world import IGNORED_LINK_DOMAINS
from worldtidy.domain.values import TimeValue

from .schema import (
    AllPagesResponse,
    ExtUrlUsageResponse,
    LogEventsResponse,
    SiteInfoResponse,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

log = getLogger(__name__)

PAGE_COUNT_LIMIT: Final[int] = 20 * 500
EXTERNAL_LINK_MAX_REQUESTS: Final[int] = 350
ENTITY_NAMESPACES: Final[tuple[int, ...]] = (120, 122)
_DIGITS = re.compile(r"\d+")


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


def siteinfo_from_response(response: SiteInfoResponse) -> SiteInfo:
    query = response.query
    stats = query.statistics
    return SiteInfo(
        generator=query.general.generator,
        php_version=query.general.phpversion,
        db_type=query.general.dbtype,
        db_version=query.general.dbversion,
        language=query.general.lang,
        statistics=SiteStatistics(
            pages=stats.pages,
            edits=stats.edits,
            users=stats.users,
            active_users=stats.activeusers,
        ),
        content_models={
            ns.id: ns.defaultcontentmodel
            for ns in query.namespaces.values()
            if ns.defaultcontentmodel
        },
    )


def link_domain(url: str) -> str | None:
    if url.startswith("//"):
        url = f"https:{url}"
    try:
        return urlsplit(url).hostname
    except ValueError:
        return None


@dataclass(slots=True)
class MediaWikiClient:
    """Fetch siteinfo, inception, entity counts and external links from a wiki.

    Each method returns None (or an empty result) when the wiki does not answer
    in the expected shape; transport errors propagate to the calling job.
    """

    resilience: ResilienceConfig = field(
        default_factory=lambda: external_api_resilience("mediawiki")
    )
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )
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

    async def siteinfo(self, action_api: str) -> SiteInfo | None:
        payload = await self._query(
            action_api,
            {"action": "query", "meta": "siteinfo", "siprop": "general|namespaces|statistics"},
        )
        try:
            return siteinfo_from_response(SiteInfoResponse.model_validate(payload))
        except ValidationError:
            log.warning("Unexpected siteinfo payload from %s", action_api)
            return None

    def inception_url(self, action_api: str) -> str:
        params = {"action": "query", "list": "logevents", "ledir": "newer", "lelimit": "1"}
        return str(httpx.URL(action_api, params={**params, "format": "json"}))

    async def inception(self, action_api: str) -> Inception | None:
        """Date of the first log event, used as the wiki's inception."""

        url = self.inception_url(action_api)
        payload = await self._get_json(url)
        try:
            events = LogEventsResponse.model_validate(payload).query.logevents
        except ValidationError:
            return None
        if len(events) != 1 or not events[0].timestamp:
            return None
        day = TimeValue.parse(events[0].timestamp.split("T")[0]).day
        return Inception(day=day, source_url=url)

    async def page_count(
        self, action_api: str, namespace: int, *, limit: int = PAGE_COUNT_LIMIT
    ) -> int | None:
        """Count pages in ``namespace``; None once the count passes ``limit``."""

        count = 0
        cont: str | None = None
        while True:
            params = {
                "action": "query",
                "list": "allpages",
                "apnamespace": str(namespace),
                "aplimit": "500",
            }
            if cont:
                params["apcontinue"] = cont
            payload = await self._query(action_api, params)
            try:
                response = AllPagesResponse.model_validate(payload)
            except ValidationError:
                return None
            if response.warnings:
                log.warning("allpages warnings from %s: %s", action_api, response.warnings)
                return None
            count += len(response.query.allpages)
            if count > limit:
                log.info("More than %s pages in namespace %s of %s", limit, namespace, action_api)
                return None
            cont = response.continue_.apcontinue if response.continue_ else None
            if not cont:
                return count

    async def max_entity_id(self, action_api: str, namespace: int) -> int | None:
        """Numeric id of the most recently created entity in ``namespace``."""

        payload = await self._query(
            action_api,
            {
                "action": "query",
                "list": "logevents",
                "lenamespace": str(namespace),
                "letype": "create",
                "lelimit": "1",
                "leprop": "title",
            },
        )
        try:
            events = LogEventsResponse.model_validate(payload).query.logevents
        except ValidationError:
            return None
        if not events or not events[0].title:
            return None
        title = events[0].title.split(":", 1)[-1]
        match = _DIGITS.search(title)
        return int(match.group(0)) if match else None

    async def external_link_domains(
        self,
        action_api: str,
        *,
        namespaces: Iterable[int] = ENTITY_NAMESPACES,
        max_requests: int = EXTERNAL_LINK_MAX_REQUESTS,
    ) -> ExternalLinks:
        domains: set[str] = set()
        namespace_param = "|".join(str(ns) for ns in namespaces)
        cont: str | None = None
        requests = 0
        while True:
            requests += 1
            params = {
                "action": "query",
                "list": "exturlusage",
                "euprotocol": "https",
                "eulimit": "500",
                "eunamespace": namespace_param,
                "euprop": "url",
            }
            if cont:
                params["eucontinue"] = cont
            payload = await self._query(action_api, params)
            try:
                response = ExtUrlUsageResponse.model_validate(payload)
            except ValidationError:
                break
            for link in response.query.exturlusage:
                domain = link_domain(link.url)
                if domain and domain not in IGNORED_LINK_DOMAINS:
                    domains.add(domain)
            cont = response.continue_.eucontinue if response.continue_ else None
            if not cont:
                break
            if requests >= max_requests:
                log.warning(
                    "Stopped collecting external links from %s after %s requests",
                    action_api,
                    requests,
                )
                return ExternalLinks(domains=frozenset(domains), truncated=True)
        return ExternalLinks(domains=frozenset(domains))

    async def _query(self, action_api: str, params: dict[str, str]) -> object:
        return await self._get_json(action_api, params={**params, "format": "json"})

    async def _get_json(self, url: str, params: dict[str, str] | None = None) -> object:
        response = await self.http.get(url, params=params)
        response.raise_for_status()
        try:
            return response.json()
        except ValueError:
            log.warning("Non-JSON response from %s", response.url)
            return None
