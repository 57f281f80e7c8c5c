"""Wire stages, fetchers and processors together and run them to quiescence."""

from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from worldtidy.config.queues import (
    QUIESCENCE_INTERVAL_SECONDS,
    QUIESCENCE_REQUIRED_SAMPLES,
    QUIESCENCE_STATUS_EVERY_SAMPLES,
)
from worldtidy.domain.context import SiteContext
from worldtidy.domain.events import (
    ContextReady,
    SiteAlive,
    SiteDead,
    SiteDiscovered,
    Topic,
)
from worldtidy.domain.jobs import wait_for_quiescence

from .fetchers import register_fetchers
from .processors import register_processors
from .stages import build_context, check_liveness

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterable, Mapping

    from worldtidy.domain.context import DiscoveredSite

    from .services import PipelineServices

log = getLogger(__name__)


@dataclass(slots=True)
class PipelineReport:
    discovered: int = 0
    alive: int = 0
    dead: int = 0
    failed: int = 0
    samples: int = 0


def matches_filter(site: DiscoveredSite, site_filter: str | None) -> bool:
    """Case-insensitive regular expression match against the site URL or item id."""

    if not site_filter:
        return True
    pattern = re.compile(site_filter, re.IGNORECASE)
    return bool(pattern.search(site.url) or pattern.fullmatch(site.item))


@dataclass(slots=True)
class Pipeline:
    """Discover sites, then let events and jobs drive each one to completion.

    ``process_site`` runs liveness and context building inline, so a site only
    occupies one bulk slot until its context is announced. Everything after that
    is scheduled by fetchers and processors reacting to events.
    """

    services: PipelineServices
    world_domains: Mapping[str, str] = field(default_factory=dict)
    poll_interval: float = QUIESCENCE_INTERVAL_SECONDS
    required_samples: int = QUIESCENCE_REQUIRED_SAMPLES
    status_every: int = QUIESCENCE_STATUS_EVERY_SAMPLES
    sleep: Callable[[float], Awaitable[None]] = field(default=asyncio.sleep)
    report: PipelineReport = field(default_factory=PipelineReport)
    _registered: bool = field(default=False, init=False, repr=False)

    def register(self) -> None:
        if self._registered:
            return
        bus = self.services.bus
        bus.register(Topic.SITE_DISCOVERED, "pipeline:process-site", self._on_discovered)
        bus.register(Topic.SITE_DEAD, "pipeline:log-dead", self._on_dead)
        register_fetchers(self.services)
        register_processors(self.services)
        self._registered = True
        bus.log_registrations()

    def discover(self, sites: Iterable[DiscoveredSite], *, site_filter: str | None = None) -> int:
        """Announce every site passing ``site_filter``; returns how many were announced."""

        count = 0
        for site in sites:
            if not matches_filter(site, site_filter):
                continue
            self.services.bus.emit(Topic.SITE_DISCOVERED, SiteDiscovered(site))
            count += 1
        self.report.discovered += count
        log.info("Discovered %s sites", count)
        return count

    async def process_site(self, site: DiscoveredSite) -> SiteContext | None:
        services = self.services
        context = SiteContext.for_site(site, self.world_domains)
        liveness = await check_liveness(services.probe, context)
        if not liveness.alive:
            self.report.dead += 1
            services.bus.emit(Topic.SITE_DEAD, SiteDead(liveness.context, liveness.reason))
            return None

        self.report.alive += 1
        services.bus.emit(Topic.SITE_ALIVE, SiteAlive(liveness.context))
        try:
            context = await build_context(services.probe, services.store, liveness.context)
        except Exception:
            self.report.failed += 1
            log.exception("Could not build context for %s", liveness.context.label)
            return None
        services.bus.emit(Topic.CONTEXT_READY, ContextReady(context))
        return context

    async def run(
        self, sites: Iterable[DiscoveredSite], *, site_filter: str | None = None
    ) -> PipelineReport:
        self.register()
        self.discover(sites, site_filter=site_filter)
        self.report.samples = await wait_for_quiescence(
            self.services.queues,
            interval=self.poll_interval,
            required=self.required_samples,
            sleep=self.sleep,
            on_busy=self.services.queues.log_status,
            status_every=self.status_every,
        )
        log.info(
            "Pipeline finished: %s discovered, %s alive, %s dead, %s failed",
            self.report.discovered,
            self.report.alive,
            self.report.dead,
            self.report.failed,
        )
        return self.report

    def _on_discovered(self, payload: SiteDiscovered) -> None:
        site = payload.site
        self.services.queues.bulk.add(
            lambda: self.process_site(site), name=f"process-site:{site.item}"
        )

    def _on_dead(self, payload: SiteDead) -> None:
        log.info("%s is not alive: %s", payload.context.label, payload.reason)
