"""Application orchestration entry points."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

from worldtidy.adapters.site import MediaWikiClient, SiteProber
from worldtidy.adapters.sparql import SparqlDiscovery
from worldtidy.adapters.wikibase import DryRunRecordStore, WikibaseClient
from worldtidy.config import get_queue_config, get_world_config
from worldtidy.domain.events import EventBus
from worldtidy.domain.jobs import JobQueues
from worldtidy.domain.pipeline import Pipeline, PipelineReport, PipelineServices
from worldtidy.domain.reconciliation import ClaimReconciler

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from worldtidy.config import QueueConfig, WorldConfig
    from worldtidy.domain.context import DiscoveredSite
    from worldtidy.domain.ports import RecordStore

log = getLogger(__name__)


def world_domain_index(sites: Iterable[DiscoveredSite]) -> dict[str, str]:
    """Map each known wiki domain to its item; the first item listed for a domain wins."""

    index: dict[str, str] = {}
    for site in sites:
        if site.domain:
            index.setdefault(site.domain, site.item)
    return index


async def tidy_world_async(
    *,
    site_filter: str | None = None,
    dry_run: bool = False,
    world_config: WorldConfig | None = None,
    queue_config: QueueConfig | None = None,
    sites: Iterable[DiscoveredSite] | None = None,
    world_domains: Mapping[str, str] | None = None,
) -> PipelineReport:
    """Discover the active wikis on the world instance and tidy their items."""

    config = world_config or get_world_config(require_credentials=not dry_run)
    queues = JobQueues.from_config(queue_config or get_queue_config())
    wikibase = WikibaseClient(config)
    discovery = SparqlDiscovery(config)
    probe = SiteProber()
    data = MediaWikiClient()
    dry_store = DryRunRecordStore(wikibase) if dry_run else None
    store: RecordStore = dry_store if dry_store is not None else wikibase

    log.info(
        "Starting tidy run: instance=%s, filter=%s, dry_run=%s, queues=%s/%s/%s",
        config.instance,
        site_filter,
        dry_run,
        queues.bulk.concurrency,
        queues.moderate.concurrency,
        queues.serial.concurrency,
    )
    try:
        if sites is None:
            sites = await discovery.active_sites()
        if world_domains is None:
            world_domains = world_domain_index(await discovery.all_sites())

        bus = EventBus()
        services = PipelineServices(
            bus=bus,
            queues=queues,
            reconciler=ClaimReconciler(store, queues.serial),
            store=store,
            probe=probe,
            data=data,
        )
        report = await Pipeline(services, world_domains=world_domains).run(
            sites, site_filter=site_filter
        )
    finally:
        await asyncio.gather(wikibase.aclose(), probe.aclose(), data.aclose())

    if dry_store is not None:
        log.info("Dry run finished, %s edits were skipped", len(dry_store.writes))
    return report


def tidy_world(
    *,
    site_filter: str | None = None,
    dry_run: bool = False,
) -> PipelineReport:
    return asyncio.run(tidy_world_async(site_filter=site_filter, dry_run=dry_run))
