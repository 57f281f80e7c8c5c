"""Fact fetchers: each listens for a context, fetches one kind of fact in a job
and announces it on its own ``DATA_*`` topic.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Final

from worldtidy.domain.events import (
    ContextReady,
    ExternalLinksFetched,
    InceptionFetched,
    MaxItemIdFetched,
    PropertyCountFetched,
    SiteInfoFetched,
    Topic,
)

from .world import IGNORED_LINK_DOMAINS

if TYPE_CHECKING:
    from .services import PipelineServices

log = getLogger(__name__)

PROPERTY_CONTENT_MODEL: Final[str] = "wikibase-property"
ITEM_CONTENT_MODEL: Final[str] = "wikibase-item"


def register_siteinfo(services: PipelineServices) -> None:
    def on_context(payload: ContextReady) -> None:
        context = payload.context
        action_api = context.action_api
        if action_api is None:
            return

        async def fetch() -> None:
            siteinfo = await services.data.siteinfo(action_api)
            if siteinfo is None:
                log.info("No usable siteinfo from %s", context.label)
                return
            services.bus.emit(Topic.DATA_SITEINFO, SiteInfoFetched(context, siteinfo))

        services.queues.bulk.add(fetch, name=f"fetch:siteinfo:{context.item}")

    services.bus.register(Topic.CONTEXT_READY, "fetcher:siteinfo", on_context)


def register_inception(services: PipelineServices) -> None:
    def on_context(payload: ContextReady) -> None:
        context = payload.context
        action_api = context.action_api
        if action_api is None:
            return

        async def fetch() -> None:
            inception = await services.data.inception(action_api)
            if inception is not None:
                services.bus.emit(Topic.DATA_INCEPTION, InceptionFetched(context, inception))

        services.queues.bulk.add(fetch, name=f"fetch:inception:{context.item}")

    services.bus.register(Topic.CONTEXT_READY, "fetcher:inception", on_context)


def register_external_links(services: PipelineServices) -> None:
    def on_context(payload: ContextReady) -> None:
        context = payload.context
        action_api = context.action_api
        if action_api is None or context.domain in IGNORED_LINK_DOMAINS:
            return

        async def fetch() -> None:
            links = await services.data.external_link_domains(action_api)
            if links.domains:
                services.bus.emit(Topic.DATA_EXTERNAL_LINKS, ExternalLinksFetched(context, links))

        services.queues.moderate.add(fetch, name=f"fetch:external-links:{context.item}")

    services.bus.register(Topic.CONTEXT_READY, "fetcher:external-links", on_context)


def register_entity_counts(services: PipelineServices) -> None:
    """Property count and highest item id, located through the siteinfo namespaces."""

    def on_siteinfo(payload: SiteInfoFetched) -> None:
        context = payload.context
        action_api = context.action_api
        if action_api is None:
            return

        property_namespaces = payload.siteinfo.namespaces_with_model(PROPERTY_CONTENT_MODEL)
        if property_namespaces:
            namespace = property_namespaces[0]

            async def fetch_property_count() -> None:
                count = await services.data.page_count(action_api, namespace)
                if count is not None:
                    services.bus.emit(
                        Topic.DATA_PROPERTY_COUNT, PropertyCountFetched(context, count)
                    )

            services.queues.bulk.add(
                fetch_property_count, name=f"fetch:property-count:{context.item}"
            )

        item_namespaces = payload.siteinfo.namespaces_with_model(ITEM_CONTENT_MODEL)
        if item_namespaces:
            item_namespace = item_namespaces[0]

            async def fetch_max_item_id() -> None:
                max_id = await services.data.max_entity_id(action_api, item_namespace)
                if max_id is not None:
                    services.bus.emit(Topic.DATA_MAX_ITEM_ID, MaxItemIdFetched(context, max_id))

            services.queues.bulk.add(fetch_max_item_id, name=f"fetch:max-item-id:{context.item}")

    services.bus.register(Topic.DATA_SITEINFO, "fetcher:entity-counts", on_siteinfo)


def register_fetchers(services: PipelineServices) -> None:
    register_siteinfo(services)
    register_inception(services)
    register_external_links(services)
    register_entity_counts(services)
