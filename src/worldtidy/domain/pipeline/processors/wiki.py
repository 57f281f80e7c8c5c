"""Processors that work from the main page alone."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Final

from worldtidy.domain.events import ContextReady, Topic
from worldtidy.domain.pipeline import world
from worldtidy.domain.pipeline.claims import ensure_claim_exists, ensure_string_claim
from worldtidy.domain.values import EntityRef

if TYPE_CHECKING:
    from worldtidy.domain.pipeline.services import PipelineServices

log = getLogger(__name__)

MAIN_PAGE_PATH: Final[str] = "/wiki/Main_Page"
BAD_ALIAS_PREFIX: Final[str] = "Main Page - "


def process_activity_status(services: PipelineServices, payload: ContextReady) -> None:
    """Mark a responding wiki active unless some status has already been recorded."""

    ensure_claim_exists(
        services.reconciler,
        payload.context,
        world.ACTIVITY_STATUS,
        EntityRef(world.ACTIVE),
        summary=(
            f"Add [[Property:{world.ACTIVITY_STATUS}]] claim for [[Item:{world.ACTIVE}]] "
            "based on the fact it responds with a 200 of MediaWiki"
        ),
    )


def process_mediawiki_version(services: PipelineServices, payload: ContextReady) -> None:
    version = payload.context.meta.mw_version
    if not version:
        return
    ensure_string_claim(
        services.reconciler,
        payload.context,
        world.MEDIAWIKI_VERSION,
        version,
        summary=(
            f"Set [[Property:{world.MEDIAWIKI_VERSION}]] to {version}, "
            "extracted from home page meta data"
        ),
    )


def process_terms(services: PipelineServices, payload: ContextReady) -> None:
    """Drop ``Main Page - `` aliases and fill a missing description (English wikis only)."""

    context = payload.context
    record = context.record
    if context.meta.language != "en" or record is None:
        return

    for alias in record.aliases.get("en", ()):
        if alias.startswith(BAD_ALIAS_PREFIX):
            services.reconciler.remove_alias(
                context.item,
                "en",
                alias,
                summary=f'Remove en alias "{BAD_ALIAS_PREFIX}" as its a bad alias',
            )

    description = context.meta.description
    if description and not record.descriptions.get("en"):
        services.reconciler.set_description(
            context.item, "en", description, summary="Add en description from Main Page HTML"
        )


def process_url(services: PipelineServices, payload: ContextReady) -> None:
    """Shorten ``.../wiki/Main_Page`` URLs when the bare URL lands on the same page."""

    context = payload.context
    if MAIN_PAGE_PATH not in context.site:
        return
    shorter = context.site.removesuffix(MAIN_PAGE_PATH)
    if shorter == context.site:
        return

    async def normalize() -> None:
        try:
            landed = await services.probe.final_url(shorter)
        except Exception as exc:  # noqa: BLE001
            log.info("Could not load %s: %s", shorter, exc)
            return
        if landed is None or landed != context.final_url:
            log.info("The URL %s cannot be shortened to %s", context.site, shorter)
            return
        claims = context.record.claims_for(world.URL) if context.record is not None else ()
        if len(claims) != 1:
            log.warning("%s has %s %s claims, not shortening", context.item, len(claims), world.URL)
            return
        services.reconciler.ensure(
            context.item,
            world.URL,
            shorter,
            summary=f"Shorten Main_Page URL for consistency in [[Property:{world.URL}]] usage",
        )

    services.queues.bulk.add(normalize, name=f"normalize-url:{context.item}")


def register(services: PipelineServices) -> None:
    for name, process in (
        ("processor:activity-status", process_activity_status),
        ("processor:mediawiki-version", process_mediawiki_version),
        ("processor:labels-descriptions", process_terms),
        ("processor:url-normalizer", process_url),
    ):
        services.bus.register(
            Topic.CONTEXT_READY,
            name,
            lambda payload, process=process: process(services, payload),
        )
