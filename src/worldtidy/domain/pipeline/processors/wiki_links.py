"""Links between wikis, derived from the external links each wiki uses."""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from worldtidy.domain.events import ExternalLinksFetched, Topic
from worldtidy.domain.pipeline import world
from worldtidy.domain.pipeline.claims import ensure_claim_includes
from worldtidy.domain.values import EntityRef

if TYPE_CHECKING:
    from worldtidy.domain.pipeline.services import PipelineServices

SKIPPED_SOURCE_ITEMS: Final[frozenset[str]] = frozenset(
    {world.WIKIBASE_WORLD, world.WIKIBASE_REGISTRY}
)


def linked_items(payload: ExternalLinksFetched) -> list[str]:
    """Items of known wikis among the linked domains, in a stable order."""

    context = payload.context
    if context.item in SKIPPED_SOURCE_ITEMS:
        return []
    items = {
        context.world_domains[domain]
        for domain in payload.links.domains
        if domain in context.world_domains
    }
    items.discard(context.item)
    return sorted(items, key=lambda item: EntityRef(item).numeric_id)


def process(services: PipelineServices, payload: ExternalLinksFetched) -> None:
    context = payload.context
    for target in linked_items(payload):
        ensure_claim_includes(
            services.reconciler,
            context,
            world.LINKS_TO,
            EntityRef(target),
            summary=(
                f'Add [[Property:{world.LINKS_TO}]] via "External Identifiers" and "URLs" '
                f"to [[Item:{target}]]"
            ),
        )
        ensure_claim_includes(
            services.reconciler,
            context,
            world.LINKED_FROM,
            EntityRef(context.item),
            target_id=target,
            summary=(
                f'Add [[Property:{world.LINKED_FROM}]] via "External Identifiers" and "URLs" '
                f"from [[Item:{context.item}]]"
            ),
        )


def register(services: PipelineServices) -> None:
    services.bus.register(
        Topic.DATA_EXTERNAL_LINKS,
        "processor:wiki-links",
        lambda payload: process(services, payload),
    )
