"""Entity count processors: number of properties and highest item id."""

from __future__ import annotations

from typing import TYPE_CHECKING

from worldtidy.domain.events import MaxItemIdFetched, PropertyCountFetched, Topic
from worldtidy.domain.pipeline import world
from worldtidy.domain.pipeline.claims import ensure_numeric_claim

if TYPE_CHECKING:
    from worldtidy.domain.pipeline.services import PipelineServices


def process_property_count(services: PipelineServices, payload: PropertyCountFetched) -> None:
    ensure_numeric_claim(
        services.reconciler,
        payload.context,
        world.PROPERTY_COUNT,
        payload.count,
        summary=(
            f"Set [[Property:{world.PROPERTY_COUNT}]] to {payload.count} "
            "based on the pages in the property namespace"
        ),
    )


def process_max_item_id(services: PipelineServices, payload: MaxItemIdFetched) -> None:
    ensure_numeric_claim(
        services.reconciler,
        payload.context,
        world.MAX_ITEM_ID,
        payload.max_item_id,
        summary=(
            f"Set [[Property:{world.MAX_ITEM_ID}]] to {payload.max_item_id} "
            "based on the most recently created item"
        ),
    )


def register(services: PipelineServices) -> None:
    services.bus.register(
        Topic.DATA_PROPERTY_COUNT,
        "processor:property-count",
        lambda payload: process_property_count(services, payload),
    )
    services.bus.register(
        Topic.DATA_MAX_ITEM_ID,
        "processor:max-item-id",
        lambda payload: process_max_item_id(services, payload),
    )
