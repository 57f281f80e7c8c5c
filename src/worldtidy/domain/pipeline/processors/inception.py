"""Inception processor: the day of the wiki's first log event."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from worldtidy.domain.events import InceptionFetched, Topic
from worldtidy.domain.pipeline import world
from worldtidy.domain.values import TimeValue, values_equal

if TYPE_CHECKING:
    from worldtidy.domain.pipeline.services import PipelineServices

log = getLogger(__name__)


def process(services: PipelineServices, payload: InceptionFetched) -> None:
    """Add the inception with its source, or cite the source on a matching claim.

    An existing inception with a different date is left alone; it may have been
    set by hand from better knowledge than the log.
    """

    context = payload.context
    inception = TimeValue(payload.inception.day)
    references = {
        world.REFERENCE_URL: (payload.inception.source_url,),
        world.RETRIEVED: (TimeValue(services.today()),),
    }
    claims = context.record.claims_for(world.INCEPTION) if context.record is not None else ()

    if not claims:
        services.reconciler.ensure(
            context.item,
            world.INCEPTION,
            inception,
            references=references,
            summary=(
                f"Add [[Property:{world.INCEPTION}]] claim for {inception} "
                "based on the first log entry of the wiki"
            ),
        )
        return

    if len(claims) != 1 or not values_equal(claims[0].value, inception):
        log.debug("%s already has a different inception, leaving it", context.label)
        return
    if claims[0].references:
        return
    services.reconciler.ensure(
        context.item,
        world.INCEPTION,
        inception,
        references=references,
        summary=(
            f"Add references to [[Property:{world.INCEPTION}]] claim for {inception} "
            "based on the first log entry of the wiki"
        ),
    )


def register(services: PipelineServices) -> None:
    services.bus.register(
        Topic.DATA_INCEPTION, "processor:inception", lambda payload: process(services, payload)
    )
