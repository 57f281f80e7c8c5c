"""Siteinfo processors: software versions and usage statistics."""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from worldtidy.domain.events import SiteInfoFetched, Topic
from worldtidy.domain.pipeline import world
from worldtidy.domain.pipeline.claims import ensure_numeric_claim, ensure_string_claim

if TYPE_CHECKING:
    from worldtidy.domain.pipeline.services import PipelineServices

STATISTICS: Final[tuple[tuple[str, str, str], ...]] = (
    (world.PAGE_COUNT, "pages", "number of pages"),
    (world.EDIT_COUNT, "edits", "number of edits"),
    (world.USER_COUNT, "users", "number of users"),
    (world.ACTIVE_USER_COUNT, "active_users", "number of active users"),
)
"""Property, statistics field and wording used in edit summaries."""

SOFTWARE: Final[tuple[tuple[str, str, str], ...]] = (
    (world.PHP_VERSION, "php_version", "PHP version"),
    (world.DATABASE_TYPE, "db_type", "database type"),
    (world.DATABASE_VERSION, "db_version", "database version"),
)


def process_software(services: PipelineServices, payload: SiteInfoFetched) -> None:
    for property_id, attribute, name in SOFTWARE:
        value = getattr(payload.siteinfo, attribute)
        if not value:
            continue
        ensure_string_claim(
            services.reconciler,
            payload.context,
            property_id,
            value,
            summary=f"Set [[Property:{property_id}]] to {value} based on {name} from siteinfo",
        )


def process_statistics(services: PipelineServices, payload: SiteInfoFetched) -> None:
    statistics = payload.siteinfo.statistics
    for property_id, attribute, name in STATISTICS:
        value = getattr(statistics, attribute)
        if value is None:
            continue
        ensure_numeric_claim(
            services.reconciler,
            payload.context,
            property_id,
            value,
            summary=(
                f"Set [[Property:{property_id}]] to {value} based on {name} "
                "in the wiki (mediawiki statistics)"
            ),
        )


def register(services: PipelineServices) -> None:
    services.bus.register(
        Topic.DATA_SITEINFO,
        "processor:software",
        lambda payload: process_software(services, payload),
    )
    services.bus.register(
        Topic.DATA_SITEINFO,
        "processor:statistics",
        lambda payload: process_statistics(services, payload),
    )
