from __future__ import annotations

import asyncio
from datetime import date

from tests.helpers.pipeline import drain, make_context, make_services
from tests.helpers.world import FakeDataSource, make_record
from worldtidy.domain.events import ContextReady, Topic
from worldtidy.domain.facts import ExternalLinks, Inception, SiteInfo
from worldtidy.domain.pipeline import PipelineServices
from worldtidy.domain.pipeline.fetchers import register_fetchers

API = "https://wiki.example/w/api.php"


def _capture(
    services: PipelineServices, topics: list[Topic]
) -> list[tuple[Topic, object]]:
    seen: list[tuple[Topic, object]] = []
    for topic in topics:
        services.bus.register(
            topic, f"capture:{topic}", lambda payload, topic=topic: seen.append((topic, payload))
        )
    return seen


def test_fetchers_announce_every_fact() -> None:
    data = FakeDataSource(
        siteinfos={
            API: SiteInfo(
                php_version="8.1.2",
                content_models={120: "wikibase-item", 122: "wikibase-property"},
            )
        },
        inceptions={API: Inception(day=date(2019, 3, 4), source_url="https://wiki.example/log")},
        page_counts={(API, 122): 37},
        max_ids={(API, 120): 4321},
        links={API: ExternalLinks(domains=frozenset({"other.example"}))},
    )
    services = make_services(data=data)
    register_fetchers(services)
    seen = _capture(
        services,
        [
            Topic.DATA_SITEINFO,
            Topic.DATA_INCEPTION,
            Topic.DATA_PROPERTY_COUNT,
            Topic.DATA_MAX_ITEM_ID,
            Topic.DATA_EXTERNAL_LINKS,
        ],
    )

    async def scenario() -> None:
        services.bus.emit(Topic.CONTEXT_READY, ContextReady(make_context(make_record("Q100"))))
        await drain(services)

    asyncio.run(scenario())

    by_topic = dict(seen)
    assert set(by_topic) == {
        Topic.DATA_SITEINFO,
        Topic.DATA_INCEPTION,
        Topic.DATA_PROPERTY_COUNT,
        Topic.DATA_MAX_ITEM_ID,
        Topic.DATA_EXTERNAL_LINKS,
    }
    assert by_topic[Topic.DATA_PROPERTY_COUNT].count == 37  # type: ignore[attr-defined]
    assert by_topic[Topic.DATA_MAX_ITEM_ID].max_item_id == 4321  # type: ignore[attr-defined]


def test_fetchers_skip_sites_without_action_api() -> None:
    services = make_services(data=FakeDataSource())
    register_fetchers(services)
    seen = _capture(services, [Topic.DATA_SITEINFO, Topic.DATA_EXTERNAL_LINKS])

    async def scenario() -> int:
        context = make_context(make_record("Q100"), action_api=None)
        services.bus.emit(Topic.CONTEXT_READY, ContextReady(context))
        return services.queues.total

    assert asyncio.run(scenario()) == 0
    assert seen == []


def test_missing_facts_are_not_announced() -> None:
    services = make_services(data=FakeDataSource())
    register_fetchers(services)
    seen = _capture(
        services, [Topic.DATA_SITEINFO, Topic.DATA_INCEPTION, Topic.DATA_EXTERNAL_LINKS]
    )

    async def scenario() -> None:
        services.bus.emit(Topic.CONTEXT_READY, ContextReady(make_context(make_record("Q100"))))
        await drain(services)

    asyncio.run(scenario())

    assert seen == []


def test_external_links_use_the_moderate_lane() -> None:
    services = make_services(data=FakeDataSource())
    register_fetchers(services)

    async def scenario() -> list[str]:
        services.bus.emit(Topic.CONTEXT_READY, ContextReady(make_context(make_record("Q100"))))
        moderate = services.queues.moderate
        names = moderate.running_names() + moderate.pending_names()
        await drain(services)
        return names

    assert asyncio.run(scenario()) == ["fetch:external-links:Q100"]
