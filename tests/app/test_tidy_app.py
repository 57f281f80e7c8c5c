from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

import pytest

from tests.helpers.world import (
    FakeDataSource,
    FakeProbe,
    FakeRecordStore,
    make_record,
    mediawiki_page,
)
from worldtidy import app as app_module
from worldtidy.config import MissingConfigurationError, QueueConfig, WorldConfig
from worldtidy.domain.context import DiscoveredSite
from worldtidy.domain.pipeline import PipelineReport
from worldtidy.domain.ports import PageFetch
from worldtidy.domain.values import EntityRef

ALIVE = DiscoveredSite(item="Q100", url="https://alive.example")
OTHER = DiscoveredSite(item="Q101", url="https://other.example")


@dataclass
class _World(FakeRecordStore):
    closed: bool = False

    async def aclose(self) -> None:
        self.closed = True


@dataclass
class _Probe(FakeProbe):
    closed: bool = False

    async def aclose(self) -> None:
        self.closed = True


@dataclass
class _Data(FakeDataSource):
    async def aclose(self) -> None:
        return None


@dataclass
class _Discovery:
    active: list[DiscoveredSite] = field(default_factory=lambda: [ALIVE, OTHER])
    known: list[DiscoveredSite] = field(default_factory=lambda: [ALIVE, OTHER])

    async def active_sites(self) -> list[DiscoveredSite]:
        return self.active

    async def all_sites(self) -> list[DiscoveredSite]:
        return self.known


@dataclass
class _Adapters:
    world: _World
    probe: _Probe


@pytest.fixture
def adapters(monkeypatch: pytest.MonkeyPatch) -> _Adapters:
    world = _World()
    world.add(make_record("Q100"))
    html = mediawiki_page(action_api="https://alive.example/w/api.php")
    probe = _Probe(pages={ALIVE.url: PageFetch(200, ALIVE.url, html)})
    monkeypatch.setattr(app_module, "WikibaseClient", lambda _config: world)
    monkeypatch.setattr(app_module, "SparqlDiscovery", lambda _config: _Discovery())
    monkeypatch.setattr(app_module, "SiteProber", lambda: probe)
    monkeypatch.setattr(app_module, "MediaWikiClient", _Data)
    return _Adapters(world=world, probe=probe)


def _run(**kwargs: object) -> PipelineReport:
    return asyncio.run(
        app_module.tidy_world_async(
            world_config=WorldConfig(),
            queue_config=QueueConfig(bulk=2, moderate=1, serial=1),
            **kwargs,  # type: ignore[arg-type]
        )
    )


def test_world_domain_index_keeps_first_item_per_domain() -> None:
    sites = [
        ALIVE,
        DiscoveredSite(item="Q200", url="https://ALIVE.example/wiki/Main_Page"),
        OTHER,
    ]

    assert app_module.world_domain_index(sites) == {
        "alive.example": "Q100",
        "other.example": "Q101",
    }


def test_tidy_run_discovers_and_edits(adapters: _Adapters) -> None:
    report = _run()

    assert (report.discovered, report.alive, report.dead) == (2, 1, 1)
    assert ("create", "Q100", "P13", "Q54") in adapters.world.writes()
    assert adapters.world.records["Q100"].values("P13") == (EntityRef("Q54"),)
    assert adapters.world.closed
    assert adapters.probe.closed


def test_dry_run_reads_but_never_writes(adapters: _Adapters) -> None:
    report = _run(dry_run=True)

    assert report.alive == 1
    assert ("get", "Q100") in adapters.world.calls
    assert adapters.world.writes() == []


def test_filter_and_injected_sites(adapters: _Adapters) -> None:
    report = _run(sites=[ALIVE, OTHER], world_domains={}, site_filter="other")

    assert (report.discovered, report.alive, report.dead) == (1, 0, 1)
    assert adapters.probe.requested == [OTHER.url]


def test_edit_runs_need_credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("WORLD_USERNAME", raising=False)
    monkeypatch.delenv("WORLD_PASSWORD", raising=False)

    with pytest.raises(MissingConfigurationError):
        app_module.tidy_world()
