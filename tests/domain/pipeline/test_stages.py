from __future__ import annotations

import asyncio

from tests.helpers.world import FakeProbe, FakeRecordStore, make_record, mediawiki_page
from worldtidy.domain.context import DiscoveredSite, SiteContext
from worldtidy.domain.pipeline.stages import build_context, check_liveness
from worldtidy.domain.ports import PageFetch

SITE = DiscoveredSite(item="Q100", url="https://wiki.example/wiki/Main_Page")


def test_live_mediawiki_site_passes() -> None:
    probe = FakeProbe(
        pages={SITE.url: PageFetch(200, SITE.url, mediawiki_page(action_api="/w/api.php"))}
    )

    liveness = asyncio.run(check_liveness(probe, SiteContext.for_site(SITE)))

    assert liveness.alive
    assert liveness.context.status == 200
    assert liveness.context.html is not None


def test_unreachable_site_is_dead() -> None:
    liveness = asyncio.run(check_liveness(FakeProbe(), SiteContext.for_site(SITE)))

    assert not liveness.alive
    assert "ConnectError" in liveness.reason


def test_non_mediawiki_site_is_dead() -> None:
    probe = FakeProbe(pages={SITE.url: PageFetch(200, SITE.url, "<html>parked domain</html>")})

    liveness = asyncio.run(check_liveness(probe, SiteContext.for_site(SITE)))

    assert not liveness.alive
    assert liveness.reason.startswith("HTTP 200")


def test_build_context_collects_endpoints_meta_dns_and_record() -> None:
    store = FakeRecordStore()
    store.add(make_record("Q100", {"P1": [SITE.url]}))
    probe = FakeProbe(dns={"wiki.example": ("host.cloud.example",)})
    html = mediawiki_page(action_api="/w/api.php", version="1.41.0", description="About")
    context = SiteContext.for_site(SITE).with_page(status=200, final_url=SITE.url, html=html)

    built = asyncio.run(build_context(probe, store, context))

    assert built.action_api == "https://wiki.example/w/api.php"
    assert built.rest_api == "https://wiki.example/w/rest.php"
    assert built.meta.mw_version == "1.41.0"
    assert built.meta.description == "About"
    assert built.reverse_dns == ("host.cloud.example",)
    assert built.record is not None
    assert built.record.values("P1") == (SITE.url,)
    assert context.record is None
