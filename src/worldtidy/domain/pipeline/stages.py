"""Per-site stages run before any fact is fetched: liveness, then context."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from .page import extract_page_meta, find_action_api, is_alive, rest_api_for

if TYPE_CHECKING:
    from worldtidy.domain.context import SiteContext
    from worldtidy.domain.ports import RecordStore, SiteProbe

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Liveness:
    context: SiteContext
    alive: bool
    reason: str = ""


async def check_liveness(probe: SiteProbe, context: SiteContext) -> Liveness:
    """Fetch the main page; the site is dead on transport errors or non-MediaWiki answers."""

    try:
        page = await probe.fetch_page(context.site)
    except Exception as exc:  # noqa: BLE001
        return Liveness(context, alive=False, reason=f"{type(exc).__name__}: {exc}")
    context = context.with_page(status=page.status, final_url=page.final_url, html=page.html)
    if not is_alive(page.status, page.html):
        return Liveness(context, alive=False, reason=f"HTTP {page.status}, not a MediaWiki page")
    return Liveness(context, alive=True)


async def build_context(
    probe: SiteProbe, store: RecordStore, context: SiteContext
) -> SiteContext:
    """Resolve API endpoints, page metadata, reverse DNS and a fresh record snapshot."""

    html = context.html or ""
    action_api = find_action_api(html, context.final_url or context.site)
    if action_api is None:
        log.warning("No EditURI on the main page of %s", context.label)
    context = context.with_endpoints(
        action_api=action_api,
        rest_api=rest_api_for(action_api) if action_api else None,
    ).with_meta(extract_page_meta(html))

    names, record = await asyncio.gather(
        probe.reverse_dns(context.domain),
        store.get_record(context.item),
    )
    return context.with_reverse_dns(tuple(names)).with_record(record)
