"""Hosting provider processors.

Each provider is recognised from the wiki's domain, the reverse DNS of its
address or markers in the main page. Wikibase.cloud wikis additionally get the
tools and endpoints every wiki on that platform has.
"""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Final

from worldtidy.domain.events import ContextReady, Topic
from worldtidy.domain.pipeline import world
from worldtidy.domain.pipeline.claims import (
    ensure_claim_includes,
    ensure_item_claim,
    ensure_string_claim,
)
from worldtidy.domain.values import EntityRef, values_equal

if TYPE_CHECKING:
    from collections.abc import Callable

    from worldtidy.domain.context import SiteContext
    from worldtidy.domain.pipeline.services import PipelineServices

log = getLogger(__name__)

CLOUD_REVERSE_DNS: Final[str] = "221.76.141.34.bc.googleusercontent.com"
PROFESSIONAL_WIKI_REVERSE_DNS: Final[str] = "server-108-138-217-36.lhr61.r.cloudfront.net"
PROFESSIONAL_WIKI_LOGO: Final[str] = "w/images/HostedByProfessionalWiki.png"
MIRAHEZE_REVERSE_DNS: Final[str] = "cp37.wikitide.net"


@dataclass(frozen=True, slots=True)
class HostMatch:
    host: str
    reason: str


def _domain_or_dns(
    context: SiteContext, host: str, suffix: str, reverse_dns: str | None
) -> HostMatch | None:
    if context.domain.endswith(suffix):
        return HostMatch(host, f"from the {suffix} domain")
    if reverse_dns is not None and reverse_dns in context.reverse_dns:
        return HostMatch(host, "from reverse DNS")
    return None


def detect_wikibase_cloud(context: SiteContext) -> HostMatch | None:
    return _domain_or_dns(context, world.HOST_WIKIBASE_CLOUD, ".wikibase.cloud", CLOUD_REVERSE_DNS)


def detect_professional_wiki(context: SiteContext) -> HostMatch | None:
    match = _domain_or_dns(
        context, world.HOST_PROFESSIONAL_WIKI, ".wikibase.wiki", PROFESSIONAL_WIKI_REVERSE_DNS
    )
    if match is None and PROFESSIONAL_WIKI_LOGO in (context.html or ""):
        match = HostMatch(world.HOST_PROFESSIONAL_WIKI, "from the hosted-by footer image")
    return match


def detect_miraheze(context: SiteContext) -> HostMatch | None:
    return _domain_or_dns(context, world.HOST_MIRAHEZE, ".miraheze.org", MIRAHEZE_REVERSE_DNS)


def detect_wmf_labs(context: SiteContext) -> HostMatch | None:
    return _domain_or_dns(context, world.HOST_WMF_LABS, ".wmflabs.org", None)


def ensure_host(services: PipelineServices, context: SiteContext, match: HostMatch) -> None:
    ensure_item_claim(
        services.reconciler,
        context,
        world.HOST,
        match.host,
        summary=f"Set [[Property:{world.HOST}]] to [[Item:{match.host}]] ({match.reason})",
    )


def process_wikibase_cloud(services: PipelineServices, payload: ContextReady) -> None:
    context = payload.context
    match = detect_wikibase_cloud(context)
    if match is None:
        return
    ensure_host(services, context, match)

    reconciler = services.reconciler
    base = f"https://{context.domain}"
    known = f"as it is known for [[Item:{world.HOST_WIKIBASE_CLOUD}]] hosted wikis"
    for property_id, url, equivalents in (
        (world.QUERY_SERVICE_UI, f"{base}/query", (f"{base}/query/",)),
        (world.SPARQL_ENDPOINT, f"{base}/query/sparql", ()),
        (world.MAIN_PAGE_URL, f"{base}/wiki/Main_Page", ()),
    ):
        claims = context.record.claims_for(property_id) if context.record is not None else ()
        if len(claims) > 1:
            log.info(
                "%s has %s %s claims, leaving them alone", context.item, len(claims), property_id
            )
            continue
        if claims and any(values_equal(claims[0].value, other) for other in equivalents):
            continue
        ensure_string_claim(
            reconciler,
            context,
            property_id,
            url,
            summary=f"Set [[Property:{property_id}]] to {url} {known}",
        )

    tools = (
        (
            world.TOOL_QUERY_SERVICE,
            {
                world.QUERY_SERVICE_UI: (f"{base}/query",),
                world.SPARQL_ENDPOINT: (f"{base}/query/sparql",),
            },
        ),
        (world.TOOL_CRADLE, {world.URL: (f"{base}/tools/cradle",)}),
        (world.TOOL_QUICKSTATEMENTS, {world.URL: (f"{base}/tools/quickstatements",)}),
    )
    for tool, qualifiers in tools:
        ensure_claim_includes(
            reconciler,
            context,
            world.WIKI_TOOLS,
            EntityRef(tool),
            qualifiers=qualifiers,
            summary=(
                f"Add [[Property:{world.WIKI_TOOLS}]] claim for [[Item:{tool}]] "
                "based on the fact it is a wikibase.cloud wiki"
            ),
        )

    for entity_type in (world.ITEM_ENTITY_TYPE, world.PROPERTY_ENTITY_TYPE):
        ensure_claim_includes(
            reconciler,
            context,
            world.ENTITY_TYPES,
            EntityRef(entity_type),
            summary=(
                f"Add [[Property:{world.ENTITY_TYPES}]] claim for [[Item:{entity_type}]] "
                "based on the fact it is a wikibase.cloud wiki"
            ),
        )


def _host_processor(
    detect: Callable[[SiteContext], HostMatch | None],
) -> Callable[[PipelineServices, ContextReady], None]:
    def process(services: PipelineServices, payload: ContextReady) -> None:
        match = detect(payload.context)
        if match is not None:
            ensure_host(services, payload.context, match)

    return process


process_professional_wiki = _host_processor(detect_professional_wiki)
process_miraheze = _host_processor(detect_miraheze)
process_wmf_labs = _host_processor(detect_wmf_labs)


def register(services: PipelineServices) -> None:
    for name, process in (
        ("processor:host:wikibase-cloud", process_wikibase_cloud),
        ("processor:host:professional-wiki", process_professional_wiki),
        ("processor:host:miraheze", process_miraheze),
        ("processor:host:wmf-labs", process_wmf_labs),
    ):
        services.bus.register(
            Topic.CONTEXT_READY,
            name,
            lambda payload, process=process: process(services, payload),
        )
