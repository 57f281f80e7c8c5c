"""Reusable fakes for record store, site probe and site data tests."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Mapping, Sequence  # noqa: TC003
from dataclasses import dataclass, field, replace

import httpx

from worldtidy.adapters.http_resilience import ResilienceConfig, ResilientClient
from worldtidy.domain.facts import ExternalLinks, Inception, SiteInfo
from worldtidy.domain.ports import PageFetch
from worldtidy.domain.records import Claim, Record
from worldtidy.domain.values import ClaimValue, coerce_value


def make_client_factory(
    handler: Callable[[httpx.Request], httpx.Response],
) -> Callable[[ResilienceConfig], ResilientClient]:
    async def async_handler(request: httpx.Request) -> httpx.Response:
        return handler(request)

    def factory(resilience: ResilienceConfig) -> ResilientClient:
        return ResilientClient(
            resilience.uncached(),
            transport=httpx.MockTransport(async_handler),
        )

    return factory


async def no_sleep(_seconds: float) -> None:
    await asyncio.sleep(0)


def make_record(
    record_id: str = "Q100",
    claims: Mapping[str, Sequence[object]] | None = None,
    **terms: object,
) -> Record:
    """Build a record whose claims get guids ``<id>$<property>-<n>`` in the given order."""

    built: dict[str, tuple[Claim, ...]] = {}
    for property_id, values in (claims or {}).items():
        built[property_id] = tuple(
            Claim(
                guid=f"{record_id}${property_id}-{index}",
                property=property_id,
                value=coerce_value(value),  # type: ignore[arg-type]
            )
            for index, value in enumerate(values)
        )
    return Record(id=record_id, claims=built, **terms)  # type: ignore[arg-type]


@dataclass
class FakeRecordStore:
    """In-memory record store that applies writes and keeps a call log."""

    records: dict[str, Record] = field(default_factory=dict)
    calls: list[tuple[str, ...]] = field(default_factory=list)
    summaries: list[str] = field(default_factory=list)
    read_error: Exception | None = None
    write_errors: list[Exception] = field(default_factory=list)
    write_delay: float = 0.0
    _in_flight: int = 0
    max_in_flight: int = 0
    _next_guid: int = 0

    def add(self, record: Record) -> None:
        self.records[record.id] = record

    def writes(self, kind: str | None = None) -> list[tuple[str, ...]]:
        return [
            call
            for call in self.calls
            if call[0] != "get" and (kind is None or call[0] == kind)
        ]

    async def get_record(self, record_id: str) -> Record:
        async with self._track():
            self.calls.append(("get", record_id))
            if self.read_error is not None:
                raise self.read_error
            return self.records.get(record_id) or Record(id=record_id)

    async def create_claim(
        self,
        record_id: str,
        property_id: str,
        value: ClaimValue,
        *,
        qualifiers: Mapping[str, Sequence[ClaimValue]] | None = None,
        references: Mapping[str, Sequence[ClaimValue]] | None = None,
        summary: str,
    ) -> str:
        async with self._write("create", record_id, property_id, str(value), summary=summary):
            self._next_guid += 1
            guid = f"{record_id}$new-{self._next_guid}"
            claim = Claim(
                guid=guid,
                property=property_id,
                value=value,
                qualifiers={k: tuple(v) for k, v in (qualifiers or {}).items()},
                references=({k: tuple(v) for k, v in references.items()},) if references else (),
            )
            record = self.records.get(record_id) or Record(id=record_id)
            claims = dict(record.claims)
            claims[property_id] = (*record.claims_for(property_id), claim)
            self.records[record_id] = replace(record, claims=claims)
            return guid

    async def update_claim(self, claim: Claim, value: ClaimValue, *, summary: str) -> None:
        async with self._write("update", claim.guid, str(value), summary=summary):
            record_id = claim.guid.split("$", 1)[0]
            record = self.records[record_id]
            claims = dict(record.claims)
            claims[claim.property] = tuple(
                replace(c, value=value) if c.guid == claim.guid else c
                for c in record.claims_for(claim.property)
            )
            self.records[record_id] = replace(record, claims=claims)

    async def remove_claims(self, guids: Sequence[str], *, summary: str) -> None:
        async with self._write("remove", *guids, summary=summary):
            for guid in guids:
                record_id = guid.split("$", 1)[0]
                record = self.records[record_id]
                claims = {
                    prop: tuple(c for c in values if c.guid != guid)
                    for prop, values in record.claims.items()
                }
                self.records[record_id] = replace(record, claims=claims)

    async def set_reference(
        self, guid: str, reference: Mapping[str, Sequence[ClaimValue]], *, summary: str
    ) -> None:
        async with self._write("reference", guid, summary=summary):
            pass

    async def set_label(self, record_id: str, language: str, value: str, *, summary: str) -> None:
        async with self._write("label", record_id, language, value, summary=summary):
            pass

    async def set_description(
        self, record_id: str, language: str, value: str, *, summary: str
    ) -> None:
        async with self._write("description", record_id, language, value, summary=summary):
            pass

    async def add_alias(self, record_id: str, language: str, alias: str, *, summary: str) -> None:
        async with self._write("alias+", record_id, language, alias, summary=summary):
            pass

    async def remove_alias(
        self, record_id: str, language: str, alias: str, *, summary: str
    ) -> None:
        async with self._write("alias-", record_id, language, alias, summary=summary):
            pass

    def _track(self) -> _InFlight:
        return _InFlight(self)

    def _write(self, kind: str, *args: str, summary: str) -> _InFlight:
        return _InFlight(self, (kind, *args), summary)


class _InFlight:
    def __init__(
        self, store: FakeRecordStore, call: tuple[str, ...] | None = None, summary: str = ""
    ) -> None:
        self.store = store
        self.call = call
        self.summary = summary

    async def __aenter__(self) -> None:
        store = self.store
        store._in_flight += 1  # noqa: SLF001
        store.max_in_flight = max(store.max_in_flight, store._in_flight)  # noqa: SLF001
        if self.call is None:
            return
        if store.write_delay:
            await asyncio.sleep(store.write_delay)
        if store.write_errors:
            error = store.write_errors.pop(0)
            store._in_flight -= 1  # noqa: SLF001
            raise error
        store.calls.append(self.call)
        store.summaries.append(self.summary)

    async def __aexit__(self, *_: object) -> None:
        self.store._in_flight -= 1  # noqa: SLF001


@dataclass
class FakeProbe:
    pages: dict[str, PageFetch | Exception] = field(default_factory=dict)
    final_urls: dict[str, str | None] = field(default_factory=dict)
    dns: dict[str, tuple[str, ...]] = field(default_factory=dict)
    requested: list[str] = field(default_factory=list)

    async def fetch_page(self, url: str) -> PageFetch:
        self.requested.append(url)
        page = self.pages.get(url)
        if page is None:
            raise httpx.ConnectError(f"cannot reach {url}")
        if isinstance(page, Exception):
            raise page
        return page

    async def final_url(self, url: str) -> str | None:
        self.requested.append(url)
        return self.final_urls.get(url)

    async def reverse_dns(self, domain: str) -> tuple[str, ...]:
        return self.dns.get(domain, ())


@dataclass
class FakeDataSource:
    siteinfos: dict[str, SiteInfo] = field(default_factory=dict)
    inceptions: dict[str, Inception] = field(default_factory=dict)
    page_counts: dict[tuple[str, int], int] = field(default_factory=dict)
    max_ids: dict[tuple[str, int], int] = field(default_factory=dict)
    links: dict[str, ExternalLinks] = field(default_factory=dict)

    async def siteinfo(self, action_api: str) -> SiteInfo | None:
        return self.siteinfos.get(action_api)

    async def inception(self, action_api: str) -> Inception | None:
        return self.inceptions.get(action_api)

    async def page_count(self, action_api: str, namespace: int) -> int | None:
        return self.page_counts.get((action_api, namespace))

    async def max_entity_id(self, action_api: str, namespace: int) -> int | None:
        return self.max_ids.get((action_api, namespace))

    async def external_link_domains(self, action_api: str) -> ExternalLinks:
        return self.links.get(action_api, ExternalLinks(domains=frozenset()))


def mediawiki_page(
    *,
    action_api: str = "https://example.org/w/api.php",
    version: str = "1.39.3",
    description: str | None = None,
    language: str = "en",
    extra: str = "",
) -> str:
    meta = f'<meta name="description" content="{description}"/>' if description else ""
    return (
        "<html><head><title>Example Wiki</title>"
        f'<meta name="generator" content="MediaWiki {version}"/>{meta}'
        f'<link rel="EditURI" type="application/rsd+xml" href="{action_api}?action=rsd"/>'
        f'<script>RLCONF={{"wgPageContentLanguage":"{language}"}};</script>'
        f"</head><body>{extra}</body></html>"
    )