"""Ports the pipeline depends on; adapters provide the implementations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from .facts import ExternalLinks, Inception, SiteInfo
    from .records import Claim, Record
    from .values import ClaimValue


class RecordStoreError(RuntimeError):
    """Raised when the record store rejects a read or write."""

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        self.code = code


class TooManyRequestsError(RecordStoreError):
    """Raised when the record store asks the caller to slow down."""


@runtime_checkable
class RecordStore(Protocol):
    """Read snapshots of world records and mutate their claims and terms.

    Every write takes a free-text ``summary`` that ends up in the edit history.
    """

    async def get_record(self, record_id: str) -> Record: ...

    async def create_claim(
        self,
        record_id: str,
        property_id: str,
        value: ClaimValue,
        *,
        qualifiers: Mapping[str, Sequence[ClaimValue]] | None = None,
        references: Mapping[str, Sequence[ClaimValue]] | None = None,
        summary: str,
    ) -> str: ...

    async def update_claim(self, claim: Claim, value: ClaimValue, *, summary: str) -> None: ...

    async def remove_claims(self, guids: Sequence[str], *, summary: str) -> None: ...

    async def set_reference(
        self,
        guid: str,
        reference: Mapping[str, Sequence[ClaimValue]],
        *,
        summary: str,
    ) -> None: ...

    async def set_label(
        self, record_id: str, language: str, value: str, *, summary: str
    ) -> None: ...

    async def set_description(
        self, record_id: str, language: str, value: str, *, summary: str
    ) -> None: ...

    async def add_alias(
        self, record_id: str, language: str, alias: str, *, summary: str
    ) -> None: ...

    async def remove_alias(
        self, record_id: str, language: str, alias: str, *, summary: str
    ) -> None: ...


@dataclass(frozen=True, slots=True)
class PageFetch:
    status: int
    final_url: str
    html: str = field(repr=False)


@runtime_checkable
class SiteProbe(Protocol):
    """Network lookups against a discovered site itself."""

    async def fetch_page(self, url: str) -> PageFetch: ...

    async def final_url(self, url: str) -> str | None: ...

    async def reverse_dns(self, domain: str) -> tuple[str, ...]: ...


@runtime_checkable
class SiteDataSource(Protocol):
    """Action API lookups against a discovered site."""

    async def siteinfo(self, action_api: str) -> SiteInfo | None: ...

    async def inception(self, action_api: str) -> Inception | None: ...

    async def page_count(self, action_api: str, namespace: int) -> int | None: ...

    async def max_entity_id(self, action_api: str, namespace: int) -> int | None: ...

    async def external_link_domains(self, action_api: str) -> ExternalLinks: ...
