"""Record store wrapper that reads for real and only logs writes."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from worldtidy.domain.ports import RecordStore
    from worldtidy.domain.records import Claim, Record
    from worldtidy.domain.values import ClaimValue

log = getLogger(__name__)


@dataclass(slots=True)
class DryRunRecordStore:
    inner: RecordStore
    writes: list[str] = field(default_factory=list)

    async def get_record(self, record_id: str) -> Record:
        return await self.inner.get_record(record_id)

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
        self._record(f"create {record_id} {property_id}={value}", summary)
        return f"{record_id}$dry-run"

    async def update_claim(self, claim: Claim, value: ClaimValue, *, summary: str) -> None:
        self._record(f"update {claim.guid} {claim.value} -> {value}", summary)

    async def remove_claims(self, guids: Sequence[str], *, summary: str) -> None:
        self._record(f"remove {', '.join(guids)}", summary)

    async def set_reference(
        self,
        guid: str,
        reference: Mapping[str, Sequence[ClaimValue]],
        *,
        summary: str,
    ) -> None:
        self._record(f"reference {guid} {sorted(reference)}", summary)

    async def set_label(self, record_id: str, language: str, value: str, *, summary: str) -> None:
        self._record(f"label {record_id} [{language}] {value!r}", summary)

    async def set_description(
        self, record_id: str, language: str, value: str, *, summary: str
    ) -> None:
        self._record(f"description {record_id} [{language}] {value!r}", summary)

    async def add_alias(self, record_id: str, language: str, alias: str, *, summary: str) -> None:
        self._record(f"alias+ {record_id} [{language}] {alias!r}", summary)

    async def remove_alias(
        self, record_id: str, language: str, alias: str, *, summary: str
    ) -> None:
        self._record(f"alias- {record_id} [{language}] {alias!r}", summary)

    def _record(self, change: str, summary: str) -> None:
        self.writes.append(change)
        log.info("[dry run] %s (%s)", change, summary)
