"""Idempotent claim reconciliation against the world record store.

Every reconciliation runs as one job on the serial lane: it re-reads the record,
compares the existing claims on the property with the desired value and issues
the smallest set of writes that leaves exactly one matching claim. Because the
serial lane has a single slot, no two reconciliations interleave their
read-then-write windows.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING, Final, TypeVar

from worldtidy.config.http_resilience import DEFAULT_BACKOFF_SECONDS
from worldtidy.domain.ports import RecordStoreError
from worldtidy.domain.values import coerce_value, values_equal

from .retry import retry_when_throttled

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Mapping, Sequence

    from worldtidy.domain.jobs import Job, JobQueue
    from worldtidy.domain.ports import RecordStore
    from worldtidy.domain.records import Claim, Record
    from worldtidy.domain.values import ClaimValue, DesiredValue

log = getLogger(__name__)

MAX_DESCRIPTION_LENGTH: Final[int] = 250

T = TypeVar("T")


class ClaimMode(StrEnum):
    SINGLE = "single"
    """Exactly one claim on the property, holding the desired value."""
    INCLUDES = "includes"
    """The desired value is present once; other values on the property are left alone."""


class ReconcileAction(StrEnum):
    NOOP = "noop"
    CREATED = "created"
    UPDATED = "updated"
    DEDUPLICATED = "deduplicated"
    REPLACED = "replaced"
    ABORTED = "aborted"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class ReconciliationIntent:
    target_id: str
    property_id: str
    value: DesiredValue
    qualifiers: Mapping[str, Sequence[ClaimValue]] | None = None
    references: Mapping[str, Sequence[ClaimValue]] | None = None
    summary: str | None = None
    mode: ClaimMode = ClaimMode.SINGLE

    @property
    def edit_summary(self) -> str:
        if self.summary:
            return self.summary
        return f"Set [[Property:{self.property_id}]] to {self.value}"


@dataclass(frozen=True, slots=True)
class ReconciliationResult:
    intent: ReconciliationIntent
    action: ReconcileAction
    removed: tuple[str, ...] = ()
    created: str | None = None
    updated: str | None = None
    referenced: str | None = None
    error: str | None = None

    @property
    def wrote(self) -> bool:
        return bool(self.removed or self.created or self.updated or self.referenced)


@dataclass(slots=True)
class ClaimReconciler:
    """Schedule reconciliations and term edits on the serial lane."""

    store: RecordStore
    queue: JobQueue
    backoff_seconds: float = DEFAULT_BACKOFF_SECONDS
    sleep: Callable[[float], Awaitable[None]] = field(default=asyncio.sleep)

    def ensure(
        self,
        target_id: str,
        property_id: str,
        value: DesiredValue,
        *,
        qualifiers: Mapping[str, Sequence[ClaimValue]] | None = None,
        references: Mapping[str, Sequence[ClaimValue]] | None = None,
        summary: str | None = None,
        mode: ClaimMode = ClaimMode.SINGLE,
    ) -> Job[ReconciliationResult]:
        return self.submit(
            ReconciliationIntent(
                target_id=target_id,
                property_id=property_id,
                value=value,
                qualifiers=qualifiers,
                references=references,
                summary=summary,
                mode=mode,
            )
        )

    def submit(self, intent: ReconciliationIntent) -> Job[ReconciliationResult]:
        name = f"ensure {intent.target_id} {intent.property_id}={intent.value}"
        return self.queue.add(lambda: self.reconcile(intent), name=name)

    async def reconcile(self, intent: ReconciliationIntent) -> ReconciliationResult:
        """Bring one property of one record in line with ``intent``.

        Callers normally go through :meth:`ensure`; running this outside the
        serial lane gives up the no-interleaving guarantee.
        """

        try:
            record = await self._retry(
                lambda: self.store.get_record(intent.target_id),
                f"read {intent.target_id}",
            )
        except Exception as exc:
            log.exception("Could not read %s, skipping %s", intent.target_id, intent.property_id)
            return ReconciliationResult(intent, ReconcileAction.ABORTED, error=str(exc))

        try:
            if intent.mode is ClaimMode.INCLUDES:
                return await self._reconcile_includes(intent, record)
            return await self._reconcile_single(intent, record)
        except RecordStoreError as exc:
            log.error(  # noqa: TRY400
                "Write to %s %s failed: %s", intent.target_id, intent.property_id, exc
            )
            return ReconciliationResult(intent, ReconcileAction.FAILED, error=str(exc))

    async def _reconcile_single(
        self, intent: ReconciliationIntent, record: Record
    ) -> ReconciliationResult:
        claims = record.claims_for(intent.property_id)
        if not claims:
            guid = await self._create(intent)
            return ReconciliationResult(intent, ReconcileAction.CREATED, created=guid)

        matching = [claim for claim in claims if values_equal(claim.value, intent.value)]
        if matching:
            keep = matching[0]
            extra = tuple(claim.guid for claim in claims if claim.guid != keep.guid)
            if extra:
                await self._remove(intent, extra)
                log.info(
                    "Pruned %s extra %s claims on %s", len(extra), intent.property_id, record.id
                )
            referenced = await self._fill_reference(intent, keep)
            action = ReconcileAction.DEDUPLICATED if extra else ReconcileAction.NOOP
            return ReconciliationResult(intent, action, removed=extra, referenced=referenced)

        if len(claims) == 1:
            claim = claims[0]
            await self._retry(
                lambda: self.store.update_claim(
                    claim, coerce_value(intent.value), summary=intent.edit_summary
                ),
                f"update {claim.guid}",
            )
            log.info(
                "Updated %s on %s: %s -> %s",
                intent.property_id,
                record.id,
                claim.value,
                intent.value,
            )
            return ReconciliationResult(intent, ReconcileAction.UPDATED, updated=claim.guid)

        log.warning(
            "%s has %s %s claims and none match %s, replacing them",
            record.id,
            len(claims),
            intent.property_id,
            intent.value,
        )
        removed = tuple(claim.guid for claim in claims)
        await self._remove(intent, removed)
        guid = await self._create(intent)
        return ReconciliationResult(
            intent, ReconcileAction.REPLACED, removed=removed, created=guid
        )

    async def _reconcile_includes(
        self, intent: ReconciliationIntent, record: Record
    ) -> ReconciliationResult:
        matching = [
            claim
            for claim in record.claims_for(intent.property_id)
            if values_equal(claim.value, intent.value)
        ]
        if not matching:
            guid = await self._create(intent)
            return ReconciliationResult(intent, ReconcileAction.CREATED, created=guid)

        extra = tuple(claim.guid for claim in matching[1:])
        if extra:
            await self._remove(intent, extra)
            log.info(
                "Pruned %s duplicate %s=%s claims on %s",
                len(extra),
                intent.property_id,
                intent.value,
                record.id,
            )
        referenced = await self._fill_reference(intent, matching[0])
        action = ReconcileAction.DEDUPLICATED if extra else ReconcileAction.NOOP
        return ReconciliationResult(intent, action, removed=extra, referenced=referenced)

    async def _create(self, intent: ReconciliationIntent) -> str:
        guid = await self._retry(
            lambda: self.store.create_claim(
                intent.target_id,
                intent.property_id,
                coerce_value(intent.value),
                qualifiers=intent.qualifiers,
                references=intent.references,
                summary=intent.edit_summary,
            ),
            f"create {intent.property_id} on {intent.target_id}",
        )
        log.info("Created %s=%s on %s", intent.property_id, intent.value, intent.target_id)
        return guid

    async def _remove(self, intent: ReconciliationIntent, guids: Sequence[str]) -> None:
        for guid in guids:
            await self._retry(
                lambda guid=guid: self.store.remove_claims([guid], summary=intent.edit_summary),
                f"remove {guid}",
            )

    async def _fill_reference(self, intent: ReconciliationIntent, claim: Claim) -> str | None:
        if not intent.references or claim.references:
            return None
        references = intent.references
        await self._retry(
            lambda: self.store.set_reference(claim.guid, references, summary=intent.edit_summary),
            f"reference {claim.guid}",
        )
        log.info("Added reference to %s on %s", intent.property_id, intent.target_id)
        return claim.guid

    # Term edits

    def set_label(self, record_id: str, language: str, value: str, *, summary: str) -> Job[bool]:
        return self._term_job(
            f"label {record_id} {language}",
            lambda: self.store.set_label(record_id, language, value, summary=summary),
        )

    def set_description(
        self, record_id: str, language: str, value: str, *, summary: str
    ) -> Job[bool]:
        if len(value) > MAX_DESCRIPTION_LENGTH:
            log.warning(
                "Description for %s is %s characters, longer than %s; not setting it",
                record_id,
                len(value),
                MAX_DESCRIPTION_LENGTH,
            )
            return self._term_job(f"description {record_id} {language} (skipped)", None)
        return self._term_job(
            f"description {record_id} {language}",
            lambda: self.store.set_description(record_id, language, value, summary=summary),
        )

    def add_alias(self, record_id: str, language: str, alias: str, *, summary: str) -> Job[bool]:
        return self._term_job(
            f"alias+ {record_id} {language}",
            lambda: self.store.add_alias(record_id, language, alias, summary=summary),
        )

    def remove_alias(
        self, record_id: str, language: str, alias: str, *, summary: str
    ) -> Job[bool]:
        return self._term_job(
            f"alias- {record_id} {language}",
            lambda: self.store.remove_alias(record_id, language, alias, summary=summary),
        )

    def _term_job(
        self, name: str, write: Callable[[], Awaitable[None]] | None
    ) -> Job[bool]:
        async def run() -> bool:
            if write is None:
                return False
            try:
                await self._retry(write, name)
            except RecordStoreError as exc:
                log.error("Term edit %r failed: %s", name, exc)  # noqa: TRY400
                return False
            return True

        return self.queue.add(run, name=name)

    async def _retry(self, operation: Callable[[], Awaitable[T]], description: str) -> T:
        return await retry_when_throttled(
            operation,
            description=description,
            backoff_seconds=self.backoff_seconds,
            sleep=self.sleep,
        )
