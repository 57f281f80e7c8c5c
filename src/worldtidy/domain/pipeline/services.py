"""Collaborators shared by every stage, fetcher and processor of a run."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

    from worldtidy.domain.events import EventBus
    from worldtidy.domain.jobs import JobQueues
    from worldtidy.domain.ports import RecordStore, SiteDataSource, SiteProbe
    from worldtidy.domain.reconciliation import ClaimReconciler


def utc_today() -> date:
    return datetime.now(UTC).date()


@dataclass(slots=True)
class PipelineServices:
    bus: EventBus
    queues: JobQueues
    reconciler: ClaimReconciler
    store: RecordStore
    probe: SiteProbe
    data: SiteDataSource
    today: Callable[[], date] = field(default=utc_today)
