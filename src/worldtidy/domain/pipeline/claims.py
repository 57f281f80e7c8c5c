"""Snapshot-aware shortcuts around :meth:`ClaimReconciler.ensure`.

The snapshot in the site context is only used to skip work that is clearly
unnecessary; the reconciler re-reads the record before writing anything.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from worldtidy.domain.reconciliation import (
    DEFAULT_LOG_THRESHOLD,
    ClaimMode,
    should_update_numeric,
)
from worldtidy.domain.values import EntityRef, Quantity, values_equal

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from worldtidy.domain.context import SiteContext
    from worldtidy.domain.jobs import Job
    from worldtidy.domain.reconciliation import ClaimReconciler, ReconciliationResult
    from worldtidy.domain.values import ClaimValue, DesiredValue

log = getLogger(__name__)


def _current(context: SiteContext, property_id: str) -> tuple[ClaimValue, ...]:
    return context.record.values(property_id) if context.record is not None else ()


def _claim_count(context: SiteContext, property_id: str) -> int:
    return len(context.record.claims_for(property_id)) if context.record is not None else 0


def _single_value(context: SiteContext, property_id: str) -> ClaimValue | None:
    current = _current(context, property_id)
    if len(current) == 1 and _claim_count(context, property_id) == 1:
        return current[0]
    return None


def ensure_string_claim(
    reconciler: ClaimReconciler,
    context: SiteContext,
    property_id: str,
    value: str | EntityRef,
    *,
    summary: str,
    qualifiers: Mapping[str, Sequence[ClaimValue]] | None = None,
    references: Mapping[str, Sequence[ClaimValue]] | None = None,
) -> Job[ReconciliationResult] | None:
    """Make ``value`` the only value of ``property_id``; skip if it already is."""

    if values_equal(_single_value(context, property_id), value):
        return None
    return reconciler.ensure(
        context.item,
        property_id,
        value,
        qualifiers=qualifiers,
        references=references,
        summary=summary,
    )


def ensure_item_claim(
    reconciler: ClaimReconciler,
    context: SiteContext,
    property_id: str,
    item_id: str,
    *,
    summary: str,
) -> Job[ReconciliationResult] | None:
    return ensure_string_claim(
        reconciler, context, property_id, EntityRef(item_id), summary=summary
    )


def ensure_numeric_claim(
    reconciler: ClaimReconciler,
    context: SiteContext,
    property_id: str,
    value: int,
    *,
    summary: str,
    threshold: float = DEFAULT_LOG_THRESHOLD,
) -> Job[ReconciliationResult] | None:
    """Write a counter only when it moved enough to matter (see :func:`should_update_numeric`)."""

    current = _single_value(context, property_id)
    if isinstance(current, Quantity):
        old = current.amount
        if not should_update_numeric(old, value, threshold=threshold):
            log.debug(
                "%s %s: %s -> %s is below the change threshold",
                context.item,
                property_id,
                old,
                value,
            )
            return None
    return reconciler.ensure(context.item, property_id, value, summary=summary)


def ensure_claim_exists(
    reconciler: ClaimReconciler,
    context: SiteContext,
    property_id: str,
    value: DesiredValue,
    *,
    summary: str,
) -> Job[ReconciliationResult] | None:
    """Add ``value`` only when the property has no claim at all."""

    if _claim_count(context, property_id):
        return None
    return reconciler.ensure(context.item, property_id, value, summary=summary)


def ensure_claim_includes(
    reconciler: ClaimReconciler,
    context: SiteContext,
    property_id: str,
    value: DesiredValue,
    *,
    summary: str,
    qualifiers: Mapping[str, Sequence[ClaimValue]] | None = None,
    target_id: str | None = None,
) -> Job[ReconciliationResult] | None:
    """Make sure one claim holds ``value`` without touching the property's other values."""

    target = target_id or context.item
    if target == context.item:
        matches = [v for v in _current(context, property_id) if values_equal(v, value)]
        if len(matches) == 1:
            return None
    return reconciler.ensure(
        target,
        property_id,
        value,
        qualifiers=qualifiers,
        summary=summary,
        mode=ClaimMode.INCLUDES,
    )
