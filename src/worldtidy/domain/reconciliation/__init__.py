"""Claim reconciliation: idempotent writes of desired values onto world records."""

from __future__ import annotations

from .engine import (
    MAX_DESCRIPTION_LENGTH,
    ClaimMode,
    ClaimReconciler,
    ReconcileAction,
    ReconciliationIntent,
    ReconciliationResult,
)
from .retry import retry_when_throttled
from .significance import DEFAULT_LOG_THRESHOLD, should_update_numeric

__all__ = [
    "DEFAULT_LOG_THRESHOLD",
    "MAX_DESCRIPTION_LENGTH",
    "ClaimMode",
    "ClaimReconciler",
    "ReconcileAction",
    "ReconciliationIntent",
    "ReconciliationResult",
    "retry_when_throttled",
    "should_update_numeric",
]
