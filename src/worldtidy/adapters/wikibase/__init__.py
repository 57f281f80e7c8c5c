"""Public interface for the Wikibase record store adapter."""

from __future__ import annotations

from .client import WikibaseAPIError, WikibaseClient
from .dry_run import DryRunRecordStore
from .translator import datavalue_for, record_from_entity, snak_value

__all__ = [
    "DryRunRecordStore",
    "WikibaseAPIError",
    "WikibaseClient",
    "datavalue_for",
    "record_from_entity",
    "snak_value",
]
