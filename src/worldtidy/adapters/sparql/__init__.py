"""Public interface for the SPARQL discovery adapter."""

from __future__ import annotations

from .client import (
    ACTIVE_WIKIS_QUERY,
    ALL_WIKIS_QUERY,
    SparqlAPIError,
    SparqlDiscovery,
    sites_from_response,
)
from .schema import SparqlResponse

__all__ = [
    "ACTIVE_WIKIS_QUERY",
    "ALL_WIKIS_QUERY",
    "SparqlAPIError",
    "SparqlDiscovery",
    "SparqlResponse",
    "sites_from_response",
]
