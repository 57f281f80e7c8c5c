"""Facts fetched from remote wikis, independent of any wire format."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date  # noqa: TC003


@dataclass(frozen=True, slots=True)
class SiteStatistics:
    pages: int | None = None
    edits: int | None = None
    users: int | None = None
    active_users: int | None = None


@dataclass(frozen=True, slots=True)
class SiteInfo:
    """The parts of ``meta=siteinfo`` the processors care about."""

    generator: str | None = None
    php_version: str | None = None
    db_type: str | None = None
    db_version: str | None = None
    language: str | None = None
    statistics: SiteStatistics = field(default_factory=SiteStatistics)
    content_models: dict[int, str] = field(default_factory=dict)
    """Namespace id to default content model."""

    def namespaces_with_model(self, model: str) -> tuple[int, ...]:
        return tuple(ns for ns, ns_model in self.content_models.items() if ns_model == model)


@dataclass(frozen=True, slots=True)
class Inception:
    day: date
    source_url: str
    """Log query that produced the first event, cited as the reference."""


@dataclass(frozen=True, slots=True)
class ExternalLinks:
    domains: frozenset[str]
    truncated: bool = False
