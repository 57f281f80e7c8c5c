"""In-process publish/subscribe bus with one typed payload per topic."""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from enum import StrEnum
from logging import getLogger
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable

    from .context import DiscoveredSite, SiteContext
    from .facts import ExternalLinks, Inception, SiteInfo

log = getLogger(__name__)


class Topic(StrEnum):
    SITE_DISCOVERED = "site.discovered"
    SITE_ALIVE = "site.alive"
    SITE_DEAD = "site.dead"
    CONTEXT_READY = "site.context-ready"
    DATA_SITEINFO = "site.data.siteinfo"
    DATA_INCEPTION = "site.data.inception"
    DATA_PROPERTY_COUNT = "site.data.property-count"
    DATA_MAX_ITEM_ID = "site.data.max-item-id"
    DATA_EXTERNAL_LINKS = "site.data.external-links"


@dataclass(frozen=True, slots=True)
class SiteDiscovered:
    site: DiscoveredSite


@dataclass(frozen=True, slots=True)
class SiteAlive:
    context: SiteContext


@dataclass(frozen=True, slots=True)
class SiteDead:
    context: SiteContext
    reason: str


@dataclass(frozen=True, slots=True)
class ContextReady:
    context: SiteContext


@dataclass(frozen=True, slots=True)
class SiteInfoFetched:
    context: SiteContext
    siteinfo: SiteInfo


@dataclass(frozen=True, slots=True)
class InceptionFetched:
    context: SiteContext
    inception: Inception


@dataclass(frozen=True, slots=True)
class PropertyCountFetched:
    context: SiteContext
    count: int


@dataclass(frozen=True, slots=True)
class MaxItemIdFetched:
    context: SiteContext
    max_item_id: int


@dataclass(frozen=True, slots=True)
class ExternalLinksFetched:
    context: SiteContext
    links: ExternalLinks


TOPIC_PAYLOADS: MappingProxyType[Topic, type] = MappingProxyType(
    {
        Topic.SITE_DISCOVERED: SiteDiscovered,
        Topic.SITE_ALIVE: SiteAlive,
        Topic.SITE_DEAD: SiteDead,
        Topic.CONTEXT_READY: ContextReady,
        Topic.DATA_SITEINFO: SiteInfoFetched,
        Topic.DATA_INCEPTION: InceptionFetched,
        Topic.DATA_PROPERTY_COUNT: PropertyCountFetched,
        Topic.DATA_MAX_ITEM_ID: MaxItemIdFetched,
        Topic.DATA_EXTERNAL_LINKS: ExternalLinksFetched,
    }
)


class EventPayloadError(TypeError):
    """Raised when a topic is unknown or a payload does not match its topic."""


def _as_topic(topic: Topic | str) -> Topic:
    try:
        return Topic(topic)
    except ValueError:
        msg = f"Unknown topic: {topic!r}"
        raise EventPayloadError(msg) from None


class EventBus:
    """Synchronous dispatch to whoever is registered at emission time.

    Handlers are keyed by name per topic: registering a name again swaps the
    handler in place. Nothing is buffered, so events emitted before a handler is
    registered are never seen by it. Handlers must not block; async work is
    handed to a job queue.
    """

    def __init__(self) -> None:
        self._handlers: dict[Topic, dict[str, Callable[[Any], None]]] = {}

    def register(self, topic: Topic | str, name: str, handler: Callable[[Any], None]) -> None:
        resolved = _as_topic(topic)
        if inspect.iscoroutinefunction(handler):
            msg = f"Handler {name!r} for {resolved} must be synchronous; enqueue async work instead"
            raise TypeError(msg)
        handlers = self._handlers.setdefault(resolved, {})
        if name in handlers:
            log.warning("Replacing handler %r for %s", name, resolved)
        handlers[name] = handler

    def unregister(self, topic: Topic | str, name: str) -> bool:
        handlers = self._handlers.get(_as_topic(topic), {})
        return handlers.pop(name, None) is not None

    def emit(self, topic: Topic | str, payload: object) -> int:
        """Call every handler of ``topic`` in registration order; return how many ran."""

        resolved = _as_topic(topic)
        expected = TOPIC_PAYLOADS[resolved]
        if not isinstance(payload, expected):
            msg = f"{resolved} expects {expected.__name__}, got {type(payload).__name__}"
            raise EventPayloadError(msg)

        handlers = list(self._handlers.get(resolved, {}).items())
        if not handlers:
            log.debug("No handlers for %s", resolved)
            return 0
        for name, handler in handlers:
            try:
                handler(payload)
            except Exception:
                log.exception("Handler %r failed for %s", name, resolved)
        return len(handlers)

    def get_handlers(self, topic: Topic | str) -> list[tuple[str, Callable[[Any], None]]]:
        return list(self._handlers.get(_as_topic(topic), {}).items())

    def get_registered_events(self) -> list[Topic]:
        return [topic for topic, handlers in self._handlers.items() if handlers]

    def log_registrations(self) -> None:
        for topic in self.get_registered_events():
            names = ", ".join(self._handlers[topic])
            log.info("%s -> %s", topic, names)
