"""Processors turn fetched facts into claim reconciliations."""

from __future__ import annotations

from typing import TYPE_CHECKING

from . import entity_counts, hosts, inception, siteinfo, wiki, wiki_links

if TYPE_CHECKING:
    from worldtidy.domain.pipeline.services import PipelineServices

__all__ = ["register_processors"]


def register_processors(services: PipelineServices) -> None:
    for module in (wiki, hosts, siteinfo, entity_counts, inception, wiki_links):
        module.register(services)
