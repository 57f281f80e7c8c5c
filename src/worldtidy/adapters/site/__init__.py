"""Adapters for probing the wikis registered on the world."""

from __future__ import annotations

from .mediawiki import MediaWikiClient, link_domain, siteinfo_from_response
from .prober import SiteProber, reverse_dns

__all__ = [
    "MediaWikiClient",
    "SiteProber",
    "link_domain",
    "reverse_dns",
    "siteinfo_from_response",
]
