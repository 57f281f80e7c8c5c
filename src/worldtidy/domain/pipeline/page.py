"""Interpret a MediaWiki main page: liveness, API endpoints and metadata."""

from __future__ import annotations

import html as html_lib
import re
from typing import Final
from urllib.parse import urljoin, urlsplit, urlunsplit

from worldtidy.domain.context import PageMeta

MISSING_PAGE_TEXT: Final[str] = "There is currently no text in this page"
MEDIAWIKI_GENERATOR_MARKER: Final[str] = 'content="MediaWiki'

_EDIT_URI = re.compile(r'<link rel="EditURI" type="application/rsd\+xml" href="(.+?)"')
_TITLE = re.compile(r"<title>(.+?)</title>")
_DESCRIPTION = re.compile(r'<meta name="description" content="(.+?)"')
_GENERATOR = re.compile(r'<meta name="generator" content="(.+?)"')
_MW_VERSION = re.compile(r"MediaWiki (.+?)$")
_LANGUAGE = re.compile(r'"wgPageContentLanguage":"(.+?)"')


def is_alive(status: int, html: str) -> bool:
    """A wiki is alive when its main page renders (a missing main page still counts)."""

    if not (status == 200 or (status == 404 and MISSING_PAGE_TEXT in html)):
        return False
    return MEDIAWIKI_GENERATOR_MARKER in html


def find_action_api(html: str, base_url: str) -> str | None:
    match = _EDIT_URI.search(html)
    if match is None:
        return None
    url = html_lib.unescape(match.group(1)).replace("?action=rsd", "")
    if url.startswith("//"):
        scheme = urlsplit(base_url).scheme or "https"
        return f"{scheme}:{url}"
    if not url.startswith("http"):
        return urljoin(base_url, url)
    return url


def rest_api_for(action_api: str) -> str:
    """Derive ``rest.php`` from ``api.php``; both live in the same directory."""

    parts = urlsplit(action_api)
    directory = parts.path.rsplit("/", 1)[0]
    return urlunsplit((parts.scheme, parts.netloc, f"{directory}/rest.php", "", ""))


def _first(pattern: re.Pattern[str], text: str) -> str | None:
    match = pattern.search(text)
    return html_lib.unescape(match.group(1)) if match else None


def extract_page_meta(html: str) -> PageMeta:
    generator = _first(_GENERATOR, html)
    mw_version = _first(_MW_VERSION, generator) if generator else None
    return PageMeta(
        title=_first(_TITLE, html),
        description=_first(_DESCRIPTION, html),
        generator=generator,
        mw_version=mw_version,
        language=_first(_LANGUAGE, html) or "en",
    )
