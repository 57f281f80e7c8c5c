from __future__ import annotations

import pytest

from tests.helpers.world import mediawiki_page
from worldtidy.domain.pipeline.page import (
    extract_page_meta,
    find_action_api,
    is_alive,
    rest_api_for,
)


@pytest.mark.parametrize(
    ("status", "html", "expected"),
    [
        (200, mediawiki_page(), True),
        (404, mediawiki_page(extra="There is currently no text in this page"), True),
        (404, mediawiki_page(), False),
        (200, "<html>Some other CMS</html>", False),
        (503, mediawiki_page(), False),
    ],
)
def test_is_alive(status: int, html: str, expected: bool) -> None:
    assert is_alive(status, html) is expected


def test_find_action_api_variants() -> None:
    absolute = mediawiki_page(action_api="https://wiki.example/w/api.php")
    relative = mediawiki_page(action_api="/w/api.php")
    protocol_relative = mediawiki_page(action_api="//wiki.example/w/api.php")

    assert find_action_api(absolute, "https://wiki.example/") == "https://wiki.example/w/api.php"
    assert find_action_api(relative, "https://wiki.example/wiki/Main_Page") == (
        "https://wiki.example/w/api.php"
    )
    assert find_action_api(protocol_relative, "http://wiki.example/") == (
        "http://wiki.example/w/api.php"
    )
    assert find_action_api("<html></html>", "https://wiki.example/") is None


def test_rest_api_lives_next_to_action_api() -> None:
    assert rest_api_for("https://wiki.example/w/api.php") == "https://wiki.example/w/rest.php"


def test_extract_page_meta() -> None:
    meta = extract_page_meta(
        mediawiki_page(version="1.41.0", description="A wiki about things", language="de")
    )

    assert meta.title == "Example Wiki"
    assert meta.mw_version == "1.41.0"
    assert meta.description == "A wiki about things"
    assert meta.language == "de"


def test_extract_page_meta_defaults_to_english() -> None:
    meta = extract_page_meta("<html><title>Bare</title></html>")

    assert meta.language == "en"
    assert meta.mw_version is None
