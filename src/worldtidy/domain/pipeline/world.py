"""Properties and items of the world data model used by the pipeline."""

from __future__ import annotations

from typing import Final

# Properties
URL: Final = "P1"
HOST: Final = "P2"
INCEPTION: Final = "P5"
QUERY_SERVICE_UI: Final = "P7"
SPARQL_ENDPOINT: Final = "P8"
ENTITY_TYPES: Final = "P12"
ACTIVITY_STATUS: Final = "P13"
REFERENCE_URL: Final = "P21"
RETRIEVED: Final = "P22"
WIKI_TOOLS: Final = "P37"
MAIN_PAGE_URL: Final = "P49"
LINKS_TO: Final = "P55"
LINKED_FROM: Final = "P56"
MEDIAWIKI_VERSION: Final = "P57"
PROPERTY_COUNT: Final = "P58"
EDIT_COUNT: Final = "P59"
USER_COUNT: Final = "P60"
ACTIVE_USER_COUNT: Final = "P61"
PAGE_COUNT: Final = "P62"
MAX_ITEM_ID: Final = "P67"
PHP_VERSION: Final = "P68"
DATABASE_TYPE: Final = "P69"
DATABASE_VERSION: Final = "P70"

# Items
ACTIVE: Final = "Q54"
WIKIBASE_WORLD: Final = "Q3"
WIKIBASE_REGISTRY: Final = "Q58"
HOST_WMF_LABS: Final = "Q6"
HOST_PROFESSIONAL_WIKI: Final = "Q7"
HOST_WIKIBASE_CLOUD: Final = "Q8"
HOST_MIRAHEZE: Final = "Q118"
ITEM_ENTITY_TYPE: Final = "Q51"
PROPERTY_ENTITY_TYPE: Final = "Q52"
TOOL_QUERY_SERVICE: Final = "Q285"
TOOL_QUICKSTATEMENTS: Final = "Q286"
TOOL_CRADLE: Final = "Q287"

IGNORED_LINK_DOMAINS: Final[frozenset[str]] = frozenset(
    {
        "www.wikidata.org",
        "wikibase.world",
        "wikibase-registry.wmflabs.org",
        "commons.wikimedia.org",
    }
)
"""Domains linked from almost every wiki; never treated as wiki-to-wiki links."""
