"""Translate between Wikibase JSON and world records / claim values."""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from worldtidy.domain.records import Claim, Record
from worldtidy.domain.values import EntityRef, Quantity, TimeValue

from .schema import EntityPayload, SnakPayload, StatementPayload

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from worldtidy.domain.values import ClaimValue

GREGORIAN_CALENDAR: Final[str] = "http://www.wikidata.org/entity/Q1985727"
DAY_PRECISION: Final[int] = 11


def snak_value(snak: SnakPayload) -> ClaimValue | None:
    """Return the claim value of a snak, or None for novalue/somevalue/unknown types."""

    if snak.snaktype != "value" or snak.datavalue is None:
        return None
    kind = snak.datavalue.type
    raw = snak.datavalue.value
    if kind == "string":
        return str(raw)
    if kind == "wikibase-entityid":
        entity_id = raw.get("id") if isinstance(raw, dict) else None
        if entity_id is None and isinstance(raw, dict):
            prefix = "P" if raw.get("entity-type") == "property" else "Q"
            entity_id = f"{prefix}{raw['numeric-id']}"
        return EntityRef(str(entity_id))
    if kind == "quantity":
        unit = str(raw.get("unit", "1")).rsplit("/", 1)[-1]
        return Quantity.parse(str(raw["amount"]), unit)
    if kind == "time":
        return TimeValue.parse(str(raw["time"]))
    if kind == "monolingualtext":
        return str(raw["text"])
    return None


def _snak_map(snaks: Mapping[str, Sequence[SnakPayload]]) -> dict[str, tuple[ClaimValue, ...]]:
    mapped: dict[str, tuple[ClaimValue, ...]] = {}
    for property_id, entries in snaks.items():
        values = tuple(v for v in (snak_value(s) for s in entries) if v is not None)
        if values:
            mapped[property_id] = values
    return mapped


def claim_from_statement(statement: StatementPayload) -> Claim:
    return Claim(
        guid=statement.id,
        property=statement.mainsnak.property,
        value=snak_value(statement.mainsnak),
        qualifiers=_snak_map(statement.qualifiers),
        references=tuple(_snak_map(ref.snaks) for ref in statement.references),
        rank=statement.rank,
    )


def record_from_entity(entity: EntityPayload) -> Record:
    return Record(
        id=entity.id,
        labels={lang: term.value for lang, term in entity.labels.items()},
        descriptions={lang: term.value for lang, term in entity.descriptions.items()},
        aliases={
            lang: tuple(term.value for term in terms) for lang, terms in entity.aliases.items()
        },
        claims={
            property_id: tuple(claim_from_statement(s) for s in statements)
            for property_id, statements in entity.claims.items()
        },
    )


def datavalue_for(value: ClaimValue) -> dict[str, object]:
    """Wire ``datavalue`` object for a claim value."""

    if isinstance(value, EntityRef):
        return {
            "type": "wikibase-entityid",
            "value": {
                "entity-type": value.entity_type,
                "numeric-id": value.numeric_id,
                "id": value.id,
            },
        }
    if isinstance(value, Quantity):
        return {"type": "quantity", "value": {"amount": value.wire_amount, "unit": value.unit}}
    if isinstance(value, TimeValue):
        return {
            "type": "time",
            "value": {
                "time": value.wire_time,
                "timezone": 0,
                "before": 0,
                "after": 0,
                "precision": DAY_PRECISION,
                "calendarmodel": GREGORIAN_CALENDAR,
            },
        }
    return {"type": "string", "value": value}


def value_snak(property_id: str, value: ClaimValue) -> dict[str, object]:
    return {"snaktype": "value", "property": property_id, "datavalue": datavalue_for(value)}


def snaks_for(snaks: Mapping[str, Sequence[ClaimValue]]) -> dict[str, list[dict[str, object]]]:
    return {
        property_id: [value_snak(property_id, value) for value in values]
        for property_id, values in snaks.items()
    }


def statement_for(
    guid: str,
    property_id: str,
    value: ClaimValue,
    *,
    qualifiers: Mapping[str, Sequence[ClaimValue]] | None = None,
    references: Mapping[str, Sequence[ClaimValue]] | None = None,
) -> dict[str, object]:
    """Full statement JSON as accepted by ``wbsetclaim``."""

    statement: dict[str, object] = {
        "id": guid,
        "type": "statement",
        "rank": "normal",
        "mainsnak": value_snak(property_id, value),
    }
    if qualifiers:
        statement["qualifiers"] = snaks_for(qualifiers)
    if references:
        statement["references"] = [{"snaks": snaks_for(references)}]
    return statement
