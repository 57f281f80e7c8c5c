"""Read-only snapshots of world records."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .values import ClaimValue


@dataclass(frozen=True, slots=True)
class Claim:
    guid: str
    property: str
    value: ClaimValue | None
    qualifiers: Mapping[str, tuple[ClaimValue, ...]] = field(default_factory=dict)
    references: tuple[Mapping[str, tuple[ClaimValue, ...]], ...] = ()
    rank: str = "normal"


@dataclass(frozen=True, slots=True)
class Record:
    id: str
    labels: Mapping[str, str] = field(default_factory=dict)
    descriptions: Mapping[str, str] = field(default_factory=dict)
    aliases: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    claims: Mapping[str, tuple[Claim, ...]] = field(default_factory=dict)

    def claims_for(self, property_id: str) -> tuple[Claim, ...]:
        return self.claims.get(property_id, ())

    def has_claim(self, property_id: str) -> bool:
        return bool(self.claims_for(property_id))

    def first_value(self, property_id: str) -> ClaimValue | None:
        for claim in self.claims_for(property_id):
            if claim.value is not None:
                return claim.value
        return None

    def values(self, property_id: str) -> tuple[ClaimValue, ...]:
        return tuple(c.value for c in self.claims_for(property_id) if c.value is not None)
