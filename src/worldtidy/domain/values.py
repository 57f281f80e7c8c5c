"""Claim value types and the comparison rules used during reconciliation."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import TypeAlias

_DIMENSIONLESS_UNITS = frozenset({"", "1"})


@dataclass(frozen=True, slots=True)
class EntityRef:
    """Reference to an item (``Q…``) or property (``P…``) on the world."""

    id: str

    def __post_init__(self) -> None:
        if not self.id or self.id[0] not in "QP" or not self.id[1:].isdigit():
            msg = f"Not an entity id: {self.id!r}"
            raise ValueError(msg)

    @property
    def entity_type(self) -> str:
        return "item" if self.id.startswith("Q") else "property"

    @property
    def numeric_id(self) -> int:
        return int(self.id[1:])

    def __str__(self) -> str:
        return self.id


@dataclass(frozen=True, slots=True)
class Quantity:
    amount: Decimal
    unit: str = "1"

    @classmethod
    def parse(cls, amount: str | int | Decimal, unit: str | None = "1") -> Quantity:
        """Build a quantity from the store's signed encoding (``"+42"``) or a number."""

        if isinstance(amount, bool):
            msg = "Booleans are not quantities"
            raise TypeError(msg)
        if isinstance(amount, str):
            text = amount.strip().removeprefix("+")
            try:
                parsed = Decimal(text)
            except InvalidOperation as exc:
                msg = f"Not a quantity amount: {amount!r}"
                raise ValueError(msg) from exc
        else:
            parsed = Decimal(amount)
        return cls(amount=parsed, unit=_normalize_unit(unit))

    @property
    def wire_amount(self) -> str:
        text = format(self.amount.normalize(), "f") if self.amount else "0"
        return text if text.startswith("-") else f"+{text}"

    def __int__(self) -> int:
        return int(self.amount)


@dataclass(frozen=True, slots=True)
class TimeValue:
    """Point in time at day precision, as used for inception dates."""

    day: date

    @classmethod
    def parse(cls, value: str | date) -> TimeValue:
        if isinstance(value, datetime):
            return cls(day=value.date())
        if isinstance(value, date):
            return cls(day=value)
        text = value.strip().removeprefix("+")
        return cls(day=date.fromisoformat(text[:10]))

    @property
    def wire_time(self) -> str:
        return f"+{self.day.isoformat()}T00:00:00Z"

    def __str__(self) -> str:
        return self.day.isoformat()


ClaimValue: TypeAlias = str | EntityRef | Quantity | TimeValue
DesiredValue: TypeAlias = ClaimValue | int | Decimal | date


def _normalize_unit(unit: str | None) -> str:
    if unit is None or unit.strip() in _DIMENSIONLESS_UNITS:
        return "1"
    return unit.strip()


def coerce_value(value: DesiredValue) -> ClaimValue:
    """Turn loose caller input (ints, dates) into a claim value."""

    if isinstance(value, bool):
        msg = "Booleans cannot be stored as claim values"
        raise TypeError(msg)
    if isinstance(value, int | Decimal):
        return Quantity.parse(value)
    if isinstance(value, date):
        return TimeValue.parse(value)
    return value


def values_equal(existing: ClaimValue | None, desired: DesiredValue) -> bool:
    """Compare a stored claim value with the desired one.

    Quantities compare numerically (``+42`` equals ``42``) with dimensionless
    units treated alike; time values compare by day; everything else by identity.
    """

    if existing is None:
        return False
    wanted = coerce_value(desired)
    if isinstance(existing, Quantity) and isinstance(wanted, Quantity):
        return existing.amount == wanted.amount and existing.unit == wanted.unit
    if isinstance(existing, TimeValue) and isinstance(wanted, TimeValue):
        return existing.day == wanted.day
    return type(existing) is type(wanted) and existing == wanted
