from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from worldtidy.domain.values import EntityRef, Quantity, TimeValue, coerce_value, values_equal


def test_quantity_parses_signed_store_encoding() -> None:
    assert Quantity.parse("+42") == Quantity(Decimal(42))
    assert Quantity.parse("-1.50").amount == Decimal("-1.5")
    assert Quantity.parse(7).wire_amount == "+7"
    assert Quantity.parse(0).wire_amount == "+0"


def test_quantity_rejects_garbage_and_booleans() -> None:
    with pytest.raises(ValueError):
        Quantity.parse("many")
    with pytest.raises(TypeError):
        Quantity.parse(True)


def test_entity_ref_validation() -> None:
    assert EntityRef("Q54").entity_type == "item"
    assert EntityRef("P13").numeric_id == 13
    with pytest.raises(ValueError):
        EntityRef("X1")


def test_time_value_from_timestamp() -> None:
    value = TimeValue.parse("+2020-05-17T00:00:00Z")

    assert value.day == date(2020, 5, 17)
    assert value.wire_time == "+2020-05-17T00:00:00Z"


@pytest.mark.parametrize(
    ("existing", "desired", "expected"),
    [
        (Quantity.parse("+42"), 42, True),
        (Quantity.parse("+42"), Decimal("42.0"), True),
        (Quantity.parse("+42"), 43, False),
        (Quantity.parse("+42", "Q11573"), 42, False),
        (TimeValue.parse("2020-05-17"), date(2020, 5, 17), True),
        (EntityRef("Q54"), EntityRef("Q54"), True),
        ("Q54", EntityRef("Q54"), False),
        ("https://example.org", "https://example.org", True),
        (None, "anything", False),
    ],
)
def test_values_equal(existing: object, desired: object, expected: bool) -> None:
    assert values_equal(existing, desired) is expected  # type: ignore[arg-type]


def test_coerce_value_rejects_booleans() -> None:
    with pytest.raises(TypeError):
        coerce_value(False)
