from __future__ import annotations

from decimal import Decimal

import pytest

from worldtidy.domain.reconciliation import should_update_numeric


@pytest.mark.parametrize(
    ("old", "new", "expected"),
    [
        (100, 105, False),
        (100, 1000, True),
        (100, 316, False),
        (100, 317, True),
        (1000, 100, True),
        (0, 5, True),
        (5, 0, True),
        (0, 0, False),
        (None, 3, True),
        (Decimal("42"), 42, False),
    ],
)
def test_should_update_numeric(old: int | Decimal | None, new: int, expected: bool) -> None:
    assert should_update_numeric(old, new) is expected


def test_threshold_is_inclusive() -> None:
    assert should_update_numeric(10, 100, threshold=1.0)
    assert not should_update_numeric(10, 99, threshold=1.0)
