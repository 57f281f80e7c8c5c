"""Change-significance filter for counter-like numeric claims."""

from __future__ import annotations

import math
from decimal import Decimal
from typing import Final

DEFAULT_LOG_THRESHOLD: Final[float] = 0.5


def should_update_numeric(
    old: int | Decimal | None,
    new: int | Decimal,
    *,
    threshold: float = DEFAULT_LOG_THRESHOLD,
) -> bool:
    """Return True when ``new`` differs enough from ``old`` to be worth an edit.

    Magnitudes are compared on a log10 scale; the default threshold of 0.5
    corresponds to roughly a 3x change. A missing old value or a transition to
    or from zero is always significant when the values differ.
    """

    if old is None:
        return True
    if old == 0 or new == 0:
        return old != new
    delta = abs(math.log10(abs(new)) - math.log10(abs(old)))
    return delta >= threshold
