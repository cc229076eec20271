"""
Amount splitting -- turn a total into N per-installment amounts.

Contract:
    ``split_amount(total, count)`` is PURE.  The first ``count - 1`` parts are
    ``round_money(total / count)``; the last part is
    ``total - part * (count - 1)`` so the parts always sum to ``total``
    exactly.  All rounding error lands on the final part.

Invariants enforced:
    - sum(split_amount(total, count)) == total, to the cent.
    - ``total`` itself is never re-rounded.
    - Rounding goes through db.types.round_money (ROUND_HALF_UP unless the
      caller passes the configured mode).

Failure modes:
    - InvalidSplitError if count < 1.  The installment floor of 2 is the
      template's rule, not the splitter's.
"""

from __future__ import annotations

from decimal import Decimal

from finance_schedule.db.types import (
    DEFAULT_ROUNDING,
    MONEY_DECIMAL_PLACES,
    round_money,
    to_money,
)
from finance_schedule.exceptions import InvalidSplitError


def split_amount(
    total: Decimal,
    count: int,
    *,
    decimal_places: int = MONEY_DECIMAL_PLACES,
    rounding: str = DEFAULT_ROUNDING,
) -> tuple[Decimal, ...]:
    """Split ``total`` into ``count`` parts that sum exactly to ``total``.

    Example:
        split_amount(Decimal("100.00"), 3)
        -> (Decimal("33.33"), Decimal("33.33"), Decimal("33.34"))
    """
    if isinstance(count, bool) or not isinstance(count, int) or count < 1:
        raise InvalidSplitError("count", f"must be a positive integer, got {count!r}")

    total = to_money(total)
    per = round_money(total / count, decimal_places, rounding)
    last = total - per * (count - 1)
    return (per,) * (count - 1) + (last,)
