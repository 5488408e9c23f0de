"""Invoice total arithmetic.

Totals are summed in exact Decimal arithmetic with no intermediate
rounding. Rounding to cents happens only when an amount is presented.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

OUTPUT_PRECISION = Decimal("0.01")

ZERO = Decimal("0")


def to_decimal(value: Any) -> Decimal:
    """Coerce a stored numeric value to Decimal. Missing values count as zero."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        # Go through str so 0.1 stays 0.1
        return Decimal(str(value))
    return Decimal(value)


def line_amount(hours: Any, rate_hour: Any) -> Decimal:
    """Amount billed for one hours-worked record."""
    return to_decimal(hours) * to_decimal(rate_hour)


def invoice_total(lines: Iterable[Mapping[str, Any]]) -> Decimal:
    """Sum ``hours × rate_hour`` over linked hours-worked rows."""
    return sum(
        (line_amount(line.get("hours"), line.get("rate_hour")) for line in lines),
        ZERO,
    )


def present(amount: Any) -> Decimal:
    """Round an amount to cents for display."""
    return to_decimal(amount).quantize(OUTPUT_PRECISION, rounding=ROUND_HALF_UP)
