from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def as_decimal(value: Decimal | int | float | str) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() keeps 4.99 as 4.99 instead of its binary float expansion.
    return Decimal(str(value))


def quantize_cents(value: Decimal | int | float | str) -> Decimal:
    return as_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def to_minor_units(amount: Decimal | int | float | str) -> int:
    return int((as_decimal(amount) * 100).quantize(Decimal(1), rounding=ROUND_HALF_UP))
