from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from settlement.core.money import quantize_cents
from settlement.economy.errors import ValidationError

COMMISSION_RATES: dict[int, Decimal] = {
    1: Decimal("0.025"),
    2: Decimal("0.015"),
    3: Decimal("0.01"),
}
MAX_HIERARCHY_DEPTH = len(COMMISSION_RATES)


@dataclass(frozen=True, slots=True)
class CommissionBreakdown:
    level1: Decimal
    level2: Decimal
    level3: Decimal
    total: Decimal

    def amount_for_level(self, level: int) -> Decimal:
        if level == 1:
            return self.level1
        if level == 2:
            return self.level2
        if level == 3:
            return self.level3
        raise ValueError(f"commission level out of range: {level}")


def compute_commissions(ticket_price: Decimal) -> CommissionBreakdown:
    """Per-level referral amounts, each rounded half-up to the cent.

    ``total`` is the sum of the rounded levels, not a separately rounded 5%.
    """
    if ticket_price <= 0:
        raise ValidationError("ticket price must be positive")

    level1 = quantize_cents(ticket_price * COMMISSION_RATES[1])
    level2 = quantize_cents(ticket_price * COMMISSION_RATES[2])
    level3 = quantize_cents(ticket_price * COMMISSION_RATES[3])
    return CommissionBreakdown(
        level1=level1,
        level2=level2,
        level3=level3,
        total=level1 + level2 + level3,
    )
