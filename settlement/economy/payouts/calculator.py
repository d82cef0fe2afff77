from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from settlement.core.money import ZERO, quantize_cents
from settlement.economy.errors import ValidationError

TIER_REVENUE_SHARES: dict[str, Decimal] = {
    "starter": Decimal("0.50"),
    "pro": Decimal("0.60"),
    "elite": Decimal("0.70"),
}


@dataclass(frozen=True, slots=True)
class PayoutBreakdown:
    total_revenue: Decimal
    artist_revenue: Decimal
    total_commissions: Decimal
    payout_amount: Decimal

    @property
    def is_payable(self) -> bool:
        return self.payout_amount > 0


def tier_share(tier: str) -> Decimal:
    share = TIER_REVENUE_SHARES.get(tier)
    if share is None:
        raise ValidationError(f"unknown subscription tier: {tier}")
    return share


def compute_payout(
    *,
    total_revenue: Decimal,
    tier: str,
    pending_commissions: Iterable[Decimal],
) -> PayoutBreakdown:
    revenue = quantize_cents(total_revenue)
    artist_revenue = quantize_cents(revenue * tier_share(tier))
    total_commissions = quantize_cents(sum(pending_commissions, start=ZERO))
    return PayoutBreakdown(
        total_revenue=revenue,
        artist_revenue=artist_revenue,
        total_commissions=total_commissions,
        payout_amount=artist_revenue - total_commissions,
    )
