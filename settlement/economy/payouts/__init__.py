from settlement.economy.payouts.calculator import TIER_REVENUE_SHARES, PayoutBreakdown, compute_payout, tier_share
from settlement.economy.payouts.job import PayoutSettlementJob
from settlement.economy.payouts.time_utils import local_day_bounds_utc, payout_target_day
from settlement.economy.payouts.types import PayoutOutcome, PayoutRunSummary

__all__ = [
    "TIER_REVENUE_SHARES",
    "PayoutBreakdown",
    "PayoutOutcome",
    "PayoutRunSummary",
    "PayoutSettlementJob",
    "compute_payout",
    "local_day_bounds_utc",
    "payout_target_day",
    "tier_share",
]
