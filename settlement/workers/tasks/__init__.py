from settlement.workers.tasks.payouts import run_payout_settlement

__all__ = [
    "run_payout_settlement",
]
