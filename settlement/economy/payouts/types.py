from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date
from decimal import Decimal
from uuid import UUID

SKIPPED_EXISTING = "skipped_existing"
SKIPPED_NO_REVENUE = "skipped_no_revenue"
SKIPPED_NON_POSITIVE = "skipped_non_positive"
SKIPPED_NO_ACCOUNT = "skipped_no_account"
PAID = "paid"
FAILED = "failed"
ERROR = "error"


@dataclass(slots=True)
class PayoutOutcome:
    event_id: UUID
    artist_id: UUID
    status: str
    payout_id: UUID | None = None
    amount: Decimal | None = None
    external_transfer_ref: str | None = None
    error_message: str | None = None
    commissions_paid: int = 0

    def as_dict(self) -> dict[str, object]:
        return {
            key: str(value) if isinstance(value, (UUID, Decimal)) else value
            for key, value in asdict(self).items()
        }


@dataclass(slots=True)
class PayoutRunSummary:
    target_day: date
    examined: int = 0
    paid: int = 0
    failed: int = 0
    skipped_existing: int = 0
    skipped_no_revenue: int = 0
    skipped_non_positive: int = 0
    skipped_no_account: int = 0
    errors: int = 0
    outcomes: list[PayoutOutcome] = field(default_factory=list)

    def record(self, outcome: PayoutOutcome) -> None:
        self.outcomes.append(outcome)
        if outcome.status == ERROR:
            self.errors += 1
        elif hasattr(self, outcome.status):
            setattr(self, outcome.status, getattr(self, outcome.status) + 1)

    def counters(self) -> dict[str, int | str]:
        return {
            "target_day": self.target_day.isoformat(),
            "examined": self.examined,
            "paid": self.paid,
            "failed": self.failed,
            "skipped_existing": self.skipped_existing,
            "skipped_no_revenue": self.skipped_no_revenue,
            "skipped_non_positive": self.skipped_non_positive,
            "skipped_no_account": self.skipped_no_account,
            "errors": self.errors,
        }
