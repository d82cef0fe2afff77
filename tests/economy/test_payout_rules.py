from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from settlement.economy.errors import ValidationError
from settlement.economy.payouts import compute_payout, local_day_bounds_utc, payout_target_day

UTC = timezone.utc


def test_starter_payout_deducts_pending_commissions() -> None:
    breakdown = compute_payout(
        total_revenue=Decimal("10.00") * 5,
        tier="starter",
        pending_commissions=[Decimal("0.50")] * 3,
    )
    assert breakdown.total_revenue == Decimal("50.00")
    assert breakdown.artist_revenue == Decimal("25.00")
    assert breakdown.total_commissions == Decimal("1.50")
    assert breakdown.payout_amount == Decimal("23.50")


@pytest.mark.parametrize(
    ("tier", "tickets", "expected"),
    [
        ("pro", 10, Decimal("60.00")),
        ("elite", 20, Decimal("140.00")),
    ],
)
def test_tier_share_without_commissions(tier: str, tickets: int, expected: Decimal) -> None:
    breakdown = compute_payout(
        total_revenue=Decimal("10.00") * tickets,
        tier=tier,
        pending_commissions=[],
    )
    assert breakdown.payout_amount == expected
    assert breakdown.is_payable is True


def test_commissions_can_exceed_artist_share() -> None:
    breakdown = compute_payout(
        total_revenue=Decimal("4.99"),
        tier="starter",
        pending_commissions=[Decimal("2.50"), Decimal("0.10")],
    )
    assert breakdown.artist_revenue == Decimal("2.50")
    assert breakdown.payout_amount == Decimal("-0.10")
    assert breakdown.is_payable is False


def test_unknown_tier_is_rejected() -> None:
    with pytest.raises(ValidationError):
        compute_payout(total_revenue=Decimal("10.00"), tier="gold", pending_commissions=[])


def test_payout_day_is_local_calendar_day_delay_days_back() -> None:
    # 00:30 in Paris on 2026-02-01 is still 2026-01-31 in UTC.
    now_utc = datetime(2026, 1, 31, 23, 30, tzinfo=UTC)
    assert payout_target_day(now_utc, delay_days=21, timezone_name="Europe/Paris") == date(2026, 1, 11)


def test_local_day_bounds_are_half_open_utc_range() -> None:
    start_utc, end_utc = local_day_bounds_utc(date(2026, 1, 11), timezone_name="Europe/Paris")
    assert start_utc == datetime(2026, 1, 10, 23, 0, tzinfo=UTC)
    assert end_utc == datetime(2026, 1, 11, 23, 0, tzinfo=UTC)


def test_local_day_bounds_span_daylight_saving_change() -> None:
    start_utc, end_utc = local_day_bounds_utc(date(2026, 3, 29), timezone_name="Europe/Paris")
    assert start_utc == datetime(2026, 3, 28, 23, 0, tzinfo=UTC)
    assert end_utc == datetime(2026, 3, 29, 22, 0, tzinfo=UTC)
