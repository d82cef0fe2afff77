from __future__ import annotations

from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from zoneinfo import ZoneInfo

from settlement.core.money import quantize_cents

from .constants import HAPPY_HOUR_DURATION, HAPPY_HOUR_PRICE, HAPPY_HOUR_START, HAPPY_HOUR_WEEKDAY


def to_platform_local(at: datetime, *, timezone_name: str) -> datetime:
    """Naive datetimes are read as platform-local wall time."""
    tz = ZoneInfo(timezone_name)
    if at.tzinfo is None:
        return at.replace(tzinfo=tz)
    return at.astimezone(tz)


def _window_start_for_day(local_at: datetime) -> datetime:
    return local_at.replace(
        hour=HAPPY_HOUR_START.hour,
        minute=HAPPY_HOUR_START.minute,
        second=0,
        microsecond=0,
    )


def is_happy_hour(at: datetime, *, timezone_name: str) -> bool:
    local_at = to_platform_local(at, timezone_name=timezone_name)
    if local_at.weekday() != HAPPY_HOUR_WEEKDAY:
        return False
    window_start = _window_start_for_day(local_at)
    return window_start <= local_at < window_start + HAPPY_HOUR_DURATION


def next_happy_hour(now: datetime, *, timezone_name: str) -> datetime:
    """Start of the current or next Happy Hour window, in platform-local time."""
    local_now = to_platform_local(now, timezone_name=timezone_name)
    days_ahead = (HAPPY_HOUR_WEEKDAY - local_now.weekday()) % 7
    candidate = _window_start_for_day(local_now + timedelta(days=days_ahead))
    if candidate + HAPPY_HOUR_DURATION <= local_now:
        candidate = _window_start_for_day(candidate + timedelta(days=7))
    return candidate


def happy_hour_savings(regular_price: Decimal) -> tuple[Decimal, int]:
    savings = quantize_cents(regular_price - HAPPY_HOUR_PRICE)
    if savings <= 0 or regular_price <= 0:
        return quantize_cents(0), 0
    percent_off = int((savings / regular_price * 100).quantize(Decimal(1), rounding=ROUND_HALF_UP))
    return savings, percent_off
