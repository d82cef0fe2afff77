from __future__ import annotations

from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo


def local_day_bounds_utc(local_day: date, *, timezone_name: str) -> tuple[datetime, datetime]:
    """Half-open UTC range covering one platform-local calendar day."""
    tz = ZoneInfo(timezone_name)
    local_start = datetime.combine(local_day, time.min, tzinfo=tz)
    local_end = datetime.combine(local_day + timedelta(days=1), time.min, tzinfo=tz)
    return local_start.astimezone(ZoneInfo("UTC")), local_end.astimezone(ZoneInfo("UTC"))


def payout_target_day(now_utc: datetime, *, delay_days: int, timezone_name: str) -> date:
    local_today = now_utc.astimezone(ZoneInfo(timezone_name)).date()
    return local_today - timedelta(days=delay_days)
