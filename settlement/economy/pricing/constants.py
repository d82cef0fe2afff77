from __future__ import annotations

from datetime import time, timedelta
from decimal import Decimal

TIER_PRICE_BOUNDS: dict[str, tuple[Decimal, Decimal]] = {
    "starter": (Decimal("5.00"), Decimal("12.00")),
    "pro": (Decimal("8.00"), Decimal("18.00")),
    "elite": (Decimal("12.00"), Decimal("25.00")),
}
SUBSCRIPTION_TIERS = frozenset(TIER_PRICE_BOUNDS)
DEFAULT_SUBSCRIPTION_TIER = "starter"

HAPPY_HOUR_PRICE = Decimal("4.99")
HAPPY_HOUR_WEEKDAY = 2  # Wednesday, datetime.weekday()
HAPPY_HOUR_START = time(hour=20, minute=0)
HAPPY_HOUR_DURATION = timedelta(minutes=60)
