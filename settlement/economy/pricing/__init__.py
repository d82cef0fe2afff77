from settlement.economy.pricing.constants import (
    DEFAULT_SUBSCRIPTION_TIER,
    HAPPY_HOUR_PRICE,
    SUBSCRIPTION_TIERS,
    TIER_PRICE_BOUNDS,
)
from settlement.economy.pricing.happy_hour import happy_hour_savings, is_happy_hour, next_happy_hour
from settlement.economy.pricing.resolver import (
    PriceResolution,
    resolve_price,
    tier_bounds,
    validate_listing_price,
)

__all__ = [
    "DEFAULT_SUBSCRIPTION_TIER",
    "HAPPY_HOUR_PRICE",
    "PriceResolution",
    "SUBSCRIPTION_TIERS",
    "TIER_PRICE_BOUNDS",
    "happy_hour_savings",
    "is_happy_hour",
    "next_happy_hour",
    "resolve_price",
    "tier_bounds",
    "validate_listing_price",
]
