from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from settlement.core.money import quantize_cents
from settlement.economy.errors import ValidationError

from .constants import HAPPY_HOUR_PRICE, TIER_PRICE_BOUNDS
from .happy_hour import is_happy_hour


@dataclass(frozen=True, slots=True)
class PriceResolution:
    price: Decimal
    is_promo: bool


def tier_bounds(tier: str) -> tuple[Decimal, Decimal]:
    bounds = TIER_PRICE_BOUNDS.get(tier)
    if bounds is None:
        raise ValidationError(f"unknown subscription tier: {tier}")
    return bounds


def resolve_price(
    *,
    base_price: Decimal,
    promo_price: Decimal | None,
    tier: str,
    requested_at: datetime,
    timezone_name: str,
    promo_requested: bool = False,
) -> PriceResolution:
    """Returns what a ticket costs at ``requested_at``.

    An event with a configured promo price sells at the fixed Happy Hour price
    inside the weekly window, regardless of tier bounds. Outside the window the
    base price applies and must sit inside the tier's inclusive bounds. Asking
    for the promo explicitly outside the window is rejected.
    """
    min_price, max_price = tier_bounds(tier)

    if promo_price is not None and is_happy_hour(requested_at, timezone_name=timezone_name):
        return PriceResolution(price=HAPPY_HOUR_PRICE, is_promo=True)
    if promo_requested:
        raise ValidationError("happy hour price is only available on Wednesdays at 20:00")

    price = quantize_cents(base_price)
    if price <= 0:
        raise ValidationError("ticket price must be positive")
    if price < min_price or price > max_price:
        raise ValidationError(
            f"ticket price {price} is outside the {tier} tier range {min_price}-{max_price}"
        )
    return PriceResolution(price=price, is_promo=False)


def validate_listing_price(
    *,
    base_price: Decimal,
    promo_price: Decimal | None,
    tier: str,
    scheduled_at: datetime,
    timezone_name: str,
) -> PriceResolution:
    """Checks an artist's listing with the same rule purchases use.

    The base price is always checked since it is what fans pay outside the
    promo slot. A promo price must be the fixed Happy Hour price and the event
    must start inside the Happy Hour window.
    """
    regular = resolve_price(
        base_price=base_price,
        promo_price=None,
        tier=tier,
        requested_at=scheduled_at,
        timezone_name=timezone_name,
    )
    if promo_price is None:
        return regular

    if quantize_cents(promo_price) != HAPPY_HOUR_PRICE:
        raise ValidationError(f"happy hour price is fixed at {HAPPY_HOUR_PRICE}")
    return resolve_price(
        base_price=base_price,
        promo_price=promo_price,
        tier=tier,
        requested_at=scheduled_at,
        timezone_name=timezone_name,
        promo_requested=True,
    )
