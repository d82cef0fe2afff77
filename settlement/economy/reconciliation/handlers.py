from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from settlement.economy.pricing.constants import DEFAULT_SUBSCRIPTION_TIER, SUBSCRIPTION_TIERS

from .types import (
    CompleteOnboarding,
    CompleteTip,
    ConfirmTicket,
    Effect,
    FailTicket,
    FailTip,
    PaymentEvent,
    ReconciliationState,
    RefundTicket,
    RefundTip,
    SetSubscription,
)

SUBJECT_PAYMENT_INTENT = "payment_intent"
SUBJECT_CHARGE = "charge"
SUBJECT_SUBSCRIPTION = "subscription"
SUBJECT_ACCOUNT = "account"

REFUNDABLE_TICKET_STATUSES = frozenset({"pending", "confirmed"})
REFUNDABLE_TIP_STATUSES = frozenset({"pending", "completed"})
ENDED_SUBSCRIPTION_STATUSES = frozenset({"canceled", "unpaid", "incomplete_expired"})

Decide = Callable[[PaymentEvent, ReconciliationState], list[Effect]]


@dataclass(frozen=True, slots=True)
class EventHandler:
    subject: str
    decide: Decide


def subject_key(event: PaymentEvent, subject: str) -> str | None:
    """Extracts the identifier the handler's state is looked up by."""
    payload = event.payload
    if subject in {SUBJECT_PAYMENT_INTENT, SUBJECT_ACCOUNT}:
        raw_key: Any = payload.get("id")
    elif subject == SUBJECT_CHARGE:
        raw_key = payload.get("payment_intent")
    elif subject == SUBJECT_SUBSCRIPTION:
        raw_key = event.metadata.get("artist_id")
    else:
        raise ValueError(f"unknown reconciliation subject: {subject}")

    if isinstance(raw_key, str) and raw_key.strip():
        return raw_key.strip()
    return None


def _on_payment_succeeded(event: PaymentEvent, state: ReconciliationState) -> list[Effect]:
    effects: list[Effect] = []
    if state.ticket is not None and state.ticket.status == "pending":
        effects.append(ConfirmTicket(ticket_id=state.ticket.id, event_id=state.ticket.event_id))
    if state.tip is not None and state.tip.status == "pending":
        effects.append(CompleteTip(tip_id=state.tip.id))
    return effects


def _on_payment_failed(event: PaymentEvent, state: ReconciliationState) -> list[Effect]:
    effects: list[Effect] = []
    if state.ticket is not None and state.ticket.status == "pending":
        effects.append(FailTicket(ticket_id=state.ticket.id))
    if state.tip is not None and state.tip.status == "pending":
        effects.append(FailTip(tip_id=state.tip.id))
    return effects


def _on_charge_refunded(event: PaymentEvent, state: ReconciliationState) -> list[Effect]:
    effects: list[Effect] = []
    if state.ticket is not None and state.ticket.status in REFUNDABLE_TICKET_STATUSES:
        effects.append(RefundTicket(ticket_id=state.ticket.id))
    if state.tip is not None and state.tip.status in REFUNDABLE_TIP_STATUSES:
        effects.append(RefundTip(tip_id=state.tip.id))
    return effects


def _subscription_period_end(payload: dict[str, Any]) -> datetime | None:
    raw_period_end = payload.get("current_period_end")
    if raw_period_end is None:
        # Newer API versions report the period on the subscription items.
        items = payload.get("items")
        item_rows = items.get("data") if isinstance(items, dict) else None
        if isinstance(item_rows, list) and item_rows and isinstance(item_rows[0], dict):
            raw_period_end = item_rows[0].get("current_period_end")

    if isinstance(raw_period_end, (int, float)) and not isinstance(raw_period_end, bool):
        return datetime.fromtimestamp(raw_period_end, tz=timezone.utc)
    return None


def _on_subscription_changed(event: PaymentEvent, state: ReconciliationState) -> list[Effect]:
    if state.artist is None:
        return []

    if event.payload.get("status") in ENDED_SUBSCRIPTION_STATUSES:
        return _on_subscription_deleted(event, state)

    tier = str(event.metadata.get("tier") or "").strip().lower()
    if tier not in SUBSCRIPTION_TIERS:
        return []

    return [
        SetSubscription(
            artist_id=state.artist.id,
            subscription_tier=tier,
            subscription_ends_at=_subscription_period_end(event.payload),
        )
    ]


def _on_subscription_deleted(event: PaymentEvent, state: ReconciliationState) -> list[Effect]:
    if state.artist is None:
        return []
    return [
        SetSubscription(
            artist_id=state.artist.id,
            subscription_tier=DEFAULT_SUBSCRIPTION_TIER,
            subscription_ends_at=None,
        )
    ]


def _on_account_updated(event: PaymentEvent, state: ReconciliationState) -> list[Effect]:
    if state.artist is None or state.artist.connect_completed:
        return []
    if event.payload.get("details_submitted") is True and event.payload.get("charges_enabled") is True:
        return [CompleteOnboarding(artist_id=state.artist.id)]
    return []


EVENT_HANDLERS: dict[str, EventHandler] = {
    "payment_intent.succeeded": EventHandler(SUBJECT_PAYMENT_INTENT, _on_payment_succeeded),
    "payment_intent.payment_failed": EventHandler(SUBJECT_PAYMENT_INTENT, _on_payment_failed),
    "payment_intent.canceled": EventHandler(SUBJECT_PAYMENT_INTENT, _on_payment_failed),
    "charge.refunded": EventHandler(SUBJECT_CHARGE, _on_charge_refunded),
    "customer.subscription.created": EventHandler(SUBJECT_SUBSCRIPTION, _on_subscription_changed),
    "customer.subscription.updated": EventHandler(SUBJECT_SUBSCRIPTION, _on_subscription_changed),
    "customer.subscription.deleted": EventHandler(SUBJECT_SUBSCRIPTION, _on_subscription_deleted),
    "account.updated": EventHandler(SUBJECT_ACCOUNT, _on_account_updated),
}
