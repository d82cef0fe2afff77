from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from settlement.db.repo.artists_repo import ArtistsRepo
from settlement.db.repo.events_repo import EventsRepo

from .state import LoadedSubject
from .types import (
    CapacityOverflow,
    CompleteOnboarding,
    CompleteTip,
    ConfirmTicket,
    FailTicket,
    FailTip,
    RefundTicket,
    RefundTip,
    SetSubscription,
)

logger = structlog.get_logger(__name__)


@dataclass(slots=True)
class EffectContext:
    session: AsyncSession
    subject: LoadedSubject
    now_utc: datetime
    capacity_overflows: list[CapacityOverflow] = field(default_factory=list)


def _require(row: Any, effect: object) -> Any:
    if row is None:
        raise RuntimeError(f"effect {type(effect).__name__} has no loaded row")
    return row


async def _confirm_ticket(context: EffectContext, effect: ConfirmTicket) -> str:
    ticket = _require(context.subject.ticket, effect)
    incremented = await EventsRepo.try_increment_attendees(
        context.session,
        event_id=effect.event_id,
        now_utc=context.now_utc,
    )
    ticket.updated_at = context.now_utc
    if not incremented:
        # Paid after the last seat went; the charge has to be refunded by an operator.
        ticket.status = "cancelled"
        context.capacity_overflows.append(
            CapacityOverflow(
                ticket_id=ticket.id,
                event_id=ticket.event_id,
                purchase_price=ticket.purchase_price,
                payment_intent_ref=ticket.payment_intent_ref,
            )
        )
        logger.warning("ticket_capacity_overflow", ticket_id=str(ticket.id), event_id=str(ticket.event_id))
        return "ticket_cancelled_capacity"

    ticket.status = "confirmed"
    ticket.confirmed_at = context.now_utc
    return "ticket_confirmed"


async def _fail_ticket(context: EffectContext, effect: FailTicket) -> str:
    ticket = _require(context.subject.ticket, effect)
    ticket.status = "failed"
    ticket.updated_at = context.now_utc
    return "ticket_failed"


async def _refund_ticket(context: EffectContext, effect: RefundTicket) -> str:
    ticket = _require(context.subject.ticket, effect)
    ticket.status = "refunded"
    ticket.refunded_at = context.now_utc
    ticket.updated_at = context.now_utc
    return "ticket_refunded"


async def _complete_tip(context: EffectContext, effect: CompleteTip) -> str:
    tip = _require(context.subject.tip, effect)
    tip.status = "completed"
    tip.completed_at = context.now_utc
    tip.updated_at = context.now_utc
    return "tip_completed"


async def _fail_tip(context: EffectContext, effect: FailTip) -> str:
    tip = _require(context.subject.tip, effect)
    tip.status = "failed"
    tip.updated_at = context.now_utc
    return "tip_failed"


async def _refund_tip(context: EffectContext, effect: RefundTip) -> str:
    tip = _require(context.subject.tip, effect)
    tip.status = "refunded"
    tip.updated_at = context.now_utc
    return "tip_refunded"


async def _set_subscription(context: EffectContext, effect: SetSubscription) -> str:
    await ArtistsRepo.set_subscription(
        context.session,
        artist_id=effect.artist_id,
        subscription_tier=effect.subscription_tier,
        subscription_ends_at=effect.subscription_ends_at,
        now_utc=context.now_utc,
    )
    return f"artist_subscription_{effect.subscription_tier}"


async def _complete_onboarding(context: EffectContext, effect: CompleteOnboarding) -> str:
    updated = await ArtistsRepo.mark_connect_completed(
        context.session,
        artist_id=effect.artist_id,
        now_utc=context.now_utc,
    )
    return "artist_onboarding_completed" if updated else "artist_onboarding_unchanged"


EFFECT_APPLIERS: dict[type, Callable[[EffectContext, Any], Awaitable[str]]] = {
    ConfirmTicket: _confirm_ticket,
    FailTicket: _fail_ticket,
    RefundTicket: _refund_ticket,
    CompleteTip: _complete_tip,
    FailTip: _fail_tip,
    RefundTip: _refund_tip,
    SetSubscription: _set_subscription,
    CompleteOnboarding: _complete_onboarding,
}


async def apply_effect(context: EffectContext, effect: object) -> str:
    applier = EFFECT_APPLIERS.get(type(effect))
    if applier is None:
        raise TypeError(f"no applier registered for {type(effect).__name__}")
    return await applier(context, effect)
