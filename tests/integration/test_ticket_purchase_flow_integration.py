from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from settlement.db.repo.commissions_repo import CommissionsRepo
from settlement.db.repo.events_repo import EventsRepo
from settlement.db.repo.tickets_repo import TicketsRepo
from settlement.db.session import SessionLocal
from settlement.economy.errors import DuplicateTicketError, IdempotencyViolation
from settlement.economy.purchases import TicketPurchaseOrchestrator
from settlement.economy.reconciliation import PaymentEventReconciler
from settlement.economy.reconciliation.types import PaymentEvent
from tests.economy.fakes import AlertRecorder, FakePaymentProcessor
from tests.integration.settlement_fixtures import (
    PLATFORM_TIMEZONE,
    _create_artist,
    _create_event,
    _create_ticket,
    _referral_code,
    _register_affiliate_chain,
)

UTC = timezone.utc
# A Tuesday noon in Paris, outside the happy-hour window.
PURCHASE_AT = datetime(2026, 3, 10, 11, 0, tzinfo=UTC)


def _succeeded_event(external_event_id: str, payment_intent_ref: str) -> PaymentEvent:
    return PaymentEvent.model_validate(
        {
            "id": external_event_id,
            "type": "payment_intent.succeeded",
            "data": {"object": {"id": payment_intent_ref, "status": "succeeded"}},
        }
    )


@pytest.mark.asyncio
async def test_referred_purchase_records_three_commission_levels_and_confirms_once() -> None:
    artist_id = await _create_artist(tier="starter")
    event_id = await _create_event(artist_id, ticket_price=Decimal("10.00"))
    top_id, middle_id, direct_id = await _register_affiliate_chain()
    processor = FakePaymentProcessor()
    orchestrator = TicketPurchaseOrchestrator(
        session_factory=SessionLocal,
        processor=processor,
        timezone_name=PLATFORM_TIMEZONE,
        alert_sender=AlertRecorder(),
    )
    user_id = uuid4()

    result = await orchestrator.purchase(
        event_id=event_id,
        user_id=user_id,
        referral_code=(await _referral_code(direct_id)).lower(),
        now_utc=PURCHASE_AT,
    )

    assert result.price == Decimal("10.00")
    assert result.is_promo is False
    async with SessionLocal.begin() as session:
        ticket = await TicketsRepo.get_by_id(session, result.ticket_id)
        commissions = await CommissionsRepo.list_by_ticket(session, ticket_id=result.ticket_id)
    assert ticket is not None
    assert ticket.status == "pending"
    assert ticket.affiliate_id == direct_id
    assert ticket.payment_intent_ref == "pi_1"
    assert [(row.affiliate_id, row.commission_level, row.commission_amount) for row in commissions] == [
        (direct_id, 1, Decimal("0.25")),
        (middle_id, 2, Decimal("0.15")),
        (top_id, 3, Decimal("0.10")),
    ]
    assert all(row.status == "pending" for row in commissions)

    reconciler = PaymentEventReconciler(session_factory=SessionLocal, alert_sender=AlertRecorder())
    reconciled = await reconciler.apply(_succeeded_event("evt_confirm_1", "pi_1"), now_utc=PURCHASE_AT)
    assert reconciled.outcomes == ["ticket_confirmed"]

    with pytest.raises(IdempotencyViolation):
        await reconciler.apply(_succeeded_event("evt_confirm_1", "pi_1"), now_utc=PURCHASE_AT)

    async with SessionLocal.begin() as session:
        ticket = await TicketsRepo.get_by_id(session, result.ticket_id)
        event = await EventsRepo.get_by_id(session, event_id)
    assert ticket is not None and ticket.status == "confirmed"
    assert ticket.confirmed_at is not None
    assert event is not None and event.current_attendees == 1

    with pytest.raises(DuplicateTicketError):
        await orchestrator.purchase(event_id=event_id, user_id=user_id, now_utc=PURCHASE_AT)
    assert len(processor.authorizations) == 1


@pytest.mark.asyncio
async def test_confirmation_beyond_capacity_cancels_ticket_and_alerts() -> None:
    artist_id = await _create_artist(tier="starter")
    event_id = await _create_event(artist_id, ticket_price=Decimal("8.00"), capacity=1)
    processor = FakePaymentProcessor()
    orchestrator = TicketPurchaseOrchestrator(
        session_factory=SessionLocal,
        processor=processor,
        timezone_name=PLATFORM_TIMEZONE,
        alert_sender=AlertRecorder(),
    )

    first = await orchestrator.purchase(event_id=event_id, user_id=uuid4(), now_utc=PURCHASE_AT)
    second = await orchestrator.purchase(event_id=event_id, user_id=uuid4(), now_utc=PURCHASE_AT)

    alerts = AlertRecorder()
    reconciler = PaymentEventReconciler(session_factory=SessionLocal, alert_sender=alerts)
    await reconciler.apply(_succeeded_event("evt_cap_1", "pi_1"), now_utc=PURCHASE_AT)
    overflow = await reconciler.apply(_succeeded_event("evt_cap_2", "pi_2"), now_utc=PURCHASE_AT)

    assert overflow.outcomes == ["ticket_cancelled_capacity"]
    async with SessionLocal.begin() as session:
        first_ticket = await TicketsRepo.get_by_id(session, first.ticket_id)
        second_ticket = await TicketsRepo.get_by_id(session, second.ticket_id)
        event = await EventsRepo.get_by_id(session, event_id)
    assert first_ticket is not None and first_ticket.status == "confirmed"
    assert second_ticket is not None and second_ticket.status == "cancelled"
    assert event is not None and event.current_attendees == 1
    assert [call["event"] for call in alerts.calls] == ["ticket_capacity_overflow"]


@pytest.mark.asyncio
async def test_user_can_buy_again_after_a_failed_ticket() -> None:
    artist_id = await _create_artist()
    event_id = await _create_event(artist_id, ticket_price=Decimal("10.00"))
    user_id = uuid4()
    failed_ticket_id = await _create_ticket(
        event_id,
        price=Decimal("10.00"),
        created_at=PURCHASE_AT,
        status="failed",
        user_id=user_id,
    )
    processor = FakePaymentProcessor()
    orchestrator = TicketPurchaseOrchestrator(
        session_factory=SessionLocal,
        processor=processor,
        timezone_name=PLATFORM_TIMEZONE,
        alert_sender=AlertRecorder(),
    )

    result = await orchestrator.purchase(event_id=event_id, user_id=user_id, now_utc=PURCHASE_AT)

    assert result.ticket_id != failed_ticket_id
    assert len(processor.authorizations) == 1
    async with SessionLocal.begin() as session:
        ticket = await TicketsRepo.get_by_id(session, result.ticket_id)
        blocking = await TicketsRepo.get_blocking_for_event_user(session, event_id=event_id, user_id=user_id)
    assert ticket is not None and ticket.status == "pending"
    assert blocking is not None and blocking.id == result.ticket_id
