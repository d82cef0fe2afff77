from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from types import SimpleNamespace
from uuid import uuid4

import pytest

from settlement.db.repo.events_repo import EventsRepo
from settlement.db.repo.processed_payment_events_repo import ProcessedPaymentEventsRepo
from settlement.economy.errors import IdempotencyViolation
from settlement.economy.reconciliation import PaymentEvent, PaymentEventReconciler
from settlement.economy.reconciliation import service as reconciler_service
from settlement.economy.reconciliation.state import LoadedSubject
from settlement.economy.reconciliation.types import ReconciliationState, TicketSnapshot
from tests.economy.fakes import AlertRecorder, FakeSessionFactory

NOW_UTC = datetime(2026, 1, 7, 19, 30, tzinfo=timezone.utc)


def _event(event_type: str = "payment_intent.succeeded") -> PaymentEvent:
    return PaymentEvent.model_validate(
        {"id": "evt_1", "type": event_type, "data": {"object": {"id": "pi_1"}}}
    )


def _pending_ticket() -> SimpleNamespace:
    return SimpleNamespace(
        id=uuid4(),
        event_id=uuid4(),
        status="pending",
        purchase_price=Decimal("10.00"),
        payment_intent_ref="pi_1",
        confirmed_at=None,
        updated_at=None,
    )


def _loaded(ticket: SimpleNamespace) -> LoadedSubject:
    return LoadedSubject(
        state=ReconciliationState(
            ticket=TicketSnapshot(id=ticket.id, event_id=ticket.event_id, status=ticket.status)
        ),
        ticket=ticket,
    )


def _claim(result: bool, calls: list[str]):
    async def _fake_try_create(session, *, external_event_id: str, event_type: str, processed_at: datetime) -> bool:
        calls.append(external_event_id)
        return result

    return _fake_try_create


async def test_replayed_event_raises_without_loading_state(monkeypatch) -> None:
    claims: list[str] = []
    monkeypatch.setattr(ProcessedPaymentEventsRepo, "try_create", _claim(False, claims))

    async def _fail_load(*args, **kwargs):
        raise AssertionError("state must not be loaded for a replay")

    monkeypatch.setattr(reconciler_service, "load_subject", _fail_load)
    reconciler = PaymentEventReconciler(session_factory=FakeSessionFactory())

    with pytest.raises(IdempotencyViolation) as exc_info:
        await reconciler.apply(_event(), now_utc=NOW_UTC)

    assert exc_info.value.external_event_id == "evt_1"
    assert claims == ["evt_1"]


async def test_unhandled_event_type_is_recorded_and_ignored(monkeypatch) -> None:
    claims: list[str] = []
    monkeypatch.setattr(ProcessedPaymentEventsRepo, "try_create", _claim(True, claims))
    reconciler = PaymentEventReconciler(session_factory=FakeSessionFactory())

    result = await reconciler.apply(_event("invoice.created"), now_utc=NOW_UTC)

    assert result.status == "ignored"
    assert result.outcomes == []
    assert claims == ["evt_1"]


async def test_succeeded_event_confirms_ticket_and_counts_attendee(monkeypatch) -> None:
    ticket = _pending_ticket()
    increments: list[object] = []
    monkeypatch.setattr(ProcessedPaymentEventsRepo, "try_create", _claim(True, []))

    async def _fake_load(session, *, event, subject):
        return _loaded(ticket)

    async def _fake_increment(session, *, event_id, now_utc) -> bool:
        increments.append(event_id)
        return True

    monkeypatch.setattr(reconciler_service, "load_subject", _fake_load)
    monkeypatch.setattr(EventsRepo, "try_increment_attendees", _fake_increment)
    alerts = AlertRecorder()
    reconciler = PaymentEventReconciler(session_factory=FakeSessionFactory(), alert_sender=alerts)

    result = await reconciler.apply(_event(), now_utc=NOW_UTC)

    assert result.status == "processed"
    assert result.outcomes == ["ticket_confirmed"]
    assert ticket.status == "confirmed"
    assert ticket.confirmed_at == NOW_UTC
    assert increments == [ticket.event_id]
    assert alerts.calls == []


async def test_confirmation_past_capacity_cancels_ticket_and_alerts(monkeypatch) -> None:
    ticket = _pending_ticket()
    monkeypatch.setattr(ProcessedPaymentEventsRepo, "try_create", _claim(True, []))

    async def _fake_load(session, *, event, subject):
        return _loaded(ticket)

    async def _full_event(session, *, event_id, now_utc) -> bool:
        return False

    monkeypatch.setattr(reconciler_service, "load_subject", _fake_load)
    monkeypatch.setattr(EventsRepo, "try_increment_attendees", _full_event)
    alerts = AlertRecorder()
    reconciler = PaymentEventReconciler(session_factory=FakeSessionFactory(), alert_sender=alerts)

    result = await reconciler.apply(_event(), now_utc=NOW_UTC)

    assert result.outcomes == ["ticket_cancelled_capacity"]
    assert ticket.status == "cancelled"
    assert [call["event"] for call in alerts.calls] == ["ticket_capacity_overflow"]
    assert alerts.calls[0]["payload"]["ticket_id"] == str(ticket.id)


async def test_already_confirmed_ticket_is_no_effect(monkeypatch) -> None:
    ticket = _pending_ticket()
    ticket.status = "confirmed"
    monkeypatch.setattr(ProcessedPaymentEventsRepo, "try_create", _claim(True, []))

    async def _fake_load(session, *, event, subject):
        return _loaded(ticket)

    monkeypatch.setattr(reconciler_service, "load_subject", _fake_load)
    reconciler = PaymentEventReconciler(session_factory=FakeSessionFactory())

    result = await reconciler.apply(_event(), now_utc=NOW_UTC)

    assert result.status == "no_effect"
    assert ticket.status == "confirmed"
