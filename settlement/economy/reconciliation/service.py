from __future__ import annotations

from datetime import datetime, timezone

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from settlement.db.repo.processed_payment_events_repo import ProcessedPaymentEventsRepo
from settlement.economy.errors import IdempotencyViolation
from settlement.services.alerts import AlertSender, send_ops_alert

from .effects import EffectContext, apply_effect
from .handlers import EVENT_HANDLERS, EventHandler
from .state import load_subject
from .types import CapacityOverflow, PaymentEvent, ReconciliationResult

logger = structlog.get_logger(__name__)


class PaymentEventReconciler:
    """Applies processor lifecycle events to tickets, tips and artists exactly once.

    The processed-event row is inserted first, inside the same transaction as
    every state change. A concurrent delivery of the same id blocks on that
    insert and then finds the row, so at most one delivery has side effects.
    """

    def __init__(
        self,
        *,
        session_factory: async_sessionmaker[AsyncSession],
        handlers: dict[str, EventHandler] | None = None,
        alert_sender: AlertSender = send_ops_alert,
    ) -> None:
        self._session_factory = session_factory
        self._handlers = EVENT_HANDLERS if handlers is None else handlers
        self._alert_sender = alert_sender

    async def apply(
        self,
        event: PaymentEvent,
        *,
        now_utc: datetime | None = None,
    ) -> ReconciliationResult:
        resolved_now = now_utc or datetime.now(timezone.utc)
        handler = self._handlers.get(event.type)
        overflows: list[CapacityOverflow] = []

        async with self._session_factory.begin() as session:
            claimed = await ProcessedPaymentEventsRepo.try_create(
                session,
                external_event_id=event.id,
                event_type=event.type,
                processed_at=resolved_now,
            )
            if not claimed:
                raise IdempotencyViolation(event.id)

            if handler is None:
                result = ReconciliationResult(
                    external_event_id=event.id,
                    event_type=event.type,
                    status="ignored",
                )
            else:
                subject = await load_subject(session, event=event, subject=handler.subject)
                effects = handler.decide(event, subject.state)
                context = EffectContext(session=session, subject=subject, now_utc=resolved_now)
                outcomes = [await apply_effect(context, effect) for effect in effects]
                overflows = context.capacity_overflows
                result = ReconciliationResult(
                    external_event_id=event.id,
                    event_type=event.type,
                    status="processed" if outcomes else "no_effect",
                    outcomes=outcomes,
                )

        logger.info(
            "payment_event_reconciled",
            external_event_id=event.id,
            event_type=event.type,
            status=result.status,
            outcomes=result.outcomes,
        )
        for overflow in overflows:
            await self._alert_sender(
                event="ticket_capacity_overflow",
                payload={
                    "ticket_id": str(overflow.ticket_id),
                    "event_id": str(overflow.event_id),
                    "purchase_price": str(overflow.purchase_price),
                    "payment_intent_ref": overflow.payment_intent_ref,
                    "external_event_id": event.id,
                },
            )
        return result
