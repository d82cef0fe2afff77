from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from settlement.db.models.tickets import NON_BLOCKING_TICKET_STATUSES, Ticket


class TicketsRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, ticket_id: UUID) -> Ticket | None:
        return await session.get(Ticket, ticket_id)

    @staticmethod
    async def get_blocking_for_event_user(
        session: AsyncSession,
        *,
        event_id: UUID,
        user_id: UUID,
    ) -> Ticket | None:
        stmt = select(Ticket).where(
            Ticket.event_id == event_id,
            Ticket.user_id == user_id,
            Ticket.status.not_in(NON_BLOCKING_TICKET_STATUSES),
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_payment_intent_ref_for_update(
        session: AsyncSession,
        *,
        payment_intent_ref: str,
    ) -> Ticket | None:
        stmt = select(Ticket).where(Ticket.payment_intent_ref == payment_intent_ref).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(session: AsyncSession, *, ticket: Ticket) -> Ticket:
        session.add(ticket)
        await session.flush()
        return ticket

    @staticmethod
    async def sum_confirmed_revenue(session: AsyncSession, *, event_id: UUID) -> Decimal:
        stmt = select(func.coalesce(func.sum(Ticket.purchase_price), 0)).where(
            Ticket.event_id == event_id,
            Ticket.status == "confirmed",
        )
        result = await session.execute(stmt)
        return Decimal(result.scalar_one())
