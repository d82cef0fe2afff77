from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from settlement.db.models.commissions import Commission
from settlement.db.models.tickets import Ticket


class CommissionsRepo:
    @staticmethod
    async def create_many(session: AsyncSession, *, commissions: Sequence[Commission]) -> int:
        if not commissions:
            return 0
        session.add_all(commissions)
        await session.flush()
        return len(commissions)

    @staticmethod
    async def list_by_ticket(session: AsyncSession, *, ticket_id: UUID) -> list[Commission]:
        stmt = (
            select(Commission)
            .where(Commission.ticket_id == ticket_id)
            .order_by(Commission.commission_level.asc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_pending_for_event(
        session: AsyncSession,
        *,
        event_id: UUID,
    ) -> list[tuple[UUID, Decimal]]:
        stmt = (
            select(Commission.id, Commission.commission_amount)
            .join(Ticket, Ticket.id == Commission.ticket_id)
            .where(
                Ticket.event_id == event_id,
                Ticket.status == "confirmed",
                Commission.status == "pending",
            )
            .order_by(Commission.created_at.asc(), Commission.id.asc())
        )
        result = await session.execute(stmt)
        return [(commission_id, Decimal(amount)) for commission_id, amount in result.all()]

    @staticmethod
    async def mark_paid(
        session: AsyncSession,
        *,
        commission_ids: Sequence[UUID],
        payout_id: UUID,
        paid_at: datetime,
    ) -> int:
        if not commission_ids:
            return 0
        stmt = (
            update(Commission)
            .where(
                Commission.id.in_(list(commission_ids)),
                Commission.status == "pending",
            )
            .values(status="paid", payout_id=payout_id, paid_at=paid_at)
            .returning(Commission.id)
        )
        result = await session.execute(stmt)
        return len(list(result.scalars()))

    @staticmethod
    async def get_affiliate_earnings(
        session: AsyncSession,
        *,
        affiliate_id: UUID,
    ) -> dict[str, Decimal | int]:
        pending_amount = func.coalesce(
            func.sum(Commission.commission_amount).filter(Commission.status == "pending"),
            0,
        )
        paid_amount = func.coalesce(
            func.sum(Commission.commission_amount).filter(Commission.status == "paid"),
            0,
        )
        referred_tickets = func.count(Commission.id).filter(Commission.commission_level == 1)
        stmt = select(pending_amount, paid_amount, referred_tickets).where(
            Commission.affiliate_id == affiliate_id
        )
        result = await session.execute(stmt)
        pending, paid, tickets = result.one()
        return {
            "pending": Decimal(pending),
            "paid": Decimal(paid),
            "referred_tickets": int(tickets or 0),
        }
