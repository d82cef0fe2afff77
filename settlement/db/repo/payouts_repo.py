from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.ext.asyncio import AsyncSession

from settlement.db.models.payouts import Payout


class PayoutsRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, payout_id: UUID) -> Payout | None:
        return await session.get(Payout, payout_id)

    @staticmethod
    async def get_by_id_for_update(session: AsyncSession, payout_id: UUID) -> Payout | None:
        stmt = select(Payout).where(Payout.id == payout_id).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_for_artist_event(
        session: AsyncSession,
        *,
        artist_id: UUID,
        event_id: UUID,
    ) -> Payout | None:
        stmt = select(Payout).where(Payout.artist_id == artist_id, Payout.event_id == event_id)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def try_create_processing(
        session: AsyncSession,
        *,
        payout_id: UUID,
        artist_id: UUID,
        event_id: UUID,
        amount: Decimal,
        now_utc: datetime,
    ) -> bool:
        stmt = (
            postgresql_insert(Payout)
            .values(
                id=payout_id,
                artist_id=artist_id,
                event_id=event_id,
                amount=amount,
                status="processing",
                retry_count=0,
                scheduled_at=now_utc,
                created_at=now_utc,
                updated_at=now_utc,
            )
            .on_conflict_do_nothing(constraint="uq_payouts_artist_event")
            .returning(Payout.id)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none() is not None

    @staticmethod
    async def mark_transferred(
        session: AsyncSession,
        *,
        payout_id: UUID,
        external_transfer_ref: str,
        now_utc: datetime,
    ) -> int:
        stmt = (
            update(Payout)
            .where(Payout.id == payout_id, Payout.status == "processing")
            .values(
                external_transfer_ref=external_transfer_ref,
                error_message=None,
                updated_at=now_utc,
            )
        )
        result = await session.execute(stmt)
        return result.rowcount or 0

    @staticmethod
    async def mark_failed(
        session: AsyncSession,
        *,
        payout_id: UUID,
        error_message: str,
        now_utc: datetime,
    ) -> int:
        stmt = (
            update(Payout)
            .where(Payout.id == payout_id, Payout.status == "processing")
            .values(status="failed", error_message=error_message, updated_at=now_utc)
        )
        result = await session.execute(stmt)
        return result.rowcount or 0

    @staticmethod
    async def mark_retrying(
        session: AsyncSession,
        *,
        payout_id: UUID,
        amount: Decimal,
        now_utc: datetime,
    ) -> int | None:
        stmt = (
            update(Payout)
            .where(Payout.id == payout_id, Payout.status == "failed")
            .values(
                status="processing",
                amount=amount,
                error_message=None,
                retry_count=Payout.retry_count + 1,
                updated_at=now_utc,
            )
            .returning(Payout.retry_count)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()
