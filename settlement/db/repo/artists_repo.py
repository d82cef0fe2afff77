from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from settlement.db.models.artists import Artist


class ArtistsRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, artist_id: UUID) -> Artist | None:
        return await session.get(Artist, artist_id)

    @staticmethod
    async def get_by_id_for_update(session: AsyncSession, artist_id: UUID) -> Artist | None:
        stmt = select(Artist).where(Artist.id == artist_id).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_payout_account_ref_for_update(
        session: AsyncSession,
        *,
        payout_account_ref: str,
    ) -> Artist | None:
        stmt = select(Artist).where(Artist.payout_account_ref == payout_account_ref).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(session: AsyncSession, *, artist: Artist) -> Artist:
        session.add(artist)
        await session.flush()
        return artist

    @staticmethod
    async def set_subscription(
        session: AsyncSession,
        *,
        artist_id: UUID,
        subscription_tier: str,
        subscription_ends_at: datetime | None,
        now_utc: datetime,
    ) -> int:
        stmt = (
            update(Artist)
            .where(Artist.id == artist_id)
            .values(
                subscription_tier=subscription_tier,
                subscription_ends_at=subscription_ends_at,
                updated_at=now_utc,
            )
        )
        result = await session.execute(stmt)
        return result.rowcount or 0

    @staticmethod
    async def mark_connect_completed(
        session: AsyncSession,
        *,
        artist_id: UUID,
        now_utc: datetime,
    ) -> int:
        stmt = (
            update(Artist)
            .where(Artist.id == artist_id, Artist.connect_completed.is_(False))
            .values(connect_completed=True, updated_at=now_utc)
        )
        result = await session.execute(stmt)
        return result.rowcount or 0
