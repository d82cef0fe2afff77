from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from settlement.db.models.affiliates import Affiliate


class AffiliatesRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, affiliate_id: UUID) -> Affiliate | None:
        return await session.get(Affiliate, affiliate_id)

    @staticmethod
    async def get_by_user_id(session: AsyncSession, *, user_id: UUID) -> Affiliate | None:
        stmt = select(Affiliate).where(Affiliate.user_id == user_id)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_active_by_referral_code(
        session: AsyncSession,
        *,
        referral_code: str,
    ) -> Affiliate | None:
        stmt = select(Affiliate).where(
            Affiliate.referral_code == referral_code,
            Affiliate.is_active.is_(True),
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def referral_code_exists(session: AsyncSession, *, referral_code: str) -> bool:
        stmt = select(Affiliate.id).where(Affiliate.referral_code == referral_code).limit(1)
        result = await session.execute(stmt)
        return result.scalar_one_or_none() is not None

    @staticmethod
    async def create(session: AsyncSession, *, affiliate: Affiliate) -> Affiliate:
        session.add(affiliate)
        await session.flush()
        return affiliate
