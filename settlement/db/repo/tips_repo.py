from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from settlement.db.models.tips import Tip


class TipsRepo:
    @staticmethod
    async def get_by_payment_intent_ref_for_update(
        session: AsyncSession,
        *,
        payment_intent_ref: str,
    ) -> Tip | None:
        stmt = select(Tip).where(Tip.payment_intent_ref == payment_intent_ref).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(session: AsyncSession, *, tip: Tip) -> Tip:
        session.add(tip)
        await session.flush()
        return tip
