from __future__ import annotations

from datetime import datetime

from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.ext.asyncio import AsyncSession

from settlement.db.models.processed_payment_events import ProcessedPaymentEvent


class ProcessedPaymentEventsRepo:
    @staticmethod
    async def try_create(
        session: AsyncSession,
        *,
        external_event_id: str,
        event_type: str,
        processed_at: datetime,
    ) -> bool:
        """Claims an external event id; False means another delivery already holds it."""
        stmt = (
            postgresql_insert(ProcessedPaymentEvent)
            .values(
                external_event_id=external_event_id,
                event_type=event_type,
                processed_at=processed_at,
            )
            .on_conflict_do_nothing(index_elements=[ProcessedPaymentEvent.external_event_id])
            .returning(ProcessedPaymentEvent.external_event_id)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none() is not None
