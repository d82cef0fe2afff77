from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from settlement.db.models.events import Event


class EventsRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, event_id: UUID) -> Event | None:
        return await session.get(Event, event_id)

    @staticmethod
    async def get_by_id_for_update(session: AsyncSession, event_id: UUID) -> Event | None:
        stmt = select(Event).where(Event.id == event_id).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(session: AsyncSession, *, event: Event) -> Event:
        session.add(event)
        await session.flush()
        return event

    @staticmethod
    async def try_increment_attendees(
        session: AsyncSession,
        *,
        event_id: UUID,
        now_utc: datetime,
    ) -> bool:
        """Adds one attendee unless the event is already at capacity.

        The capacity predicate is evaluated by the same UPDATE, so concurrent
        confirmations serialize on the row lock instead of on a prior read.
        """
        stmt = (
            update(Event)
            .where(
                Event.id == event_id,
                or_(Event.capacity.is_(None), Event.current_attendees < Event.capacity),
            )
            .values(current_attendees=Event.current_attendees + 1, updated_at=now_utc)
            .returning(Event.id)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none() is not None

    @staticmethod
    async def list_ended_between(
        session: AsyncSession,
        *,
        start_utc: datetime,
        end_utc: datetime,
    ) -> list[Event]:
        stmt = (
            select(Event)
            .where(
                Event.status == "ended",
                Event.ended_at >= start_utc,
                Event.ended_at < end_utc,
            )
            .order_by(Event.ended_at.asc(), Event.id.asc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())
