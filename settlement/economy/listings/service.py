from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID, uuid4

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from settlement.core.money import quantize_cents
from settlement.db.models.events import Event
from settlement.db.repo.artists_repo import ArtistsRepo
from settlement.db.repo.events_repo import EventsRepo
from settlement.economy.errors import EventNotAvailableError, NotFoundError, ValidationError
from settlement.economy.pricing import validate_listing_price

logger = structlog.get_logger(__name__)

EVENT_STATUS_TRANSITIONS = {
    ("scheduled", "live"),
    ("scheduled", "cancelled"),
    ("live", "ended"),
    ("live", "cancelled"),
}
REPRICEABLE_EVENT_STATUSES = frozenset({"scheduled"})


async def _get_owned_event_for_update(session: AsyncSession, *, event_id: UUID, artist_id: UUID) -> Event:
    event = await EventsRepo.get_by_id_for_update(session, event_id)
    # Another artist's event is reported as missing.
    if event is None or event.artist_id != artist_id:
        raise NotFoundError(f"event {event_id} not found")
    return event


class EventListingService:
    @staticmethod
    async def create_event(
        session: AsyncSession,
        *,
        artist_id: UUID,
        title: str,
        scheduled_at: datetime,
        ticket_price: Decimal,
        happy_hour_price: Decimal | None,
        capacity: int | None,
        timezone_name: str,
        now_utc: datetime,
    ) -> Event:
        artist = await ArtistsRepo.get_by_id(session, artist_id)
        if artist is None:
            raise NotFoundError(f"artist {artist_id} not found")
        if capacity is not None and capacity <= 0:
            raise ValidationError("capacity must be positive")

        validate_listing_price(
            base_price=ticket_price,
            promo_price=happy_hour_price,
            tier=artist.subscription_tier,
            scheduled_at=scheduled_at,
            timezone_name=timezone_name,
        )
        event = await EventsRepo.create(
            session,
            event=Event(
                id=uuid4(),
                artist_id=artist_id,
                title=title,
                scheduled_at=scheduled_at,
                ticket_price=quantize_cents(ticket_price),
                happy_hour_price=quantize_cents(happy_hour_price) if happy_hour_price is not None else None,
                capacity=capacity,
                current_attendees=0,
                status="scheduled",
                created_at=now_utc,
                updated_at=now_utc,
            ),
        )
        logger.info("event_created", event_id=str(event.id), artist_id=str(artist_id))
        return event

    @staticmethod
    async def update_pricing(
        session: AsyncSession,
        *,
        event_id: UUID,
        artist_id: UUID,
        ticket_price: Decimal,
        happy_hour_price: Decimal | None,
        timezone_name: str,
        now_utc: datetime,
    ) -> Event:
        event = await _get_owned_event_for_update(session, event_id=event_id, artist_id=artist_id)
        if event.status not in REPRICEABLE_EVENT_STATUSES:
            raise EventNotAvailableError(f"cannot reprice a {event.status} event")

        artist = await ArtistsRepo.get_by_id(session, artist_id)
        if artist is None:
            raise NotFoundError(f"artist {artist_id} not found")

        validate_listing_price(
            base_price=ticket_price,
            promo_price=happy_hour_price,
            tier=artist.subscription_tier,
            scheduled_at=event.scheduled_at,
            timezone_name=timezone_name,
        )
        event.ticket_price = quantize_cents(ticket_price)
        event.happy_hour_price = quantize_cents(happy_hour_price) if happy_hour_price is not None else None
        event.updated_at = now_utc
        logger.info("event_repriced", event_id=str(event.id), ticket_price=str(event.ticket_price))
        return event

    @staticmethod
    async def transition_status(
        session: AsyncSession,
        *,
        event_id: UUID,
        artist_id: UUID,
        status: str,
        now_utc: datetime,
    ) -> Event:
        event = await _get_owned_event_for_update(session, event_id=event_id, artist_id=artist_id)
        if event.status == status:
            return event
        if (event.status, status) not in EVENT_STATUS_TRANSITIONS:
            raise EventNotAvailableError(f"cannot move event from {event.status} to {status}")

        event.status = status
        if status == "ended" and event.ended_at is None:
            event.ended_at = now_utc
        event.updated_at = now_utc
        logger.info("event_status_changed", event_id=str(event.id), status=status)
        return event
