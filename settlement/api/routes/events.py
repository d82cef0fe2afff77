from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from settlement.api.routes.helpers import http_error_from, require_user_id
from settlement.core.config import get_settings
from settlement.db.models.events import Event
from settlement.db.session import SessionLocal
from settlement.economy.errors import SettlementError
from settlement.economy.listings import EventListingService

router = APIRouter(tags=["events"])


class EventCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    scheduled_at: datetime
    ticket_price: Decimal = Field(gt=0)
    happy_hour_price: Decimal | None = Field(default=None, gt=0)
    capacity: int | None = Field(default=None, gt=0)


class EventPricingRequest(BaseModel):
    ticket_price: Decimal = Field(gt=0)
    happy_hour_price: Decimal | None = Field(default=None, gt=0)


class EventStatusRequest(BaseModel):
    status: Literal["live", "ended", "cancelled"]


class EventResponse(BaseModel):
    event_id: UUID
    artist_id: UUID
    title: str
    scheduled_at: datetime
    ticket_price: Decimal
    happy_hour_price: Decimal | None
    capacity: int | None
    current_attendees: int
    status: str
    ended_at: datetime | None


def _to_response(event: Event) -> EventResponse:
    return EventResponse(
        event_id=event.id,
        artist_id=event.artist_id,
        title=event.title,
        scheduled_at=event.scheduled_at,
        ticket_price=event.ticket_price,
        happy_hour_price=event.happy_hour_price,
        capacity=event.capacity,
        current_attendees=event.current_attendees,
        status=event.status,
        ended_at=event.ended_at,
    )


@router.post("/events", response_model=EventResponse, status_code=201)
async def create_event(payload: EventCreateRequest, request: Request) -> EventResponse:
    artist_id = require_user_id(request)
    try:
        async with SessionLocal.begin() as session:
            event = await EventListingService.create_event(
                session,
                artist_id=artist_id,
                title=payload.title,
                scheduled_at=payload.scheduled_at,
                ticket_price=payload.ticket_price,
                happy_hour_price=payload.happy_hour_price,
                capacity=payload.capacity,
                timezone_name=get_settings().platform_timezone,
                now_utc=datetime.now(timezone.utc),
            )
            return _to_response(event)
    except SettlementError as exc:
        raise http_error_from(exc) from exc


@router.patch("/events/{event_id}/pricing", response_model=EventResponse)
async def update_event_pricing(
    event_id: UUID,
    payload: EventPricingRequest,
    request: Request,
) -> EventResponse:
    artist_id = require_user_id(request)
    try:
        async with SessionLocal.begin() as session:
            event = await EventListingService.update_pricing(
                session,
                event_id=event_id,
                artist_id=artist_id,
                ticket_price=payload.ticket_price,
                happy_hour_price=payload.happy_hour_price,
                timezone_name=get_settings().platform_timezone,
                now_utc=datetime.now(timezone.utc),
            )
            return _to_response(event)
    except SettlementError as exc:
        raise http_error_from(exc) from exc


@router.patch("/events/{event_id}/status", response_model=EventResponse)
async def update_event_status(
    event_id: UUID,
    payload: EventStatusRequest,
    request: Request,
) -> EventResponse:
    artist_id = require_user_id(request)
    try:
        async with SessionLocal.begin() as session:
            event = await EventListingService.transition_status(
                session,
                event_id=event_id,
                artist_id=artist_id,
                status=payload.status,
                now_utc=datetime.now(timezone.utc),
            )
            return _to_response(event)
    except SettlementError as exc:
        raise http_error_from(exc) from exc
