from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class PaymentEventData(BaseModel):
    model_config = ConfigDict(extra="allow")

    object: dict[str, Any]


class PaymentEvent(BaseModel):
    """A signed lifecycle event delivered by the payment processor."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str = Field(min_length=1, max_length=255)
    type: str = Field(min_length=1, max_length=128)
    created: int | None = None
    data: PaymentEventData

    @property
    def payload(self) -> dict[str, Any]:
        return self.data.object

    @property
    def metadata(self) -> dict[str, Any]:
        raw_metadata = self.payload.get("metadata")
        return raw_metadata if isinstance(raw_metadata, dict) else {}


@dataclass(frozen=True, slots=True)
class TicketSnapshot:
    id: UUID
    event_id: UUID
    status: str


@dataclass(frozen=True, slots=True)
class TipSnapshot:
    id: UUID
    status: str


@dataclass(frozen=True, slots=True)
class ArtistSnapshot:
    id: UUID
    subscription_tier: str
    connect_completed: bool


@dataclass(frozen=True, slots=True)
class ReconciliationState:
    ticket: TicketSnapshot | None = None
    tip: TipSnapshot | None = None
    artist: ArtistSnapshot | None = None


@dataclass(frozen=True, slots=True)
class ConfirmTicket:
    ticket_id: UUID
    event_id: UUID


@dataclass(frozen=True, slots=True)
class FailTicket:
    ticket_id: UUID


@dataclass(frozen=True, slots=True)
class RefundTicket:
    ticket_id: UUID


@dataclass(frozen=True, slots=True)
class CompleteTip:
    tip_id: UUID


@dataclass(frozen=True, slots=True)
class FailTip:
    tip_id: UUID


@dataclass(frozen=True, slots=True)
class RefundTip:
    tip_id: UUID


@dataclass(frozen=True, slots=True)
class SetSubscription:
    artist_id: UUID
    subscription_tier: str
    subscription_ends_at: datetime | None


@dataclass(frozen=True, slots=True)
class CompleteOnboarding:
    artist_id: UUID


Effect = (
    ConfirmTicket
    | FailTicket
    | RefundTicket
    | CompleteTip
    | FailTip
    | RefundTip
    | SetSubscription
    | CompleteOnboarding
)


@dataclass(slots=True)
class ReconciliationResult:
    external_event_id: str
    event_type: str
    status: str
    outcomes: list[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class CapacityOverflow:
    ticket_id: UUID
    event_id: UUID
    purchase_price: Decimal
    payment_intent_ref: str
