from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, Numeric, String, text
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from settlement.db.models.base import Base


class Event(Base):
    __tablename__ = "events"
    __table_args__ = (
        CheckConstraint(
            "status IN ('scheduled','live','ended','cancelled')",
            name="ck_events_status",
        ),
        CheckConstraint("ticket_price > 0", name="ck_events_ticket_price_positive"),
        CheckConstraint(
            "happy_hour_price IS NULL OR happy_hour_price > 0",
            name="ck_events_happy_hour_price_positive",
        ),
        CheckConstraint("capacity IS NULL OR capacity > 0", name="ck_events_capacity_positive"),
        CheckConstraint("current_attendees >= 0", name="ck_events_attendees_non_negative"),
        CheckConstraint(
            "capacity IS NULL OR current_attendees <= capacity",
            name="ck_events_attendees_within_capacity",
        ),
        CheckConstraint(
            "status <> 'ended' OR ended_at IS NOT NULL",
            name="ck_events_ended_at_required",
        ),
        Index("idx_events_artist_scheduled", "artist_id", "scheduled_at"),
        Index(
            "idx_events_ended_at",
            "ended_at",
            postgresql_where=text("status = 'ended'"),
        ),
    )

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)
    artist_id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), ForeignKey("artists.id"), nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    scheduled_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    ticket_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    happy_hour_price: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    capacity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    current_attendees: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    status: Mapped[str] = mapped_column(String(16), nullable=False, server_default=text("'scheduled'"))
    ended_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )
