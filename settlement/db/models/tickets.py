from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Index, Numeric, String, text
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from settlement.db.models.base import Base

NON_BLOCKING_TICKET_STATUSES = ("failed", "cancelled")


class Ticket(Base):
    __tablename__ = "tickets"
    __table_args__ = (
        CheckConstraint(
            "status IN ('pending','confirmed','failed','refunded','cancelled')",
            name="ck_tickets_status",
        ),
        CheckConstraint("purchase_price > 0", name="ck_tickets_purchase_price_positive"),
        CheckConstraint(
            "status <> 'confirmed' OR confirmed_at IS NOT NULL",
            name="ck_tickets_confirmed_at_required",
        ),
        Index("idx_tickets_event_status", "event_id", "status"),
        Index("idx_tickets_user_created", "user_id", "created_at"),
        Index(
            "uq_tickets_active_event_user",
            "event_id",
            "user_id",
            unique=True,
            postgresql_where=text("status NOT IN ('failed','cancelled')"),
        ),
    )

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)
    event_id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), ForeignKey("events.id"), nullable=False)
    user_id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), nullable=False)
    purchase_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    is_happy_hour: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("false"))
    payment_intent_ref: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    affiliate_id: Mapped[UUID | None] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("affiliates.id"),
        nullable=True,
    )
    status: Mapped[str] = mapped_column(String(16), nullable=False)
    confirmed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    refunded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
