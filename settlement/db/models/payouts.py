from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from settlement.db.models.base import Base


class Payout(Base):
    __tablename__ = "payouts"
    __table_args__ = (
        CheckConstraint("status IN ('processing','failed')", name="ck_payouts_status"),
        CheckConstraint("amount > 0", name="ck_payouts_amount_positive"),
        CheckConstraint("retry_count >= 0", name="ck_payouts_retry_count_non_negative"),
        UniqueConstraint("artist_id", "event_id", name="uq_payouts_artist_event"),
        Index("idx_payouts_status_created", "status", "created_at"),
    )

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)
    artist_id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), ForeignKey("artists.id"), nullable=False)
    event_id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), ForeignKey("events.id"), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False)
    external_transfer_ref: Mapped[str | None] = mapped_column(String(128), unique=True, nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    retry_count: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    scheduled_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
