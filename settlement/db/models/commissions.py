from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    SmallInteger,
    String,
    UniqueConstraint,
    text,
)
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from settlement.db.models.base import Base


class Commission(Base):
    __tablename__ = "commissions"
    __table_args__ = (
        CheckConstraint("commission_level BETWEEN 1 AND 3", name="ck_commissions_level_range"),
        CheckConstraint("commission_amount >= 0", name="ck_commissions_amount_non_negative"),
        CheckConstraint("status IN ('pending','paid')", name="ck_commissions_status"),
        CheckConstraint(
            "status <> 'paid' OR paid_at IS NOT NULL",
            name="ck_commissions_paid_at_required",
        ),
        UniqueConstraint("ticket_id", "commission_level", name="uq_commissions_ticket_level"),
        Index("idx_commissions_affiliate_status", "affiliate_id", "status"),
        Index(
            "idx_commissions_pending_ticket",
            "ticket_id",
            postgresql_where=text("status = 'pending'"),
        ),
    )

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)
    ticket_id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), ForeignKey("tickets.id"), nullable=False)
    affiliate_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("affiliates.id"),
        nullable=False,
    )
    commission_level: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    commission_rate: Mapped[Decimal] = mapped_column(Numeric(5, 4), nullable=False)
    commission_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, server_default=text("'pending'"))
    payout_id: Mapped[UUID | None] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("payouts.id"),
        nullable=True,
    )
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
