from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import Boolean, CheckConstraint, DateTime, String, text
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from settlement.db.models.base import Base


class Artist(Base):
    __tablename__ = "artists"
    __table_args__ = (
        CheckConstraint(
            "subscription_tier IN ('starter','pro','elite')",
            name="ck_artists_subscription_tier",
        ),
    )

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)
    display_name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    subscription_tier: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        server_default=text("'starter'"),
    )
    subscription_ends_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    payout_account_ref: Mapped[str | None] = mapped_column(String(64), unique=True, nullable=True)
    connect_completed: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        server_default=text("false"),
    )
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
