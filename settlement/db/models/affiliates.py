from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Index, SmallInteger, String, text
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from settlement.db.models.base import Base


class Affiliate(Base):
    __tablename__ = "affiliates"
    __table_args__ = (
        CheckConstraint("level BETWEEN 1 AND 3", name="ck_affiliates_level_range"),
        CheckConstraint(
            "grandparent_affiliate_id IS NULL OR parent_affiliate_id IS NOT NULL",
            name="ck_affiliates_grandparent_requires_parent",
        ),
        CheckConstraint("parent_affiliate_id <> id", name="ck_affiliates_no_self_parent"),
        Index("idx_affiliates_parent", "parent_affiliate_id"),
        Index("idx_affiliates_grandparent", "grandparent_affiliate_id"),
    )

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)
    user_id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), unique=True, nullable=False)
    referral_code: Mapped[str] = mapped_column(String(16), unique=True, nullable=False)
    parent_affiliate_id: Mapped[UUID | None] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("affiliates.id"),
        nullable=True,
    )
    grandparent_affiliate_id: Mapped[UUID | None] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("affiliates.id"),
        nullable=True,
    )
    level: Mapped[int] = mapped_column(SmallInteger, nullable=False, server_default=text("1"))
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("true"))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )
