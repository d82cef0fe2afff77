from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from settlement.db.models.base import Base


class ProcessedPaymentEvent(Base):
    __tablename__ = "processed_payment_events"
    __table_args__ = (Index("idx_processed_payment_events_processed_at", "processed_at"),)

    external_event_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    event_type: Mapped[str] = mapped_column(String(128), nullable=False)
    processed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
