from __future__ import annotations

from decimal import Decimal
from uuid import UUID

import structlog
from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from settlement.api.routes.helpers import http_error_from, require_user_id
from settlement.core.config import get_settings
from settlement.db.session import SessionLocal
from settlement.economy.errors import SettlementError
from settlement.economy.purchases import TicketPurchaseOrchestrator
from settlement.services.payment_processor import get_payment_processor

router = APIRouter(tags=["tickets"])
logger = structlog.get_logger(__name__)


class TicketPurchaseRequest(BaseModel):
    event_id: UUID
    referral_code: str | None = Field(default=None, max_length=32)


class TicketPurchaseResponse(BaseModel):
    ticket_id: UUID
    client_token: str
    price: Decimal
    is_promo: bool


def _build_orchestrator() -> TicketPurchaseOrchestrator:
    return TicketPurchaseOrchestrator(
        session_factory=SessionLocal,
        processor=get_payment_processor(),
        timezone_name=get_settings().platform_timezone,
    )


@router.post("/tickets/purchase", response_model=TicketPurchaseResponse)
async def purchase_ticket(payload: TicketPurchaseRequest, request: Request) -> TicketPurchaseResponse:
    user_id = require_user_id(request)
    orchestrator = _build_orchestrator()
    try:
        result = await orchestrator.purchase(
            event_id=payload.event_id,
            user_id=user_id,
            referral_code=payload.referral_code,
        )
    except SettlementError as exc:
        logger.info(
            "ticket_purchase_rejected",
            event_id=str(payload.event_id),
            user_id=str(user_id),
            code=exc.code,
        )
        raise http_error_from(exc) from exc

    return TicketPurchaseResponse(
        ticket_id=result.ticket_id,
        client_token=result.client_token,
        price=result.price,
        is_promo=result.is_promo,
    )
