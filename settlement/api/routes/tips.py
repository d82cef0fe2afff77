from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from settlement.api.routes.helpers import http_error_from, require_user_id
from settlement.db.session import SessionLocal
from settlement.economy.errors import SettlementError
from settlement.economy.tips import TipService
from settlement.services.payment_processor import get_payment_processor

router = APIRouter(tags=["tips"])


class TipRequest(BaseModel):
    artist_id: UUID
    amount: Decimal = Field(gt=0)
    message: str | None = None
    event_id: UUID | None = None


class TipResponse(BaseModel):
    tip_id: UUID
    client_token: str
    amount: Decimal
    platform_fee: Decimal


def _build_tip_service() -> TipService:
    return TipService(session_factory=SessionLocal, processor=get_payment_processor())


@router.post("/tips", response_model=TipResponse)
async def create_tip(payload: TipRequest, request: Request) -> TipResponse:
    user_id = require_user_id(request)
    try:
        result = await _build_tip_service().create_tip(
            artist_id=payload.artist_id,
            user_id=user_id,
            amount=payload.amount,
            message=payload.message,
            event_id=payload.event_id,
        )
    except SettlementError as exc:
        raise http_error_from(exc) from exc

    return TipResponse(
        tip_id=result.tip_id,
        client_token=result.client_token,
        amount=result.amount,
        platform_fee=result.platform_fee,
    )
