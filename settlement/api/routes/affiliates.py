from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from settlement.api.routes.helpers import http_error_from, require_user_id
from settlement.db.session import SessionLocal
from settlement.economy.affiliates import AffiliateService
from settlement.economy.errors import SettlementError

router = APIRouter(tags=["affiliates"])


class AffiliateRegisterRequest(BaseModel):
    display_name: str | None = Field(default=None, max_length=128)
    referral_code: str | None = Field(default=None, max_length=32)


class AffiliateRegisterResponse(BaseModel):
    affiliate_id: UUID
    referral_code: str
    level: int
    parent_affiliate_id: UUID | None


class AffiliateStatsResponse(BaseModel):
    affiliate_id: UUID
    referral_code: str
    level: int
    referred_tickets: int = Field(ge=0)
    total_earnings: Decimal
    pending_earnings: Decimal
    paid_earnings: Decimal


@router.post("/affiliates/register", response_model=AffiliateRegisterResponse, status_code=201)
async def register_affiliate(payload: AffiliateRegisterRequest, request: Request) -> AffiliateRegisterResponse:
    user_id = require_user_id(request)
    try:
        async with SessionLocal.begin() as session:
            affiliate = await AffiliateService.register(
                session,
                user_id=user_id,
                display_name=payload.display_name,
                parent_referral_code=payload.referral_code,
                now_utc=datetime.now(timezone.utc),
            )
            return AffiliateRegisterResponse(
                affiliate_id=affiliate.id,
                referral_code=affiliate.referral_code,
                level=affiliate.level,
                parent_affiliate_id=affiliate.parent_affiliate_id,
            )
    except SettlementError as exc:
        raise http_error_from(exc) from exc


@router.get("/affiliates/me/stats", response_model=AffiliateStatsResponse)
async def get_affiliate_stats(request: Request) -> AffiliateStatsResponse:
    user_id = require_user_id(request)
    try:
        async with SessionLocal.begin() as session:
            stats = await AffiliateService.get_stats(session, user_id=user_id)
    except SettlementError as exc:
        raise http_error_from(exc) from exc

    return AffiliateStatsResponse(
        affiliate_id=stats.affiliate_id,
        referral_code=stats.referral_code,
        level=stats.level,
        referred_tickets=stats.referred_tickets,
        total_earnings=stats.total_earnings,
        pending_earnings=stats.pending_earnings,
        paid_earnings=stats.paid_earnings,
    )
