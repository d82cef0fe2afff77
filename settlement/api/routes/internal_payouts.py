from __future__ import annotations

from datetime import date, datetime, timezone
from uuid import UUID

import structlog
from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from settlement.api.routes.helpers import assert_internal_access, http_error_from
from settlement.core.config import get_settings
from settlement.db.session import SessionLocal
from settlement.economy.errors import SettlementError
from settlement.economy.payouts import PayoutSettlementJob
from settlement.services.payment_processor import get_payment_processor

router = APIRouter(tags=["internal", "payouts"])
logger = structlog.get_logger(__name__)


class PayoutRunRequest(BaseModel):
    target_day: date | None = None


class PayoutOutcomeResponse(BaseModel):
    event_id: UUID
    artist_id: UUID
    status: str
    payout_id: UUID | None = None
    amount: str | None = None
    external_transfer_ref: str | None = None
    error_message: str | None = None
    commissions_paid: int = Field(default=0, ge=0)


class PayoutRunResponse(BaseModel):
    target_day: date
    examined: int = Field(ge=0)
    paid: int = Field(ge=0)
    failed: int = Field(ge=0)
    skipped_existing: int = Field(ge=0)
    skipped_no_revenue: int = Field(ge=0)
    skipped_non_positive: int = Field(ge=0)
    skipped_no_account: int = Field(ge=0)
    errors: int = Field(ge=0)
    outcomes: list[PayoutOutcomeResponse]


def _build_payout_job() -> PayoutSettlementJob:
    settings = get_settings()
    return PayoutSettlementJob(
        session_factory=SessionLocal,
        processor=get_payment_processor(),
        timezone_name=settings.platform_timezone,
        delay_days=settings.payout_delay_days,
    )


@router.post("/internal/payouts/run", response_model=PayoutRunResponse)
async def run_payouts(request: Request, payload: PayoutRunRequest | None = None) -> PayoutRunResponse:
    assert_internal_access(request, log_event="internal_payouts_auth_failed")
    summary = await _build_payout_job().run(
        now_utc=datetime.now(timezone.utc),
        target_day=payload.target_day if payload is not None else None,
    )
    return PayoutRunResponse(
        target_day=summary.target_day,
        examined=summary.examined,
        paid=summary.paid,
        failed=summary.failed,
        skipped_existing=summary.skipped_existing,
        skipped_no_revenue=summary.skipped_no_revenue,
        skipped_non_positive=summary.skipped_non_positive,
        skipped_no_account=summary.skipped_no_account,
        errors=summary.errors,
        outcomes=[PayoutOutcomeResponse(**outcome.as_dict()) for outcome in summary.outcomes],
    )


@router.post("/internal/payouts/{payout_id}/retry", response_model=PayoutOutcomeResponse)
async def retry_payout(payout_id: UUID, request: Request) -> PayoutOutcomeResponse:
    assert_internal_access(request, log_event="internal_payouts_auth_failed")
    try:
        outcome = await _build_payout_job().retry_failed(
            payout_id=payout_id,
            now_utc=datetime.now(timezone.utc),
        )
    except SettlementError as exc:
        logger.warning("payout_retry_rejected", payout_id=str(payout_id), code=exc.code)
        raise http_error_from(exc) from exc

    return PayoutOutcomeResponse(**outcome.as_dict())
