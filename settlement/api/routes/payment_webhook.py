from __future__ import annotations

import structlog
from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from settlement.core.config import get_settings
from settlement.db.session import SessionLocal
from settlement.economy.errors import IdempotencyViolation
from settlement.economy.reconciliation import PaymentEventReconciler
from settlement.services.payment_events import SIGNATURE_HEADER, PaymentEventRejected, verify_and_parse

router = APIRouter(tags=["payments"])
logger = structlog.get_logger(__name__)


def _build_reconciler() -> PaymentEventReconciler:
    return PaymentEventReconciler(session_factory=SessionLocal)


@router.post("/webhooks/payments")
async def payment_webhook(request: Request) -> JSONResponse:
    settings = get_settings()
    raw_body = await request.body()
    try:
        event = verify_and_parse(
            raw_body,
            signature_header=request.headers.get(SIGNATURE_HEADER),
            secret=settings.stripe_webhook_secret,
            tolerance_seconds=settings.stripe_webhook_tolerance_seconds,
        )
    except PaymentEventRejected as exc:
        logger.warning("payment_webhook_rejected", code=exc.code, reason=str(exc))
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"code": exc.code},
        )

    # Other errors propagate as 500 and the processor redelivers.
    try:
        result = await _build_reconciler().apply(event)
    except IdempotencyViolation:
        logger.info("payment_webhook_duplicate", external_event_id=event.id, event_type=event.type)
        return JSONResponse(
            status_code=status.HTTP_200_OK,
            content={"status": "duplicate", "external_event_id": event.id},
        )

    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content={
            "status": result.status,
            "external_event_id": result.external_event_id,
            "event_type": result.event_type,
            "outcomes": list(result.outcomes),
        },
    )
