from __future__ import annotations

from datetime import date, datetime, timezone

import structlog
from celery.schedules import crontab

from settlement.core.config import get_settings
from settlement.db.session import SessionLocal
from settlement.economy.payouts import PayoutSettlementJob
from settlement.services.payment_processor import build_stripe_processor
from settlement.workers.asyncio_runner import run_async_job
from settlement.workers.celery_app import celery_app

logger = structlog.get_logger(__name__)


async def run_payout_settlement_async(*, target_day: str | None = None) -> dict[str, int | str]:
    logger.info("payout_settlement_task_started", target_day=target_day)
    settings = get_settings()
    job = PayoutSettlementJob(
        session_factory=SessionLocal,
        processor=build_stripe_processor(settings),
        timezone_name=settings.platform_timezone,
        delay_days=settings.payout_delay_days,
    )
    summary = await job.run(
        now_utc=datetime.now(timezone.utc),
        target_day=date.fromisoformat(target_day) if target_day else None,
    )
    return summary.counters()


@celery_app.task(name="settlement.workers.tasks.payouts.run_payout_settlement")
def run_payout_settlement(target_day: str | None = None) -> dict[str, int | str]:
    return run_async_job(run_payout_settlement_async(target_day=target_day))


celery_app.conf.beat_schedule = celery_app.conf.beat_schedule or {}
celery_app.conf.beat_schedule.update(
    {
        "payout-settlement-daily-0200": {
            "task": "settlement.workers.tasks.payouts.run_payout_settlement",
            "schedule": crontab(hour=2, minute=0),
            "options": {"queue": "q_normal"},
        },
    }
)
