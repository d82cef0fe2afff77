from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID, uuid4

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from settlement.core.money import to_minor_units
from settlement.db.repo.artists_repo import ArtistsRepo
from settlement.db.repo.commissions_repo import CommissionsRepo
from settlement.db.repo.events_repo import EventsRepo
from settlement.db.repo.payouts_repo import PayoutsRepo
from settlement.db.repo.tickets_repo import TicketsRepo
from settlement.economy.errors import ArtistNotPayableError, NotFoundError, PayoutNotRetryableError
from settlement.services.alerts import AlertSender, send_ops_alert
from settlement.services.payment_processor import PaymentProcessor, PaymentProcessorError, event_transfer_group

from .calculator import PayoutBreakdown, compute_payout
from .time_utils import local_day_bounds_utc, payout_target_day
from .types import (
    ERROR,
    FAILED,
    PAID,
    SKIPPED_EXISTING,
    SKIPPED_NO_ACCOUNT,
    SKIPPED_NO_REVENUE,
    SKIPPED_NON_POSITIVE,
    PayoutOutcome,
    PayoutRunSummary,
)

logger = structlog.get_logger(__name__)

DEFAULT_PAYOUT_DELAY_DAYS = 21


@dataclass(frozen=True, slots=True)
class _PreparedTransfer:
    payout_id: UUID
    artist_id: UUID
    event_id: UUID
    destination_account: str
    amount: Decimal
    commission_ids: tuple[UUID, ...]
    idempotency_key: str


class PayoutSettlementJob:
    """Transfers each ended event's artist share once its payout day comes around.

    Events are settled one at a time. Each payout row is committed before the
    transfer is requested, so a crash between the two leaves a row behind and
    the next run skips the event instead of paying it twice.
    """

    def __init__(
        self,
        *,
        session_factory: async_sessionmaker[AsyncSession],
        processor: PaymentProcessor,
        timezone_name: str,
        delay_days: int = DEFAULT_PAYOUT_DELAY_DAYS,
        alert_sender: AlertSender = send_ops_alert,
    ) -> None:
        self._session_factory = session_factory
        self._processor = processor
        self._timezone_name = timezone_name
        self._delay_days = delay_days
        self._alert_sender = alert_sender

    async def run(self, *, now_utc: datetime, target_day: date | None = None) -> PayoutRunSummary:
        resolved_day = target_day or payout_target_day(
            now_utc,
            delay_days=self._delay_days,
            timezone_name=self._timezone_name,
        )
        start_utc, end_utc = local_day_bounds_utc(resolved_day, timezone_name=self._timezone_name)

        async with self._session_factory.begin() as session:
            events = await EventsRepo.list_ended_between(session, start_utc=start_utc, end_utc=end_utc)
            candidates = [(event.id, event.artist_id) for event in events]

        summary = PayoutRunSummary(target_day=resolved_day, examined=len(candidates))
        for event_id, artist_id in candidates:
            try:
                outcome = await self._settle_event(event_id=event_id, artist_id=artist_id, now_utc=now_utc)
            except Exception as exc:
                logger.exception("payout_event_error", event_id=str(event_id), artist_id=str(artist_id))
                outcome = PayoutOutcome(
                    event_id=event_id,
                    artist_id=artist_id,
                    status=ERROR,
                    error_message=exc.__class__.__name__,
                )
            summary.record(outcome)

        if summary.failed > 0 or summary.errors > 0:
            await self._alert_sender(
                event="payouts_failed",
                payload={
                    **summary.counters(),
                    "failures": [
                        outcome.as_dict()
                        for outcome in summary.outcomes
                        if outcome.status in {FAILED, ERROR}
                    ],
                },
            )

        logger.info("payout_settlement_finished", **summary.counters())
        return summary

    async def retry_failed(self, *, payout_id: UUID, now_utc: datetime) -> PayoutOutcome:
        async with self._session_factory.begin() as session:
            payout = await PayoutsRepo.get_by_id_for_update(session, payout_id)
            if payout is None:
                raise NotFoundError(f"payout {payout_id} not found")
            if payout.status != "failed":
                raise PayoutNotRetryableError(f"payout {payout_id} is {payout.status}")

            artist = await ArtistsRepo.get_by_id(session, payout.artist_id)
            if artist is None or not artist.payout_account_ref:
                raise ArtistNotPayableError("artist has no payout account")

            breakdown, commission_ids = await self._compute_for_event(
                session,
                event_id=payout.event_id,
                tier=artist.subscription_tier,
            )
            if not breakdown.is_payable:
                raise PayoutNotRetryableError(
                    f"payout amount is no longer positive: {breakdown.payout_amount}"
                )

            retry_count = await PayoutsRepo.mark_retrying(
                session,
                payout_id=payout_id,
                amount=breakdown.payout_amount,
                now_utc=now_utc,
            )
            if retry_count is None:
                raise PayoutNotRetryableError(f"payout {payout_id} is no longer failed")

            prepared = _PreparedTransfer(
                payout_id=payout_id,
                artist_id=payout.artist_id,
                event_id=payout.event_id,
                destination_account=artist.payout_account_ref,
                amount=breakdown.payout_amount,
                commission_ids=commission_ids,
                idempotency_key=f"payout:{payout_id}:retry:{retry_count}",
            )

        logger.info(
            "payout_retry_started",
            payout_id=str(payout_id),
            retry_count=retry_count,
            amount=str(breakdown.payout_amount),
        )
        return await self._transfer(prepared, now_utc=now_utc)

    async def _compute_for_event(
        self,
        session: AsyncSession,
        *,
        event_id: UUID,
        tier: str,
    ) -> tuple[PayoutBreakdown, tuple[UUID, ...]]:
        total_revenue = await TicketsRepo.sum_confirmed_revenue(session, event_id=event_id)
        pending = await CommissionsRepo.list_pending_for_event(session, event_id=event_id)
        breakdown = compute_payout(
            total_revenue=total_revenue,
            tier=tier,
            pending_commissions=[amount for _, amount in pending],
        )
        return breakdown, tuple(commission_id for commission_id, _ in pending)

    async def _settle_event(self, *, event_id: UUID, artist_id: UUID, now_utc: datetime) -> PayoutOutcome:
        async with self._session_factory.begin() as session:
            existing = await PayoutsRepo.get_for_artist_event(session, artist_id=artist_id, event_id=event_id)
            if existing is not None:
                return PayoutOutcome(
                    event_id=event_id,
                    artist_id=artist_id,
                    status=SKIPPED_EXISTING,
                    payout_id=existing.id,
                )

            artist = await ArtistsRepo.get_by_id(session, artist_id)
            if artist is None:
                raise NotFoundError(f"artist {artist_id} not found")

            breakdown, commission_ids = await self._compute_for_event(
                session,
                event_id=event_id,
                tier=artist.subscription_tier,
            )
            if breakdown.total_revenue <= 0:
                return PayoutOutcome(event_id=event_id, artist_id=artist_id, status=SKIPPED_NO_REVENUE)
            if not breakdown.is_payable:
                logger.info(
                    "payout_skipped_non_positive",
                    event_id=str(event_id),
                    artist_revenue=str(breakdown.artist_revenue),
                    total_commissions=str(breakdown.total_commissions),
                )
                return PayoutOutcome(
                    event_id=event_id,
                    artist_id=artist_id,
                    status=SKIPPED_NON_POSITIVE,
                    amount=breakdown.payout_amount,
                )
            if not artist.payout_account_ref:
                logger.warning("payout_skipped_no_account", event_id=str(event_id), artist_id=str(artist_id))
                return PayoutOutcome(
                    event_id=event_id,
                    artist_id=artist_id,
                    status=SKIPPED_NO_ACCOUNT,
                    amount=breakdown.payout_amount,
                )

            payout_id = uuid4()
            created = await PayoutsRepo.try_create_processing(
                session,
                payout_id=payout_id,
                artist_id=artist_id,
                event_id=event_id,
                amount=breakdown.payout_amount,
                now_utc=now_utc,
            )
            if not created:
                return PayoutOutcome(event_id=event_id, artist_id=artist_id, status=SKIPPED_EXISTING)

            prepared = _PreparedTransfer(
                payout_id=payout_id,
                artist_id=artist_id,
                event_id=event_id,
                destination_account=artist.payout_account_ref,
                amount=breakdown.payout_amount,
                commission_ids=commission_ids,
                idempotency_key=f"payout:{payout_id}",
            )

        return await self._transfer(prepared, now_utc=now_utc)

    async def _transfer(self, prepared: _PreparedTransfer, *, now_utc: datetime) -> PayoutOutcome:
        try:
            transfer = await self._processor.create_transfer(
                amount_minor=to_minor_units(prepared.amount),
                destination_account=prepared.destination_account,
                correlation_id=str(prepared.payout_id),
                idempotency_key=prepared.idempotency_key,
                transfer_group=event_transfer_group(prepared.event_id),
                metadata={"event_id": str(prepared.event_id), "artist_id": str(prepared.artist_id)},
            )
        except PaymentProcessorError as exc:
            async with self._session_factory.begin() as session:
                await PayoutsRepo.mark_failed(
                    session,
                    payout_id=prepared.payout_id,
                    error_message=exc.message,
                    now_utc=now_utc,
                )
            logger.warning(
                "payout_transfer_failed",
                payout_id=str(prepared.payout_id),
                event_id=str(prepared.event_id),
                error_code=exc.code,
            )
            return PayoutOutcome(
                event_id=prepared.event_id,
                artist_id=prepared.artist_id,
                status=FAILED,
                payout_id=prepared.payout_id,
                amount=prepared.amount,
                error_message=exc.message,
            )

        async with self._session_factory.begin() as session:
            await PayoutsRepo.mark_transferred(
                session,
                payout_id=prepared.payout_id,
                external_transfer_ref=transfer.transfer_id,
                now_utc=now_utc,
            )
            commissions_paid = await CommissionsRepo.mark_paid(
                session,
                commission_ids=prepared.commission_ids,
                payout_id=prepared.payout_id,
                paid_at=now_utc,
            )

        logger.info(
            "payout_transfer_accepted",
            payout_id=str(prepared.payout_id),
            event_id=str(prepared.event_id),
            amount=str(prepared.amount),
            commissions_paid=commissions_paid,
        )
        return PayoutOutcome(
            event_id=prepared.event_id,
            artist_id=prepared.artist_id,
            status=PAID,
            payout_id=prepared.payout_id,
            amount=prepared.amount,
            external_transfer_ref=transfer.transfer_id,
            commissions_paid=commissions_paid,
        )
