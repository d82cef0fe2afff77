from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID, uuid4

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from settlement.core.money import to_minor_units
from settlement.core.referral_codes import normalize_referral_code
from settlement.db.models.tickets import Ticket
from settlement.db.repo.affiliates_repo import AffiliatesRepo
from settlement.db.repo.artists_repo import ArtistsRepo
from settlement.db.repo.commissions_repo import CommissionsRepo
from settlement.db.repo.events_repo import EventsRepo
from settlement.db.repo.tickets_repo import TicketsRepo
from settlement.economy.commissions import (
    build_commission_rows,
    compute_commissions,
    fee_breakdown_minor_units,
    hierarchy_from_affiliate,
)
from settlement.economy.errors import (
    ArtistNotPayableError,
    DuplicateTicketError,
    EventNotAvailableError,
    NotFoundError,
    SoldOutError,
    UpstreamError,
)
from settlement.economy.pricing import resolve_price
from settlement.services.alerts import AlertSender, send_ops_alert
from settlement.services.payment_processor import (
    Authorization,
    PaymentProcessor,
    PaymentProcessorError,
    event_transfer_group,
)

from .types import PurchasePlan, PurchaseResult

logger = structlog.get_logger(__name__)

PURCHASABLE_EVENT_STATUSES = frozenset({"scheduled", "live"})


class TicketPurchaseOrchestrator:
    """Turns a purchase request into a priced, authorized, pending ticket.

    Work happens in three phases: validate and price inside a read
    transaction, request the payment authorization with no transaction open,
    then persist the ticket and its commissions in one write transaction.
    A failed authorization persists nothing. A write that loses the
    one-active-ticket race cancels the authorization it just created.
    """

    def __init__(
        self,
        *,
        session_factory: async_sessionmaker[AsyncSession],
        processor: PaymentProcessor,
        timezone_name: str,
        alert_sender: AlertSender = send_ops_alert,
    ) -> None:
        self._session_factory = session_factory
        self._processor = processor
        self._timezone_name = timezone_name
        self._alert_sender = alert_sender

    async def purchase(
        self,
        *,
        event_id: UUID,
        user_id: UUID,
        referral_code: str | None = None,
        now_utc: datetime | None = None,
    ) -> PurchaseResult:
        resolved_now = now_utc or datetime.now(timezone.utc)
        plan = await self._prepare(
            event_id=event_id,
            user_id=user_id,
            referral_code=referral_code,
            now_utc=resolved_now,
        )
        authorization = await self._authorize(plan)
        await self._persist(plan, authorization=authorization, now_utc=resolved_now)

        logger.info(
            "ticket_purchase_authorized",
            ticket_id=str(plan.ticket_id),
            event_id=str(plan.event_id),
            price=str(plan.price),
            is_promo=plan.is_promo,
            commission_levels=len(plan.hierarchy.levels()) if plan.hierarchy else 0,
        )
        return PurchaseResult(
            ticket_id=plan.ticket_id,
            client_token=authorization.client_token,
            price=plan.price,
            is_promo=plan.is_promo,
        )

    async def _prepare(
        self,
        *,
        event_id: UUID,
        user_id: UUID,
        referral_code: str | None,
        now_utc: datetime,
    ) -> PurchasePlan:
        async with self._session_factory.begin() as session:
            event = await EventsRepo.get_by_id(session, event_id)
            if event is None:
                raise NotFoundError(f"event {event_id} not found")
            if event.status not in PURCHASABLE_EVENT_STATUSES:
                raise EventNotAvailableError(f"event is {event.status}")
            if event.capacity is not None and event.current_attendees >= event.capacity:
                raise SoldOutError("event is sold out")

            existing = await TicketsRepo.get_blocking_for_event_user(
                session,
                event_id=event_id,
                user_id=user_id,
            )
            if existing is not None:
                raise DuplicateTicketError(f"user already holds a {existing.status} ticket")

            artist = await ArtistsRepo.get_by_id(session, event.artist_id)
            if artist is None or not artist.connect_completed or not artist.payout_account_ref:
                raise ArtistNotPayableError("artist has not completed payout onboarding")

            pricing = resolve_price(
                base_price=event.ticket_price,
                promo_price=event.happy_hour_price,
                tier=artist.subscription_tier,
                requested_at=now_utc,
                timezone_name=self._timezone_name,
            )

            affiliate = None
            if referral_code:
                affiliate = await AffiliatesRepo.get_active_by_referral_code(
                    session,
                    referral_code=normalize_referral_code(referral_code),
                )
                if affiliate is None:
                    logger.info("ticket_purchase_referral_ignored", event_id=str(event_id))

            return PurchasePlan(
                ticket_id=uuid4(),
                event_id=event.id,
                user_id=user_id,
                artist_id=artist.id,
                destination_account=artist.payout_account_ref,
                price=pricing.price,
                is_promo=pricing.is_promo,
                affiliate_id=affiliate.id if affiliate is not None else None,
                hierarchy=hierarchy_from_affiliate(affiliate) if affiliate is not None else None,
                commissions=compute_commissions(pricing.price),
            )

    async def _authorize(self, plan: PurchasePlan) -> Authorization:
        try:
            return await self._processor.create_authorization(
                amount_minor=to_minor_units(plan.price),
                destination_account=plan.destination_account,
                fee_breakdown=fee_breakdown_minor_units(plan.hierarchy, plan.commissions),
                metadata={
                    "type": "ticket_purchase",
                    "ticket_id": str(plan.ticket_id),
                    "event_id": str(plan.event_id),
                    "user_id": str(plan.user_id),
                    "artist_id": str(plan.artist_id),
                },
                idempotency_key=f"ticket:{plan.ticket_id}",
                transfer_group=event_transfer_group(plan.event_id),
            )
        except PaymentProcessorError as exc:
            logger.warning(
                "ticket_purchase_authorization_failed",
                ticket_id=str(plan.ticket_id),
                event_id=str(plan.event_id),
                error_code=exc.code,
            )
            raise UpstreamError(f"payment authorization failed: {exc.message}") from exc

    async def _persist(
        self,
        plan: PurchasePlan,
        *,
        authorization: Authorization,
        now_utc: datetime,
    ) -> None:
        try:
            async with self._session_factory.begin() as session:
                await TicketsRepo.create(
                    session,
                    ticket=Ticket(
                        id=plan.ticket_id,
                        event_id=plan.event_id,
                        user_id=plan.user_id,
                        purchase_price=plan.price,
                        is_happy_hour=plan.is_promo,
                        payment_intent_ref=authorization.authorization_id,
                        affiliate_id=plan.affiliate_id,
                        status="pending",
                        created_at=now_utc,
                        updated_at=now_utc,
                    ),
                )
                await CommissionsRepo.create_many(
                    session,
                    commissions=build_commission_rows(
                        ticket_id=plan.ticket_id,
                        hierarchy=plan.hierarchy,
                        breakdown=plan.commissions,
                        created_at=now_utc,
                    ),
                )
        except IntegrityError as exc:
            await self._release_authorization(plan, authorization=authorization)
            raise DuplicateTicketError("a concurrent purchase already holds this ticket") from exc
        except Exception:
            await self._release_authorization(plan, authorization=authorization)
            raise

    async def _release_authorization(self, plan: PurchasePlan, *, authorization: Authorization) -> None:
        try:
            await self._processor.cancel_authorization(authorization_id=authorization.authorization_id)
        except PaymentProcessorError:
            logger.exception(
                "ticket_purchase_authorization_cancel_failed",
                ticket_id=str(plan.ticket_id),
                authorization_id=authorization.authorization_id,
            )
            await self._alert_sender(
                event="purchase_authorization_orphaned",
                payload={
                    "ticket_id": str(plan.ticket_id),
                    "event_id": str(plan.event_id),
                    "authorization_id": authorization.authorization_id,
                },
            )
            return
        logger.info(
            "ticket_purchase_authorization_cancelled",
            ticket_id=str(plan.ticket_id),
            authorization_id=authorization.authorization_id,
        )
