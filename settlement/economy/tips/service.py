from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID, uuid4

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from settlement.core.money import quantize_cents, to_minor_units
from settlement.db.models.tips import Tip
from settlement.db.repo.artists_repo import ArtistsRepo
from settlement.db.repo.events_repo import EventsRepo
from settlement.db.repo.tips_repo import TipsRepo
from settlement.economy.errors import ArtistNotPayableError, NotFoundError, UpstreamError, ValidationError
from settlement.services.payment_processor import PaymentProcessor, PaymentProcessorError

logger = structlog.get_logger(__name__)

TIP_MIN_AMOUNT = Decimal("1.00")
TIP_MAX_AMOUNT = Decimal("500.00")
TIP_PLATFORM_FEE_RATE = Decimal("0.10")
TIP_MESSAGE_MAX_LENGTH = 500


@dataclass(slots=True)
class TipResult:
    tip_id: UUID
    client_token: str
    amount: Decimal
    platform_fee: Decimal


class TipService:
    def __init__(
        self,
        *,
        session_factory: async_sessionmaker[AsyncSession],
        processor: PaymentProcessor,
    ) -> None:
        self._session_factory = session_factory
        self._processor = processor

    async def create_tip(
        self,
        *,
        artist_id: UUID,
        user_id: UUID,
        amount: Decimal,
        message: str | None = None,
        event_id: UUID | None = None,
        now_utc: datetime | None = None,
    ) -> TipResult:
        resolved_now = now_utc or datetime.now(timezone.utc)
        tip_amount = quantize_cents(amount)
        if tip_amount < TIP_MIN_AMOUNT or tip_amount > TIP_MAX_AMOUNT:
            raise ValidationError(f"tip must be between {TIP_MIN_AMOUNT} and {TIP_MAX_AMOUNT}")
        if message is not None and len(message) > TIP_MESSAGE_MAX_LENGTH:
            raise ValidationError("tip message is too long")

        async with self._session_factory.begin() as session:
            artist = await ArtistsRepo.get_by_id(session, artist_id)
            if artist is None:
                raise NotFoundError(f"artist {artist_id} not found")
            if not artist.connect_completed or not artist.payout_account_ref:
                raise ArtistNotPayableError("artist has not completed payout onboarding")
            if event_id is not None:
                event = await EventsRepo.get_by_id(session, event_id)
                if event is None or event.artist_id != artist_id:
                    raise NotFoundError(f"event {event_id} not found")
            destination_account = artist.payout_account_ref

        tip_id = uuid4()
        platform_fee = quantize_cents(tip_amount * TIP_PLATFORM_FEE_RATE)
        try:
            authorization = await self._processor.create_authorization(
                amount_minor=to_minor_units(tip_amount),
                destination_account=destination_account,
                fee_breakdown={"platform_fee": to_minor_units(platform_fee)},
                metadata={
                    "type": "tip",
                    "tip_id": str(tip_id),
                    "artist_id": str(artist_id),
                    "user_id": str(user_id),
                    "event_id": str(event_id) if event_id is not None else "",
                },
                idempotency_key=f"tip:{tip_id}",
                settle_immediately=True,
            )
        except PaymentProcessorError as exc:
            logger.warning("tip_authorization_failed", tip_id=str(tip_id), error_code=exc.code)
            raise UpstreamError(f"payment authorization failed: {exc.message}") from exc

        try:
            async with self._session_factory.begin() as session:
                await TipsRepo.create(
                    session,
                    tip=Tip(
                        id=tip_id,
                        artist_id=artist_id,
                        user_id=user_id,
                        event_id=event_id,
                        amount=tip_amount,
                        platform_fee=platform_fee,
                        message=message,
                        payment_intent_ref=authorization.authorization_id,
                        status="pending",
                        created_at=resolved_now,
                        updated_at=resolved_now,
                    ),
                )
        except Exception:
            logger.exception("tip_persist_failed", tip_id=str(tip_id))
            try:
                await self._processor.cancel_authorization(authorization_id=authorization.authorization_id)
            except PaymentProcessorError:
                logger.exception(
                    "tip_authorization_cancel_failed",
                    tip_id=str(tip_id),
                    authorization_id=authorization.authorization_id,
                )
            raise

        logger.info(
            "tip_authorized",
            tip_id=str(tip_id),
            artist_id=str(artist_id),
            amount=str(tip_amount),
            platform_fee=str(platform_fee),
        )
        return TipResult(
            tip_id=tip_id,
            client_token=authorization.client_token,
            amount=tip_amount,
            platform_fee=platform_fee,
        )
