from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID, uuid4

from settlement.db.models.artists import Artist
from settlement.db.models.commissions import Commission
from settlement.db.models.events import Event
from settlement.db.models.tickets import Ticket
from settlement.db.repo.affiliates_repo import AffiliatesRepo
from settlement.db.repo.artists_repo import ArtistsRepo
from settlement.db.repo.commissions_repo import CommissionsRepo
from settlement.db.repo.events_repo import EventsRepo
from settlement.db.repo.tickets_repo import TicketsRepo
from settlement.db.session import SessionLocal
from settlement.economy.affiliates import AffiliateService
from settlement.economy.commissions import COMMISSION_RATES

UTC = timezone.utc
PLATFORM_TIMEZONE = "Europe/Paris"


async def _create_artist(*, tier: str = "starter", payout_account_ref: str | None = "auto") -> UUID:
    artist_id = uuid4()
    async with SessionLocal.begin() as session:
        await ArtistsRepo.create(
            session,
            artist=Artist(
                id=artist_id,
                display_name="Integration Artist",
                subscription_tier=tier,
                payout_account_ref=(
                    f"acct_{artist_id.hex[:12]}" if payout_account_ref == "auto" else payout_account_ref
                ),
                connect_completed=payout_account_ref is not None,
            ),
        )
    return artist_id


async def _create_event(
    artist_id: UUID,
    *,
    ticket_price: Decimal = Decimal("10.00"),
    status: str = "scheduled",
    ended_at: datetime | None = None,
    capacity: int | None = None,
) -> UUID:
    event_id = uuid4()
    async with SessionLocal.begin() as session:
        await EventsRepo.create(
            session,
            event=Event(
                id=event_id,
                artist_id=artist_id,
                title="Integration Night",
                scheduled_at=datetime(2026, 3, 20, 20, 0, tzinfo=UTC),
                ticket_price=ticket_price,
                capacity=capacity,
                current_attendees=0,
                status=status,
                ended_at=ended_at,
            ),
        )
    return event_id


async def _register_affiliate_chain(depth: int = 3) -> list[UUID]:
    """Registers affiliates each referred by the previous one; returns ids from the top down."""
    affiliate_ids: list[UUID] = []
    parent_code: str | None = None
    now_utc = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)
    for index in range(depth):
        async with SessionLocal.begin() as session:
            affiliate = await AffiliateService.register(
                session,
                user_id=uuid4(),
                display_name=f"Promoter{index}",
                parent_referral_code=parent_code,
                now_utc=now_utc,
            )
            affiliate_ids.append(affiliate.id)
            parent_code = affiliate.referral_code
    return affiliate_ids


async def _referral_code(affiliate_id: UUID) -> str:
    async with SessionLocal.begin() as session:
        affiliate = await AffiliatesRepo.get_by_id(session, affiliate_id)
        assert affiliate is not None
        return affiliate.referral_code


async def _create_ticket(
    event_id: UUID,
    *,
    price: Decimal,
    created_at: datetime,
    status: str = "confirmed",
    user_id: UUID | None = None,
    commissions: list[tuple[UUID, int, Decimal]] | None = None,
) -> UUID:
    ticket_id = uuid4()
    async with SessionLocal.begin() as session:
        await TicketsRepo.create(
            session,
            ticket=Ticket(
                id=ticket_id,
                event_id=event_id,
                user_id=user_id or uuid4(),
                purchase_price=price,
                is_happy_hour=False,
                payment_intent_ref=f"pi_{ticket_id.hex[:16]}",
                affiliate_id=commissions[0][0] if commissions else None,
                status=status,
                confirmed_at=created_at if status == "confirmed" else None,
                created_at=created_at,
                updated_at=created_at,
            ),
        )
        if commissions:
            await CommissionsRepo.create_many(
                session,
                commissions=[
                    Commission(
                        id=uuid4(),
                        ticket_id=ticket_id,
                        affiliate_id=affiliate_id,
                        commission_level=level,
                        commission_rate=COMMISSION_RATES[level],
                        commission_amount=amount,
                        status="pending",
                        created_at=created_at,
                    )
                    for affiliate_id, level, amount in commissions
                ],
            )
    return ticket_id
