from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from settlement.db.models.artists import Artist
from settlement.db.models.tickets import Ticket
from settlement.db.models.tips import Tip
from settlement.db.repo.artists_repo import ArtistsRepo
from settlement.db.repo.tickets_repo import TicketsRepo
from settlement.db.repo.tips_repo import TipsRepo

from .handlers import (
    SUBJECT_ACCOUNT,
    SUBJECT_CHARGE,
    SUBJECT_PAYMENT_INTENT,
    SUBJECT_SUBSCRIPTION,
    subject_key,
)
from .types import ArtistSnapshot, PaymentEvent, ReconciliationState, TicketSnapshot, TipSnapshot


@dataclass(slots=True)
class LoadedSubject:
    """Locked rows for one event plus the immutable view handed to handlers."""

    state: ReconciliationState
    ticket: Ticket | None = None
    tip: Tip | None = None
    artist: Artist | None = None


def _parse_uuid(raw_value: str) -> UUID | None:
    try:
        return UUID(raw_value)
    except ValueError:
        return None


def _snapshot(*, ticket: Ticket | None, tip: Tip | None, artist: Artist | None) -> ReconciliationState:
    return ReconciliationState(
        ticket=(
            TicketSnapshot(id=ticket.id, event_id=ticket.event_id, status=ticket.status)
            if ticket is not None
            else None
        ),
        tip=TipSnapshot(id=tip.id, status=tip.status) if tip is not None else None,
        artist=(
            ArtistSnapshot(
                id=artist.id,
                subscription_tier=artist.subscription_tier,
                connect_completed=artist.connect_completed,
            )
            if artist is not None
            else None
        ),
    )


async def load_subject(session: AsyncSession, *, event: PaymentEvent, subject: str) -> LoadedSubject:
    key = subject_key(event, subject)
    ticket: Ticket | None = None
    tip: Tip | None = None
    artist: Artist | None = None

    if key is not None and subject in {SUBJECT_PAYMENT_INTENT, SUBJECT_CHARGE}:
        ticket = await TicketsRepo.get_by_payment_intent_ref_for_update(session, payment_intent_ref=key)
        if ticket is None:
            tip = await TipsRepo.get_by_payment_intent_ref_for_update(session, payment_intent_ref=key)
    elif key is not None and subject == SUBJECT_SUBSCRIPTION:
        artist_id = _parse_uuid(key)
        if artist_id is not None:
            artist = await ArtistsRepo.get_by_id_for_update(session, artist_id)
    elif key is not None and subject == SUBJECT_ACCOUNT:
        artist = await ArtistsRepo.get_by_payout_account_ref_for_update(session, payout_account_ref=key)

    return LoadedSubject(
        state=_snapshot(ticket=ticket, tip=tip, artist=artist),
        ticket=ticket,
        tip=tip,
        artist=artist,
    )
