from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from uuid import UUID, uuid4

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from settlement.core.money import quantize_cents
from settlement.core.referral_codes import generate_referral_code, normalize_referral_code
from settlement.db.models.affiliates import Affiliate
from settlement.db.repo.affiliates_repo import AffiliatesRepo
from settlement.db.repo.commissions_repo import CommissionsRepo
from settlement.economy.commissions import MAX_HIERARCHY_DEPTH
from settlement.economy.errors import AffiliateAlreadyRegisteredError, NotFoundError

logger = structlog.get_logger(__name__)

REFERRAL_CODE_ATTEMPTS = 10


@dataclass(slots=True)
class AffiliateStats:
    affiliate_id: UUID
    referral_code: str
    level: int
    referred_tickets: int
    total_earnings: Decimal
    pending_earnings: Decimal
    paid_earnings: Decimal


async def _allocate_referral_code(session: AsyncSession, *, display_name: str | None) -> str:
    for _ in range(REFERRAL_CODE_ATTEMPTS):
        candidate = generate_referral_code(display_name)
        if not await AffiliatesRepo.referral_code_exists(session, referral_code=candidate):
            return candidate
    raise RuntimeError("could not allocate a unique referral code")


class AffiliateService:
    @staticmethod
    async def register(
        session: AsyncSession,
        *,
        user_id: UUID,
        display_name: str | None,
        parent_referral_code: str | None,
        now_utc: datetime,
    ) -> Affiliate:
        """Enrols a user in the referral program under an optional referrer.

        The referrer becomes the parent and the referrer's parent becomes the
        grandparent. Pointers are fixed at creation; the depth is capped at three.
        """
        if await AffiliatesRepo.get_by_user_id(session, user_id=user_id) is not None:
            raise AffiliateAlreadyRegisteredError("user is already an affiliate")

        parent: Affiliate | None = None
        if parent_referral_code:
            parent = await AffiliatesRepo.get_active_by_referral_code(
                session,
                referral_code=normalize_referral_code(parent_referral_code),
            )
            if parent is None:
                raise NotFoundError("referral code not found")

        affiliate = await AffiliatesRepo.create(
            session,
            affiliate=Affiliate(
                id=uuid4(),
                user_id=user_id,
                referral_code=await _allocate_referral_code(session, display_name=display_name),
                parent_affiliate_id=parent.id if parent is not None else None,
                grandparent_affiliate_id=parent.parent_affiliate_id if parent is not None else None,
                level=min(parent.level + 1, MAX_HIERARCHY_DEPTH) if parent is not None else 1,
                is_active=True,
                created_at=now_utc,
            ),
        )
        logger.info(
            "affiliate_registered",
            affiliate_id=str(affiliate.id),
            parent_affiliate_id=str(affiliate.parent_affiliate_id) if affiliate.parent_affiliate_id else None,
            level=affiliate.level,
        )
        return affiliate

    @staticmethod
    async def get_stats(session: AsyncSession, *, user_id: UUID) -> AffiliateStats:
        affiliate = await AffiliatesRepo.get_by_user_id(session, user_id=user_id)
        if affiliate is None:
            raise NotFoundError("user is not an affiliate")

        earnings = await CommissionsRepo.get_affiliate_earnings(session, affiliate_id=affiliate.id)
        pending = quantize_cents(earnings["pending"])
        paid = quantize_cents(earnings["paid"])
        return AffiliateStats(
            affiliate_id=affiliate.id,
            referral_code=affiliate.referral_code,
            level=affiliate.level,
            referred_tickets=int(earnings["referred_tickets"]),
            total_earnings=pending + paid,
            pending_earnings=pending,
            paid_earnings=paid,
        )
