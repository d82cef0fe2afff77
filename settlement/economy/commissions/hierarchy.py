from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from settlement.core.money import to_minor_units
from settlement.db.models.affiliates import Affiliate
from settlement.db.models.commissions import Commission
from settlement.db.repo.affiliates_repo import AffiliatesRepo
from settlement.economy.errors import NotFoundError

from .calculator import COMMISSION_RATES, CommissionBreakdown


@dataclass(frozen=True, slots=True)
class AffiliateHierarchy:
    level1_id: UUID
    level2_id: UUID | None = None
    level3_id: UUID | None = None

    def levels(self) -> list[tuple[int, UUID]]:
        present: list[tuple[int, UUID]] = [(1, self.level1_id)]
        if self.level2_id is not None:
            present.append((2, self.level2_id))
            # A grandparent without a parent would skip a level; never pay it.
            if self.level3_id is not None:
                present.append((3, self.level3_id))
        return present


def hierarchy_from_affiliate(affiliate: Affiliate) -> AffiliateHierarchy:
    return AffiliateHierarchy(
        level1_id=affiliate.id,
        level2_id=affiliate.parent_affiliate_id,
        level3_id=affiliate.grandparent_affiliate_id,
    )


async def resolve_hierarchy(session: AsyncSession, *, affiliate_id: UUID) -> AffiliateHierarchy:
    affiliate = await AffiliatesRepo.get_by_id(session, affiliate_id)
    if affiliate is None:
        raise NotFoundError(f"affiliate {affiliate_id} not found")
    return hierarchy_from_affiliate(affiliate)


def fee_breakdown_minor_units(
    hierarchy: AffiliateHierarchy | None,
    breakdown: CommissionBreakdown,
) -> dict[str, int]:
    if hierarchy is None:
        return {}
    return {
        f"commission_level_{level}": to_minor_units(breakdown.amount_for_level(level))
        for level, _ in hierarchy.levels()
    }


def build_commission_rows(
    *,
    ticket_id: UUID,
    hierarchy: AffiliateHierarchy | None,
    breakdown: CommissionBreakdown,
    created_at: datetime,
) -> list[Commission]:
    if hierarchy is None:
        return []
    return [
        Commission(
            id=uuid4(),
            ticket_id=ticket_id,
            affiliate_id=affiliate_id,
            commission_level=level,
            commission_rate=COMMISSION_RATES[level],
            commission_amount=breakdown.amount_for_level(level),
            status="pending",
            created_at=created_at,
        )
        for level, affiliate_id in hierarchy.levels()
    ]
