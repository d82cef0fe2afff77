from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from settlement.economy.commissions import AffiliateHierarchy, CommissionBreakdown


@dataclass(slots=True)
class PurchasePlan:
    ticket_id: UUID
    event_id: UUID
    user_id: UUID
    artist_id: UUID
    destination_account: str
    price: Decimal
    is_promo: bool
    affiliate_id: UUID | None
    hierarchy: AffiliateHierarchy | None
    commissions: CommissionBreakdown


@dataclass(slots=True)
class PurchaseResult:
    ticket_id: UUID
    client_token: str
    price: Decimal
    is_promo: bool
