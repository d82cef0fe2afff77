from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from types import SimpleNamespace
from uuid import uuid4

import pytest

from settlement.db.repo.affiliates_repo import AffiliatesRepo
from settlement.economy.commissions import (
    AffiliateHierarchy,
    build_commission_rows,
    compute_commissions,
    fee_breakdown_minor_units,
    resolve_hierarchy,
)
from settlement.economy.errors import NotFoundError, ValidationError


@pytest.mark.parametrize(
    ("price", "level1", "level2", "level3"),
    [
        (Decimal("10.00"), Decimal("0.25"), Decimal("0.15"), Decimal("0.10")),
        (Decimal("7.00"), Decimal("0.18"), Decimal("0.11"), Decimal("0.07")),
        (Decimal("4.99"), Decimal("0.12"), Decimal("0.07"), Decimal("0.05")),
        (Decimal("25.00"), Decimal("0.63"), Decimal("0.38"), Decimal("0.25")),
    ],
)
def test_compute_commissions_rounds_each_level(
    price: Decimal,
    level1: Decimal,
    level2: Decimal,
    level3: Decimal,
) -> None:
    breakdown = compute_commissions(price)
    assert (breakdown.level1, breakdown.level2, breakdown.level3) == (level1, level2, level3)
    assert breakdown.total == level1 + level2 + level3


def test_total_is_sum_of_rounded_levels_not_rounded_five_percent() -> None:
    breakdown = compute_commissions(Decimal("4.99"))
    assert breakdown.total == Decimal("0.24")
    assert (Decimal("4.99") * Decimal("0.05")).quantize(Decimal("0.01")) == Decimal("0.25")


def test_compute_commissions_rejects_non_positive_price() -> None:
    with pytest.raises(ValidationError):
        compute_commissions(Decimal("0"))


def test_hierarchy_skips_grandparent_without_parent() -> None:
    hierarchy = AffiliateHierarchy(level1_id=uuid4(), level2_id=None, level3_id=uuid4())
    assert [level for level, _ in hierarchy.levels()] == [1]


def test_fee_breakdown_and_rows_follow_present_levels() -> None:
    level1, level2 = uuid4(), uuid4()
    hierarchy = AffiliateHierarchy(level1_id=level1, level2_id=level2)
    breakdown = compute_commissions(Decimal("10.00"))

    assert fee_breakdown_minor_units(hierarchy, breakdown) == {
        "commission_level_1": 25,
        "commission_level_2": 15,
    }

    ticket_id = uuid4()
    rows = build_commission_rows(
        ticket_id=ticket_id,
        hierarchy=hierarchy,
        breakdown=breakdown,
        created_at=datetime(2026, 1, 7, 19, 0, tzinfo=timezone.utc),
    )
    assert [(row.affiliate_id, row.commission_level, row.commission_amount) for row in rows] == [
        (level1, 1, Decimal("0.25")),
        (level2, 2, Decimal("0.15")),
    ]
    assert all(row.ticket_id == ticket_id and row.status == "pending" for row in rows)


def test_no_hierarchy_means_no_commissions() -> None:
    breakdown = compute_commissions(Decimal("10.00"))
    assert fee_breakdown_minor_units(None, breakdown) == {}
    assert build_commission_rows(
        ticket_id=uuid4(),
        hierarchy=None,
        breakdown=breakdown,
        created_at=datetime(2026, 1, 7, tzinfo=timezone.utc),
    ) == []


async def test_resolve_hierarchy_reads_parent_pointers(monkeypatch) -> None:
    affiliate = SimpleNamespace(
        id=uuid4(),
        parent_affiliate_id=uuid4(),
        grandparent_affiliate_id=uuid4(),
    )

    async def _get_by_id(session, affiliate_id):
        return affiliate if affiliate_id == affiliate.id else None

    monkeypatch.setattr(AffiliatesRepo, "get_by_id", _get_by_id)

    hierarchy = await resolve_hierarchy(object(), affiliate_id=affiliate.id)

    assert hierarchy == AffiliateHierarchy(
        level1_id=affiliate.id,
        level2_id=affiliate.parent_affiliate_id,
        level3_id=affiliate.grandparent_affiliate_id,
    )
    assert [level for level, _ in hierarchy.levels()] == [1, 2, 3]


async def test_resolve_hierarchy_unknown_affiliate_is_not_found(monkeypatch) -> None:
    async def _get_by_id(session, affiliate_id):
        return None

    monkeypatch.setattr(AffiliatesRepo, "get_by_id", _get_by_id)

    with pytest.raises(NotFoundError):
        await resolve_hierarchy(object(), affiliate_id=uuid4())
