from settlement.economy.commissions.calculator import (
    COMMISSION_RATES,
    MAX_HIERARCHY_DEPTH,
    CommissionBreakdown,
    compute_commissions,
)
from settlement.economy.commissions.hierarchy import (
    AffiliateHierarchy,
    build_commission_rows,
    fee_breakdown_minor_units,
    hierarchy_from_affiliate,
    resolve_hierarchy,
)

__all__ = [
    "AffiliateHierarchy",
    "COMMISSION_RATES",
    "CommissionBreakdown",
    "MAX_HIERARCHY_DEPTH",
    "build_commission_rows",
    "compute_commissions",
    "fee_breakdown_minor_units",
    "hierarchy_from_affiliate",
    "resolve_hierarchy",
]
