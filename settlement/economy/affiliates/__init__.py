from settlement.economy.affiliates.service import AffiliateService, AffiliateStats

__all__ = [
    "AffiliateService",
    "AffiliateStats",
]
