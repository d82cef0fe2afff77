from settlement.economy.affiliates import AffiliateService
from settlement.economy.listings import EventListingService
from settlement.economy.payouts import PayoutSettlementJob
from settlement.economy.purchases import TicketPurchaseOrchestrator
from settlement.economy.reconciliation import PaymentEventReconciler
from settlement.economy.tips import TipService

__all__ = [
    "AffiliateService",
    "EventListingService",
    "PaymentEventReconciler",
    "PayoutSettlementJob",
    "TicketPurchaseOrchestrator",
    "TipService",
]
