from settlement.economy.purchases.orchestrator import TicketPurchaseOrchestrator
from settlement.economy.purchases.types import PurchasePlan, PurchaseResult

__all__ = [
    "PurchasePlan",
    "PurchaseResult",
    "TicketPurchaseOrchestrator",
]
