from settlement.economy.reconciliation.handlers import EVENT_HANDLERS, EventHandler
from settlement.economy.reconciliation.service import PaymentEventReconciler
from settlement.economy.reconciliation.types import PaymentEvent, ReconciliationResult

__all__ = [
    "EVENT_HANDLERS",
    "EventHandler",
    "PaymentEvent",
    "PaymentEventReconciler",
    "ReconciliationResult",
]
