from settlement.db.models.affiliates import Affiliate
from settlement.db.models.artists import Artist
from settlement.db.models.commissions import Commission
from settlement.db.models.events import Event
from settlement.db.models.payouts import Payout
from settlement.db.models.processed_payment_events import ProcessedPaymentEvent
from settlement.db.models.tickets import Ticket
from settlement.db.models.tips import Tip

__all__ = [
    "Affiliate",
    "Artist",
    "Commission",
    "Event",
    "Payout",
    "ProcessedPaymentEvent",
    "Ticket",
    "Tip",
]
