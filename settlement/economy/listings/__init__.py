from settlement.economy.listings.service import EVENT_STATUS_TRANSITIONS, EventListingService

__all__ = [
    "EVENT_STATUS_TRANSITIONS",
    "EventListingService",
]
