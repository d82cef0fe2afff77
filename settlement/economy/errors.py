from __future__ import annotations


class SettlementError(Exception):
    code = "E_SETTLEMENT"

    def __init__(self, reason: str = "") -> None:
        super().__init__(reason or self.code)
        self.reason = reason


class ValidationError(SettlementError):
    code = "E_VALIDATION"


class NotFoundError(SettlementError):
    code = "E_NOT_FOUND"


class ConflictError(SettlementError):
    code = "E_CONFLICT"

    def __init__(self, reason: str = "", *, code: str | None = None) -> None:
        super().__init__(reason)
        if code is not None:
            self.code = code


class EventNotAvailableError(ConflictError):
    code = "E_EVENT_NOT_AVAILABLE"


class SoldOutError(ConflictError):
    code = "E_SOLD_OUT"


class DuplicateTicketError(ConflictError):
    code = "E_DUPLICATE_TICKET"


class ArtistNotPayableError(ConflictError):
    code = "E_ARTIST_NOT_PAYABLE"


class PayoutNotRetryableError(ConflictError):
    code = "E_PAYOUT_NOT_RETRYABLE"


class AffiliateAlreadyRegisteredError(ConflictError):
    code = "E_AFFILIATE_EXISTS"


class IdempotencyViolation(SettlementError):
    code = "E_DUPLICATE_EVENT"

    def __init__(self, external_event_id: str) -> None:
        super().__init__(f"payment event {external_event_id} already processed")
        self.external_event_id = external_event_id


class UpstreamError(SettlementError):
    code = "E_UPSTREAM"
