from __future__ import annotations

import pydantic
import stripe

from settlement.economy.reconciliation.types import PaymentEvent

SIGNATURE_HEADER = "Stripe-Signature"


class PaymentEventRejected(Exception):
    code = "E_PAYMENT_EVENT_REJECTED"


class InvalidSignatureError(PaymentEventRejected):
    code = "E_INVALID_SIGNATURE"


class InvalidPayloadError(PaymentEventRejected):
    code = "E_INVALID_PAYLOAD"


def verify_signature(
    payload: bytes,
    *,
    signature_header: str | None,
    secret: str,
    tolerance_seconds: int,
) -> str:
    if not secret:
        raise InvalidSignatureError("webhook signing secret is not configured")
    if not signature_header:
        raise InvalidSignatureError("missing signature header")

    try:
        payload_text = payload.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise InvalidPayloadError("payload is not valid utf-8") from exc

    try:
        stripe.WebhookSignature.verify_header(payload_text, signature_header, secret, tolerance_seconds)
    except stripe.SignatureVerificationError as exc:
        raise InvalidSignatureError("signature verification failed") from exc
    return payload_text


def verify_and_parse(
    payload: bytes,
    *,
    signature_header: str | None,
    secret: str,
    tolerance_seconds: int,
) -> PaymentEvent:
    """Authenticates a delivery, then parses it. Nothing is parsed before the signature holds."""
    payload_text = verify_signature(
        payload,
        signature_header=signature_header,
        secret=secret,
        tolerance_seconds=tolerance_seconds,
    )
    try:
        return PaymentEvent.model_validate_json(payload_text)
    except pydantic.ValidationError as exc:
        raise InvalidPayloadError("payload is not a payment event") from exc
