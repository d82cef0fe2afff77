from __future__ import annotations

import asyncio
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Protocol
from uuid import UUID

import stripe
import structlog

from settlement.core.config import Settings, get_settings

logger = structlog.get_logger(__name__)


class PaymentProcessorError(Exception):
    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code


@dataclass(frozen=True, slots=True)
class Authorization:
    authorization_id: str
    client_token: str


@dataclass(frozen=True, slots=True)
class Transfer:
    transfer_id: str


def event_transfer_group(event_id: UUID) -> str:
    """Ties a ticket charge and the later artist transfer to the same event."""
    return f"event:{event_id}"


class PaymentProcessor(Protocol):
    async def create_authorization(
        self,
        *,
        amount_minor: int,
        destination_account: str,
        fee_breakdown: dict[str, int],
        metadata: dict[str, str],
        idempotency_key: str,
        transfer_group: str | None = None,
        settle_immediately: bool = False,
    ) -> Authorization: ...

    async def cancel_authorization(self, *, authorization_id: str) -> None: ...

    async def create_transfer(
        self,
        *,
        amount_minor: int,
        destination_account: str,
        correlation_id: str,
        idempotency_key: str,
        transfer_group: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> Transfer: ...


def _describe_stripe_error(exc: stripe.StripeError) -> str:
    message = exc.user_message or str(exc) or exc.__class__.__name__
    return message.strip()


class StripePaymentProcessor:
    """Payment processor backed by the Stripe SDK.

    The SDK is synchronous, so every call runs in a worker thread. The HTTP
    client carries an explicit timeout and SDK-level retries are disabled;
    a failed call surfaces as ``PaymentProcessorError`` for the caller to decide.
    """

    def __init__(self, *, client: stripe.StripeClient, currency: str) -> None:
        self._client = client
        self._currency = currency.lower()

    async def _call(self, operation: str, func: Any, /, **kwargs: Any) -> Any:
        try:
            return await asyncio.to_thread(func, **kwargs)
        except stripe.StripeError as exc:
            logger.warning(
                "payment_processor_call_failed",
                operation=operation,
                error_type=exc.__class__.__name__,
                error_code=exc.code,
                http_status=exc.http_status,
            )
            raise PaymentProcessorError(_describe_stripe_error(exc), code=exc.code) from exc

    async def create_authorization(
        self,
        *,
        amount_minor: int,
        destination_account: str,
        fee_breakdown: dict[str, int],
        metadata: dict[str, str],
        idempotency_key: str,
        transfer_group: str | None = None,
        settle_immediately: bool = False,
    ) -> Authorization:
        params: dict[str, Any] = {
            "amount": amount_minor,
            "currency": self._currency,
            "automatic_payment_methods": {"enabled": True},
            "metadata": {
                **metadata,
                **{f"fee_{name}": str(amount) for name, amount in fee_breakdown.items()},
                "destination_account": destination_account,
            },
        }
        if settle_immediately:
            params["transfer_data"] = {"destination": destination_account}
            params["application_fee_amount"] = sum(fee_breakdown.values())
        elif transfer_group:
            params["transfer_group"] = transfer_group

        intent = await self._call(
            "create_authorization",
            self._client.v1.payment_intents.create,
            params=params,
            options={"idempotency_key": idempotency_key},
        )
        if not intent.client_secret:
            raise PaymentProcessorError("authorization returned no client secret")
        return Authorization(authorization_id=intent.id, client_token=intent.client_secret)

    async def cancel_authorization(self, *, authorization_id: str) -> None:
        await self._call(
            "cancel_authorization",
            self._client.v1.payment_intents.cancel,
            intent=authorization_id,
        )

    async def create_transfer(
        self,
        *,
        amount_minor: int,
        destination_account: str,
        correlation_id: str,
        idempotency_key: str,
        transfer_group: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> Transfer:
        params: dict[str, Any] = {
            "amount": amount_minor,
            "currency": self._currency,
            "destination": destination_account,
            "metadata": {**(metadata or {}), "payout_id": correlation_id},
        }
        if transfer_group:
            params["transfer_group"] = transfer_group

        transfer = await self._call(
            "create_transfer",
            self._client.v1.transfers.create,
            params=params,
            options={"idempotency_key": idempotency_key},
        )
        return Transfer(transfer_id=transfer.id)


def build_stripe_processor(settings: Settings) -> StripePaymentProcessor:
    if not settings.stripe_secret_key:
        raise RuntimeError("STRIPE_SECRET_KEY is not configured")

    client = stripe.StripeClient(
        settings.stripe_secret_key,
        http_client=stripe.RequestsClient(timeout=settings.payment_processor_timeout_seconds),
        max_network_retries=0,
    )
    return StripePaymentProcessor(client=client, currency=settings.payment_currency)


@lru_cache(maxsize=1)
def get_payment_processor() -> StripePaymentProcessor:
    return build_stripe_processor(get_settings())
