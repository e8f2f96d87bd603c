"""
Stripe payment gateway.

Thin async wrapper over the ``stripe`` SDK. SDK calls are blocking and run
in the default thread pool. Amounts cross this boundary as ``Decimal`` in
major units and are converted to the smallest currency unit here.
"""

from __future__ import annotations

import asyncio
from decimal import ROUND_HALF_UP, Decimal
from functools import lru_cache
from typing import Any, Dict, Optional

import stripe

from yoyo_mall.core.database.entities.orders import OrderStatus
from yoyo_mall.core.exceptions import ConfigurationError, PaymentGatewayError, ValidationFailedError
from yoyo_mall.core.logging_config import get_logger
from yoyo_mall.server.core.config import StripeConfig, settings

logger = get_logger(__name__)

INTENT_TO_ORDER_STATUS: Dict[str, str] = {
    "requires_payment_method": OrderStatus.PENDING.value,
    "requires_confirmation": OrderStatus.PENDING.value,
    "requires_action": OrderStatus.PENDING.value,
    "processing": OrderStatus.PROCESSING.value,
    "requires_capture": OrderStatus.CONFIRMED.value,
    "succeeded": OrderStatus.CONFIRMED.value,
    "canceled": OrderStatus.CANCELLED.value,
}

REFUND_REASONS = ("duplicate", "fraudulent", "requested_by_customer")


def map_intent_status(status: Optional[str]) -> str:
    """Order status implied by a PaymentIntent status (unknown -> PENDING)."""
    return INTENT_TO_ORDER_STATUS.get(status or "", OrderStatus.PENDING.value)


def to_minor_units(amount: Decimal) -> int:
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class StripeGateway:
    """Payment operations used by the checkout API."""

    def __init__(self, config: Optional[StripeConfig] = None) -> None:
        self.config = config or settings.stripe

    @property
    def api_key(self) -> str:
        if not self.config.secret_key:
            raise ConfigurationError("Stripe is not configured", code="STRIPE_NOT_CONFIGURED")
        return self.config.secret_key

    async def _call(self, func, **kwargs) -> Any:
        api_key = self.api_key
        try:
            return await asyncio.to_thread(func, api_key=api_key, **kwargs)
        except stripe.StripeError as e:
            logger.error(f"Stripe call {getattr(func, '__qualname__', func)} failed: {e}")
            raise PaymentGatewayError(
                getattr(e, "user_message", None) or "Payment provider error",
                code="STRIPE_ERROR",
            ) from e

    async def create_payment_intent(
        self,
        amount: Decimal,
        currency: Optional[str] = None,
        customer_id: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
    ):
        """Create a PaymentIntent with automatic payment methods."""
        params: Dict[str, Any] = {
            "amount": to_minor_units(amount),
            "currency": (currency or self.config.currency).lower(),
            "metadata": metadata or {},
            "automatic_payment_methods": {"enabled": True},
        }
        if customer_id:
            params["customer"] = customer_id
        intent = await self._call(stripe.PaymentIntent.create, **params)
        logger.info(f"Created payment intent {intent['id']} for {params['amount']} {params['currency']}")
        return intent

    async def retrieve_payment_intent(self, payment_intent_id: str):
        return await self._call(stripe.PaymentIntent.retrieve, id=payment_intent_id)

    async def confirm_payment_intent(self, payment_intent_id: str, payment_method: Optional[str] = None):
        params: Dict[str, Any] = {}
        if payment_method:
            params["payment_method"] = payment_method
        return await self._call(stripe.PaymentIntent.confirm, intent=payment_intent_id, **params)

    async def cancel_payment_intent(self, payment_intent_id: str):
        return await self._call(stripe.PaymentIntent.cancel, intent=payment_intent_id)

    async def create_refund(
        self,
        payment_intent_id: str,
        amount: Optional[Decimal] = None,
        reason: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
    ):
        """Refund a payment; ``amount`` omitted means a full refund."""
        if reason is not None and reason not in REFUND_REASONS:
            raise ValidationFailedError("Unsupported refund reason", code="INVALID_REFUND_REASON")
        params: Dict[str, Any] = {
            "payment_intent": payment_intent_id,
            "reason": reason or "requested_by_customer",
            "metadata": metadata or {},
        }
        if amount is not None:
            params["amount"] = to_minor_units(amount)
        return await self._call(stripe.Refund.create, **params)

    async def get_or_create_customer(self, user_id: str, email: str, name: Optional[str] = None):
        """Find the customer tagged with ``userId`` metadata, or create one."""
        found = await self._call(stripe.Customer.search, query=f"metadata['userId']:'{user_id}'")
        data = found["data"] or []
        if data:
            return data[0]
        params: Dict[str, Any] = {"email": email, "metadata": {"userId": user_id}}
        if name:
            params["name"] = name
        return await self._call(stripe.Customer.create, **params)

    def construct_webhook_event(self, payload: bytes, signature: str):
        """Verify a webhook signature and parse the event.

        Raises:
            ConfigurationError: ``WEBHOOK_NOT_CONFIGURED`` without a signing secret
            ValidationFailedError: ``INVALID_SIGNATURE`` for a bad signature or payload
        """
        if not self.config.webhook_secret:
            raise ConfigurationError("Webhook secret is not configured", code="WEBHOOK_NOT_CONFIGURED")
        try:
            return stripe.Webhook.construct_event(payload, signature, self.config.webhook_secret)
        except (stripe.SignatureVerificationError, ValueError) as e:
            logger.warning(f"Webhook signature verification failed: {e}")
            raise ValidationFailedError("Invalid webhook signature", code="INVALID_SIGNATURE") from e


@lru_cache(maxsize=1)
def get_stripe_gateway() -> StripeGateway:
    """FastAPI dependency returning the process-wide gateway."""
    return StripeGateway()
