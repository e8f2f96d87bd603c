"""Unit tests for the Stripe gateway wrapper."""

import hashlib
import hmac
import json
import time
from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest
import stripe

from yoyo_mall.core.exceptions import ConfigurationError, PaymentGatewayError, ValidationFailedError
from yoyo_mall.server.core.config import StripeConfig
from yoyo_mall.server.services.stripe_gateway import StripeGateway, map_intent_status, to_minor_units

WEBHOOK_SECRET = "whsec_test"


@pytest.fixture
def gateway() -> StripeGateway:
    return StripeGateway(StripeConfig(secret_key="sk_test_123", webhook_secret=WEBHOOK_SECRET, currency="usd"))


def stripe_object(values: dict) -> stripe.StripeObject:
    return stripe.StripeObject.construct_from(values, "sk_test_123")


def sign(payload: bytes, secret: str = WEBHOOK_SECRET) -> str:
    timestamp = int(time.time())
    signed = f"{timestamp}.{payload.decode()}".encode()
    signature = hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


class TestHelpers:
    @pytest.mark.parametrize(
        "amount,expected", [(Decimal("10.00"), 1000), (Decimal("0.015"), 2), (Decimal("63.99"), 6399)]
    )
    def test_to_minor_units(self, amount, expected):
        assert to_minor_units(amount) == expected

    @pytest.mark.parametrize(
        "status,expected",
        [
            ("succeeded", "CONFIRMED"),
            ("requires_capture", "CONFIRMED"),
            ("processing", "PROCESSING"),
            ("canceled", "CANCELLED"),
            ("requires_payment_method", "PENDING"),
            ("something_new", "PENDING"),
            (None, "PENDING"),
        ],
    )
    def test_map_intent_status(self, status, expected):
        assert map_intent_status(status) == expected


class TestPaymentIntents:
    @pytest.mark.asyncio
    async def test_missing_key(self):
        gateway = StripeGateway(StripeConfig())

        with pytest.raises(ConfigurationError) as exc_info:
            await gateway.create_payment_intent(Decimal("10"))
        assert exc_info.value.code == "STRIPE_NOT_CONFIGURED"

    @pytest.mark.asyncio
    async def test_create_payment_intent(self, gateway):
        created = stripe_object({"id": "pi_1"})
        with patch.object(stripe.PaymentIntent, "create", MagicMock(return_value=created)) as create:
            intent = await gateway.create_payment_intent(
                Decimal("63.99"), customer_id="cus_1", metadata={"orderId": "o1"}
            )

        assert intent["id"] == "pi_1"
        create.assert_called_once_with(
            api_key="sk_test_123",
            amount=6399,
            currency="usd",
            metadata={"orderId": "o1"},
            automatic_payment_methods={"enabled": True},
            customer="cus_1",
        )

    @pytest.mark.asyncio
    async def test_stripe_errors_are_wrapped(self, gateway):
        with patch.object(stripe.PaymentIntent, "retrieve", MagicMock(side_effect=stripe.StripeError("boom"))):
            with pytest.raises(PaymentGatewayError) as exc_info:
                await gateway.retrieve_payment_intent("pi_1")
        assert exc_info.value.code == "STRIPE_ERROR"
        assert exc_info.value.status_code == 502

    @pytest.mark.asyncio
    async def test_confirm_passes_payment_method(self, gateway):
        intent = stripe_object({"id": "pi_1"})
        with patch.object(stripe.PaymentIntent, "confirm", MagicMock(return_value=intent)) as confirm:
            await gateway.confirm_payment_intent("pi_1", payment_method="pm_card_visa")

        confirm.assert_called_once_with(api_key="sk_test_123", intent="pi_1", payment_method="pm_card_visa")


class TestRefunds:
    @pytest.mark.asyncio
    async def test_partial_refund(self, gateway):
        with patch.object(stripe.Refund, "create", MagicMock(return_value=stripe_object({"id": "re_1"}))) as create:
            await gateway.create_refund("pi_1", amount=Decimal("5.50"))

        create.assert_called_once_with(
            api_key="sk_test_123",
            payment_intent="pi_1",
            reason="requested_by_customer",
            metadata={},
            amount=550,
        )

    @pytest.mark.asyncio
    async def test_bad_reason(self, gateway):
        with pytest.raises(ValidationFailedError) as exc_info:
            await gateway.create_refund("pi_1", reason="changed_my_mind")
        assert exc_info.value.code == "INVALID_REFUND_REASON"


class TestCustomers:
    @pytest.mark.asyncio
    async def test_existing_customer_is_reused(self, gateway):
        found = stripe_object({"data": [{"id": "cus_1"}]})
        with patch.object(stripe.Customer, "search", MagicMock(return_value=found)), patch.object(
            stripe.Customer, "create", MagicMock()
        ) as create:
            customer = await gateway.get_or_create_customer("u1", "a@b.com")

        assert customer["id"] == "cus_1"
        create.assert_not_called()

    @pytest.mark.asyncio
    async def test_new_customer(self, gateway):
        empty = stripe_object({"data": []})
        with patch.object(stripe.Customer, "search", MagicMock(return_value=empty)), patch.object(
            stripe.Customer, "create", MagicMock(return_value=stripe_object({"id": "cus_2"}))
        ) as create:
            customer = await gateway.get_or_create_customer("u1", "a@b.com", name="Ann")

        assert customer["id"] == "cus_2"
        create.assert_called_once_with(
            api_key="sk_test_123", email="a@b.com", metadata={"userId": "u1"}, name="Ann"
        )


class TestWebhooks:
    def test_valid_signature(self, gateway):
        payload = json.dumps(
            {"id": "evt_1", "object": "event", "type": "payment_intent.succeeded", "data": {"object": {"id": "pi_1"}}}
        ).encode()

        event = gateway.construct_webhook_event(payload, sign(payload))

        assert event["type"] == "payment_intent.succeeded"

    def test_bad_signature(self, gateway):
        payload = b'{"id": "evt_1", "object": "event"}'

        with pytest.raises(ValidationFailedError) as exc_info:
            gateway.construct_webhook_event(payload, sign(payload, secret="whsec_other"))
        assert exc_info.value.code == "INVALID_SIGNATURE"

    def test_missing_secret(self):
        gateway = StripeGateway(StripeConfig(secret_key="sk_test_123"))

        with pytest.raises(ConfigurationError) as exc_info:
            gateway.construct_webhook_event(b"{}", "t=1,v1=abc")
        assert exc_info.value.code == "WEBHOOK_NOT_CONFIGURED"
