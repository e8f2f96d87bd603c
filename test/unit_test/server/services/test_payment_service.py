from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

from yoyo_mall.core.exceptions import MallError, NotFoundError, PermissionDeniedError
from yoyo_mall.core.models.io.orders import OrderCreate, OrderUpdate
from yoyo_mall.server.services.orders import OrderService
from yoyo_mall.server.services.payments import PaymentService


@pytest.fixture
def gateway():
    gateway = MagicMock()
    gateway.get_or_create_customer = AsyncMock(return_value={"id": "cus_1"})
    gateway.create_payment_intent = AsyncMock(return_value={"id": "pi_1", "client_secret": "cs_1", "status": "requires_payment_method"})
    gateway.retrieve_payment_intent = AsyncMock(return_value={"id": "pi_1", "status": "succeeded", "client_secret": "cs_1"})
    gateway.create_refund = AsyncMock(return_value={"id": "re_1", "status": "succeeded"})
    return gateway


@pytest_asyncio.fixture
async def order(session, factory, customer, product):
    address = await factory.address(customer)
    payload = OrderCreate.model_validate(
        {
            "items": [{"productId": product.id, "quantity": 2, "unitPrice": "25.00"}],
            "shippingAddressId": address.id,
            "paymentMethod": "CREDIT_CARD",
        }
    )
    return await OrderService(session).create_order(customer, payload)


def _event(event_type: str, intent_id: str = "pi_1", **fields) -> dict:
    return {"type": event_type, "data": {"object": {"id": intent_id, **fields}}}


class TestCreateIntent:
    async def test_creates_intent_and_payment(self, session, gateway, customer, order):
        data = await PaymentService(session, gateway).create_intent(customer, order.id, return_url="https://shop/return")

        assert data.payment_intent_id == "pi_1"
        assert data.client_secret == "cs_1"
        assert data.amount == Decimal("63.99")
        assert data.reused is False
        gateway.get_or_create_customer.assert_awaited_once_with(customer.id, customer.email, customer.name)
        kwargs = gateway.create_payment_intent.await_args.kwargs
        assert kwargs["customer_id"] == "cus_1"
        assert kwargs["metadata"]["orderNumber"] == order.order_number

    async def test_reuses_open_intent(self, session, gateway, customer, order):
        service = PaymentService(session, gateway)
        first = await service.create_intent(customer, order.id)
        gateway.retrieve_payment_intent.return_value = {"id": "pi_1", "status": "requires_payment_method", "client_secret": "cs_1"}

        second = await service.create_intent(customer, order.id)

        assert second.reused is True
        assert second.payment_id == first.payment_id
        assert gateway.create_payment_intent.await_count == 1

    async def test_canceled_intent_is_replaced(self, session, gateway, customer, order):
        service = PaymentService(session, gateway)
        first = await service.create_intent(customer, order.id)
        gateway.retrieve_payment_intent.return_value = {"id": "pi_1", "status": "canceled"}
        gateway.create_payment_intent.return_value = {"id": "pi_2", "client_secret": "cs_2"}

        second = await service.create_intent(customer, order.id)

        assert second.reused is False
        assert second.payment_intent_id == "pi_2"
        assert second.payment_id != first.payment_id

    async def test_other_users_order(self, session, gateway, factory, order):
        other = await factory.user(email="bob@example.com", name="Bob")
        with pytest.raises(NotFoundError) as exc_info:
            await PaymentService(session, gateway).create_intent(other, order.id)
        assert exc_info.value.code == "ORDER_NOT_FOUND"

    async def test_order_must_be_pending(self, session, gateway, customer, order):
        order.status = "CONFIRMED"
        session.add(order)
        await session.commit()

        with pytest.raises(MallError) as exc_info:
            await PaymentService(session, gateway).create_intent(customer, order.id)
        assert exc_info.value.code == "INVALID_ORDER_STATUS"
        assert exc_info.value.details == {"status": "CONFIRMED"}


class TestConfirm:
    async def test_succeeded_intent_confirms_order_and_commits_stock(self, session, gateway, factory, customer, product, order):
        service = PaymentService(session, gateway)
        intent = await service.create_intent(customer, order.id)

        data = await service.confirm(customer, "pi_1", intent.payment_id)

        assert data.payment_status == "COMPLETED"
        assert data.order_status == "CONFIRMED"
        assert data.intent_status == "succeeded"
        assert data.next_steps[0] == "Payment received"
        inventory = await factory.inventory(product.id)
        assert inventory.quantity == 48
        assert inventory.reserved_quantity == 0

    async def test_canceled_intent_cancels_order_and_releases_stock(self, session, gateway, factory, customer, product, order):
        service = PaymentService(session, gateway)
        intent = await service.create_intent(customer, order.id)
        gateway.retrieve_payment_intent.return_value = {"id": "pi_1", "status": "canceled"}

        data = await service.confirm(customer, "pi_1", intent.payment_id)

        assert data.payment_status == "CANCELLED"
        assert data.order_status == "CANCELLED"
        inventory = await factory.inventory(product.id)
        assert inventory.quantity == 50
        assert inventory.reserved_quantity == 0

    async def test_processing_intent_marks_order_processing(self, session, gateway, customer, order):
        service = PaymentService(session, gateway)
        intent = await service.create_intent(customer, order.id)
        gateway.retrieve_payment_intent.return_value = {"id": "pi_1", "status": "processing"}

        data = await service.confirm(customer, "pi_1", intent.payment_id)

        assert data.payment_status == "PROCESSING"
        assert data.order_status == "PROCESSING"

    async def test_unknown_payment(self, session, gateway, customer):
        with pytest.raises(NotFoundError) as exc_info:
            await PaymentService(session, gateway).confirm(customer, "pi_1", "missing")
        assert exc_info.value.code == "PAYMENT_NOT_FOUND"

    async def test_other_user_is_forbidden(self, session, gateway, factory, customer, order):
        service = PaymentService(session, gateway)
        intent = await service.create_intent(customer, order.id)
        other = await factory.user(email="bob@example.com", name="Bob")

        with pytest.raises(PermissionDeniedError):
            await service.confirm(other, "pi_1", intent.payment_id)

    async def test_intent_must_match_payment(self, session, gateway, customer, order):
        service = PaymentService(session, gateway)
        intent = await service.create_intent(customer, order.id)

        with pytest.raises(MallError) as exc_info:
            await service.confirm(customer, "pi_other", intent.payment_id)
        assert exc_info.value.code == "PAYMENT_INTENT_MISMATCH"


class TestWebhookEvents:
    async def test_succeeded_event(self, session, gateway, factory, customer, product, order):
        service = PaymentService(session, gateway)
        intent = await service.create_intent(customer, order.id)

        await service.handle_webhook_event(_event("payment_intent.succeeded"))

        payment = await service.payments.get_by_id(intent.payment_id)
        await session.refresh(payment)
        await session.refresh(order)
        assert payment.status == "COMPLETED"
        assert payment.processed_at is not None
        assert order.status == "CONFIRMED"
        assert (await factory.inventory(product.id)).quantity == 48

    async def test_failed_event_records_error(self, session, gateway, customer, order):
        service = PaymentService(session, gateway)
        intent = await service.create_intent(customer, order.id)

        await service.handle_webhook_event(
            _event("payment_intent.payment_failed", last_payment_error={"message": "Card declined"})
        )

        payment = await service.payments.get_by_id(intent.payment_id)
        await session.refresh(payment)
        await session.refresh(order)
        assert payment.status == "FAILED"
        assert payment.payment_metadata["lastError"] == "Card declined"
        assert order.status == "CANCELLED"

    async def test_requires_action_leaves_order_alone(self, session, gateway, customer, order):
        service = PaymentService(session, gateway)
        intent = await service.create_intent(customer, order.id)

        await service.handle_webhook_event(_event("payment_intent.requires_action"))

        payment = await service.payments.get_by_id(intent.payment_id)
        await session.refresh(payment)
        await session.refresh(order)
        assert payment.status == "PROCESSING"
        assert order.status == "PENDING"

    async def test_late_cancel_does_not_reopen_confirmed_order(self, session, gateway, customer, order):
        service = PaymentService(session, gateway)
        await service.create_intent(customer, order.id)
        await service.handle_webhook_event(_event("payment_intent.succeeded"))

        await service.handle_webhook_event(_event("payment_intent.canceled"))

        await session.refresh(order)
        assert order.status == "CONFIRMED"

    async def test_unknown_intent_and_event_are_ignored(self, session, gateway):
        service = PaymentService(session, gateway)
        await service.handle_webhook_event(_event("payment_intent.succeeded", intent_id="pi_unknown"))
        await service.handle_webhook_event({"type": "customer.created", "data": {"object": {}}})


class TestRefund:
    async def _completed_payment(self, service, customer, order) -> str:
        intent = await service.create_intent(customer, order.id)
        await service.confirm(customer, "pi_1", intent.payment_id)
        return intent.payment_id

    async def test_full_refund_restocks(self, session, gateway, factory, customer, product, order):
        service = PaymentService(session, gateway)
        payment_id = await self._completed_payment(service, customer, order)

        result = await service.refund(payment_id, reason="requested_by_customer")

        assert result == {"refundId": "re_1", "amount": 63.99, "status": "succeeded", "paymentStatus": "REFUNDED"}
        await session.refresh(order)
        assert order.status == "REFUNDED"
        assert (await factory.inventory(product.id)).quantity == 50

    async def test_partial_refund_is_recorded(self, session, gateway, customer, order):
        service = PaymentService(session, gateway)
        payment_id = await self._completed_payment(service, customer, order)

        result = await service.refund(payment_id, amount=Decimal("10.00"))

        assert result["paymentStatus"] == "COMPLETED"
        payment = await service.payments.get_by_id(payment_id)
        assert payment.payment_metadata["refunds"] == [{"id": "re_1", "amount": 10.0, "reason": None}]
        await session.refresh(order)
        assert order.status == "CONFIRMED"

    async def test_pending_payment_cannot_be_refunded(self, session, gateway, customer, order):
        service = PaymentService(session, gateway)
        intent = await service.create_intent(customer, order.id)

        with pytest.raises(MallError) as exc_info:
            await service.refund(intent.payment_id)
        assert exc_info.value.code == "INVALID_PAYMENT_STATUS"
        gateway.create_refund.assert_not_awaited()

    async def test_amount_above_payment(self, session, gateway, customer, order):
        service = PaymentService(session, gateway)
        payment_id = await self._completed_payment(service, customer, order)

        with pytest.raises(MallError) as exc_info:
            await service.refund(payment_id, amount=Decimal("100.00"))
        assert exc_info.value.code == "INVALID_REFUND_AMOUNT"

    async def test_refund_after_cancel_and_late_success_keeps_stock(self, session, gateway, factory, customer, product, order):
        service = PaymentService(session, gateway)
        intent = await service.create_intent(customer, order.id)
        await OrderService(session).admin_update(order.id, OrderUpdate(status="CANCELLED"))
        await service.handle_webhook_event(_event("payment_intent.succeeded"))

        await session.refresh(order)
        assert order.status == "CANCELLED"
        inventory = await factory.inventory(product.id)
        assert (inventory.quantity, inventory.reserved_quantity) == (50, 0)

        result = await service.refund(intent.payment_id)

        assert result["paymentStatus"] == "REFUNDED"
        await session.refresh(order)
        assert order.status == "REFUNDED"
        inventory = await factory.inventory(product.id)
        assert (inventory.quantity, inventory.reserved_quantity) == (50, 0)

    async def test_refund_of_shipped_order_restocks(self, session, gateway, factory, customer, product, order):
        service = PaymentService(session, gateway)
        payment_id = await self._completed_payment(service, customer, order)
        await OrderService(session).admin_update(order.id, OrderUpdate(status="SHIPPED"))
        assert (await factory.inventory(product.id)).quantity == 48

        await service.refund(payment_id)

        inventory = await factory.inventory(product.id)
        assert (inventory.quantity, inventory.reserved_quantity) == (50, 0)
