"""
Stripe checkout workflow.

Creates and confirms payment intents for orders, applies webhook events and
issues refunds. Every status change of a payment is mirrored on its order,
together with the matching stock transition.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from yoyo_mall.core.database.base import utc_now
from yoyo_mall.core.database.entities.orders import Order, OrderStatus, Payment, PaymentMethod, PaymentStatus
from yoyo_mall.core.database.entities.users import User
from yoyo_mall.core.database.repositories.orders import OrderRepository, PaymentRepository
from yoyo_mall.core.exceptions import NotFoundError, PermissionDeniedError, ValidationFailedError
from yoyo_mall.core.logging_config import get_logger
from yoyo_mall.core.models.io.orders import ConfirmPaymentData, CreateIntentData
from yoyo_mall.core.monitoring import log_payment_event

from . import inventory as stock
from .security import is_admin
from .stripe_gateway import StripeGateway, map_intent_status

logger = get_logger(__name__)

PROVIDER = "stripe"

# Orders in these statuses still hold a stock reservation.
RESERVED_STATUSES = (OrderStatus.PENDING.value, OrderStatus.PROCESSING.value)

# Paid orders in these statuses have committed their stock.
COMMITTED_STATUSES = (
    OrderStatus.CONFIRMED.value,
    OrderStatus.PROCESSING.value,
    OrderStatus.SHIPPED.value,
    OrderStatus.DELIVERED.value,
)

NEXT_STEPS: Dict[str, List[str]] = {
    "succeeded": [
        "Payment received",
        "Your order is being prepared for shipment",
        "A confirmation email is on its way",
    ],
    "processing": ["Your payment is being processed", "We will notify you once it completes"],
    "requires_action": ["Additional authentication is required to complete the payment"],
    "requires_payment_method": ["The payment was not completed, please try another payment method"],
    "canceled": ["The payment was cancelled", "Your order has been cancelled"],
}


def _field(obj: Any, name: str, default: Any = None) -> Any:
    """Read a field from a Stripe object or a plain dict."""
    try:
        value = obj[name]
    except (KeyError, TypeError):
        return default
    return default if value is None else value


class PaymentService:
    """Payment operations for one request."""

    def __init__(self, session: AsyncSession, gateway: StripeGateway) -> None:
        self.session = session
        self.gateway = gateway
        self.orders = OrderRepository(session)
        self.payments = PaymentRepository(session)

    async def _order_items(self, order: Order):
        return (await self.orders.items_for([order.id])).get(order.id, [])

    async def _move_order(self, order: Order, target: str) -> None:
        """Set ``order.status`` and apply the implied stock transition.

        Confirming a reserved order commits its stock, cancelling one
        releases it. Nothing is committed here.
        """
        if order.status == target:
            return
        if order.status not in RESERVED_STATUSES:
            # Settled orders are not moved by late gateway updates.
            logger.warning(f"Ignoring transition of order {order.order_number} from {order.status} to {target}")
            return
        lines = stock.stock_lines(await self._order_items(order))
        if target == OrderStatus.CONFIRMED.value:
            await stock.commit(self.session, lines)
        elif target == OrderStatus.CANCELLED.value:
            await stock.release(self.session, lines)
        logger.info(f"Order {order.order_number} status {order.status} -> {target}")
        order.status = target
        order.updated_at = utc_now()
        self.session.add(order)

    async def create_intent(self, user: User, order_id: str, return_url: Optional[str] = None) -> CreateIntentData:
        """Create (or reuse) a PaymentIntent for a pending order.

        Raises:
            NotFoundError: ``ORDER_NOT_FOUND`` when the order is not the user's
            ValidationFailedError: ``INVALID_ORDER_STATUS`` unless the order is PENDING
        """
        order = await self.orders.get_for_user(order_id, user.id)
        if order is None:
            raise NotFoundError("Order not found", code="ORDER_NOT_FOUND")
        if order.status != OrderStatus.PENDING.value:
            raise ValidationFailedError(
                "Order cannot be paid in its current status",
                code="INVALID_ORDER_STATUS",
                details={"status": order.status},
            )

        existing = await self.payments.find_reusable(order.id, provider=PROVIDER)
        if existing is not None:
            intent = await self.gateway.retrieve_payment_intent(existing.provider_transaction_id)
            if _field(intent, "status") not in ("canceled", "succeeded"):
                logger.info(f"Reusing payment intent {existing.provider_transaction_id} for order {order.order_number}")
                return CreateIntentData(
                    client_secret=_field(intent, "client_secret"),
                    payment_intent_id=existing.provider_transaction_id,
                    payment_id=existing.id,
                    amount=existing.amount,
                    currency=existing.currency,
                    reused=True,
                )

        customer = await self.gateway.get_or_create_customer(user.id, user.email, user.name)
        intent = await self.gateway.create_payment_intent(
            amount=order.total_amount,
            currency=order.currency,
            customer_id=_field(customer, "id"),
            metadata={"orderId": order.id, "orderNumber": order.order_number, "userId": user.id},
        )
        payment = await self.payments.create(
            Payment(
                order_id=order.id,
                amount=order.total_amount,
                currency=order.currency,
                method=PaymentMethod.CREDIT_CARD.value,
                status=PaymentStatus.PENDING.value,
                provider=PROVIDER,
                provider_transaction_id=_field(intent, "id"),
                payment_metadata={
                    "clientSecret": _field(intent, "client_secret"),
                    "customerId": _field(customer, "id"),
                    "returnUrl": return_url,
                },
            )
        )
        log_payment_event("intent created", payment.id, order_number=order.order_number, amount=float(payment.amount))
        return CreateIntentData(
            client_secret=_field(intent, "client_secret"),
            payment_intent_id=payment.provider_transaction_id,
            payment_id=payment.id,
            amount=payment.amount,
            currency=payment.currency,
        )

    async def confirm(self, user: User, payment_intent_id: str, payment_id: str) -> ConfirmPaymentData:
        """Pull the intent status from Stripe and apply it locally."""
        payment = await self.payments.get_by_id(payment_id)
        if payment is None:
            raise NotFoundError("Payment not found", code="PAYMENT_NOT_FOUND")
        order = await self.orders.get_by_id(payment.order_id)
        if order is None:
            raise NotFoundError("Order not found", code="ORDER_NOT_FOUND")
        if order.user_id != user.id and not is_admin(user.role):
            raise PermissionDeniedError("Not allowed to confirm this payment")
        if payment.provider_transaction_id != payment_intent_id:
            raise ValidationFailedError("Payment intent does not match payment", code="PAYMENT_INTENT_MISMATCH")

        intent = await self.gateway.retrieve_payment_intent(payment_intent_id)
        intent_status = _field(intent, "status", "")

        if intent_status == "succeeded":
            payment.status = PaymentStatus.COMPLETED.value
            payment.processed_at = utc_now()
        elif intent_status == "canceled":
            payment.status = PaymentStatus.CANCELLED.value
        else:
            payment.status = PaymentStatus.PROCESSING.value
        payment.updated_at = utc_now()
        self.session.add(payment)

        await self._move_order(order, map_intent_status(intent_status))
        await self.session.commit()
        logger.info(f"Payment {payment.id} confirmed: intent={intent_status} order={order.status}")

        return ConfirmPaymentData(
            payment_id=payment.id,
            payment_status=payment.status,
            order_id=order.id,
            order_status=order.status,
            intent_status=intent_status,
            next_steps=NEXT_STEPS.get(intent_status, ["Please check your order status later"]),
        )

    async def _apply_to_payments(self, intent: Any, payment_status: str, order_status: Optional[str], **metadata) -> int:
        intent_id = _field(intent, "id")
        payments = await self.payments.list_by_transaction(intent_id)
        if not payments:
            logger.warning(f"No payment recorded for intent {intent_id}")
            return 0
        for payment in payments:
            payment.status = payment_status
            if payment_status == PaymentStatus.COMPLETED.value:
                payment.processed_at = utc_now()
            if metadata:
                payment.payment_metadata = {**(payment.payment_metadata or {}), **metadata}
            payment.updated_at = utc_now()
            self.session.add(payment)
            if order_status is not None:
                order = await self.orders.get_by_id(payment.order_id)
                if order is not None:
                    await self._move_order(order, order_status)
        await self.session.commit()
        return len(payments)

    async def handle_webhook_event(self, event: Any) -> None:
        """Apply a verified Stripe event. Unknown event types are ignored."""
        event_type = _field(event, "type")
        intent = _field(_field(event, "data", {}), "object", {})
        logger.info(f"Stripe webhook {event_type} for {_field(intent, 'id')}")
        log_payment_event("webhook received", None, event_type=event_type, intent_id=_field(intent, "id"))

        if event_type == "payment_intent.succeeded":
            await self._apply_to_payments(intent, PaymentStatus.COMPLETED.value, OrderStatus.CONFIRMED.value)
        elif event_type == "payment_intent.payment_failed":
            last_error = _field(_field(intent, "last_payment_error", {}), "message")
            await self._apply_to_payments(
                intent, PaymentStatus.FAILED.value, OrderStatus.CANCELLED.value, lastError=last_error
            )
        elif event_type == "payment_intent.canceled":
            await self._apply_to_payments(intent, PaymentStatus.CANCELLED.value, OrderStatus.CANCELLED.value)
        elif event_type == "payment_intent.requires_action":
            await self._apply_to_payments(intent, PaymentStatus.PROCESSING.value, None)
        elif event_type == "charge.dispute.created":
            logger.warning(
                f"Dispute opened for charge {_field(intent, 'charge')}: "
                f"amount={_field(intent, 'amount')} reason={_field(intent, 'reason')}"
            )
        else:
            logger.debug(f"Unhandled Stripe event type {event_type}")

    async def refund(self, payment_id: str, amount: Optional[Decimal] = None, reason: Optional[str] = None) -> Dict[str, Any]:
        """Refund a completed payment, fully or partially.

        A full refund marks the payment and order REFUNDED. Committed stock
        is put back and a pending order releases its reservation.
        """
        payment = await self.payments.get_by_id(payment_id)
        if payment is None:
            raise NotFoundError("Payment not found", code="PAYMENT_NOT_FOUND")
        if payment.status != PaymentStatus.COMPLETED.value:
            raise ValidationFailedError(
                "Only completed payments can be refunded",
                code="INVALID_PAYMENT_STATUS",
                details={"status": payment.status},
            )
        if amount is not None and Decimal(amount) > Decimal(payment.amount):
            raise ValidationFailedError("Refund exceeds payment amount", code="INVALID_REFUND_AMOUNT")

        refund = await self.gateway.create_refund(
            payment.provider_transaction_id,
            amount=amount,
            reason=reason,
            metadata={"paymentId": payment.id, "orderId": payment.order_id},
        )
        refunded = Decimal(amount) if amount is not None else Decimal(payment.amount)
        full = refunded >= Decimal(payment.amount)

        refunds = list((payment.payment_metadata or {}).get("refunds", []))
        refunds.append({"id": _field(refund, "id"), "amount": float(refunded), "reason": reason})
        payment.payment_metadata = {**(payment.payment_metadata or {}), "refunds": refunds}
        if full:
            payment.status = PaymentStatus.REFUNDED.value
            order = await self.orders.get_by_id(payment.order_id)
            if order is not None:
                lines = stock.stock_lines(await self._order_items(order))
                if order.status in COMMITTED_STATUSES:
                    await stock.restock(self.session, lines)
                elif order.status == OrderStatus.PENDING.value:
                    await stock.release(self.session, lines)
                logger.info(f"Order {order.order_number} status {order.status} -> REFUNDED")
                order.status = OrderStatus.REFUNDED.value
                order.updated_at = utc_now()
                self.session.add(order)
        payment.updated_at = utc_now()
        self.session.add(payment)
        await self.session.commit()
        logger.info(f"Refunded {refunded} on payment {payment.id} (full={full})")
        log_payment_event("refunded", payment.id, amount=float(refunded), full=full)

        return {
            "refundId": _field(refund, "id"),
            "amount": float(refunded),
            "status": _field(refund, "status"),
            "paymentStatus": payment.status,
        }
