"""
Stripe Payment Endpoints.

Payment intents for pending orders, client-side confirmation, the Stripe
webhook and admin refunds.
"""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Header, Request

from yoyo_mall.core.exceptions import ValidationFailedError
from yoyo_mall.core.logging_config import get_logger
from yoyo_mall.core.models.io.common import DataResponse
from yoyo_mall.core.models.io.orders import (
    ConfirmPaymentRequest,
    ConfirmPaymentResponse,
    CreateIntentRequest,
    CreateIntentResponse,
    RefundRequest,
)
from yoyo_mall.server.services.deps import AdminUser, CurrentUser, SessionDep
from yoyo_mall.server.services.payments import PaymentService
from yoyo_mall.server.services.stripe_gateway import StripeGateway, get_stripe_gateway

logger = get_logger(__name__)

router = APIRouter()

GatewayDep = Annotated[StripeGateway, Depends(get_stripe_gateway)]


@router.post(
    "/create-intent",
    response_model=CreateIntentResponse,
    summary="Create Payment Intent",
    description="Create a Stripe PaymentIntent for one of the user's pending orders, reusing an open one.",
    responses={
        400: {"description": "Order is not pending"},
        404: {"description": "Order not found"},
        502: {"description": "Stripe error"},
    },
)
async def create_intent(
    payload: CreateIntentRequest, user: CurrentUser, session: SessionDep, gateway: GatewayDep
) -> CreateIntentResponse:
    data = await PaymentService(session, gateway).create_intent(user, payload.order_id, payload.return_url)
    return CreateIntentResponse(data=data)


@router.post(
    "/confirm",
    response_model=ConfirmPaymentResponse,
    summary="Confirm Payment",
    description="Sync a payment and its order with the current PaymentIntent status.",
    responses={403: {"description": "Not the order owner"}, 404: {"description": "Payment not found"}},
)
async def confirm_payment(
    payload: ConfirmPaymentRequest, user: CurrentUser, session: SessionDep, gateway: GatewayDep
) -> ConfirmPaymentResponse:
    data = await PaymentService(session, gateway).confirm(user, payload.payment_intent_id, payload.payment_id)
    return ConfirmPaymentResponse(data=data)


@router.post(
    "/webhook",
    summary="Stripe Webhook",
    description="Receive signed Stripe events. Always acknowledges verified events.",
    responses={400: {"description": "Missing or invalid signature"}, 500: {"description": "Webhook not configured"}},
)
async def stripe_webhook(
    request: Request,
    session: SessionDep,
    gateway: GatewayDep,
    stripe_signature: Optional[str] = Header(None, alias="stripe-signature"),
):
    if not stripe_signature:
        raise ValidationFailedError("Missing Stripe signature", code="MISSING_SIGNATURE")
    payload = await request.body()
    event = gateway.construct_webhook_event(payload, stripe_signature)
    await PaymentService(session, gateway).handle_webhook_event(event)
    return {"received": True}


@router.post(
    "/refund",
    response_model=DataResponse,
    summary="Refund Payment",
    description="Refund a completed payment, fully or partially (admin only).",
    responses={400: {"description": "Payment not refundable"}, 404: {"description": "Payment not found"}},
)
async def refund_payment(
    payload: RefundRequest, session: SessionDep, gateway: GatewayDep, admin: AdminUser
) -> DataResponse:
    data = await PaymentService(session, gateway).refund(payload.payment_id, payload.amount, payload.reason)
    logger.info(f"Admin {admin.id} refunded payment {payload.payment_id}")
    return DataResponse(data=data, message="Refund issued")
