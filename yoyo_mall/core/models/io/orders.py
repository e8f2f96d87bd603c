"""
Cart, order and payment I/O models for API requests and responses.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import Field

from yoyo_mall.core.database.entities.orders import PaymentMethod

from .catalog import ImageRead
from .common import ApiModel, Money, PaginationInfo
from .users import AddressRead

# ---------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------


class CartAddRequest(ApiModel):
    product_id: str = Field(min_length=1)
    variant_id: Optional[str] = None
    quantity: int = Field(default=1, ge=1, le=100)


class CartUpdateRequest(ApiModel):
    quantity: int = Field(ge=0, le=100, description="0 removes the line")


class CartProduct(ApiModel):
    id: str
    name: str
    slug: str
    sku: str
    price: Money
    status: str
    image: Optional[ImageRead] = None


class CartVariant(ApiModel):
    id: str
    name: str
    price: Optional[Money] = None
    attributes: Dict[str, Any] = Field(default_factory=dict)


class CartLine(ApiModel):
    id: str
    product_id: str
    variant_id: Optional[str] = None
    quantity: int
    price: Money
    line_total: Money
    product: CartProduct
    variant: Optional[CartVariant] = None
    available_quantity: int
    in_stock: bool
    created_at: datetime


class CartSummary(ApiModel):
    total_items: int
    subtotal: Money
    item_count: int


class CartData(ApiModel):
    items: List[CartLine]
    summary: CartSummary


class CartResponse(ApiModel):
    success: bool = True
    data: CartData


class CartLineResponse(ApiModel):
    success: bool = True
    message: str
    data: CartLine


# ---------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------


class OrderItemCreate(ApiModel):
    product_id: str = Field(min_length=1)
    variant_id: Optional[str] = None
    quantity: int = Field(ge=1, le=100)
    unit_price: Decimal = Field(ge=0)


class OrderCreate(ApiModel):
    items: List[OrderItemCreate] = Field(min_length=1)
    shipping_address_id: str = Field(min_length=1)
    billing_address_id: Optional[str] = None
    payment_method: PaymentMethod
    notes: Optional[str] = Field(default=None, max_length=500)
    coupon_code: Optional[str] = None


class OrderCreated(ApiModel):
    id: str
    order_number: str
    total_amount: Money
    status: str
    created_at: datetime


class OrderCreatedResponse(ApiModel):
    success: bool = True
    message: str
    data: OrderCreated


class OrderUpdate(ApiModel):
    status: Optional[str] = None
    notes: Optional[str] = Field(default=None, max_length=500)


class OrderItemRead(ApiModel):
    id: str
    product_id: str
    variant_id: Optional[str] = None
    quantity: int
    unit_price: Money
    total_price: Money
    product_snapshot: Dict[str, Any] = Field(default_factory=dict)


class PaymentRead(ApiModel):
    id: str
    amount: Money
    currency: str
    method: str
    status: str
    provider: Optional[str] = None
    provider_transaction_id: Optional[str] = None
    processed_at: Optional[datetime] = None
    created_at: datetime


class ShipmentRead(ApiModel):
    id: str
    carrier: Optional[str] = None
    tracking_number: Optional[str] = None
    status: str
    shipped_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None


class OrderRead(ApiModel):
    id: str
    order_number: str
    user_id: str
    status: str
    subtotal: Money
    tax_amount: Money
    shipping_amount: Money
    discount_amount: Money
    total_amount: Money
    currency: str
    payment_method: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    items: List[OrderItemRead] = Field(default_factory=list)
    shipping_address: Optional[AddressRead] = None
    billing_address: Optional[AddressRead] = None
    payments: List[PaymentRead] = Field(default_factory=list)
    shipments: List[ShipmentRead] = Field(default_factory=list)


class OrderResponse(ApiModel):
    success: bool = True
    data: OrderRead
    message: Optional[str] = None


class OrderListResponse(ApiModel):
    success: bool = True
    data: List[OrderRead]
    pagination: PaginationInfo


# ---------------------------------------------------------------------
# Stripe payments
# ---------------------------------------------------------------------


class CreateIntentRequest(ApiModel):
    order_id: str = Field(min_length=1)
    return_url: Optional[str] = None


class CreateIntentData(ApiModel):
    client_secret: Optional[str] = None
    payment_intent_id: str
    payment_id: str
    amount: Money
    currency: str
    reused: bool = False


class CreateIntentResponse(ApiModel):
    success: bool = True
    data: CreateIntentData


class ConfirmPaymentRequest(ApiModel):
    payment_intent_id: str = Field(min_length=1)
    payment_id: str = Field(min_length=1)


class ConfirmPaymentData(ApiModel):
    payment_id: str
    payment_status: str
    order_id: str
    order_status: str
    intent_status: str
    next_steps: List[str]


class ConfirmPaymentResponse(ApiModel):
    success: bool = True
    data: ConfirmPaymentData


class RefundRequest(ApiModel):
    payment_id: str = Field(min_length=1)
    amount: Optional[Decimal] = Field(default=None, gt=0)
    reason: Optional[str] = Field(default=None, description="duplicate, fraudulent or requested_by_customer")
