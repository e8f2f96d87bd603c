"""
Checkout entity models.

Cart lines, coupons, orders with their line items, payments and shipments.
Monetary columns are ``Decimal`` with two decimal places.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional

from sqlalchemy import DateTime
from sqlmodel import JSON, Field

from ..base import Base, new_id, utc_now


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"
    REFUNDED = "REFUNDED"


class PaymentMethod(str, Enum):
    CREDIT_CARD = "CREDIT_CARD"
    PAYPAL = "PAYPAL"
    BANK_TRANSFER = "BANK_TRANSFER"
    APPLE_PAY = "APPLE_PAY"
    GOOGLE_PAY = "GOOGLE_PAY"


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"
    REFUNDED = "REFUNDED"


class CouponType(str, Enum):
    PERCENTAGE = "PERCENTAGE"
    FIXED_AMOUNT = "FIXED_AMOUNT"
    FREE_SHIPPING = "FREE_SHIPPING"


class ShipmentStatus(str, Enum):
    PENDING = "PENDING"
    SHIPPED = "SHIPPED"
    IN_TRANSIT = "IN_TRANSIT"
    DELIVERED = "DELIVERED"
    RETURNED = "RETURNED"


class CartItem(Base, table=True):
    """One line in a user's cart, unique per (product, variant).

    Table: cart_items
    """

    __tablename__ = "cart_items"
    __table_args__ = ({"extend_existing": True},)

    id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    user_id: str = Field(foreign_key="users.id", index=True, max_length=64)
    product_id: str = Field(foreign_key="products.id", index=True, max_length=64)
    variant_id: Optional[str] = Field(default=None, foreign_key="product_variants.id", max_length=64)
    quantity: int = Field(default=1)

    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime)
    updated_at: datetime = Field(default_factory=utc_now, sa_type=DateTime)

    def __repr__(self) -> str:
        return f"CartItem(id={self.id}, product_id={self.product_id}, quantity={self.quantity})"


class Coupon(Base, table=True):
    """Table: coupons"""

    __tablename__ = "coupons"
    __table_args__ = ({"extend_existing": True},)

    id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    code: str = Field(max_length=50, unique=True, index=True)
    name: str = Field(max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    type: str = Field(default=CouponType.PERCENTAGE.value, max_length=16)
    value: Decimal = Field(default=Decimal("0"), max_digits=10, decimal_places=2)
    min_amount: Optional[Decimal] = Field(default=None, max_digits=10, decimal_places=2)
    max_discount: Optional[Decimal] = Field(default=None, max_digits=10, decimal_places=2)
    usage_limit: Optional[int] = None
    usage_count: int = Field(default=0)
    is_active: bool = Field(default=True)
    valid_from: datetime = Field(default_factory=utc_now, sa_type=DateTime)
    valid_to: datetime = Field(sa_type=DateTime)

    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime)


class Order(Base, table=True):
    """Placed order. Amounts are fixed at checkout time.

    Table: orders
    """

    __tablename__ = "orders"
    __table_args__ = ({"extend_existing": True},)

    id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    order_number: str = Field(max_length=32, unique=True, index=True)
    user_id: str = Field(foreign_key="users.id", index=True, max_length=64)
    status: str = Field(default=OrderStatus.PENDING.value, max_length=16, index=True)
    subtotal: Decimal = Field(max_digits=10, decimal_places=2)
    tax_amount: Decimal = Field(default=Decimal("0"), max_digits=10, decimal_places=2)
    shipping_amount: Decimal = Field(default=Decimal("0"), max_digits=10, decimal_places=2)
    discount_amount: Decimal = Field(default=Decimal("0"), max_digits=10, decimal_places=2)
    total_amount: Decimal = Field(max_digits=10, decimal_places=2)
    currency: str = Field(default="USD", max_length=3)
    shipping_address_id: Optional[str] = Field(default=None, foreign_key="addresses.id", max_length=64)
    billing_address_id: Optional[str] = Field(default=None, foreign_key="addresses.id", max_length=64)
    coupon_id: Optional[str] = Field(default=None, foreign_key="coupons.id", max_length=64)
    payment_method: Optional[str] = Field(default=None, max_length=32)
    notes: Optional[str] = Field(default=None, max_length=500)

    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime, index=True)
    updated_at: datetime = Field(default_factory=utc_now, sa_type=DateTime)

    def __repr__(self) -> str:
        return f"Order(id={self.id}, number={self.order_number}, status={self.status})"


class OrderItem(Base, table=True):
    """Table: order_items"""

    __tablename__ = "order_items"
    __table_args__ = ({"extend_existing": True},)

    id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    order_id: str = Field(foreign_key="orders.id", index=True, max_length=64)
    product_id: str = Field(foreign_key="products.id", index=True, max_length=64)
    variant_id: Optional[str] = Field(default=None, foreign_key="product_variants.id", max_length=64)
    quantity: int
    unit_price: Decimal = Field(max_digits=10, decimal_places=2)
    total_price: Decimal = Field(max_digits=10, decimal_places=2)
    product_snapshot: Dict[str, Any] = Field(default_factory=dict, sa_type=JSON)


class Payment(Base, table=True):
    """Payment attempt against an order.

    ``payment_metadata`` keeps gateway details such as the Stripe client secret.

    Table: payments
    """

    __tablename__ = "payments"
    __table_args__ = ({"extend_existing": True},)

    id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    order_id: str = Field(foreign_key="orders.id", index=True, max_length=64)
    amount: Decimal = Field(max_digits=10, decimal_places=2)
    currency: str = Field(default="USD", max_length=3)
    method: str = Field(default=PaymentMethod.CREDIT_CARD.value, max_length=32)
    status: str = Field(default=PaymentStatus.PENDING.value, max_length=16, index=True)
    provider: Optional[str] = Field(default=None, max_length=32)
    provider_transaction_id: Optional[str] = Field(default=None, max_length=255, index=True)
    payment_metadata: Dict[str, Any] = Field(default_factory=dict, sa_type=JSON)
    processed_at: Optional[datetime] = Field(default=None, sa_type=DateTime)

    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime)
    updated_at: datetime = Field(default_factory=utc_now, sa_type=DateTime)


class Shipment(Base, table=True):
    """Table: shipments"""

    __tablename__ = "shipments"
    __table_args__ = ({"extend_existing": True},)

    id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    order_id: str = Field(foreign_key="orders.id", index=True, max_length=64)
    carrier: Optional[str] = Field(default=None, max_length=100)
    tracking_number: Optional[str] = Field(default=None, max_length=100)
    status: str = Field(default=ShipmentStatus.PENDING.value, max_length=16)
    shipped_at: Optional[datetime] = Field(default=None, sa_type=DateTime)
    delivered_at: Optional[datetime] = Field(default=None, sa_type=DateTime)
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime)
