"""
Checkout pricing rules.

Pure functions over ``Decimal`` so the rules can be tested without a
database: tax, shipping, coupon eligibility and discount, order totals and
order number generation.
"""

from __future__ import annotations

import random
import string
import time
from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from yoyo_mall.core.database.base import utc_now
from yoyo_mall.core.database.entities.orders import Coupon, CouponType
from yoyo_mall.core.exceptions import ValidationFailedError

CENT = Decimal("0.01")
TAX_RATE = Decimal("0.08")
FREE_SHIPPING_THRESHOLD = Decimal("99")
FLAT_SHIPPING = Decimal("9.99")
PRICE_TOLERANCE = Decimal("0.01")

_ORDER_SUFFIX_ALPHABET = string.ascii_uppercase + string.digits


def to_money(value) -> Decimal:
    """Round half-up to cents."""
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def calculate_tax(subtotal: Decimal) -> Decimal:
    return to_money(subtotal * TAX_RATE)


def calculate_shipping(subtotal: Decimal) -> Decimal:
    return Decimal("0.00") if subtotal >= FREE_SHIPPING_THRESHOLD else FLAT_SHIPPING


def prices_match(expected: Decimal, submitted: Decimal) -> bool:
    return abs(Decimal(expected) - Decimal(submitted)) <= PRICE_TOLERANCE


def validate_coupon(coupon: Optional[Coupon], subtotal: Decimal, now: Optional[datetime] = None) -> Coupon:
    """Check that ``coupon`` can be applied to an order of ``subtotal``.

    Raises:
        ValidationFailedError: ``INVALID_COUPON`` when the coupon is unknown,
            inactive, outside its validity window, used up or the order is
            below its minimum amount
    """
    now = now or utc_now()
    if coupon is None or not coupon.is_active:
        raise ValidationFailedError("Invalid or expired coupon", code="INVALID_COUPON")
    if coupon.valid_from > now or coupon.valid_to < now:
        raise ValidationFailedError("Invalid or expired coupon", code="INVALID_COUPON")
    if coupon.usage_limit is not None and coupon.usage_count >= coupon.usage_limit:
        raise ValidationFailedError("Coupon usage limit reached", code="INVALID_COUPON")
    if coupon.min_amount is not None and subtotal < Decimal(coupon.min_amount):
        raise ValidationFailedError(
            "Order does not reach the coupon minimum amount",
            code="INVALID_COUPON",
            details={"minAmount": float(coupon.min_amount)},
        )
    return coupon


def coupon_discount(coupon: Coupon, subtotal: Decimal, shipping: Decimal) -> Decimal:
    value = Decimal(coupon.value)
    if coupon.type == CouponType.PERCENTAGE.value:
        discount = subtotal * value / Decimal(100)
        if coupon.max_discount is not None:
            discount = min(discount, Decimal(coupon.max_discount))
    elif coupon.type == CouponType.FIXED_AMOUNT.value:
        discount = min(value, subtotal)
    elif coupon.type == CouponType.FREE_SHIPPING.value:
        discount = shipping
    else:
        discount = Decimal(0)
    return to_money(discount)


@dataclass(frozen=True)
class OrderTotals:
    subtotal: Decimal
    tax_amount: Decimal
    shipping_amount: Decimal
    discount_amount: Decimal
    total_amount: Decimal


def calculate_totals(subtotal: Decimal, coupon: Optional[Coupon] = None) -> OrderTotals:
    """Compute every amount stored on an order.

    Args:
        subtotal: Sum of line totals
        coupon: An already validated coupon, if any

    Returns:
        The order totals; the total never drops below zero
    """
    subtotal = to_money(subtotal)
    tax = calculate_tax(subtotal)
    shipping = calculate_shipping(subtotal)
    discount = coupon_discount(coupon, subtotal, shipping) if coupon else Decimal("0.00")
    total = max(subtotal + tax + shipping - discount, Decimal("0.00"))
    return OrderTotals(
        subtotal=subtotal,
        tax_amount=tax,
        shipping_amount=shipping,
        discount_amount=discount,
        total_amount=to_money(total),
    )


def generate_order_number(now_ms: Optional[int] = None, rng: Optional[random.Random] = None) -> str:
    """``ORD-{last 8 digits of epoch ms}-{4 random [A-Z0-9]}``."""
    stamp = str(now_ms if now_ms is not None else int(time.time() * 1000))[-8:]
    chooser = rng or random
    suffix = "".join(chooser.choice(_ORDER_SUFFIX_ALPHABET) for _ in range(4))
    return f"ORD-{stamp}-{suffix}"
