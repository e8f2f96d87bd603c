"""
Database entities for YoYo Mall.

Importing this package registers every table on the shared SQLModel metadata.
"""

from .catalog import (
    DEFAULT_LOW_STOCK_THRESHOLD,
    Brand,
    Category,
    Inventory,
    Product,
    ProductImage,
    ProductStatus,
    ProductVariant,
    Review,
    WishlistItem,
)
from .orders import (
    CartItem,
    Coupon,
    CouponType,
    Order,
    OrderItem,
    OrderStatus,
    Payment,
    PaymentMethod,
    PaymentStatus,
    Shipment,
    ShipmentStatus,
)
from .users import Address, AuthProvider, LoginRecord, User, UserProfile, UserRole

__all__ = [
    "Address",
    "AuthProvider",
    "Brand",
    "CartItem",
    "Category",
    "Coupon",
    "CouponType",
    "DEFAULT_LOW_STOCK_THRESHOLD",
    "Inventory",
    "LoginRecord",
    "Order",
    "OrderItem",
    "OrderStatus",
    "Payment",
    "PaymentMethod",
    "PaymentStatus",
    "Product",
    "ProductImage",
    "ProductStatus",
    "ProductVariant",
    "Review",
    "Shipment",
    "ShipmentStatus",
    "User",
    "UserProfile",
    "UserRole",
    "WishlistItem",
]
