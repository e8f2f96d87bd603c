"""
Repositories for YoYo Mall.

Each repository wraps an ``AsyncSession`` and exposes the queries one
business area needs.
"""

from .base import AsyncBaseRepository, QueryBuilder, SqlRepository
from .catalog import BrandRepository, CategoryRepository, InventoryRepository, ProductRepository
from .orders import CartRepository, CouponRepository, OrderRepository, PaymentRepository
from .users import AddressRepository, LoginRecordRepository, UserProfileRepository, UserRepository

__all__ = [
    "AddressRepository",
    "AsyncBaseRepository",
    "BrandRepository",
    "CartRepository",
    "CategoryRepository",
    "CouponRepository",
    "InventoryRepository",
    "LoginRecordRepository",
    "OrderRepository",
    "PaymentRepository",
    "ProductRepository",
    "QueryBuilder",
    "SqlRepository",
    "UserProfileRepository",
    "UserRepository",
]
