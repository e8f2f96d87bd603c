"""
Admin console I/O models.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import EmailStr, Field

from yoyo_mall.core.database.entities.users import UserRole

from .common import ApiModel, Money, PaginationInfo
from .users import UserRead


class CreateAdminRequest(ApiModel):
    email: EmailStr
    name: Optional[str] = Field(default=None, min_length=2, max_length=50)
    password: Optional[str] = Field(default=None, min_length=8, max_length=50)


class AdminUserUpdate(ApiModel):
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None


class UserResponse(ApiModel):
    success: bool = True
    data: UserRead
    message: Optional[str] = None


class UserListResponse(ApiModel):
    success: bool = True
    data: List[UserRead]
    pagination: PaginationInfo


class SeedResult(ApiModel):
    brands: int = 0
    categories: int = 0
    products: int = 0
    coupons: int = 0
    users: int = 0


class SeedResponse(ApiModel):
    success: bool = True
    message: str
    data: SeedResult


class RecentOrder(ApiModel):
    id: str
    order_number: str
    status: str
    total_amount: Money


class DashboardStats(ApiModel):
    total_users: int
    total_products: int
    total_orders: int
    revenue: Money
    orders_by_status: Dict[str, int]
    low_stock_products: int
    recent_orders: List[RecentOrder]


class DashboardResponse(ApiModel):
    success: bool = True
    data: DashboardStats
