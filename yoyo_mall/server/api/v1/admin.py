"""
Admin Console Endpoints.

Admin bootstrap, sample data seeding, user management, the dashboard and
the store-wide order list.
"""

from typing import Optional

from fastapi import APIRouter, Header, Query

from yoyo_mall.core.database.entities.orders import OrderStatus
from yoyo_mall.core.database.entities.users import UserRole
from yoyo_mall.core.database.repositories.orders import OrderRepository
from yoyo_mall.core.database.repositories.users import UserRepository
from yoyo_mall.core.exceptions import PermissionDeniedError
from yoyo_mall.core.logging_config import get_logger
from yoyo_mall.core.models.io.admin import (
    AdminUserUpdate,
    CreateAdminRequest,
    DashboardResponse,
    SeedResponse,
    UserListResponse,
    UserResponse,
)
from yoyo_mall.core.models.io.catalog import SortOrder
from yoyo_mall.core.models.io.common import PaginationInfo
from yoyo_mall.core.models.io.orders import OrderListResponse
from yoyo_mall.core.models.io.users import UserRead
from yoyo_mall.server.core.config import settings
from yoyo_mall.server.services.admin import AdminService
from yoyo_mall.server.services.deps import AdminUser, SessionDep
from yoyo_mall.server.services.orders import OrderService
from yoyo_mall.server.services.seed import seed_catalog

logger = get_logger(__name__)

router = APIRouter()


@router.post(
    "/create-admin",
    response_model=UserResponse,
    summary="Create Admin",
    description=(
        "Promote or create an ADMIN account. Allowed in development, or anywhere with an "
        "`x-seed-secret` header matching `SEED_ADMIN_SECRET`."
    ),
    responses={403: {"description": "Bootstrap not allowed"}},
)
async def create_admin(
    payload: CreateAdminRequest,
    session: SessionDep,
    seed_secret: Optional[str] = Header(None, alias="x-seed-secret"),
) -> UserResponse:
    secret_ok = bool(settings.seed_admin_secret) and seed_secret == settings.seed_admin_secret
    if not (settings.is_development or secret_ok):
        logger.warning(f"Rejected admin bootstrap for {payload.email}")
        raise PermissionDeniedError("Admin bootstrap is not allowed", code="FORBIDDEN")
    user = await AdminService(session).create_admin(payload)
    return UserResponse(data=UserRead.model_validate(user), message="Admin account ready")


@router.post(
    "/seed",
    response_model=SeedResponse,
    summary="Seed Sample Data",
    description="Idempotently create sample brands, categories, products and coupons.",
)
async def seed(session: SessionDep, admin: AdminUser) -> SeedResponse:
    result = await seed_catalog(session)
    logger.info(f"Admin {admin.id} ran the catalog seed")
    return SeedResponse(message="Seed completed", data=result)


@router.get(
    "/users",
    response_model=UserListResponse,
    summary="List Users",
)
async def list_users(
    session: SessionDep,
    admin: AdminUser,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None, description="Matches name or email"),
    role: Optional[UserRole] = Query(None),
) -> UserListResponse:
    rows, total = await UserRepository(session).search(
        page=page, limit=limit, search=search.strip() if search else None, role=role.value if role else None
    )
    return UserListResponse(
        data=[UserRead.model_validate(user) for user in rows],
        pagination=PaginationInfo.build(page, limit, total),
    )


@router.put(
    "/users/{user_id}",
    response_model=UserResponse,
    summary="Update User",
    description="Change a user's role or active flag.",
    responses={
        400: {"description": "Cannot modify own role or status"},
        403: {"description": "Only a super admin can grant super admin"},
        404: {"description": "User not found"},
    },
)
async def update_user(user_id: str, payload: AdminUserUpdate, session: SessionDep, admin: AdminUser) -> UserResponse:
    user = await AdminService(session).update_user(admin, user_id, payload)
    return UserResponse(data=UserRead.model_validate(user), message="User updated")


@router.get(
    "/dashboard",
    response_model=DashboardResponse,
    summary="Dashboard",
    description="Store totals, revenue, orders by status, low stock count and recent orders.",
)
async def dashboard(session: SessionDep, admin: AdminUser) -> DashboardResponse:
    return DashboardResponse(data=await AdminService(session).dashboard())


@router.get(
    "/orders",
    response_model=OrderListResponse,
    summary="List All Orders",
    description="Every customer's orders, filterable by status and searchable by order number or email.",
)
async def list_all_orders(
    session: SessionDep,
    admin: AdminUser,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status_filter: Optional[OrderStatus] = Query(None, alias="status"),
    search: Optional[str] = Query(None),
    sort_by: str = Query("createdAt", alias="sortBy", pattern="^(createdAt|totalAmount|status)$"),
    sort_order: SortOrder = Query("desc", alias="sortOrder"),
) -> OrderListResponse:
    rows, total = await OrderRepository(session).search(
        page=page,
        limit=limit,
        status=status_filter.value if status_filter else None,
        search=search.strip() if search else None,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return OrderListResponse(
        data=await OrderService(session).build_views(rows),
        pagination=PaginationInfo.build(page, limit, total),
    )
