"""
Order Endpoints.

Checkout and order history for customers; status changes for admins.
"""

from typing import Optional

from fastapi import APIRouter, Query, status

from yoyo_mall.core.database.entities.orders import OrderStatus
from yoyo_mall.core.database.repositories.orders import OrderRepository
from yoyo_mall.core.models.io.catalog import SortOrder
from yoyo_mall.core.models.io.common import PaginationInfo
from yoyo_mall.core.models.io.orders import (
    OrderCreate,
    OrderCreated,
    OrderCreatedResponse,
    OrderListResponse,
    OrderResponse,
    OrderUpdate,
)
from yoyo_mall.server.services.deps import AdminUser, CurrentUser, SessionDep
from yoyo_mall.server.services.orders import OrderService

router = APIRouter()


@router.get(
    "",
    response_model=OrderListResponse,
    summary="List My Orders",
    description="The signed-in user's orders with items, addresses, payments and shipments.",
)
async def list_orders(
    user: CurrentUser,
    session: SessionDep,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    status_filter: Optional[OrderStatus] = Query(None, alias="status"),
    sort_by: str = Query("createdAt", alias="sortBy", pattern="^(createdAt|totalAmount|status)$"),
    sort_order: SortOrder = Query("desc", alias="sortOrder"),
) -> OrderListResponse:
    rows, total = await OrderRepository(session).search(
        page=page,
        limit=limit,
        user_id=user.id,
        status=status_filter.value if status_filter else None,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return OrderListResponse(
        data=await OrderService(session).build_views(rows),
        pagination=PaginationInfo.build(page, limit, total),
    )


@router.post(
    "",
    response_model=OrderCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Place Order",
    description="Validate prices, stock and coupon, then create a PENDING order and reserve its stock.",
    responses={
        400: {"description": "Unavailable product, price mismatch, insufficient stock or invalid coupon"},
        404: {"description": "Address not found"},
    },
)
async def create_order(payload: OrderCreate, user: CurrentUser, session: SessionDep) -> OrderCreatedResponse:
    """
    Place an order.

    Submitted unit prices must match the current price within one cent. The
    order, its items, the stock reservations, the coupon usage and clearing
    the cart are committed together.
    """
    order = await OrderService(session).create_order(user, payload)
    return OrderCreatedResponse(message="Order created", data=OrderCreated.model_validate(order))


@router.get(
    "/{order_id}",
    response_model=OrderResponse,
    summary="Get Order",
    responses={404: {"description": "Order not found"}},
)
async def get_order(order_id: str, user: CurrentUser, session: SessionDep) -> OrderResponse:
    service = OrderService(session)
    order = await service.get_visible(order_id, user)
    return OrderResponse(data=(await service.build_views([order]))[0])


@router.put(
    "/{order_id}",
    response_model=OrderResponse,
    summary="Update Order",
    description="Change an order's status or notes (admin only).",
    responses={400: {"description": "Invalid status"}, 404: {"description": "Order not found"}},
)
async def update_order(order_id: str, payload: OrderUpdate, session: SessionDep, admin: AdminUser) -> OrderResponse:
    service = OrderService(session)
    order = await service.admin_update(order_id, payload)
    return OrderResponse(data=(await service.build_views([order]))[0], message="Order updated")
