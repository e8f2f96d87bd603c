"""
Shopping Cart Endpoints.

The cart belongs to the signed-in user. Lines are unique per product and
variant; adding the same item again grows the existing line.
"""

from fastapi import APIRouter, Response, status

from yoyo_mall.core.models.io.common import DataResponse, MessageResponse
from yoyo_mall.core.models.io.orders import CartAddRequest, CartLineResponse, CartResponse, CartUpdateRequest
from yoyo_mall.server.services.carts import CartService
from yoyo_mall.server.services.deps import CurrentUser, SessionDep

router = APIRouter()


@router.get(
    "",
    response_model=CartResponse,
    summary="Get Cart",
    description="Cart lines with live prices and stock, plus totals.",
)
async def get_cart(user: CurrentUser, session: SessionDep) -> CartResponse:
    return CartResponse(data=await CartService(session).get_cart(user))


@router.post(
    "",
    response_model=CartLineResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add to Cart",
    description="Add a product (optionally a variant) to the cart. Returns 200 when an existing line grew.",
    responses={
        200: {"description": "Existing line updated"},
        400: {"description": "Product unavailable or insufficient stock"},
        404: {"description": "Product or variant not found"},
    },
)
async def add_to_cart(
    payload: CartAddRequest, user: CurrentUser, session: SessionDep, response: Response
) -> CartLineResponse:
    line, created = await CartService(session).add_item(user, payload.product_id, payload.variant_id, payload.quantity)
    if not created:
        response.status_code = status.HTTP_200_OK
    return CartLineResponse(message="Added to cart" if created else "Cart updated", data=line)


@router.put(
    "/{item_id}",
    response_model=DataResponse,
    summary="Update Cart Line",
    description="Set the quantity of a line; 0 removes it.",
    responses={404: {"description": "Cart item not found"}, 400: {"description": "Insufficient stock"}},
)
async def update_cart_item(
    item_id: str, payload: CartUpdateRequest, user: CurrentUser, session: SessionDep
) -> DataResponse:
    line = await CartService(session).update_item(user, item_id, payload.quantity)
    if line is None:
        return DataResponse(message="Item removed from cart")
    return DataResponse(data=line.model_dump(by_alias=True, mode="json"), message="Cart updated")


@router.delete(
    "/{item_id}",
    response_model=MessageResponse,
    summary="Remove Cart Line",
    responses={404: {"description": "Cart item not found"}},
)
async def remove_cart_item(item_id: str, user: CurrentUser, session: SessionDep) -> MessageResponse:
    await CartService(session).remove_item(user, item_id)
    return MessageResponse(message="Item removed from cart")


@router.delete(
    "",
    response_model=MessageResponse,
    summary="Clear Cart",
)
async def clear_cart(user: CurrentUser, session: SessionDep) -> MessageResponse:
    await CartService(session).clear(user)
    return MessageResponse(message="Cart cleared")
