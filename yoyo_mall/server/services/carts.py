"""
Shopping cart operations.
"""

from __future__ import annotations

from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from yoyo_mall.core.database.base import utc_now
from yoyo_mall.core.database.entities.catalog import Product, ProductStatus, ProductVariant
from yoyo_mall.core.database.entities.orders import CartItem
from yoyo_mall.core.database.entities.users import User
from yoyo_mall.core.database.repositories.catalog import ProductRepository
from yoyo_mall.core.database.repositories.orders import CartRepository
from yoyo_mall.core.exceptions import NotFoundError, ValidationFailedError
from yoyo_mall.core.logging_config import get_logger
from yoyo_mall.core.models.io.catalog import ImageRead
from yoyo_mall.core.models.io.orders import CartData, CartLine, CartProduct, CartSummary, CartVariant

from .catalog import available_quantity, ensure_stock, is_in_stock
from .pricing import to_money

logger = get_logger(__name__)


def unit_price(product: Product, variant: Optional[ProductVariant]) -> Decimal:
    """Variant price when set, else the product price."""
    if variant is not None and variant.price is not None:
        return Decimal(variant.price)
    return Decimal(product.price)


class CartService:
    """Cart operations for one request."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.carts = CartRepository(session)
        self.products = ProductRepository(session)

    async def _load_sellable(self, product_id: str, variant_id: Optional[str]) -> Tuple[Product, Optional[ProductVariant]]:
        product = await self.products.get_by_id(product_id)
        if product is None:
            raise NotFoundError("Product not found", code="PRODUCT_NOT_FOUND")
        if product.status != ProductStatus.PUBLISHED.value:
            raise ValidationFailedError("Product is not available", code="PRODUCT_NOT_AVAILABLE")
        variant = None
        if variant_id:
            variant = await self.products.get_variant(variant_id)
            if variant is None or not variant.is_active or variant.product_id != product.id:
                raise NotFoundError("Product variant not found", code="VARIANT_NOT_FOUND")
        return product, variant

    async def _line_views(self, items: List[CartItem]) -> List[CartLine]:
        product_ids = [item.product_id for item in items]
        products = await self.products.get_many(product_ids)
        images = await self.products.images_for(product_ids, per_product=1)
        inventory = await self.products.inventory_for(product_ids)

        lines = []
        for item in items:
            product = products.get(item.product_id)
            if product is None:
                continue
            variant = await self.products.get_variant(item.variant_id) if item.variant_id else None
            price = unit_price(product, variant)
            stock = inventory.get(product.id)
            first_image = images.get(product.id, [])
            lines.append(
                CartLine(
                    id=item.id,
                    product_id=item.product_id,
                    variant_id=item.variant_id,
                    quantity=item.quantity,
                    price=to_money(price),
                    line_total=to_money(price * item.quantity),
                    product=CartProduct(
                        id=product.id,
                        name=product.name,
                        slug=product.slug,
                        sku=product.sku,
                        price=product.price,
                        status=product.status,
                        image=ImageRead.model_validate(first_image[0]) if first_image else None,
                    ),
                    variant=CartVariant.model_validate(variant) if variant is not None else None,
                    available_quantity=available_quantity(stock),
                    in_stock=is_in_stock(product, stock),
                    created_at=item.created_at,
                )
            )
        return lines

    async def get_cart(self, user: User) -> CartData:
        lines = await self._line_views(await self.carts.list_for_user(user.id))
        subtotal = sum((line.line_total for line in lines), Decimal("0"))
        return CartData(
            items=lines,
            summary=CartSummary(
                total_items=sum(line.quantity for line in lines),
                subtotal=to_money(subtotal),
                item_count=len(lines),
            ),
        )

    async def add_item(self, user: User, product_id: str, variant_id: Optional[str], quantity: int) -> Tuple[CartLine, bool]:
        """Add units to the cart, merging into an existing line.

        Returns:
            ``(line, created)``; ``created`` is False when an existing line grew
        """
        product, variant = await self._load_sellable(product_id, variant_id)
        inventory = (await self.products.inventory_for([product.id])).get(product.id)
        existing = await self.carts.find_line(user.id, product.id, variant.id if variant else None)

        if existing is not None:
            new_quantity = existing.quantity + quantity
            ensure_stock(product, inventory, new_quantity, current_quantity=existing.quantity)
            existing.quantity = new_quantity
            existing.updated_at = utc_now()
            item = await self.carts.update(existing)
            created = False
        else:
            ensure_stock(product, inventory, quantity)
            item = await self.carts.create(
                CartItem(
                    user_id=user.id,
                    product_id=product.id,
                    variant_id=variant.id if variant else None,
                    quantity=quantity,
                )
            )
            created = True
        logger.debug(f"Cart add user={user.id} product={product.id} qty={quantity} created={created}")
        return (await self._line_views([item]))[0], created

    async def update_item(self, user: User, item_id: str, quantity: int) -> Optional[CartLine]:
        """Set a line's quantity; 0 removes it and returns ``None``."""
        item = await self.carts.get_for_user(item_id, user.id)
        if item is None:
            raise NotFoundError("Cart item not found", code="CART_ITEM_NOT_FOUND")
        if quantity == 0:
            await self.carts.delete(item.id)
            return None
        product = await self.products.get_by_id(item.product_id)
        if product is None:
            raise NotFoundError("Product not found", code="PRODUCT_NOT_FOUND")
        inventory = (await self.products.inventory_for([product.id])).get(product.id)
        ensure_stock(product, inventory, quantity)
        item.quantity = quantity
        item = await self.carts.update(item)
        return (await self._line_views([item]))[0]

    async def remove_item(self, user: User, item_id: str) -> None:
        item = await self.carts.get_for_user(item_id, user.id)
        if item is None:
            raise NotFoundError("Cart item not found", code="CART_ITEM_NOT_FOUND")
        await self.carts.delete(item.id)

    async def clear(self, user: User) -> None:
        await self.carts.clear(user.id)
