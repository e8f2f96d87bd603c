"""
Catalog business rules.

Slug generation, stock availability rules and assembly of product views
from the rows spread over several tables.
"""

from __future__ import annotations

import re
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from yoyo_mall.core.database.entities.catalog import (
    DEFAULT_LOW_STOCK_THRESHOLD,
    Brand,
    Category,
    Inventory,
    Product,
)
from yoyo_mall.core.database.repositories.catalog import (
    BrandRepository,
    CategoryRepository,
    ProductRepository,
)
from yoyo_mall.core.exceptions import InsufficientStockError
from yoyo_mall.core.models.io.catalog import (
    BrandRef,
    CategoryRef,
    ImageRead,
    InventoryRead,
    ProductDetail,
    ProductSummary,
    ReviewerRead,
    ReviewRead,
    VariantRead,
)

_NON_SLUG_CHARS = re.compile(r"[^\w\s-]", re.ASCII)
_WHITESPACE = re.compile(r"\s+")

LIST_IMAGE_LIMIT = 3
DETAIL_REVIEW_LIMIT = 10


def slugify(text: str, fallback: str = "item") -> str:
    """Lowercase, drop anything but word characters, spaces and hyphens, and
    turn whitespace runs into ``-``."""
    slug = _WHITESPACE.sub("-", _NON_SLUG_CHARS.sub("", text.strip().lower()))
    slug = slug.strip("-")
    return slug or fallback


async def unique_product_slug(repo: ProductRepository, name: str, fallback: str, exclude_id: Optional[str] = None) -> str:
    """Slug for ``name``; ``-2``, ``-3``... is appended until it is free."""
    base = slugify(name, fallback=slugify(fallback, fallback="product"))
    candidate = base
    suffix = 2
    while await repo.slug_exists(candidate, exclude_id=exclude_id):
        candidate = f"{base}-{suffix}"
        suffix += 1
    return candidate


def available_quantity(inventory: Optional[Inventory]) -> int:
    return inventory.available_quantity if inventory is not None else 0


def is_in_stock(product: Product, inventory: Optional[Inventory]) -> bool:
    if not product.track_inventory or product.allow_out_of_stock:
        return True
    return available_quantity(inventory) > 0


def is_low_stock(inventory: Optional[Inventory]) -> bool:
    if inventory is None:
        return False
    threshold = inventory.low_stock_threshold if inventory.low_stock_threshold is not None else DEFAULT_LOW_STOCK_THRESHOLD
    return inventory.available_quantity <= threshold


def ensure_stock(
    product: Product,
    inventory: Optional[Inventory],
    requested: int,
    current_quantity: Optional[int] = None,
) -> None:
    """Raise when ``requested`` units cannot be sold.

    Only products that track inventory and do not allow overselling are
    checked.

    Raises:
        InsufficientStockError: ``INSUFFICIENT_STOCK`` with ``availableQuantity``
            (and ``currentQuantity`` when merging into an existing cart line)
    """
    if not product.track_inventory or product.allow_out_of_stock:
        return
    available = available_quantity(inventory)
    if available < requested:
        extra = {"productId": product.id}
        if current_quantity is not None:
            extra["currentQuantity"] = current_quantity
        raise InsufficientStockError(
            f"Insufficient stock for {product.name}",
            available_quantity=available,
            **extra,
        )


class ProductViewBuilder:
    """Turn product rows into API views with bulk lookups."""

    def __init__(self, session: AsyncSession) -> None:
        self.products = ProductRepository(session)
        self.categories = CategoryRepository(session)
        self.brands = BrandRepository(session)

    async def _refs(self, products: Sequence[Product]) -> Tuple[Dict[str, Category], Dict[str, Brand]]:
        categories = await self.categories.get_many([p.category_id for p in products if p.category_id])
        brands = await self.brands.get_many([p.brand_id for p in products if p.brand_id])
        return categories, brands

    async def summaries(self, products: Sequence[Product]) -> List[ProductSummary]:
        ids = [p.id for p in products]
        categories, brands = await self._refs(products)
        images = await self.products.images_for(ids, per_product=LIST_IMAGE_LIMIT)
        inventory = await self.products.inventory_for(ids)
        ratings = await self.products.rating_stats(ids)

        views = []
        for product in products:
            stock = inventory.get(product.id)
            average, count = ratings.get(product.id, (0.0, 0))
            views.append(
                ProductSummary.model_validate(
                    {
                        **product.model_dump(),
                        "category": CategoryRef.model_validate(categories[product.category_id])
                        if product.category_id in categories
                        else None,
                        "brand": BrandRef.model_validate(brands[product.brand_id])
                        if product.brand_id in brands
                        else None,
                        "images": [ImageRead.model_validate(i) for i in images.get(product.id, [])],
                        "average_rating": average,
                        "review_count": count,
                        "available_quantity": available_quantity(stock),
                        "in_stock": is_in_stock(product, stock),
                    }
                )
            )
        return views

    async def detail(self, product: Product) -> ProductDetail:
        categories, brands = await self._refs([product])
        images = await self.products.images_for([product.id])
        inventory = (await self.products.inventory_for([product.id])).get(product.id)
        average, count = (await self.products.rating_stats([product.id])).get(product.id, (0.0, 0))
        variants = await self.products.variants_for(product.id)
        reviews = await self.products.recent_reviews(product.id, limit=DETAIL_REVIEW_LIMIT)

        return ProductDetail.model_validate(
            {
                **product.model_dump(),
                "category": CategoryRef.model_validate(categories[product.category_id])
                if product.category_id in categories
                else None,
                "brand": BrandRef.model_validate(brands[product.brand_id]) if product.brand_id in brands else None,
                "images": [ImageRead.model_validate(i) for i in images.get(product.id, [])],
                "variants": [VariantRead.model_validate(v) for v in variants],
                "reviews": [
                    ReviewRead.model_validate(
                        {
                            **review.model_dump(),
                            "user": ReviewerRead.model_validate(user) if user is not None else None,
                        }
                    )
                    for review, user in reviews
                ],
                "inventory": InventoryRead(
                    quantity=inventory.quantity,
                    reserved_quantity=inventory.reserved_quantity,
                    available_quantity=inventory.available_quantity,
                    low_stock_threshold=inventory.low_stock_threshold,
                )
                if inventory is not None
                else None,
                "average_rating": average,
                "review_count": count,
                "available_quantity": available_quantity(inventory),
                "in_stock": is_in_stock(product, inventory),
                "is_low_stock": is_low_stock(inventory),
            }
        )
