"""
Catalog repositories.

Data access for categories, brands, products and the rows attached to a
product (images, variants, inventory, reviews). Product aggregates are
assembled in bulk: helpers take a list of product ids and return dicts keyed
by product id so list endpoints avoid per-row queries.
"""

from __future__ import annotations

from collections import defaultdict
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy import String, cast, delete, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.catalog import (
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
from ..entities.orders import CartItem, OrderItem
from ..entities.users import User
from .base import QueryBuilder, SqlRepository

PRODUCT_SORT_COLUMNS = {
    "name": Product.name,
    "price": Product.price,
    "createdAt": Product.created_at,
}

CATEGORY_SORT_COLUMNS = {
    "name": Category.name,
    "sortOrder": Category.sort_order,
    "createdAt": Category.created_at,
}


class CategoryRepository(SqlRepository[Category]):
    """Repository for the category tree."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Category)

    async def get_by_slug(self, slug: str) -> Optional[Category]:
        result = await self.session.execute(select(Category).where(Category.slug == slug))
        return result.scalars().first()

    async def get_by_id_or_slug(self, value: str) -> Optional[Category]:
        result = await self.session.execute(select(Category).where(or_(Category.id == value, Category.slug == value)))
        return result.scalars().first()

    async def list_filtered(
        self,
        parent_id: Optional[str] = None,
        roots_only: bool = False,
        is_active: Optional[bool] = None,
        sort_by: str = "sortOrder",
        sort_order: str = "asc",
    ) -> List[Category]:
        stmt = select(Category)
        if roots_only:
            stmt = stmt.where(Category.parent_id.is_(None))
        elif parent_id is not None:
            stmt = stmt.where(Category.parent_id == parent_id)
        stmt = QueryBuilder.apply_filters(stmt, Category, {"is_active": is_active})
        column = CATEGORY_SORT_COLUMNS.get(sort_by, Category.sort_order)
        stmt = QueryBuilder.apply_sorting(stmt, column, sort_order)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def has_children(self, category_id: str) -> bool:
        stmt = select(func.count()).select_from(Category).where(Category.parent_id == category_id)
        return int((await self.session.execute(stmt)).scalar_one()) > 0

    async def has_products(self, category_id: str) -> bool:
        stmt = select(func.count()).select_from(Product).where(Product.category_id == category_id)
        return int((await self.session.execute(stmt)).scalar_one()) > 0

    async def ancestor_ids(self, category_id: str) -> List[str]:
        """Walk parent links upwards from ``category_id`` (exclusive)."""
        ancestors: List[str] = []
        current = await self.get_by_id(category_id)
        while current is not None and current.parent_id and current.parent_id not in ancestors:
            ancestors.append(current.parent_id)
            current = await self.get_by_id(current.parent_id)
        return ancestors

    async def published_product_counts(self, category_ids: Sequence[str]) -> Dict[str, int]:
        if not category_ids:
            return {}
        stmt = (
            select(Product.category_id, func.count())
            .where(Product.category_id.in_(set(category_ids)), Product.status == ProductStatus.PUBLISHED.value)
            .group_by(Product.category_id)
        )
        result = await self.session.execute(stmt)
        return {category_id: int(count) for category_id, count in result.all()}

    async def published_products(self, category_id: str, limit: int = 10) -> List[Product]:
        stmt = (
            select(Product)
            .where(Product.category_id == category_id, Product.status == ProductStatus.PUBLISHED.value)
            .order_by(Product.created_at.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())


class BrandRepository(SqlRepository[Brand]):
    """Repository for brands."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Brand)

    async def get_by_slug(self, slug: str) -> Optional[Brand]:
        result = await self.session.execute(select(Brand).where(Brand.slug == slug))
        return result.scalars().first()

    async def get_by_id_or_slug(self, value: str) -> Optional[Brand]:
        result = await self.session.execute(select(Brand).where(or_(Brand.id == value, Brand.slug == value)))
        return result.scalars().first()


class ProductRepository(SqlRepository[Product]):
    """Repository for products and their attached rows."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Product)

    async def get_by_sku(self, sku: str) -> Optional[Product]:
        result = await self.session.execute(select(Product).where(Product.sku == sku))
        return result.scalars().first()

    async def get_by_id_or_slug(self, value: str) -> Optional[Product]:
        result = await self.session.execute(select(Product).where(or_(Product.id == value, Product.slug == value)))
        return result.scalars().first()

    async def slug_exists(self, slug: str, exclude_id: Optional[str] = None) -> bool:
        stmt = select(func.count()).select_from(Product).where(Product.slug == slug)
        if exclude_id is not None:
            stmt = stmt.where(Product.id != exclude_id)
        return int((await self.session.execute(stmt)).scalar_one()) > 0

    async def search(
        self,
        page: int,
        limit: int,
        search: Optional[str] = None,
        category_id: Optional[str] = None,
        brand_id: Optional[str] = None,
        status: Optional[str] = None,
        min_price: Optional[Decimal] = None,
        max_price: Optional[Decimal] = None,
        sort_by: str = "createdAt",
        sort_order: str = "desc",
    ) -> Tuple[List[Product], int]:
        """Filter, sort and paginate products.

        ``search`` matches name, description or SKU case-insensitively, or a
        tag exactly.
        """
        stmt = select(Product)
        if search:
            pattern = f"%{search}%"
            stmt = stmt.where(
                or_(
                    Product.name.ilike(pattern),
                    Product.description.ilike(pattern),
                    Product.sku.ilike(pattern),
                    cast(Product.tags, String).ilike(f'%"{search}"%'),
                )
            )
        stmt = QueryBuilder.apply_filters(
            stmt, Product, {"category_id": category_id, "brand_id": brand_id, "status": status}
        )
        if min_price is not None:
            stmt = stmt.where(Product.price >= min_price)
        if max_price is not None:
            stmt = stmt.where(Product.price <= max_price)
        column = PRODUCT_SORT_COLUMNS.get(sort_by, Product.created_at)
        stmt = QueryBuilder.apply_sorting(stmt, column, sort_order)
        return await self.paginate(stmt, page, limit)

    async def images_for(self, product_ids: Sequence[str], per_product: Optional[int] = None) -> Dict[str, List[ProductImage]]:
        images: Dict[str, List[ProductImage]] = defaultdict(list)
        if not product_ids:
            return images
        stmt = (
            select(ProductImage)
            .where(ProductImage.product_id.in_(set(product_ids)))
            .order_by(ProductImage.sort_order.asc(), ProductImage.created_at.asc())
        )
        for image in (await self.session.execute(stmt)).scalars().all():
            bucket = images[image.product_id]
            if per_product is None or len(bucket) < per_product:
                bucket.append(image)
        return images

    async def variants_for(self, product_id: str, active_only: bool = True) -> List[ProductVariant]:
        stmt = select(ProductVariant).where(ProductVariant.product_id == product_id)
        if active_only:
            stmt = stmt.where(ProductVariant.is_active.is_(True))
        result = await self.session.execute(stmt.order_by(ProductVariant.created_at.asc()))
        return list(result.scalars().all())

    async def get_variant(self, variant_id: str) -> Optional[ProductVariant]:
        return await self.session.get(ProductVariant, variant_id)

    async def inventory_for(self, product_ids: Sequence[str]) -> Dict[str, Inventory]:
        if not product_ids:
            return {}
        stmt = select(Inventory).where(Inventory.product_id.in_(set(product_ids)))
        return {row.product_id: row for row in (await self.session.execute(stmt)).scalars().all()}

    async def rating_stats(self, product_ids: Sequence[str]) -> Dict[str, Tuple[float, int]]:
        """Return ``{product_id: (average_rating, review_count)}``."""
        if not product_ids:
            return {}
        stmt = (
            select(Review.product_id, func.avg(Review.rating), func.count(Review.id))
            .where(Review.product_id.in_(set(product_ids)))
            .group_by(Review.product_id)
        )
        result = await self.session.execute(stmt)
        return {pid: (round(float(avg or 0), 1), int(count)) for pid, avg, count in result.all()}

    async def recent_reviews(self, product_id: str, limit: int = 10) -> List[Tuple[Review, Optional[User]]]:
        stmt = (
            select(Review, User)
            .join(User, User.id == Review.user_id, isouter=True)
            .where(Review.product_id == product_id)
            .order_by(Review.created_at.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return [(review, user) for review, user in result.all()]

    async def has_order_items(self, product_id: str) -> bool:
        stmt = select(func.count()).select_from(OrderItem).where(OrderItem.product_id == product_id)
        return int((await self.session.execute(stmt)).scalar_one()) > 0

    async def replace_images(self, product_id: str, images: List[ProductImage]) -> None:
        await self.session.execute(delete(ProductImage).where(ProductImage.product_id == product_id))
        for image in images:
            self.session.add(image)

    async def delete_cascade(self, product: Product) -> None:
        """Delete a product and every row attached to it, then commit."""
        for model in (Inventory, ProductImage, ProductVariant, Review, WishlistItem, CartItem):
            await self.session.execute(delete(model).where(model.product_id == product.id))
        await self.session.delete(product)
        await self.session.commit()


class InventoryRepository(SqlRepository[Inventory]):
    """Repository for stock counters."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Inventory)

    async def get_by_product(self, product_id: str) -> Optional[Inventory]:
        result = await self.session.execute(select(Inventory).where(Inventory.product_id == product_id))
        return result.scalars().first()

    async def low_stock_count(self) -> int:
        stmt = (
            select(func.count())
            .select_from(Inventory)
            .where(Inventory.quantity - Inventory.reserved_quantity <= Inventory.low_stock_threshold)
        )
        return int((await self.session.execute(stmt)).scalar_one())
