"""
Product administration.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from yoyo_mall.core.database.base import utc_now
from yoyo_mall.core.database.entities.catalog import Inventory, Product, ProductImage, ProductStatus
from yoyo_mall.core.database.repositories.catalog import (
    BrandRepository,
    CategoryRepository,
    InventoryRepository,
    ProductRepository,
)
from yoyo_mall.core.exceptions import ConflictError, NotFoundError, ValidationFailedError
from yoyo_mall.core.logging_config import get_logger
from yoyo_mall.core.models.io.catalog import ProductCreate, ProductUpdate

from .catalog import unique_product_slug

logger = get_logger(__name__)


def _images(product_id: str, images: List[Dict[str, Any]]) -> List[ProductImage]:
    return [
        ProductImage(product_id=product_id, url=image["url"], alt_text=image.get("alt_text"), sort_order=index)
        for index, image in enumerate(images)
    ]


class ProductService:
    """Create, update and delete products."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.products = ProductRepository(session)
        self.categories = CategoryRepository(session)
        self.brands = BrandRepository(session)
        self.inventory = InventoryRepository(session)

    async def _check_refs(self, category_id: Optional[str], brand_id: Optional[str]) -> None:
        if category_id and await self.categories.get_by_id(category_id) is None:
            raise ValidationFailedError("Category not found", code="CATEGORY_NOT_FOUND")
        if brand_id and await self.brands.get_by_id(brand_id) is None:
            raise ValidationFailedError("Brand not found", code="BRAND_NOT_FOUND")

    async def get_or_404(self, product_id: str) -> Product:
        product = await self.products.get_by_id(product_id)
        if product is None:
            raise NotFoundError("Product not found", code="PRODUCT_NOT_FOUND")
        return product

    async def create(self, payload: ProductCreate) -> Product:
        """Create a product with its images and, when tracked, an inventory row.

        Raises:
            ConflictError: ``SKU_EXISTS``
            ValidationFailedError: ``CATEGORY_NOT_FOUND`` / ``BRAND_NOT_FOUND``
        """
        if await self.products.get_by_sku(payload.sku) is not None:
            raise ConflictError("SKU already exists", code="SKU_EXISTS")
        await self._check_refs(payload.category_id, payload.brand_id)

        fields = payload.model_dump(exclude={"images", "initial_stock"})
        fields["status"] = payload.status.value
        fields["slug"] = await unique_product_slug(self.products, payload.name, fallback=payload.sku)
        product = await self.products.add(Product(**fields))

        for image in _images(product.id, [i.model_dump() for i in payload.images]):
            self.session.add(image)
        if product.track_inventory:
            self.session.add(Inventory(product_id=product.id, quantity=payload.initial_stock))

        await self.session.commit()
        await self.session.refresh(product)
        logger.info(f"Created product {product.id} sku={product.sku} slug={product.slug}")
        return product

    async def update(self, product_id: str, payload: ProductUpdate) -> Product:
        """Apply a partial update. A new name re-derives the slug."""
        product = await self.get_or_404(product_id)
        changes = payload.model_dump(exclude_unset=True)
        images: Optional[List[Dict[str, Any]]] = changes.pop("images", None)
        stock: Optional[int] = changes.pop("stock", None)

        sku = changes.get("sku")
        if sku and sku != product.sku:
            existing = await self.products.get_by_sku(sku)
            if existing is not None and existing.id != product.id:
                raise ConflictError("SKU already exists", code="SKU_EXISTS")
        await self._check_refs(changes.get("category_id"), changes.get("brand_id"))

        if isinstance(changes.get("status"), ProductStatus):
            changes["status"] = changes["status"].value
        if changes.get("name") and changes["name"] != product.name:
            changes["slug"] = await unique_product_slug(
                self.products, changes["name"], fallback=changes.get("sku") or product.sku, exclude_id=product.id
            )
        for key, value in changes.items():
            setattr(product, key, value)

        if images is not None:
            await self.products.replace_images(product.id, _images(product.id, images))
        if stock is not None:
            row = await self.inventory.get_by_product(product.id)
            if row is None:
                self.session.add(Inventory(product_id=product.id, quantity=stock))
            else:
                row.quantity = stock
                row.updated_at = utc_now()
                self.session.add(row)

        product = await self.products.update(product)
        logger.info(f"Updated product {product.id}: {sorted(changes)}")
        return product

    async def delete(self, product_id: str) -> None:
        """Delete a product never ordered, together with its attached rows.

        Raises:
            ValidationFailedError: ``PRODUCT_HAS_ORDERS``
        """
        product = await self.get_or_404(product_id)
        if await self.products.has_order_items(product.id):
            raise ValidationFailedError(
                "Product has orders and cannot be deleted; archive it instead",
                code="PRODUCT_HAS_ORDERS",
            )
        await self.products.delete_cascade(product)
        logger.info(f"Deleted product {product_id}")
