"""
Category tree queries and administration.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from yoyo_mall.core.database.entities.catalog import Category
from yoyo_mall.core.database.repositories.catalog import CategoryRepository, ProductRepository
from yoyo_mall.core.exceptions import ConflictError, NotFoundError, ValidationFailedError
from yoyo_mall.core.logging_config import get_logger
from yoyo_mall.core.models.io.catalog import CategoryCreate, CategoryProduct, CategoryRead, CategoryUpdate

from .catalog import slugify

logger = get_logger(__name__)

CATEGORY_PRODUCT_LIMIT = 10


class CategoryService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.categories = CategoryRepository(session)
        self.products = ProductRepository(session)

    async def _views(self, categories: Sequence[Category], include_products: bool) -> Dict[str, CategoryRead]:
        counts = await self.categories.published_product_counts([c.id for c in categories])
        views: Dict[str, CategoryRead] = {}
        for category in categories:
            products = None
            if include_products:
                rows = await self.categories.published_products(category.id, limit=CATEGORY_PRODUCT_LIMIT)
                images = await self.products.images_for([p.id for p in rows], per_product=1)
                products = [
                    CategoryProduct(
                        id=p.id,
                        name=p.name,
                        slug=p.slug,
                        price=p.price,
                        image=images[p.id][0].url if images.get(p.id) else None,
                    )
                    for p in rows
                ]
            views[category.id] = CategoryRead.model_validate(
                {**category.model_dump(), "product_count": counts.get(category.id, 0), "products": products}
            )
        return views

    async def listing(
        self,
        include_products: bool = False,
        parent_id: Optional[str] = None,
        is_active: Optional[bool] = None,
        sort_by: str = "sortOrder",
        sort_order: str = "asc",
    ) -> Tuple[List[CategoryRead], Dict[str, object]]:
        """Categories as a nested tree, or a flat list of one parent's children.

        Returns:
            ``(data, meta)``
        """
        if parent_id:
            rows = await self.categories.list_filtered(
                parent_id=parent_id, is_active=is_active, sort_by=sort_by, sort_order=sort_order
            )
            views = await self._views(rows, include_products)
            return [views[c.id] for c in rows], {"total": len(rows), "parentId": parent_id}

        rows = await self.categories.list_filtered(is_active=is_active, sort_by=sort_by, sort_order=sort_order)
        views = await self._views(rows, include_products)
        roots: List[CategoryRead] = []
        for category in rows:
            view = views[category.id]
            parent = views.get(category.parent_id) if category.parent_id else None
            if parent is not None:
                parent.children.append(view)
            elif category.parent_id is None:
                roots.append(view)
        return roots, {"total": len(rows), "rootCount": len(roots)}

    async def detail(self, id_or_slug: str) -> CategoryRead:
        category = await self.categories.get_by_id_or_slug(id_or_slug)
        if category is None:
            raise NotFoundError("Category not found", code="CATEGORY_NOT_FOUND")
        children = await self.categories.list_filtered(parent_id=category.id)
        views = await self._views([category, *children], include_products=True)
        view = views[category.id]
        view.children = [views[c.id] for c in children]
        return view

    async def _check_parent(self, parent_id: str, category_id: Optional[str] = None) -> None:
        if category_id is not None and parent_id == category_id:
            raise ValidationFailedError("A category cannot be its own parent", code="INVALID_PARENT")
        if await self.categories.get_by_id(parent_id) is None:
            raise ValidationFailedError("Parent category not found", code="PARENT_NOT_FOUND")
        if category_id is not None and category_id in await self.categories.ancestor_ids(parent_id):
            raise ValidationFailedError("A category cannot move under its own descendant", code="INVALID_PARENT")

    async def create(self, payload: CategoryCreate) -> CategoryRead:
        slug = slugify(payload.slug or payload.name, fallback="category")
        if await self.categories.get_by_slug(slug) is not None:
            raise ConflictError("Slug already exists", code="SLUG_EXISTS")
        if payload.parent_id:
            await self._check_parent(payload.parent_id)
        category = await self.categories.create(Category(**{**payload.model_dump(), "slug": slug}))
        logger.info(f"Created category {category.id} slug={slug}")
        return (await self._views([category], include_products=False))[category.id]

    async def update(self, category_id: str, payload: CategoryUpdate) -> CategoryRead:
        category = await self.categories.get_by_id(category_id)
        if category is None:
            raise NotFoundError("Category not found", code="CATEGORY_NOT_FOUND")
        changes = payload.model_dump(exclude_unset=True)
        if changes.get("slug"):
            changes["slug"] = slugify(changes["slug"], fallback=category.slug)
            existing = await self.categories.get_by_slug(changes["slug"])
            if existing is not None and existing.id != category.id:
                raise ConflictError("Slug already exists", code="SLUG_EXISTS")
        if changes.get("parent_id"):
            await self._check_parent(changes["parent_id"], category.id)
        for key, value in changes.items():
            setattr(category, key, value)
        category = await self.categories.update(category)
        return (await self._views([category], include_products=False))[category.id]

    async def delete(self, category_id: str) -> None:
        category = await self.categories.get_by_id(category_id)
        if category is None:
            raise NotFoundError("Category not found", code="CATEGORY_NOT_FOUND")
        if await self.categories.has_children(category.id):
            raise ValidationFailedError("Category has subcategories", code="CATEGORY_HAS_CHILDREN")
        if await self.categories.has_products(category.id):
            raise ValidationFailedError("Category has products", code="CATEGORY_HAS_PRODUCTS")
        await self.categories.delete(category.id)
        logger.info(f"Deleted category {category_id}")
