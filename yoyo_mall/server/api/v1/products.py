"""
Product Catalog Endpoints.

Public product listing and detail, plus admin-only create, update and
delete. Non-admin callers only ever see PUBLISHED products.
"""

from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Query, status

from yoyo_mall.core.database.entities.catalog import ProductStatus
from yoyo_mall.core.database.repositories.catalog import BrandRepository, CategoryRepository, ProductRepository
from yoyo_mall.core.exceptions import NotFoundError
from yoyo_mall.core.models.io.catalog import (
    ProductCreate,
    ProductListResponse,
    ProductResponse,
    ProductUpdate,
    SortOrder,
)
from yoyo_mall.core.models.io.common import MessageResponse, PaginationInfo
from yoyo_mall.server.services.catalog import ProductViewBuilder
from yoyo_mall.server.services.deps import AdminUser, OptionalUser, SessionDep
from yoyo_mall.server.services.products import ProductService
from yoyo_mall.server.services.security import is_admin

router = APIRouter()


@router.get(
    "",
    response_model=ProductListResponse,
    summary="List Products",
    description="Search, filter, sort and paginate products.",
    response_description="A page of products with pagination info and the applied filters.",
)
async def list_products(
    session: SessionDep,
    user: OptionalUser,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None, description="Matches name, description, SKU or tag"),
    category: Optional[str] = Query(None, description="Category id or slug"),
    brand: Optional[str] = Query(None, description="Brand id or slug"),
    status_filter: Optional[ProductStatus] = Query(None, alias="status"),
    min_price: Optional[Decimal] = Query(None, alias="minPrice", ge=0),
    max_price: Optional[Decimal] = Query(None, alias="maxPrice", ge=0),
    sort_by: str = Query("createdAt", alias="sortBy", pattern="^(name|price|createdAt)$"),
    sort_order: SortOrder = Query("desc", alias="sortOrder"),
) -> ProductListResponse:
    """
    List products.

    Admins may filter by any status (or none); everyone else always gets
    PUBLISHED products. Unknown category or brand references match nothing.
    """
    effective_status = status_filter.value if status_filter else None
    if user is None or not is_admin(user.role):
        effective_status = ProductStatus.PUBLISHED.value

    category_id = None
    if category:
        found = await CategoryRepository(session).get_by_id_or_slug(category)
        category_id = found.id if found else category
    brand_id = None
    if brand:
        found_brand = await BrandRepository(session).get_by_id_or_slug(brand)
        brand_id = found_brand.id if found_brand else brand

    rows, total = await ProductRepository(session).search(
        page=page,
        limit=limit,
        search=search.strip() if search else None,
        category_id=category_id,
        brand_id=brand_id,
        status=effective_status,
        min_price=min_price,
        max_price=max_price,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return ProductListResponse(
        data=await ProductViewBuilder(session).summaries(rows),
        pagination=PaginationInfo.build(page, limit, total),
        filters={
            "search": search,
            "category": category,
            "brand": brand,
            "status": effective_status,
            "minPrice": float(min_price) if min_price is not None else None,
            "maxPrice": float(max_price) if max_price is not None else None,
            "sortBy": sort_by,
            "sortOrder": sort_order,
        },
    )


@router.get(
    "/{id_or_slug}",
    response_model=ProductResponse,
    summary="Get Product",
    description="Product detail by id or slug with images, variants, recent reviews and stock.",
    responses={404: {"description": "Product not found"}},
)
async def get_product(id_or_slug: str, session: SessionDep, user: OptionalUser) -> ProductResponse:
    product = await ProductRepository(session).get_by_id_or_slug(id_or_slug)
    visible = product is not None and (
        product.status == ProductStatus.PUBLISHED.value or (user is not None and is_admin(user.role))
    )
    if not visible:
        raise NotFoundError("Product not found", code="PRODUCT_NOT_FOUND")
    return ProductResponse(data=await ProductViewBuilder(session).detail(product))


@router.post(
    "",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Product",
    description="Create a product (admin only).",
    responses={400: {"description": "Duplicate SKU or unknown category/brand"}, 403: {"description": "Not an admin"}},
)
async def create_product(payload: ProductCreate, session: SessionDep, admin: AdminUser) -> ProductResponse:
    product = await ProductService(session).create(payload)
    return ProductResponse(data=await ProductViewBuilder(session).detail(product), message="Product created")


@router.put(
    "/{product_id}",
    response_model=ProductResponse,
    summary="Update Product",
    description="Partially update a product (admin only). Sending `stock` sets the on-hand quantity.",
    responses={404: {"description": "Product not found"}, 403: {"description": "Not an admin"}},
)
async def update_product(
    product_id: str, payload: ProductUpdate, session: SessionDep, admin: AdminUser
) -> ProductResponse:
    product = await ProductService(session).update(product_id, payload)
    return ProductResponse(data=await ProductViewBuilder(session).detail(product), message="Product updated")


@router.delete(
    "/{product_id}",
    response_model=MessageResponse,
    summary="Delete Product",
    description="Delete a product that has never been ordered (admin only).",
    responses={400: {"description": "Product has orders"}, 404: {"description": "Product not found"}},
)
async def delete_product(product_id: str, session: SessionDep, admin: AdminUser) -> MessageResponse:
    await ProductService(session).delete(product_id)
    return MessageResponse(message="Product deleted")
