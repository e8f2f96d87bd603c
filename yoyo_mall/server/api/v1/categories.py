"""
Category Endpoints.

Public category tree with product counts, and admin-only management.
"""

from typing import Optional

from fastapi import APIRouter, Query, status

from yoyo_mall.core.models.io.catalog import (
    CategoryCreate,
    CategoryListResponse,
    CategoryResponse,
    CategoryUpdate,
    SortOrder,
)
from yoyo_mall.core.models.io.common import MessageResponse
from yoyo_mall.server.services.categories import CategoryService
from yoyo_mall.server.services.deps import AdminUser, SessionDep

router = APIRouter()


@router.get(
    "",
    response_model=CategoryListResponse,
    summary="List Categories",
    description=(
        "Without `parentId` the categories are returned as a nested tree of roots; "
        "with `parentId` as a flat list of that category's children."
    ),
)
async def list_categories(
    session: SessionDep,
    include_products: bool = Query(False, alias="includeProducts"),
    parent_id: Optional[str] = Query(None, alias="parentId"),
    is_active: Optional[bool] = Query(None, alias="isActive"),
    sort_by: str = Query("sortOrder", alias="sortBy", pattern="^(name|sortOrder|createdAt)$"),
    sort_order: SortOrder = Query("asc", alias="sortOrder"),
) -> CategoryListResponse:
    data, meta = await CategoryService(session).listing(
        include_products=include_products,
        parent_id=parent_id or None,
        is_active=is_active,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return CategoryListResponse(data=data, meta=meta)


@router.get(
    "/{id_or_slug}",
    response_model=CategoryResponse,
    summary="Get Category",
    description="A category by id or slug with its direct children and up to 10 published products.",
    responses={404: {"description": "Category not found"}},
)
async def get_category(id_or_slug: str, session: SessionDep) -> CategoryResponse:
    return CategoryResponse(data=await CategoryService(session).detail(id_or_slug))


@router.post(
    "",
    response_model=CategoryResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Category",
    responses={400: {"description": "Duplicate slug or unknown parent"}, 403: {"description": "Not an admin"}},
)
async def create_category(payload: CategoryCreate, session: SessionDep, admin: AdminUser) -> CategoryResponse:
    """
    Create a category (admin only).

    The slug is derived from the name when omitted.
    """
    return CategoryResponse(data=await CategoryService(session).create(payload), message="Category created")


@router.put(
    "/{category_id}",
    response_model=CategoryResponse,
    summary="Update Category",
    responses={400: {"description": "Invalid parent or duplicate slug"}, 404: {"description": "Category not found"}},
)
async def update_category(
    category_id: str, payload: CategoryUpdate, session: SessionDep, admin: AdminUser
) -> CategoryResponse:
    data = await CategoryService(session).update(category_id, payload)
    return CategoryResponse(data=data, message="Category updated")


@router.delete(
    "/{category_id}",
    response_model=MessageResponse,
    summary="Delete Category",
    responses={400: {"description": "Category has children or products"}, 404: {"description": "Category not found"}},
)
async def delete_category(category_id: str, session: SessionDep, admin: AdminUser) -> MessageResponse:
    await CategoryService(session).delete(category_id)
    return MessageResponse(message="Category deleted")
