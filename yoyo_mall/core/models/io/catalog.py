"""
Catalog I/O models for API requests and responses.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Literal, Optional

from pydantic import Field

from yoyo_mall.core.database.entities.catalog import ProductStatus

from .common import ApiModel, Money, PaginationInfo


class CategoryRef(ApiModel):
    id: str
    name: str
    slug: str


class BrandRef(ApiModel):
    id: str
    name: str
    slug: str
    logo: Optional[str] = None


class ImageRead(ApiModel):
    id: str
    url: str
    alt_text: Optional[str] = None
    sort_order: int = 0


class ImageInput(ApiModel):
    url: str = Field(min_length=1, max_length=1024)
    alt_text: Optional[str] = Field(default=None, max_length=255)


class VariantRead(ApiModel):
    id: str
    name: str
    sku: Optional[str] = None
    price: Optional[Money] = None
    attributes: Dict[str, Any] = Field(default_factory=dict)
    is_active: bool = True


class InventoryRead(ApiModel):
    quantity: int
    reserved_quantity: int
    available_quantity: int
    low_stock_threshold: int


class ReviewerRead(ApiModel):
    id: str
    name: Optional[str] = None
    avatar: Optional[str] = None


class ReviewRead(ApiModel):
    id: str
    rating: int
    title: Optional[str] = None
    content: Optional[str] = None
    is_verified: bool = False
    created_at: datetime
    user: Optional[ReviewerRead] = None


class ProductSummary(ApiModel):
    """Product as shown in listings."""

    id: str
    name: str
    slug: str
    short_desc: Optional[str] = None
    sku: str
    price: Money
    compare_price: Optional[Money] = None
    currency: str
    status: str
    tags: List[str] = Field(default_factory=list)
    is_featured: bool = False
    track_inventory: bool = True
    allow_out_of_stock: bool = False
    created_at: datetime
    category: Optional[CategoryRef] = None
    brand: Optional[BrandRef] = None
    images: List[ImageRead] = Field(default_factory=list)
    average_rating: float = 0
    review_count: int = 0
    available_quantity: int = 0
    in_stock: bool = False


class ProductDetail(ProductSummary):
    description: Optional[str] = None
    cost_price: Optional[Money] = None
    weight: Optional[Decimal] = None
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    updated_at: datetime
    variants: List[VariantRead] = Field(default_factory=list)
    reviews: List[ReviewRead] = Field(default_factory=list)
    inventory: Optional[InventoryRead] = None
    is_low_stock: bool = False


class ProductListResponse(ApiModel):
    success: bool = True
    data: List[ProductSummary]
    pagination: PaginationInfo
    filters: Dict[str, Any]


class ProductResponse(ApiModel):
    success: bool = True
    data: ProductDetail
    message: Optional[str] = None


class ProductCreate(ApiModel):
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    short_desc: Optional[str] = Field(default=None, max_length=500)
    sku: str = Field(min_length=1, max_length=100)
    price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    compare_price: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    cost_price: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    currency: str = Field(default="USD", min_length=3, max_length=3)
    status: ProductStatus = ProductStatus.DRAFT
    weight: Optional[Decimal] = Field(default=None, ge=0)
    category_id: Optional[str] = None
    brand_id: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    meta_title: Optional[str] = Field(default=None, max_length=255)
    meta_description: Optional[str] = Field(default=None, max_length=500)
    track_inventory: bool = True
    allow_out_of_stock: bool = False
    is_featured: bool = False
    images: List[ImageInput] = Field(default_factory=list)
    initial_stock: int = Field(default=0, ge=0)


class ProductUpdate(ApiModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    short_desc: Optional[str] = Field(default=None, max_length=500)
    sku: Optional[str] = Field(default=None, min_length=1, max_length=100)
    price: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    compare_price: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    cost_price: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    status: Optional[ProductStatus] = None
    weight: Optional[Decimal] = Field(default=None, ge=0)
    category_id: Optional[str] = None
    brand_id: Optional[str] = None
    tags: Optional[List[str]] = None
    meta_title: Optional[str] = Field(default=None, max_length=255)
    meta_description: Optional[str] = Field(default=None, max_length=500)
    track_inventory: Optional[bool] = None
    allow_out_of_stock: Optional[bool] = None
    is_featured: Optional[bool] = None
    images: Optional[List[ImageInput]] = None
    stock: Optional[int] = Field(default=None, ge=0, description="Set the on-hand quantity")


class CategoryProduct(ApiModel):
    id: str
    name: str
    slug: str
    price: Money
    image: Optional[str] = None


class CategoryRead(ApiModel):
    id: str
    name: str
    slug: str
    description: Optional[str] = None
    image: Optional[str] = None
    parent_id: Optional[str] = None
    is_active: bool
    sort_order: int
    created_at: datetime
    product_count: int = 0
    products: Optional[List[CategoryProduct]] = None
    children: List["CategoryRead"] = Field(default_factory=list)


class CategoryListResponse(ApiModel):
    success: bool = True
    data: List[CategoryRead]
    meta: Dict[str, Any]


class CategoryResponse(ApiModel):
    success: bool = True
    data: CategoryRead
    message: Optional[str] = None


class CategoryCreate(ApiModel):
    name: str = Field(min_length=1, max_length=100)
    slug: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    image: Optional[str] = Field(default=None, max_length=1024)
    parent_id: Optional[str] = None
    is_active: bool = True
    sort_order: int = Field(default=0, ge=0)


class CategoryUpdate(ApiModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    slug: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    image: Optional[str] = Field(default=None, max_length=1024)
    parent_id: Optional[str] = None
    is_active: Optional[bool] = None
    sort_order: Optional[int] = Field(default=None, ge=0)


SortOrder = Literal["asc", "desc"]
