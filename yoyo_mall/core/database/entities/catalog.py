"""
Catalog entity models.

Categories form a tree through ``parent_id``. Products reference an optional
category and brand; images, variants, the inventory row, reviews and wishlist
entries all hang off a product.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from sqlalchemy import DateTime
from sqlmodel import JSON, Field

from ..base import Base, new_id, utc_now

DEFAULT_LOW_STOCK_THRESHOLD = 10


class ProductStatus(str, Enum):
    """Publication state of a product."""

    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    ARCHIVED = "ARCHIVED"


class Category(Base, table=True):
    """Table: categories"""

    __tablename__ = "categories"
    __table_args__ = ({"extend_existing": True},)

    id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    name: str = Field(max_length=100)
    slug: str = Field(max_length=100, unique=True, index=True)
    description: Optional[str] = Field(default=None, max_length=500)
    image: Optional[str] = Field(default=None, max_length=1024)
    parent_id: Optional[str] = Field(default=None, foreign_key="categories.id", index=True, max_length=64)
    is_active: bool = Field(default=True)
    sort_order: int = Field(default=0)

    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime)
    updated_at: datetime = Field(default_factory=utc_now, sa_type=DateTime)

    def __repr__(self) -> str:
        return f"Category(id={self.id}, slug={self.slug})"


class Brand(Base, table=True):
    """Table: brands"""

    __tablename__ = "brands"
    __table_args__ = ({"extend_existing": True},)

    id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    name: str = Field(max_length=100)
    slug: str = Field(max_length=100, unique=True, index=True)
    description: Optional[str] = Field(default=None, max_length=500)
    logo: Optional[str] = Field(default=None, max_length=1024)
    website: Optional[str] = Field(default=None, max_length=255)
    is_active: bool = Field(default=True)

    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime)
    updated_at: datetime = Field(default_factory=utc_now, sa_type=DateTime)


class Product(Base, table=True):
    """Sellable product.

    Table: products
    """

    __tablename__ = "products"
    __table_args__ = ({"extend_existing": True},)

    id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    name: str = Field(max_length=255)
    slug: str = Field(max_length=280, unique=True, index=True)
    description: Optional[str] = None
    short_desc: Optional[str] = Field(default=None, max_length=500)
    sku: str = Field(max_length=100, unique=True, index=True)
    price: Decimal = Field(max_digits=10, decimal_places=2)
    compare_price: Optional[Decimal] = Field(default=None, max_digits=10, decimal_places=2)
    cost_price: Optional[Decimal] = Field(default=None, max_digits=10, decimal_places=2)
    currency: str = Field(default="USD", max_length=3)
    status: str = Field(default=ProductStatus.DRAFT.value, max_length=16, index=True)
    weight: Optional[Decimal] = Field(default=None, max_digits=10, decimal_places=3)
    category_id: Optional[str] = Field(default=None, foreign_key="categories.id", index=True, max_length=64)
    brand_id: Optional[str] = Field(default=None, foreign_key="brands.id", index=True, max_length=64)
    tags: List[str] = Field(default_factory=list, sa_type=JSON)
    meta_title: Optional[str] = Field(default=None, max_length=255)
    meta_description: Optional[str] = Field(default=None, max_length=500)
    track_inventory: bool = Field(default=True)
    allow_out_of_stock: bool = Field(default=False)
    is_featured: bool = Field(default=False)

    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime, index=True)
    updated_at: datetime = Field(default_factory=utc_now, sa_type=DateTime)

    def __repr__(self) -> str:
        return f"Product(id={self.id}, sku={self.sku}, status={self.status})"


class ProductImage(Base, table=True):
    """Table: product_images"""

    __tablename__ = "product_images"
    __table_args__ = ({"extend_existing": True},)

    id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    product_id: str = Field(foreign_key="products.id", index=True, max_length=64)
    url: str = Field(max_length=1024)
    alt_text: Optional[str] = Field(default=None, max_length=255)
    sort_order: int = Field(default=0)
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime)


class ProductVariant(Base, table=True):
    """Purchasable variation of a product (size, colour...).

    Table: product_variants
    """

    __tablename__ = "product_variants"
    __table_args__ = ({"extend_existing": True},)

    id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    product_id: str = Field(foreign_key="products.id", index=True, max_length=64)
    name: str = Field(max_length=255)
    sku: Optional[str] = Field(default=None, max_length=100)
    price: Optional[Decimal] = Field(default=None, max_digits=10, decimal_places=2)
    attributes: Dict[str, Any] = Field(default_factory=dict, sa_type=JSON)
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime)


class Inventory(Base, table=True):
    """Stock counters for a product. ``reserved_quantity`` is held by unpaid orders.

    Table: inventory
    """

    __tablename__ = "inventory"
    __table_args__ = ({"extend_existing": True},)

    id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    product_id: str = Field(foreign_key="products.id", unique=True, index=True, max_length=64)
    quantity: int = Field(default=0)
    reserved_quantity: int = Field(default=0)
    low_stock_threshold: int = Field(default=DEFAULT_LOW_STOCK_THRESHOLD)
    updated_at: datetime = Field(default_factory=utc_now, sa_type=DateTime)

    @property
    def available_quantity(self) -> int:
        return self.quantity - self.reserved_quantity


class Review(Base, table=True):
    """Table: reviews"""

    __tablename__ = "reviews"
    __table_args__ = ({"extend_existing": True},)

    id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    product_id: str = Field(foreign_key="products.id", index=True, max_length=64)
    user_id: str = Field(foreign_key="users.id", index=True, max_length=64)
    rating: int = Field(ge=1, le=5)
    title: Optional[str] = Field(default=None, max_length=255)
    content: Optional[str] = None
    is_verified: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime, index=True)


class WishlistItem(Base, table=True):
    """Table: wishlist_items"""

    __tablename__ = "wishlist_items"
    __table_args__ = ({"extend_existing": True},)

    id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    user_id: str = Field(foreign_key="users.id", index=True, max_length=64)
    product_id: str = Field(foreign_key="products.id", index=True, max_length=64)
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime)
