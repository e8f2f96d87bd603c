"""
Sample data for development and demos.

Seeding is idempotent: rows are matched by their natural key (slug, SKU,
coupon code, email) and only missing ones are created.

Run the seeder from the command line::

    python -m yoyo_mall.server.services.seed
"""

from __future__ import annotations

import argparse
import asyncio
from datetime import timedelta
from decimal import Decimal
from typing import Dict, List

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from yoyo_mall.core.database import async_session_maker, init_db
from yoyo_mall.core.database.base import utc_now
from yoyo_mall.core.database.entities.catalog import (
    Brand,
    Category,
    Inventory,
    Product,
    ProductImage,
    ProductStatus,
)
from yoyo_mall.core.database.entities.orders import Coupon, CouponType
from yoyo_mall.core.database.entities.users import User, UserProfile, UserRole
from yoyo_mall.core.logging_config import get_logger, setup_logging
from yoyo_mall.core.models.io.admin import SeedResult
from yoyo_mall.server.core.config import settings

from .security import hash_password

logger = get_logger(__name__)

BRANDS = [
    {"name": "Apple", "slug": "apple", "description": "Consumer technology"},
    {"name": "Samsung", "slug": "samsung", "description": "Global electronics"},
    {"name": "Nike", "slug": "nike", "description": "Sportswear"},
    {"name": "Adidas", "slug": "adidas", "description": "German sportswear"},
    {"name": "IKEA", "slug": "ikea", "description": "Swedish home furnishing"},
    {"name": "Zara", "slug": "zara", "description": "Spanish fast fashion"},
]

CATEGORIES = [
    {
        "name": "Electronics",
        "slug": "electronics",
        "description": "Phones, computers, cameras and more",
        "children": [("Phones", "phones"), ("Computers", "computers"), ("Cameras", "cameras")],
    },
    {
        "name": "Fashion",
        "slug": "fashion",
        "description": "Clothing, shoes and accessories",
        "children": [("Men's Clothing", "mens-clothing"), ("Women's Clothing", "womens-clothing"), ("Shoes", "shoes")],
    },
    {
        "name": "Home & Living",
        "slug": "home-living",
        "description": "Furniture, appliances and decor",
        "children": [("Furniture", "furniture"), ("Appliances", "appliances"), ("Decor", "decor")],
    },
    {
        "name": "Beauty",
        "slug": "beauty",
        "description": "Skincare, makeup and fragrance",
        "children": [("Skincare", "skincare"), ("Makeup", "makeup"), ("Fragrance", "fragrance")],
    },
]

PRODUCTS = [
    {
        "name": "iPhone 15 Pro",
        "slug": "iphone-15-pro",
        "sku": "IPHONE15PRO-128",
        "description": "Titanium design with the A17 Pro chip and a pro camera system.",
        "short_desc": "6.1-inch Super Retina XDR display",
        "price": "999.00",
        "compare_price": "1099.00",
        "category": "phones",
        "brand": "apple",
        "tags": ["smartphone", "apple", "5g"],
        "is_featured": True,
    },
    {
        "name": "MacBook Air M3",
        "slug": "macbook-air-m3",
        "sku": "MBA-M3-256",
        "description": "Thin and light laptop powered by the M3 chip.",
        "short_desc": "13.6-inch Liquid Retina display",
        "price": "1299.00",
        "category": "computers",
        "brand": "apple",
        "tags": ["laptop", "apple", "m3"],
        "is_featured": True,
    },
    {
        "name": "Galaxy S24",
        "slug": "galaxy-s24",
        "sku": "GALAXY-S24-256",
        "description": "Flagship Android phone with an AI-assisted camera.",
        "short_desc": "6.2-inch Dynamic AMOLED 2X",
        "price": "799.99",
        "category": "phones",
        "brand": "samsung",
        "tags": ["smartphone", "samsung", "android"],
    },
    {
        "name": "Nike Air Max 270",
        "slug": "nike-air-max-270",
        "sku": "NIKE-AM270-BLK-42",
        "description": "Everyday sneaker with a large Air unit for cushioning.",
        "short_desc": "Lightweight with responsive cushioning",
        "price": "129.99",
        "category": "shoes",
        "brand": "nike",
        "tags": ["sneakers", "nike", "running"],
    },
    {
        "name": "Zara Basic T-Shirt",
        "slug": "zara-basic-t-shirt",
        "sku": "ZARA-TEE-BLK-M",
        "description": "100% cotton crew neck tee in several colours.",
        "short_desc": "Classic crew neck, soft cotton",
        "price": "19.99",
        "category": "mens-clothing",
        "brand": "zara",
        "tags": ["t-shirt", "zara", "cotton"],
    },
    {
        "name": "IKEA POANG Armchair",
        "slug": "ikea-poang-armchair",
        "sku": "IKEA-POANG-BIRCH",
        "description": "Classic bentwood armchair with a cotton cushion.",
        "short_desc": "Birch veneer frame",
        "price": "89.99",
        "category": "furniture",
        "brand": "ikea",
        "tags": ["chair", "ikea", "birch"],
    },
    {
        "name": "Advanced Night Repair Serum",
        "slug": "advanced-night-repair-serum",
        "sku": "SERUM-ANR-30ML",
        "description": "Overnight repair serum for smoother skin.",
        "short_desc": "30ml repair serum",
        "price": "89.99",
        "category": "skincare",
        "brand": None,
        "tags": ["serum", "skincare"],
    },
]

SEED_STOCK = 100
IMAGES_PER_PRODUCT = 2


def _coupons() -> List[Dict]:
    now = utc_now()
    return [
        {
            "code": "WELCOME10",
            "name": "Welcome offer",
            "description": "10% off for new customers",
            "type": CouponType.PERCENTAGE.value,
            "value": Decimal("10"),
            "min_amount": Decimal("50"),
            "max_discount": Decimal("20"),
            "usage_limit": 1000,
            "valid_from": now,
            "valid_to": now + timedelta(days=30),
        },
        {
            "code": "FREESHIP",
            "name": "Free shipping",
            "description": "Free shipping on any order",
            "type": CouponType.FREE_SHIPPING.value,
            "value": Decimal("0"),
            "min_amount": Decimal("0"),
            "usage_limit": 500,
            "valid_from": now,
            "valid_to": now + timedelta(days=60),
        },
    ]


async def _by_key(session: AsyncSession, model, column, value):
    result = await session.execute(select(model).where(column == value))
    return result.scalars().first()


async def seed_catalog(session: AsyncSession) -> SeedResult:
    """Create the sample brands, categories, products and coupons."""
    result = SeedResult()

    brands: Dict[str, Brand] = {}
    for data in BRANDS:
        brand = await _by_key(session, Brand, Brand.slug, data["slug"])
        if brand is None:
            brand = Brand(**data)
            session.add(brand)
            result.brands += 1
        brands[data["slug"]] = brand
    await session.flush()

    categories: Dict[str, Category] = {}
    for position, data in enumerate(CATEGORIES, start=1):
        parent = await _by_key(session, Category, Category.slug, data["slug"])
        if parent is None:
            parent = Category(name=data["name"], slug=data["slug"], description=data["description"], sort_order=position)
            session.add(parent)
            await session.flush()
            result.categories += 1
        categories[parent.slug] = parent
        for child_position, (name, slug) in enumerate(data["children"], start=1):
            child = await _by_key(session, Category, Category.slug, slug)
            if child is None:
                child = Category(name=name, slug=slug, parent_id=parent.id, sort_order=child_position)
                session.add(child)
                result.categories += 1
            categories[slug] = child
    await session.flush()

    for data in PRODUCTS:
        if await _by_key(session, Product, Product.sku, data["sku"]) is not None:
            continue
        brand = brands.get(data["brand"]) if data["brand"] else None
        product = Product(
            name=data["name"],
            slug=data["slug"],
            sku=data["sku"],
            description=data["description"],
            short_desc=data["short_desc"],
            price=Decimal(data["price"]),
            compare_price=Decimal(data["compare_price"]) if data.get("compare_price") else None,
            status=ProductStatus.PUBLISHED.value,
            category_id=categories[data["category"]].id,
            brand_id=brand.id if brand else None,
            tags=data["tags"],
            is_featured=data.get("is_featured", False),
        )
        session.add(product)
        await session.flush()
        for index in range(IMAGES_PER_PRODUCT):
            session.add(
                ProductImage(
                    product_id=product.id,
                    url=f"/images/products/{product.slug}-{index + 1}.jpg",
                    alt_text=f"{product.name} {index + 1}",
                    sort_order=index,
                )
            )
        session.add(Inventory(product_id=product.id, quantity=SEED_STOCK))
        result.products += 1

    for data in _coupons():
        if await _by_key(session, Coupon, Coupon.code, data["code"]) is None:
            session.add(Coupon(**data))
            result.coupons += 1

    await session.commit()
    logger.info(
        f"Seeded catalog: brands={result.brands} categories={result.categories} "
        f"products={result.products} coupons={result.coupons}"
    )
    return result


async def seed_accounts(session: AsyncSession) -> int:
    """Create the default admin and customer accounts. Returns how many were created."""
    accounts = [
        ("admin@yoyomall.com", "Administrator", UserRole.SUPER_ADMIN, settings.seed_admin_password),
        ("user@example.com", "Test User", UserRole.CUSTOMER, settings.seed_user_password),
    ]
    created = 0
    for email, name, role, password in accounts:
        if await _by_key(session, User, User.email, email) is not None:
            continue
        user = User(email=email, name=name, role=role.value, password_hash=hash_password(password), email_verified=True)
        session.add(user)
        await session.flush()
        first_name, _, last_name = name.partition(" ")
        session.add(UserProfile(user_id=user.id, first_name=first_name, last_name=last_name or None))
        created += 1
    await session.commit()
    logger.info(f"Seeded {created} default accounts")
    return created


async def run(with_accounts: bool = True) -> SeedResult:
    await init_db()
    async with async_session_maker() as session:
        result = await seed_catalog(session)
        if with_accounts:
            result.users = await seed_accounts(session)
    return result


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(description="Seed the YoYo Mall database with sample data")
    parser.add_argument("--no-accounts", action="store_true", help="skip the default admin and customer accounts")
    args = parser.parse_args(argv)

    setup_logging()
    result = asyncio.run(run(with_accounts=not args.no_accounts))
    logger.info(f"Seed finished: {result.model_dump()}")


if __name__ == "__main__":
    main()
