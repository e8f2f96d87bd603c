from sqlalchemy import func
from sqlmodel import select

from yoyo_mall.core.database.entities.catalog import Category, Inventory, Product, ProductImage
from yoyo_mall.core.database.entities.users import User
from yoyo_mall.server.core.config import settings
from yoyo_mall.server.services.security import verify_password
from yoyo_mall.server.services.seed import (
    BRANDS,
    CATEGORIES,
    IMAGES_PER_PRODUCT,
    PRODUCTS,
    SEED_STOCK,
    seed_accounts,
    seed_catalog,
)


async def _count(session, model) -> int:
    return (await session.execute(select(func.count()).select_from(model))).scalar_one()


class TestSeedCatalog:
    async def test_first_run_creates_everything(self, session):
        result = await seed_catalog(session)

        assert result.brands == len(BRANDS)
        assert result.categories == sum(1 + len(c["children"]) for c in CATEGORIES)
        assert result.products == len(PRODUCTS)
        assert result.coupons == 2
        assert await _count(session, ProductImage) == len(PRODUCTS) * IMAGES_PER_PRODUCT
        inventory = (await session.execute(select(Inventory))).scalars().all()
        assert {row.quantity for row in inventory} == {SEED_STOCK}

    async def test_products_are_published_in_child_categories(self, session):
        await seed_catalog(session)

        phone = (await session.execute(select(Product).where(Product.sku == "IPHONE15PRO-128"))).scalar_one()
        category = await session.get(Category, phone.category_id)
        assert phone.status == "PUBLISHED"
        assert category.parent_id is not None

    async def test_second_run_is_a_no_op(self, session):
        await seed_catalog(session)
        again = await seed_catalog(session)

        assert again.model_dump() == {"brands": 0, "categories": 0, "products": 0, "coupons": 0, "users": 0}
        assert await _count(session, Product) == len(PRODUCTS)


class TestSeedAccounts:
    async def test_creates_default_accounts_once(self, session):
        assert await seed_accounts(session) == 2
        assert await seed_accounts(session) == 0

        admin = (await session.execute(select(User).where(User.email == "admin@yoyomall.com"))).scalar_one()
        assert admin.role == "SUPER_ADMIN"
        assert verify_password(settings.seed_admin_password, admin.password_hash)
