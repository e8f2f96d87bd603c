from decimal import Decimal
from typing import AsyncGenerator, Callable, Dict, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from yoyo_mall.core.database.entities.catalog import Brand, Category, Inventory, Product
from yoyo_mall.core.database.entities.users import Address, User
from yoyo_mall.server.services.security import create_access_token, hash_password


@pytest_asyncio.fixture(name="client")
async def client_fixture(session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client whose requests share the test session."""
    from yoyo_mall.core.database.session import get_session
    from yoyo_mall.server.main import app

    async def get_session_override() -> AsyncGenerator[AsyncSession, None]:
        yield session

    app.dependency_overrides[get_session] = get_session_override

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://localhost") as client:
        yield client

    app.dependency_overrides.clear()


class DataFactory:
    """Creates committed rows for tests."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _save(self, row):
        self.session.add(row)
        await self.session.commit()
        await self.session.refresh(row)
        return row

    async def user(
        self,
        email: str = "alice@example.com",
        password: Optional[str] = "Secret123!",
        role: str = "CUSTOMER",
        name: str = "Alice Liu",
        is_active: bool = True,
    ) -> User:
        return await self._save(
            User(
                email=email,
                name=name,
                role=role,
                is_active=is_active,
                password_hash=hash_password(password) if password else None,
            )
        )

    async def category(self, name: str = "Electronics", slug: str = "electronics", **fields) -> Category:
        return await self._save(Category(name=name, slug=slug, **fields))

    async def brand(self, name: str = "Acme", slug: str = "acme") -> Brand:
        return await self._save(Brand(name=name, slug=slug))

    async def product(
        self,
        name: str = "Wireless Mouse",
        sku: str = "SKU-MOUSE",
        price: str = "25.00",
        stock: Optional[int] = 50,
        status: str = "PUBLISHED",
        **fields,
    ) -> Product:
        fields.setdefault("slug", sku.lower())
        product = Product(name=name, sku=sku, price=Decimal(price), status=status, **fields)
        self.session.add(product)
        await self.session.flush()
        if stock is not None:
            self.session.add(Inventory(product_id=product.id, quantity=stock))
        await self.session.commit()
        await self.session.refresh(product)
        return product

    async def address(self, user: User, **fields) -> Address:
        values = dict(
            first_name="Alice",
            last_name="Liu",
            address_line1="1 Market St",
            city="Shanghai",
            state="SH",
            postal_code="200000",
            country="CN",
        )
        values.update(fields)
        return await self._save(Address(user_id=user.id, **values))

    async def inventory(self, product_id: str) -> Inventory:
        stmt = select(Inventory).where(Inventory.product_id == product_id).execution_options(populate_existing=True)
        result = await self.session.execute(stmt)
        return result.scalar_one()


@pytest.fixture
def factory(session: AsyncSession) -> DataFactory:
    return DataFactory(session)


@pytest.fixture
def auth_headers() -> Callable[[User], Dict[str, str]]:
    def _headers(user: User) -> Dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user)}"}

    return _headers


@pytest_asyncio.fixture
async def customer(factory: DataFactory) -> User:
    return await factory.user()


@pytest_asyncio.fixture
async def admin(factory: DataFactory) -> User:
    return await factory.user(email="admin@example.com", role="ADMIN", name="Store Admin")


@pytest.fixture
def customer_headers(customer: User, auth_headers) -> Dict[str, str]:
    return auth_headers(customer)


@pytest.fixture
def admin_headers(admin: User, auth_headers) -> Dict[str, str]:
    return auth_headers(admin)


@pytest_asyncio.fixture
async def product(factory: DataFactory) -> Product:
    return await factory.product()
