from decimal import Decimal

import pytest
from sqlmodel import select

from yoyo_mall.core.database.entities.catalog import Inventory, Product, ProductImage
from yoyo_mall.core.database.entities.orders import CartItem, Order, OrderItem
from yoyo_mall.core.exceptions import ConflictError, MallError, NotFoundError
from yoyo_mall.core.models.io.catalog import ProductCreate, ProductUpdate
from yoyo_mall.server.services.products import ProductService


def _create(**fields) -> ProductCreate:
    values = {"name": "Gaming Keyboard", "sku": "SKU-KB", "price": "79.90", "initialStock": 12}
    values.update(fields)
    return ProductCreate.model_validate(values)


class TestCreateProduct:
    async def test_creates_product_images_and_inventory(self, session, factory):
        product = await ProductService(session).create(
            _create(images=[{"url": "/img/kb-1.jpg"}, {"url": "/img/kb-2.jpg", "altText": "Side"}])
        )

        assert product.slug == "gaming-keyboard"
        assert product.status == "DRAFT"
        assert product.price == Decimal("79.90")
        assert (await factory.inventory(product.id)).quantity == 12
        images = (await session.execute(select(ProductImage).order_by(ProductImage.sort_order))).scalars().all()
        assert [(i.url, i.sort_order) for i in images] == [("/img/kb-1.jpg", 0), ("/img/kb-2.jpg", 1)]

    async def test_duplicate_names_get_numbered_slugs(self, session):
        service = ProductService(session)
        await service.create(_create())
        second = await service.create(_create(sku="SKU-KB-2"))
        assert second.slug == "gaming-keyboard-2"

    async def test_untracked_product_has_no_inventory(self, session):
        product = await ProductService(session).create(_create(trackInventory=False))
        rows = (await session.execute(select(Inventory).where(Inventory.product_id == product.id))).scalars().all()
        assert rows == []

    async def test_duplicate_sku(self, session, product):
        with pytest.raises(ConflictError) as exc_info:
            await ProductService(session).create(_create(sku="SKU-MOUSE"))
        assert exc_info.value.code == "SKU_EXISTS"

    @pytest.mark.parametrize("field, code", [("categoryId", "CATEGORY_NOT_FOUND"), ("brandId", "BRAND_NOT_FOUND")])
    async def test_unknown_references(self, session, field, code):
        with pytest.raises(MallError) as exc_info:
            await ProductService(session).create(_create(**{field: "missing"}))
        assert exc_info.value.code == code


class TestUpdateProduct:
    async def test_rename_rederives_slug(self, session, product):
        updated = await ProductService(session).update(product.id, ProductUpdate(name="Silent Mouse", status="PUBLISHED"))
        assert updated.slug == "silent-mouse"
        assert updated.status == "PUBLISHED"

    async def test_stock_and_images(self, session, factory, product):
        session.add(ProductImage(product_id=product.id, url="/img/old.jpg"))
        await session.commit()

        await ProductService(session).update(
            product.id, ProductUpdate.model_validate({"stock": 7, "images": [{"url": "/img/new.jpg"}]})
        )

        assert (await factory.inventory(product.id)).quantity == 7
        urls = (await session.execute(select(ProductImage.url).where(ProductImage.product_id == product.id))).scalars().all()
        assert urls == ["/img/new.jpg"]

    async def test_stock_creates_missing_inventory(self, session, factory):
        product = await factory.product(sku="SKU-NEW", stock=None)
        await ProductService(session).update(product.id, ProductUpdate(stock=3))
        assert (await factory.inventory(product.id)).quantity == 3

    async def test_sku_taken_by_another_product(self, session, factory, product):
        other = await factory.product(sku="SKU-OTHER", name="Other")
        with pytest.raises(ConflictError):
            await ProductService(session).update(other.id, ProductUpdate(sku="SKU-MOUSE"))

    async def test_missing_product(self, session):
        with pytest.raises(NotFoundError) as exc_info:
            await ProductService(session).update("missing", ProductUpdate(price=Decimal("1")))
        assert exc_info.value.code == "PRODUCT_NOT_FOUND"


class TestDeleteProduct:
    async def test_deletes_attached_rows(self, session, customer, product):
        session.add(CartItem(user_id=customer.id, product_id=product.id, quantity=1))
        session.add(ProductImage(product_id=product.id, url="/img/a.jpg"))
        await session.commit()

        await ProductService(session).delete(product.id)

        assert (await session.execute(select(Product))).scalars().all() == []
        assert (await session.execute(select(Inventory))).scalars().all() == []
        assert (await session.execute(select(CartItem))).scalars().all() == []

    async def test_ordered_products_cannot_be_deleted(self, session, customer, product):
        order = Order(order_number="ORD-1", user_id=customer.id, subtotal=Decimal("25"), total_amount=Decimal("25"))
        session.add(order)
        await session.flush()
        session.add(
            OrderItem(order_id=order.id, product_id=product.id, quantity=1, unit_price=Decimal("25"), total_price=Decimal("25"))
        )
        await session.commit()

        with pytest.raises(MallError) as exc_info:
            await ProductService(session).delete(product.id)
        assert exc_info.value.code == "PRODUCT_HAS_ORDERS"
