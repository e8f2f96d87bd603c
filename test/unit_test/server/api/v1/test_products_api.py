import pytest
import pytest_asyncio
from httpx import AsyncClient


@pytest_asyncio.fixture
async def catalog(factory):
    electronics = await factory.category()
    acme = await factory.brand()
    mouse = await factory.product(category_id=electronics.id, brand_id=acme.id, tags=["usb"])
    keyboard = await factory.product(name="Gaming Keyboard", sku="SKU-KB", price="80.00", category_id=electronics.id)
    draft = await factory.product(name="Desk Lamp", sku="SKU-LAMP", price="40.00", status="DRAFT")
    return {"mouse": mouse, "keyboard": keyboard, "draft": draft, "category": electronics}


class TestListProducts:
    async def test_public_listing_hides_drafts(self, client: AsyncClient, catalog):
        response = await client.get("/api/v1/products")

        assert response.status_code == 200
        body = response.json()
        assert {p["sku"] for p in body["data"]} == {"SKU-MOUSE", "SKU-KB"}
        assert body["pagination"] == {
            "page": 1,
            "limit": 20,
            "total": 2,
            "totalPages": 1,
            "hasNext": False,
            "hasPrev": False,
        }
        assert body["filters"]["status"] == "PUBLISHED"

    async def test_customers_cannot_ask_for_drafts(self, client: AsyncClient, catalog, customer_headers):
        response = await client.get("/api/v1/products", params={"status": "DRAFT"}, headers=customer_headers)
        assert {p["sku"] for p in response.json()["data"]} == {"SKU-MOUSE", "SKU-KB"}

    async def test_admins_filter_by_status(self, client: AsyncClient, catalog, admin_headers):
        response = await client.get("/api/v1/products", params={"status": "DRAFT"}, headers=admin_headers)
        assert [p["sku"] for p in response.json()["data"]] == ["SKU-LAMP"]

    @pytest.mark.parametrize(
        "params, expected",
        [
            ({"search": "keyboard"}, {"SKU-KB"}),
            ({"search": "usb"}, {"SKU-MOUSE"}),
            ({"category": "electronics"}, {"SKU-MOUSE", "SKU-KB"}),
            ({"brand": "acme"}, {"SKU-MOUSE"}),
            ({"brand": "unknown-brand"}, set()),
            ({"minPrice": "50"}, {"SKU-KB"}),
            ({"maxPrice": "50"}, {"SKU-MOUSE"}),
        ],
    )
    async def test_filters(self, client: AsyncClient, catalog, params, expected):
        response = await client.get("/api/v1/products", params=params)
        assert {p["sku"] for p in response.json()["data"]} == expected

    async def test_sort_and_paginate(self, client: AsyncClient, catalog):
        response = await client.get(
            "/api/v1/products", params={"sortBy": "price", "sortOrder": "asc", "limit": 1, "page": 2}
        )

        body = response.json()
        assert [p["sku"] for p in body["data"]] == ["SKU-KB"]
        assert body["pagination"]["hasPrev"] is True
        assert body["pagination"]["hasNext"] is False

    async def test_summary_shape(self, client: AsyncClient, catalog):
        response = await client.get("/api/v1/products", params={"search": "mouse"})

        [mouse] = response.json()["data"]
        assert mouse["price"] == 25.0
        assert mouse["category"]["slug"] == "electronics"
        assert mouse["brand"]["name"] == "Acme"
        assert mouse["availableQuantity"] == 50
        assert mouse["inStock"] is True

    async def test_invalid_sort_field(self, client: AsyncClient):
        response = await client.get("/api/v1/products", params={"sortBy": "cost"})
        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"


class TestGetProduct:
    async def test_by_slug(self, client: AsyncClient, catalog):
        response = await client.get("/api/v1/products/sku-mouse")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["id"] == catalog["mouse"].id
        assert data["inventory"]["availableQuantity"] == 50
        assert data["variants"] == []

    async def test_drafts_are_hidden_from_public(self, client: AsyncClient, catalog):
        response = await client.get(f"/api/v1/products/{catalog['draft'].id}")
        assert response.status_code == 404
        assert response.json()["code"] == "PRODUCT_NOT_FOUND"

    async def test_admin_sees_drafts(self, client: AsyncClient, catalog, admin_headers):
        response = await client.get(f"/api/v1/products/{catalog['draft'].id}", headers=admin_headers)
        assert response.status_code == 200


class TestProductAdmin:
    async def test_create_update_delete(self, client: AsyncClient, admin_headers, catalog):
        created = await client.post(
            "/api/v1/products",
            json={
                "name": "USB Hub",
                "sku": "SKU-HUB",
                "price": 19.99,
                "status": "PUBLISHED",
                "categoryId": catalog["category"].id,
                "initialStock": 5,
                "images": [{"url": "/img/hub.jpg"}],
            },
            headers=admin_headers,
        )
        assert created.status_code == 201
        data = created.json()["data"]
        assert data["slug"] == "usb-hub"
        assert data["availableQuantity"] == 5
        assert data["images"][0]["url"] == "/img/hub.jpg"

        updated = await client.put(
            f"/api/v1/products/{data['id']}", json={"price": 17.5, "stock": 9}, headers=admin_headers
        )
        assert updated.json()["message"] == "Product updated"
        assert updated.json()["data"]["price"] == 17.5
        assert updated.json()["data"]["inventory"]["quantity"] == 9

        deleted = await client.delete(f"/api/v1/products/{data['id']}", headers=admin_headers)
        assert deleted.json() == {"success": True, "message": "Product deleted"}

    async def test_customers_cannot_create(self, client: AsyncClient, customer_headers):
        response = await client.post(
            "/api/v1/products", json={"name": "X", "sku": "SKU-X", "price": 1}, headers=customer_headers
        )
        assert response.status_code == 403
        assert response.json()["code"] == "FORBIDDEN"

    async def test_duplicate_sku(self, client: AsyncClient, admin_headers, catalog):
        response = await client.post(
            "/api/v1/products", json={"name": "Mouse 2", "sku": "SKU-MOUSE", "price": 1}, headers=admin_headers
        )
        assert response.status_code == 400
        assert response.json()["code"] == "SKU_EXISTS"
