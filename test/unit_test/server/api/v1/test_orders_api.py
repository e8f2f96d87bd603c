import pytest_asyncio
from httpx import AsyncClient


@pytest_asyncio.fixture
async def address(factory, customer):
    return await factory.address(customer)


def _order_body(product_id: str, address_id: str, **fields) -> dict:
    return {
        "items": [{"productId": product_id, "quantity": 2, "unitPrice": 25.0}],
        "shippingAddressId": address_id,
        "paymentMethod": "CREDIT_CARD",
        **fields,
    }


class TestPlaceOrder:
    async def test_place_order(self, client: AsyncClient, customer_headers, product, address, factory):
        response = await client.post(
            "/api/v1/orders", json=_order_body(product.id, address.id, notes="Leave at door"), headers=customer_headers
        )

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Order created"
        assert body["data"]["status"] == "PENDING"
        assert body["data"]["totalAmount"] == 63.99
        assert body["data"]["orderNumber"].startswith("ORD-")
        assert (await factory.inventory(product.id)).reserved_quantity == 2

    async def test_price_mismatch(self, client: AsyncClient, customer_headers, product, address):
        body = _order_body(product.id, address.id)
        body["items"][0]["unitPrice"] = 19.0

        response = await client.post("/api/v1/orders", json=body, headers=customer_headers)

        assert response.status_code == 400
        assert response.json()["code"] == "PRICE_MISMATCH"

    async def test_empty_order(self, client: AsyncClient, customer_headers, address):
        response = await client.post(
            "/api/v1/orders",
            json={"items": [], "shippingAddressId": address.id, "paymentMethod": "CREDIT_CARD"},
            headers=customer_headers,
        )
        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    async def test_unknown_address(self, client: AsyncClient, customer_headers, product):
        response = await client.post("/api/v1/orders", json=_order_body(product.id, "missing"), headers=customer_headers)
        assert response.status_code == 404
        assert response.json()["code"] == "ADDRESS_NOT_FOUND"


class TestReadOrders:
    async def test_list_and_get(self, client: AsyncClient, customer_headers, product, address):
        created = await client.post("/api/v1/orders", json=_order_body(product.id, address.id), headers=customer_headers)
        order_id = created.json()["data"]["id"]

        listed = await client.get("/api/v1/orders", headers=customer_headers)
        assert listed.status_code == 200
        assert [o["id"] for o in listed.json()["data"]] == [order_id]
        assert listed.json()["pagination"]["total"] == 1

        detail = await client.get(f"/api/v1/orders/{order_id}", headers=customer_headers)
        data = detail.json()["data"]
        assert data["items"][0]["productSnapshot"]["name"] == "Wireless Mouse"
        assert data["shippingAddress"]["city"] == "Shanghai"
        assert data["taxAmount"] == 4.0

    async def test_status_filter(self, client: AsyncClient, customer_headers, product, address):
        await client.post("/api/v1/orders", json=_order_body(product.id, address.id), headers=customer_headers)

        response = await client.get("/api/v1/orders", params={"status": "SHIPPED"}, headers=customer_headers)

        assert response.json()["data"] == []

    async def test_other_customer_gets_404(self, client: AsyncClient, customer_headers, product, address, factory, auth_headers):
        created = await client.post("/api/v1/orders", json=_order_body(product.id, address.id), headers=customer_headers)
        bob = await factory.user(email="bob@example.com", name="Bob")

        response = await client.get(f"/api/v1/orders/{created.json()['data']['id']}", headers=auth_headers(bob))

        assert response.status_code == 404
        assert response.json()["code"] == "ORDER_NOT_FOUND"


class TestAdminOrderUpdate:
    async def test_admin_cancels_order(self, client: AsyncClient, customer_headers, admin_headers, product, address, factory):
        created = await client.post("/api/v1/orders", json=_order_body(product.id, address.id), headers=customer_headers)
        order_id = created.json()["data"]["id"]

        response = await client.put(
            f"/api/v1/orders/{order_id}", json={"status": "CANCELLED", "notes": "Out of area"}, headers=admin_headers
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Order updated"
        assert response.json()["data"]["status"] == "CANCELLED"
        assert (await factory.inventory(product.id)).reserved_quantity == 0

    async def test_customer_cannot_update(self, client: AsyncClient, customer_headers, product, address):
        created = await client.post("/api/v1/orders", json=_order_body(product.id, address.id), headers=customer_headers)
        response = await client.put(
            f"/api/v1/orders/{created.json()['data']['id']}", json={"status": "SHIPPED"}, headers=customer_headers
        )
        assert response.status_code == 403
