from httpx import AsyncClient

ADDRESS = {
    "firstName": "Alice",
    "lastName": "Liu",
    "addressLine1": "1 Market St",
    "city": "Shanghai",
    "state": "SH",
    "postalCode": "200000",
    "country": "CN",
}


class TestProfileApi:
    async def test_get_profile(self, client: AsyncClient, customer, customer_headers):
        response = await client.get("/api/v1/user/profile", headers=customer_headers)

        assert response.status_code == 200
        assert response.json()["data"]["email"] == customer.email
        assert response.json()["data"]["profile"] is None

    async def test_update_profile(self, client: AsyncClient, customer_headers):
        response = await client.put(
            "/api/v1/user/profile",
            json={"name": "Alice Wang", "firstName": "Alice", "location": "Shanghai"},
            headers=customer_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Profile updated"
        assert body["data"]["name"] == "Alice Wang"
        assert body["data"]["profile"]["location"] == "Shanghai"

    async def test_requires_login(self, client: AsyncClient):
        response = await client.get("/api/v1/user/profile")
        assert response.status_code == 401


class TestLoginRecordsApi:
    async def test_record_and_list(self, client: AsyncClient, customer_headers):
        created = await client.post(
            "/api/v1/user/login-records",
            headers={**customer_headers, "x-real-ip": "198.51.100.7", "user-agent": "pytest-agent"},
        )
        assert created.status_code == 201
        assert created.json()["data"]["ipAddress"] == "198.51.100.7"

        listed = await client.get("/api/v1/user/login-records", headers=customer_headers)
        [record] = listed.json()["data"]
        assert record["userAgent"] == "pytest-agent"


class TestAddressesApi:
    async def test_crud(self, client: AsyncClient, customer_headers):
        created = await client.post("/api/v1/user/addresses", json={**ADDRESS, "isDefault": True}, headers=customer_headers)
        assert created.status_code == 201
        address_id = created.json()["data"]["id"]
        assert created.json()["data"]["isDefault"] is True

        updated = await client.put(
            f"/api/v1/user/addresses/{address_id}", json={"city": "Hangzhou"}, headers=customer_headers
        )
        assert updated.status_code == 200
        assert updated.json()["data"]["city"] == "Hangzhou"

        listed = await client.get("/api/v1/user/addresses", headers=customer_headers)
        assert [a["id"] for a in listed.json()["data"]] == [address_id]

        deleted = await client.delete(f"/api/v1/user/addresses/{address_id}", headers=customer_headers)
        assert deleted.json() == {"success": True, "message": "Address deleted"}

        listed = await client.get("/api/v1/user/addresses", headers=customer_headers)
        assert listed.json()["data"] == []

    async def test_missing_fields(self, client: AsyncClient, customer_headers):
        response = await client.post("/api/v1/user/addresses", json={"firstName": "Alice"}, headers=customer_headers)
        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    async def test_unknown_address(self, client: AsyncClient, customer_headers):
        response = await client.delete("/api/v1/user/addresses/missing", headers=customer_headers)
        assert response.status_code == 404
        assert response.json()["code"] == "ADDRESS_NOT_FOUND"
