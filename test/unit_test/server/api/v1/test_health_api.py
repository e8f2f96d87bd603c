from unittest.mock import AsyncMock

from httpx import AsyncClient
from sqlalchemy.exc import OperationalError

from yoyo_mall.server.core import constant


class TestHealthApi:
    async def test_health(self, client: AsyncClient):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    async def test_ready(self, client: AsyncClient):
        response = await client.get("/health/ready")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "database": "ok"}

    async def test_ready_reports_database_failure(self, client: AsyncClient, session, monkeypatch):
        monkeypatch.setattr(session, "execute", AsyncMock(side_effect=OperationalError("SELECT 1", {}, Exception("down"))))

        response = await client.get("/health/ready")

        assert response.status_code == 503
        assert response.json() == {"status": "unavailable", "database": "error"}

    async def test_version(self, client: AsyncClient):
        response = await client.get("/version")
        assert response.json() == {"version": constant.VERSION, "schema_version": constant.SCHEMA_VERSION}
