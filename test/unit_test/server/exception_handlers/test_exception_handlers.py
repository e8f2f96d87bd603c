"""
Unit tests for server exception handlers.

Tests cover the global 500 handler, the localized business error envelope
and request validation failures.
"""

import json
from unittest.mock import Mock, patch

import pytest
from fastapi import FastAPI, Request
from httpx import ASGITransport, AsyncClient
from pydantic import BaseModel

from yoyo_mall.core.exceptions import (
    AuthenticationError,
    InsufficientStockError,
    NotFoundError,
    PaymentGatewayError,
)
from yoyo_mall.server.exception_handlers import setup_exception_handlers
from yoyo_mall.server.exception_handlers.global_handler import global_exception_handler
from yoyo_mall.server.exception_handlers.mall_handler import mall_error_handler


def _body(response) -> dict:
    return json.loads(response.body.decode())


@pytest.fixture
def mock_request():
    """Create a mock request object."""
    request = Mock(spec=Request)
    request.method = "GET"
    request.url.path = "/api/v1/test"
    request.query_params = {}
    request.headers = {}
    request.client = Mock()
    request.client.host = "127.0.0.1"
    return request


class TestGlobalExceptionHandler:
    """Test suite for global exception handler."""

    @pytest.mark.asyncio
    async def test_exception_handler_logs_error(self, mock_request):
        exc = ValueError("Test error")

        with patch("yoyo_mall.server.exception_handlers.global_handler.logger") as mock_logger:
            await global_exception_handler(mock_request, exc)

            mock_logger.error.assert_called_once()
            call_args = mock_logger.error.call_args
            assert "Unhandled ValueError" in call_args[0][0]
            assert "Test error" in call_args[0][0]
            assert call_args[1]["exc_info"] is True
            extra = call_args[1]["extra"]
            assert extra["error_type"] == "ValueError"
            assert extra["method"] == "GET"
            assert extra["path"] == "/api/v1/test"
            assert extra["client"] == "127.0.0.1"
            assert isinstance(extra["traceback"], str)

    @pytest.mark.asyncio
    async def test_exception_handler_response_shape(self, mock_request):
        exc = RuntimeError("Test error")

        with patch("yoyo_mall.server.exception_handlers.global_handler.logger"):
            response = await global_exception_handler(mock_request, exc)

        assert response.status_code == 500
        body = _body(response)
        assert body["detail"] == "Internal server error"
        assert body["error_id"] == id(exc)
        assert body["error_type"] == "RuntimeError"

    @pytest.mark.asyncio
    async def test_exception_handler_handles_missing_client(self, mock_request):
        mock_request.client = None

        with patch("yoyo_mall.server.exception_handlers.global_handler.logger") as mock_logger:
            await global_exception_handler(mock_request, KeyError("missing_key"))

            assert mock_logger.error.call_args[1]["extra"]["client"] == "unknown"

    @pytest.mark.asyncio
    async def test_exception_handler_reports_to_monitoring(self, mock_request):
        with patch("yoyo_mall.server.exception_handlers.global_handler.logger"), patch(
            "yoyo_mall.server.exception_handlers.global_handler.log_error"
        ) as mock_log_error:
            await global_exception_handler(mock_request, KeyError("missing_key"))

        error_type, _, context = mock_log_error.call_args.args
        assert error_type == "KeyError"
        assert context["path"] == "/api/v1/test"

    @pytest.mark.asyncio
    async def test_exception_handler_error_id_is_unique(self, mock_request):
        with patch("yoyo_mall.server.exception_handlers.global_handler.logger"):
            response1 = await global_exception_handler(mock_request, RuntimeError("Error 1"))
            response2 = await global_exception_handler(mock_request, RuntimeError("Error 2"))

        assert _body(response1)["error_id"] != _body(response2)["error_id"]


class TestMallErrorHandler:
    @pytest.mark.asyncio
    async def test_localizes_known_code(self, mock_request):
        mock_request.headers = {"accept-language": "en-US,en;q=0.9"}
        exc = NotFoundError("Product missing", code="PRODUCT_NOT_FOUND")

        response = await mall_error_handler(mock_request, exc)

        assert response.status_code == 404
        assert _body(response) == {"success": False, "error": "Product not found", "code": "PRODUCT_NOT_FOUND"}

    @pytest.mark.asyncio
    async def test_defaults_to_chinese(self, mock_request):
        exc = NotFoundError("Product missing", code="PRODUCT_NOT_FOUND")

        response = await mall_error_handler(mock_request, exc)

        assert _body(response)["error"] == "商品不存在"

    @pytest.mark.asyncio
    async def test_query_locale_wins(self, mock_request):
        mock_request.headers = {"accept-language": "zh-CN"}
        mock_request.query_params = {"locale": "en-US"}

        response = await mall_error_handler(mock_request, NotFoundError("x", code="PRODUCT_NOT_FOUND"))

        assert _body(response)["error"] == "Product not found"

    @pytest.mark.asyncio
    async def test_unknown_code_keeps_message(self, mock_request):
        response = await mall_error_handler(mock_request, NotFoundError("Nothing here", code="SOMETHING_ODD"))

        assert _body(response)["error"] == "Nothing here"

    @pytest.mark.asyncio
    async def test_details_are_included(self, mock_request):
        exc = InsufficientStockError("Only 1 left", available_quantity=1)

        response = await mall_error_handler(mock_request, exc)

        body = _body(response)
        assert response.status_code == 400
        assert body["code"] == "INSUFFICIENT_STOCK"
        assert body["details"] == {"availableQuantity": 1}

    @pytest.mark.asyncio
    async def test_authentication_error_sets_challenge_header(self, mock_request):
        response = await mall_error_handler(mock_request, AuthenticationError("Login"))

        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"

    @pytest.mark.asyncio
    async def test_server_side_errors_log_as_error(self, mock_request):
        with patch("yoyo_mall.server.exception_handlers.mall_handler.logger") as mock_logger:
            response = await mall_error_handler(mock_request, PaymentGatewayError("Stripe down"))

        assert response.status_code == 502
        mock_logger.error.assert_called_once()
        mock_logger.info.assert_not_called()


class Payload(BaseModel):
    quantity: int


@pytest.fixture
def app() -> FastAPI:
    app = FastAPI()
    setup_exception_handlers(app)

    @app.get("/boom")
    async def boom():
        raise RuntimeError("kaboom")

    @app.get("/missing")
    async def missing():
        raise NotFoundError("Order not found", code="ORDER_NOT_FOUND")

    @app.post("/items")
    async def items(payload: Payload):
        return payload

    return app


class TestSetupExceptionHandlers:
    def test_registers_handlers(self, app):
        from fastapi.exceptions import RequestValidationError

        from yoyo_mall.core.exceptions import MallError

        assert Exception in app.exception_handlers
        assert MallError in app.exception_handlers
        assert RequestValidationError in app.exception_handlers

    @pytest.mark.asyncio
    async def test_unhandled_error_becomes_500(self, app):
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://localhost") as client:
            response = await client.get("/boom")

        assert response.status_code == 500
        assert response.json()["error_type"] == "RuntimeError"

    @pytest.mark.asyncio
    async def test_mall_error_envelope(self, app):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://localhost") as client:
            response = await client.get("/missing", headers={"Accept-Language": "en-US"})

        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Order not found", "code": "ORDER_NOT_FOUND"}

    @pytest.mark.asyncio
    async def test_validation_error_is_400(self, app):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://localhost") as client:
            response = await client.post("/items", json={"quantity": "many"}, headers={"Accept-Language": "en-US"})

        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "VALIDATION_ERROR"
        assert body["error"] == "Invalid input data"
        assert body["details"][0]["field"] == "quantity"
