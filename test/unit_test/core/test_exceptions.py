"""Unit tests for the domain exception hierarchy."""

import pytest

from yoyo_mall.core.exceptions import (
    AuthenticationError,
    ConfigurationError,
    ConflictError,
    InsufficientStockError,
    MallError,
    NotFoundError,
    PaymentGatewayError,
    PermissionDeniedError,
    StorageError,
    ValidationFailedError,
)


class TestMallError:
    def test_defaults(self):
        exc = MallError("Something broke")

        assert exc.message == "Something broke"
        assert exc.code == "MALL_ERROR"
        assert exc.status_code == 400
        assert exc.details == {}
        assert str(exc) == "Something broke"

    def test_overrides(self):
        exc = MallError("Nope", code="CUSTOM", status_code=418, details={"field": "x"})

        assert exc.code == "CUSTOM"
        assert exc.status_code == 418
        assert exc.to_dict() == {"success": False, "error": "Nope", "code": "CUSTOM", "details": {"field": "x"}}

    def test_to_dict_omits_empty_details(self):
        assert "details" not in NotFoundError("gone").to_dict()

    def test_status_override_is_per_instance(self):
        MallError("x", status_code=409)

        assert MallError("y").status_code == 400

    def test_repr(self):
        assert repr(NotFoundError("Product not found", code="PRODUCT_NOT_FOUND")) == (
            "NotFoundError(code='PRODUCT_NOT_FOUND', message='Product not found')"
        )


@pytest.mark.parametrize(
    "exc_type,status_code,code",
    [
        (ValidationFailedError, 400, "VALIDATION_ERROR"),
        (ConflictError, 400, "CONFLICT"),
        (AuthenticationError, 401, "UNAUTHORIZED"),
        (PermissionDeniedError, 403, "FORBIDDEN"),
        (NotFoundError, 404, "NOT_FOUND"),
        (PaymentGatewayError, 502, "STRIPE_ERROR"),
        (StorageError, 502, "STORAGE_ERROR"),
        (ConfigurationError, 500, "CONFIGURATION_ERROR"),
    ],
)
def test_subclass_defaults(exc_type, status_code, code):
    exc = exc_type("message")

    assert isinstance(exc, MallError)
    assert exc.status_code == status_code
    assert exc.code == code


def test_insufficient_stock_carries_available_quantity():
    exc = InsufficientStockError("Only 2 left", available_quantity=2, productId="p1")

    assert isinstance(exc, ValidationFailedError)
    assert exc.code == "INSUFFICIENT_STOCK"
    assert exc.available_quantity == 2
    assert exc.details == {"availableQuantity": 2, "productId": "p1"}
