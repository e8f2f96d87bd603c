"""
Domain exceptions for YoYo Mall.

Every error carries a stable machine-readable ``code`` (for example
``PRODUCT_NOT_FOUND``) that clients branch on and that the error translation
namespace is keyed by, plus the HTTP status the API layer should use.
"""

from typing import Any, Optional


class MallError(Exception):
    """Base exception for all business errors raised by the application."""

    status_code: int = 400
    default_code: str = "MALL_ERROR"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        if status_code is not None:
            self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a JSON-serializable dictionary."""
        result: dict[str, Any] = {"success": False, "error": self.message, "code": self.code}
        if self.details:
            result["details"] = self.details
        return result

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


class ValidationFailedError(MallError):
    """Request data passed schema validation but failed a business rule."""

    status_code = 400
    default_code = "VALIDATION_ERROR"


class ConflictError(MallError):
    """The request conflicts with existing state (duplicate SKU, email, slug...)."""

    status_code = 400
    default_code = "CONFLICT"


class AuthenticationError(MallError):
    status_code = 401
    default_code = "UNAUTHORIZED"


class PermissionDeniedError(MallError):
    status_code = 403
    default_code = "FORBIDDEN"


class NotFoundError(MallError):
    status_code = 404
    default_code = "NOT_FOUND"


class InsufficientStockError(ValidationFailedError):
    """Raised when a cart or order line asks for more than is available."""

    default_code = "INSUFFICIENT_STOCK"

    def __init__(self, message: str, available_quantity: int, **details: Any):
        super().__init__(message, details={"availableQuantity": available_quantity, **details})
        self.available_quantity = available_quantity


class PaymentGatewayError(MallError):
    status_code = 502
    default_code = "STRIPE_ERROR"


class StorageError(MallError):
    status_code = 502
    default_code = "STORAGE_ERROR"


class ConfigurationError(MallError):
    status_code = 500
    default_code = "CONFIGURATION_ERROR"
