"""
Handlers for expected errors.

Business errors (``MallError``) and request validation failures are
rendered in the ``{"success": false, "error", "code", "details"}`` envelope
that storefront clients branch on. The human readable ``error`` is
translated from the ``error`` namespace keyed by the error code.
"""

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from yoyo_mall.core.exceptions import AuthenticationError, MallError
from yoyo_mall.core.logging_config import get_logger
from yoyo_mall.server.services.i18n import negotiate_locale, translate

logger = get_logger(__name__)


def request_locale(request: Request) -> str:
    return negotiate_locale(
        accept_language=request.headers.get("accept-language"),
        explicit=request.query_params.get("locale"),
    )


def localized_message(request: Request, code: str, fallback: str) -> str:
    text = translate(code, locale=request_locale(request), namespace="error")
    return fallback if text == code else text


async def mall_error_handler(request: Request, exc: MallError) -> JSONResponse:
    """Render a business error with its own status code."""
    if exc.status_code >= 500:
        logger.error(f"{exc.code} in {request.method} {request.url.path}: {exc.message}")
    else:
        logger.info(f"{exc.code} ({exc.status_code}) in {request.method} {request.url.path}: {exc.message}")

    body = exc.to_dict()
    body["error"] = localized_message(request, exc.code, exc.message)
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationError) else None
    return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(body), headers=headers)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render request schema failures as 400 ``VALIDATION_ERROR``."""
    details = [
        {"field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"), "message": error.get("msg")}
        for error in exc.errors()
    ]
    logger.info(f"Validation failed for {request.method} {request.url.path}: {details}")
    return JSONResponse(
        status_code=400,
        content={
            "success": False,
            "error": localized_message(request, "VALIDATION_ERROR", "Invalid input data"),
            "code": "VALIDATION_ERROR",
            "details": jsonable_encoder(details),
        },
    )
