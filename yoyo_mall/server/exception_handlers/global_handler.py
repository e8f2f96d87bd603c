"""
Fallback handler for exceptions no other handler claims.

Business errors (``MallError``) and request validation errors have their own
handlers; anything reaching this one is a bug or an outage. The client gets an
opaque 500 with an ``error_id`` that support can grep for in the logs.
"""

import traceback

from fastapi import Request
from fastapi.responses import JSONResponse

from yoyo_mall.core.logging_config import get_logger
from yoyo_mall.core.monitoring import log_error

logger = get_logger(__name__)


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log the failure with request context and answer 500."""
    error_id = id(exc)
    error_type = type(exc).__name__
    context = {
        "error_id": error_id,
        "method": request.method,
        "path": request.url.path,
        "query_params": dict(request.query_params),
        "client": request.client.host if request.client else "unknown",
        "error_type": error_type,
    }

    logger.error(
        f"Unhandled {error_type} [{error_id}] in {request.method} {request.url.path}: {exc}",
        exc_info=True,
        extra={**context, "traceback": traceback.format_exc()},
    )
    log_error(error_type, str(exc), {"error_id": error_id, "method": request.method, "path": request.url.path})

    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "error_id": error_id,
            "error_type": error_type,
        },
    )
