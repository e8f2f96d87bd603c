"""
Request Timing Middleware.

Times every request, reports it to Logfire, adds an ``X-Process-Time``
header and warns about slow requests.
"""

import time
from typing import Callable, Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from yoyo_mall.core.logging_config import get_logger
from yoyo_mall.core.monitoring import log_api_request
from yoyo_mall.server.core.config import settings

logger = get_logger(__name__)


class RequestTimingMiddleware(BaseHTTPMiddleware):
    """Trace API requests and their duration."""

    def __init__(self, app, slow_request_ms: Optional[float] = None) -> None:
        super().__init__(app)
        self.slow_request_ms = settings.monitoring.slow_request_ms if slow_request_ms is None else slow_request_ms

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.perf_counter()
        method = request.method
        path = request.url.path

        try:
            response = await call_next(request)
        except Exception:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.error(f"API request failed: {method} {path} after {duration_ms:.2f}ms")
            log_api_request(method=method, path=path, status_code=500, duration_ms=duration_ms)
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000
        log_api_request(method=method, path=path, status_code=response.status_code, duration_ms=duration_ms)
        response.headers["X-Process-Time"] = f"{duration_ms:.2f}"

        if duration_ms > self.slow_request_ms:
            logger.warning(
                f"Slow API request: {method} {path} took {duration_ms:.2f}ms",
                extra={"method": method, "path": path, "duration_ms": duration_ms, "status_code": response.status_code},
            )
        return response
