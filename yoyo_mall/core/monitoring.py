"""
Monitoring and Tracing Configuration Module.

Integration with Pydantic Logfire for tracing the YoYo Mall API:
- API endpoint tracing and request timing
- Database and outgoing HTTP call instrumentation
- Payment lifecycle events
- Error tracking

Nothing is sent unless ``LOGFIRE_ENABLED`` is true and ``LOGFIRE_TOKEN`` is set.
The ``log_*`` helpers are no-ops until ``initialize_logfire`` has succeeded.
"""

from typing import Any, Optional

import logfire
from fastapi import FastAPI

from yoyo_mall.core.logging_config import get_logger
from yoyo_mall.server.core.config import MonitoringConfig, settings

logger = get_logger(__name__)

_enabled = False


def is_enabled() -> bool:
    return _enabled


def initialize_logfire(app: Optional[FastAPI] = None, config: Optional[MonitoringConfig] = None) -> bool:
    """
    Configure Logfire and instrument SQLAlchemy, HTTPX and FastAPI.

    Args:
        app: FastAPI application to instrument (optional)
        config: Monitoring configuration, defaults to ``settings.monitoring``

    Returns:
        True when Logfire was configured.
    """
    global _enabled
    cfg = config or settings.monitoring

    if not cfg.enabled:
        logger.info("Logfire monitoring is disabled. Set LOGFIRE_ENABLED=true to enable.")
        return False

    if not cfg.token:
        logger.warning(
            "Logfire is enabled but LOGFIRE_TOKEN is not set. "
            "Monitoring will not work. Set LOGFIRE_TOKEN to enable Logfire."
        )
        return False

    logfire.configure(
        token=cfg.token,
        service_name=cfg.service_name,
        environment=cfg.environment,
        sampling=logfire.SamplingOptions(head=cfg.sample_rate),
    )

    if cfg.trace_sqlalchemy:
        try:
            logfire.instrument_sqlalchemy()
            logger.info("Logfire: SQLAlchemy instrumentation enabled")
        except Exception as e:
            logger.warning(f"Failed to instrument SQLAlchemy: {e}")

    if cfg.trace_httpx:
        try:
            logfire.instrument_httpx()
            logger.info("Logfire: HTTPX instrumentation enabled")
        except Exception as e:
            logger.warning(f"Failed to instrument HTTPX: {e}")

    if cfg.trace_fastapi and app is not None:
        try:
            logfire.instrument_fastapi(app=app)
            logger.info("Logfire: FastAPI instrumentation enabled")
        except Exception as e:
            logger.warning(f"Failed to instrument FastAPI: {e}")

    _enabled = True
    logger.info(f"Logfire monitoring initialized: environment={cfg.environment}, service={cfg.service_name}")
    return True


def log_api_request(method: str, path: str, status_code: int, duration_ms: float) -> None:
    """
    Log an API request with its duration.

    Args:
        method: HTTP method
        path: Request path
        status_code: HTTP status code
        duration_ms: Request duration in milliseconds
    """
    if not _enabled:
        return
    logfire.info(
        "API request completed",
        method=method,
        path=path,
        status_code=status_code,
        duration_ms=duration_ms,
    )


def log_payment_event(event: str, payment_id: Optional[str], **attributes: Any) -> None:
    """Record a payment lifecycle event (intent created, webhook applied, refund)."""
    if not _enabled:
        return
    logfire.info(f"Payment {event}", payment_id=payment_id, **attributes)


def log_error(error_type: str, error_message: str, context: Optional[dict] = None) -> None:
    """
    Log an error with context for debugging.

    Args:
        error_type: Type of error
        error_message: Error message
        context: Additional context dictionary
    """
    if not _enabled:
        return
    logfire.error(f"{error_type}: {error_message}", **(context or {}))
