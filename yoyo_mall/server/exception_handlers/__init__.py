"""
Exception handlers for the YoYo Mall server.

This package contains custom exception handlers for different error types
and a setup function to register them with the FastAPI application.
"""

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError

from yoyo_mall.core.exceptions import MallError
from yoyo_mall.core.logging_config import get_logger

from .global_handler import global_exception_handler
from .mall_handler import mall_error_handler, validation_exception_handler

logger = get_logger(__name__)


def setup_exception_handlers(app: FastAPI) -> None:
    """
    Register exception handlers with the FastAPI application.

    This function should be called during application initialization to set up
    all custom exception handlers.

    Args:
        app: The FastAPI application instance
    """
    app.add_exception_handler(MallError, mall_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)
    logger.debug("Exception handlers registered successfully")


__all__ = [
    "global_exception_handler",
    "mall_error_handler",
    "setup_exception_handlers",
    "validation_exception_handler",
]
