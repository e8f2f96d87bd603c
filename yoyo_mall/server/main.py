"""
Main Application Entry Point.

This module initializes the FastAPI application, configures middleware (CORS and
request timing) and Logfire, registers the exception handlers and includes all
API routers.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from yoyo_mall.core.logging_config import get_logger, setup_logging
from yoyo_mall.core.monitoring import initialize_logfire

from .api import locales
from .api.v1 import (
    admin,
    analytics,
    auth,
    cart,
    categories,
    health,
    orders,
    payments,
    products,
    uploads,
    users,
)
from .core import constant
from .core.config import settings
from yoyo_mall.core.database import init_db
from .exception_handlers import setup_exception_handlers
from .middleware import RequestTimingMiddleware

# Initialize logging
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifespan events.

    Creates missing tables on startup. A failure is logged and the server
    keeps running so ``/health/ready`` can report it.
    """
    # Startup
    try:
        logger.info("Starting up YoYo Mall API...")
        await init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}", exc_info=True)

    yield

    # Shutdown
    logger.info("Shutting down YoYo Mall API...")


app = FastAPI(
    title=constant.PROJECT_NAME,
    description="""
    YoYo Mall API

    Backend for the YoYo Mall storefront and admin console: accounts, catalog,
    cart, checkout, Stripe payments, uploads, translations and analytics.
    """,
    version=constant.VERSION,
    openapi_url=f"{constant.API_V1_STR}/openapi.json",
    docs_url=f"{constant.API_V1_STR}/docs",
    redoc_url=f"{constant.API_V1_STR}/redoc",
    lifespan=lifespan,
)

cors = settings.cors
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors.origins,
    allow_credentials=cors.allow_credentials,
    allow_methods=cors.allow_methods,
    allow_headers=cors.allow_headers,
)
app.add_middleware(RequestTimingMiddleware)

initialize_logfire(app)

setup_exception_handlers(app)

app.include_router(health.router, tags=["health"])
app.include_router(locales.router, prefix="/locales", tags=["locales"])
app.include_router(auth.router, prefix=f"{constant.API_V1_STR}/auth", tags=["auth"])
app.include_router(users.router, prefix=f"{constant.API_V1_STR}/user", tags=["user"])
app.include_router(products.router, prefix=f"{constant.API_V1_STR}/products", tags=["products"])
app.include_router(categories.router, prefix=f"{constant.API_V1_STR}/categories", tags=["categories"])
app.include_router(cart.router, prefix=f"{constant.API_V1_STR}/cart", tags=["cart"])
app.include_router(orders.router, prefix=f"{constant.API_V1_STR}/orders", tags=["orders"])
app.include_router(payments.router, prefix=f"{constant.API_V1_STR}/payments/stripe", tags=["payments"])
app.include_router(uploads.router, prefix=f"{constant.API_V1_STR}/upload", tags=["upload"])
app.include_router(admin.router, prefix=f"{constant.API_V1_STR}/admin", tags=["admin"])
app.include_router(analytics.router, prefix=f"{constant.API_V1_STR}/analytics", tags=["analytics"])
