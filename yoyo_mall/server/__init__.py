"""
YoYo Mall Server Package.

This package contains the web server implementation for the YoYo Mall storefront.

Subpackages:
    api: FastAPI route definitions and endpoint logic.
    core: Configuration and constants.
    exception_handlers: Error-to-response mapping.
    middleware: Request timing and tracing.
    services: Business logic and third-party integrations.
"""
