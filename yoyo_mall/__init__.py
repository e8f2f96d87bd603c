"""YoYo Mall.

An async storefront and admin API for a multi-locale online shop.

Core subpackages
----------------

- ``yoyo_mall.core``:

  - Logging configuration and the domain exception hierarchy.
  - The database layer: SQLModel entities, async repositories and the
    engine/session helpers.
  - Pydantic I/O schemas shared by the API layer.

- ``yoyo_mall.server``:

  - The FastAPI application, routers and exception handlers.
  - Services wrapping third-party systems (Stripe, S3-compatible object
    storage, Google sign-in) and business rules (pricing, inventory, i18n).
"""
