"""
I/O models for API requests and responses.

This package contains Pydantic-based I/O schemas that define the contract
between API endpoints and clients. These models are separate from database
entities to allow independent evolution of API contracts.

Modules:
- common: camelCase base model, money type and pagination
- users: registration, sign-in, profile, address and login record models
- catalog: product and category models
- orders: cart, order and Stripe payment models
- uploads: object storage upload models
- admin: admin console models
- analytics: performance metric models
"""

from .common import ApiModel, DataResponse, MessageResponse, Money, PaginationInfo

__all__ = ["ApiModel", "DataResponse", "MessageResponse", "Money", "PaginationInfo"]
