"""
Shared I/O building blocks.

All API models serialize with camelCase keys and accept either camelCase or
snake_case on input. Money is kept as ``Decimal`` internally and rendered as
a JSON number.
"""

from __future__ import annotations

import math
from decimal import Decimal
from typing import Annotated, Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel

Money = Annotated[Decimal, PlainSerializer(lambda v: float(v), return_type=float, when_used="json")]


class ApiModel(BaseModel):
    """Base for request and response schemas."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class PaginationInfo(ApiModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "PaginationInfo":
        total_pages = math.ceil(total / limit) if limit else 0
        return cls(
            page=page,
            limit=limit,
            total=total,
            total_pages=total_pages,
            has_next=page < total_pages,
            has_prev=page > 1,
        )


class MessageResponse(ApiModel):
    success: bool = True
    message: Optional[str] = None


class DataResponse(ApiModel):
    """Envelope for endpoints whose payload has no dedicated schema."""

    success: bool = True
    data: Any = None
    message: Optional[str] = None
    meta: Optional[Dict[str, Any]] = None
