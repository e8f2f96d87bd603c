"""
Shared pieces of every mall table: the SQLModel base, id and clock helpers.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from pydantic import ConfigDict
from sqlmodel import SQLModel


class Base(SQLModel):
    """Base class for all mall tables."""

    model_config = ConfigDict(arbitrary_types_allowed=True)


def new_id() -> str:
    """Primary key for a new row (32 hex characters)."""
    return uuid.uuid4().hex


def utc_now() -> datetime:
    """Naive UTC timestamp, the form every datetime column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
