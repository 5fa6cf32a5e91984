"""Shared SQLModel base plus the id and timestamp defaults every table uses."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional
from uuid import uuid4

from pydantic import ConfigDict
from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel


class Base(SQLModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)


def utc_now() -> datetime:
    """Current UTC time as a naive datetime, the form every timestamp column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Convert an aware datetime (e.g. from a query string) to the stored naive UTC form."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def timestamp_field(**kwargs: Any) -> Any:
    """
    ``Field`` for a timestamp column.

    Columns are ``TIMESTAMP WITHOUT TIME ZONE`` holding naive UTC values; the
    type is pinned so newer SQLModel releases do not switch to a tz-aware
    column type that rejects naive values.
    """
    return Field(sa_type=DateTime(timezone=False), **kwargs)


def new_id() -> str:
    """Primary keys are UUID4 strings, matching the ids issued by the identity provider."""
    return str(uuid4())
