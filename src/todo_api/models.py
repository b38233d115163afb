from __future__ import annotations

from datetime import datetime, timezone
from typing import TypedDict

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field, field_validator


# PUBLIC_INTERFACE
class TodoDocument(TypedDict):
    """
    Persistence shape of a Todo in the MongoDB collection.

    Fields:
    - _id: ObjectId assigned at creation
    - title: todo title
    - completed: completion flag
    - createdAt: BSON datetime (millisecond precision, UTC)
    """

    _id: ObjectId
    title: str
    completed: bool
    createdAt: datetime


# PUBLIC_INTERFACE
class Todo(BaseModel):
    """
    Domain model of a Todo item.

    Validated strictly from stored documents so that a document with a missing
    field or a wrong type is rejected instead of coerced.
    """

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        frozen=True,
        populate_by_name=True,
        strict=True,
    )

    id: ObjectId = Field(..., alias="_id")
    title: str
    completed: bool
    created_at: datetime = Field(..., alias="createdAt")

    @field_validator("created_at")
    @classmethod
    def as_utc(cls, v: datetime) -> datetime:
        """Naive datetimes come back from the driver in UTC; make that explicit."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)


# PUBLIC_INTERFACE
def utc_now() -> datetime:
    """Current UTC time truncated to the millisecond precision of BSON datetimes."""
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond - now.microsecond % 1000)
