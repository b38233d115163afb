from __future__ import annotations

from typing import Any, List

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)


# PUBLIC_INTERFACE
class TodoFields(BaseModel):
    """
    Recognized fields of a create or update request body.

    Unknown fields are ignored. A JSON null, as the whole body or as a field
    value, leaves the defaults in place. Types are otherwise strict: a
    non-string title or a non-boolean completed flag makes the body malformed.
    """

    model_config = ConfigDict(
        extra="ignore",
        strict=True,
        json_schema_extra={"example": {"title": "Buy groceries", "completed": False}},
    )

    title: str = Field(default="", description="Short title for the todo item")
    completed: bool = Field(default=False, description="Completion status flag")

    @model_validator(mode="before")
    @classmethod
    def null_body(cls, data: Any) -> Any:
        return {} if data is None else data

    @field_validator("title", "completed", mode="before")
    @classmethod
    def null_is_default(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            return cls.model_fields[info.field_name].default
        return value


# PUBLIC_INTERFACE
class TodoOut(BaseModel):
    """
    Schema returned by the API for a Todo item.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "6710f3a2c0ffee0123456789",
                "title": "Buy groceries",
                "completed": False,
                "createdAt": "2026-10-18T09:30:00.123Z",
            }
        }
    )

    id: str = Field(..., description="Unique identifier of the todo item (24 hex characters)")
    title: str = Field(..., description="Short title for the todo item")
    completed: bool = Field(..., description="Completion status flag")
    createdAt: str = Field(..., description="Creation timestamp, ISO-8601 UTC")


# PUBLIC_INTERFACE
class TodoListOut(BaseModel):
    """Envelope for the list response."""

    data: List[TodoOut] = Field(..., description="All todo items")


class MessageOut(BaseModel):
    message: str


class ErrorOut(BaseModel):
    error: str
