"""
Conversions between the JSON wire form, the Todo model and the stored document.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Iterable, Mapping

from pydantic import ValidationError

from . import identifiers
from .errors import DecodeFailure, MalformedBody, ValidationFailed
from .models import Todo, TodoDocument
from .schemas import TodoFields, TodoListOut, TodoOut


def _decode_fields(body: bytes) -> TodoFields:
    try:
        return TodoFields.model_validate_json(body)
    except ValidationError as e:
        raise MalformedBody(context={"errors": e.errors(include_url=False)}) from e


# PUBLIC_INTERFACE
def decode_create_request(body: bytes) -> TodoFields:
    """Decode a create body; title defaults to '' and completed to False."""
    return _decode_fields(body)


# PUBLIC_INTERFACE
def validate_new_todo(fields: TodoFields) -> TodoFields:
    """
    Raises:
        ValidationFailed: the title is empty.
    """
    if fields.title == "":
        raise ValidationFailed("Title is required", field="title")
    return fields


# PUBLIC_INTERFACE
def decode_update_request(body: bytes) -> TodoFields:
    """Decode an update body. Same recognized fields and defaults as create."""
    return _decode_fields(body)


# PUBLIC_INTERFACE
def format_timestamp(value: datetime) -> str:
    """ISO-8601 UTC with millisecond precision, e.g. 2026-10-18T09:30:00.123Z."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    text = value.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return text.replace("+00:00", "Z")


# PUBLIC_INTERFACE
def to_wire(todo: Todo) -> TodoOut:
    return TodoOut(
        id=identifiers.to_hex(todo.id),
        title=todo.title,
        completed=todo.completed,
        createdAt=format_timestamp(todo.created_at),
    )


# PUBLIC_INTERFACE
def encode(todo: Todo) -> bytes:
    """Encode a single Todo as a JSON object."""
    return to_wire(todo).model_dump_json().encode("utf-8")


# PUBLIC_INTERFACE
def encode_list(todos: Iterable[Todo]) -> bytes:
    """Encode todos as {"data": [...]} in the order given."""
    envelope = TodoListOut(data=[to_wire(t) for t in todos])
    return envelope.model_dump_json().encode("utf-8")


# PUBLIC_INTERFACE
def to_document(todo: Todo) -> TodoDocument:
    return {
        "_id": todo.id,
        "title": todo.title,
        "completed": todo.completed,
        "createdAt": todo.created_at,
    }


# PUBLIC_INTERFACE
def from_document(doc: Mapping[str, Any]) -> Todo:
    """
    Map a stored document to a Todo.

    Raises:
        DecodeFailure: a field is missing or has the wrong type.
    """
    try:
        return Todo.model_validate(dict(doc))
    except ValidationError as e:
        raise DecodeFailure(
            context={"_id": str(doc.get("_id")), "errors": e.errors(include_url=False)}
        ) from e
