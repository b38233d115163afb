from __future__ import annotations

from typing import Any

from bson import ObjectId

from .errors import InvalidIdentifier


# PUBLIC_INTERFACE
def generate() -> ObjectId:
    """Return a new identifier (timestamp + random value + counter)."""
    return ObjectId()


# PUBLIC_INTERFACE
def parse(value: Any) -> ObjectId:
    """
    Parse the 24-character hex form of an identifier.

    Raises:
        InvalidIdentifier: value is not a string of exactly 24 hex characters.
    """
    # ObjectId() also accepts 12-byte values; only the hex text form is valid here.
    if not isinstance(value, str) or not ObjectId.is_valid(value):
        raise InvalidIdentifier(value)
    return ObjectId(value)


# PUBLIC_INTERFACE
def to_hex(identifier: ObjectId) -> str:
    """Return the lowercase hex wire form of an identifier."""
    return str(identifier)
