"""
Exception hierarchy for the todo API.

Validation errors (InvalidIdentifier, MalformedBody, ValidationFailed) are
reported by the request handlers as 400 responses. Persistence errors
(StoreUnavailable, DecodeFailure) are raised by the repository and reported
as 500 responses. RequestAborted ends a request whose client has gone away.
Every error carries a human readable message and an optional context dict
that is logged but never returned to the client.
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class TodoApiError(Exception):
    """Base class for all application errors."""

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.context = dict(context or {})
        super().__init__(self.message)


class InvalidIdentifier(TodoApiError):
    """The value is not a well-formed todo identifier."""

    def __init__(self, value: Any, context: Optional[Dict[str, Any]] = None) -> None:
        ctx = dict(context or {})
        ctx["value"] = value
        super().__init__(message=f"Invalid identifier: {value!r}", context=ctx)
        self.value = value


class MalformedBody(TodoApiError):
    """The request body is not a JSON object of the expected shape."""

    def __init__(
        self,
        message: str = "Request body could not be decoded",
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message=message, context=context)


class ValidationFailed(TodoApiError):
    """Decoded input breaks a presence rule (e.g. empty title)."""

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        ctx = dict(context or {})
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class StoreUnavailable(TodoApiError):
    """The document store failed, timed out, or could not be reached."""

    def __init__(
        self,
        operation: str,
        message: str = "Document store unavailable",
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        ctx = dict(context or {})
        ctx["operation"] = operation
        super().__init__(message=message, context=ctx)
        self.operation = operation


class DecodeFailure(TodoApiError):
    """A stored document could not be mapped to a Todo."""

    def __init__(
        self,
        message: str = "Stored document could not be decoded",
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message=message, context=context)


class RequestAborted(TodoApiError):
    """The client disconnected while its store operation was still running."""

    def __init__(
        self,
        message: str = "Client disconnected",
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message=message, context=context)
