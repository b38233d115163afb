from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, TypeVar

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse

from .. import identifiers, mapper
from ..errors import (
    DecodeFailure,
    InvalidIdentifier,
    MalformedBody,
    RequestAborted,
    StoreUnavailable,
    ValidationFailed,
)
from ..models import Todo, utc_now
from ..repositories import Repository
from ..schemas import ErrorOut, MessageOut, TodoFields, TodoListOut, TodoOut

logger = logging.getLogger(__name__)

T = TypeVar("T")

router = APIRouter(
    prefix="/api/v1/todos",
    tags=["todos"],
)

_JSON = "application/json"

_REQUEST_BODY = {
    "requestBody": {
        "required": True,
        "content": {_JSON: {"schema": TodoFields.model_json_schema()}},
    }
}


def get_repository(request: Request) -> Repository:
    """
    Dependency returning the repository attached to the running app.
    """
    return request.app.state.repository


async def _wait_for_disconnect(request: Request) -> None:
    while True:
        message = await request.receive()
        if message["type"] == "http.disconnect":
            return


# PUBLIC_INTERFACE
async def run_until_disconnect(request: Request, operation: Awaitable[T]) -> T:
    """
    Await a store operation, cancelling it if the client disconnects first.

    Starlette does not cancel a handler when its client goes away, so the
    request stream is watched alongside the operation.

    Raises:
        RequestAborted: the client disconnected before the operation finished.
    """
    task = asyncio.ensure_future(operation)
    watcher = asyncio.ensure_future(_wait_for_disconnect(request))
    try:
        await asyncio.wait({task, watcher}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        task.cancel()
        raise
    finally:
        watcher.cancel()
    if task.done():
        return task.result()
    task.cancel()
    await asyncio.wait({task})
    raise RequestAborted()


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _message(message: str) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_200_OK, content={"message": message})


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=TodoListOut,
    summary="List Todos",
    description="List every todo, ordered by creation time.",
    responses={500: {"model": ErrorOut, "description": "Store failure"}},
)
async def list_todos(request: Request, repo: Repository = Depends(get_repository)) -> Response:
    """
    Return all todos wrapped as {"data": [...]}.
    """
    try:
        todos = await run_until_disconnect(request, repo.list_all())
    except StoreUnavailable:
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to fetch todos")
    except DecodeFailure as e:
        logger.error("Stored todo could not be decoded: %s", e.context)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to decode todos")
    return Response(content=mapper.encode_list(todos), media_type=_JSON)


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=TodoOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create Todo",
    description="Create a new todo. id and createdAt are assigned by the server.",
    responses={
        400: {"model": ErrorOut, "description": "Invalid body or missing title"},
        500: {"model": ErrorOut, "description": "Store failure"},
    },
    openapi_extra=_REQUEST_BODY,
)
async def create_todo(request: Request, repo: Repository = Depends(get_repository)) -> Response:
    """
    Create a todo from {"title": str, "completed"?: bool}.
    """
    try:
        fields = mapper.decode_create_request(await request.body())
    except MalformedBody:
        return _error(status.HTTP_400_BAD_REQUEST, "Invalid request body")
    try:
        mapper.validate_new_todo(fields)
    except ValidationFailed as e:
        return _error(status.HTTP_400_BAD_REQUEST, e.message)

    todo = Todo(
        id=identifiers.generate(),
        title=fields.title,
        completed=fields.completed,
        created_at=utc_now(),
    )
    try:
        await run_until_disconnect(request, repo.insert(todo))
    except StoreUnavailable:
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to create todo")
    return Response(
        content=mapper.encode(todo),
        status_code=status.HTTP_201_CREATED,
        media_type=_JSON,
    )


# PUBLIC_INTERFACE
@router.put(
    "/{todo_id}",
    response_model=MessageOut,
    summary="Update Todo",
    description=(
        "Set title and completed of a todo. Reports success even when no todo "
        "has the given id; the response does not confirm that the todo exists."
    ),
    responses={
        400: {"model": ErrorOut, "description": "Invalid id or body"},
        500: {"model": ErrorOut, "description": "Store failure"},
    },
    openapi_extra=_REQUEST_BODY,
)
async def update_todo(
    todo_id: str, request: Request, repo: Repository = Depends(get_repository)
) -> Response:
    """
    Update title and completed of the todo with the given id.
    """
    try:
        oid = identifiers.parse(todo_id)
    except InvalidIdentifier:
        return _error(status.HTTP_400_BAD_REQUEST, "Invalid ID format")
    try:
        fields = mapper.decode_update_request(await request.body())
    except MalformedBody:
        return _error(status.HTTP_400_BAD_REQUEST, "Invalid request body")

    try:
        await run_until_disconnect(request, repo.update_by_id(oid, fields))
    except StoreUnavailable:
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to update todo")
    return _message("Todo updated successfully")


# PUBLIC_INTERFACE
@router.delete(
    "/{todo_id}",
    response_model=MessageOut,
    summary="Delete Todo",
    description=(
        "Delete a todo by id. Deleting an id that does not exist also reports "
        "success, so repeated deletes are harmless."
    ),
    responses={
        400: {"model": ErrorOut, "description": "Invalid id"},
        500: {"model": ErrorOut, "description": "Store failure"},
    },
)
async def delete_todo(
    todo_id: str, request: Request, repo: Repository = Depends(get_repository)
) -> Response:
    """
    Delete the todo with the given id.
    """
    try:
        oid = identifiers.parse(todo_id)
    except InvalidIdentifier:
        return _error(status.HTTP_400_BAD_REQUEST, "Invalid ID format")

    try:
        await run_until_disconnect(request, repo.delete_by_id(oid))
    except StoreUnavailable:
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to delete todo")
    return _message("Todo deleted successfully")
