from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Awaitable, List, Tuple, TypeVar

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection
from pymongo import ASCENDING
from pymongo.errors import PyMongoError

from .errors import StoreUnavailable
from .mapper import from_document, to_document
from .models import Todo
from .schemas import TodoFields
from .settings import Settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Stable listing order: creation time, then id for todos created in the same millisecond.
LIST_SORT = [("createdAt", ASCENDING), ("_id", ASCENDING)]


# PUBLIC_INTERFACE
class Repository(ABC):
    """Abstract repository contract for todo storage backends."""

    @abstractmethod
    async def list_all(self) -> List[Todo]:
        """Return every stored Todo."""

    @abstractmethod
    async def insert(self, todo: Todo) -> None:
        """Store a new Todo. Not idempotent."""

    @abstractmethod
    async def update_by_id(self, todo_id: ObjectId, fields: TodoFields) -> None:
        """Set title and completed. Succeeds even when no Todo has that id."""

    @abstractmethod
    async def delete_by_id(self, todo_id: ObjectId) -> None:
        """Remove a Todo. Succeeds even when no Todo has that id."""

    @abstractmethod
    async def ping(self) -> None:
        """Check that the store answers."""


class MongoRepository(Repository):
    """
    Repository backed by a MongoDB collection through motor.

    Every operation is bounded by a timeout; exceeding it cancels the wait and
    raises StoreUnavailable. Driver errors are raised as StoreUnavailable as
    well. Nothing is retried.
    """

    def __init__(
        self,
        collection: AsyncIOMotorCollection,
        read_timeout: float = 10.0,
        write_timeout: float = 5.0,
    ) -> None:
        self._collection = collection
        self._read_timeout = read_timeout
        self._write_timeout = write_timeout

    async def _run(self, operation: str, awaitable: Awaitable[T], timeout: float) -> T:
        try:
            return await asyncio.wait_for(awaitable, timeout=timeout)
        except asyncio.TimeoutError as e:
            logger.error("%s timed out after %.1fs", operation, timeout)
            raise StoreUnavailable(operation, context={"timeout": timeout}) from e
        except PyMongoError as e:
            logger.error("%s failed: %s", operation, e)
            raise StoreUnavailable(operation, context={"cause": str(e)}) from e

    async def list_all(self) -> List[Todo]:
        cursor = self._collection.find({}).sort(LIST_SORT)
        docs = await self._run("list", cursor.to_list(length=None), self._read_timeout)
        # DecodeFailure propagates as-is
        return [from_document(doc) for doc in docs]

    async def insert(self, todo: Todo) -> None:
        await self._run(
            "insert",
            self._collection.insert_one(to_document(todo)),
            self._write_timeout,
        )

    async def update_by_id(self, todo_id: ObjectId, fields: TodoFields) -> None:
        result = await self._run(
            "update",
            self._collection.update_one(
                {"_id": todo_id},
                {"$set": {"title": fields.title, "completed": fields.completed}},
            ),
            self._write_timeout,
        )
        if result.matched_count == 0:
            logger.debug("update matched no todo with id %s", todo_id)

    async def delete_by_id(self, todo_id: ObjectId) -> None:
        result = await self._run(
            "delete",
            self._collection.delete_one({"_id": todo_id}),
            self._write_timeout,
        )
        if result.deleted_count == 0:
            logger.debug("delete matched no todo with id %s", todo_id)

    async def ping(self) -> None:
        await self._run(
            "ping",
            self._collection.database.command("ping"),
            self._read_timeout,
        )


# PUBLIC_INTERFACE
async def connect(settings: Settings) -> Tuple[AsyncIOMotorClient, MongoRepository]:
    """
    Build the motor client and repository from settings and verify liveness once.

    Raises:
        StoreUnavailable: the server did not answer a ping within CONNECT_TIMEOUT.
    """
    timeout_ms = int(settings.connect_timeout * 1000)
    client: AsyncIOMotorClient = AsyncIOMotorClient(
        settings.mongodb_uri,
        serverSelectionTimeoutMS=timeout_ms,
        connectTimeoutMS=timeout_ms,
        tz_aware=True,
    )
    collection = client[settings.db_name][settings.collection_name]
    repository = MongoRepository(
        collection,
        read_timeout=settings.read_timeout,
        write_timeout=settings.write_timeout,
    )
    try:
        await repository._run(
            "connect", client.admin.command("ping"), settings.connect_timeout
        )
    except StoreUnavailable:
        client.close()
        raise
    logger.info("Connected to MongoDB database %r", settings.db_name)
    return client, repository
