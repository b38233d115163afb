"""
Shared fixtures: an in-memory stand-in for a motor collection, a repository
built on it, and a TestClient for an app using that repository.
"""
from __future__ import annotations

import asyncio
import copy
from types import SimpleNamespace
from typing import Any, Dict, List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient
from pymongo.errors import DuplicateKeyError

from todo_api.main import create_app
from todo_api.repositories import MongoRepository
from todo_api.settings import Settings


class FakeCursor:
    def __init__(self, collection: "FakeCollection", docs: List[Dict[str, Any]]) -> None:
        self._collection = collection
        self._docs = docs

    def sort(self, keys: List[Tuple[str, int]]) -> "FakeCursor":
        for field, direction in reversed(keys):
            self._docs.sort(key=lambda d: (field in d, d.get(field)), reverse=direction < 0)
        return self

    async def to_list(self, length: Optional[int] = None) -> List[Dict[str, Any]]:
        await self._collection._io()
        docs = self._docs if length is None else self._docs[:length]
        return [copy.deepcopy(d) for d in docs]


class FakeDatabase:
    def __init__(self, collection: "FakeCollection") -> None:
        self._collection = collection

    async def command(self, name: str) -> Dict[str, Any]:
        await self._collection._io()
        return {"ok": 1.0}


class FakeCollection:
    """
    The subset of AsyncIOMotorCollection used by MongoRepository, filtering on
    _id only. Set `error` to make every call raise it, or `delay` to make every
    call sleep first. `cancelled` counts calls cancelled while sleeping.
    """

    def __init__(self) -> None:
        self.docs: Dict[Any, Dict[str, Any]] = {}
        self.error: Optional[Exception] = None
        self.delay: float = 0.0
        self.cancelled = 0
        self.database = FakeDatabase(self)

    async def _io(self) -> None:
        if self.delay:
            try:
                await asyncio.sleep(self.delay)
            except asyncio.CancelledError:
                self.cancelled += 1
                raise
        if self.error is not None:
            raise self.error

    def find(self, filter: Dict[str, Any]) -> FakeCursor:
        assert filter == {}
        return FakeCursor(self, list(self.docs.values()))

    async def insert_one(self, doc: Dict[str, Any]) -> SimpleNamespace:
        await self._io()
        if doc["_id"] in self.docs:
            raise DuplicateKeyError("duplicate _id")
        self.docs[doc["_id"]] = copy.deepcopy(dict(doc))
        return SimpleNamespace(inserted_id=doc["_id"])

    async def update_one(self, filter: Dict[str, Any], update: Dict[str, Any]) -> SimpleNamespace:
        await self._io()
        doc = self.docs.get(filter["_id"])
        if doc is None:
            return SimpleNamespace(matched_count=0, modified_count=0)
        doc.update(update["$set"])
        return SimpleNamespace(matched_count=1, modified_count=1)

    async def delete_one(self, filter: Dict[str, Any]) -> SimpleNamespace:
        await self._io()
        removed = self.docs.pop(filter["_id"], None)
        return SimpleNamespace(deleted_count=0 if removed is None else 1)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        mongodb_uri="mongodb://localhost:27017",
        db_name="todos_test",
        collection_name="todos",
        host="127.0.0.1",
        port=9000,
        read_timeout=0.5,
        write_timeout=0.5,
        connect_timeout=0.5,
        cors_allow_origins=["*"],
        log_level="WARNING",
    )


@pytest.fixture
def collection() -> FakeCollection:
    return FakeCollection()


@pytest.fixture
def repository(collection: FakeCollection, settings: Settings) -> MongoRepository:
    return MongoRepository(
        collection,
        read_timeout=settings.read_timeout,
        write_timeout=settings.write_timeout,
    )


@pytest.fixture
def client(repository: MongoRepository, settings: Settings):
    app = create_app(repository=repository, settings=settings)
    with TestClient(app) as c:
        yield c
