"""
Pytest configuration and shared fixtures for MDB_HANDLE tests.

This module provides:
- An in-memory, motor-shaped MongoDB client test double
- Handle fixtures with the test double patched in
- Metrics isolation between tests
"""

import asyncio
import copy
from typing import Any, Dict, List, Optional
from unittest.mock import patch

import pytest
from bson import ObjectId
from pymongo.results import DeleteResult, InsertManyResult, UpdateResult

from mdb_handle.core.handle import DatabaseHandle
from mdb_handle.observability import get_metrics_collector

TEST_MONGO_URI = "mongodb://localhost:27017"

_MISSING = object()


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "integration: tests that need a running MongoDB server"
    )


# ============================================================================
# IN-MEMORY MONGODB TEST DOUBLE
# ============================================================================


def _matches(document: Dict[str, Any], query: Dict[str, Any]) -> bool:
    """Top-level equality matching; enough for the handle's passthrough tests."""
    return all(document.get(key, _MISSING) == value for key, value in query.items())


def _apply_update(document: Dict[str, Any], update: Dict[str, Any]) -> bool:
    before = copy.deepcopy(document)
    for field, value in update.get("$set", {}).items():
        document[field] = value
    for field in update.get("$unset", {}):
        document.pop(field, None)
    for field, amount in update.get("$inc", {}).items():
        document[field] = document.get(field, 0) + amount
    return document != before


class FakeCursor:
    def __init__(self, documents: List[Dict[str, Any]]):
        self._documents = documents

    async def to_list(self, length: Optional[int] = None) -> List[Dict[str, Any]]:
        if length is None:
            return list(self._documents)
        return list(self._documents[:length])


class FakeCollection:
    """Stores documents in insertion order and records every call."""

    def __init__(self, name: str):
        self.name = name
        self.documents: List[Dict[str, Any]] = []
        self.calls: List[tuple] = []
        self.error: Optional[BaseException] = None

    def seed(self, *documents: Dict[str, Any]) -> None:
        self.documents.extend(copy.deepcopy(list(documents)))

    def _maybe_fail(self) -> None:
        if self.error is not None:
            raise self.error

    def find(self, filter: Optional[Dict[str, Any]] = None) -> FakeCursor:
        self.calls.append(("find", filter))
        self._maybe_fail()
        query = filter or {}
        return FakeCursor([copy.deepcopy(d) for d in self.documents if _matches(d, query)])

    async def update_many(self, filter, update, upsert: bool = False, **kwargs) -> UpdateResult:
        self.calls.append(("update_many", filter, update, {"upsert": upsert, **kwargs}))
        self._maybe_fail()
        if not update:
            raise ValueError("update cannot be empty")
        matched = [d for d in self.documents if _matches(d, filter)]
        modified = sum(1 for d in matched if _apply_update(d, update))
        return UpdateResult({"n": len(matched), "nModified": modified, "ok": 1.0}, True)

    async def insert_many(self, documents, ordered: bool = True, **kwargs) -> InsertManyResult:
        self.calls.append(("insert_many", documents, {"ordered": ordered, **kwargs}))
        self._maybe_fail()
        if not documents:
            raise TypeError("documents must be a non-empty list")
        inserted_ids = []
        for document in documents:
            # The real driver assigns _id in place on the caller's document.
            document.setdefault("_id", ObjectId())
            inserted_ids.append(document["_id"])
            self.documents.append(copy.deepcopy(document))
        return InsertManyResult(inserted_ids, True)

    async def delete_many(self, filter, **kwargs) -> DeleteResult:
        self.calls.append(("delete_many", filter, kwargs))
        self._maybe_fail()
        kept = [d for d in self.documents if not _matches(d, filter)]
        deleted = len(self.documents) - len(kept)
        self.documents = kept
        return DeleteResult({"n": deleted, "ok": 1.0}, True)


class FakeDatabase:
    def __init__(self, name: str):
        self.name = name
        self._collections: Dict[str, FakeCollection] = {}

    def __getitem__(self, name: str) -> FakeCollection:
        if name not in self._collections:
            self._collections[name] = FakeCollection(name)
        return self._collections[name]


class FakeAdmin:
    """Answers ``ping`` and counts how often it was asked."""

    def __init__(self):
        self.ping_count = 0
        self.ping_error: Optional[BaseException] = None
        self.ping_delay: float = 0.0

    async def command(self, name: str, *args, **kwargs) -> Dict[str, Any]:
        if name == "ping":
            self.ping_count += 1
            if self.ping_delay:
                await asyncio.sleep(self.ping_delay)
            else:
                # Yield so concurrent callers can interleave.
                await asyncio.sleep(0)
            if self.ping_error is not None:
                raise self.ping_error
        return {"ok": 1.0}


class FakeMotorClient:
    def __init__(self):
        self.admin = FakeAdmin()
        self.close_count = 0
        self._databases: Dict[str, FakeDatabase] = {}

    def __getitem__(self, name: str) -> FakeDatabase:
        if name not in self._databases:
            self._databases[name] = FakeDatabase(name)
        return self._databases[name]

    def close(self) -> None:
        self.close_count += 1


# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture(autouse=True)
def reset_metrics():
    """Keep the process-global metrics collector isolated per test."""
    get_metrics_collector().reset()
    yield
    get_metrics_collector().reset()


@pytest.fixture
def fake_client() -> FakeMotorClient:
    return FakeMotorClient()


@pytest.fixture
def client_factory(fake_client: FakeMotorClient):
    """Patch AsyncIOMotorClient where the handle uses it."""
    with patch(
        "mdb_handle.core.handle.AsyncIOMotorClient", return_value=fake_client
    ) as factory:
        yield factory


@pytest.fixture
def handle(client_factory) -> DatabaseHandle:
    """An unconnected handle backed by the in-memory client."""
    return DatabaseHandle(TEST_MONGO_URI)


@pytest.fixture
def seeded_collection(fake_client: FakeMotorClient) -> FakeCollection:
    """``db.coll`` holding ``{id: 1, name: "a"}`` and ``{id: 2, name: "b"}``."""
    collection = fake_client["db"]["coll"]
    collection.seed({"id": 1, "name": "a"}, {"id": 2, "name": "b"})
    return collection
