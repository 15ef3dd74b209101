"""
DatabaseHandle: a lazily connected MongoDB client with scoped CRUD passthrough.

The handle owns exactly one AsyncIOMotorClient bound to a connection URL and
exposes four data operations addressed by database and collection name. Each
operation connects on first use, then delegates to the driver's native
``find``/``update_many``/``insert_many``/``delete_many``. Driver errors are
never caught, translated or retried.

Warning:
    ``update`` and ``remove`` default to an empty filter, which matches every
    document in the collection. This mirrors the driver and is kept as is;
    always pass an explicit filter unless a collection-wide write is intended.

This module is part of MDB_HANDLE.
"""

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator
from typing import Any, Optional

from motor.motor_asyncio import (AsyncIOMotorClient, AsyncIOMotorCollection,
                                 AsyncIOMotorDatabase)
from pymongo.errors import PyMongoError
from pymongo.results import DeleteResult, InsertManyResult, UpdateResult

from ..config import HandleConfig
from ..constants import (DEFAULT_APP_NAME, DEFAULT_HEALTH_CHECK_TIMEOUT_SECONDS,
                         DEFAULT_RETRY_READS, DEFAULT_RETRY_WRITES,
                         DEFAULT_SERVER_SELECTION_TIMEOUT_MS)
from ..exceptions import HandleClosedError
from ..observability import check_handle_health
from ..observability import get_logger as get_contextual_logger
from ..observability import log_operation, operation_context, timed_operation
from ..observability.health import HealthCheckResult
from .types import DocumentList, Filter, HandleState, Items, Options, UpdateSpec

logger = logging.getLogger(__name__)
contextual_logger = get_contextual_logger(__name__)


def _default_client_options() -> dict[str, Any]:
    return {
        "serverSelectionTimeoutMS": DEFAULT_SERVER_SELECTION_TIMEOUT_MS,
        "appname": DEFAULT_APP_NAME,
        "retryWrites": DEFAULT_RETRY_WRITES,
        "retryReads": DEFAULT_RETRY_READS,
    }


class DatabaseHandle:
    """
    Owns one MongoDB client and provides named, scoped CRUD passthrough.

    Lifecycle: ``UNCONNECTED -> CONNECTED -> CLOSED``. Construction never
    touches the network and never raises; the first ``connect()`` (explicit,
    or implied by a data operation) verifies connectivity with a ping. After
    ``destroy()`` every operation raises ``HandleClosedError``.

    Example:
        handle = DatabaseHandle("mongodb://localhost:27017")
        await handle.add("shop", "items", [{"sku": 1}])
        docs = await handle.find("shop", "items", {"sku": 1})
        await handle.destroy()
    """

    def __init__(self, connection_url: str, **client_options: Any) -> None:
        """
        Initialize the handle.

        Args:
            connection_url: Full MongoDB connection URL
            **client_options: Extra AsyncIOMotorClient keyword options,
                overriding the handle's defaults
        """
        self._connection_url = connection_url
        self._client_options = {**_default_client_options(), **client_options}

        # pymongo parses the URL inside its constructor, so the client is
        # built on first access to keep construction infallible.
        self._client: AsyncIOMotorClient | None = None
        self._state: HandleState = HandleState.UNCONNECTED
        self._connect_lock = asyncio.Lock()

    @classmethod
    def from_config(cls, config: HandleConfig) -> "DatabaseHandle":
        """
        Build a handle from a validated HandleConfig.

        Raises:
            ConfigurationError: If the configuration is invalid
        """
        config.validate()
        return cls(config.mongo_uri, **config.to_client_options())

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def client(self) -> AsyncIOMotorClient:
        """
        The underlying AsyncIOMotorClient.

        Created once, on first access, and fixed for the handle's lifetime.

        Raises:
            pymongo.errors.PyMongoError: If the driver rejects the URL or options
        """
        if self._client is None:
            self._client = AsyncIOMotorClient(self._connection_url, **self._client_options)
            logger.debug("MongoDB client created (no network I/O yet)")
        return self._client

    @property
    def connection_url(self) -> str:
        return self._connection_url

    @property
    def state(self) -> HandleState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state is HandleState.CONNECTED

    @property
    def is_closed(self) -> bool:
        return self._state is HandleState.CLOSED

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @timed_operation("handle.connect")
    async def connect(self) -> "DatabaseHandle":
        """
        Connect to the server if not already connected.

        Idempotent: once connected, further calls return immediately without
        any network round trip. Concurrent first callers share one attempt.
        A failed attempt leaves the handle unconnected, so a later call
        retries.

        Returns:
            The handle itself, for chaining

        Raises:
            HandleClosedError: If the handle has been destroyed
            pymongo.errors.PyMongoError: Driver connection errors, unchanged
        """
        self._ensure_open("connect")
        if self._state is HandleState.CONNECTED:
            return self

        async with self._connect_lock:
            # State may have moved while waiting for the lock.
            self._ensure_open("connect")
            if self._state is HandleState.CONNECTED:
                return self

            try:
                await self.client.admin.command("ping")
            except PyMongoError as e:
                contextual_logger.error(
                    "MongoDB connection failed",
                    extra={"error_type": type(e).__name__, "error": str(e)},
                    exc_info=True,
                )
                raise

            # destroy() does not take the lock; CLOSED is final.
            self._ensure_open("connect")
            self._state = HandleState.CONNECTED
            contextual_logger.info(
                "MongoDB connection established",
                extra={"appname": self._client_options.get("appname")},
            )
        return self

    @timed_operation("handle.destroy")
    async def destroy(self) -> None:
        """
        Close the underlying client permanently.

        There is no way to reconnect afterwards; create a new handle instead.
        Calling this on an already destroyed handle does nothing.
        """
        if self._state is HandleState.CLOSED:
            logger.debug("destroy() called on an already destroyed handle")
            return

        previous_state = self._state
        self._state = HandleState.CLOSED
        if self._client is not None:
            self._client.close()
        log_operation(
            contextual_logger,
            "handle.destroy",
            previous_state=previous_state.value,
            client_created=self._client is not None,
        )

    async def __aenter__(self) -> "DatabaseHandle":
        return await self.connect()

    async def __aexit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[Any],
    ) -> None:
        await self.destroy()

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def database(self, database_name: str) -> AsyncIOMotorDatabase:
        """
        Resolve a database by name. Pure lookup, no validation, no I/O.

        Raises:
            HandleClosedError: If the handle has been destroyed
        """
        self._ensure_open("database", database=database_name)
        return self.client[database_name]

    def collection(self, database_name: str, collection_name: str) -> AsyncIOMotorCollection:
        """
        Resolve a collection within a database. Pure lookup, no validation, no I/O.

        Raises:
            HandleClosedError: If the handle has been destroyed
        """
        self._ensure_open("collection", database=database_name, collection=collection_name)
        return self.database(database_name)[collection_name]

    # ------------------------------------------------------------------
    # Data operations
    # ------------------------------------------------------------------

    @timed_operation("handle.find")
    async def find(
        self,
        database_name: str,
        collection_name: str,
        filter: Filter | None = None,
    ) -> DocumentList:
        """
        Find all documents matching the filter.

        Args:
            database_name: Database name
            collection_name: Collection name
            filter: Query filter; empty or None matches every document

        Returns:
            Every matching document, fully materialized, in the order the
            server returns them
        """
        async with self._scoped("find", database_name, collection_name) as collection:
            return await collection.find(filter if filter is not None else {}).to_list(None)

    @timed_operation("handle.update")
    async def update(
        self,
        database_name: str,
        collection_name: str,
        filter: Filter | None = None,
        update: UpdateSpec | None = None,
        options: Options | None = None,
    ) -> UpdateResult:
        """
        Update every document matching the filter.

        Warning:
            An empty filter (the default) updates every document in the
            collection.

        Args:
            database_name: Database name
            collection_name: Collection name
            filter: Query filter selecting documents to update
            update: Update specification, e.g. ``{"$set": {...}}``
            options: Keyword options for ``update_many`` (upsert, ...)

        Returns:
            The driver's UpdateResult (matched_count, modified_count, ...)
        """
        async with self._scoped("update", database_name, collection_name) as collection:
            return await collection.update_many(
                filter if filter is not None else {},
                update if update is not None else {},
                **(options or {}),
            )

    @timed_operation("handle.add")
    async def add(
        self,
        database_name: str,
        collection_name: str,
        items: Items | None = None,
        options: Options | None = None,
    ) -> InsertManyResult:
        """
        Insert each item as a new document, in order.

        The driver adds an ``_id`` to every item that lacks one, in place.
        An empty sequence is accepted and inserts nothing: the handle still
        connects, but makes no driver call, so no write concern is applied
        and no server-side error can surface. The result is
        ``InsertManyResult([], True)``.

        Args:
            database_name: Database name
            collection_name: Collection name
            items: Documents to insert
            options: Keyword options for ``insert_many`` (ordered, ...)

        Returns:
            The driver's InsertManyResult (inserted_ids, acknowledged)
        """
        async with self._scoped("add", database_name, collection_name) as collection:
            documents = list(items) if items is not None else []
            if not documents:
                # insert_many rejects an empty list outright.
                return InsertManyResult([], True)
            return await collection.insert_many(documents, **(options or {}))

    @timed_operation("handle.remove")
    async def remove(
        self,
        database_name: str,
        collection_name: str,
        filter: Filter | None = None,
        options: Options | None = None,
    ) -> DeleteResult:
        """
        Delete every document matching the filter.

        Warning:
            An empty filter (the default) deletes every document in the
            collection.

        Args:
            database_name: Database name
            collection_name: Collection name
            filter: Query filter selecting documents to delete
            options: Keyword options for ``delete_many`` (collation, hint, ...)

        Returns:
            The driver's DeleteResult (deleted_count, acknowledged)
        """
        async with self._scoped("remove", database_name, collection_name) as collection:
            return await collection.delete_many(
                filter if filter is not None else {},
                **(options or {}),
            )

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------

    async def health_check(
        self, timeout_seconds: float = DEFAULT_HEALTH_CHECK_TIMEOUT_SECONDS
    ) -> HealthCheckResult:
        """Ping the server and report the handle's health without raising."""
        return await check_handle_health(self, timeout_seconds=timeout_seconds)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _ensure_open(self, operation: str, **context: Any) -> None:
        if self._state is HandleState.CLOSED:
            raise HandleClosedError(operation=operation, context=dict(context))

    @contextlib.asynccontextmanager
    async def _scoped(
        self, operation: str, database_name: str, collection_name: str
    ) -> AsyncIterator[AsyncIOMotorCollection]:
        """Check the lifecycle, connect if needed and yield the target collection."""
        self._ensure_open(operation, database=database_name, collection=collection_name)
        with operation_context(
            operation=operation, database=database_name, collection=collection_name
        ):
            if self._state is not HandleState.CONNECTED:
                await self.connect()
            self._ensure_open(operation, database=database_name, collection=collection_name)
            contextual_logger.debug(f"Delegating {operation} to MongoDB")
            yield self.collection(database_name, collection_name)

    def __repr__(self) -> str:
        # The URL usually carries credentials; keep it out of reprs and logs.
        return f"DatabaseHandle(state={self._state.value!r})"
