"""
Document store abstraction with a MongoDB implementation.

The JSON-file implementation of the same interface lives in
``clubsite.filestore``.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Iterator, Optional, Protocol

from pymongo import MongoClient
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError
from pymongo.server_api import ServerApi

from clubsite.errors import BackendUnavailable, ConflictError, StoreError
from clubsite.records import EntitySpec, SortSpec

logger = logging.getLogger(__name__)

SERVER_SELECTION_TIMEOUT_MS = 5000


class DocumentStore(Protocol):
    """Operations the repository needs from a backend, scoped to one entity."""

    provider: str

    def supports(self, spec: EntitySpec) -> bool:
        ...

    def find(
        self,
        spec: EntitySpec,
        filter_: Optional[dict] = None,
        *,
        sort: Optional[SortSpec] = None,
        limit: Optional[int] = None,
    ) -> list[dict]:
        ...

    def find_one(self, spec: EntitySpec, filter_: dict) -> Optional[dict]:
        ...

    def upsert(self, spec: EntitySpec, key_filter: dict, record: dict) -> dict:
        ...

    def update(
        self, spec: EntitySpec, key_filter: dict, changes: dict
    ) -> Optional[dict]:
        ...

    def insert(self, spec: EntitySpec, record: dict) -> dict:
        ...

    def delete(self, spec: EntitySpec, key_filter: dict) -> bool:
        ...

    def count(self, spec: EntitySpec, filter_: Optional[dict] = None) -> int:
        ...


@contextmanager
def _store_errors(action: str) -> Iterator[None]:
    try:
        yield
    except DuplicateKeyError as exc:
        raise ConflictError() from exc
    except PyMongoError as exc:
        logger.exception("MongoDB %s failed", action)
        raise StoreError(f"Failed to {action}") from exc


class MongoDocumentStore:
    """
    MongoDB-backed store. The client is created lazily on first use and
    collection indexes are ensured once per entity.
    """

    provider = "mongodb"

    def __init__(
        self,
        uri: Optional[str],
        db_name: str = "rotaract",
        *,
        client: Optional[MongoClient] = None,
    ):
        self.uri = uri
        self.db_name = db_name
        self._client = client
        self._db: Optional[Database] = None
        self._indexed: set[str] = set()
        self._lock = threading.Lock()

    def connect(self) -> Optional[Database]:
        """
        Return the database handle, creating the client on first call.
        Returns None when no connection string is configured.
        """
        if self._db is not None:
            return self._db
        if not self.uri and self._client is None:
            return None
        with self._lock:
            if self._db is None:
                with _store_errors("connect"):
                    if self._client is None:
                        self._client = MongoClient(
                            self.uri,
                            serverSelectionTimeoutMS=SERVER_SELECTION_TIMEOUT_MS,
                            server_api=ServerApi("1"),
                        )
                    self._db = self._client[self.db_name]
                logger.info("Using MongoDB database %s", self.db_name)
        return self._db

    def ensure_indexes(self, spec: EntitySpec) -> None:
        if spec.name in self._indexed:
            return
        db = self.connect()
        if db is None:
            return
        with self._lock:
            if spec.name in self._indexed:
                return
            collection = db[spec.collection]
            for index in spec.indexes:
                try:
                    collection.create_index(list(index.keys), unique=index.unique)
                except PyMongoError as exc:
                    # Usually the index already exists with other options.
                    logger.debug("Index on %s skipped: %s", spec.collection, exc)
            self._indexed.add(spec.name)

    def _collection(self, spec: EntitySpec):
        db = self.connect()
        if db is None:
            raise BackendUnavailable()
        self.ensure_indexes(spec)
        return db[spec.collection]

    def supports(self, spec: EntitySpec) -> bool:
        return self.connect() is not None

    def find(
        self,
        spec: EntitySpec,
        filter_: Optional[dict] = None,
        *,
        sort: Optional[SortSpec] = None,
        limit: Optional[int] = None,
    ) -> list[dict]:
        collection = self._collection(spec)
        with _store_errors(f"load {spec.name}"):
            cursor = collection.find(filter_ or {}, {"_id": 0})
            if sort:
                cursor = cursor.sort(list(sort))
            if limit:
                cursor = cursor.limit(limit)
            return list(cursor)

    def find_one(self, spec: EntitySpec, filter_: dict) -> Optional[dict]:
        collection = self._collection(spec)
        with _store_errors(f"load {spec.name}"):
            return collection.find_one(filter_, {"_id": 0})

    def upsert(self, spec: EntitySpec, key_filter: dict, record: dict) -> dict:
        collection = self._collection(spec)
        with _store_errors(f"save {spec.name}"):
            collection.update_one(key_filter, {"$set": record}, upsert=True)
            return collection.find_one(key_filter, {"_id": 0})

    def update(
        self, spec: EntitySpec, key_filter: dict, changes: dict
    ) -> Optional[dict]:
        collection = self._collection(spec)
        with _store_errors(f"update {spec.name}"):
            if changes:
                result = collection.update_one(key_filter, {"$set": changes})
                if not result.matched_count:
                    return None
            return collection.find_one(key_filter, {"_id": 0})

    def insert(self, spec: EntitySpec, record: dict) -> dict:
        collection = self._collection(spec)
        with _store_errors(f"save {spec.name}"):
            # insert_one adds _id to the document it is given.
            collection.insert_one(dict(record))
        return dict(record)

    def delete(self, spec: EntitySpec, key_filter: dict) -> bool:
        collection = self._collection(spec)
        with _store_errors(f"delete {spec.name}"):
            return collection.delete_one(key_filter).deleted_count > 0

    def count(self, spec: EntitySpec, filter_: Optional[dict] = None) -> int:
        collection = self._collection(spec)
        with _store_errors(f"count {spec.name}"):
            return collection.count_documents(filter_ or {})

    def ping(self) -> str:
        """Round-trip to the server; returns the database name."""
        db = self.connect()
        if db is None:
            raise BackendUnavailable()
        with _store_errors("reach database"):
            db.command("ping")
        return db.name
