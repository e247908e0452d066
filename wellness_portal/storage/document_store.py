"""Collection-oriented document store with JSON-file and MongoDB backends.

Every collection is an ordered list of JSON records. Readers get a snapshot
of the whole list; writers go through ``transaction()``, which serializes
read-modify-write cycles per collection so concurrent requests cannot
overwrite each other's changes.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from contextlib import contextmanager
from copy import deepcopy
from pathlib import Path
from threading import Lock
from typing import Any, Iterator

import pymongo
from pymongo.errors import PyMongoError

from wellness_portal.core.config import StorageConfig
from wellness_portal.storage.errors import StorageError

LOGGER = logging.getLogger(__name__)

Record = dict[str, Any]

COLLECTIONS = (
    "users",
    "tokens",
    "patients",
    "providers",
    "goals",
    "reminders",
    "complianceRecords",
    "healthTips",
    "auditLogs",
)


class DocumentStore:
    """Base class holding the per-collection locks and transaction logic."""

    def __init__(self) -> None:
        self._locks: dict[str, Lock] = {}
        self._locks_guard = Lock()

    def _lock_for(self, collection: str) -> Lock:
        with self._locks_guard:
            lock = self._locks.get(collection)
            if lock is None:
                lock = self._locks[collection] = Lock()
            return lock

    def _load(self, collection: str) -> list[Record]:
        raise NotImplementedError

    def _persist(self, collection: str, records: list[Record]) -> None:
        raise NotImplementedError

    def read_all(self, collection: str) -> list[Record]:
        """Return a snapshot of every record in ``collection``."""
        return self._load(collection)

    def replace_all(self, collection: str, records: list[Record]) -> None:
        """Atomically replace the whole collection and persist it."""
        with self._lock_for(collection):
            self._persist(collection, list(records))

    @contextmanager
    def transaction(self, collection: str) -> Iterator[list[Record]]:
        """Yield the collection's records for in-place mutation.

        The list is persisted when the block exits normally and discarded if
        it raises. Other transactions on the same collection wait.
        """
        with self._lock_for(collection):
            records = self._load(collection)
            yield records
            self._persist(collection, records)

    def find_one(self, collection: str, **match: Any) -> Record | None:
        """Return the first record whose fields equal all of ``match``."""
        for record in self.read_all(collection):
            if all(record.get(key) == value for key, value in match.items()):
                return record
        return None

    def find(self, collection: str, **match: Any) -> list[Record]:
        """Return every record whose fields equal all of ``match``."""
        return [
            record
            for record in self.read_all(collection)
            if all(record.get(key) == value for key, value in match.items())
        ]


class JsonFileDocumentStore(DocumentStore):
    """Stores each collection as ``<data_dir>/<collection>.json``."""

    def __init__(self, data_dir: Path) -> None:
        super().__init__()
        self._data_dir = data_dir
        self._data_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, collection: str) -> Path:
        return self._data_dir / f"{collection}.json"

    def _load(self, collection: str) -> list[Record]:
        path = self._path(collection)
        if not path.exists():
            return []
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            LOGGER.warning("collection_file_corrupted", extra={"collection": collection})
            return []
        except OSError as exc:
            raise StorageError(collection, f"read failed: {exc}") from exc
        if not isinstance(payload, list):
            LOGGER.warning("collection_file_not_a_list", extra={"collection": collection})
            return []
        return [row for row in payload if isinstance(row, dict)]

    def _persist(self, collection: str, records: list[Record]) -> None:
        path = self._path(collection)
        try:
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{collection}.", suffix=".tmp", dir=str(self._data_dir)
            )
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(records, fh, ensure_ascii=False, indent=2)
            os.replace(tmp_name, path)
        except OSError as exc:
            raise StorageError(collection, f"write failed: {exc}") from exc


class MongoDocumentStore(DocumentStore):
    """Stores each collection as a MongoDB collection of the same name."""

    def __init__(self, database: Any) -> None:
        super().__init__()
        self._db = database

    def _load(self, collection: str) -> list[Record]:
        try:
            cursor = self._db[collection].find({}, {"_id": 0}).sort("_seq", pymongo.ASCENDING)
            rows = list(cursor)
        except PyMongoError as exc:
            raise StorageError(collection, f"read failed: {exc}") from exc
        for row in rows:
            row.pop("_seq", None)
        return rows

    def _persist(self, collection: str, records: list[Record]) -> None:
        docs = [{**deepcopy(record), "_seq": index} for index, record in enumerate(records)]
        try:
            self._db[collection].delete_many({})
            if docs:
                self._db[collection].insert_many(docs, ordered=True)
        except PyMongoError as exc:
            raise StorageError(collection, f"write failed: {exc}") from exc


def create_document_store(config: StorageConfig, app_root: Path) -> DocumentStore:
    """Select MongoDB when ``MONGODB_URI`` is configured, JSON files otherwise."""
    if config.mongodb_uri:
        client: Any = pymongo.MongoClient(config.mongodb_uri, serverSelectionTimeoutMS=3000)
        try:
            client.admin.command("ping")
        except PyMongoError as exc:
            raise StorageError("*", f"MongoDB unreachable: {exc}") from exc
        LOGGER.info("document_store_selected", extra={"collection": "mongodb"})
        return MongoDocumentStore(client[config.mongodb_db])

    data_dir = Path(config.data_dir)
    if not data_dir.is_absolute():
        data_dir = app_root / data_dir
    LOGGER.info("document_store_selected", extra={"collection": str(data_dir)})
    return JsonFileDocumentStore(data_dir)
