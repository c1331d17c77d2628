"""Local durable key-value cache and the offline document store built on it."""

import json
import logging
import threading
import time
import uuid
from pathlib import Path
from typing import Any

from taskpulse.core.db_client import DatabaseError, RecordNotFoundError


logger = logging.getLogger(__name__)


class LocalCache:
    """Thread-safe key-value cache persisted to a single JSON file.

    With no path the cache lives in memory only.
    """

    def __init__(self, path: str | Path | None = None) -> None:
        """Initialize the cache, loading any existing file."""
        self._path = Path(path).resolve() if path else None
        self._data: dict[str, str] = {}
        self._lock = threading.Lock()

        # Health tracking
        self._last_successful_operation: float | None = None
        self._total_operations = 0

        if self._path is not None and self._path.exists():
            try:
                loaded = json.loads(self._path.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError) as e:
                logger.warning("Ignoring unreadable cache file %s: %s", self._path, e)
            else:
                if isinstance(loaded, dict):
                    self._data = {str(k): str(v) for k, v in loaded.items()}

    def get_health_status(self) -> dict[str, Any]:
        """Get cache health status."""
        return {
            "enabled": True,
            "path": str(self._path) if self._path else None,
            "last_successful_operation": self._last_successful_operation,
            "total_operations": self._total_operations,
            "entries": len(self._data),
        }

    def _record_success(self) -> None:
        self._last_successful_operation = time.time()
        self._total_operations += 1

    def _flush(self) -> None:
        if self._path is None:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(self._data), encoding="utf-8")
        tmp_path.replace(self._path)

    def get(self, key: str) -> str | None:
        """Get the blob stored under key, or None."""
        with self._lock:
            value = self._data.get(key)
            self._record_success()
            if value is not None:
                logger.debug("Cache hit for key: %s", key)
            return value

    def set(self, key: str, blob: str) -> None:
        """Store blob under key and write the cache file."""
        with self._lock:
            self._data[key] = blob
            self._flush()
            self._record_success()
            logger.debug("Cached key: %s", key)


class LocalCacheDocumentStore:
    """Document store adapter over LocalCache for single-user offline mode.

    Each collection is one JSON array blob stored under the collection name.
    """

    def __init__(self, cache: LocalCache) -> None:
        self._cache = cache

    def _read(self, collection: str) -> list[dict[str, Any]]:
        blob = self._cache.get(collection)
        if not blob:
            return []
        try:
            docs = json.loads(blob)
        except json.JSONDecodeError as e:
            msg = f"Corrupt local cache for {collection}: {e}"
            raise DatabaseError(msg) from e
        if not isinstance(docs, list):
            msg = f"Corrupt local cache for {collection}: expected a list"
            raise DatabaseError(msg)
        return docs

    def _write(self, collection: str, docs: list[dict[str, Any]]) -> None:
        try:
            self._cache.set(collection, json.dumps(docs))
        except OSError as e:
            msg = f"Failed to write local cache for {collection}: {e}"
            raise DatabaseError(msg) from e

    @staticmethod
    def _index_of(docs: list[dict[str, Any]], collection: str, doc_id: str) -> int:
        for index, doc in enumerate(docs):
            if doc.get("id") == doc_id:
                return index
        msg = f"Record not found in {collection}: {doc_id}"
        raise RecordNotFoundError(msg)

    async def create(self, collection: str, doc: dict[str, Any]) -> str:
        """Append a document and return its id."""
        docs = self._read(collection)
        doc_id = str(doc.get("id") or uuid.uuid4().hex)
        docs.append({**doc, "id": doc_id})
        self._write(collection, docs)
        return doc_id

    async def update(self, collection: str, doc_id: str, patch: dict[str, Any]) -> None:
        """Merge a field patch into an existing document."""
        docs = self._read(collection)
        index = self._index_of(docs, collection, doc_id)
        docs[index] = {**docs[index], **patch}
        self._write(collection, docs)

    async def delete(self, collection: str, doc_id: str) -> None:
        """Remove a document by id."""
        docs = self._read(collection)
        index = self._index_of(docs, collection, doc_id)
        del docs[index]
        self._write(collection, docs)

    async def query_by_owner(self, collection: str, owner_id: str) -> list[dict[str, Any]]:
        """Return the documents owned by owner_id."""
        return [doc for doc in self._read(collection) if doc.get("ownerId") == owner_id]
