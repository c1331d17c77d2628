"""Document store contract and its SQLite-backed implementation."""

import asyncio
import json
import logging
import re
import uuid
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Protocol

import aiosqlite

from taskpulse.core.config import settings


logger = logging.getLogger(__name__)


class DatabaseError(Exception):
    """A document store operation failed."""


class RecordNotFoundError(DatabaseError):
    """The referenced document does not exist."""


class DocumentStore(Protocol):
    """Asynchronous document store consumed by the task store."""

    async def create(self, collection: str, doc: dict[str, Any]) -> str: ...

    async def update(self, collection: str, doc_id: str, patch: dict[str, Any]) -> None: ...

    async def delete(self, collection: str, doc_id: str) -> None: ...

    async def query_by_owner(self, collection: str, owner_id: str) -> list[dict[str, Any]]: ...


def _validate_collection_name(collection: str) -> None:
    """Validate that a collection name contains only alphanumeric characters and underscores."""
    if not re.match(r"^[a-zA-Z_][a-zA-Z0-9_]*$", collection):
        msg = f"Invalid collection name: {collection}. Only alphanumeric characters and underscores are allowed."
        raise ValueError(msg)


def get_db_path(db_path: str | None = None) -> Path:
    """Get the resolved SQLite database file path."""
    path_str = db_path or settings.sqlite_db_path
    return Path(path_str).resolve()


def _now_iso() -> str:
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


class SqliteDocumentStore:
    """Document store persisting JSON documents in SQLite, one table per collection.

    Each row keeps the document id, its owner and the JSON body. Tables are
    created on first use.
    """

    def __init__(self, db_path: str | None = None) -> None:
        self._path = get_db_path(db_path)
        self._conn: aiosqlite.Connection | None = None
        self._lock = asyncio.Lock()
        self._tables: set[str] = set()

    async def _connection(self) -> aiosqlite.Connection:
        if self._conn is not None:
            return self._conn

        async with self._lock:
            if self._conn is None:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                conn = await aiosqlite.connect(str(self._path))
                await conn.execute("PRAGMA journal_mode = WAL")
                self._conn = conn
                logger.info("Created new SQLite connection", extra={"db_path": str(self._path)})
        return self._conn

    async def _ensure_table(self, collection: str) -> aiosqlite.Connection:
        _validate_collection_name(collection)
        conn = await self._connection()
        if collection not in self._tables:
            await conn.execute(
                f"""CREATE TABLE IF NOT EXISTS {collection} (
                    id TEXT PRIMARY KEY,
                    owner_id TEXT,
                    data TEXT NOT NULL,
                    created TEXT NOT NULL,
                    updated TEXT NOT NULL
                )"""
            )
            await conn.execute(f"CREATE INDEX IF NOT EXISTS idx_{collection}_owner ON {collection} (owner_id)")
            await conn.commit()
            self._tables.add(collection)
        return conn

    async def close(self) -> None:
        """Close the SQLite connection if one is open."""
        if self._conn is None:
            return
        try:
            await self._conn.close()
            logger.info("Closed SQLite connection", extra={"db_path": str(self._path)})
        except Exception as e:
            logger.warning("Error closing SQLite connection", extra={"error": str(e)})
        finally:
            self._conn = None
            self._tables.clear()

    async def create(self, collection: str, doc: dict[str, Any]) -> str:
        """Insert a document and return its id (the document's own id when it has one)."""
        try:
            conn = await self._ensure_table(collection)
            doc_id = str(doc.get("id") or uuid.uuid4().hex)
            body = {**doc, "id": doc_id}
            now = _now_iso()

            query = f"INSERT INTO {collection} (id, owner_id, data, created, updated) VALUES (?, ?, ?, ?, ?)"  # noqa: S608 - collection is validated
            await conn.execute(query, (doc_id, body.get("ownerId"), json.dumps(body), now, now))
            await conn.commit()

            logger.info("Created record", extra={"collection": collection, "record_id": doc_id})
            return doc_id
        except Exception as e:
            logger.error("create_record_failed", extra={"collection": collection, "error": str(e)})
            msg = f"Failed to create record in {collection}: {e}"
            raise DatabaseError(msg) from e

    async def _load(self, conn: aiosqlite.Connection, collection: str, doc_id: str) -> dict[str, Any]:
        query = f"SELECT data FROM {collection} WHERE id = ?"  # noqa: S608 - collection is validated
        cursor = await conn.execute(query, (doc_id,))
        row = await cursor.fetchone()
        if row is None:
            msg = f"Record not found in {collection}: {doc_id}"
            raise RecordNotFoundError(msg)
        return json.loads(row[0])

    async def update(self, collection: str, doc_id: str, patch: dict[str, Any]) -> None:
        """Merge a field patch into an existing document."""
        if not patch:
            msg = "Empty update payload"
            raise ValueError(msg)

        try:
            conn = await self._ensure_table(collection)
            body = await self._load(conn, collection, doc_id)
            body.update(patch)

            query = f"UPDATE {collection} SET data = ?, owner_id = ?, updated = ? WHERE id = ?"  # noqa: S608 - collection is validated
            await conn.execute(query, (json.dumps(body), body.get("ownerId"), _now_iso(), doc_id))
            await conn.commit()

            logger.info("Updated record", extra={"collection": collection, "record_id": doc_id})
        except RecordNotFoundError:
            raise
        except Exception as e:
            logger.error("update_record_failed", extra={"collection": collection, "record_id": doc_id, "error": str(e)})
            msg = f"Failed to update record in {collection}: {e}"
            raise DatabaseError(msg) from e

    async def delete(self, collection: str, doc_id: str) -> None:
        """Delete a document by id, raising RecordNotFoundError if absent."""
        try:
            conn = await self._ensure_table(collection)
            query = f"DELETE FROM {collection} WHERE id = ?"  # noqa: S608 - collection is validated
            cursor = await conn.execute(query, (doc_id,))
            await conn.commit()

            if cursor.rowcount == 0:
                msg = f"Record not found in {collection}: {doc_id}"
                raise RecordNotFoundError(msg)

            logger.info("Deleted record", extra={"collection": collection, "record_id": doc_id})
        except RecordNotFoundError:
            raise
        except Exception as e:
            logger.error("delete_record_failed", extra={"collection": collection, "record_id": doc_id, "error": str(e)})
            msg = f"Failed to delete record from {collection}: {e}"
            raise DatabaseError(msg) from e

    async def query_by_owner(self, collection: str, owner_id: str) -> list[dict[str, Any]]:
        """Return every document owned by owner_id, in insertion order."""
        try:
            conn = await self._ensure_table(collection)
            query = f"SELECT data FROM {collection} WHERE owner_id = ? ORDER BY rowid ASC"  # noqa: S608 - collection is validated
            cursor = await conn.execute(query, (owner_id,))
            rows = await cursor.fetchall()

            records = [json.loads(row[0]) for row in rows]
            logger.info("Listed records", extra={"collection": collection, "count": len(records)})
            return records
        except Exception as e:
            logger.error("list_records_failed", extra={"collection": collection, "error": str(e)})
            msg = f"Failed to list records from {collection}: {e}"
            raise DatabaseError(msg) from e
