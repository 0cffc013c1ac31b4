#!/usr/bin/env python3
"""Document store adapters.

A document store keeps JSON-like dicts keyed by their ``id`` field. It
offers find, upsert and remove and nothing else: no transactions spanning
calls, no counters, no uniqueness beyond the id key.

Two adapters are provided:
- MemoryDocumentStore: dict-backed, yields to the event loop on every call
- SqliteDocumentStore: one JSON row per document in a shared SQLite file

upsert() takes an optional ``previous`` version. When given, the write is
refused with StoreConflictError if the stored document changed since the
caller read it.
"""

from __future__ import annotations

import asyncio
import copy
import json
import logging
import math
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Iterator, Mapping, Protocol, Sequence, Union

from tenacity import (
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from clipshelf.constants import (
    STORE_RETRY_ATTEMPTS,
    STORE_RETRY_INITIAL_WAIT,
    STORE_RETRY_MAX_WAIT,
)

logger = logging.getLogger(__name__)

Document = dict[str, Any]
Predicate = Callable[[Mapping[str, Any]], bool]
Documents = Union[Mapping[str, Any], Sequence[Mapping[str, Any]]]


class StoreError(Exception):
    """
    Exception raised for persistence failures.

    Each document write is independent, so no cleanup of earlier writes is
    attempted when one fails.
    """

    pass


class StoreConflictError(StoreError):
    """Raised when a document changed since the version passed as previous."""

    pass


class DocumentStore(Protocol):
    """Capability consumed by the repositories."""

    async def find(
        self, predicate: Predicate | None = None, sort: str | None = None
    ) -> list[Document]: ...

    async def upsert(
        self, documents: Documents, previous: Documents | None = None
    ) -> None: ...

    async def remove(self, ids: str | Sequence[str]) -> None: ...


def _as_list(documents: Documents | None) -> list[Mapping[str, Any]]:
    if documents is None:
        return []
    if isinstance(documents, Mapping):
        return [documents]
    return list(documents)


def _as_ids(ids: str | Sequence[str]) -> list[str]:
    if isinstance(ids, str):
        return [ids]
    return list(ids)


def _pair_with_previous(
    documents: Documents, previous: Documents | None
) -> list[tuple[Mapping[str, Any], Mapping[str, Any] | None]]:
    docs = _as_list(documents)
    for doc in docs:
        if not doc.get("id"):
            raise StoreError(f"Document has no id: {dict(doc)!r}")
    if previous is None:
        return [(doc, None) for doc in docs]
    bases = _as_list(previous)
    if len(bases) != len(docs):
        raise StoreError(
            f"Got {len(bases)} previous versions for {len(docs)} documents"
        )
    return list(zip(docs, bases))


def _sort_value(doc: Mapping[str, Any], field: str) -> tuple:
    value = doc.get(field)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        if math.isfinite(value):
            return (0, value, "")
        return (1, 0, "")
    if value is None:
        return (2, 0, "")
    return (1, 0, str(value))


def sort_documents(docs: list[Document], field: str | None) -> list[Document]:
    """Sort documents by a field, numbers first and missing values last."""
    if field is None:
        return docs
    return sorted(docs, key=lambda doc: _sort_value(doc, field))


class MemoryDocumentStore:
    """In-process document store.

    Documents are deep-copied in and out, so callers never share state with
    the store. Each call yields to the event loop once.
    """

    def __init__(self, documents: Sequence[Mapping[str, Any]] = ()):
        self._documents: dict[str, Document] = {
            str(doc["id"]): copy.deepcopy(dict(doc)) for doc in documents
        }

    async def find(
        self, predicate: Predicate | None = None, sort: str | None = None
    ) -> list[Document]:
        await asyncio.sleep(0)
        docs = [copy.deepcopy(doc) for doc in self._documents.values()]
        if predicate is not None:
            docs = [doc for doc in docs if predicate(doc)]
        return sort_documents(docs, sort)

    async def upsert(
        self, documents: Documents, previous: Documents | None = None
    ) -> None:
        await asyncio.sleep(0)
        pairs = _pair_with_previous(documents, previous)
        for doc, base in pairs:
            if base is not None and self._documents.get(str(doc["id"])) != dict(base):
                raise StoreConflictError(f"Document {doc['id']} changed since it was read")
        for doc, _ in pairs:
            self._documents[str(doc["id"])] = copy.deepcopy(dict(doc))

    async def remove(self, ids: str | Sequence[str]) -> None:
        await asyncio.sleep(0)
        for doc_id in _as_ids(ids):
            self._documents.pop(doc_id, None)

    def __len__(self) -> int:
        return len(self._documents)


def _is_locked(error: BaseException) -> bool:
    return isinstance(error, sqlite3.OperationalError) and "locked" in str(error).lower()


_retry_when_locked = retry(
    wait=wait_exponential(min=STORE_RETRY_INITIAL_WAIT, max=STORE_RETRY_MAX_WAIT),
    retry=retry_if_exception(_is_locked),
    stop=stop_after_attempt(STORE_RETRY_ATTEMPTS),
    reraise=True,
)


class SqliteDocumentStore:
    """Document store backed by a SQLite file.

    Several collections can share one database file; each instance reads and
    writes a single collection. Blocking calls run in a worker thread.
    """

    def __init__(self, db_path: Path, collection: str):
        self.db_path = Path(db_path)
        self.collection = collection
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    @contextmanager
    def _get_connection(self) -> Iterator[sqlite3.Connection]:
        """Get a database connection with context management."""
        conn = sqlite3.connect(str(self.db_path), timeout=1.0)
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_db(self) -> None:
        with self._get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS documents (
                    collection TEXT NOT NULL,
                    id TEXT NOT NULL,
                    body TEXT NOT NULL,
                    PRIMARY KEY (collection, id)
                )
            """)

    @_retry_when_locked
    def _select_all(self) -> list[Document]:
        with self._get_connection() as conn:
            rows = conn.execute(
                "SELECT id, body FROM documents WHERE collection = ?",
                (self.collection,),
            ).fetchall()
        docs = []
        for doc_id, body in rows:
            try:
                docs.append(json.loads(body))
            except json.JSONDecodeError as e:
                logger.warning("Skipping unreadable document %s: %s", doc_id, e)
        return docs

    @_retry_when_locked
    def _write(self, pairs: list[tuple[Mapping[str, Any], Mapping[str, Any] | None]]) -> None:
        with self._get_connection() as conn:
            for doc, base in pairs:
                if base is None:
                    continue
                row = conn.execute(
                    "SELECT body FROM documents WHERE collection = ? AND id = ?",
                    (self.collection, str(doc["id"])),
                ).fetchone()
                if row is None or json.loads(row[0]) != dict(base):
                    raise StoreConflictError(f"Document {doc['id']} changed since it was read")
            conn.executemany(
                "INSERT OR REPLACE INTO documents (collection, id, body) VALUES (?, ?, ?)",
                [
                    (self.collection, str(doc["id"]), json.dumps(dict(doc), ensure_ascii=False))
                    for doc, _ in pairs
                ],
            )

    @_retry_when_locked
    def _delete(self, ids: list[str]) -> None:
        with self._get_connection() as conn:
            conn.executemany(
                "DELETE FROM documents WHERE collection = ? AND id = ?",
                [(self.collection, doc_id) for doc_id in ids],
            )

    async def find(
        self, predicate: Predicate | None = None, sort: str | None = None
    ) -> list[Document]:
        try:
            docs = await asyncio.to_thread(self._select_all)
        except sqlite3.Error as e:
            raise StoreError(f"Failed to read {self.collection}: {e}") from e
        if predicate is not None:
            docs = [doc for doc in docs if predicate(doc)]
        return sort_documents(docs, sort)

    async def upsert(
        self, documents: Documents, previous: Documents | None = None
    ) -> None:
        pairs = _pair_with_previous(documents, previous)
        if not pairs:
            return
        try:
            await asyncio.to_thread(self._write, pairs)
        except sqlite3.Error as e:
            raise StoreError(f"Failed to write {self.collection}: {e}") from e

    async def remove(self, ids: str | Sequence[str]) -> None:
        id_list = _as_ids(ids)
        if not id_list:
            return
        try:
            await asyncio.to_thread(self._delete, id_list)
        except sqlite3.Error as e:
            raise StoreError(f"Failed to remove from {self.collection}: {e}") from e
