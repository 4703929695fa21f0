# document store with per-document versions and change listeners
from __future__ import annotations

import asyncio
import inspect
import json
import re
import time
import uuid
from collections import defaultdict
from dataclasses import dataclass
from enum import Enum
from typing import Any, AsyncIterator, Callable, Dict, List, Optional, Tuple

import aiosqlite

from marketplace.db.database import Database
from marketplace.errors import ConflictError, MarketplaceError
from marketplace.utils.logger import get_logger
from marketplace.utils.subscription import Subscription

_logger = get_logger(__name__)

_FIELD_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)*$")
_OPS = {"==": "=", "!=": "!=", "<": "<", "<=": "<=", ">": ">", ">=": ">="}

# upper bound for prefix range queries on strings
PREFIX_END = "\uf8ff"

Callback = Callable[[Any], Any]
ErrorCallback = Callable[[MarketplaceError], Any]


def now_ms() -> int:
    return int(time.time() * 1000)


def _json_path(field: str) -> str:
    if not _FIELD_RE.match(field):
        raise ValueError(f"Invalid field path: {field!r}")
    return "$." + field


def _param(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, bool):
        return int(value)
    return value


async def maybe_await(value: Any) -> None:
    if inspect.isawaitable(value):
        await value


@dataclass(frozen=True)
class DocumentSnapshot:
    id: str
    data: Optional[Dict[str, Any]]
    version: int = 0

    @property
    def exists(self) -> bool:
        return self.data is not None


class _Listener:
    """One registered listener: re-fetches on change, delivers on difference."""

    _UNSET = object()

    def __init__(
        self,
        collection: str,
        fetch: Callable[[], Any],
        callback: Callback,
        on_error: Optional[ErrorCallback],
    ) -> None:
        self.collection = collection
        self.fetch = fetch
        self.callback = callback
        self.on_error = on_error
        self.subscription: Optional[Subscription] = None
        self._last: Any = self._UNSET

    @property
    def active(self) -> bool:
        return self.subscription is not None and self.subscription.active

    @staticmethod
    def _fingerprint(value: Any) -> Any:
        if isinstance(value, DocumentSnapshot):
            return value.id, value.version, value.data
        return [(s.id, s.version, s.data) for s in value]

    async def deliver(self) -> None:
        try:
            value = await self.fetch()
        except MarketplaceError as e:
            _logger.warning(f"Listener on '{self.collection}' closed: {e}")
            if self.subscription is not None:
                self.subscription.cancel()
            if self.on_error is not None:
                await maybe_await(self.on_error(e))
            return

        fingerprint = self._fingerprint(value)
        if fingerprint == self._last:
            return
        self._last = fingerprint
        try:
            await maybe_await(self.callback(value))
        except Exception:
            _logger.exception(f"Listener callback on '{self.collection}' raised")


async def _stream(listen) -> AsyncIterator[Any]:
    queue: asyncio.Queue = asyncio.Queue()
    subscription = await listen(queue.put_nowait, on_error=queue.put_nowait)
    try:
        while True:
            item = await queue.get()
            if isinstance(item, MarketplaceError):
                raise item
            yield item
    finally:
        subscription.cancel()


class Query:
    """
    Immutable query over one collection.

    Filters compare ``json_extract`` of a (dotted) field path; ordering uses
    one field plus the document id as tie-breaker.
    """

    def __init__(
        self,
        store: "DocumentStore",
        collection: str,
        filters: Tuple[Tuple[str, str, Any], ...] = (),
        order: Optional[Tuple[str, bool]] = None,
        limit: Optional[int] = None,
    ) -> None:
        self._store = store
        self.collection = collection
        self._filters = filters
        self._order = order
        self._limit = limit

    def where(self, field: str, op: str, value: Any) -> "Query":
        if op not in _OPS:
            raise ValueError(f"Unsupported operator: {op!r}")
        _json_path(field)
        return Query(
            self._store,
            self.collection,
            self._filters + ((field, op, value),),
            self._order,
            self._limit,
        )

    def order_by(self, field: str, descending: bool = False) -> "Query":
        _json_path(field)
        return Query(
            self._store, self.collection, self._filters, (field, descending), self._limit
        )

    def limit(self, count: int) -> "Query":
        if count < 0:
            raise ValueError("Limit cannot be negative.")
        return Query(self._store, self.collection, self._filters, self._order, count)

    def starts_with(self, field: str, prefix: str) -> "Query":
        """Prefix range on a string field, ordered by that field."""
        return (
            self.where(field, ">=", prefix)
            .where(field, "<=", prefix + PREFIX_END)
            .order_by(field)
        )

    def _sql(self) -> Tuple[str, List[Any]]:
        sql = "SELECT id, data, version FROM documents WHERE collection = ?"
        params: List[Any] = [self.collection]
        for field, op, value in self._filters:
            sql += f" AND json_extract(data, ?) {_OPS[op]} ?"
            params.extend([_json_path(field), _param(value)])
        if self._order is not None:
            field, descending = self._order
            direction = "DESC" if descending else "ASC"
            sql += f" ORDER BY json_extract(data, ?) {direction}, id"
            params.append(_json_path(field))
        else:
            sql += " ORDER BY id"
        if self._limit is not None:
            sql += " LIMIT ?"
            params.append(self._limit)
        return sql + ";", params

    async def get(self) -> List[DocumentSnapshot]:
        sql, params = self._sql()
        async with self._store.database.connect() as conn:
            cur = await conn.execute(sql, tuple(params))
            rows = await cur.fetchall()
            await cur.close()
        return [
            DocumentSnapshot(id=row[0], data=json.loads(row[1]), version=int(row[2]))
            for row in rows
        ]

    async def listen(
        self, callback: Callback, on_error: Optional[ErrorCallback] = None
    ) -> Subscription:
        """Deliver the current result, then every changed result after a write."""
        return await self._store._register(
            _Listener(self.collection, self.get, callback, on_error)
        )

    def stream(self) -> AsyncIterator[List[DocumentSnapshot]]:
        return _stream(self.listen)


class DocumentRef:
    def __init__(self, store: "DocumentStore", collection: str, doc_id: str) -> None:
        if not doc_id:
            raise ValueError("Document id cannot be empty.")
        self._store = store
        self.collection = collection
        self.id = doc_id

    async def _read(self, conn: aiosqlite.Connection) -> DocumentSnapshot:
        cur = await conn.execute(
            "SELECT data, version FROM documents WHERE collection = ? AND id = ?;",
            (self.collection, self.id),
        )
        row = await cur.fetchone()
        await cur.close()
        if not row:
            return DocumentSnapshot(id=self.id, data=None)
        return DocumentSnapshot(id=self.id, data=json.loads(row[0]), version=int(row[1]))

    async def _write(
        self, conn: aiosqlite.Connection, data: Dict[str, Any], version: int
    ) -> None:
        await conn.execute(
            """
            INSERT INTO documents (collection, id, data, version, updated_at)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT (collection, id) DO UPDATE
               SET data = excluded.data,
                   version = excluded.version,
                   updated_at = excluded.updated_at;
            """,
            (self.collection, self.id, json.dumps(data), version, now_ms()),
        )

    async def get(self) -> DocumentSnapshot:
        async with self._store.database.connect() as conn:
            return await self._read(conn)

    async def set(
        self, data: Dict[str, Any], expected_version: Optional[int] = None
    ) -> DocumentSnapshot:
        """
        Overwrite the whole document.

        With ``expected_version`` the write only happens if the stored version
        matches (0 means the document must not exist yet); otherwise
        ConflictError is raised and nothing is written.
        """
        async with self._store.database.connect() as conn:
            await conn.execute("BEGIN IMMEDIATE;")
            current = await self._read(conn)
            if expected_version is not None and current.version != expected_version:
                raise ConflictError(
                    f"{self.collection}/{self.id} is at version {current.version}, "
                    f"expected {expected_version}"
                )
            version = current.version + 1
            await self._write(conn, data, version)
            await conn.commit()
        _logger.debug(f"set {self.collection}/{self.id} -> v{version}")
        await self._store._notify(self.collection)
        return DocumentSnapshot(id=self.id, data=data, version=version)

    async def update(
        self, mutator: Callable[[Optional[Dict[str, Any]]], Optional[Dict[str, Any]]]
    ) -> DocumentSnapshot:
        """
        Atomic read-modify-write.

        ``mutator`` receives the current data (None if missing) and returns the
        new data, or None to leave the document untouched. Exceptions raised
        by the mutator abort the transaction.
        """
        async with self._store.database.connect() as conn:
            await conn.execute("BEGIN IMMEDIATE;")
            current = await self._read(conn)
            data = mutator(current.data)
            if data is None:
                await conn.rollback()
                return current
            version = current.version + 1
            await self._write(conn, data, version)
            await conn.commit()
        _logger.debug(f"update {self.collection}/{self.id} -> v{version}")
        await self._store._notify(self.collection)
        return DocumentSnapshot(id=self.id, data=data, version=version)

    async def delete(self) -> bool:
        """Remove the document. Returns False if it did not exist."""
        async with self._store.database.connect() as conn:
            res = await conn.execute(
                "DELETE FROM documents WHERE collection = ? AND id = ?;",
                (self.collection, self.id),
            )
            await conn.commit()
            deleted = res.rowcount > 0
        if deleted:
            _logger.debug(f"delete {self.collection}/{self.id}")
            await self._store._notify(self.collection)
        return deleted

    async def listen(
        self, callback: Callback, on_error: Optional[ErrorCallback] = None
    ) -> Subscription:
        return await self._store._register(
            _Listener(self.collection, self.get, callback, on_error)
        )

    def stream(self) -> AsyncIterator[DocumentSnapshot]:
        return _stream(self.listen)


class CollectionRef(Query):
    def __init__(self, store: "DocumentStore", collection: str) -> None:
        super().__init__(store, collection)

    def document(self, doc_id: Optional[str] = None) -> DocumentRef:
        """Reference a document; without an id a new unique id is generated."""
        return DocumentRef(self._store, self.collection, doc_id or uuid.uuid4().hex)

    async def add(self, data: Dict[str, Any]) -> DocumentSnapshot:
        return await self.document().set(data, expected_version=0)


class DocumentStore:
    """
    Collections of JSON documents kept in the ``documents`` table.

    Listeners registered through queries or document references are re-run
    after every committed write to their collection.
    """

    def __init__(self, database: Database) -> None:
        self.database = database
        self._listeners: Dict[str, List[_Listener]] = defaultdict(list)

    def collection(self, name: str) -> CollectionRef:
        return CollectionRef(self, name)

    def listener_count(self, collection: Optional[str] = None) -> int:
        if collection is not None:
            return len(self._listeners.get(collection, ()))
        return sum(len(v) for v in self._listeners.values())

    async def _register(self, listener: _Listener) -> Subscription:
        listeners = self._listeners[listener.collection]
        listeners.append(listener)
        subscription = Subscription(lambda: listeners.remove(listener))
        listener.subscription = subscription
        await listener.deliver()
        return subscription

    async def _notify(self, collection: str) -> None:
        for listener in list(self._listeners.get(collection, ())):
            if listener.active:
                await listener.deliver()
