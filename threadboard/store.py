"""Key-value storage for posts – in-memory and PostgreSQL backends."""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Callable, Iterator

import psycopg

from .config import BoardConfig, DatabaseConfig

logger = logging.getLogger("threadboard.store")

Updater = Callable[[bytes], "bytes | None"]


class StoreWriteError(RuntimeError):
    """The backend refused or failed a write; the request must fail."""


class KeyValueStore(ABC):
    """Durable key → bytes mapping keyed by post id.

    Single-key operations are atomic per key. ``scan`` is lazy and unordered
    and may or may not observe writes that happen while it runs.
    """

    @abstractmethod
    def put(self, key: str, value: bytes) -> None:
        """Insert or replace the value stored under ``key``."""

    @abstractmethod
    def get(self, key: str) -> bytes | None:
        """Return the value for ``key`` or None."""

    @abstractmethod
    def scan(self) -> Iterator[bytes]:
        """Yield every stored value, in no particular order."""

    @abstractmethod
    def update(self, key: str, fn: Updater) -> bytes | None:
        """Atomically replace the value of ``key`` with ``fn(old)``.

        Returns the new value, or None if the key is missing or ``fn``
        returned None (in which case nothing is written).
        """

    @abstractmethod
    def flush(self) -> None:
        """Block until every prior put from this caller is durable."""

    def close(self) -> None:
        pass

    def __enter__(self) -> KeyValueStore:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


class MemoryStore(KeyValueStore):
    """Process-local store for tests and throwaway boards."""

    def __init__(self) -> None:
        self._data: dict[str, bytes] = {}
        self._lock = threading.Lock()

    def put(self, key: str, value: bytes) -> None:
        with self._lock:
            self._data[key] = bytes(value)

    def get(self, key: str) -> bytes | None:
        with self._lock:
            return self._data.get(key)

    def scan(self) -> Iterator[bytes]:
        with self._lock:
            values = list(self._data.values())
        yield from values

    def update(self, key: str, fn: Updater) -> bytes | None:
        with self._lock:
            old = self._data.get(key)
            if old is None:
                return None
            new = fn(old)
            if new is not None:
                self._data[key] = bytes(new)
            return new

    def flush(self) -> None:
        pass

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)


class PostgresStore(KeyValueStore):
    """PostgreSQL-backed store: one ``posts`` row per key.

    Connections come from a small idle pool. Reads borrow one and roll back
    before returning it, so no connection sits idle inside a transaction.
    Writes keep their connection bound to the calling thread until ``flush``
    commits them.
    """

    def __init__(
        self, cfg: DatabaseConfig | None = None, *, table: str = "posts", pool_size: int = 4
    ) -> None:
        self.cfg = cfg or DatabaseConfig.from_env()
        self.table = table
        self.pool_size = pool_size
        self._local = threading.local()
        self._idle: list[psycopg.Connection] = []
        self._open: set[psycopg.Connection] = set()
        self._pool_lock = threading.Lock()

    # ── connection pool ──────────────────────────────────────────

    def _checkout(self) -> psycopg.Connection:
        with self._pool_lock:
            while self._idle:
                conn = self._idle.pop()
                if not conn.closed:
                    return conn
                self._open.discard(conn)
        conn = psycopg.connect(self.cfg.dsn, autocommit=False)
        with self._pool_lock:
            self._open.add(conn)
        return conn

    def _checkin(self, conn: psycopg.Connection) -> None:
        with self._pool_lock:
            if not conn.closed and len(self._idle) < self.pool_size:
                self._idle.append(conn)
                return
            self._open.discard(conn)
        if not conn.closed:
            conn.close()

    @contextmanager
    def connection(self) -> Iterator[psycopg.Connection]:
        """Borrow a connection for reads; it is rolled back and returned afterwards.

        A thread with uncommitted writes reads through its own write
        connection so it sees them.
        """
        bound: psycopg.Connection | None = getattr(self._local, "conn", None)
        if bound is not None:
            yield bound
            return
        conn = self._checkout()
        try:
            yield conn
        finally:
            if not conn.closed:
                conn.rollback()
            self._checkin(conn)

    def _writer(self) -> psycopg.Connection:
        conn: psycopg.Connection | None = getattr(self._local, "conn", None)
        if conn is None:
            conn = self._checkout()
            self._local.conn = conn
        return conn

    def _release_writer(self, *, commit: bool) -> None:
        conn: psycopg.Connection | None = getattr(self._local, "conn", None)
        if conn is None:
            return
        self._local.conn = None
        try:
            if conn.closed:
                return
            if commit:
                try:
                    conn.commit()
                except psycopg.Error:
                    conn.rollback()
                    raise
            else:
                conn.rollback()
        finally:
            self._checkin(conn)

    # ── schema ───────────────────────────────────────────────────

    def ensure_schema(self) -> None:
        with self.connection() as conn:
            conn.execute(
                f"""CREATE TABLE IF NOT EXISTS {self.table} (
                       id    TEXT PRIMARY KEY,
                       value BYTEA NOT NULL
                   )"""
            )
            conn.commit()
        logger.info("Ensured table %s exists", self.table)

    # ── key-value operations ─────────────────────────────────────

    def put(self, key: str, value: bytes) -> None:
        try:
            self._writer().execute(
                f"""INSERT INTO {self.table} (id, value) VALUES (%s, %s)
                    ON CONFLICT (id) DO UPDATE SET value = EXCLUDED.value""",
                (key, value),
            )
        except psycopg.Error as exc:
            self._release_writer(commit=False)
            raise StoreWriteError(f"put {key} failed: {exc}") from exc

    def get(self, key: str) -> bytes | None:
        with self.connection() as conn:
            row = conn.execute(
                f"SELECT value FROM {self.table} WHERE id = %s", (key,)
            ).fetchone()
        return bytes(row[0]) if row else None

    def scan(self) -> Iterator[bytes]:
        with self.connection() as conn, conn.cursor() as cur:
            for row in cur.stream(f"SELECT value FROM {self.table}"):
                yield bytes(row[0])

    def update(self, key: str, fn: Updater) -> bytes | None:
        conn = self._writer()
        try:
            row = conn.execute(
                f"SELECT value FROM {self.table} WHERE id = %s FOR UPDATE", (key,)
            ).fetchone()
            if row is None:
                return None
            new = fn(bytes(row[0]))
            if new is not None:
                conn.execute(f"UPDATE {self.table} SET value = %s WHERE id = %s", (new, key))
            return new
        except psycopg.Error as exc:
            self._release_writer(commit=False)
            raise StoreWriteError(f"update {key} failed: {exc}") from exc
        except Exception:
            self._release_writer(commit=False)
            raise

    def flush(self) -> None:
        try:
            self._release_writer(commit=True)
        except psycopg.Error as exc:
            raise StoreWriteError(f"commit failed: {exc}") from exc

    def close(self) -> None:
        with self._pool_lock:
            conns, self._open, self._idle = list(self._open), set(), []
        for conn in conns:
            if not conn.closed:
                conn.close()


def open_store(cfg: BoardConfig) -> KeyValueStore:
    """Build the store selected by ``cfg.store_driver``."""
    if cfg.store_driver == "memory":
        return MemoryStore()
    if cfg.store_driver == "postgres":
        return PostgresStore(cfg.db)
    raise ValueError(f"unknown store driver: {cfg.store_driver!r}")
