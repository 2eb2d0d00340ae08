"""Storage engine — the single SQLite handle and its query primitives."""

from __future__ import annotations

import logging
import sqlite3
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Generator, Optional, Sequence

from mdnotes.db.schema import SCHEMA_DDL
from mdnotes.errors import StatementError, StoreConnectionError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExecResult:
    inserted_id: Optional[int]
    rows_affected: int


class CancelToken:
    """
    Marks one transaction as abandoned by its caller.

    Once cancelled, the transaction's next statement or its commit raises
    ``StatementError`` and everything it wrote is rolled back. A token whose
    transaction has already started committing can no longer be cancelled.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self.cancelled = False
        self.committed = False
        self.active = False

    def cancel(self, on_active=None) -> bool:
        """Cancel unless already committing; ``on_active`` runs while the transaction is live."""
        with self._lock:
            if self.committed:
                return False
            self.cancelled = True
            if self.active and on_active is not None:
                on_active()
            return True

    def _enter(self) -> None:
        with self._lock:
            self.active = True

    def _leave(self) -> None:
        with self._lock:
            self.active = False

    def _begin_commit(self) -> None:
        with self._lock:
            if self.cancelled:
                raise StatementError("Operation interrupted")
            self.committed = True


class Database:
    """
    SQLite database wrapper owning exactly one connection.

    Statements issued outside ``transaction()`` are committed immediately;
    inside it they commit together on success and roll back on failure.
    All values are bound as parameters, never interpolated.
    """

    def __init__(self, path: Optional[Path | str] = None, timeout: Optional[float] = None):
        from mdnotes.config import get_store_config
        if path is None or timeout is None:
            cfg = get_store_config()
            path = cfg.db_path if path is None else path
            timeout = cfg.timeout if timeout is None else timeout
        self.path: Path = Path(path)
        self.timeout: float = timeout
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = threading.RLock()
        self._tx_depth = 0
        self._token: Optional[CancelToken] = None

    # -- connection lifecycle --------------------------------------------------

    def _ensure_dir(self) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StoreConnectionError(
                f"Cannot create database directory {self.path.parent}: {e}"
            ) from e

    def connection(self) -> sqlite3.Connection:
        with self._lock:
            if self._conn is None:
                self._ensure_dir()
                try:
                    conn = sqlite3.connect(
                        str(self.path), timeout=self.timeout, check_same_thread=False
                    )
                    conn.row_factory = sqlite3.Row
                    conn.execute("PRAGMA foreign_keys = ON")
                    conn.execute("PRAGMA journal_mode = WAL")
                    conn.execute("SELECT count(*) FROM sqlite_master").fetchone()
                except sqlite3.Error as e:
                    raise StoreConnectionError(
                        f"Cannot open database {self.path}: {e}"
                    ) from e
                self._conn = conn
                logger.info(f"Database connected: {self.path}")
            return self._conn

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def close(self) -> None:
        with self._lock:
            if self._conn:
                self._conn.close()
                self._conn = None
                logger.info(f"Database closed: {self.path}")

    def init(self) -> None:
        """Create all tables (idempotent)."""
        conn = self.connection()
        with self._lock:
            try:
                conn.executescript(SCHEMA_DDL)
                conn.commit()
            except sqlite3.Error as e:
                raise StatementError(f"Schema could not be applied: {e}") from e

    # -- transaction helpers ---------------------------------------------------

    @contextmanager
    def transaction(self, token: Optional[CancelToken] = None) -> Generator["Database", None, None]:
        """
        Group statements: commits on success, rolls back on exception.

        Nested calls join the outermost transaction. A ``token`` given to the
        outermost call lets another thread abandon it through ``interrupt()``.
        """
        conn = self.connection()
        with self._lock:
            outer = self._tx_depth == 0
            if outer and token is not None:
                token._enter()
                self._token = token
            self._tx_depth += 1
            try:
                yield self
                if outer:
                    if self._token is not None:
                        self._token._begin_commit()
                    conn.commit()
            except Exception:
                if outer:
                    conn.rollback()
                raise
            finally:
                self._tx_depth -= 1
                if outer and self._token is not None:
                    self._token._leave()
                    self._token = None

    def interrupt(self, token: CancelToken) -> bool:
        """
        Abandon the transaction running under *token*.

        Aborts its in-flight statement, if any. Returns False when the
        transaction had already begun committing, in which case its writes
        stand. Does not take the connection lock.
        """
        def _abort() -> None:
            conn = self._conn
            if conn is not None:
                conn.interrupt()

        return token.cancel(on_active=_abort)

    # -- query primitives ------------------------------------------------------

    def _run(self, sql: str, params: Sequence[Any]) -> sqlite3.Cursor:
        if self._token is not None and self._token.cancelled:
            raise StatementError("Operation interrupted")
        conn = self.connection()
        try:
            return conn.execute(sql, tuple(params))
        except sqlite3.Error as e:
            raise StatementError(str(e)) from e

    def execute(self, sql: str, params: Sequence[Any] = ()) -> ExecResult:
        """Run an INSERT/UPDATE/DELETE and report what it touched."""
        with self._lock:
            cursor = self._run(sql, params)
            if self._tx_depth == 0:
                self._conn.commit()  # type: ignore[union-attr]
            return ExecResult(inserted_id=cursor.lastrowid, rows_affected=cursor.rowcount)

    def query_one(self, sql: str, params: Sequence[Any] = ()) -> Optional[dict[str, Any]]:
        with self._lock:
            row = self._run(sql, params).fetchone()
        return dict(row) if row else None

    def query_many(self, sql: str, params: Sequence[Any] = ()) -> list[dict[str, Any]]:
        with self._lock:
            rows = self._run(sql, params).fetchall()
        return [dict(r) for r in rows]
