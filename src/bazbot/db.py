from __future__ import annotations

import contextlib
import sqlite3
from pathlib import Path
from typing import Callable, Generator, Iterator, List, Sequence


class WordsDatabase:
    """Single SQLite connection holding the words, phrases and migrations tables."""

    def __init__(self, path: str | Path = ":memory:") -> None:
        self.path = str(path)
        self._conn = sqlite3.connect(self.path, isolation_level=None, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        if self.path != ":memory:":
            self._conn.execute("PRAGMA journal_mode=WAL;")
            self._conn.execute("PRAGMA synchronous=NORMAL;")
        self._rollback_hooks: List[Callable[[], None]] = []

    def __repr__(self) -> str:
        return f"WordsDatabase(path={self.path!r})"

    # ------------------------------------------------------------------ #
    # Basic query helpers
    # ------------------------------------------------------------------ #
    def close(self) -> None:
        self._conn.close()

    @property
    def in_transaction(self) -> bool:
        return self._conn.in_transaction

    def execute(self, sql: str, params: Sequence | None = None) -> int:
        cur = self._conn.execute(sql, params or [])
        rowcount = cur.rowcount
        cur.close()
        return rowcount

    def query(self, sql: str, params: Sequence | None = None) -> List[sqlite3.Row]:
        cur = self._conn.execute(sql, params or [])
        rows = cur.fetchall()
        cur.close()
        return rows

    def query_value(self, sql: str, params: Sequence | None = None, default=None):
        """Return the first column of the first row, or ``default`` when no row matches."""
        cur = self._conn.execute(sql, params or [])
        row = cur.fetchone()
        cur.close()
        if row is None:
            return default
        return row[0]

    def iter_rows(self, sql: str, params: Sequence | None = None) -> Iterator[sqlite3.Row]:
        """Stream rows lazily so callers can stop reading early."""
        cur = self._conn.execute(sql, params or [])
        try:
            yield from cur
        finally:
            cur.close()

    def insert_with_id(self, sql: str, params: Sequence | None = None) -> int:
        cur = self._conn.execute(sql, params or [])
        row_id = cur.lastrowid
        cur.close()
        return row_id

    def table_exists(self, name: str) -> bool:
        row = self.query_value(
            "SELECT name FROM sqlite_master WHERE type='table' AND name = ?",
            (name,),
        )
        return row is not None

    # ------------------------------------------------------------------ #
    # Transactions
    # ------------------------------------------------------------------ #
    def add_rollback_hook(self, hook: Callable[[], None]) -> None:
        """Register a callback that drops state cached during an aborted transaction."""
        self._rollback_hooks.append(hook)

    @contextlib.contextmanager
    def transaction(self) -> Generator[sqlite3.Connection, None, None]:
        # Nested use joins the transaction that is already open.
        if self._conn.in_transaction:
            yield self._conn
            return
        try:
            self._conn.execute("BEGIN IMMEDIATE")
            yield self._conn
            self._conn.commit()
        except BaseException:
            if self._conn.in_transaction:
                self._conn.rollback()
            for hook in self._rollback_hooks:
                hook()
            raise

    def execute_batch(self, script: str, followup: Sequence[tuple[str, Sequence]] = ()) -> None:
        """Run a multi-statement script plus follow-up statements as one atomic unit."""
        try:
            self._conn.executescript(f"BEGIN IMMEDIATE;\n{script}")
            for sql, params in followup:
                self._conn.execute(sql, params)
            self._conn.execute("COMMIT")
        except sqlite3.Error:
            if self._conn.in_transaction:
                self._conn.rollback()
            raise
