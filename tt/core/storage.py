"""SQLite storage for timer records.

Each timer is a single row keyed by its id. The store owns one connection
for its whole life and runs in autocommit mode; ``transaction()`` groups
several writes so they land together or not at all.
"""
from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List

from tt.common.logger import log


# --- Database Schema ---
# Table: timers
# Columns:
#   id           integer primary key  -- assigned by the session as count + 1
#   name         text
#   description  text
#   start_time   text                 -- ISO timestamp captured at creation
#   elapsed      integer              -- whole seconds accumulated
#   running      integer              -- 0/1, at most one row is 1
SCHEMA = """
CREATE TABLE IF NOT EXISTS timers (
    id INTEGER PRIMARY KEY,
    name TEXT NOT NULL,
    description TEXT NOT NULL DEFAULT '',
    start_time TEXT NOT NULL,
    elapsed INTEGER NOT NULL DEFAULT 0,
    running INTEGER NOT NULL DEFAULT 0
);
"""

UPSERT = """
INSERT INTO timers (id, name, description, start_time, elapsed, running)
VALUES (:id, :name, :description, :start_time, :elapsed, :running)
ON CONFLICT(id) DO UPDATE SET
    name = excluded.name,
    description = excluded.description,
    start_time = excluded.start_time,
    elapsed = excluded.elapsed,
    running = excluded.running
"""


class StorageError(Exception):
    """Persistence is unavailable or rejected a write."""


class TimerStore:
    """Persists timer records to a SQLite database file."""

    def __init__(self, db_path: Path | str) -> None:
        self.db_path = str(db_path)
        self._conn: sqlite3.Connection | None = None
        self._in_transaction = False

    def open(self) -> "TimerStore":
        """Connect (if needed) and make sure the schema exists."""
        if self._conn is None:
            try:
                conn = sqlite3.connect(self.db_path, isolation_level=None)
                conn.execute(SCHEMA)
            except sqlite3.Error as e:
                raise StorageError(f"Could not open timer database '{self.db_path}': {e}") from e
            self._conn = conn
            log.info(f"Opened timer database '{self.db_path}'")
        return self

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None
            log.info(f"Closed timer database '{self.db_path}'")

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            self.open()
        return self._conn

    # --- Capabilities used by the tracking session ---
    def count_timers(self) -> int:
        """Return how many timer records are stored."""
        try:
            row = self._connection().execute("SELECT COUNT(*) FROM timers").fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Could not count timers: {e}") from e
        return int(row[0])

    def persist_timer(self, record: Dict[str, Any]) -> None:
        """Insert the record, or update the stored row with the same id."""
        params = dict(record)
        params["running"] = 1 if record["running"] else 0
        try:
            self._connection().execute(UPSERT, params)
        except sqlite3.Error as e:
            raise StorageError(f"Could not persist timer {record.get('id')}: {e}") from e
        log.debug(f"Persisted timer {record['id']} (elapsed={record['elapsed']}, running={record['running']})")

    def load_timers(self) -> List[Dict[str, Any]]:
        """Return every stored record, oldest id first."""
        try:
            cur = self._connection().execute(
                "SELECT id, name, description, start_time, elapsed, running FROM timers ORDER BY id"
            )
            rows = cur.fetchall()
        except sqlite3.Error as e:
            raise StorageError(f"Could not load timers: {e}") from e
        return [
            {
                "id": r[0],
                "name": r[1],
                "description": r[2],
                "start_time": r[3],
                "elapsed": r[4],
                "running": bool(r[5]),
            }
            for r in rows
        ]

    @contextmanager
    def transaction(self) -> Iterator["TimerStore"]:
        """Group writes; everything inside commits together or is rolled back.

        Nested use joins the outer transaction.
        """
        if self._in_transaction:
            yield self
            return

        conn = self._connection()
        try:
            conn.execute("BEGIN")
        except sqlite3.Error as e:
            raise StorageError(f"Could not begin transaction: {e}") from e

        self._in_transaction = True
        try:
            yield self
        except BaseException:
            try:
                conn.execute("ROLLBACK")
            except sqlite3.Error:
                log.warning("Rollback failed after an aborted transaction", exc_info=True)
            log.debug("Rolled back timer transaction")
            raise
        else:
            try:
                conn.execute("COMMIT")
            except sqlite3.Error as e:
                try:
                    conn.execute("ROLLBACK")
                except sqlite3.Error:
                    log.warning("Rollback failed after a failed commit", exc_info=True)
                raise StorageError(f"Could not commit transaction: {e}") from e
        finally:
            self._in_transaction = False
