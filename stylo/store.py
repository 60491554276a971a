"""
Store: the one table every stylo process writes to.

Table:
  logs: append-only; id and timestamp are assigned by SQLite,
        never by the caller. Rows leave only through the retention sweep.

Write discipline: every connection runs in WAL mode with a busy timeout.
The daemon, any number of one-shot writers and the sweep each hold their
own connection to the same file. When two of them want to write at once,
the loser blocks inside SQLite and retries for up to busy_timeout_ms
before giving up with "database is locked". There is no lock of our own.

VACUUM is the exception: it rewrites the whole file and needs every other
writer gone. Run the sweep in a quiet window.
"""

from __future__ import annotations

import sqlite3
from datetime import timedelta
from pathlib import Path

from .errors import StorageUnavailable, WriteFailed


DEFAULT_BUSY_TIMEOUT_MS = 5000


def connect(
    db_path: Path,
    busy_timeout_ms: int = DEFAULT_BUSY_TIMEOUT_MS,
) -> sqlite3.Connection:
    """Open (creating if needed) the store and make sure the table exists.

    Raises StorageUnavailable if the file can't be opened, configured,
    or given its schema.
    """
    try:
        conn = sqlite3.connect(str(db_path))
    except (sqlite3.Error, OSError) as e:
        raise StorageUnavailable(f"cannot open {db_path}: {e}") from e

    try:
        conn.row_factory = sqlite3.Row
        # busy budget first, so switching to WAL also waits on a locked file
        conn.execute(f"PRAGMA busy_timeout = {int(busy_timeout_ms)}")
        conn.execute("PRAGMA journal_mode=WAL")
        _create_schema(conn)
    except (sqlite3.Error, OSError) as e:
        conn.close()
        raise StorageUnavailable(f"cannot prepare {db_path}: {e}") from e

    return conn


def _create_schema(conn: sqlite3.Connection) -> None:
    """Idempotent. Safe on every open, from every process."""
    conn.execute("""
        CREATE TABLE IF NOT EXISTS logs (
            id          INTEGER PRIMARY KEY AUTOINCREMENT,
            timestamp   DATETIME DEFAULT CURRENT_TIMESTAMP,
            source      TEXT NOT NULL,
            severity    TEXT NOT NULL,
            message     TEXT NOT NULL
        )
    """)
    conn.commit()


def insert(
    conn: sqlite3.Connection,
    source: str,
    severity: str,
    message: str,
) -> int:
    """Append one row in its own transaction. Returns the new id."""
    try:
        with conn:
            cursor = conn.execute(
                "INSERT INTO logs (source, severity, message) VALUES (?, ?, ?)",
                (source, severity, message),
            )
    except (sqlite3.Error, UnicodeEncodeError) as e:
        raise WriteFailed(f"insert failed: {e}") from e
    return cursor.lastrowid


def delete_older_than(conn: sqlite3.Connection, age: timedelta) -> int:
    """Delete every row stamped before now - age. Returns how many went."""
    modifier = f"-{int(age.total_seconds())} seconds"
    try:
        with conn:
            cursor = conn.execute(
                "DELETE FROM logs WHERE timestamp < datetime('now', ?)",
                (modifier,),
            )
    except sqlite3.Error as e:
        raise WriteFailed(f"delete failed: {e}") from e
    return cursor.rowcount


def reclaim_space(conn: sqlite3.Connection) -> None:
    """VACUUM, then fold the WAL back so the file actually shrinks.

    Needs exclusive access. Another writer holding the file past the
    busy budget surfaces as StorageUnavailable.
    """
    try:
        conn.execute("VACUUM")
        conn.execute("PRAGMA wal_checkpoint(TRUNCATE)")
    except sqlite3.Error as e:
        raise StorageUnavailable(f"compaction failed: {e}") from e


def count(conn: sqlite3.Connection) -> int:
    row = conn.execute("SELECT COUNT(*) AS n FROM logs").fetchone()
    return row["n"]
