"""
One-shot writer: record a single line without a daemon.

Opens its own connection, inserts, closes. There's no loop to hide a
failure in, so StorageUnavailable / WriteFailed go straight to the caller.
"""

from __future__ import annotations

from pathlib import Path

from . import store


def write_one(
    db_path: Path,
    source: str,
    severity: str,
    message: str,
    busy_timeout_ms: int = store.DEFAULT_BUSY_TIMEOUT_MS,
) -> int:
    conn = store.connect(db_path, busy_timeout_ms)
    try:
        return store.insert(conn, source, severity, message)
    finally:
        conn.close()
