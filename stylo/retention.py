"""
Retention: forget what's older than a day, then give the space back.

Run on demand (cron, a timer unit, by hand); nothing here schedules
itself. The compaction step needs the store to itself: if the daemon or a
one-shot writer holds the write lock longer than the busy budget, the
sweep fails with StorageUnavailable. No retry. Pick a quiet moment.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path

from . import store
from .log import log


RETENTION_WINDOW = timedelta(hours=24)


@dataclass
class SweepResult:
    deleted: int = 0
    remaining: int = 0


def sweep(
    db_path: Path,
    max_age: timedelta = RETENTION_WINDOW,
    busy_timeout_ms: int = store.DEFAULT_BUSY_TIMEOUT_MS,
) -> SweepResult:
    conn = store.connect(db_path, busy_timeout_ms)
    try:
        deleted = store.delete_older_than(conn, max_age)
        # already committed; report before the part that can fail
        log(f"retention: deleted {deleted} rows")
        store.reclaim_space(conn)
        return SweepResult(deleted=deleted, remaining=store.count(conn))
    finally:
        conn.close()
