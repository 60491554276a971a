import os
import pathlib
import sqlite3
import subprocess
import sys
from datetime import datetime, timedelta, timezone

import pytest

from stylo import store
from stylo.errors import StorageUnavailable, WriteFailed

ROOT = pathlib.Path(__file__).resolve().parents[1]


def _age_row(db_path, row_id, hours):
    c = sqlite3.connect(str(db_path))
    c.execute(
        "UPDATE logs SET timestamp = datetime('now', ?) WHERE id = ?",
        (f"-{hours} hours", row_id),
    )
    c.commit()
    c.close()


def test_connect_creates_table_in_wal_mode(conn):
    mode = conn.execute("PRAGMA journal_mode").fetchone()[0]
    assert mode.lower() == "wal"
    busy = conn.execute("PRAGMA busy_timeout").fetchone()[0]
    assert busy == 5000
    assert store.count(conn) == 0


def test_busy_timeout_is_configurable(db_path):
    c = store.connect(db_path, busy_timeout_ms=250)
    try:
        assert c.execute("PRAGMA busy_timeout").fetchone()[0] == 250
    finally:
        c.close()


def test_insert_ids_strictly_increase(conn):
    ids = [store.insert(conn, "web", "INFO", f"msg {i}") for i in range(5)]
    assert ids == sorted(ids)
    assert len(set(ids)) == 5


def test_ids_not_reused_after_delete(conn, db_path):
    first = store.insert(conn, "web", "INFO", "old")
    _age_row(db_path, first, 48)
    assert store.delete_older_than(conn, timedelta(hours=24)) == 1
    second = store.insert(conn, "web", "INFO", "new")
    assert second > first


def test_timestamp_is_assigned_by_store(conn):
    row_id = store.insert(conn, "web", "INFO", "hello")
    row = conn.execute("SELECT * FROM logs WHERE id = ?", (row_id,)).fetchone()
    stamped = datetime.strptime(row["timestamp"], "%Y-%m-%d %H:%M:%S")
    now = datetime.now(timezone.utc).replace(tzinfo=None)
    assert abs((now - stamped).total_seconds()) < 60
    assert (row["source"], row["severity"], row["message"]) == ("web", "INFO", "hello")


def test_reopen_is_idempotent(db_path):
    a = store.connect(db_path)
    store.insert(a, "daemon", "INFO", "first")
    a.close()

    b = store.connect(db_path)
    try:
        rows = b.execute("SELECT source, message FROM logs").fetchall()
        assert [(r["source"], r["message"]) for r in rows] == [("daemon", "first")]
    finally:
        b.close()


def test_unopenable_path_raises_storage_unavailable(tmp_path):
    with pytest.raises(StorageUnavailable):
        store.connect(tmp_path / "no-such-dir" / "log.db")


def test_locked_store_raises_write_failed(db_path):
    holder = store.connect(db_path)
    writer = store.connect(db_path, busy_timeout_ms=0)
    try:
        holder.execute("BEGIN IMMEDIATE")
        with pytest.raises(WriteFailed):
            store.insert(writer, "web", "INFO", "blocked")
        holder.rollback()
        assert store.insert(writer, "web", "INFO", "after") > 0
    finally:
        holder.close()
        writer.close()


def test_reclaim_space_needs_exclusive_access(db_path):
    holder = store.connect(db_path)
    sweeper = store.connect(db_path, busy_timeout_ms=0)
    try:
        holder.execute("BEGIN IMMEDIATE")
        with pytest.raises(StorageUnavailable):
            store.reclaim_space(sweeper)
        holder.rollback()
        store.reclaim_space(sweeper)
    finally:
        holder.close()
        sweeper.close()


def test_unencodable_text_raises_write_failed(conn):
    # argv bytes that aren't UTF-8 arrive as lone surrogates
    with pytest.raises(WriteFailed):
        store.insert(conn, "web", "ERROR", "bad \udcff byte")
    assert store.count(conn) == 0


def test_concurrent_oneshot_processes(db_path):
    store.connect(db_path).close()
    n = 8
    env = dict(
        os.environ,
        PYTHONPATH=os.pathsep.join(filter(None, [str(ROOT), os.environ.get("PYTHONPATH")])),
        STYLO_ENV="development",
        STYLO_DB=str(db_path),
        STYLO_VERBOSE="0",
    )
    env.pop("STYLO_BUSY_TIMEOUT_MS", None)

    procs = [
        subprocess.Popen(
            [sys.executable, "-m", "stylo", f"proc-{i}", "INFO", f"line {i}"],
            env=env,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
        )
        for i in range(n)
    ]
    results = []
    for p in procs:
        _, err = p.communicate(timeout=60)
        results.append((p.returncode, err))

    assert [rc for rc, _ in results] == [0] * n, [err for _, err in results]

    c = store.connect(db_path)
    try:
        rows = c.execute("SELECT id, source FROM logs").fetchall()
    finally:
        c.close()
    assert len(rows) == n
    assert len({r["id"] for r in rows}) == n
    assert sorted(r["source"] for r in rows) == sorted(f"proc-{i}" for i in range(n))
