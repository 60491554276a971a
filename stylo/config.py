"""
Config: where the store and the socket live.

Everything comes from the environment, resolved once at startup:

  STYLO_ENV                 development | production (default production)
  STYLO_DB                  path to the SQLite store
  STYLO_SOCKET              path to the datagram socket
  STYLO_BUSY_TIMEOUT_MS     how long a contended write waits (default 5000)
  STYLO_HEARTBEAT_URL       optional status endpoint for the daemon
  STYLO_HEARTBEAT_INTERVAL  seconds between heartbeats (default 30)
  STYLO_VERBOSE             0 to silence info lines

Development defaults are relative to the working directory so a checkout
can run without touching /var or /run.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping


DEV_DB_PATH = Path("log.db")
DEV_SOCKET_PATH = Path("log.sock")
PROD_DB_PATH = Path("/var/log.db")
PROD_SOCKET_PATH = Path("/run/log.sock")

DEFAULT_BUSY_TIMEOUT_MS = 5000
DEFAULT_HEARTBEAT_INTERVAL = 30.0


@dataclass
class StyloConfig:
    db_path: Path
    socket_path: Path
    busy_timeout_ms: int = DEFAULT_BUSY_TIMEOUT_MS
    heartbeat_url: str | None = None
    heartbeat_interval: float = DEFAULT_HEARTBEAT_INTERVAL
    worker_name: str = "stylo"
    verbose: bool = True


def load_config(environ: Mapping[str, str] | None = None) -> StyloConfig:
    env = os.environ if environ is None else environ

    mode = env.get("STYLO_ENV", "production").strip().lower()
    if mode in ("dev", "development"):
        default_db, default_sock = DEV_DB_PATH, DEV_SOCKET_PATH
    elif mode in ("prod", "production"):
        default_db, default_sock = PROD_DB_PATH, PROD_SOCKET_PATH
    else:
        raise ValueError(f"STYLO_ENV must be development or production, got {mode!r}")

    def resolve(val: str | None, default: Path) -> Path:
        p = Path(val).expanduser() if val else default
        if not p.is_absolute():
            p = Path.cwd() / p
        return p

    busy = int(env.get("STYLO_BUSY_TIMEOUT_MS", DEFAULT_BUSY_TIMEOUT_MS))
    if busy < 0:
        raise ValueError(f"STYLO_BUSY_TIMEOUT_MS must be >= 0, got {busy}")

    interval = float(env.get("STYLO_HEARTBEAT_INTERVAL", DEFAULT_HEARTBEAT_INTERVAL))
    if interval <= 0:
        raise ValueError(f"STYLO_HEARTBEAT_INTERVAL must be > 0, got {interval}")

    return StyloConfig(
        db_path=resolve(env.get("STYLO_DB"), default_db),
        socket_path=resolve(env.get("STYLO_SOCKET"), default_sock),
        busy_timeout_ms=busy,
        heartbeat_url=env.get("STYLO_HEARTBEAT_URL") or None,
        heartbeat_interval=interval,
        verbose=env.get("STYLO_VERBOSE", "1").strip() not in ("0", "false", "no"),
    )
