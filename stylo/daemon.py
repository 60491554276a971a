"""
stylo daemon: the socket listener.

Binds a Unix datagram socket, then loops forever: receive, decode, insert.
One bad write or one failed recv costs at most one message. The daemon
itself only dies if it can't open the store or bind the socket at startup.

SIGTERM / SIGINT finish the insert in hand, remove the socket file and
exit 0. The recv has a short timeout so the shutdown flag and the
heartbeat clock are checked at least once a second.
"""

from __future__ import annotations

import signal
import socket
import sqlite3
import threading
import time
from dataclasses import asdict, dataclass

from . import store
from .config import StyloConfig
from .decode import decode
from .errors import BindFailure, TransportError, WriteFailed
from .heartbeat import Heartbeat
from .log import log, log_error

# Larger datagrams are truncated by the kernel
RECV_BUFFER = 4096
# How long recv blocks before the loop looks around
POLL_SECONDS = 1.0
# Pause after a failed recv so a dead socket doesn't spin the CPU
TRANSPORT_BACKOFF = 0.1


@dataclass
class DaemonStats:
    received: int = 0
    stored: int = 0
    dropped: int = 0
    transport_errors: int = 0

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


class Daemon:
    def __init__(self, cfg: StyloConfig, heartbeat: Heartbeat | None = None):
        self.cfg = cfg
        self.stats = DaemonStats()
        self.conn: sqlite3.Connection | None = None
        self.sock: socket.socket | None = None
        if heartbeat is None and cfg.heartbeat_url:
            heartbeat = Heartbeat(cfg.heartbeat_url, worker_name=cfg.worker_name)
        self.heartbeat = heartbeat
        self._shutdown = threading.Event()
        self._last_hb: float | None = None

    def log(self, msg: str) -> None:
        log(msg, self.cfg.verbose)

    # --- setup ---

    def open_store(self) -> None:
        """Raises StorageUnavailable; fatal for the daemon."""
        self.conn = store.connect(self.cfg.db_path, self.cfg.busy_timeout_ms)

    def bind(self) -> None:
        path = self.cfg.socket_path

        # Stale socket from a previous run
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            log_error(f"could not remove stale socket {path}: {e}")

        sock = socket.socket(socket.AF_UNIX, socket.SOCK_DGRAM)
        try:
            sock.bind(str(path))
        except OSError as e:
            sock.close()
            raise BindFailure(f"cannot bind socket {path}: {e}") from e

        sock.settimeout(POLL_SECONDS)
        self.sock = sock

    def _install_signals(self) -> dict:
        """Returns the handlers it replaced, for run() to put back."""
        # signal.signal only works from the main thread
        if threading.current_thread() is not threading.main_thread():
            return {}

        def handle_signal(signum, frame):
            self.log(f"received signal {signum}, finishing current work...")
            self.stop()

        previous = {}
        for signum in (signal.SIGTERM, signal.SIGINT):
            previous[signum] = signal.signal(signum, handle_signal)
        return previous

    # --- per message ---

    def handle(self, payload: bytes) -> int | None:
        """Decode and store one datagram. Returns the row id, or None if dropped."""
        self.stats.received += 1
        line = decode(payload)
        try:
            row_id = store.insert(
                self.conn, line.source, line.severity, line.message
            )
        except WriteFailed as e:
            self.stats.dropped += 1
            log_error(f"dropped line from {line.source!r}: {e}")
            return None
        self.stats.stored += 1
        return row_id

    def receive(self) -> bytes | None:
        """One recv. None on poll timeout; TransportError on OS failure."""
        try:
            return self.sock.recv(RECV_BUFFER)
        except TimeoutError:
            return None
        except OSError as e:
            raise TransportError(f"socket read error: {e}") from e

    def _heartbeat_safe(self, force: bool = False) -> None:
        if self.heartbeat is None:
            return
        now = time.monotonic()
        if (
            not force
            and self._last_hb is not None
            and now - self._last_hb < self.cfg.heartbeat_interval
        ):
            return
        self._last_hb = now
        try:
            self.heartbeat.send(**self.stats.as_dict())
        except Exception as e:
            log_error(f"heartbeat failed: {e}")

    # --- loop ---

    def serve(self) -> None:
        """Receive until stop() is called. Never raises for a single message."""
        while not self._shutdown.is_set():
            self._heartbeat_safe()

            try:
                payload = self.receive()
            except TransportError as e:
                self.stats.transport_errors += 1
                log_error(str(e))
                time.sleep(TRANSPORT_BACKOFF)
                continue

            if payload is None:
                continue

            try:
                self.handle(payload)
            except Exception as e:
                self.stats.dropped += 1
                log_error(f"unexpected error handling message: {e}")

    def stop(self) -> None:
        self._shutdown.set()

    def close(self) -> None:
        if self.sock is not None:
            self.sock.close()
            self.sock = None
            try:
                self.cfg.socket_path.unlink()
            except OSError:
                pass
        if self.conn is not None:
            self.conn.close()
            self.conn = None
        if self.heartbeat is not None:
            self.heartbeat.close()

    def run(self) -> int:
        """Open, bind, serve until signalled. BindFailure / StorageUnavailable propagate."""
        self.log("stylo daemon starting")
        self.log(f"db: {self.cfg.db_path}")

        try:
            self.open_store()
            self.bind()
        except Exception:
            self.close()
            raise

        previous = self._install_signals()
        self.log(f"listening on {self.cfg.socket_path}")

        try:
            self.serve()
        finally:
            self._heartbeat_safe(force=True)
            self.close()
            for signum, handler in previous.items():
                if handler is not None:
                    signal.signal(signum, handler)
            s = self.stats
            self.log(
                f"daemon exiting ({s.received} received, {s.stored} stored, "
                f"{s.dropped} dropped, {s.transport_errors} transport errors)"
            )

        return 0
