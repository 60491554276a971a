"""
Client: hand a line to a running daemon.

Fire and forget: a datagram is either queued by the kernel or the send
fails right here. There is no acknowledgement from the daemon.
"""

from __future__ import annotations

import socket
from pathlib import Path

from .decode import encode
from .errors import TransportError


def send_raw(socket_path: Path, payload: bytes) -> None:
    with socket.socket(socket.AF_UNIX, socket.SOCK_DGRAM) as sock:
        try:
            sock.sendto(payload, str(socket_path))
        except OSError as e:
            raise TransportError(f"cannot send to {socket_path}: {e}") from e


def send(socket_path: Path, source: str, severity: str, message: str) -> None:
    send_raw(socket_path, encode(source, severity, message))
