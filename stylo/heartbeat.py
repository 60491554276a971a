"""
Heartbeat: optional status pings from the daemon.

If STYLO_HEARTBEAT_URL is set, the daemon POSTs its counters there every
heartbeat_interval seconds so a dashboard can tell it's alive and whether
it's dropping lines. A failed ping is logged and otherwise ignored.
"""

from __future__ import annotations

import json
from typing import Any

import requests

from . import __version__


class Heartbeat:
    """HTTP client for the status endpoint."""

    def __init__(self, url: str, worker_name: str = "stylo", timeout: float = 5.0):
        self.url = url
        self.worker_name = worker_name
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            "Content-Type": "application/json",
            "User-Agent": f"stylo/{__version__}",
        })

    def send(self, **counters: Any) -> None:
        payload = {"worker": self.worker_name, **counters}
        self.session.post(
            self.url,
            data=json.dumps(payload),
            timeout=self.timeout,
        ).raise_for_status()

    def close(self) -> None:
        self.session.close()
