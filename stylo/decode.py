"""
Decode: turning a datagram into a log line.

Wire format:
  SOURCE SEVERITY MESSAGE

Split on the first two spaces only, so MESSAGE keeps its own spaces.
Anything that doesn't split into exactly three parts is still kept:
the whole trimmed text becomes the message, under unknown/RAW.
Nothing is ever dropped for being malformed.
"""

from __future__ import annotations

from dataclasses import dataclass


FALLBACK_SOURCE = "unknown"
FALLBACK_SEVERITY = "RAW"


@dataclass(frozen=True)
class LogLine:
    """The three caller-supplied fields of a log row."""
    source: str
    severity: str
    message: str


def decode(payload: bytes) -> LogLine:
    """Total: every byte string maps to exactly one LogLine."""
    text = payload.decode("utf-8", errors="replace").strip()

    parts = text.split(" ", 2)
    if len(parts) == 3:
        return LogLine(source=parts[0], severity=parts[1], message=parts[2])

    return LogLine(
        source=FALLBACK_SOURCE,
        severity=FALLBACK_SEVERITY,
        message=text,
    )


def encode(source: str, severity: str, message: str) -> bytes:
    """The inverse, for senders."""
    return f"{source} {severity} {message}".encode("utf-8")
