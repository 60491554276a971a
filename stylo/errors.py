"""Failure types shared by the daemon, the one-shot writer and the sweep."""

from __future__ import annotations


class StyloError(RuntimeError):
    """Base for everything stylo raises on purpose."""


class BindFailure(StyloError):
    """The daemon could not create its listening socket."""


class StorageUnavailable(StyloError):
    """The store could not be opened, or exclusive access was not granted."""


class WriteFailed(StyloError):
    """An insert or delete was rejected (busy budget spent, or I/O error)."""


class TransportError(StyloError):
    """Receiving from the socket failed at the OS level."""
