from __future__ import annotations

import threading


class ChunkCancelled(Exception):
    """Raised inside a chunk task once its CancelToken has been set."""


class CancelToken:
    """Thread-safe flag a caller sets to abandon an in-flight chunk task."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise ChunkCancelled()


def check(token: CancelToken | None) -> None:
    if token is not None:
        token.raise_if_cancelled()
