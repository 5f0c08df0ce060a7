"""Cooperative cancellation for long-running loops."""

import threading

from .errors import TranscriptionCancelledError


class CancellationToken:
    """Flag checked by long loops; set from any thread to abandon work."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        """Raise TranscriptionCancelledError if cancel() has been called."""
        if self._event.is_set():
            raise TranscriptionCancelledError("Computation was cancelled")


def check(token) -> None:
    """Helper for optional tokens."""
    if token is not None:
        token.raise_if_cancelled()
