"""Per-request cancellation handles."""

from __future__ import annotations

import threading

from unmatched_line.errors import RequestCancelled


class CancelToken:
    """Cancellation handle owned by whoever started a request.

    A view that goes away calls :meth:`cancel`; any store action holding
    the token then drops its result instead of writing state.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise RequestCancelled("Request was cancelled")
