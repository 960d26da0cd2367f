"""Per-response state: pending flags and the event handlers of one response."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Callable, Optional


class ResponseState(enum.IntFlag):
    """Status bits tracked for an HTTP response."""

    STATUS_CALLED = 1
    WRITE_CALLED = 2
    END_CALLED = 4
    RESPONSE_PENDING = 8
    CONNECTION_CLOSE = 16


def _writable_placeholder(offset: int) -> bool:
    return True


@dataclass
class HttpResponseData:
    """Handlers and bookkeeping belonging to one in-flight HTTP response."""

    on_writable: Optional[Callable[[int], bool]] = None
    on_aborted: Optional[Callable[[], None]] = None
    on_data: Optional[Callable[[bytes, bool], None]] = None
    offset: int = 0
    received_bytes_per_timeout: int = 0
    state: ResponseState = ResponseState(0)

    def mark_done(self) -> None:
        """Drop the abort and writable handlers and clear the pending bit."""
        self.on_aborted = None
        self.on_writable = None
        self.state &= ~ResponseState.RESPONSE_PENDING

    def call_on_writable(self, offset: int) -> bool:
        """Invoke the writable handler, tolerating it calling ``mark_done``.

        The handler is swapped for a placeholder while it runs; unless the
        handler was cleared in the meantime, it is put back afterwards.
        """
        borrowed = self.on_writable
        if borrowed is None:
            raise RuntimeError("no writable handler is set")
        self.on_writable = _writable_placeholder
        result = bool(borrowed(offset))
        if self.on_writable is not None:
            self.on_writable = borrowed
        return result