"""Per-loop shared state: the cached HTTP date, cork buffer and loop hooks."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Union

_WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

When = Union[None, int, float, datetime]


def _to_utc(when: When) -> datetime:
    if when is None:
        when = time.time()
    if isinstance(when, datetime):
        if when.tzinfo is None:
            return when.replace(tzinfo=timezone.utc)
        return when.astimezone(timezone.utc)
    return datetime.fromtimestamp(when, tz=timezone.utc)


def format_http_date(when: When = None) -> str:
    """Format a moment as an HTTP date such as ``Thu, 01 Jan 1970 00:00:00 GMT``.

    ``when`` may be a POSIX timestamp, a datetime (naive ones are taken as
    UTC) or None for the current time.
    """
    moment = _to_utc(when)
    return (
        f"{_WEEKDAYS[moment.weekday()]}, {moment.day:02d} {_MONTHS[moment.month - 1]} "
        f"{moment.year} {moment.hour:02d}:{moment.minute:02d}:{moment.second:02d} GMT"
    )


@dataclass
class LoopData:
    """State shared by everything running on one event loop."""

    CORK_BUFFER_SIZE = 16 * 1024

    date: str = ""
    no_mark: bool = False
    cork_buffer: bytearray = field(default_factory=lambda: bytearray(LoopData.CORK_BUFFER_SIZE))
    cork_offset: int = 0
    corked_socket: Optional[Any] = None
    zlib_context: Optional[Any] = None
    inflation_stream: Optional[Any] = None
    deflation_stream: Optional[Any] = None
    date_timer: Optional[Any] = None
    defer_lock: threading.Lock = field(default_factory=threading.Lock, repr=False)
    current_defer_queue: int = 0
    defer_queues: tuple[list[Callable[[], None]], list[Callable[[], None]]] = field(
        default_factory=lambda: ([], []), repr=False
    )
    post_handlers: dict[Any, Callable[[Any], None]] = field(default_factory=dict, repr=False)
    pre_handlers: dict[Any, Callable[[Any], None]] = field(default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        if not self.date:
            self.update_date()

    def update_date(self, when: When = None) -> str:
        """Refresh the cached date string and return it."""
        self.date = format_http_date(when)
        return self.date