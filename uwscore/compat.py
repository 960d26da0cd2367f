"""Socket options, WebSocket behaviour settings and client quirk detection."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Callable, Optional

_DIGITS = frozenset("0123456789")


def has_broken_compression(user_agent: str) -> bool:
    """True for Safari 15.0 to 15.3, whose permessage-deflate is broken."""
    marker = " Version/15."
    start = user_agent.find(marker)
    if start < 0:
        return False
    start += len(marker)

    end = user_agent.find(" ", start)
    if end < 0:
        return False

    minor = user_agent[start:end]
    if not minor or not set(minor) <= _DIGITS:
        return False
    if int(minor) > 3:
        return False

    return user_agent.find(" Safari/", end) >= 0


@dataclass
class SocketContextOptions:
    """TLS settings for a socket context; all unset by default."""

    key_file_name: Optional[str] = None
    cert_file_name: Optional[str] = None
    passphrase: Optional[str] = None
    dh_params_file_name: Optional[str] = None
    ca_file_name: Optional[str] = None
    ssl_ciphers: Optional[str] = None
    ssl_prefer_low_memory_usage: int = 0


class CompressOptions(enum.IntFlag):
    """Per-message deflate modes."""

    DISABLED = 0
    DEDICATED_COMPRESSOR = enum.auto()
    DEDICATED_DECOMPRESSOR = enum.auto()


class BehaviorError(ValueError):
    """Raised for WebSocket behaviour settings outside their allowed range."""


MAX_IDLE_TIMEOUT = 240 * 4
MIN_IDLE_TIMEOUT = 8
MAX_LIFETIME_MINUTES = 240


@dataclass
class WebSocketBehavior:
    """Settings and event handlers for WebSockets on one route."""

    compression: CompressOptions = CompressOptions.DISABLED
    max_payload_length: int = 16 * 1024
    idle_timeout: int = 120
    max_backpressure: int = 64 * 1024
    close_on_backpressure_limit: bool = False
    reset_idle_timeout_on_send: bool = False
    send_pings_automatically: bool = True
    max_lifetime: int = 0
    upgrade: Optional[Callable[..., Any]] = None
    open: Optional[Callable[..., Any]] = None
    message: Optional[Callable[..., Any]] = None
    drain: Optional[Callable[..., Any]] = None
    ping: Optional[Callable[..., Any]] = None
    pong: Optional[Callable[..., Any]] = None
    subscription: Optional[Callable[..., Any]] = None
    close: Optional[Callable[..., Any]] = None

    def validate(self) -> WebSocketBehavior:
        """Check the timeout limits; return self, or raise BehaviorError."""
        if self.idle_timeout and self.idle_timeout < MIN_IDLE_TIMEOUT:
            raise BehaviorError("idle_timeout must be either 0 or greater than 8")
        if self.idle_timeout > MAX_IDLE_TIMEOUT:
            raise BehaviorError("idle_timeout must not be greater than 960 seconds")
        if self.max_lifetime > MAX_LIFETIME_MINUTES:
            raise BehaviorError("max_lifetime must not be greater than 240 minutes")
        return self