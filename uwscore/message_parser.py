"""Parsing of RFC 822 style header blocks shared by HTTP and multipart bodies."""

from __future__ import annotations

MAX_HEADERS = 10

_CR = 0x0D
_LF = 0x0A
_COLON = 0x3A


class HeaderParseError(ValueError):
    """Raised when a header block is malformed, incomplete or too long."""


def parse_headers(data: bytes | bytearray | memoryview) -> tuple[int, list[tuple[bytes, bytes]]]:
    """Parse a header block terminated by an empty line.

    Returns the number of bytes consumed (including the terminating CRLF) and
    the list of ``(key, value)`` pairs. Keys have every byte OR-ed with 0x20,
    which lower-cases ASCII letters. At most ``MAX_HEADERS`` headers are read.
    """
    buf = bytes(data)
    end = len(buf)
    headers: list[tuple[bytes, bytes]] = []
    pos = 0

    for _ in range(MAX_HEADERS):
        key_start = pos
        while pos < end and buf[pos] != _COLON and buf[pos] > 32:
            pos += 1
        if pos >= end:
            raise HeaderParseError("incomplete header block")

        if buf[pos] == _CR:
            if pos + 1 < end and buf[pos + 1] == _LF:
                return pos + 2, headers
            raise HeaderParseError("malformed end of header block")

        key = bytes(byte | 32 for byte in buf[key_start:pos])

        pos += 1
        while pos < end and (buf[pos] == _COLON or buf[pos] < 33) and buf[pos] != _CR:
            pos += 1
        value_start = pos

        cr = buf.find(b"\r", pos)
        if cr < 0 or cr + 1 >= end or buf[cr + 1] != _LF:
            raise HeaderParseError("header line is not terminated by CRLF")

        headers.append((key, buf[value_start:cr]))
        pos = cr + 2

    raise HeaderParseError(f"more than {MAX_HEADERS} headers")