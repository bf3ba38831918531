"""Line addressing over raw byte buffers.

Lines are delimited solely by ``\\n`` and numbered from 1. Nothing here decodes
the buffer, so arbitrary (non-UTF-8) content is handled as opaque bytes.
"""

from __future__ import annotations

NEWLINE = b"\n"


def count_lines(buffer: bytes) -> int:
    """Return the number of lines, counting a final unterminated line."""

    n = buffer.count(NEWLINE)
    if buffer and not buffer.endswith(NEWLINE):
        n += 1
    return n


def byte_offset_of_line(buffer: bytes, line: int) -> int:
    """Return the byte offset where 1-based `line` starts.

    Line 1 starts at 0. Lines past the end clamp to ``len(buffer)``, so the
    line one past the last one addresses the end of the buffer.
    """

    if line < 1:
        raise ValueError(f"line numbers start at 1, got {line}")
    offset = 0
    for _ in range(line - 1):
        nl = buffer.find(NEWLINE, offset)
        if nl < 0:
            return len(buffer)
        offset = nl + 1
    return offset


def extract_lines(buffer: bytes, start: int, end: int) -> bytes:
    """Return lines `start`..`end` inclusive, with `end`'s newline if present.

    ``start > end`` denotes an insertion point before `start` and yields
    ``b""``.
    """

    if start > end:
        return b""
    lo = byte_offset_of_line(buffer, start)
    hi = byte_offset_of_line(buffer, end + 1)
    return buffer[lo:hi]


def split_lines(buffer: bytes) -> list[bytes]:
    """Split into lines, each keeping its trailing newline.

    Unlike ``bytes.splitlines`` only ``\\n`` delimits lines, and a final line
    without a newline stays distinguishable from one with it.
    """

    parts = buffer.split(NEWLINE)
    out = [p + NEWLINE for p in parts[:-1]]
    if parts[-1]:
        out.append(parts[-1])
    return out
