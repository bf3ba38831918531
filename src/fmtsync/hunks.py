"""Normal-diff (``diff`` without -u) hunk headers.

Headers look like ``2c2``, ``2a3,4`` or ``3,5d2``. An insertion names the old
line it follows and a deletion names the new line it follows, so either side
may legitimately read ``0``.
"""

from __future__ import annotations

import logging

from fmtsync.differ import ChangeKind, ChangeRecord, LineSpan
from fmtsync.errors import HunkParseError
from fmtsync.lines import extract_lines

logger = logging.getLogger("fmtsync.hunks")

_OPS = "acd"


def _format_span(start: int, end: int) -> str:
    if start == end:
        return str(start)
    return f"{start},{end}"


def format_hunk_header(record: ChangeRecord) -> str:
    old, new = record.old, record.new
    if record.kind is ChangeKind.INSERT:
        return f"{old.end}a{_format_span(new.start, new.end)}"
    if record.kind is ChangeKind.DELETE:
        return f"{_format_span(old.start, old.end)}d{new.end}"
    return f"{_format_span(old.start, old.end)}c{_format_span(new.start, new.end)}"


def _body(prefix: bytes, text: bytes) -> bytes:
    out = bytearray()
    for line in text.splitlines(keepends=True):
        out += prefix + line
        if not line.endswith(b"\n"):
            out += b"\n\\ No newline at end of file\n"
    return bytes(out)


def format_normal_diff(records: list[ChangeRecord], old: bytes, new: bytes) -> bytes:
    """Render records as a complete normal diff, bodies included."""

    out = bytearray()
    for r in records:
        out += format_hunk_header(r).encode("ascii") + b"\n"
        removed = extract_lines(old, r.old.start, r.old.end)
        added = extract_lines(new, r.new.start, r.new.end)
        out += _body(b"< ", removed)
        if removed and added:
            out += b"---\n"
        out += _body(b"> ", added)
    return bytes(out)


def parse_span(text: str) -> tuple[int, int]:
    """Parse ``"3"`` or ``"3,5"``; returns ``(0, 0)`` (and logs) when malformed."""

    start_s, sep, end_s = text.partition(",")
    try:
        start = int(start_s)
        end = int(end_s) if sep else start
    except ValueError:
        logger.warning("cannot parse span %r", text)
        return 0, 0
    return start, end


def parse_hunk_header(line: str) -> ChangeRecord | None:
    """Parse one header into a change record.

    Returns None when either side starts at line 0 (including malformed
    numbers); such hunks are logged and dropped rather than failing the batch.
    """

    j = next((i for i, ch in enumerate(line) if ch in _OPS), -1)
    if j < 0:
        raise HunkParseError(f"cannot parse diff line: {line!r}")
    old_start, old_end = parse_span(line[:j])
    new_start, new_end = parse_span(line[j + 1 :])
    if old_start == 0 or new_start == 0:
        # TODO: "0aN" and "Nd0" are valid top-of-file hunks; accept them once
        # external diff input is applied rather than only displayed.
        logger.warning("skipping degenerate hunk %r", line)
        return None

    op = line[j]
    if op == "a":
        old, new = LineSpan(old_start + 1, old_start), LineSpan(new_start, new_end)
    elif op == "d":
        old, new = LineSpan(old_start, old_end), LineSpan(new_start + 1, new_start)
    else:
        old, new = LineSpan(old_start, old_end), LineSpan(new_start, new_end)
    try:
        return ChangeRecord(old=old, new=new, kind=ChangeKind(op))
    except ValueError as e:
        raise HunkParseError(f"inconsistent diff line {line!r}: {e}") from None


def parse_normal_diff(text: str) -> list[ChangeRecord]:
    """Parse the hunk headers of a normal diff, ignoring body lines."""

    records: list[ChangeRecord] = []
    for line in text.split("\n"):
        if not line or line[0] in "<>-\\":
            continue
        try:
            record = parse_hunk_header(line)
        except HunkParseError as e:
            raise HunkParseError(str(e), partial=records) from None
        if record is not None:
            records.append(record)
    return records
