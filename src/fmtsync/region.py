"""Top-of-file region resynchronization.

Only the leading region of a document (typically its import block) is
compared and replaced; content past the delimiter is never addressed.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Protocol

from fmtsync.errors import FmtsyncConfigError, RegionNotFoundError
from fmtsync.lines import count_lines
from fmtsync.planner import EditOperation


class RegionRule(Protocol):
    name: str

    def find_end(self, buffer: bytes) -> int | None:
        """Return the offset one past the region, or None without a delimiter."""
        ...


def _iter_lines(buffer: bytes) -> Iterator[tuple[bytes, int]]:
    """Yield (line content without newline, offset one past the line)."""

    pos = 0
    while pos < len(buffer):
        nl = buffer.find(b"\n", pos)
        end = len(buffer) if nl < 0 else nl + 1
        yield buffer[pos : end if nl < 0 else nl], end
        pos = end


@dataclass(frozen=True)
class BlankLineRule:
    """Region runs through the first blank line, inclusive."""

    name: str = "blank-line"

    def find_end(self, buffer: bytes) -> int | None:
        for line, end in _iter_lines(buffer):
            if not line.strip():
                return end
        return None


@dataclass(frozen=True)
class SentinelRule:
    """Region runs through the first line starting with `sentinel`."""

    sentinel: bytes
    name: str = "sentinel"

    def find_end(self, buffer: bytes) -> int | None:
        for line, end in _iter_lines(buffer):
            if line.startswith(self.sentinel):
                return end
        return None


@dataclass(frozen=True)
class GoImportsRule:
    """Region covers the package clause and the import declarations after it.

    Comments and blank lines between them are skipped over; the region ends
    after the last package/import line, before the first other declaration.
    """

    name: str = "go-imports"

    def find_end(self, buffer: bytes) -> int | None:
        last: int | None = None
        in_block = False
        in_comment = False
        for raw, end in _iter_lines(buffer):
            line = raw.strip()
            if in_comment:
                in_comment = b"*/" not in line
                continue
            if in_block:
                if line.startswith(b")"):
                    in_block = False
                    last = end
                continue
            if not line or line.startswith(b"//"):
                continue
            if line.startswith(b"/*"):
                in_comment = b"*/" not in line[2:]
                continue
            if line.startswith(b"package ") and last is None:
                last = end
                continue
            if line.startswith(b"import") and last is not None:
                rest = line[len(b"import") :].lstrip()
                if rest.startswith(b"(") and b")" not in rest:
                    in_block = True
                else:
                    last = end
                continue
            break
        return last


def rule_from_name(name: str, sentinel: str | bytes | None = None) -> RegionRule:
    if name == "blank-line":
        return BlankLineRule()
    if name == "go-imports":
        return GoImportsRule()
    if name == "sentinel":
        if not sentinel:
            raise FmtsyncConfigError("The sentinel region rule needs a non-empty sentinel.")
        if isinstance(sentinel, str):
            sentinel = sentinel.encode("utf-8")
        return SentinelRule(sentinel=sentinel)
    raise FmtsyncConfigError(f"Unknown region rule: {name!r}")


def top_region(buffer: bytes, rule: RegionRule) -> bytes:
    end = rule.find_end(buffer)
    if end is None:
        raise RegionNotFoundError(f"no {rule.name} delimiter found")
    return buffer[:end]


def patch_region(old: bytes, new: bytes, rule: RegionRule) -> EditOperation | None:
    """Return the single operation resyncing the top region, or None if equal."""

    old_top = top_region(old, rule)
    new_top = top_region(new, rule)
    if old_top == new_top:
        return None
    return EditOperation(
        start_line=1,
        end_line=count_lines(old_top),
        start_byte=0,
        end_byte=len(old_top),
        replacement=new_top,
    )
