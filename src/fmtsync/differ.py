"""In-process line differ producing structured change records.

The edit script is computed with Myers' O(ND) greedy algorithm, which yields a
shortest edit script (equivalently, a longest common subsequence of lines).
The common prefix and suffix are trimmed first; formatter output usually
differs from its input in a handful of places, so D stays small.
"""

from __future__ import annotations

import enum
from collections.abc import Sequence
from dataclasses import dataclass

from fmtsync.lines import split_lines


@dataclass(frozen=True, slots=True)
class LineSpan:
    """1-based inclusive line range; ``end < start`` is an empty span."""

    start: int
    end: int

    @property
    def is_empty(self) -> bool:
        return self.end < self.start

    def __len__(self) -> int:
        return max(0, self.end - self.start + 1)


class ChangeKind(enum.Enum):
    INSERT = "a"
    DELETE = "d"
    CHANGE = "c"


@dataclass(frozen=True, slots=True)
class ChangeRecord:
    """A contiguous run of old lines replaced by a contiguous run of new lines.

    An empty `old` span is anchored after old line ``old.end`` (insertion); an
    empty `new` span is anchored after new line ``new.end`` (deletion).
    """

    old: LineSpan
    new: LineSpan
    kind: ChangeKind

    def __post_init__(self) -> None:
        expected = _kind_for(self.old, self.new)
        if expected is None:
            raise ValueError(f"change record with two empty spans: {self.old}, {self.new}")
        if expected is not self.kind:
            raise ValueError(
                f"{self.kind.name} does not match spans {self.old}, {self.new} "
                f"(expected {expected.name})"
            )

    @classmethod
    def from_spans(cls, old: LineSpan, new: LineSpan) -> ChangeRecord:
        kind = _kind_for(old, new)
        if kind is None:
            raise ValueError(f"change record with two empty spans: {old}, {new}")
        return cls(old=old, new=new, kind=kind)


def _kind_for(old: LineSpan, new: LineSpan) -> ChangeKind | None:
    if old.is_empty and new.is_empty:
        return None
    if old.is_empty:
        return ChangeKind.INSERT
    if new.is_empty:
        return ChangeKind.DELETE
    return ChangeKind.CHANGE


def _myers_matches(a: Sequence[bytes], b: Sequence[bytes]) -> list[tuple[int, int]]:
    """Return matched (i, j) index pairs of a shortest edit script, ascending."""

    n, m = len(a), len(b)
    v: dict[int, int] = {1: 0}
    trace: list[dict[int, int]] = []
    for d in range(n + m + 1):
        trace.append(dict(v))
        for k in range(-d, d + 1, 2):
            if k == -d or (k != d and v[k - 1] < v[k + 1]):
                x = v[k + 1]
            else:
                x = v[k - 1] + 1
            y = x - k
            while x < n and y < m and a[x] == b[y]:
                x += 1
                y += 1
            v[k] = x
            if x >= n and y >= m:
                return _backtrack(trace, n, m)
    raise AssertionError("unreachable: an edit script of length n + m always exists")


def _backtrack(trace: list[dict[int, int]], n: int, m: int) -> list[tuple[int, int]]:
    matches: list[tuple[int, int]] = []
    x, y = n, m
    for d in range(len(trace) - 1, -1, -1):
        v = trace[d]
        k = x - y
        if k == -d or (k != d and v[k - 1] < v[k + 1]):
            prev_k = k + 1
        else:
            prev_k = k - 1
        prev_x = v[prev_k]
        prev_y = prev_x - prev_k
        while x > prev_x and y > prev_y:
            x -= 1
            y -= 1
            matches.append((x, y))
        x, y = prev_x, prev_y
    matches.reverse()
    return matches


def diff_lines(old_lines: Sequence[bytes], new_lines: Sequence[bytes]) -> list[ChangeRecord]:
    """Diff two line sequences into change records in ascending old-line order."""

    n, m = len(old_lines), len(new_lines)
    prefix = 0
    while prefix < n and prefix < m and old_lines[prefix] == new_lines[prefix]:
        prefix += 1
    suffix = 0
    while (
        suffix < n - prefix
        and suffix < m - prefix
        and old_lines[n - 1 - suffix] == new_lines[m - 1 - suffix]
    ):
        suffix += 1

    a = old_lines[prefix : n - suffix]
    b = new_lines[prefix : m - suffix]
    if not a and not b:
        return []

    records: list[ChangeRecord] = []
    i = j = 0
    for mi, mj in [*_myers_matches(a, b), (len(a), len(b))]:
        if i < mi or j < mj:
            # Convert 0-based half-open [i, mi) to 1-based inclusive spans.
            records.append(
                ChangeRecord.from_spans(
                    LineSpan(prefix + i + 1, prefix + mi),
                    LineSpan(prefix + j + 1, prefix + mj),
                )
            )
        i, j = mi + 1, mj + 1
    return records


def diff_bytes(old: bytes, new: bytes) -> list[ChangeRecord]:
    return diff_lines(split_lines(old), split_lines(new))
