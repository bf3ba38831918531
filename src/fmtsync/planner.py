"""Turn change records into range-replace operations.

Operations are addressed in the coordinates of the *old* document and are
returned last-to-first. Applying an operation only renumbers lines after it,
so every operation still to be applied keeps a valid address.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Protocol

from fmtsync.differ import ChangeKind, ChangeRecord, diff_bytes
from fmtsync.errors import EditApplyError
from fmtsync.lines import byte_offset_of_line, extract_lines

logger = logging.getLogger("fmtsync.planner")


@dataclass(frozen=True, slots=True)
class EditOperation:
    """Replace old lines `start_line`..`end_line` (bytes `start_byte`..`end_byte`).

    ``end_line < start_line`` is a zero-width insertion before `start_line`.
    """

    start_line: int
    end_line: int
    start_byte: int
    end_byte: int
    replacement: bytes

    @property
    def is_insertion(self) -> bool:
        return self.end_line < self.start_line

    @property
    def address(self) -> str:
        if self.is_insertion:
            return f"{self.start_line - 1}+#0"
        return f"{self.start_line},{self.end_line}"


class EditSink(Protocol):
    def apply_edit_operation(self, op: EditOperation) -> None: ...


def _operation_for(record: ChangeRecord, new: bytes, old: bytes) -> EditOperation:
    start = record.old.start
    if record.kind is ChangeKind.INSERT:
        end = start - 1
        replacement = extract_lines(new, record.new.start, record.new.end)
    elif record.kind is ChangeKind.DELETE:
        end = record.old.end
        replacement = b""
    else:
        end = record.old.end
        replacement = extract_lines(new, record.new.start, record.new.end)
    return EditOperation(
        start_line=start,
        end_line=end,
        start_byte=byte_offset_of_line(old, start),
        end_byte=byte_offset_of_line(old, end + 1),
        replacement=replacement,
    )


def plan_edits(records: Sequence[ChangeRecord], new: bytes, old: bytes) -> list[EditOperation]:
    """Plan operations for `records` (ascending) in descending old-line order."""

    ops: list[EditOperation] = []
    for record in reversed(records):
        if record.old.start == 0 or record.new.start == 0:
            logger.warning(
                "skipping degenerate change %s -> %s", record.old, record.new
            )
            continue
        ops.append(_operation_for(record, new, old))
    return ops


def plan_diff(old: bytes, new: bytes) -> list[EditOperation]:
    return plan_edits(diff_bytes(old, new), new, old)


def apply_edits(buffer: bytes, ops: Iterable[EditOperation]) -> bytes:
    """Apply `ops` in order, re-addressing each by line against the current buffer."""

    for op in ops:
        lo = byte_offset_of_line(buffer, op.start_line)
        hi = byte_offset_of_line(buffer, op.end_line + 1)
        buffer = buffer[:lo] + op.replacement + buffer[hi:]
    return buffer


class EditPlanner:
    """Plans edits and hands them to any sink that can range-replace by line."""

    def plan(self, old: bytes, new: bytes) -> list[EditOperation]:
        return plan_diff(old, new)

    def apply(self, sink: EditSink, ops: Sequence[EditOperation]) -> int:
        """Apply `ops` strictly in order; returns how many were applied.

        A sink with `apply_edit_operations` takes the whole batch in one call,
        so it either applies everything or nothing.
        """

        apply_batch = getattr(sink, "apply_edit_operations", None)
        if apply_batch is not None and ops:
            try:
                apply_batch(ops)
            except Exception as e:
                raise EditApplyError(
                    f"failed applying {len(ops)} edit(s) from {ops[0].address}: {e}", applied=0
                ) from e
            return len(ops)

        for n, op in enumerate(ops):
            try:
                sink.apply_edit_operation(op)
            except Exception as e:
                raise EditApplyError(
                    f"failed applying edit at {op.address}: {e}", applied=n
                ) from e
        return len(ops)
