"""Documents that can be read, checked for staleness and edited by line address."""

from __future__ import annotations

import os
import shutil
import tempfile
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from fmtsync.errors import DocumentReadError, StaleDocumentError
from fmtsync.planner import EditOperation, apply_edits


class DocumentSource(Protocol):
    def read_document(self) -> bytes:
        """Return the persisted content (what the formatter will see)."""
        ...

    def read_live_buffer(self) -> bytes:
        """Return the content edits will be applied to."""
        ...


class DocumentSink(Protocol):
    def apply_edit_operation(self, op: EditOperation) -> None: ...


class Document(DocumentSource, DocumentSink, Protocol):
    pass


def check_fresh(snapshot: bytes, live: bytes) -> None:
    """Raise StaleDocumentError unless `live` still equals the diffed snapshot."""

    if snapshot != live:
        raise StaleDocumentError("document modified since snapshot")


@dataclass(slots=True)
class BufferDocument:
    """In-memory document; `live` starts as a copy of `persisted`."""

    persisted: bytes
    live: bytes | None = None
    applied: list[EditOperation] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.live is None:
            self.live = self.persisted

    def read_document(self) -> bytes:
        return self.persisted

    def read_live_buffer(self) -> bytes:
        assert self.live is not None
        return self.live

    def apply_edit_operation(self, op: EditOperation) -> None:
        assert self.live is not None
        self.live = apply_edits(self.live, [op])
        self.applied.append(op)


def _atomic_write_bytes(path: Path, data: bytes) -> None:
    # Temp file in the same directory then os.replace, keeping the file mode.
    fd, tmp = tempfile.mkstemp(dir=str(path.parent), prefix=".fmtsync-tmp-")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        shutil.copymode(path, tmp)
        os.replace(tmp, path)
    finally:
        try:
            os.unlink(tmp)
        except FileNotFoundError:
            pass


@dataclass(frozen=True, slots=True)
class FileDocument:
    """A document backed by a file on disk.

    The file is both the persisted and the live copy. A batch of edits is
    spliced in memory by line address and written back atomically once.
    """

    path: Path

    def read_document(self) -> bytes:
        try:
            return self.path.read_bytes()
        except OSError as e:
            raise DocumentReadError(f"Failed reading {self.path}: {e}") from e

    def read_live_buffer(self) -> bytes:
        return self.read_document()

    def apply_edit_operation(self, op: EditOperation) -> None:
        self.apply_edit_operations([op])

    def apply_edit_operations(self, ops: Sequence[EditOperation]) -> None:
        current = self.read_document()
        _atomic_write_bytes(self.path, apply_edits(current, ops))
