from __future__ import annotations

import os
import stat
from pathlib import Path

import pytest

from fmtsync.document import BufferDocument, FileDocument, check_fresh
from fmtsync.errors import DocumentReadError, StaleDocumentError
from fmtsync.planner import EditPlanner, plan_diff


def test_check_fresh() -> None:
    check_fresh(b"a\n", b"a\n")
    with pytest.raises(StaleDocumentError):
        check_fresh(b"a\n", b"a\nb\n")


def test_buffer_document_defaults_live_to_persisted() -> None:
    doc = BufferDocument(persisted=b"x\n")
    assert doc.read_document() == b"x\n"
    assert doc.read_live_buffer() == b"x\n"


def test_buffer_document_applies_plan() -> None:
    old, new = b"a\nb\nc\nd\n", b"a\nB\nc\nd\ne\n"
    doc = BufferDocument(persisted=old)
    ops = plan_diff(old, new)
    EditPlanner().apply(doc, ops)
    assert doc.read_live_buffer() == new
    assert doc.applied == ops
    # The persisted copy is a snapshot; it is never edited.
    assert doc.read_document() == old


def test_file_document_reads_and_edits(tmp_path: Path) -> None:
    p = tmp_path / "main.go"
    old, new = b"package main\nfunc  f(){}\n", b"package main\n\nfunc f() {}\n"
    p.write_bytes(old)
    doc = FileDocument(p)
    assert doc.read_document() == old
    EditPlanner().apply(doc, plan_diff(old, new))
    assert p.read_bytes() == new
    assert not [x for x in tmp_path.iterdir() if x.name.startswith(".fmtsync-tmp-")]


def test_file_document_keeps_mode(tmp_path: Path) -> None:
    p = tmp_path / "run.sh"
    p.write_bytes(b"a\n")
    os.chmod(p, 0o755)
    FileDocument(p).apply_edit_operation(plan_diff(b"a\n", b"b\n")[0])
    assert p.read_bytes() == b"b\n"
    assert stat.S_IMODE(p.stat().st_mode) == 0o755


def test_file_document_missing_file_raises(tmp_path: Path) -> None:
    doc = FileDocument(tmp_path / "missing.c")
    with pytest.raises(DocumentReadError):
        doc.read_document()
    with pytest.raises(DocumentReadError):
        doc.read_live_buffer()


def test_file_document_writes_batch_once(tmp_path: Path, monkeypatch) -> None:
    import fmtsync.document as document

    p = tmp_path / "main.c"
    old, new = b"a\nb\nc\nd\ne\n", b"A\nb\nc\nD\ne\nf\n"
    p.write_bytes(old)
    writes: list[Path] = []
    real_write = document._atomic_write_bytes

    def counting_write(path: Path, data: bytes) -> None:
        writes.append(path)
        real_write(path, data)

    monkeypatch.setattr(document, "_atomic_write_bytes", counting_write)
    ops = plan_diff(old, new)
    assert len(ops) == 3
    assert EditPlanner().apply(FileDocument(p), ops) == 3
    assert p.read_bytes() == new
    assert writes == [p]
