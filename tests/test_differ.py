from __future__ import annotations

import random

import pytest

from fmtsync.differ import ChangeKind, ChangeRecord, LineSpan, diff_bytes, diff_lines
from fmtsync.lines import split_lines


def test_identical_inputs_yield_no_records() -> None:
    assert diff_bytes(b"a\nb\nc\n", b"a\nb\nc\n") == []
    assert diff_bytes(b"", b"") == []


def test_single_changed_line() -> None:
    records = diff_bytes(b"a\nb\nc\n", b"a\nx\nc\n")
    assert records == [
        ChangeRecord(old=LineSpan(2, 2), new=LineSpan(2, 2), kind=ChangeKind.CHANGE)
    ]


def test_append_at_end_is_insert() -> None:
    records = diff_bytes(b"a\nb\n", b"a\nb\nc\n")
    assert records == [
        ChangeRecord(old=LineSpan(3, 2), new=LineSpan(3, 3), kind=ChangeKind.INSERT)
    ]


def test_delete_middle_line() -> None:
    records = diff_bytes(b"a\nb\nc\n", b"a\nc\n")
    assert records == [
        ChangeRecord(old=LineSpan(2, 2), new=LineSpan(2, 1), kind=ChangeKind.DELETE)
    ]


def test_insert_at_top() -> None:
    records = diff_bytes(b"b\n", b"a\nb\n")
    assert records == [
        ChangeRecord(old=LineSpan(1, 0), new=LineSpan(1, 1), kind=ChangeKind.INSERT)
    ]


def test_disjoint_inputs_yield_one_change() -> None:
    records = diff_bytes(b"a\nb\n", b"x\ny\nz\n")
    assert records == [
        ChangeRecord(old=LineSpan(1, 2), new=LineSpan(1, 3), kind=ChangeKind.CHANGE)
    ]


def test_empty_old_is_single_insert() -> None:
    records = diff_bytes(b"", b"a\nb\n")
    assert records == [
        ChangeRecord(old=LineSpan(1, 0), new=LineSpan(1, 2), kind=ChangeKind.INSERT)
    ]


def test_missing_final_newline_is_a_change() -> None:
    records = diff_bytes(b"a\nb", b"a\nb\n")
    assert records == [
        ChangeRecord(old=LineSpan(2, 2), new=LineSpan(2, 2), kind=ChangeKind.CHANGE)
    ]


def test_multiple_hunks_ascending_and_disjoint() -> None:
    old = b"a\nb\nc\nd\ne\nf\n"
    new = b"a\nB\nc\nd\nf\ng\n"
    records = diff_bytes(old, new)
    assert [r.kind for r in records] == [ChangeKind.CHANGE, ChangeKind.DELETE, ChangeKind.INSERT]
    starts = [r.old.start for r in records]
    assert starts == sorted(starts)
    for prev, cur in zip(records, records[1:]):
        assert prev.old.end < cur.old.start


def test_non_utf8_lines_are_opaque() -> None:
    records = diff_bytes(b"\xff\xfe\n\x00\n", b"\xff\xfe\n\x01\n")
    assert records == [
        ChangeRecord(old=LineSpan(2, 2), new=LineSpan(2, 2), kind=ChangeKind.CHANGE)
    ]


def _lcs_length(a: list[bytes], b: list[bytes]) -> int:
    prev = [0] * (len(b) + 1)
    for x in a:
        cur = [0]
        for j, y in enumerate(b):
            cur.append(prev[j] + 1 if x == y else max(prev[j + 1], cur[j]))
        prev = cur
    return prev[-1]


def test_edit_script_is_minimal() -> None:
    rng = random.Random(7)
    for _ in range(200):
        a = [rng.choice([b"x\n", b"y\n", b"z\n"]) for _ in range(rng.randint(0, 12))]
        b = [rng.choice([b"x\n", b"y\n", b"z\n"]) for _ in range(rng.randint(0, 12))]
        records = diff_lines(a, b)
        removed = sum(len(r.old) for r in records)
        added = sum(len(r.new) for r in records)
        lcs = _lcs_length(a, b)
        assert removed == len(a) - lcs
        assert added == len(b) - lcs


def test_record_kind_must_match_spans() -> None:
    with pytest.raises(ValueError):
        ChangeRecord(old=LineSpan(2, 1), new=LineSpan(2, 2), kind=ChangeKind.CHANGE)
    with pytest.raises(ValueError):
        ChangeRecord.from_spans(LineSpan(2, 1), LineSpan(3, 2))


def test_from_spans_derives_kind() -> None:
    assert ChangeRecord.from_spans(LineSpan(3, 2), LineSpan(3, 4)).kind is ChangeKind.INSERT
    assert ChangeRecord.from_spans(LineSpan(3, 4), LineSpan(3, 2)).kind is ChangeKind.DELETE
    assert ChangeRecord.from_spans(LineSpan(3, 4), LineSpan(3, 3)).kind is ChangeKind.CHANGE


def test_span_length() -> None:
    assert len(LineSpan(3, 2)) == 0
    assert len(LineSpan(3, 5)) == 3
    assert LineSpan(3, 2).is_empty


def test_split_then_diff_matches_diff_bytes() -> None:
    old, new = b"p\nq\nr\n", b"p\nr\ns\n"
    assert diff_lines(split_lines(old), split_lines(new)) == diff_bytes(old, new)
