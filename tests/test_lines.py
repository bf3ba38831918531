from __future__ import annotations

import pytest

from fmtsync.lines import byte_offset_of_line, count_lines, extract_lines, split_lines


def test_count_lines() -> None:
    assert count_lines(b"") == 0
    assert count_lines(b"a\n") == 1
    assert count_lines(b"a\nb") == 2
    assert count_lines(b"a\nb\n") == 2
    assert count_lines(b"\n\n") == 2


def test_byte_offset_of_line() -> None:
    buf = b"ab\ncd\nef\n"
    assert byte_offset_of_line(buf, 1) == 0
    assert byte_offset_of_line(buf, 2) == 3
    assert byte_offset_of_line(buf, 3) == 6
    # One past the last line is the end of the buffer.
    assert byte_offset_of_line(buf, 4) == len(buf)
    assert byte_offset_of_line(buf, 10) == len(buf)


def test_byte_offset_without_trailing_newline() -> None:
    buf = b"ab\ncd"
    assert byte_offset_of_line(buf, 2) == 3
    assert byte_offset_of_line(buf, 3) == len(buf)


def test_byte_offset_rejects_line_zero() -> None:
    with pytest.raises(ValueError):
        byte_offset_of_line(b"a\n", 0)


def test_extract_lines_includes_trailing_newline() -> None:
    buf = b"a\nb\nc\n"
    assert extract_lines(buf, 2, 2) == b"b\n"
    assert extract_lines(buf, 1, 3) == buf
    assert extract_lines(buf, 2, 3) == b"b\nc\n"


def test_extract_lines_empty_span_is_insertion_point() -> None:
    assert extract_lines(b"a\nb\n", 2, 1) == b""
    assert extract_lines(b"a\nb\n", 3, 2) == b""


def test_extract_lines_past_end_does_not_overrun() -> None:
    assert extract_lines(b"a\nb", 2, 5) == b"b"
    assert extract_lines(b"a\n", 2, 2) == b""


def test_split_lines_keeps_newlines() -> None:
    assert split_lines(b"") == []
    assert split_lines(b"a\nb\n") == [b"a\n", b"b\n"]
    assert split_lines(b"a\nb") == [b"a\n", b"b"]
    assert split_lines(b"a\r\n\x0bb\n") == [b"a\r\n", b"\x0bb\n"]
