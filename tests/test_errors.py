import pytest

from fmtsync.errors import (
    DocumentReadError,
    EditApplyError,
    FmtsyncConfigError,
    FmtsyncError,
    FormatterError,
    HunkParseError,
    RegionNotFoundError,
    StaleDocumentError,
)


def test_all_errors_are_subclasses_of_fmtsync_error() -> None:
    for exc in (
        FmtsyncConfigError,
        DocumentReadError,
        StaleDocumentError,
        RegionNotFoundError,
        FormatterError,
        HunkParseError,
        EditApplyError,
    ):
        assert issubclass(exc, FmtsyncError)


def test_error_message_is_preserved() -> None:
    msg = "boom"
    err = FmtsyncConfigError(msg)
    assert str(err) == msg


def test_can_catch_any_fmtsync_error() -> None:
    def raise_one() -> None:
        raise StaleDocumentError("nope")

    with pytest.raises(FmtsyncError):
        raise_one()


def test_formatter_error_detects_fatal_output() -> None:
    assert FormatterError("f", "a.c", b"fatal error: x", 1).fatal is True
    assert FormatterError("f", "a.c", b"a.c:1: oops", 1).fatal is False
    assert FormatterError("f", "a.c", b"a.c:1: oops", 1, fatal=True).fatal is True
    assert str(FormatterError("f", "a.c", b"", 3)) == "f a.c: exit status 3"


def test_partial_state_is_carried() -> None:
    assert HunkParseError("bad", partial=[1, 2]).partial == [1, 2]
    assert HunkParseError("bad").partial == []
    assert EditApplyError("x", applied=3).applied == 3
