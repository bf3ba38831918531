"""fmtsync exception hierarchy.

Keep this module small and dependency-free: it is imported broadly across the
project and by tests.
"""

from __future__ import annotations


class FmtsyncError(Exception):
    """Base exception for all fmtsync errors."""


class FmtsyncConfigError(FmtsyncError):
    """Raised for invalid user configuration."""


class DocumentReadError(FmtsyncError):
    """Raised when a document (persisted or live) cannot be read."""


class StaleDocumentError(FmtsyncError):
    """Raised when the live document no longer matches the diffed snapshot."""


class RegionNotFoundError(FmtsyncError):
    """Raised when the top-of-file delimiter is missing from a buffer."""


class FormatterError(FmtsyncError):
    """Raised when the external formatter exits non-zero or cannot be run.

    `fatal` separates internal formatter failures (always surfaced loudly)
    from ordinary diagnostics such as syntax errors in the input.
    """

    def __init__(
        self,
        command: str,
        path: str,
        output: bytes = b"",
        returncode: int | None = None,
        *,
        fatal: bool | None = None,
        reason: str = "",
    ) -> None:
        self.command = command
        self.path = path
        self.output = output
        self.returncode = returncode
        self.fatal = (b"fatal error" in output) if fatal is None else fatal
        self.reason = reason or (
            f"exit status {returncode}" if returncode is not None else "failed to run"
        )
        super().__init__(f"{command} {path}: {self.reason}")


class HunkParseError(FmtsyncError):
    """Raised for an unparseable normal-diff hunk header.

    `partial` holds the change records parsed before the bad header.
    """

    def __init__(self, message: str, *, partial: list | None = None) -> None:
        super().__init__(message)
        self.partial = list(partial or [])


class EditApplyError(FmtsyncError):
    """Raised when a sink rejects an edit operation mid-batch.

    `applied` counts the operations that were applied before the failure.
    """

    def __init__(self, message: str, *, applied: int = 0) -> None:
        super().__init__(message)
        self.applied = applied
