from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

from fmtsync.differ import ChangeKind, ChangeRecord, LineSpan, diff_bytes, diff_lines
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
from fmtsync.lines import byte_offset_of_line, count_lines, extract_lines, split_lines
from fmtsync.planner import EditOperation, EditPlanner, apply_edits, plan_diff, plan_edits
from fmtsync.region import patch_region


def _package_version() -> str:
    try:
        return version("fmtsync")
    except PackageNotFoundError:
        # Running from a source checkout, or otherwise not installed.
        return "0.0.0"


__version__ = _package_version()

__all__ = [
    "ChangeKind",
    "ChangeRecord",
    "DocumentReadError",
    "EditApplyError",
    "EditOperation",
    "EditPlanner",
    "FmtsyncConfigError",
    "FmtsyncError",
    "FormatterError",
    "HunkParseError",
    "LineSpan",
    "RegionNotFoundError",
    "StaleDocumentError",
    "__version__",
    "apply_edits",
    "byte_offset_of_line",
    "count_lines",
    "diff_bytes",
    "diff_lines",
    "extract_lines",
    "patch_region",
    "plan_diff",
    "plan_edits",
    "split_lines",
]
