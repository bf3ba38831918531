"""One reformat cycle: snapshot, format, diff, guard, apply.

Every failure is local to the document being reformatted and is reported as a
ReformatResult status; nothing here raises for a per-document problem.
"""

from __future__ import annotations

import enum
import logging
import sys
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from fmtsync.config import MODE_REGION, MODE_WHOLE
from fmtsync.document import Document, FileDocument, check_fresh
from fmtsync.errors import (
    DocumentReadError,
    EditApplyError,
    FormatterError,
    RegionNotFoundError,
    StaleDocumentError,
)
from fmtsync.formatter import run_formatter, select_formatter
from fmtsync.planner import EditOperation, EditPlanner
from fmtsync.region import BlankLineRule, RegionRule, patch_region, rule_from_name

if TYPE_CHECKING:  # pragma: no cover
    from fmtsync.config import FmtsyncConfig

logger = logging.getLogger("fmtsync.reformat")

Formatter = Callable[[str, str], bytes]


class ReformatStatus(enum.Enum):
    UNCHANGED = "unchanged"
    APPLIED = "applied"
    SKIPPED = "skipped"
    READ_FAILED = "read_failed"
    FORMATTER_FAILED = "formatter_failed"
    REGION_NOT_FOUND = "region_not_found"
    STALE = "stale"
    HUNK_ERROR = "hunk_error"


@dataclass(frozen=True, slots=True)
class ReformatResult:
    path: str
    status: ReformatStatus
    operations: tuple[EditOperation, ...] = ()
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.status in (
            ReformatStatus.UNCHANGED,
            ReformatStatus.APPLIED,
            ReformatStatus.SKIPPED,
        )


def _stderr(msg: str) -> None:
    sys.stderr.write(msg)
    sys.stderr.flush()


def report_formatter_error(err: FormatterError, report: Callable[[str], None]) -> None:
    output = err.output.decode("utf-8", errors="replace")
    if err.fatal:
        report(f"{err.command} {err.path}: {err.reason}\n{output}")
    else:
        report(output)


def reformat_document(
    doc: Document,
    command: str,
    path: str,
    *,
    mode: str = MODE_WHOLE,
    rule: RegionRule | None = None,
    formatter: Formatter = run_formatter,
    report: Callable[[str], None] = _stderr,
) -> ReformatResult:
    """Reformat one document and patch the differences into its live buffer."""

    try:
        old = doc.read_document()
    except DocumentReadError as e:
        logger.debug("%s", e)
        return ReformatResult(path, ReformatStatus.READ_FAILED, message=str(e))

    try:
        new = formatter(command, path)
    except FormatterError as e:
        report_formatter_error(e, report)
        return ReformatResult(path, ReformatStatus.FORMATTER_FAILED, message=str(e))

    if old == new:
        return ReformatResult(path, ReformatStatus.UNCHANGED)

    planner = EditPlanner()
    if mode == MODE_REGION:
        try:
            op = patch_region(old, new, rule or BlankLineRule())
        except RegionNotFoundError as e:
            logger.debug("%s: %s", path, e)
            return ReformatResult(path, ReformatStatus.REGION_NOT_FOUND, message=str(e))
        ops = [op] if op is not None else []
    else:
        ops = planner.plan(old, new)

    if not ops:
        return ReformatResult(path, ReformatStatus.UNCHANGED)

    try:
        check_fresh(old, doc.read_live_buffer())
    except DocumentReadError as e:
        logger.warning("%s", e)
        return ReformatResult(path, ReformatStatus.READ_FAILED, message=str(e))
    except StaleDocumentError:
        logger.warning("skipped update to %s: document modified since it was read", path)
        return ReformatResult(path, ReformatStatus.STALE, message="document modified")

    try:
        planner.apply(doc, ops)
    except EditApplyError as e:
        logger.error("%s: %s; abandoned %d remaining edit(s)", path, e, len(ops) - e.applied)
        return ReformatResult(
            path,
            ReformatStatus.HUNK_ERROR,
            operations=tuple(ops[: e.applied]),
            message=str(e),
        )

    logger.info("%s: applied %d edit(s)", path, len(ops))
    return ReformatResult(path, ReformatStatus.APPLIED, operations=tuple(ops))


def reformat_paths(
    paths: Iterable[Path],
    config: FmtsyncConfig,
    *,
    formatter: Formatter = run_formatter,
    report: Callable[[str], None] = _stderr,
) -> list[ReformatResult]:
    """Run one cycle per file, using the formatter configured for its name."""

    rule = None
    if config.format.mode == MODE_REGION:
        rule = rule_from_name(config.format.region, config.format.sentinel or None)

    results: list[ReformatResult] = []
    for p in paths:
        command = select_formatter(p.name, config)
        if command is None:
            results.append(ReformatResult(str(p), ReformatStatus.SKIPPED, message="no formatter"))
            continue
        results.append(
            reformat_document(
                FileDocument(p),
                command,
                str(p),
                mode=config.format.mode,
                rule=rule,
                formatter=formatter,
                report=report,
            )
        )
    return results
