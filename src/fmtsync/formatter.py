"""Running external formatters and choosing one per file name."""

from __future__ import annotations

import logging
import shlex
import subprocess
from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING

from fmtsync.errors import FormatterError

if TYPE_CHECKING:  # pragma: no cover
    from fmtsync.config import FmtsyncConfig

logger = logging.getLogger("fmtsync.formatter")


def run_formatter(command: str, path: Path | str, *, timeout: float | None = None) -> bytes:
    """Run `command` on `path` and return the fully reformatted document.

    The document is read from stdout. On failure the diagnostic carried by the
    FormatterError is stderr followed by stdout.
    """

    argv = [*shlex.split(command), str(path)]
    if len(argv) < 2:
        raise FormatterError(command, str(path), fatal=True, reason="empty formatter command")

    try:
        proc = subprocess.run(argv, check=False, capture_output=True, timeout=timeout)
    except FileNotFoundError:
        raise FormatterError(
            command, str(path), fatal=True, reason=f"executable not found: {argv[0]}"
        ) from None
    except OSError as e:
        # Not executable, bad interpreter line, and similar spawn failures.
        raise FormatterError(command, str(path), fatal=True, reason=str(e)) from e
    except subprocess.TimeoutExpired:
        raise FormatterError(
            command, str(path), fatal=True, reason=f"timed out after {timeout}s"
        ) from None

    if proc.returncode != 0:
        raise FormatterError(command, str(path), proc.stderr + proc.stdout, proc.returncode)
    if proc.stderr:
        logger.debug("%s %s stderr: %s", command, path, proc.stderr.decode(errors="replace"))
    return proc.stdout


def match_extension(name: str, extensions: Iterable[str]) -> bool:
    return any(ext and name.endswith(ext) for ext in extensions)


def select_formatter(name: str, config: FmtsyncConfig) -> str | None:
    """Pick the formatter command for `name`; custom extensions win."""

    if config.custom.command and match_extension(name, config.custom.extensions):
        return config.custom.command
    for ext, command in config.formatters.items():
        if name.endswith(ext):
            return command
    return None
