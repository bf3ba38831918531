"""Watch mode: reformat source files as they are saved."""

from __future__ import annotations

import time
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from fmtsync.formatter import select_formatter
from fmtsync.reformat import ReformatResult, ReformatStatus, reformat_paths

if TYPE_CHECKING:  # pragma: no cover
    from fmtsync.config import FmtsyncConfig


@dataclass(frozen=True, slots=True)
class WatchEvent:
    """A batch of relevant file changes."""

    changed_paths: frozenset[Path]
    timestamp: float


@dataclass(frozen=True, slots=True)
class WatchCycleResult:
    """Result of a single watch reformat cycle."""

    results: tuple[ReformatResult, ...]
    duration_s: float
    changed_paths: frozenset[Path]


def check_watchfiles_available() -> None:
    """Raise ImportError with a helpful message if watchfiles is not installed."""
    import importlib

    try:
        importlib.import_module("watchfiles")
    except ImportError:
        raise ImportError(
            "watchfiles is required for watch mode. Install it with: pip install watchfiles"
        ) from None


def filter_source_files(
    changed_paths: frozenset[Path],
    *,
    roots: list[Path],
    config: FmtsyncConfig,
) -> frozenset[Path]:
    """Keep changed paths under `roots` that have a formatter configured."""
    kept: set[Path] = set()
    for p in changed_paths:
        if p.name.startswith(".fmtsync-tmp-"):
            continue
        if select_formatter(p.name, config) is None:
            continue
        if any(p.is_relative_to(r) for r in roots):
            kept.add(p)
    return frozenset(kept)


def _read_or_none(path: Path) -> bytes | None:
    try:
        return path.read_bytes()
    except OSError:
        return None


def _drop_own_writes(paths: frozenset[Path], written: dict[Path, bytes]) -> frozenset[Path]:
    # A file we just rewrote shows up in the next batch; skip it while its
    # content is still exactly what we wrote. Records only live for one batch.
    kept: set[Path] = set()
    for p in paths:
        ours = written.get(p)
        if ours is not None and _read_or_none(p) == ours:
            continue
        kept.add(p)
    written.clear()
    return frozenset(kept)


async def run_watch_loop(
    *,
    changes_iter: AsyncIterator[set[tuple[Any, str]]],
    run_cycle: Callable[[WatchEvent], WatchCycleResult],
    on_event: Callable[[str], None],
    on_cycle_result: Callable[[WatchCycleResult], None],
    on_error: Callable[[BaseException], None],
    roots: list[Path],
    config: FmtsyncConfig,
) -> None:
    """Main watch loop. Consumes changes_iter, filters, and calls run_cycle."""
    written: dict[Path, bytes] = {}
    async for raw_changes in changes_iter:
        paths = frozenset(Path(p) for _, p in raw_changes)
        relevant = filter_source_files(paths, roots=roots, config=config)
        relevant = _drop_own_writes(relevant, written)
        if not relevant:
            continue

        event = WatchEvent(changed_paths=relevant, timestamp=time.monotonic())

        names = ", ".join(str(p) for p in sorted(relevant))
        on_event(f"[watch] change detected: {names}")

        try:
            result = run_cycle(event)
        except Exception as exc:
            on_error(exc)
            continue

        for r in result.results:
            if r.status is ReformatStatus.APPLIED:
                content = _read_or_none(Path(r.path))
                if content is not None:
                    written[Path(r.path)] = content
            on_event(f"[watch] {r.path}: {r.status.value}")
        on_event(f"[watch] done ({result.duration_s:.1f}s)")
        on_cycle_result(result)


def format_watch_cycle_json(result: WatchCycleResult) -> dict[str, object]:
    """Format a cycle result as a JSON-serializable dict."""
    return {
        "command": "watch",
        "ok": all(r.ok for r in result.results),
        "duration_s": round(result.duration_s, 2),
        "changed_paths": sorted(str(p) for p in result.changed_paths),
        "results": [
            {"path": r.path, "status": r.status.value, "edits": len(r.operations)}
            for r in result.results
        ],
    }


def build_cycle_runner(config: FmtsyncConfig) -> Callable[[WatchEvent], WatchCycleResult]:
    """Create a cycle runner that reformats every changed file in order."""

    def runner(event: WatchEvent) -> WatchCycleResult:
        t0 = time.monotonic()
        results = reformat_paths(sorted(event.changed_paths), config)
        duration = time.monotonic() - t0
        return WatchCycleResult(
            results=tuple(results),
            duration_s=duration,
            changed_paths=event.changed_paths,
        )

    return runner


def make_watchfiles_iter(
    watch_paths: list[Path],
    *,
    debounce_ms: int = 200,
) -> AsyncIterator[set[tuple[Any, str]]]:
    """Create an async iterator using watchfiles.awatch()."""
    import watchfiles  # type: ignore[import-untyped]

    return watchfiles.awatch(*watch_paths, debounce=debounce_ms)
