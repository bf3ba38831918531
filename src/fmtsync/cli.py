from __future__ import annotations

import argparse
import asyncio
import dataclasses
import json
import logging
import sys
from pathlib import Path

from fmtsync import __version__
from fmtsync.config import (
    MODE_REGION,
    REGION_RULES,
    FmtsyncConfig,
    default_config,
    find_project_root,
    load_config,
)
from fmtsync.errors import FmtsyncConfigError

EXIT_OK = 0
EXIT_DIFFERENT = 1
EXIT_CONFIG_OR_IO = 2
EXIT_CYCLE_FAILURE = 3


def _add_common_flags(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--root",
        type=str,
        default=None,
        help="Project root (defaults to searching upward from cwd for fmtsync.toml).",
    )
    p.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to fmtsync.toml (defaults to <root>/fmtsync.toml).",
    )
    p.add_argument("-c", "--command", dest="fmt_command", default=None, help="Custom formatter.")
    p.add_argument(
        "-e",
        "--ext",
        action="append",
        default=[],
        help="Extension handled by the custom formatter (repeatable).",
    )
    p.add_argument(
        "--imports-only",
        action="store_true",
        help="Only resync the top-of-file region instead of the whole file.",
    )
    p.add_argument("--region", choices=REGION_RULES, default=None, help="Top region delimiter.")
    p.add_argument("--sentinel", default=None, help="Sentinel line prefix for --region sentinel.")
    p.add_argument("--json", dest="json_output", action="store_true", help="JSON output.")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="fmtsync")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")

    subparsers = parser.add_subparsers(dest="command", required=True)

    watch_p = subparsers.add_parser("watch", help="Reformat files as they are saved.")
    _add_common_flags(watch_p)

    format_p = subparsers.add_parser("format", help="Reformat files once.")
    _add_common_flags(format_p)
    format_p.add_argument("paths", nargs="+", help="Files to reformat.")

    diff_p = subparsers.add_parser("diff", help="Print a normal diff of two files.")
    diff_p.add_argument("old", help="Original file.")
    diff_p.add_argument("new", help="Changed file.")

    return parser


def parse_args(argv: list[str]) -> argparse.Namespace:
    return _build_parser().parse_args(argv)


def _eprint(msg: str) -> None:
    print(msg, file=sys.stderr)


def _print_error(e: BaseException) -> None:
    msg = (str(e) or repr(e)).strip()
    _eprint(f"error: {msg}")


def _load_config(args: argparse.Namespace) -> tuple[Path, FmtsyncConfig]:
    root = Path(args.root).resolve() if args.root else None
    config_path = Path(args.config).resolve() if args.config else None

    if config_path is not None:
        cfg = load_config(root=root, config_path=config_path)
        return root or config_path.parent, cfg
    if root is not None:
        if (root / "fmtsync.toml").is_file():
            return root, load_config(root=root)
        return root, default_config()
    try:
        root = find_project_root(Path.cwd())
    except FmtsyncConfigError:
        # No config anywhere above cwd: built-in formatter table.
        return Path.cwd().resolve(), default_config()
    return root, load_config(root=root)


def _apply_overrides(cfg: FmtsyncConfig, args: argparse.Namespace) -> FmtsyncConfig:
    fmt = cfg.format
    if args.imports_only:
        fmt = dataclasses.replace(fmt, mode=MODE_REGION)
    if args.region is not None:
        fmt = dataclasses.replace(fmt, region=args.region)
    if args.sentinel is not None:
        fmt = dataclasses.replace(fmt, sentinel=args.sentinel)
    if fmt.region == "sentinel" and not fmt.sentinel:
        raise FmtsyncConfigError("--region sentinel requires --sentinel.")

    custom = cfg.custom
    if args.fmt_command is not None:
        custom = dataclasses.replace(custom, command=args.fmt_command)
    if args.ext:
        custom = dataclasses.replace(custom, extensions=[*args.ext])
    return dataclasses.replace(cfg, format=fmt, custom=custom)


def cmd_format(args: argparse.Namespace) -> int:
    from fmtsync.reformat import reformat_paths

    try:
        _, cfg = _load_config(args)
        cfg = _apply_overrides(cfg, args)
    except FmtsyncConfigError as e:
        _print_error(e)
        return EXIT_CONFIG_OR_IO

    results = reformat_paths([Path(p) for p in args.paths], cfg)
    if args.json_output:
        payload = {
            "command": "format",
            "ok": all(r.ok for r in results),
            "results": [
                {"path": r.path, "status": r.status.value, "edits": len(r.operations)}
                for r in results
            ],
        }
        print(json.dumps(payload))
    else:
        for r in results:
            if not r.ok:
                _eprint(f"{r.path}: {r.status.value}" + (f": {r.message}" if r.message else ""))
    return EXIT_OK if all(r.ok for r in results) else EXIT_CYCLE_FAILURE


def cmd_diff(args: argparse.Namespace) -> int:
    from fmtsync.differ import diff_bytes
    from fmtsync.hunks import format_normal_diff

    try:
        old = Path(args.old).read_bytes()
        new = Path(args.new).read_bytes()
    except OSError as e:
        _print_error(e)
        return EXIT_CONFIG_OR_IO

    records = diff_bytes(old, new)
    sys.stdout.buffer.write(format_normal_diff(records, old, new))
    sys.stdout.flush()
    return EXIT_DIFFERENT if records else EXIT_OK


def cmd_watch(args: argparse.Namespace) -> int:
    from fmtsync import watcher

    try:
        watcher.check_watchfiles_available()
    except ImportError as e:
        if args.json_output:
            print(json.dumps({"command": "watch", "ok": False, "error": str(e)}))
        else:
            _print_error(e)
        return EXIT_CONFIG_OR_IO

    try:
        root, cfg = _load_config(args)
        cfg = _apply_overrides(cfg, args)
    except FmtsyncConfigError as e:
        if args.json_output:
            print(json.dumps({"command": "watch", "ok": False, "error": str(e)}))
        else:
            _print_error(e)
        return EXIT_CONFIG_OR_IO

    roots = [(root / r).resolve() for r in cfg.watch.roots]

    def on_event(msg: str) -> None:
        if not args.json_output:
            _eprint(msg)

    def on_cycle_result(result: watcher.WatchCycleResult) -> None:
        if args.json_output:
            print(json.dumps(watcher.format_watch_cycle_json(result)), flush=True)

    def on_error(exc: BaseException) -> None:
        _eprint(f"[watch] error: {type(exc).__name__}: {exc}")

    on_event(f"[watch] watching {', '.join(str(r) for r in roots)}")
    try:
        asyncio.run(
            watcher.run_watch_loop(
                changes_iter=watcher.make_watchfiles_iter(roots, debounce_ms=cfg.watch.debounce_ms),
                run_cycle=watcher.build_cycle_runner(cfg),
                on_event=on_event,
                on_cycle_result=on_cycle_result,
                on_error=on_error,
                roots=roots,
                config=cfg,
            )
        )
    except KeyboardInterrupt:
        pass
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    try:
        args = parse_args(list(sys.argv[1:] if argv is None else argv))
    except SystemExit as e:
        # argparse uses SystemExit for --help/--version and parse errors.
        code = e.code
        return int(code) if isinstance(code, int) else EXIT_CONFIG_OR_IO

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command == "watch":
        return cmd_watch(args)
    if args.command == "format":
        return cmd_format(args)
    if args.command == "diff":
        return cmd_diff(args)

    return EXIT_CONFIG_OR_IO


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
