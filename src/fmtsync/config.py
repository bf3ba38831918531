"""Project configuration loading for fmtsync.

This module is intentionally small and deterministic: it only reads
`fmtsync.toml` and performs light validation. Every table is optional.
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from fmtsync.errors import FmtsyncConfigError

CONFIG_FILENAME = "fmtsync.toml"

MODE_WHOLE = "whole"
MODE_REGION = "region"
MODES = (MODE_WHOLE, MODE_REGION)
REGION_RULES = ("blank-line", "go-imports", "sentinel")

C_EXTENSIONS = (".c", ".cc", ".cpp", ".cxx", ".h", ".hpp")
GO_EXTENSIONS = (".go",)


def _default_formatters() -> dict[str, str]:
    out = {ext: "clang-format" for ext in C_EXTENSIONS}
    out.update({ext: "goimports" for ext in GO_EXTENSIONS})
    return out


@dataclass(frozen=True)
class FormatConfig:
    mode: str
    region: str
    sentinel: str


@dataclass(frozen=True)
class CustomConfig:
    command: str
    extensions: list[str]


@dataclass(frozen=True)
class WatchConfig:
    roots: list[str]
    debounce_ms: int


@dataclass(frozen=True)
class FmtsyncConfig:
    version: int
    format: FormatConfig
    formatters: dict[str, str]
    custom: CustomConfig
    watch: WatchConfig


def find_project_root(start: Path) -> Path:
    """Walk upward from `start` (file or directory) looking for `fmtsync.toml`."""

    cur = start
    try:
        if cur.is_file():
            cur = cur.parent
    except OSError:
        cur = cur.parent

    cur = cur.resolve()
    while True:
        if (cur / CONFIG_FILENAME).is_file():
            return cur
        if cur.parent == cur:
            break
        cur = cur.parent

    raise FmtsyncConfigError(f"Could not find {CONFIG_FILENAME} by walking upward from start path.")


def _as_table(value: Any, *, name: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise FmtsyncConfigError(f"Expected [{name}] to be a table.")
    return value


def _as_str_list(value: Any, *, name: str) -> list[str]:
    if not isinstance(value, list) or any(not isinstance(x, str) for x in value):
        raise FmtsyncConfigError(f"Expected {name} to be a list of strings.")
    return list(value)


def _as_int(value: Any, *, name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise FmtsyncConfigError(f"Expected {name} to be an integer.")
    return value


def _as_str(value: Any, *, name: str) -> str:
    if not isinstance(value, str):
        raise FmtsyncConfigError(f"Expected {name} to be a string.")
    return value


def parse_config(data: dict[str, Any]) -> FmtsyncConfig:
    """Validate already-decoded TOML data and apply defaults."""

    version = data.get("version", None)
    if version is None:
        raise FmtsyncConfigError(f"Missing required `version = 1` in {CONFIG_FILENAME}.")
    version_i = _as_int(version, name="version")
    if version_i != 1:
        raise FmtsyncConfigError(f"Unsupported config version: {version_i} (expected 1).")

    format_tbl = _as_table(data.get("format"), name="format")
    formatters_tbl = _as_table(data.get("formatters"), name="formatters")
    custom_tbl = _as_table(data.get("custom"), name="custom")
    watch_tbl = _as_table(data.get("watch"), name="watch")

    mode = _as_str(format_tbl.get("mode", MODE_WHOLE), name="format.mode")
    region = _as_str(format_tbl.get("region", "blank-line"), name="format.region")
    sentinel = _as_str(format_tbl.get("sentinel", ""), name="format.sentinel")

    formatters = _default_formatters()
    for ext, command in formatters_tbl.items():
        formatters[ext] = _as_str(command, name=f"formatters.{ext!r}")

    if "command" in custom_tbl:
        custom_command = _as_str(custom_tbl["command"], name="custom.command")
    else:
        custom_command = ""

    if "extensions" in custom_tbl:
        custom_exts = _as_str_list(custom_tbl["extensions"], name="custom.extensions")
    else:
        custom_exts = []

    if "roots" in watch_tbl:
        roots = _as_str_list(watch_tbl["roots"], name="watch.roots")
    else:
        roots = ["."]

    if "debounce_ms" in watch_tbl:
        debounce_ms = _as_int(watch_tbl["debounce_ms"], name="watch.debounce_ms")
    else:
        debounce_ms = 200

    # Validation
    if mode not in MODES:
        raise FmtsyncConfigError(f"Invalid config: format.mode must be one of {MODES}.")
    if region not in REGION_RULES:
        raise FmtsyncConfigError(f"Invalid config: format.region must be one of {REGION_RULES}.")
    if region == "sentinel" and not sentinel:
        raise FmtsyncConfigError("Invalid config: format.sentinel is required for the sentinel rule.")
    if any(not ext.startswith(".") for ext in formatters):
        raise FmtsyncConfigError("Invalid config: [formatters] keys must start with '.'.")
    if debounce_ms < 0:
        raise FmtsyncConfigError("Invalid config: watch.debounce_ms must be >= 0.")

    return FmtsyncConfig(
        version=version_i,
        format=FormatConfig(mode=mode, region=region, sentinel=sentinel),
        formatters=formatters,
        custom=CustomConfig(command=custom_command, extensions=custom_exts),
        watch=WatchConfig(roots=roots, debounce_ms=debounce_ms),
    )


def default_config() -> FmtsyncConfig:
    return parse_config({"version": 1})


def load_config(*, root: Path | None = None, config_path: Path | None = None) -> FmtsyncConfig:
    """Load and validate `fmtsync.toml`.

    If neither `root` nor `config_path` are provided, the project root is
    discovered by walking upward from the current working directory.
    """

    if config_path is None:
        if root is None:
            root = find_project_root(Path.cwd())
        config_path = root / CONFIG_FILENAME

    try:
        raw = config_path.read_bytes()
    except FileNotFoundError as e:
        raise FmtsyncConfigError(f"Missing {CONFIG_FILENAME} at: {config_path}") from e
    except OSError as e:
        raise FmtsyncConfigError(f"Failed reading config file: {config_path}") from e

    try:
        data = tomllib.loads(raw.decode("utf-8"))
    except UnicodeDecodeError as e:
        raise FmtsyncConfigError(f"Config is not valid UTF-8: {config_path}") from e
    except tomllib.TOMLDecodeError as e:
        raise FmtsyncConfigError(f"Invalid TOML in {config_path}: {e}") from e

    return parse_config(data)
