"""
TOML-based config file loading for the dirsearch CLI.

Searches for `.dirsearch.toml`, `dirsearch.toml`, or `pyproject.toml [tool.dirsearch]`
walking up from the current directory. Config values are merged with CLI flags
using three-way precedence: explicit CLI flags > config file > built-in defaults.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, TypeVar, cast

if sys.version_info >= (3, 11):
    import tomllib  # pyright: ignore[reportUnreachable]
else:
    import tomli as tomllib  # type: ignore[no-redef]  # pyright: ignore[reportUnreachable]


@dataclass
class DirSearchConfig:
    """
    Parsed config from a TOML file. Fields are `None` when not set in the config,
    allowing the merge logic to distinguish "not configured" from "explicitly set
    to default value".
    """

    # Matching
    search_mask: str | None = None
    recurse: bool | None = None
    match: str | None = None
    attributes: list[str] | None = None
    # Exclusion
    always_excluded: list[str] | None = None
    exclude: list[str] | None = None
    skip_vcs: bool | None = None


# Config file search order (first match wins within each directory level)
_CONFIG_FILENAMES = [".dirsearch.toml", "dirsearch.toml", "pyproject.toml"]

# TOML keys that don't map to a field by plain kebab-to-snake conversion
_KEY_ALIASES: dict[str, str] = {
    "mask": "search_mask",
    "recurse-subdirectories": "recurse",
    "match-policy": "match",
}

_VALID_FIELDS = {f.name for f in fields(DirSearchConfig)}


def find_config_file(start_dir: Path) -> Path | None:
    """
    Walk up from `start_dir` looking for a config file. Returns the first
    found, or `None`. Search order per directory: `.dirsearch.toml` >
    `dirsearch.toml` > `pyproject.toml` (only if it has `[tool.dirsearch]`).
    """
    current = start_dir.resolve()
    while True:
        for filename in _CONFIG_FILENAMES:
            candidate = current / filename
            if candidate.is_file():
                if filename == "pyproject.toml":
                    if _pyproject_has_dirsearch_section(candidate):
                        return candidate
                else:
                    return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent
    return None


def _pyproject_has_dirsearch_section(path: Path) -> bool:
    """Check if a pyproject.toml has a [tool.dirsearch] section."""
    try:
        data = tomllib.loads(path.read_text())
        return "dirsearch" in data.get("tool", {})
    except (tomllib.TOMLDecodeError, OSError):
        return False


def load_config(config_path: Path) -> DirSearchConfig:
    """
    Load a `DirSearchConfig` from a TOML file. Supports both standalone
    `dirsearch.toml` / `.dirsearch.toml` and `pyproject.toml` (extracts
    `[tool.dirsearch]`). TOML kebab-case keys are mapped to Python snake_case.
    """
    try:
        data = tomllib.loads(config_path.read_text())
    except tomllib.TOMLDecodeError as e:
        print(f"Warning: ignoring malformed config file {config_path}: {e}", file=sys.stderr)
        return DirSearchConfig()

    if config_path.name == "pyproject.toml":
        data = data.get("tool", {}).get("dirsearch", {})

    return _parse_config_data(data)


def _parse_config_data(data: dict[str, Any]) -> DirSearchConfig:
    """Parse a flat or sectioned TOML dict into DirSearchConfig."""
    # Flatten sections: [search] and [exclusion] merge into top level
    flat: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, dict):
            for sub_key, sub_value in cast(dict[str, Any], value).items():
                flat[sub_key] = sub_value
        else:
            flat[key] = value

    mapped: dict[str, Any] = {}
    for key, value in flat.items():
        snake_key = _KEY_ALIASES.get(key, key.replace("-", "_"))
        if snake_key in _VALID_FIELDS:
            mapped[snake_key] = value
        else:
            print(f"Warning: unrecognized config key: {key}", file=sys.stderr)

    return DirSearchConfig(**mapped)


_T = TypeVar("_T")


def merge_cli_with_config(
    cli_opts: _T,
    config: DirSearchConfig | None,
    explicit_flags: set[str],
) -> _T:
    """
    Merge CLI options with config file settings.

    Precedence: explicit CLI flags > config file > built-in defaults.
    """
    if config is None:
        return cli_opts

    for cfg_field in fields(DirSearchConfig):
        cfg_value = getattr(config, cfg_field.name)
        if cfg_value is None:
            continue  # Not set in config

        # Skip if CLI explicitly set this flag
        if cfg_field.name in explicit_flags:
            continue

        if hasattr(cli_opts, cfg_field.name):
            setattr(cli_opts, cfg_field.name, cfg_value)

    return cli_opts
