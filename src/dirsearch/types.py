"""Configuration and result types for a directory search."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import NamedTuple

from dirsearch.attributes import FileAttributes, MatchPolicy
from dirsearch.defaults import (
    BASELINE_EXCLUDED,
    CURRENT_FOLDER,
    DEFAULT_ALWAYS_EXCLUDED,
    DEFAULT_ATTRIBUTES,
    SEARCH_MASK_ALL,
)


@dataclass
class SearchConfig:
    """
    Settings for one search. Not modified by the search itself, so the same
    config can be executed repeatedly.

    `start_folder=None` (or `""` or `"."`) means the current working directory
    at the time the search runs, not when the config is built.
    `attributes` only matters when `match_policy` is not `IGNORE_ATTRIBUTE_MATCH`.
    `always_excluded` is always combined with `BASELINE_EXCLUDED`.
    `exclude` holds gitignore-style patterns matched against entry names.
    """

    start_folder: str | Path | None = None
    search_mask: str = SEARCH_MASK_ALL
    recurse_subdirectories: bool = True
    match_policy: MatchPolicy = MatchPolicy.IGNORE_ATTRIBUTE_MATCH
    attributes: FileAttributes = DEFAULT_ATTRIBUTES
    always_excluded: FileAttributes = DEFAULT_ALWAYS_EXCLUDED
    exclude: list[str] = field(default_factory=list)

    @property
    def effective_always_excluded(self) -> FileAttributes:
        """`always_excluded` plus the attributes that are never searched."""
        return FileAttributes(self.always_excluded | BASELINE_EXCLUDED)

    def resolve_start_folder(self) -> Path:
        """Absolute start folder, resolved against the current working directory."""
        if self.start_folder is None or str(self.start_folder) in ("", CURRENT_FOLDER):
            return Path.cwd()
        return Path(self.start_folder).absolute()


@dataclass(frozen=True)
class Entry:
    """A file or folder as seen by search callbacks."""

    path: Path
    attributes: FileAttributes
    size: int = 0
    modified: float = 0.0

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def is_dir(self) -> bool:
        return bool(self.attributes & FileAttributes.DIRECTORY)


class FolderFilterResult(NamedTuple):
    """
    Folder filter decision. `skip_folder` suppresses the folder match and its
    files; `skip_children` suppresses descent. The two are independent.
    """

    skip_folder: bool = False
    skip_children: bool = False


@dataclass
class SearchSummary:
    """Outcome of one `DirSearch.execute()` call."""

    start_folder: Path
    folders_matched: int = 0
    files_matched: int = 0
    errors: list[str] = field(default_factory=list)
    cancelled: bool = False
