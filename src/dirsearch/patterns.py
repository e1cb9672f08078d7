"""Gitignore-style exclusion patterns using pathspec."""

from __future__ import annotations

from collections.abc import Iterable

import pathspec

from dirsearch.types import Entry


def compile_patterns(patterns: Iterable[str]) -> pathspec.PathSpec | None:
    """
    Compile exclusion patterns into a `PathSpec`, skipping blank lines and
    comments. Returns `None` when nothing is left.
    """
    lines = [line for line in patterns if line.strip() and not line.strip().startswith("#")]
    if not lines:
        return None
    return pathspec.PathSpec.from_lines("gitignore", lines)


def is_excluded(spec: pathspec.PathSpec | None, entry: Entry) -> bool:
    """
    Check an entry name against an exclusion spec. Folders are matched with a
    trailing `/` so directory-only patterns like `build/` apply to them.
    """
    if spec is None:
        return False
    if entry.is_dir:
        return spec.match_file(entry.name + "/")
    return spec.match_file(entry.name)
