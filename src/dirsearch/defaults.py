"""
Default values for a search.

Exclusion patterns use gitignore syntax. Directory patterns end with `/`.
"""

from __future__ import annotations

from dirsearch.attributes import ATTRIBUTES_EXCLUDED, FileAttributes

SEARCH_MASK_ALL = "*"

CURRENT_FOLDER = "."

DEFAULT_ATTRIBUTES = FileAttributes.NORMAL

# Entries that cannot be meaningfully searched. Always OR-ed into the
# always-excluded mask, whatever the caller configures.
BASELINE_EXCLUDED = FileAttributes.DEVICE | FileAttributes.OFFLINE

# Reparse points (symlinks, junctions) are skipped unless the caller passes a
# mask without them.
DEFAULT_ALWAYS_EXCLUDED = ATTRIBUTES_EXCLUDED

# Version control metadata directories, for callers that want them pruned.
VCS_EXCLUDES: list[str] = [
    ".git/",
    ".hg/",
    ".svn/",
    ".bzr/",
    "_darcs/",
]
