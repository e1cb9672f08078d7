"""
Filesystem attribute bit-sets and the policy used to match them.

Bit values follow the standard file attribute flags, so on Windows the value
reported in `stat_result.st_file_attributes` is used as-is. Other platforms get
an equivalent bit-set synthesized from the stat mode, the entry name, and BSD
`st_flags` where available.
"""

from __future__ import annotations

import os
import stat
from collections.abc import Iterable
from enum import Enum, IntFlag


class FileAttributes(IntFlag):
    READ_ONLY = 0x1
    HIDDEN = 0x2
    SYSTEM = 0x4
    DIRECTORY = 0x10
    ARCHIVE = 0x20
    DEVICE = 0x40
    NORMAL = 0x80
    TEMPORARY = 0x100
    SPARSE_FILE = 0x200
    REPARSE_POINT = 0x400
    COMPRESSED = 0x800
    OFFLINE = 0x1000
    NOT_CONTENT_INDEXED = 0x2000
    ENCRYPTED = 0x4000
    INTEGRITY_STREAM = 0x8000
    NO_SCRUB_DATA = 0x20000


class MatchPolicy(str, Enum):
    """How an entry's attributes are compared against the configured mask."""

    EXACT_MATCH = "exact"
    """Attributes must equal the mask bit-for-bit."""

    ALL_MATCH_PLUS_ANY_OTHERS = "all"
    """Every masked bit must be set; other bits are allowed."""

    ANY_MATCH = "any"
    """At least one masked bit must be set."""

    IGNORE_ATTRIBUTE_MATCH = "ignore"
    """Attributes are not considered."""


# Common attribute combinations
ALL_ATTRIBUTES = (
    FileAttributes.READ_ONLY
    | FileAttributes.HIDDEN
    | FileAttributes.SYSTEM
    | FileAttributes.DIRECTORY
    | FileAttributes.ARCHIVE
    | FileAttributes.NORMAL
    | FileAttributes.SPARSE_FILE
    | FileAttributes.COMPRESSED
    | FileAttributes.NOT_CONTENT_INDEXED
    | FileAttributes.ENCRYPTED
    | FileAttributes.INTEGRITY_STREAM
    | FileAttributes.NO_SCRUB_DATA
)
SYSTEM_HIDDEN = FileAttributes.HIDDEN | FileAttributes.SYSTEM
ALL_ATTRIBUTES_MINUS_SYS_AND_HIDDEN = ALL_ATTRIBUTES & ~SYSTEM_HIDDEN
ALL_ATTRIBUTES_MINUS_SYS = ALL_ATTRIBUTES & ~FileAttributes.SYSTEM
ALL_ATTRIBUTES_MINUS_HIDDEN = ALL_ATTRIBUTES & ~FileAttributes.HIDDEN

ATTRIBUTES_EXCLUDED = (
    FileAttributes.DEVICE | FileAttributes.OFFLINE | FileAttributes.REPARSE_POINT
)

# Names accepted by `parse_attributes()` in addition to the individual flags.
_COMBINATIONS: dict[str, FileAttributes] = {
    "none": FileAttributes(0),
    "all": ALL_ATTRIBUTES,
    "system_hidden": SYSTEM_HIDDEN,
    "all_minus_sys_and_hidden": ALL_ATTRIBUTES_MINUS_SYS_AND_HIDDEN,
    "all_minus_sys": ALL_ATTRIBUTES_MINUS_SYS,
    "all_minus_hidden": ALL_ATTRIBUTES_MINUS_HIDDEN,
    "excluded": ATTRIBUTES_EXCLUDED,
}


def attributes_match(attrs: int, mask: int, policy: MatchPolicy) -> bool:
    """Check an entry's attribute bit-set against `mask` under `policy`."""
    if policy == MatchPolicy.IGNORE_ATTRIBUTE_MATCH:
        return True
    if policy == MatchPolicy.ANY_MATCH:
        return (attrs & mask) != 0
    if policy == MatchPolicy.ALL_MATCH_PLUS_ANY_OTHERS:
        return (attrs & mask) == mask
    if policy == MatchPolicy.EXACT_MATCH:
        return attrs == mask
    raise ValueError(f"Unknown match policy: {policy!r}")


def attributes_from_stat(
    name: str, st: os.stat_result, is_dir: bool | None = None
) -> FileAttributes:
    """
    Attribute bit-set for an entry, given its (non-following) stat result.

    `is_dir` lets the caller mark a symlink that points at a directory, which
    the non-following stat alone cannot tell.
    """
    native = getattr(st, "st_file_attributes", None)
    if native is not None:
        return FileAttributes(native)

    attrs = FileAttributes(0)
    mode = st.st_mode
    if stat.S_ISLNK(mode):
        attrs |= FileAttributes.REPARSE_POINT
    if stat.S_ISDIR(mode) or is_dir:
        attrs |= FileAttributes.DIRECTORY
    elif stat.S_ISCHR(mode) or stat.S_ISBLK(mode) or stat.S_ISFIFO(mode) or stat.S_ISSOCK(mode):
        attrs |= FileAttributes.DEVICE
    if name.startswith(".") and name not in (".", ".."):
        attrs |= FileAttributes.HIDDEN
    if not stat.S_ISLNK(mode) and not mode & stat.S_IWUSR:
        attrs |= FileAttributes.READ_ONLY

    flags = getattr(st, "st_flags", 0)
    if flags & stat.UF_HIDDEN:
        attrs |= FileAttributes.HIDDEN
    if flags & stat.UF_COMPRESSED:
        attrs |= FileAttributes.COMPRESSED
    if flags & stat.SF_ARCHIVED:
        attrs |= FileAttributes.ARCHIVE

    if not attrs:
        attrs = FileAttributes.NORMAL
    return attrs


def parse_attributes(names: Iterable[str]) -> FileAttributes:
    """
    Combine attribute names like `"read-only"` or `"hidden"` (or combination
    names like `"system-hidden"`) into one bit-set. Raises `ValueError` for
    unknown names.
    """
    attrs = FileAttributes(0)
    for raw in names:
        key = raw.strip().replace("-", "_").lower()
        if key in _COMBINATIONS:
            attrs |= _COMBINATIONS[key]
            continue
        try:
            attrs |= FileAttributes[key.upper()]
        except KeyError:
            raise ValueError(f"Unknown file attribute: {raw}") from None
    return attrs


def format_attributes(attrs: int) -> str:
    """Human-readable form, e.g. `hidden|read-only`."""
    names = [
        member.name.lower().replace("_", "-")
        for member in FileAttributes
        if member.name is not None and attrs & member
    ]
    return "|".join(names) if names else "none"
