"""
Filesystem access for the search engine.

The engine only needs three operations, captured by the `FileSystem` protocol,
so tests and callers can substitute their own provider. `OsFileSystem` is the
default, built on `os.scandir()`.
"""

from __future__ import annotations

import errno
import fnmatch
import logging
import os
import stat
import sys
from pathlib import Path
from typing import Protocol

from dirsearch.attributes import attributes_from_stat
from dirsearch.types import Entry

logger = logging.getLogger(__name__)

# Windows ERROR_FILENAME_EXCED_RANGE
_WINERROR_PATH_TOO_LONG = 206

_WINDOWS = sys.platform == "win32"


class FileSystem(Protocol):
    """Listing operations used by `DirSearch`."""

    def stat_folder(self, path: Path) -> Entry: ...

    def list_files(self, folder: Path, mask: str) -> list[Entry]: ...

    def list_folders(self, folder: Path) -> list[Entry]: ...


def native_mask(mask: str) -> str:
    """
    Adjust a mask to the host's wildcard rules. On Windows `*.*` also matches
    names without an extension.
    """
    if _WINDOWS and mask == "*.*":
        return "*"
    return mask


def is_listing_failure(exc: OSError) -> bool:
    """
    True for the errors a search reports and moves past: access denied and
    path too long. Anything else is left to propagate.
    """
    if isinstance(exc, PermissionError):
        return True
    if exc.errno == errno.ENAMETOOLONG:
        return True
    return getattr(exc, "winerror", None) == _WINERROR_PATH_TOO_LONG


class OsFileSystem:
    """
    `FileSystem` backed by `os.scandir()`. Each listing is read completely and
    the directory handle closed before the entries are returned.
    """

    def stat_folder(self, path: Path) -> Entry:
        """
        Stat the start folder. Symlinks are followed here since the caller
        named the folder explicitly.
        """
        st = path.stat()
        if not stat.S_ISDIR(st.st_mode):
            raise NotADirectoryError(errno.ENOTDIR, "Not a directory", str(path))
        return _make_entry(path, st, is_dir=True)

    def list_files(self, folder: Path, mask: str) -> list[Entry]:
        return self._scan(folder, want_dirs=False, mask=mask)

    def list_folders(self, folder: Path) -> list[Entry]:
        return self._scan(folder, want_dirs=True)

    def _scan(self, folder: Path, want_dirs: bool, mask: str | None = None) -> list[Entry]:
        if mask is not None:
            mask = native_mask(mask)
        entries: list[Entry] = []
        with os.scandir(folder) as it:
            for dir_entry in it:
                try:
                    is_dir = dir_entry.is_dir()
                except OSError:
                    is_dir = False
                if is_dir != want_dirs:
                    continue
                # fnmatch normalizes case the way the host filesystem does.
                if mask is not None and not fnmatch.fnmatch(dir_entry.name, mask):
                    continue
                try:
                    st = dir_entry.stat(follow_symlinks=False)
                except FileNotFoundError:
                    logger.debug("Entry vanished during listing: %s", dir_entry.path)
                    continue
                except OSError as e:
                    logger.debug("Cannot stat %s: %s", dir_entry.path, e)
                    continue
                entries.append(_make_entry(Path(dir_entry.path), st, is_dir=is_dir))
        return entries


def _make_entry(path: Path, st: os.stat_result, is_dir: bool) -> Entry:
    return Entry(
        path=path,
        attributes=attributes_from_stat(path.name, st, is_dir=is_dir),
        size=0 if is_dir else st.st_size,
        modified=st.st_mtime,
    )
