"""
DirSearch: the depth-first search engine.

Walks a directory tree pre-order, applying the always-excluded mask, exclusion
patterns, the attribute match policy and the caller's filter hooks at each
level, and reports matches through callbacks. Any match or exception callback
can cancel the whole search by returning a true value.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

import pathspec

from dirsearch.attributes import FileAttributes, attributes_match, format_attributes
from dirsearch.filesystem import FileSystem, OsFileSystem, is_listing_failure
from dirsearch.patterns import compile_patterns, is_excluded
from dirsearch.types import Entry, FolderFilterResult, SearchConfig, SearchSummary

logger = logging.getLogger(__name__)

FolderFilter = Callable[[Entry], "FolderFilterResult | tuple[bool, bool] | None"]
EntryCallback = Callable[[Entry], "bool | None"]
ExceptCallback = Callable[[str], "bool | None"]

_SELF_AND_PARENT = frozenset((".", ".."))


@dataclass
class _SearchRun:
    """State for one `execute()` call, shared by every level of the recursion."""

    config: SearchConfig
    excluded: FileAttributes
    exclude_spec: pathspec.PathSpec | None
    cancelled: bool = False
    folders_matched: int = 0
    files_matched: int = 0
    errors: list[str] = field(default_factory=list)


class DirSearch:
    """
    Searches for files and folders, reporting them through optional callbacks.

    Callbacks can be passed to the constructor or assigned to the attributes of
    the same name later. None of them is required.

    - `on_folder_filter(folder)` returns `(skip_folder, skip_children)` or `None`.
    - `on_folder_match(folder)` / `on_file_match(file)` return true to cancel.
    - `on_file_filter(file)` returns true to leave the file out.
    - `on_file_except(message)` / `on_folder_except(message)` are called when
      listing one directory's files / subfolders fails with an access or
      path-length error, and return true to cancel.
    """

    def __init__(
        self,
        *,
        on_folder_filter: FolderFilter | None = None,
        on_folder_match: EntryCallback | None = None,
        on_file_filter: EntryCallback | None = None,
        on_file_match: EntryCallback | None = None,
        on_file_except: ExceptCallback | None = None,
        on_folder_except: ExceptCallback | None = None,
        filesystem: FileSystem | None = None,
    ) -> None:
        self.on_folder_filter = on_folder_filter
        self.on_folder_match = on_folder_match
        self.on_file_filter = on_file_filter
        self.on_file_match = on_file_match
        self.on_file_except = on_file_except
        self.on_folder_except = on_folder_except
        self._fs: FileSystem = filesystem if filesystem is not None else OsFileSystem()

    def execute(self, config: SearchConfig) -> SearchSummary:
        """
        Run one complete search. Each call starts fresh, so a search cancelled
        earlier can simply be executed again.

        Raises `FileNotFoundError` or `NotADirectoryError` if the start folder
        is missing or not a directory.
        """
        start = config.resolve_start_folder()
        run = _SearchRun(
            config=config,
            excluded=config.effective_always_excluded,
            exclude_spec=compile_patterns(config.exclude),
        )
        logger.info(
            "Searching %s for %r (recurse=%s, policy=%s, attributes=%s, excluded=%s)",
            start,
            config.search_mask,
            config.recurse_subdirectories,
            config.match_policy,
            format_attributes(config.attributes),
            format_attributes(run.excluded),
        )

        root = self._fs.stat_folder(start)
        self._find_files(root, is_root=True, run=run)

        summary = SearchSummary(
            start_folder=start,
            folders_matched=run.folders_matched,
            files_matched=run.files_matched,
            errors=run.errors,
            cancelled=run.cancelled,
        )
        logger.info(
            "Search of %s done: %d folders, %d files, %d errors%s",
            start,
            summary.folders_matched,
            summary.files_matched,
            len(summary.errors),
            " (cancelled)" if summary.cancelled else "",
        )
        return summary

    def _find_files(self, folder: Entry, is_root: bool, run: _SearchRun) -> None:
        """Process one folder, then recurse into its subfolders if allowed."""
        if run.cancelled:
            return
        if folder.attributes & run.excluded:
            logger.debug(
                "Skipping excluded folder %s (%s)", folder.path, format_attributes(folder.attributes)
            )
            return
        if not is_root and is_excluded(run.exclude_spec, folder):
            logger.debug("Skipping folder matching exclude pattern: %s", folder.path)
            return

        skip_folder, skip_children = self._filter_folder(folder)

        if not skip_folder:
            run.folders_matched += 1
            if self.on_folder_match is not None and self.on_folder_match(folder):
                run.cancelled = True
                return
            self._match_files(folder, run)
            if run.cancelled:
                return

        if skip_children or not run.config.recurse_subdirectories:
            return

        try:
            subfolders = self._fs.list_folders(folder.path)
        except OSError as e:
            if not is_listing_failure(e):
                raise
            self._report_failure(self.on_folder_except, folder.path, e, run)
            return

        for subfolder in subfolders:
            if subfolder.name in _SELF_AND_PARENT:
                continue
            self._find_files(subfolder, is_root=False, run=run)
            if run.cancelled:
                return

    def _match_files(self, folder: Entry, run: _SearchRun) -> None:
        """Report the files in one folder that pass every check."""
        config = run.config
        try:
            files = self._fs.list_files(folder.path, config.search_mask)
        except OSError as e:
            if not is_listing_failure(e):
                raise
            self._report_failure(self.on_file_except, folder.path, e, run)
            return

        for file in files:
            if file.attributes & run.excluded:
                continue
            if is_excluded(run.exclude_spec, file):
                continue
            if not attributes_match(file.attributes, config.attributes, config.match_policy):
                continue
            if self.on_file_filter is not None and self.on_file_filter(file):
                continue
            run.files_matched += 1
            if self.on_file_match is not None and self.on_file_match(file):
                run.cancelled = True
                return

    def _filter_folder(self, folder: Entry) -> FolderFilterResult:
        if self.on_folder_filter is None:
            return FolderFilterResult()
        result = self.on_folder_filter(folder)
        if result is None:
            return FolderFilterResult()
        skip_folder, skip_children = result
        return FolderFilterResult(bool(skip_folder), bool(skip_children))

    def _report_failure(
        self,
        callback: ExceptCallback | None,
        folder: Path,
        error: OSError,
        run: _SearchRun,
    ) -> None:
        message = str(error)
        run.errors.append(message)
        logger.debug("Listing failed in %s: %s", folder, message)
        if callback is not None and callback(message):
            run.cancelled = True


def find_files(
    config: SearchConfig,
    *,
    max_results: int = 0,
    file_filter: EntryCallback | None = None,
    filesystem: FileSystem | None = None,
) -> list[Entry]:
    """
    Run a search and return the matched files in the order they were found.
    Stops after `max_results` matches when it is positive.
    """
    found: list[Entry] = []

    def collect(entry: Entry) -> bool:
        found.append(entry)
        return 0 < max_results <= len(found)

    DirSearch(on_file_filter=file_filter, on_file_match=collect, filesystem=filesystem).execute(
        config
    )
    return found
