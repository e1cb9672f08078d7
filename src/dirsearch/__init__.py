"""
Recursive file and folder search with attribute matching, filter hooks and
early cancellation.

Usage::

    from dirsearch import DirSearch, MatchPolicy, SearchConfig

    config = SearchConfig(start_folder="docs", search_mask="*.txt")
    search = DirSearch(on_file_match=lambda f: print(f.path))
    summary = search.execute(config)
"""

from dirsearch.attributes import (
    ALL_ATTRIBUTES,
    ALL_ATTRIBUTES_MINUS_HIDDEN,
    ALL_ATTRIBUTES_MINUS_SYS,
    ALL_ATTRIBUTES_MINUS_SYS_AND_HIDDEN,
    ATTRIBUTES_EXCLUDED,
    SYSTEM_HIDDEN,
    FileAttributes,
    MatchPolicy,
    attributes_match,
    parse_attributes,
)
from dirsearch.defaults import BASELINE_EXCLUDED, SEARCH_MASK_ALL, VCS_EXCLUDES
from dirsearch.filesystem import FileSystem, OsFileSystem
from dirsearch.searcher import DirSearch, find_files
from dirsearch.types import Entry, FolderFilterResult, SearchConfig, SearchSummary

__all__ = [
    "ALL_ATTRIBUTES",
    "ALL_ATTRIBUTES_MINUS_HIDDEN",
    "ALL_ATTRIBUTES_MINUS_SYS",
    "ALL_ATTRIBUTES_MINUS_SYS_AND_HIDDEN",
    "ATTRIBUTES_EXCLUDED",
    "BASELINE_EXCLUDED",
    "SEARCH_MASK_ALL",
    "SYSTEM_HIDDEN",
    "VCS_EXCLUDES",
    "DirSearch",
    "Entry",
    "FileAttributes",
    "FileSystem",
    "FolderFilterResult",
    "MatchPolicy",
    "OsFileSystem",
    "SearchConfig",
    "SearchSummary",
    "attributes_match",
    "find_files",
    "parse_attributes",
]
