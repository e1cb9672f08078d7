#!/usr/bin/env python3
"""
dirsearch: Find files and folders by name pattern and file attributes

Common usage:
  dirsearch
  dirsearch docs -m '*.txt'
  dirsearch . --match any --attr hidden --attr system
  dirsearch src --no-recurse --folders
  dirsearch . --skip-vcs --exclude 'build/' --max-results 20

Attribute names: read-only, hidden, system, directory, archive, device, normal,
temporary, sparse-file, reparse-point, compressed, offline, not-content-indexed,
encrypted, integrity-stream, no-scrub-data, or the combinations all,
system-hidden, all-minus-sys, all-minus-hidden, all-minus-sys-and-hidden,
excluded, none.
"""

from __future__ import annotations

import argparse
import importlib.metadata
import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path

from dirsearch.attributes import MatchPolicy, parse_attributes
from dirsearch.config import find_config_file, load_config, merge_cli_with_config
from dirsearch.defaults import DEFAULT_ALWAYS_EXCLUDED, DEFAULT_ATTRIBUTES, VCS_EXCLUDES
from dirsearch.searcher import DirSearch
from dirsearch.types import Entry, SearchConfig


@dataclass
class Options:
    """Command-line options for the dirsearch tool."""

    start_folder: str | None
    search_mask: str
    recurse: bool
    match: str
    attributes: list[str]
    always_excluded: list[str] | None
    exclude: list[str]
    skip_vcs: bool
    folders: bool
    max_results: int
    stop_on_error: bool
    verbose: bool
    version: bool


# argparse dest name -> Options field name, for flags a config file may also set
_TRACKED_FLAGS: dict[str, str] = {
    "search_mask": "search_mask",
    "no_recurse": "recurse",
    "match": "match",
    "attributes": "attributes",
    "always_excluded": "always_excluded",
    "exclude": "exclude",
    "skip_vcs": "skip_vcs",
}


def _build_parser() -> argparse.ArgumentParser:
    # Use the module's docstring as the description
    module_doc = __doc__ or ""
    doc_parts = module_doc.split("\n\n")
    description = doc_parts[0]
    epilog = "\n\n".join(doc_parts[1:])

    parser = argparse.ArgumentParser(
        prog="dirsearch",
        description=description,
        epilog=epilog,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "start_folder",
        nargs="?",
        default=None,
        help="Folder to start searching in (default: current directory)",
    )
    parser.add_argument(
        "-m",
        "--mask",
        dest="search_mask",
        default="*",
        metavar="PATTERN",
        help="File name pattern, e.g. '*.txt' (default: %(default)s)",
    )
    parser.add_argument(
        "--no-recurse",
        action="store_true",
        dest="no_recurse",
        help="Only search the start folder itself, not its subfolders",
    )
    parser.add_argument(
        "--match",
        choices=[p.value for p in MatchPolicy],
        default=MatchPolicy.IGNORE_ATTRIBUTE_MATCH.value,
        help="How file attributes are compared with --attr: exact, all (plus any others), "
        "any, or ignore (default: %(default)s)",
    )
    parser.add_argument(
        "--attr",
        action="append",
        dest="attributes",
        default=[],
        metavar="NAME",
        help="Attribute to match against (default: normal). Can be repeated",
    )
    parser.add_argument(
        "--always-exclude",
        action="append",
        dest="always_excluded",
        default=None,
        metavar="NAME",
        help="Attribute that always excludes a file or folder, replacing the default "
        "(device, offline, reparse-point). Device and offline entries are never searched. "
        "Can be repeated",
    )
    parser.add_argument(
        "--exclude",
        action="append",
        default=[],
        metavar="PATTERN",
        help="Gitignore-style pattern for files or folders to skip (e.g., 'build/'). "
        "Can be repeated",
    )
    parser.add_argument(
        "--skip-vcs",
        action="store_true",
        dest="skip_vcs",
        help="Skip version control folders (.git, .hg, .svn, .bzr, _darcs)",
    )
    parser.add_argument(
        "--folders",
        action="store_true",
        help="Also print each folder searched",
    )
    parser.add_argument(
        "--max-results",
        type=int,
        default=0,
        dest="max_results",
        metavar="N",
        help="Stop after N matching files (0 = no limit, default: %(default)s)",
    )
    parser.add_argument(
        "--stop-on-error",
        action="store_true",
        dest="stop_on_error",
        help="Stop at the first folder that cannot be read",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log search progress to stderr",
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Show version information and exit",
    )
    return parser


def _parse_args(args: list[str] | None = None) -> tuple[Options, set[str]]:
    """
    Parse command-line arguments.

    Returns a tuple of (options, explicit_flags) where `explicit_flags` tracks
    which flags the user explicitly passed (for config merge precedence).
    """
    opts = _build_parser().parse_args(args)

    # Re-parse with suppressed defaults so only flags actually supplied show up.
    # Comparing against default values would miss a flag set to its default.
    probe = _build_parser()
    for action in probe._actions:  # pyright: ignore[reportPrivateUsage]
        if action.dest in _TRACKED_FLAGS:
            action.default = argparse.SUPPRESS
    supplied, _ = probe.parse_known_args(args if args is not None else sys.argv[1:])
    explicit_flags = {_TRACKED_FLAGS[dest] for dest in vars(supplied) if dest in _TRACKED_FLAGS}

    return (
        Options(
            start_folder=opts.start_folder,
            search_mask=opts.search_mask,
            recurse=not opts.no_recurse,
            match=opts.match,
            attributes=opts.attributes,
            always_excluded=opts.always_excluded,
            exclude=opts.exclude,
            skip_vcs=opts.skip_vcs,
            folders=opts.folders,
            max_results=opts.max_results,
            stop_on_error=opts.stop_on_error,
            verbose=opts.verbose,
            version=opts.version,
        ),
        explicit_flags,
    )


def _as_list(value: list[str] | str) -> list[str]:
    """Config files may give a single string where a list is expected."""
    return [value] if isinstance(value, str) else list(value)


def _build_search_config(options: Options) -> SearchConfig:
    """Turn CLI options into a `SearchConfig`. Raises `ValueError` on bad values."""
    exclude = _as_list(options.exclude)
    if options.skip_vcs:
        exclude = VCS_EXCLUDES + exclude

    attributes = DEFAULT_ATTRIBUTES
    if options.attributes:
        attributes = parse_attributes(_as_list(options.attributes))

    always_excluded = DEFAULT_ALWAYS_EXCLUDED
    if options.always_excluded is not None:
        always_excluded = parse_attributes(_as_list(options.always_excluded))

    return SearchConfig(
        start_folder=options.start_folder,
        search_mask=options.search_mask,
        recurse_subdirectories=options.recurse,
        match_policy=MatchPolicy(options.match),
        attributes=attributes,
        always_excluded=always_excluded,
        exclude=exclude,
    )


def _make_search(options: Options) -> DirSearch:
    """Wire up callbacks that print matches and warnings."""
    printed = 0

    def print_folder(folder: Entry) -> bool:
        print(str(folder.path).rstrip(os.sep) + os.sep)
        return False

    def print_file(file: Entry) -> bool:
        nonlocal printed
        print(file.path)
        printed += 1
        return 0 < options.max_results <= printed

    def warn(message: str) -> bool:
        print(f"Warning: {message}", file=sys.stderr)
        return options.stop_on_error

    return DirSearch(
        on_folder_match=print_folder if options.folders else None,
        on_file_match=print_file,
        on_file_except=warn,
        on_folder_except=warn,
    )


def main(args: list[str] | None = None) -> int:
    """
    Main entry point for the dirsearch CLI.

    Args:
        args: Command-line arguments (uses sys.argv if None)

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    options, explicit_flags = _parse_args(args)

    # Display version information if requested
    if options.version:
        try:
            version = importlib.metadata.version("dirsearch")
            print(f"v{version}")
        except importlib.metadata.PackageNotFoundError:
            print("unknown (package not installed)")
        return 0

    logging.basicConfig(
        level=logging.DEBUG if options.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    # Load and merge config file settings
    config_path = find_config_file(Path.cwd())
    if config_path:
        config = load_config(config_path)
        merge_cli_with_config(options, config, explicit_flags)

    try:
        search_config = _build_search_config(options)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        _make_search(options).execute(search_config)
    except (FileNotFoundError, NotADirectoryError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        # Other filesystem errors abort the search.
        print(f"Error: {e}", file=sys.stderr)
        return 2

    return 0


if __name__ == "__main__":
    sys.exit(main())
