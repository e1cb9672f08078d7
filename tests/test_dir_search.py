"""Tests for DirSearch against a real directory tree."""

from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

from dirsearch import (
    DirSearch,
    Entry,
    FileAttributes,
    FolderFilterResult,
    MatchPolicy,
    SearchConfig,
    find_files,
)

posix_only = pytest.mark.skipif(
    sys.platform == "win32", reason="attributes are synthesized on POSIX only"
)


class Recorder:
    """Collects callback invocations in order."""

    def __init__(self) -> None:
        self.folders: list[Path] = []
        self.files: list[Path] = []

    def folder_match(self, folder: Entry) -> bool:
        self.folders.append(folder.path)
        return False

    def file_match(self, file: Entry) -> bool:
        self.files.append(file.path)
        return False

    def search(self, **kwargs: object) -> DirSearch:
        return DirSearch(
            on_folder_match=self.folder_match,
            on_file_match=self.file_match,
            **kwargs,  # pyright: ignore[reportArgumentType]
        )

    @property
    def file_names(self) -> list[str]:
        return sorted(p.name for p in self.files)

    @property
    def folder_names(self) -> list[str]:
        return sorted(p.name for p in self.folders)


def _make_tree(root: Path) -> None:
    """
    root/
      A.txt  B.dat  Root1.txt  Root2.dat
      Sub/      C.txt  L2.dat
        Deep/   D.txt
      Other/    E.txt
    """
    (root / "A.txt").write_text("a")
    (root / "B.dat").write_text("b")
    (root / "Root1.txt").write_text("r1")
    (root / "Root2.dat").write_text("")
    sub = root / "Sub"
    sub.mkdir()
    (sub / "C.txt").write_text("c")
    (sub / "L2.dat").write_text("l2")
    deep = sub / "Deep"
    deep.mkdir()
    (deep / "D.txt").write_text("d")
    other = root / "Other"
    other.mkdir()
    (other / "E.txt").write_text("e")


def test_txt_mask_reports_matching_files_and_all_folders(tmp_path: Path):
    (tmp_path / "A.txt").write_text("a")
    (tmp_path / "B.dat").write_text("b")
    sub = tmp_path / "Sub"
    sub.mkdir()
    (sub / "C.txt").write_text("c")

    rec = Recorder()
    summary = rec.search().execute(SearchConfig(start_folder=tmp_path, search_mask="*.txt"))

    assert sorted(rec.files) == sorted([tmp_path / "A.txt", sub / "C.txt"])
    assert sorted(rec.folders) == sorted([tmp_path, sub])
    assert summary.files_matched == 2
    assert summary.folders_matched == 2
    assert summary.cancelled is False
    assert summary.errors == []


def test_no_matching_files_still_visits_every_folder(tmp_path: Path):
    _make_tree(tmp_path)
    rec = Recorder()
    rec.search().execute(SearchConfig(start_folder=tmp_path, search_mask="*.xyz"))

    assert rec.files == []
    assert len(rec.folders) == 4


def test_all_files_and_subfolders(tmp_path: Path):
    _make_tree(tmp_path)
    rec = Recorder()
    rec.search().execute(SearchConfig(start_folder=tmp_path))

    assert rec.file_names == [
        "A.txt",
        "B.dat",
        "C.txt",
        "D.txt",
        "E.txt",
        "L2.dat",
        "Root1.txt",
        "Root2.dat",
    ]
    assert rec.folder_names == sorted(["Deep", "Other", "Sub", tmp_path.name])


def test_prefix_mask(tmp_path: Path):
    _make_tree(tmp_path)
    assert sorted(e.name for e in find_files(SearchConfig(tmp_path, "Root*.*"))) == [
        "Root1.txt",
        "Root2.dat",
    ]


def test_no_recurse_reports_only_start_folder(tmp_path: Path):
    _make_tree(tmp_path)
    rec = Recorder()
    rec.search().execute(SearchConfig(start_folder=tmp_path, recurse_subdirectories=False))

    assert rec.folders == [tmp_path]
    assert rec.file_names == ["A.txt", "B.dat", "Root1.txt", "Root2.dat"]


def test_files_reported_before_subfolders(tmp_path: Path):
    _make_tree(tmp_path)
    events: list[str] = []
    search = DirSearch(
        on_folder_match=lambda f: events.append(f"folder:{f.name}"),
        on_file_match=lambda f: events.append(f"file:{f.name}"),
    )
    search.execute(SearchConfig(start_folder=tmp_path / "Sub"))

    assert events.index("file:C.txt") < events.index("folder:Deep")
    assert events.index("folder:Deep") < events.index("file:D.txt")
    assert events[0] == "folder:Sub"


def test_file_filter_leaves_one_hit(tmp_path: Path):
    _make_tree(tmp_path)
    rec = Recorder()
    rec.search(on_file_filter=lambda f: f.name != "Root2.dat").execute(
        SearchConfig(start_folder=tmp_path)
    )
    assert rec.file_names == ["Root2.dat"]
    assert len(rec.folders) == 4


def test_file_filter_on_sublevel(tmp_path: Path):
    _make_tree(tmp_path)
    rec = Recorder()
    rec.search(on_file_filter=lambda f: f.name != "D.txt").execute(
        SearchConfig(start_folder=tmp_path)
    )
    assert rec.files == [tmp_path / "Sub" / "Deep" / "D.txt"]


def test_file_filter_zero_byte_files(tmp_path: Path):
    _make_tree(tmp_path)
    found = find_files(SearchConfig(start_folder=tmp_path), file_filter=lambda f: f.size != 0)
    assert [e.name for e in found] == ["Root2.dat"]


def test_folder_filter_skip_folder_keeps_children(tmp_path: Path):
    _make_tree(tmp_path)
    rec = Recorder()

    def skip_sub(folder: Entry) -> FolderFilterResult:
        return FolderFilterResult(skip_folder=folder.name == "Sub")

    rec.search(on_folder_filter=skip_sub).execute(SearchConfig(start_folder=tmp_path))

    assert "Sub" not in rec.folder_names
    assert "Deep" in rec.folder_names
    assert "C.txt" not in rec.file_names
    assert "L2.dat" not in rec.file_names
    assert "D.txt" in rec.file_names


def test_folder_filter_skip_children_keeps_files(tmp_path: Path):
    _make_tree(tmp_path)
    rec = Recorder()
    rec.search(on_folder_filter=lambda f: (False, f.name == "Sub")).execute(
        SearchConfig(start_folder=tmp_path)
    )

    assert "Sub" in rec.folder_names
    assert "C.txt" in rec.file_names
    assert "Deep" not in rec.folder_names
    assert "D.txt" not in rec.file_names
    assert "E.txt" in rec.file_names


def test_folder_filter_returning_none_skips_nothing(tmp_path: Path):
    _make_tree(tmp_path)
    rec = Recorder()
    rec.search(on_folder_filter=lambda f: None).execute(SearchConfig(start_folder=tmp_path))
    assert len(rec.files) == 8


def test_cancel_from_file_match_stops_everything(tmp_path: Path):
    _make_tree(tmp_path)
    events: list[str] = []
    files: list[str] = []

    def on_file(file: Entry) -> bool:
        events.append(file.name)
        files.append(file.name)
        return len(files) == 3

    search = DirSearch(
        on_folder_match=lambda f: events.append(f"folder:{f.name}") and False,
        on_file_match=on_file,
    )
    summary = search.execute(SearchConfig(start_folder=tmp_path))

    file_events = [e for e in events if not e.startswith("folder:")]
    assert len(file_events) == 3
    assert events[-1] == file_events[-1]
    assert summary.cancelled is True
    assert summary.files_matched == 3


def test_cancel_from_folder_match_stops_everything(tmp_path: Path):
    _make_tree(tmp_path)
    rec = Recorder()
    search = DirSearch(on_folder_match=lambda f: True, on_file_match=rec.file_match)
    summary = search.execute(SearchConfig(start_folder=tmp_path))

    assert rec.files == []
    assert summary.folders_matched == 1
    assert summary.cancelled is True


def test_execute_again_after_cancel(tmp_path: Path):
    _make_tree(tmp_path)
    config = SearchConfig(start_folder=tmp_path)
    search = DirSearch(on_file_match=lambda f: True)
    assert search.execute(config).files_matched == 1
    second = search.execute(config)
    assert second.files_matched == 1
    assert second.cancelled is True


def test_max_results(tmp_path: Path):
    _make_tree(tmp_path)
    assert len(find_files(SearchConfig(start_folder=tmp_path), max_results=2)) == 2
    assert len(find_files(SearchConfig(start_folder=tmp_path), max_results=0)) == 8


@pytest.mark.parametrize("start", [None, "", "."])
def test_empty_start_folder_uses_cwd_at_execute_time(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, start: str | None
):
    first = tmp_path / "first"
    first.mkdir()
    (first / "one.txt").write_text("1")
    second = tmp_path / "second"
    second.mkdir()
    (second / "two.txt").write_text("2")

    monkeypatch.chdir(first)
    config = SearchConfig(start_folder=start)
    monkeypatch.chdir(second)

    rec = Recorder()
    summary = rec.search().execute(config)
    assert summary.start_folder == Path.cwd()
    assert rec.file_names == ["two.txt"]
    assert config.start_folder == start


def test_relative_start_folder(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    _make_tree(tmp_path)
    monkeypatch.chdir(tmp_path)
    found = find_files(SearchConfig(start_folder="Other"))
    assert [e.path for e in found] == [tmp_path / "Other" / "E.txt"]


def test_missing_start_folder_raises(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        DirSearch().execute(SearchConfig(start_folder=tmp_path / "nope"))


def test_start_folder_is_a_file_raises(tmp_path: Path):
    f = tmp_path / "file.txt"
    f.write_text("x")
    with pytest.raises(NotADirectoryError):
        DirSearch().execute(SearchConfig(start_folder=f))


def test_exclude_patterns(tmp_path: Path):
    _make_tree(tmp_path)
    config = SearchConfig(start_folder=tmp_path, exclude=["Sub/", "*.dat"])
    names = sorted(e.name for e in find_files(config))
    assert names == ["A.txt", "E.txt", "Root1.txt"]


def test_exclude_pattern_never_applies_to_start_folder(tmp_path: Path):
    _make_tree(tmp_path)
    config = SearchConfig(start_folder=tmp_path / "Other", exclude=["Other/"])
    assert [e.name for e in find_files(config)] == ["E.txt"]


@posix_only
def test_hidden_files_match_policy(tmp_path: Path):
    (tmp_path / "visible.txt").write_text("v")
    (tmp_path / ".hidden.txt").write_text("h")
    config = SearchConfig(
        start_folder=tmp_path,
        match_policy=MatchPolicy.ANY_MATCH,
        attributes=FileAttributes.HIDDEN,
    )
    assert [e.name for e in find_files(config)] == [".hidden.txt"]


@posix_only
def test_read_only_files_match_policy(tmp_path: Path):
    (tmp_path / "rw.txt").write_text("rw")
    ro = tmp_path / "ro.txt"
    ro.write_text("ro")
    ro.chmod(0o444)
    try:
        config = SearchConfig(
            start_folder=tmp_path,
            match_policy=MatchPolicy.ALL_MATCH_PLUS_ANY_OTHERS,
            attributes=FileAttributes.READ_ONLY,
        )
        assert [e.name for e in find_files(config)] == ["ro.txt"]

        exact_normal = SearchConfig(
            start_folder=tmp_path,
            match_policy=MatchPolicy.EXACT_MATCH,
            attributes=FileAttributes.NORMAL,
        )
        assert [e.name for e in find_files(exact_normal)] == ["rw.txt"]
    finally:
        ro.chmod(0o644)


@posix_only
def test_hidden_folders_excluded_through_always_excluded(tmp_path: Path):
    _make_tree(tmp_path)
    hidden = tmp_path / ".cache"
    hidden.mkdir()
    (hidden / "cached.txt").write_text("c")

    assert "cached.txt" in [e.name for e in find_files(SearchConfig(start_folder=tmp_path))]

    config = SearchConfig(
        start_folder=tmp_path,
        always_excluded=FileAttributes.REPARSE_POINT | FileAttributes.HIDDEN,
    )
    assert "cached.txt" not in [e.name for e in find_files(config)]


@pytest.mark.skipif(not hasattr(os, "symlink") or sys.platform == "win32", reason="needs symlinks")
def test_symlinks_excluded_by_default(tmp_path: Path):
    _make_tree(tmp_path)
    (tmp_path / "link.txt").symlink_to(tmp_path / "A.txt")
    (tmp_path / "LinkDir").symlink_to(tmp_path / "Other", target_is_directory=True)

    rec = Recorder()
    rec.search().execute(SearchConfig(start_folder=tmp_path))
    assert "link.txt" not in rec.file_names
    assert "LinkDir" not in rec.folder_names
    assert rec.file_names.count("E.txt") == 1

    followed = Recorder()
    followed.search().execute(
        SearchConfig(start_folder=tmp_path, always_excluded=FileAttributes(0))
    )
    assert "link.txt" in followed.file_names
    assert "LinkDir" in followed.folder_names
    assert followed.file_names.count("E.txt") == 2


@pytest.mark.skipif(
    sys.platform == "win32" or os.getuid() == 0, reason="needs POSIX permissions as non-root"
)
def test_unreadable_folder_reported_and_siblings_continue(tmp_path: Path):
    _make_tree(tmp_path)
    locked = tmp_path / "Locked"
    locked.mkdir()
    (locked / "secret.txt").write_text("s")
    locked.chmod(0)
    try:
        file_errors: list[str] = []
        rec = Recorder()
        summary = rec.search(on_file_except=file_errors.append).execute(
            SearchConfig(start_folder=tmp_path)
        )
        assert len(file_errors) == 1
        assert "E.txt" in rec.file_names
        assert "secret.txt" not in rec.file_names
        assert summary.errors
    finally:
        locked.chmod(0o755)


class _DeniedStatEntry:
    """A scandir entry whose own stat is denied, like a mount owned by another user."""

    def __init__(self, entry: os.DirEntry[str]) -> None:
        self._entry = entry
        self.name = entry.name
        self.path = entry.path

    def is_dir(self, *, follow_symlinks: bool = True) -> bool:
        return self._entry.is_dir(follow_symlinks=follow_symlinks)

    def stat(self, *, follow_symlinks: bool = True) -> os.stat_result:
        raise PermissionError(13, "Permission denied", self.path)


def test_entry_that_cannot_be_stat_is_skipped_alone(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
):
    (tmp_path / "a.txt").write_text("a")
    (tmp_path / "mnt").mkdir()
    (tmp_path / "Sub").mkdir()
    (tmp_path / "Sub" / "c.txt").write_text("c")
    real_scandir = os.scandir

    class DenyingScandir:
        def __init__(self, path: Path) -> None:
            self._it = real_scandir(path)

        def __enter__(self) -> DenyingScandir:
            return self

        def __exit__(self, *exc: object) -> None:
            self._it.close()

        def __iter__(self):
            for entry in self._it:
                yield _DeniedStatEntry(entry) if entry.name == "mnt" else entry

    monkeypatch.setattr("dirsearch.filesystem.os.scandir", DenyingScandir)

    folder_errors: list[str] = []
    rec = Recorder()
    summary = rec.search(on_folder_except=folder_errors.append).execute(
        SearchConfig(start_folder=tmp_path)
    )

    assert rec.file_names == ["a.txt", "c.txt"]
    assert "Sub" in rec.folder_names
    assert "mnt" not in rec.folder_names
    assert folder_errors == []
    assert summary.errors == []


def test_star_dot_star_mask_follows_host_rules(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
):
    (tmp_path / "README").write_text("r")
    (tmp_path / "notes.txt").write_text("n")

    monkeypatch.setattr("dirsearch.filesystem._WINDOWS", False)
    assert [e.name for e in find_files(SearchConfig(tmp_path, "*.*"))] == ["notes.txt"]

    monkeypatch.setattr("dirsearch.filesystem._WINDOWS", True)
    assert sorted(e.name for e in find_files(SearchConfig(tmp_path, "*.*"))) == [
        "README",
        "notes.txt",
    ]
