"""Unit tests for source tree scanning."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from core.errors import InvalidFilenameError, VaultScanError, VaultUsageError
from ingest.scanner import scan_source_tree
from tests.store_helpers import BASE_MTIME_NS, write_file


def test_scan_collects_regular_files_recursively(tmp_path: Path) -> None:
    """Scanner should return one sorted entry per regular file."""
    write_file(tmp_path / "b.txt", "beta")
    write_file(tmp_path / "nested" / "a.txt", "alpha")

    entries = scan_source_tree(tmp_path)

    assert [entry.path for entry in entries] == ["b.txt", "nested/a.txt"]


def test_scan_records_size_mtime_and_mode(tmp_path: Path) -> None:
    """Entries should carry size, nanosecond mtime, and permission bits."""
    file_path = write_file(tmp_path / "a.txt", "hello")
    os.chmod(file_path, 0o640)

    entry = scan_source_tree(tmp_path)[0]

    assert (entry.size, entry.mtime_ns, entry.mode) == (5, BASE_MTIME_NS, 0o640)


def test_scan_skips_symlinks(tmp_path: Path) -> None:
    """Symbolic links to files and directories should be excluded."""
    write_file(tmp_path / "real" / "a.txt", "alpha")
    (tmp_path / "file-link").symlink_to(tmp_path / "real" / "a.txt")
    (tmp_path / "dir-link").symlink_to(tmp_path / "real", target_is_directory=True)

    entries = scan_source_tree(tmp_path)

    assert [entry.path for entry in entries] == ["real/a.txt"]


def test_scan_skips_excluded_paths(tmp_path: Path) -> None:
    """Excluded directories and files should not be walked."""
    write_file(tmp_path / "keep.txt", "keep")
    write_file(tmp_path / "store" / "blobs" / "x", "blob")
    write_file(tmp_path / ".marker", "marker")

    entries = scan_source_tree(tmp_path, (tmp_path / "store", tmp_path / ".marker"))

    assert [entry.path for entry in entries] == ["keep.txt"]


def test_scan_rejects_reserved_delimiter(tmp_path: Path) -> None:
    """Paths with the field delimiter should fail the whole scan."""
    write_file(tmp_path / "ok.txt", "ok")
    write_file(tmp_path / "bad|name.txt", "bad")

    with pytest.raises(InvalidFilenameError) as error_info:
        scan_source_tree(tmp_path)

    assert "bad|name.txt" in str(error_info.value)


def test_scan_rejects_newline_in_directory_name(tmp_path: Path) -> None:
    """A newline anywhere in the relative path should be rejected."""
    write_file(tmp_path / "dir\nname" / "a.txt", "alpha")

    with pytest.raises(InvalidFilenameError):
        scan_source_tree(tmp_path)


def test_scan_requires_existing_directory(tmp_path: Path) -> None:
    """Missing source roots should be reported as usage errors."""
    with pytest.raises(VaultUsageError):
        scan_source_tree(tmp_path / "missing")


def test_scan_rejects_files_dated_at_epoch(tmp_path: Path) -> None:
    """Files with a zero mtime should fail the scan and be named."""
    write_file(tmp_path / "ok.txt", "ok")
    write_file(tmp_path / "old" / "epoch.txt", "old", mtime_ns=0)

    with pytest.raises(VaultScanError) as error_info:
        scan_source_tree(tmp_path)

    assert "old/epoch.txt" in str(error_info.value) and "ok.txt" not in str(error_info.value)
