"""Source tree scanner.

This module walks a source tree and collects one staging entry per
regular file. Every name is validated before anything is written.
"""

from __future__ import annotations

import os
import stat
from pathlib import Path
from typing import Iterable

from core.constants import MAX_PERMISSION_BITS
from core.errors import InvalidFilenameError, VaultScanError, VaultUsageError
from core.types import StagingEntry
from core.validation import find_reserved_character


def scan_source_tree(
    source_root: Path,
    excluded_paths: Iterable[Path] = (),
) -> list[StagingEntry]:
    """Collect regular files under a source root.

    Symbolic links, devices, FIFOs and sockets are skipped, and symlinked
    directories are not descended into.

    Args:
        source_root: Root directory to walk.
        excluded_paths: Files or directories to leave out, such as the
            store itself when it lives inside the source tree.

    Returns:
        Staging entries sorted by relative path.

    Raises:
        VaultUsageError: If the source root is not a directory.
        InvalidFilenameError: If any path holds a reserved character.
        VaultScanError: If a directory or file cannot be read, or a file
            has a modification time at or before the epoch.
    """
    root = source_root.resolve()
    if not root.is_dir():
        raise VaultUsageError(
            f"Source root {root} is not a directory. Pass an existing tree with --source."
        )
    excluded = {Path(path).resolve() for path in excluded_paths}
    entries: list[StagingEntry] = []
    invalid_paths: list[str] = []
    undated_paths: list[str] = []
    for directory, dir_names, file_names in os.walk(root, onerror=_raise_walk_error):
        directory_path = Path(directory)
        dir_names[:] = sorted(
            name for name in dir_names if (directory_path / name) not in excluded
        )
        for file_name in sorted(file_names):
            file_path = directory_path / file_name
            if file_path in excluded:
                continue
            relative_path = file_path.relative_to(root).as_posix()
            if find_reserved_character(relative_path) is not None:
                invalid_paths.append(relative_path)
                continue
            entry = _stage_file(file_path, relative_path)
            if entry is None:
                continue
            if entry.mtime_ns <= 0:
                undated_paths.append(relative_path)
                continue
            entries.append(entry)
    if invalid_paths:
        raise InvalidFilenameError(
            f"{len(invalid_paths)} path(s) contain a reserved character (field delimiter "
            f"or newline): {', '.join(repr(path) for path in invalid_paths)}. "
            "Rename them before taking a snapshot."
        )
    if undated_paths:
        raise VaultScanError(
            f"{len(undated_paths)} file(s) have a modification time at or before the epoch: "
            f"{', '.join(repr(path) for path in undated_paths)}. "
            "Touch them to set a current mtime before taking a snapshot."
        )
    return sorted(entries, key=lambda entry: entry.path)


def _stage_file(file_path: Path, relative_path: str) -> StagingEntry | None:
    """Stat one directory entry and stage it when it is a regular file."""
    try:
        file_stat = file_path.lstat()
    except FileNotFoundError:
        return None
    except OSError as error:
        raise VaultScanError(
            f"Failed to stat {file_path}: {error}. Check source tree permissions."
        ) from error
    if not stat.S_ISREG(file_stat.st_mode):
        return None
    return StagingEntry(
        path=relative_path,
        size=file_stat.st_size,
        mtime_ns=file_stat.st_mtime_ns,
        mode=stat.S_IMODE(file_stat.st_mode) & MAX_PERMISSION_BITS,
        source_path=file_path,
    )


def _raise_walk_error(error: OSError) -> None:
    raise VaultScanError(
        f"Failed to read source directory {error.filename}: {error.strerror}. "
        "Check source tree permissions."
    ) from error
