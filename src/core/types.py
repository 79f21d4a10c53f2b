"""Shared typed models.

This module defines immutable data models used by the scanner, hasher,
store, maintenance, and checkout layers to keep interfaces explicit.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from core.validation import (
    validate_blob_hash,
    validate_mode,
    validate_mtime_ns,
    validate_relative_path,
    validate_size,
)


@dataclass(frozen=True)
class StagingEntry:
    """Scanned regular file awaiting hash resolution.

    Attributes:
        path: POSIX path relative to the source root.
        size: File size in bytes.
        mtime_ns: Modification time in nanoseconds.
        mode: Permission bits.
        source_path: Absolute path used to read file content.
    """

    path: str
    size: int
    mtime_ns: int
    mode: int
    source_path: Path


@dataclass(frozen=True)
class FileRecord:
    """Committed metadata for one file inside one snapshot.

    Attributes:
        path: POSIX path relative to the source root.
        size: File size in bytes.
        mtime_ns: Modification time in nanoseconds.
        mode: Permission bits in the 0..0o777 range.
        blob_hash: Content address of the file bytes.
    """

    path: str
    size: int
    mtime_ns: int
    mode: int
    blob_hash: str

    def __post_init__(self) -> None:
        validate_relative_path(self.path)
        validate_size(self.size)
        validate_mtime_ns(self.mtime_ns)
        validate_mode(self.mode)
        validate_blob_hash(self.blob_hash)

    @classmethod
    def from_staging(cls, entry: StagingEntry, blob_hash: str) -> "FileRecord":
        """Bind a staging entry to its resolved content hash."""
        return cls(
            path=entry.path,
            size=entry.size,
            mtime_ns=entry.mtime_ns,
            mode=entry.mode,
            blob_hash=blob_hash,
        )


@dataclass(frozen=True)
class SnapshotInfo:
    """Summary row for one committed snapshot."""

    snapshot_id: int
    file_count: int

    @property
    def created_at(self) -> datetime:
        """Snapshot identifier interpreted as a UTC epoch timestamp."""
        return datetime.fromtimestamp(self.snapshot_id, tz=timezone.utc)


@dataclass(frozen=True)
class HashResolution:
    """Hash mapping for one scan, keyed by relative path.

    Attributes:
        hashes: Resolved content hash per path.
        rehashed_paths: Paths whose content was read and hashed.
        reused_paths: Paths whose prior hash was reused.
    """

    hashes: dict[str, str]
    rehashed_paths: tuple[str, ...]
    reused_paths: tuple[str, ...]


@dataclass(frozen=True)
class SnapshotResult:
    """Outcome of one snapshot operation."""

    snapshot_id: int
    file_count: int
    rehashed_count: int
    new_blob_count: int


@dataclass(frozen=True)
class VacuumResult:
    """Outcome of one garbage collection run."""

    live_count: int
    removed_count: int


@dataclass(frozen=True)
class VerificationReport:
    """Outcome of a successful store verification."""

    blob_count: int
    snapshot_count: int


@dataclass(frozen=True)
class CheckoutResult:
    """Outcome of materializing one snapshot."""

    snapshot_id: int
    target_dir: Path
    file_count: int


@dataclass(frozen=True)
class SnapshotDiff:
    """Path-level difference between two snapshots.

    Attributes:
        old_id: Older snapshot identifier.
        new_id: Newer snapshot identifier.
        added: Paths present only in the newer snapshot.
        removed: Paths present only in the older snapshot.
        modified: Paths present in both with different hashes.
    """

    old_id: int
    new_id: int
    added: tuple[str, ...]
    removed: tuple[str, ...]
    modified: tuple[str, ...]
