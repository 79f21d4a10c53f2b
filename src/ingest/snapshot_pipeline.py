"""Snapshot orchestration.

This module coordinates scanning, incremental hashing, blob writes,
and the final snapshot commit. Nothing is committed until every
referenced blob is durable in the store.
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import Callable

from core.constants import STORE_MARKER_FILE_NAME
from core.hashing import hash_file
from core.logging_config import get_logger
from core.types import FileRecord, HashResolution, SnapshotResult, StagingEntry
from ingest.incremental_hasher import HashFunction, resolve_hashes
from ingest.scanner import scan_source_tree
from store.blob_store import BlobStore
from store.catalog import SnapshotCatalog
from store.snapshot_recorder import SnapshotRecorder
from store.store_layout import StoreLayout

_LOGGER = get_logger(__name__)


class SnapshotPipelineRunner:
    """Runs one snapshot of a source tree into a store."""

    def __init__(
        self,
        layout: StoreLayout,
        source_root: Path,
        hash_workers: int,
        hash_function: HashFunction = hash_file,
    ) -> None:
        self._layout = layout
        self._source_root = source_root.resolve()
        self._hash_workers = hash_workers
        self._hash_function = hash_function
        self._blob_store = BlobStore(layout.blobs_dir)
        self._catalog = SnapshotCatalog(layout.snapshots_dir)
        self._recorder = SnapshotRecorder(self._catalog, self._blob_store)

    def run(self, snapshot_id: int) -> SnapshotResult:
        """Snapshot the source tree under the given identifier.

        Args:
            snapshot_id: New snapshot identifier.

        Returns:
            Snapshot summary counts.

        Raises:
            SnapshotCollisionError: If the identifier is not new.
            InvalidFilenameError: If a source path holds a reserved character.
            BlobWriteError: If content cannot be stored.
        """
        self._recorder.check_identifier(snapshot_id)
        entries = self._scan()
        resolution = resolve_hashes(
            entries,
            self._catalog.load_latest_records(),
            self._hash_workers,
            self._hash_function,
        )
        new_blob_count = self._store_blobs(entries, resolution)
        records = [
            FileRecord.from_staging(entry, resolution.hashes[entry.path]) for entry in entries
        ]
        self._recorder.commit(snapshot_id, records)
        result = SnapshotResult(
            snapshot_id=snapshot_id,
            file_count=len(records),
            rehashed_count=len(resolution.rehashed_paths),
            new_blob_count=new_blob_count,
        )
        _log_snapshot_completion(self._source_root, result)
        return result

    def _scan(self) -> list[StagingEntry]:
        excluded_paths = (self._layout.root, self._source_root / STORE_MARKER_FILE_NAME)
        return scan_source_tree(self._source_root, excluded_paths)

    def _store_blobs(self, entries: list[StagingEntry], resolution: HashResolution) -> int:
        """Write every distinct hash that the store does not hold yet.

        Reused hashes are written too when their blob has gone missing.

        Returns:
            Number of blobs newly written.
        """
        first_entry_by_hash: dict[str, StagingEntry] = {}
        for entry in entries:
            first_entry_by_hash.setdefault(resolution.hashes[entry.path], entry)
        written = 0
        for blob_hash, entry in first_entry_by_hash.items():
            if self._blob_store.put_file(entry.source_path, blob_hash):
                written += 1
        return written


def create_snapshot(
    layout: StoreLayout,
    source_root: Path,
    hash_workers: int,
    snapshot_id: int | None = None,
    clock: Callable[[], float] = time.time,
    hash_function: HashFunction = hash_file,
) -> SnapshotResult:
    """Snapshot a source tree into a store.

    Args:
        layout: Target store layout.
        source_root: Tree to snapshot.
        hash_workers: Upper bound on concurrent hashing threads.
        snapshot_id: Explicit identifier; the current epoch second when omitted.
        clock: Time source used when no identifier is given.
        hash_function: Callable hashing one file path.

    Returns:
        Snapshot summary counts.
    """
    resolved_id = snapshot_id if snapshot_id is not None else int(clock())
    runner = SnapshotPipelineRunner(layout, source_root, hash_workers, hash_function)
    return runner.run(resolved_id)


def _log_snapshot_completion(source_root: Path, result: SnapshotResult) -> None:
    """Log snapshot completion with contextual metadata."""
    _LOGGER.info(
        "snapshot_completed",
        source_root=str(source_root),
        snapshot_id=result.snapshot_id,
        file_count=result.file_count,
        rehashed_count=result.rehashed_count,
        new_blob_count=result.new_blob_count,
    )
