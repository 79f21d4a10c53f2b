"""Snapshot commit protocol.

A snapshot is committed only after every blob it references is durable.
Commit order is the crash-consistency boundary: a crash before publish
leaves orphan blobs, a crash after publish leaves a valid snapshot.
"""

from __future__ import annotations

from core.constants import MAX_SNAPSHOT_ID
from core.errors import SnapshotCollisionError, VaultStoreError, VaultUsageError
from core.logging_config import get_logger
from core.types import FileRecord, SnapshotInfo
from store.blob_store import BlobStore
from store.catalog import SnapshotCatalog

_LOGGER = get_logger(__name__)


class SnapshotRecorder:
    """Validates and publishes new snapshots."""

    def __init__(self, catalog: SnapshotCatalog, blob_store: BlobStore) -> None:
        self._catalog = catalog
        self._blob_store = blob_store

    def commit(self, snapshot_id: int, records: list[FileRecord]) -> SnapshotInfo:
        """Commit a new snapshot atomically.

        Args:
            snapshot_id: New identifier, strictly greater than existing ones.
            records: One record per scanned file.

        Returns:
            Summary of the committed snapshot.

        Raises:
            SnapshotCollisionError: If the identifier is not newer than
                every existing snapshot.
            VaultStoreError: If paths repeat or a referenced blob is missing.
        """
        self.check_identifier(snapshot_id)
        _check_unique_paths(records)
        self._check_blobs_present(records)
        self._catalog.publish(snapshot_id, records)
        _LOGGER.info("snapshot_committed", snapshot_id=snapshot_id, file_count=len(records))
        return SnapshotInfo(snapshot_id=snapshot_id, file_count=len(records))

    def check_identifier(self, snapshot_id: int) -> None:
        """Fail when an identifier is out of range or not newer than every snapshot.

        Raises:
            SnapshotCollisionError: If the identifier is not positive or not newer.
            VaultUsageError: If the identifier cannot be read as a timestamp.
        """
        if snapshot_id <= 0:
            raise SnapshotCollisionError(
                f"Snapshot identifier {snapshot_id} must be a positive integer."
            )
        if snapshot_id > MAX_SNAPSHOT_ID:
            raise VaultUsageError(
                f"Snapshot identifier {snapshot_id} is past {MAX_SNAPSHOT_ID}, the last "
                "epoch second that can be shown as a timestamp. Use a smaller --snapshot-id."
            )
        latest_id = self._catalog.latest_snapshot_id()
        if latest_id is not None and snapshot_id <= latest_id:
            raise SnapshotCollisionError(
                f"Snapshot identifier {snapshot_id} is not newer than latest snapshot "
                f"{latest_id}. Wait for the clock to advance and retry."
            )

    def _check_blobs_present(self, records: list[FileRecord]) -> None:
        missing = sorted(
            {
                record.blob_hash
                for record in records
                if not self._blob_store.exists(record.blob_hash)
            }
        )
        if missing:
            raise VaultStoreError(
                f"Refusing to commit snapshot with {len(missing)} dangling blob reference(s): "
                f"{', '.join(missing)}. Re-run the snapshot to store missing content."
            )


def _check_unique_paths(records: list[FileRecord]) -> None:
    seen_paths: set[str] = set()
    for record in records:
        if record.path in seen_paths:
            raise VaultStoreError(f"Duplicate path {record.path!r} in snapshot records.")
        seen_paths.add(record.path)
