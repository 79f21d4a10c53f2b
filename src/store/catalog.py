"""Snapshot metadata catalog.

Each committed snapshot is one immutable manifest file,
``snapshots/<snapshot_id>.jsonl``, holding one FileRecord per line.
A manifest becomes visible only once it is complete on disk.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

from core.constants import MANIFEST_SUFFIX, TEMP_FILE_PREFIX
from core.errors import (
    InvalidFilenameError,
    SnapshotCollisionError,
    VaultCatalogError,
    VaultStoreError,
    VaultUsageError,
)
from core.types import FileRecord, SnapshotInfo
from store.blob_store import fsync_directory
from store.record_payload import (
    file_record_from_payload,
    parse_payload_line,
    render_records_jsonl,
)


class SnapshotCatalog:
    """Manifest-per-snapshot metadata catalog."""

    def __init__(self, snapshots_dir: Path) -> None:
        self._snapshots_dir = snapshots_dir

    def list_snapshot_ids(self) -> list[int]:
        """List committed snapshot identifiers in ascending order."""
        snapshot_ids: list[int] = []
        try:
            manifest_paths = list(self._snapshots_dir.iterdir())
        except OSError as error:
            raise VaultCatalogError(
                f"Failed to list snapshots in {self._snapshots_dir}: {error}. "
                "Check that the store is readable."
            ) from error
        for manifest_path in manifest_paths:
            if manifest_path.name.startswith(TEMP_FILE_PREFIX):
                continue
            if manifest_path.suffix != MANIFEST_SUFFIX or not manifest_path.stem.isdigit():
                continue
            snapshot_ids.append(int(manifest_path.stem))
        return sorted(snapshot_ids)

    def latest_snapshot_id(self) -> int | None:
        snapshot_ids = self.list_snapshot_ids()
        return snapshot_ids[-1] if snapshot_ids else None

    def has_snapshot(self, snapshot_id: int) -> bool:
        return self._manifest_path(snapshot_id).is_file()

    def load_records(self, snapshot_id: int) -> list[FileRecord]:
        """Load every FileRecord of one snapshot.

        Args:
            snapshot_id: Snapshot identifier.

        Returns:
            Records ordered by path.

        Raises:
            VaultUsageError: If the snapshot does not exist.
            VaultCatalogError: If the manifest is malformed.
        """
        manifest_path = self._manifest_path(snapshot_id)
        if not manifest_path.is_file():
            raise VaultUsageError(
                f"Snapshot {snapshot_id} not found in {self._snapshots_dir}. "
                "Use 'snapvault log' to list snapshot ids."
            )
        try:
            text = manifest_path.read_text(encoding="utf-8")
        except OSError as error:
            raise VaultCatalogError(
                f"Failed to read snapshot manifest {manifest_path}: {error}."
            ) from error
        records: list[FileRecord] = []
        for line_number, line in enumerate(text.splitlines(), 1):
            if not line.strip():
                continue
            records.append(_parse_record_line(manifest_path, line, line_number))
        return records

    def load_latest_records(self) -> list[FileRecord]:
        """Load records of the most recent snapshot, or nothing for a new store."""
        latest_id = self.latest_snapshot_id()
        if latest_id is None:
            return []
        return self.load_records(latest_id)

    def list_snapshots(self) -> list[SnapshotInfo]:
        """List snapshot summaries, most recent first."""
        return [
            SnapshotInfo(snapshot_id=snapshot_id, file_count=len(self.load_records(snapshot_id)))
            for snapshot_id in reversed(self.list_snapshot_ids())
        ]

    def live_hashes(self) -> set[str]:
        """Union of blob hashes referenced by any snapshot."""
        hashes: set[str] = set()
        for snapshot_id in self.list_snapshot_ids():
            hashes.update(record.blob_hash for record in self.load_records(snapshot_id))
        return hashes

    def publish(self, snapshot_id: int, records: list[FileRecord]) -> Path:
        """Atomically publish a complete manifest.

        The manifest is written and flushed under a temp name, then
        hard-linked to its final name. Linking fails when the name is
        taken, so an existing snapshot is never overwritten.

        Args:
            snapshot_id: New snapshot identifier.
            records: Records to persist.

        Returns:
            Path of the published manifest.

        Raises:
            SnapshotCollisionError: If the identifier already exists.
            VaultCatalogError: If the manifest cannot be written.
        """
        manifest_path = self._manifest_path(snapshot_id)
        payload = render_records_jsonl(sorted(records, key=lambda record: record.path))
        temp_path: str | None = None
        try:
            fd, temp_path = tempfile.mkstemp(
                dir=str(self._snapshots_dir), prefix=TEMP_FILE_PREFIX
            )
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
                handle.flush()
                os.fsync(handle.fileno())
            os.link(temp_path, manifest_path)
            fsync_directory(self._snapshots_dir)
        except FileExistsError as error:
            raise SnapshotCollisionError(
                f"Snapshot {snapshot_id} already exists at {manifest_path}. "
                "Snapshots are immutable; retry with a newer identifier."
            ) from error
        except OSError as error:
            raise VaultCatalogError(
                f"Failed to publish snapshot manifest {manifest_path}: {error}. "
                "No snapshot was committed; retry after fixing the store."
            ) from error
        finally:
            if temp_path is not None and os.path.exists(temp_path):
                os.unlink(temp_path)
        return manifest_path

    def _manifest_path(self, snapshot_id: int) -> Path:
        return self._snapshots_dir / f"{snapshot_id}{MANIFEST_SUFFIX}"


def _parse_record_line(manifest_path: Path, line: str, line_number: int) -> FileRecord:
    """Parse one manifest row into a validated FileRecord."""
    try:
        payload = parse_payload_line(line, line_number)
        return file_record_from_payload(payload)
    except (KeyError, ValueError, InvalidFilenameError, VaultStoreError) as error:
        raise VaultCatalogError(
            f"Invalid record in snapshot manifest {manifest_path}:{line_number}: {error}. "
            "The manifest is corrupted; restore it from a backup."
        ) from error
