"""Path-level comparison of two snapshots."""

from __future__ import annotations

from core.errors import VaultUsageError
from core.types import SnapshotDiff
from store.catalog import SnapshotCatalog


def diff_snapshots(catalog: SnapshotCatalog, old_id: int, new_id: int) -> SnapshotDiff:
    """Compare the file records of two snapshots.

    Args:
        catalog: Catalog holding both snapshots.
        old_id: Older snapshot identifier.
        new_id: Newer snapshot identifier.

    Returns:
        Sorted added, removed, and modified paths.

    Raises:
        VaultUsageError: If ``new_id`` is not greater than ``old_id`` or
            either snapshot is unknown.
    """
    if new_id <= old_id:
        raise VaultUsageError(
            f"Cannot diff snapshot {old_id} against {new_id}: "
            "the second identifier must be the newer one."
        )
    old_hashes = {record.path: record.blob_hash for record in catalog.load_records(old_id)}
    new_hashes = {record.path: record.blob_hash for record in catalog.load_records(new_id)}
    shared_paths = old_hashes.keys() & new_hashes.keys()
    return SnapshotDiff(
        old_id=old_id,
        new_id=new_id,
        added=tuple(sorted(new_hashes.keys() - old_hashes.keys())),
        removed=tuple(sorted(old_hashes.keys() - new_hashes.keys())),
        modified=tuple(
            sorted(path for path in shared_paths if old_hashes[path] != new_hashes[path])
        ),
    )


def render_snapshot_diff(diff: SnapshotDiff) -> str:
    """Render a diff as ``A``/``D``/``M`` prefixed lines sorted by path."""
    rows = (
        [(path, "A") for path in diff.added]
        + [(path, "D") for path in diff.removed]
        + [(path, "M") for path in diff.modified]
    )
    return "\n".join(f"{marker} {path}" for path, marker in sorted(rows))
