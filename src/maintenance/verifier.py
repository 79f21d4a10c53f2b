"""Exhaustive blob integrity verification."""

from __future__ import annotations

from pathlib import Path

from core.constants import SHARD_PREFIX_LENGTH
from core.errors import HashMismatchError, VaultStoreError
from core.hashing import hash_file
from core.logging_config import get_logger
from core.types import VerificationReport
from core.validation import is_blob_hash
from store.blob_store import BlobStore
from store.catalog import SnapshotCatalog
from store.store_layout import StoreLayout

_LOGGER = get_logger(__name__)


def verify_store(layout: StoreLayout) -> VerificationReport:
    """Re-hash every stored blob and compare it with its name.

    Every blob is checked before the run reports, so one failure lists
    all corrupted blobs. Nothing is repaired.

    Args:
        layout: Store layout to verify.

    Returns:
        Counts of verified blobs and snapshots.

    Raises:
        HashMismatchError: If any blob content, name, or shard disagrees.
    """
    blob_count = 0
    mismatched: list[str] = []
    for blob_path in BlobStore(layout.blobs_dir).iter_blob_paths():
        blob_count += 1
        if not _blob_matches(blob_path):
            _LOGGER.error("blob_hash_mismatch", blob_hash=blob_path.name, path=str(blob_path))
            mismatched.append(blob_path.name)
    if mismatched:
        raise HashMismatchError(tuple(mismatched))
    report = VerificationReport(
        blob_count=blob_count,
        snapshot_count=len(SnapshotCatalog(layout.snapshots_dir).list_snapshot_ids()),
    )
    _LOGGER.info(
        "verify_completed",
        store_root=str(layout.root),
        blob_count=report.blob_count,
        snapshot_count=report.snapshot_count,
    )
    return report


def _blob_matches(blob_path: Path) -> bool:
    """Check one blob's name, shard placement, and content digest."""
    blob_name = blob_path.name
    if not is_blob_hash(blob_name) or not blob_path.is_file():
        return False
    if blob_path.parent.name != blob_name[:SHARD_PREFIX_LENGTH]:
        return False
    try:
        return hash_file(blob_path) == blob_name
    except OSError as error:
        raise VaultStoreError(
            f"Failed to read blob {blob_name} at {blob_path}: {error}. "
            "Check store permissions and re-run verify."
        ) from error
