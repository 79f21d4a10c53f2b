"""Snapshot checkout as a hard-link tree.

Checked-out files are hard links to shared blobs. Restoring mtime and
permission bits on a checked-out file changes every link to the same
blob, including the copy inside the store, so checkouts are disposable
read-only artifacts.
"""

from __future__ import annotations

import os
from pathlib import Path

from core.errors import SizeMismatchError, VaultStoreError, VaultUsageError
from core.logging_config import get_logger
from core.types import CheckoutResult, FileRecord
from store.blob_store import BlobStore
from store.catalog import SnapshotCatalog
from store.store_layout import StoreLayout

_LOGGER = get_logger(__name__)


def default_checkout_dir(layout: StoreLayout, snapshot_id: int) -> Path:
    """Checkout location inside the store, on the same device as the blobs."""
    return layout.checkouts_dir / str(snapshot_id)


def checkout_snapshot(
    layout: StoreLayout,
    snapshot_id: int,
    target_dir: Path | None = None,
) -> CheckoutResult:
    """Materialize one snapshot as a fresh tree of hard links.

    Args:
        layout: Store layout holding the snapshot.
        snapshot_id: Snapshot to check out.
        target_dir: Fresh directory to build; defaults to
            ``<store>/checkouts/<snapshot_id>``.

    Returns:
        Checkout summary.

    Raises:
        VaultUsageError: If the snapshot is unknown or the target exists.
        VaultStoreError: If a blob is missing or cannot be linked.
        SizeMismatchError: If a blob's size disagrees with its record. The
            partial checkout is left in place for inspection.
    """
    records = SnapshotCatalog(layout.snapshots_dir).load_records(snapshot_id)
    target = (target_dir or default_checkout_dir(layout, snapshot_id)).expanduser().resolve()
    if target.exists():
        raise VaultUsageError(
            f"Checkout target {target} already exists. "
            "Remove it or choose another --target for a fresh checkout."
        )
    blob_store = BlobStore(layout.blobs_dir)
    try:
        target.mkdir(parents=True)
    except OSError as error:
        raise VaultStoreError(
            f"Failed to create checkout directory {target}: {error}."
        ) from error
    for record in records:
        _checkout_record(blob_store, target, record)
    _LOGGER.info(
        "checkout_completed",
        snapshot_id=snapshot_id,
        target_dir=str(target),
        file_count=len(records),
    )
    return CheckoutResult(snapshot_id=snapshot_id, target_dir=target, file_count=len(records))


def _checkout_record(blob_store: BlobStore, target: Path, record: FileRecord) -> None:
    """Link one blob into place, check its size, then restore metadata."""
    blob_path = blob_store.blob_path(record.blob_hash)
    destination = target / record.path
    if not blob_path.is_file():
        raise VaultStoreError(
            f"Blob {record.blob_hash} for {record.path!r} is missing from the store. "
            "Run verify and restore the store before checking out."
        )
    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        os.link(blob_path, destination)
        linked_size = destination.stat().st_size
    except OSError as error:
        raise VaultStoreError(
            f"Failed to link blob {record.blob_hash} to {destination}: {error}. "
            "Checkouts must live on the same filesystem as the store."
        ) from error
    if linked_size != record.size:
        raise SizeMismatchError(
            f"Blob {record.blob_hash} for {record.path!r} is {linked_size} bytes but the "
            f"snapshot records {record.size}. Partial checkout left at {target}; run verify."
        )
    try:
        os.utime(destination, ns=(record.mtime_ns, record.mtime_ns))
        os.chmod(destination, record.mode)
    except OSError as error:
        raise VaultStoreError(
            f"Failed to restore metadata on {destination}: {error}."
        ) from error
