"""Mark-and-sweep garbage collection for the blob store.

Live blobs are hard-linked into a fresh directory, which then replaces
the old blob directory. The replace is the only irrevocable step and
runs last. Snapshot commits must not run concurrently with a vacuum.
"""

from __future__ import annotations

import os
import shutil

from core.errors import VaultStoreError
from core.logging_config import get_logger
from core.types import VacuumResult
from store.blob_store import BlobStore
from store.catalog import SnapshotCatalog
from store.store_layout import StoreLayout, recover_interrupted_vacuum

_LOGGER = get_logger(__name__)


def vacuum_store(layout: StoreLayout) -> VacuumResult:
    """Remove every blob no snapshot references.

    Args:
        layout: Store layout to collect.

    Returns:
        Live and removed blob counts.

    Raises:
        VaultStoreError: If a referenced blob is missing or the rebuild fails.
            The original blob directory is untouched in that case.
    """
    recover_interrupted_vacuum(layout)
    _discard_stale_directories(layout)
    live_hashes = catalog_live_hashes(layout)
    current_store = BlobStore(layout.blobs_dir)
    stored_hashes = set(current_store.iter_hashes())
    _build_live_store(current_store, BlobStore(layout.vacuum_dir), live_hashes)
    _swap_blob_directories(layout)
    result = VacuumResult(
        live_count=len(live_hashes),
        removed_count=len(stored_hashes - live_hashes),
    )
    _LOGGER.info(
        "vacuum_completed",
        store_root=str(layout.root),
        live_count=result.live_count,
        removed_count=result.removed_count,
    )
    return result


def catalog_live_hashes(layout: StoreLayout) -> set[str]:
    """Mark phase: hashes referenced by any snapshot in the store."""
    return SnapshotCatalog(layout.snapshots_dir).live_hashes()


def _discard_stale_directories(layout: StoreLayout) -> None:
    """Drop directories left by a vacuum that died before or after its swap."""
    for stale_dir in (layout.vacuum_dir, layout.retired_dir):
        if stale_dir.exists():
            _LOGGER.warning("vacuum_stale_directory_removed", path=str(stale_dir))
            shutil.rmtree(stale_dir)


def _build_live_store(
    current_store: BlobStore,
    rebuilt_store: BlobStore,
    live_hashes: set[str],
) -> None:
    """Hard-link every live blob into the rebuild directory."""
    missing = sorted(blob_hash for blob_hash in live_hashes if not current_store.exists(blob_hash))
    if missing:
        raise VaultStoreError(
            f"Vacuum aborted: {len(missing)} referenced blob(s) are missing from the store: "
            f"{', '.join(missing)}. Snapshot history was left untouched; restore the "
            "missing blobs before running vacuum."
        )
    try:
        rebuilt_store.blobs_dir.mkdir(parents=True)
        for blob_hash in sorted(live_hashes):
            target_path = rebuilt_store.blob_path(blob_hash)
            target_path.parent.mkdir(exist_ok=True)
            os.link(current_store.blob_path(blob_hash), target_path)
    except OSError as error:
        shutil.rmtree(rebuilt_store.blobs_dir, ignore_errors=True)
        raise VaultStoreError(
            f"Vacuum aborted while linking live blobs into {rebuilt_store.blobs_dir}: {error}. "
            "The original store is unchanged."
        ) from error


def _swap_blob_directories(layout: StoreLayout) -> None:
    """Replace the blob directory with the rebuilt one.

    The old directory is renamed aside before the rebuild takes its name,
    so a crash at any point leaves one complete blob directory. A crash
    between the two renames is completed on the next store open.
    """
    try:
        layout.blobs_dir.rename(layout.retired_dir)
        layout.vacuum_dir.rename(layout.blobs_dir)
    except OSError as error:
        raise VaultStoreError(
            f"Vacuum failed while swapping {layout.vacuum_dir} into {layout.blobs_dir}: "
            f"{error}. Re-open the store to finish the swap, then re-run vacuum."
        ) from error
    shutil.rmtree(layout.retired_dir)
