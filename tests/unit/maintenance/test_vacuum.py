"""Unit tests for blob garbage collection."""

from __future__ import annotations

from pathlib import Path

import pytest

from core.errors import VaultStoreError
from core.hashing import hash_bytes
from ingest.snapshot_pipeline import create_snapshot
from maintenance.vacuum import vacuum_store
from store.blob_store import BlobStore
from tests.store_helpers import init_test_store, write_file


def test_vacuum_removes_unreferenced_blobs(tmp_path: Path) -> None:
    """Orphan blobs should be removed while live blobs stay."""
    source_root, layout = init_test_store(tmp_path)
    write_file(source_root / "a.txt", "alpha")
    create_snapshot(layout, source_root, hash_workers=1, snapshot_id=10)
    BlobStore(layout.blobs_dir).put(b"orphan", hash_bytes(b"orphan"))

    result = vacuum_store(layout)

    blob_store = BlobStore(layout.blobs_dir)
    assert (result.live_count, result.removed_count) == (1, 1) and not blob_store.exists(
        hash_bytes(b"orphan")
    )


def test_vacuum_keeps_blobs_of_older_snapshots(tmp_path: Path) -> None:
    """Content referenced only by an older snapshot must survive."""
    source_root, layout = init_test_store(tmp_path)
    write_file(source_root / "a.txt", "v1")
    create_snapshot(layout, source_root, hash_workers=1, snapshot_id=10)
    write_file(source_root / "a.txt", "v2", mtime_ns=1_800_000_000_000_000_000)
    create_snapshot(layout, source_root, hash_workers=1, snapshot_id=11)

    vacuum_store(layout)

    assert BlobStore(layout.blobs_dir).exists(hash_bytes(b"v1"))


def test_vacuum_is_idempotent(tmp_path: Path) -> None:
    """A second vacuum should find nothing left to remove."""
    source_root, layout = init_test_store(tmp_path)
    write_file(source_root / "a.txt", "alpha")
    create_snapshot(layout, source_root, hash_workers=1, snapshot_id=10)
    BlobStore(layout.blobs_dir).put(b"orphan", hash_bytes(b"orphan"))
    vacuum_store(layout)

    result = vacuum_store(layout)

    assert (result.live_count, result.removed_count) == (1, 0)


def test_vacuum_leaves_no_work_directories(tmp_path: Path) -> None:
    """Rebuild and retired directories should be gone after a vacuum."""
    source_root, layout = init_test_store(tmp_path)
    write_file(source_root / "a.txt", "alpha")
    create_snapshot(layout, source_root, hash_workers=1, snapshot_id=10)

    vacuum_store(layout)

    assert not layout.vacuum_dir.exists() and not layout.retired_dir.exists()


def test_vacuum_aborts_on_missing_live_blob(tmp_path: Path) -> None:
    """A dangling reference should abort without touching the store."""
    source_root, layout = init_test_store(tmp_path)
    write_file(source_root / "a.txt", "alpha")
    write_file(source_root / "b.txt", "beta")
    create_snapshot(layout, source_root, hash_workers=1, snapshot_id=10)
    BlobStore(layout.blobs_dir).blob_path(hash_bytes(b"alpha")).unlink()

    with pytest.raises(VaultStoreError):
        vacuum_store(layout)

    assert BlobStore(layout.blobs_dir).exists(hash_bytes(b"beta")) and not (
        layout.vacuum_dir.exists()
    )


def test_vacuum_discards_stale_rebuild_directory(tmp_path: Path) -> None:
    """Leftovers from a crashed vacuum should not leak into the new store."""
    source_root, layout = init_test_store(tmp_path)
    write_file(source_root / "a.txt", "alpha")
    create_snapshot(layout, source_root, hash_workers=1, snapshot_id=10)
    BlobStore(layout.vacuum_dir).put(b"stale", hash_bytes(b"stale"))

    vacuum_store(layout)

    assert list(BlobStore(layout.blobs_dir).iter_hashes()) == [hash_bytes(b"alpha")]
