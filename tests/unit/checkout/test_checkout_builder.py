"""Unit tests for hard-link checkouts."""

from __future__ import annotations

import os
import stat
from pathlib import Path

import pytest

from checkout.checkout_builder import checkout_snapshot, default_checkout_dir
from core.errors import SizeMismatchError, VaultStoreError, VaultUsageError
from core.hashing import hash_bytes
from ingest.snapshot_pipeline import create_snapshot
from store.blob_store import BlobStore
from tests.store_helpers import BASE_MTIME_NS, init_test_store, write_file


def _snapshot_tree(tmp_path: Path):
    source_root, layout = init_test_store(tmp_path)
    write_file(source_root / "a.txt", "alpha")
    script = write_file(source_root / "bin" / "run.sh", "#!/bin/sh\n")
    os.chmod(script, 0o755)
    create_snapshot(layout, source_root, hash_workers=1, snapshot_id=10)
    return source_root, layout


def test_checkout_recreates_tree_content(tmp_path: Path) -> None:
    """Checked-out files should match the snapshotted content."""
    _, layout = _snapshot_tree(tmp_path)

    result = checkout_snapshot(layout, 10, tmp_path / "out")

    assert (result.target_dir / "a.txt").read_bytes() == b"alpha" and (
        result.target_dir / "bin" / "run.sh"
    ).read_bytes() == b"#!/bin/sh\n"


def test_checkout_restores_mode_and_mtime(tmp_path: Path) -> None:
    """Recorded permission bits and mtime should be applied."""
    _, layout = _snapshot_tree(tmp_path)

    result = checkout_snapshot(layout, 10, tmp_path / "out")

    script_stat = (result.target_dir / "bin" / "run.sh").stat()
    assert stat.S_IMODE(script_stat.st_mode) == 0o755 and script_stat.st_mtime_ns == BASE_MTIME_NS


def test_checkout_files_are_hard_links_to_blobs(tmp_path: Path) -> None:
    """Checkouts should share inodes with the stored blobs."""
    _, layout = _snapshot_tree(tmp_path)

    result = checkout_snapshot(layout, 10, tmp_path / "out")

    blob_path = BlobStore(layout.blobs_dir).blob_path(hash_bytes(b"alpha"))
    assert os.path.samefile(result.target_dir / "a.txt", blob_path)


def test_checkout_defaults_to_store_checkouts_dir(tmp_path: Path) -> None:
    """Without a target the checkout should land inside the store."""
    _, layout = _snapshot_tree(tmp_path)

    result = checkout_snapshot(layout, 10)

    assert result.target_dir == default_checkout_dir(layout, 10) and result.file_count == 2


def test_checkout_refuses_existing_target(tmp_path: Path) -> None:
    """Checkouts must be built into a fresh directory."""
    _, layout = _snapshot_tree(tmp_path)
    (tmp_path / "out").mkdir()

    with pytest.raises(VaultUsageError):
        checkout_snapshot(layout, 10, tmp_path / "out")


def test_checkout_rejects_unknown_snapshot(tmp_path: Path) -> None:
    """Unknown snapshots should be reported as usage errors."""
    _, layout = _snapshot_tree(tmp_path)

    with pytest.raises(VaultUsageError):
        checkout_snapshot(layout, 99, tmp_path / "out")


def test_checkout_fails_on_missing_blob(tmp_path: Path) -> None:
    """A missing blob should fail the checkout."""
    _, layout = _snapshot_tree(tmp_path)
    BlobStore(layout.blobs_dir).blob_path(hash_bytes(b"alpha")).unlink()

    with pytest.raises(VaultStoreError):
        checkout_snapshot(layout, 10, tmp_path / "out")


def test_checkout_size_mismatch_leaves_partial_tree(tmp_path: Path) -> None:
    """A truncated blob should fail loudly and keep the partial checkout."""
    _, layout = _snapshot_tree(tmp_path)
    blob_path = BlobStore(layout.blobs_dir).blob_path(hash_bytes(b"alpha"))
    os.chmod(blob_path, 0o644)
    blob_path.write_bytes(b"al")

    with pytest.raises(SizeMismatchError):
        checkout_snapshot(layout, 10, tmp_path / "out")

    assert (tmp_path / "out" / "a.txt").exists()
