"""Unit tests for content-addressed blob storage."""

from __future__ import annotations

import os
import stat
from pathlib import Path

import pytest

from core.constants import BLOB_FILE_MODE
from core.errors import BlobWriteError, VaultStoreError
from core.hashing import hash_bytes
from store.blob_store import BlobStore
from tests.store_helpers import write_file


def test_put_writes_blob_under_shard_directory(tmp_path: Path) -> None:
    """Blobs should land at blobs/<hash[:2]>/<hash>."""
    blob_store = BlobStore(tmp_path / "blobs")
    blob_hash = hash_bytes(b"payload")

    blob_store.put(b"payload", blob_hash)

    assert (tmp_path / "blobs" / blob_hash[:2] / blob_hash).read_bytes() == b"payload"


def test_put_is_idempotent(tmp_path: Path) -> None:
    """A second put of the same content should report no new blob."""
    blob_store = BlobStore(tmp_path / "blobs")
    blob_hash = hash_bytes(b"payload")
    blob_store.put(b"payload", blob_hash)

    written = blob_store.put(b"payload", blob_hash)

    assert written is False


def test_put_rejects_content_that_does_not_match_hash(tmp_path: Path) -> None:
    """Mislabelled content should never be stored."""
    blob_store = BlobStore(tmp_path / "blobs")
    blob_hash = hash_bytes(b"expected")

    with pytest.raises(BlobWriteError):
        blob_store.put(b"actual", blob_hash)

    assert not blob_store.exists(blob_hash)


def test_stored_blobs_are_read_only(tmp_path: Path) -> None:
    """Blob files should be marked read-only once published."""
    blob_store = BlobStore(tmp_path / "blobs")
    blob_hash = hash_bytes(b"payload")

    blob_store.put(b"payload", blob_hash)

    assert stat.S_IMODE(blob_store.blob_path(blob_hash).stat().st_mode) == BLOB_FILE_MODE


def test_put_file_rejects_content_changed_since_hashing(tmp_path: Path) -> None:
    """A file edited after hashing should fail instead of storing a stale key."""
    blob_store = BlobStore(tmp_path / "blobs")
    source = write_file(tmp_path / "source.txt", "before")
    stale_hash = hash_bytes(b"before")
    write_file(source, "after!")

    with pytest.raises(BlobWriteError):
        blob_store.put_file(source, stale_hash)

    assert list(blob_store.iter_blob_paths()) == []


def test_failed_rename_leaves_no_partial_files(tmp_path: Path, monkeypatch) -> None:
    """A failing rename should clean up its temp file."""
    blob_store = BlobStore(tmp_path / "blobs")
    blob_hash = hash_bytes(b"payload")

    def _failing_replace(source: str, target: object) -> None:
        raise OSError("disk full")

    monkeypatch.setattr(os, "replace", _failing_replace)

    with pytest.raises(BlobWriteError):
        blob_store.put(b"payload", blob_hash)

    assert list(blob_store.blob_path(blob_hash).parent.iterdir()) == []


def test_iter_hashes_skips_temp_files(tmp_path: Path) -> None:
    """In-flight temp files should not be listed as blobs."""
    blob_store = BlobStore(tmp_path / "blobs")
    blob_hash = hash_bytes(b"payload")
    blob_store.put(b"payload", blob_hash)
    write_file(blob_store.blob_path(blob_hash).parent / ".tmp-abc", "partial")

    hashes = list(blob_store.iter_hashes())

    assert hashes == [blob_hash]


def test_blob_path_rejects_malformed_hash(tmp_path: Path) -> None:
    """Malformed hashes should never be turned into paths."""
    blob_store = BlobStore(tmp_path / "blobs")

    with pytest.raises(VaultStoreError):
        blob_store.blob_path("../escape")
