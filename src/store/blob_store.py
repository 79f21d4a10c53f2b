"""Content-addressed blob storage.

Blobs live at ``blobs/<hash[:2]>/<hash>``. Each blob is written once
through a temp file in its shard and renamed into place, so readers
never observe partial content.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import BinaryIO, Callable, Iterator

from core.constants import (
    BLOB_FILE_MODE,
    HASH_CHUNK_SIZE,
    SHARD_PREFIX_LENGTH,
    TEMP_FILE_PREFIX,
)
from core.errors import BlobWriteError, VaultStoreError
from core.hashing import hash_bytes, new_hasher
from core.logging_config import get_logger
from core.validation import validate_blob_hash

_LOGGER = get_logger(__name__)


class BlobStore:
    """Sharded write-once blob directory."""

    def __init__(self, blobs_dir: Path) -> None:
        self._blobs_dir = blobs_dir

    @property
    def blobs_dir(self) -> Path:
        return self._blobs_dir

    def blob_path(self, blob_hash: str) -> Path:
        """Return the storage path derived from a content hash.

        Raises:
            VaultStoreError: If the hash is malformed.
        """
        validate_blob_hash(blob_hash)
        return self._blobs_dir / blob_hash[:SHARD_PREFIX_LENGTH] / blob_hash

    def exists(self, blob_hash: str) -> bool:
        return self.blob_path(blob_hash).is_file()

    def get(self, blob_hash: str) -> bytes:
        """Read full blob content.

        Raises:
            VaultStoreError: If the blob is missing or unreadable.
        """
        blob_path = self.blob_path(blob_hash)
        try:
            return blob_path.read_bytes()
        except OSError as error:
            raise VaultStoreError(
                f"Failed to read blob {blob_hash} at {blob_path}: {error}. "
                "Run verify to check store integrity."
            ) from error

    def open(self, blob_hash: str) -> BinaryIO:
        """Open a blob for streaming reads."""
        blob_path = self.blob_path(blob_hash)
        try:
            return blob_path.open("rb")
        except OSError as error:
            raise VaultStoreError(
                f"Failed to open blob {blob_hash} at {blob_path}: {error}. "
                "Run verify to check store integrity."
            ) from error

    def put(self, data: bytes, blob_hash: str) -> bool:
        """Store bytes under their content hash.

        Args:
            data: Blob content.
            blob_hash: Expected hash of ``data``.

        Returns:
            True when a new blob was written, False when it already existed.

        Raises:
            BlobWriteError: If content does not match the hash or the write fails.
        """
        if self.exists(blob_hash):
            return False
        actual_hash = hash_bytes(data)
        if actual_hash != blob_hash:
            raise BlobWriteError(
                f"Refusing to store blob {blob_hash}: content hashes to {actual_hash}."
            )
        self._write_atomic(blob_hash, lambda handle: _copy_bytes(data, handle))
        return True

    def put_file(self, source_path: Path, blob_hash: str) -> bool:
        """Store a file's content under its content hash.

        The file is re-hashed while it is copied, so content that changed
        after hashing is rejected instead of being stored under a stale key.

        Args:
            source_path: File to copy into the store.
            blob_hash: Expected hash of the file content.

        Returns:
            True when a new blob was written, False when it already existed.

        Raises:
            BlobWriteError: If the copy fails or the content changed.
        """
        if self.exists(blob_hash):
            return False
        self._write_atomic(blob_hash, lambda handle: _copy_file(source_path, handle))
        return True

    def iter_blob_paths(self) -> Iterator[Path]:
        """Yield every stored blob file, skipping in-flight temp files."""
        if not self._blobs_dir.is_dir():
            return
        for shard_dir in sorted(self._blobs_dir.iterdir()):
            if not shard_dir.is_dir():
                continue
            for blob_path in sorted(shard_dir.iterdir()):
                if blob_path.name.startswith(TEMP_FILE_PREFIX):
                    continue
                yield blob_path

    def iter_hashes(self) -> Iterator[str]:
        """Yield the name of every stored blob."""
        for blob_path in self.iter_blob_paths():
            yield blob_path.name

    def _write_atomic(self, blob_hash: str, writer: Callable[[BinaryIO], str]) -> None:
        """Write a blob through a temp file and rename it into place.

        Args:
            blob_hash: Target content hash.
            writer: Callable streaming content into a binary handle and
                returning the digest of what it wrote.

        Raises:
            BlobWriteError: If any step fails or the digest differs.
        """
        blob_path = self.blob_path(blob_hash)
        shard_dir = blob_path.parent
        temp_path: str | None = None
        try:
            shard_dir.mkdir(parents=True, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(dir=str(shard_dir), prefix=TEMP_FILE_PREFIX)
            with os.fdopen(fd, "wb") as handle:
                written_hash = writer(handle)
                handle.flush()
                os.fsync(handle.fileno())
            if written_hash != blob_hash:
                raise BlobWriteError(
                    f"Content for blob {blob_hash} changed while it was copied "
                    f"(now hashes to {written_hash}). Re-run the snapshot."
                )
            os.chmod(temp_path, BLOB_FILE_MODE)
            os.replace(temp_path, blob_path)
            temp_path = None
            fsync_directory(shard_dir)
        except OSError as error:
            raise BlobWriteError(
                f"Failed to write blob {blob_hash} to {blob_path}: {error}. "
                "Check free space and store permissions, then retry."
            ) from error
        finally:
            if temp_path is not None and os.path.exists(temp_path):
                os.unlink(temp_path)
        _LOGGER.debug("blob_written", blob_hash=blob_hash)


def _copy_bytes(data: bytes, handle: BinaryIO) -> str:
    handle.write(data)
    return hash_bytes(data)


def _copy_file(source_path: Path, handle: BinaryIO) -> str:
    """Stream a source file into a handle, hashing as it goes."""
    hasher = new_hasher()
    with source_path.open("rb") as source:
        for chunk in iter(lambda: source.read(HASH_CHUNK_SIZE), b""):
            hasher.update(chunk)
            handle.write(chunk)
    return hasher.hexdigest()


def fsync_directory(directory: Path) -> None:
    """Flush directory entries so a completed rename survives a crash."""
    fd = os.open(str(directory), os.O_RDONLY)
    try:
        os.fsync(fd)
    finally:
        os.close(fd)
