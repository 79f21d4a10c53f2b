"""Content hashing helpers.

Blob identity is the SHA-512 digest of the raw bytes, rendered
as lowercase hex. Files are hashed in fixed-size chunks.
"""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Any

from core.constants import HASH_ALGORITHM, HASH_CHUNK_SIZE


def new_hasher() -> Any:
    """Create an empty digest object for the configured algorithm."""
    return hashlib.new(HASH_ALGORITHM)


def hash_bytes(data: bytes) -> str:
    """Hash an in-memory payload.

    Args:
        data: Raw bytes.

    Returns:
        Hex digest string.
    """
    hasher = new_hasher()
    hasher.update(data)
    return hasher.hexdigest()


def hash_file(file_path: Path) -> str:
    """Hash file content by streaming it from disk.

    Args:
        file_path: File to read.

    Returns:
        Hex digest string.

    Raises:
        OSError: If the file cannot be read.
    """
    hasher = new_hasher()
    with file_path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(HASH_CHUNK_SIZE), b""):
            hasher.update(chunk)
    return hasher.hexdigest()
