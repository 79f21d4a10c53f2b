"""Field validators for file records and scanned paths.

These checks run at the scanner and FileRecord construction boundary
so that no malformed row can reach a snapshot manifest.
"""

from __future__ import annotations

import re

from core.constants import HASH_HEX_LENGTH, MAX_PERMISSION_BITS, RESERVED_FIELD_DELIMITER
from core.errors import InvalidFilenameError, VaultStoreError

_BLOB_HASH_PATTERN = re.compile(rf"[0-9a-f]{{{HASH_HEX_LENGTH}}}")
_RESERVED_CHARACTERS = (RESERVED_FIELD_DELIMITER, "\n")


def find_reserved_character(path: str) -> str | None:
    """Return the first reserved character found in a path, if any."""
    for character in _RESERVED_CHARACTERS:
        if character in path:
            return character
    return None


def validate_relative_path(path: str) -> None:
    """Validate a snapshot-relative POSIX path.

    Args:
        path: Candidate path.

    Raises:
        InvalidFilenameError: If the path is empty, escapes its root,
            or contains a reserved character.
    """
    if not path:
        raise InvalidFilenameError("File path must be non-empty.")
    reserved = find_reserved_character(path)
    if reserved is not None:
        raise InvalidFilenameError(
            f"File path {path!r} contains reserved character {reserved!r}. "
            "Rename the file before taking a snapshot."
        )
    if path.startswith("/"):
        raise InvalidFilenameError(f"File path {path!r} must be relative.")
    segments = path.split("/")
    if any(segment in ("", ".", "..") for segment in segments):
        raise InvalidFilenameError(
            f"File path {path!r} contains empty, '.' or '..' segments."
        )


def validate_blob_hash(blob_hash: str) -> None:
    """Validate a content address.

    Raises:
        VaultStoreError: If hash is not 128 lowercase hex characters.
    """
    if not isinstance(blob_hash, str) or not _BLOB_HASH_PATTERN.fullmatch(blob_hash):
        raise VaultStoreError(
            f"Invalid blob hash {blob_hash!r}: expected {HASH_HEX_LENGTH} lowercase hex characters."
        )


def is_blob_hash(candidate: str) -> bool:
    """Return whether a string is a well-formed content address."""
    return bool(_BLOB_HASH_PATTERN.fullmatch(candidate))


def validate_size(size: int) -> None:
    """Validate a byte size."""
    if size < 0:
        raise VaultStoreError(f"Invalid file size {size}: must be >= 0.")


def validate_mtime_ns(mtime_ns: int) -> None:
    """Validate a modification time in nanoseconds."""
    if mtime_ns <= 0:
        raise VaultStoreError(f"Invalid modification time {mtime_ns}: must be > 0.")


def validate_mode(mode: int) -> None:
    """Validate permission bits."""
    if not 0 <= mode <= MAX_PERMISSION_BITS:
        raise VaultStoreError(f"Invalid permission bits {oct(mode)}: must be within 0o0..0o777.")
