"""snapvault exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each subsystem raises a specific error type for debuggability.
"""

from __future__ import annotations


class VaultError(Exception):
    """Base exception for all snapvault failures."""


class VaultConfigError(VaultError):
    """Raised for invalid runtime configuration."""


class VaultUsageError(VaultError):
    """Raised for malformed commands, arguments, or unknown snapshots."""


class InvalidFilenameError(VaultError):
    """Raised when a source path contains reserved characters."""


class VaultScanError(VaultError):
    """Raised when the source tree cannot be read."""


class StoreNotFoundError(VaultError):
    """Raised when the store is missing or unreadable."""


class VaultStoreError(VaultError):
    """Raised for blob store and snapshot consistency failures."""


class VaultCatalogError(VaultError):
    """Raised when a snapshot manifest cannot be read or written."""


class BlobWriteError(VaultStoreError):
    """Raised when blob content fails to land durably in the store."""


class SnapshotCollisionError(VaultStoreError):
    """Raised when a snapshot identifier is not newer than existing ones."""


class SizeMismatchError(VaultStoreError):
    """Raised when a checked-out blob disagrees with its recorded size."""


class HashMismatchError(VaultStoreError):
    """Raised when stored blobs no longer match their content address."""

    def __init__(self, hashes: tuple[str, ...]) -> None:
        self.hashes = hashes
        super().__init__(
            f"Store verification failed for {len(hashes)} blob(s): {', '.join(hashes)}. "
            "Restore the affected blobs from a backup and re-run verify."
        )
