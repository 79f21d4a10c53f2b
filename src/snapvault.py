"""Public SDK surface for snapvault.

This module provides a stable import path for library users.
It re-exports the client, configuration, and result models.
"""

from __future__ import annotations

from core.config import VaultConfig
from core.errors import (
    BlobWriteError,
    HashMismatchError,
    InvalidFilenameError,
    SizeMismatchError,
    SnapshotCollisionError,
    StoreNotFoundError,
    VaultError,
    VaultUsageError,
)
from core.types import (
    CheckoutResult,
    FileRecord,
    SnapshotDiff,
    SnapshotInfo,
    SnapshotResult,
    VacuumResult,
    VerificationReport,
)
from store.vault_sdk import VaultClient

__all__ = [
    "BlobWriteError",
    "CheckoutResult",
    "FileRecord",
    "HashMismatchError",
    "InvalidFilenameError",
    "SizeMismatchError",
    "SnapshotCollisionError",
    "SnapshotDiff",
    "SnapshotInfo",
    "SnapshotResult",
    "StoreNotFoundError",
    "VacuumResult",
    "VaultClient",
    "VaultConfig",
    "VaultError",
    "VaultUsageError",
    "VerificationReport",
]
