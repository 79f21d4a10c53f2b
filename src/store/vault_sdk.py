"""Python SDK for store operations.

This module exposes high-level APIs for snapshotting, log inspection,
garbage collection, verification, checkout, and diff.
"""

from __future__ import annotations

import time
from dataclasses import replace
from pathlib import Path
from typing import Callable

from checkout.checkout_builder import checkout_snapshot
from checkout.snapshot_diff import diff_snapshots
from core.config import VaultConfig
from core.types import (
    CheckoutResult,
    SnapshotDiff,
    SnapshotInfo,
    SnapshotResult,
    VacuumResult,
    VerificationReport,
)
from ingest.snapshot_pipeline import create_snapshot
from maintenance.vacuum import vacuum_store
from maintenance.verifier import verify_store
from store.catalog import SnapshotCatalog
from store.store_layout import StoreLayout, init_store, resolve_store_layout


class VaultClient:
    """Primary SDK entry point for store workflows.

    The store is resolved from configuration on every call, so a client
    created before ``init`` works once the store exists.
    """

    def __init__(
        self,
        config: VaultConfig | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Create SDK client.

        Args:
            config: Optional runtime configuration.
            clock: Time source for default snapshot identifiers.
        """
        self._config = config or VaultConfig.from_env()
        self._clock = clock

    @property
    def config(self) -> VaultConfig:
        return self._config

    def init(self, store_dir: str | Path) -> StoreLayout:
        """Create a store and point the source tree at it.

        Args:
            store_dir: Store root directory to create.

        Returns:
            Layout of the new store.
        """
        return init_store(Path(store_dir), self._config.source_root)

    def layout(self) -> StoreLayout:
        """Resolve the configured store.

        Raises:
            StoreNotFoundError: If no store is configured or found.
        """
        return resolve_store_layout(self._config)

    def snapshot(self, snapshot_id: int | None = None) -> SnapshotResult:
        """Snapshot the source tree into the store.

        Args:
            snapshot_id: Optional explicit identifier.

        Returns:
            Snapshot summary counts.
        """
        return create_snapshot(
            self.layout(),
            self._config.source_root,
            self._config.hash_workers,
            snapshot_id=snapshot_id,
            clock=self._clock,
        )

    def list_snapshots(self) -> list[SnapshotInfo]:
        """List snapshots, most recent first."""
        return SnapshotCatalog(self.layout().snapshots_dir).list_snapshots()

    def vacuum(self) -> VacuumResult:
        """Garbage-collect blobs no snapshot references."""
        return vacuum_store(self.layout())

    def verify(self) -> VerificationReport:
        """Re-hash every blob in the store.

        Raises:
            HashMismatchError: If any blob is corrupted.
        """
        return verify_store(self.layout())

    def checkout(self, snapshot_id: int, target_dir: str | Path | None = None) -> CheckoutResult:
        """Materialize a snapshot as a hard-link tree.

        Args:
            snapshot_id: Snapshot to check out.
            target_dir: Optional fresh target directory.

        Returns:
            Checkout summary.
        """
        target = Path(target_dir) if target_dir is not None else None
        return checkout_snapshot(self.layout(), snapshot_id, target)

    def diff(self, old_id: int, new_id: int) -> SnapshotDiff:
        """Compare two snapshots by path and content hash."""
        return diff_snapshots(SnapshotCatalog(self.layout().snapshots_dir), old_id, new_id)

    def with_store_root(self, store_root: str) -> "VaultClient":
        """Clone the client with a different store root.

        Args:
            store_root: New store root path.

        Returns:
            New SDK client instance.
        """
        resolved_root = Path(store_root).expanduser().resolve()
        return VaultClient(replace(self._config, store_root=resolved_root), self._clock)
