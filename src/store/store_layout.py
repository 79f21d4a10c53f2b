"""Store directory layout, bootstrap, and location resolution.

A store root holds the sharded blob directory and one manifest per
snapshot. The source tree records the store location in a marker file.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from core.config import VaultConfig
from core.constants import (
    BLOBS_DIR_NAME,
    CHECKOUTS_DIR_NAME,
    RETIRED_DIR_NAME,
    SNAPSHOTS_DIR_NAME,
    STORE_MARKER_FILE_NAME,
    VACUUM_DIR_NAME,
)
from core.errors import StoreNotFoundError, VaultUsageError
from core.logging_config import get_logger

_LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class StoreLayout:
    """Resolved paths for one store root.

    Attributes:
        root: Absolute store root directory.
    """

    root: Path

    @property
    def blobs_dir(self) -> Path:
        return self.root / BLOBS_DIR_NAME

    @property
    def vacuum_dir(self) -> Path:
        return self.root / VACUUM_DIR_NAME

    @property
    def retired_dir(self) -> Path:
        return self.root / RETIRED_DIR_NAME

    @property
    def snapshots_dir(self) -> Path:
        return self.root / SNAPSHOTS_DIR_NAME

    @property
    def checkouts_dir(self) -> Path:
        return self.root / CHECKOUTS_DIR_NAME


def init_store(store_dir: Path, source_root: Path) -> StoreLayout:
    """Create store directories and record the location in the source tree.

    Args:
        store_dir: Store root to create.
        source_root: Source tree that will be snapshotted.

    Returns:
        Layout for the new store.

    Raises:
        VaultUsageError: If the source tree does not exist.
        StoreNotFoundError: If the store directories cannot be created.
    """
    if not source_root.is_dir():
        raise VaultUsageError(
            f"Source root {source_root} is not a directory. "
            "Create the source tree before initializing a store."
        )
    layout = StoreLayout(root=store_dir.expanduser().resolve())
    try:
        layout.blobs_dir.mkdir(parents=True, exist_ok=True)
        layout.snapshots_dir.mkdir(parents=True, exist_ok=True)
        write_store_marker(source_root, layout.root)
    except OSError as error:
        raise StoreNotFoundError(
            f"Failed to initialize store at {layout.root}: {error}. "
            "Check directory permissions and retry init."
        ) from error
    _LOGGER.info("store_initialized", store_root=str(layout.root), source_root=str(source_root))
    return layout


def write_store_marker(source_root: Path, store_root: Path) -> Path:
    """Write the store location marker into the source root."""
    marker_path = source_root / STORE_MARKER_FILE_NAME
    marker_path.write_text(f"{store_root}\n", encoding="utf-8")
    return marker_path


def read_store_marker(source_root: Path) -> Path | None:
    """Return the store location recorded in a source root, if any."""
    marker_path = source_root / STORE_MARKER_FILE_NAME
    if not marker_path.is_file():
        return None
    try:
        value = marker_path.read_text(encoding="utf-8").strip()
    except OSError as error:
        raise StoreNotFoundError(
            f"Failed to read store marker at {marker_path}: {error}. "
            "Re-run init to rewrite the marker."
        ) from error
    if not value:
        return None
    return Path(value).expanduser().resolve()


def resolve_store_layout(config: VaultConfig) -> StoreLayout:
    """Resolve and validate the store addressed by configuration.

    Resolution order is explicit store root, marker file in the source
    root, then the source root itself when it already is a store.

    Args:
        config: Runtime configuration.

    Returns:
        Layout of an existing store.

    Raises:
        StoreNotFoundError: If no usable store can be found.
    """
    candidate = config.store_root or read_store_marker(config.source_root)
    if candidate is None:
        candidate = config.source_root
    layout = StoreLayout(root=candidate)
    recover_interrupted_vacuum(layout)
    if not layout.blobs_dir.is_dir() or not layout.snapshots_dir.is_dir():
        raise StoreNotFoundError(
            f"No snapvault store found at {layout.root}. "
            "Run 'snapvault init <store_dir>' or pass --store."
        )
    return layout


def recover_interrupted_vacuum(layout: StoreLayout) -> bool:
    """Finish a vacuum swap that stopped after retiring the old blob directory.

    Args:
        layout: Store layout to inspect.

    Returns:
        Whether a pending swap was completed.
    """
    if layout.blobs_dir.exists() or not layout.vacuum_dir.is_dir():
        return False
    try:
        layout.vacuum_dir.rename(layout.blobs_dir)
    except OSError as error:
        raise StoreNotFoundError(
            f"Failed to complete interrupted vacuum at {layout.root}: {error}. "
            f"Rename {layout.vacuum_dir.name} to {layout.blobs_dir.name} manually."
        ) from error
    _LOGGER.warning("vacuum_swap_recovered", store_root=str(layout.root))
    return True
