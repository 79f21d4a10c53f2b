"""Unit tests for the store SDK client."""

from __future__ import annotations

from pathlib import Path

from core.config import VaultConfig
from store.vault_sdk import VaultClient
from tests.store_helpers import write_file


def test_client_snapshot_uses_clock_for_default_identifier(tmp_path: Path) -> None:
    """Snapshots without an explicit id should use the client clock."""
    source_root = tmp_path / "source"
    write_file(source_root / "a.txt", "alpha")
    config = VaultConfig(source_root=source_root, store_root=None, hash_workers=1)
    client = VaultClient(config, clock=lambda: 5000.5)
    client.init(tmp_path / "store")

    result = client.snapshot()

    assert result.snapshot_id == 5000


def test_with_store_root_targets_other_store(tmp_path: Path) -> None:
    """Cloned clients should resolve the overridden store."""
    source_root = tmp_path / "source"
    source_root.mkdir()
    client = VaultClient(VaultConfig(source_root=source_root, store_root=None, hash_workers=1))
    client.init(tmp_path / "first")
    other = client.init(tmp_path / "second")

    cloned = client.with_store_root(str(tmp_path / "first"))

    assert cloned.layout().root == (tmp_path / "first").resolve() and other.root != (
        cloned.layout().root
    )
