"""Unit tests for core config parsing."""

from __future__ import annotations

import os

import pytest

from core.config import VaultConfig, parse_hash_workers
from core.errors import VaultConfigError


def test_from_env_reads_source_root(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should resolve source root from environment."""
    monkeypatch.setenv("SNAPVAULT_SOURCE_ROOT", "./.tmp-source")

    config = VaultConfig.from_env()

    assert config.source_root.name == ".tmp-source"


def test_from_env_leaves_store_root_unset(monkeypatch: pytest.MonkeyPatch) -> None:
    """Store root should stay unresolved when no override is given."""
    monkeypatch.delenv("SNAPVAULT_STORE_ROOT", raising=False)

    config = VaultConfig.from_env()

    assert config.store_root is None


def test_from_env_raises_for_invalid_hash_workers(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should fail for non-numeric worker counts."""
    monkeypatch.setenv("SNAPVAULT_HASH_WORKERS", "many")

    with pytest.raises(VaultConfigError):
        VaultConfig.from_env()

    assert os.getenv("SNAPVAULT_HASH_WORKERS") == "many"


def test_parse_hash_workers_rejects_zero() -> None:
    """Worker count must be positive."""
    with pytest.raises(VaultConfigError):
        parse_hash_workers("0")


def test_parse_hash_workers_defaults_to_cpu_count() -> None:
    """Missing worker count should default to at least one worker."""
    workers = parse_hash_workers(None)

    assert workers >= 1
