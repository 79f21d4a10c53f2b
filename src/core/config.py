"""Runtime configuration model for snapvault.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path

from core.constants import HASH_WORKERS_ENV, SOURCE_ROOT_ENV, STORE_ROOT_ENV
from core.errors import VaultConfigError


@dataclass(frozen=True)
class VaultConfig:
    """Validated runtime configuration.

    Attributes:
        source_root: Source tree that snapshots are taken from.
        store_root: Explicit store root; resolved from the marker when None.
        hash_workers: Upper bound on concurrent hashing threads.
    """

    source_root: Path
    store_root: Path | None
    hash_workers: int

    @classmethod
    def from_env(cls) -> "VaultConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            VaultConfigError: If environment values are invalid.
        """
        source_root_value = os.getenv(SOURCE_ROOT_ENV, ".")
        store_root_value = os.getenv(STORE_ROOT_ENV)
        hash_workers_value = os.getenv(HASH_WORKERS_ENV)
        return cls(
            source_root=Path(source_root_value).expanduser().resolve(),
            store_root=Path(store_root_value).expanduser().resolve()
            if store_root_value
            else None,
            hash_workers=parse_hash_workers(hash_workers_value),
        )


def parse_hash_workers(raw_value: str | None) -> int:
    """Parse the hashing worker count.

    Args:
        raw_value: Raw string from environment or CLI, or None for default.

    Returns:
        Positive worker count, defaulting to available CPUs.

    Raises:
        VaultConfigError: If value is not a positive integer.
    """
    if raw_value is None:
        return os.cpu_count() or 1
    try:
        workers = int(raw_value)
    except ValueError as error:
        raise VaultConfigError(
            f"Invalid {HASH_WORKERS_ENV} value: "
            f"expected integer, got '{raw_value}'. "
            f"Set {HASH_WORKERS_ENV} to a positive number."
        ) from error
    if workers < 1:
        raise VaultConfigError(
            f"Invalid {HASH_WORKERS_ENV} value: {workers} is not positive. "
            f"Set {HASH_WORKERS_ENV} to 1 or more."
        )
    return workers
