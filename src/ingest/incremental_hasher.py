"""Incremental hash resolution against the latest snapshot.

A scanned file whose size and modification time both match the
latest snapshot's record for the same path reuses that record's hash
without reading content. Content changed with identical size and
mtime is therefore treated as unchanged.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Iterable

from core.errors import VaultScanError
from core.hashing import hash_file
from core.logging_config import get_logger
from core.types import FileRecord, HashResolution, StagingEntry

_LOGGER = get_logger(__name__)

HashFunction = Callable[[Path], str]


def select_entries_to_hash(
    entries: Iterable[StagingEntry],
    previous_records: Iterable[FileRecord],
) -> tuple[list[StagingEntry], dict[str, str]]:
    """Split staging entries into work and reusable hashes.

    Args:
        entries: Entries from the current scan.
        previous_records: Records of the latest snapshot, if any.

    Returns:
        Pair of entries needing hashing and reused hashes keyed by path.
    """
    previous_by_path = {record.path: record for record in previous_records}
    to_hash: list[StagingEntry] = []
    reused: dict[str, str] = {}
    for entry in entries:
        previous = previous_by_path.get(entry.path)
        if (
            previous is not None
            and previous.size == entry.size
            and previous.mtime_ns == entry.mtime_ns
        ):
            reused[entry.path] = previous.blob_hash
            continue
        to_hash.append(entry)
    return to_hash, reused


def resolve_hashes(
    entries: list[StagingEntry],
    previous_records: Iterable[FileRecord],
    max_workers: int,
    hash_function: HashFunction = hash_file,
) -> HashResolution:
    """Resolve a content hash for every staging entry.

    Args:
        entries: Entries from the current scan.
        previous_records: Records of the latest snapshot, if any.
        max_workers: Upper bound on concurrent hashing threads.
        hash_function: Callable hashing one file path.

    Returns:
        Hash mapping keyed by path plus rehashed/reused path lists.

    Raises:
        VaultScanError: If a file cannot be read for hashing.
    """
    to_hash, reused = select_entries_to_hash(entries, previous_records)
    computed = _hash_entries(to_hash, max_workers, hash_function)
    hashes = {**reused, **computed}
    _LOGGER.info(
        "hashes_resolved",
        file_count=len(entries),
        rehashed_count=len(computed),
        reused_count=len(reused),
    )
    return HashResolution(
        hashes=hashes,
        rehashed_paths=tuple(sorted(computed)),
        reused_paths=tuple(sorted(reused)),
    )


def _hash_entries(
    entries: list[StagingEntry],
    max_workers: int,
    hash_function: HashFunction,
) -> dict[str, str]:
    """Hash entries on a bounded thread pool and merge results by path."""
    if not entries:
        return {}
    worker_count = max(1, min(max_workers, len(entries)))
    with ThreadPoolExecutor(max_workers=worker_count) as executor:
        digests = executor.map(lambda entry: _hash_entry(entry, hash_function), entries)
        return {entry.path: digest for entry, digest in zip(entries, digests)}


def _hash_entry(entry: StagingEntry, hash_function: HashFunction) -> str:
    try:
        return hash_function(entry.source_path)
    except OSError as error:
        raise VaultScanError(
            f"Failed to hash {entry.source_path}: {error}. "
            "The file may have been removed during the snapshot; retry."
        ) from error
