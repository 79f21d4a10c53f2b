"""Core constants used across snapvault modules.

This module centralizes store layout names and hashing parameters.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

BLOBS_DIR_NAME = "blobs"
VACUUM_DIR_NAME = "blobs.vacuum"
RETIRED_DIR_NAME = "blobs.retired"
SNAPSHOTS_DIR_NAME = "snapshots"
CHECKOUTS_DIR_NAME = "checkouts"
MANIFEST_SUFFIX = ".jsonl"
STORE_MARKER_FILE_NAME = ".snapvault_store"
TEMP_FILE_PREFIX = ".tmp-"
HASH_ALGORITHM = "sha512"
HASH_HEX_LENGTH = 128
SHARD_PREFIX_LENGTH = 2
HASH_CHUNK_SIZE = 1024 * 1024
RESERVED_FIELD_DELIMITER = "|"
MAX_PERMISSION_BITS = 0o777
MAX_SNAPSHOT_ID = 253_402_300_799
BLOB_FILE_MODE = 0o444
SOURCE_ROOT_ENV = "SNAPVAULT_SOURCE_ROOT"
STORE_ROOT_ENV = "SNAPVAULT_STORE_ROOT"
HASH_WORKERS_ENV = "SNAPVAULT_HASH_WORKERS"
LOG_LEVEL_ENV = "SNAPVAULT_LOG_LEVEL"
DEFAULT_LOG_LEVEL = "info"
