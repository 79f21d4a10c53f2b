"""Shared JSONL serialization for FileRecord payloads.

This module centralizes FileRecord JSON serialization logic.
It is used by the snapshot catalog for manifest reads and writes.
"""

from __future__ import annotations

import json
from typing import Any, Iterable

from core.types import FileRecord


def file_record_to_payload(record: FileRecord) -> dict[str, object]:
    """Serialize FileRecord into JSON-safe payload.

    Args:
        record: File record instance.

    Returns:
        Dictionary payload for JSON encoding.
    """
    return {
        "path": record.path,
        "size": record.size,
        "mtime_ns": record.mtime_ns,
        "mode": record.mode,
        "hash": record.blob_hash,
    }


def file_record_from_payload(payload: dict[str, Any]) -> FileRecord:
    """Deserialize JSON payload into FileRecord.

    Args:
        payload: Serialized record payload.

    Returns:
        Parsed and validated FileRecord.

    Raises:
        KeyError: If a field is missing.
        ValueError: If a field has the wrong type.
    """
    return FileRecord(
        path=_require_str(payload["path"], "path"),
        size=_require_int(payload["size"], "size"),
        mtime_ns=_require_int(payload["mtime_ns"], "mtime_ns"),
        mode=_require_int(payload["mode"], "mode"),
        blob_hash=_require_str(payload["hash"], "hash"),
    )


def render_records_jsonl(records: Iterable[FileRecord]) -> str:
    """Render FileRecords as JSONL text, one record per line."""
    lines = [json.dumps(file_record_to_payload(record), sort_keys=True) for record in records]
    return "".join(f"{line}\n" for line in lines)


def parse_payload_line(line: str, line_number: int) -> dict[str, Any]:
    """Parse and validate one JSONL payload row.

    Args:
        line: Raw JSONL line.
        line_number: One-based line number.

    Returns:
        Parsed payload dictionary.

    Raises:
        ValueError: If JSON row is invalid.
    """
    try:
        payload = json.loads(line)
    except json.JSONDecodeError as error:
        raise ValueError(f"Invalid JSON at line {line_number}: {error.msg}") from error
    if not isinstance(payload, dict):
        raise ValueError(f"Invalid payload at line {line_number}: expected JSON object")
    return payload


def _require_str(value: object, field_name: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"Field '{field_name}' must be a string")
    return value


def _require_int(value: object, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"Field '{field_name}' must be an integer")
    return value
