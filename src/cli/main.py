"""snapvault CLI entry points.
This module exposes snapshot, maintenance, and checkout commands.
It maps argparse commands onto SDK calls.
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any, NoReturn, Sequence

from checkout.snapshot_diff import render_snapshot_diff
from core.config import VaultConfig, parse_hash_workers
from core.errors import HashMismatchError, VaultError, VaultUsageError
from store.vault_sdk import VaultClient


class _VaultArgumentParser(argparse.ArgumentParser):
    """Argument parser that reports usage errors as VaultUsageError."""

    def error(self, message: str) -> NoReturn:
        raise VaultUsageError(f"{self.prog}: {message}")


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = _VaultArgumentParser(
        prog="snapvault",
        description="Content-addressed snapshots of a source tree",
    )
    parser.add_argument("--source", help="Override SNAPVAULT_SOURCE_ROOT for this command")
    parser.add_argument("--store", help="Override SNAPVAULT_STORE_ROOT for this command")
    parser.add_argument("--hash-workers", help="Override SNAPVAULT_HASH_WORKERS for this command")
    subparsers = parser.add_subparsers(
        dest="command", required=True, parser_class=_VaultArgumentParser
    )
    _add_init_command(subparsers)
    _add_snapshot_command(subparsers)
    subparsers.add_parser("vacuum", help="Remove blobs no snapshot references")
    subparsers.add_parser("verify", help="Re-hash every stored blob")
    subparsers.add_parser("log", help="List snapshots, most recent first")
    _add_checkout_command(subparsers)
    _add_diff_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the snapvault CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code: 0 on success, 1 on any failure.
    """
    try:
        args = build_parser().parse_args(argv)
        client = _build_client(args)
        return _dispatch(client, args)
    except HashMismatchError as error:
        for blob_hash in error.hashes:
            print(f"corrupt {blob_hash}")
        print(f"error: {error}", file=sys.stderr)
        return 1
    except VaultError as error:
        print(f"error: {error}", file=sys.stderr)
        return 1


def _dispatch(client: VaultClient, args: argparse.Namespace) -> int:
    if args.command == "init":
        return _run_init_command(client, args)
    if args.command == "snapshot":
        return _run_snapshot_command(client, args)
    if args.command == "vacuum":
        return _run_vacuum_command(client)
    if args.command == "verify":
        return _run_verify_command(client)
    if args.command == "log":
        return _run_log_command(client)
    if args.command == "checkout":
        return _run_checkout_command(client, args)
    if args.command == "diff":
        return _run_diff_command(client, args)
    raise VaultUsageError(f"Unsupported command: {args.command}")


def _build_client(args: argparse.Namespace) -> VaultClient:
    """Build SDK client with optional flag overrides.

    Args:
        args: Parsed CLI args.

    Returns:
        Configured SDK client.
    """
    config = VaultConfig.from_env()
    if args.source:
        config = replace(config, source_root=Path(args.source).expanduser().resolve())
    if args.store:
        config = replace(config, store_root=Path(args.store).expanduser().resolve())
    if args.hash_workers:
        config = replace(config, hash_workers=parse_hash_workers(args.hash_workers))
    return VaultClient(config)


def _run_init_command(client: VaultClient, args: argparse.Namespace) -> int:
    layout = client.init(args.store_dir)
    print(layout.root)
    return 0


def _run_snapshot_command(client: VaultClient, args: argparse.Namespace) -> int:
    result = client.snapshot(args.snapshot_id)
    print(result.snapshot_id)
    return 0


def _run_vacuum_command(client: VaultClient) -> int:
    result = client.vacuum()
    print(f"live={result.live_count}")
    print(f"removed={result.removed_count}")
    return 0


def _run_verify_command(client: VaultClient) -> int:
    report = client.verify()
    print(f"blobs={report.blob_count}")
    print(f"snapshots={report.snapshot_count}")
    return 0


def _run_log_command(client: VaultClient) -> int:
    """Handle log command.

    Args:
        client: SDK client.

    Returns:
        Exit code.
    """
    for snapshot in client.list_snapshots():
        print(
            f"{snapshot.snapshot_id}\t"
            f"{snapshot.created_at.isoformat()}\t"
            f"{snapshot.file_count}"
        )
    return 0


def _run_checkout_command(client: VaultClient, args: argparse.Namespace) -> int:
    result = client.checkout(args.snapshot_id, args.target)
    print(result.target_dir)
    return 0


def _run_diff_command(client: VaultClient, args: argparse.Namespace) -> int:
    diff = client.diff(args.old_id, args.new_id)
    rendered = render_snapshot_diff(diff)
    if rendered:
        print(rendered)
    return 0


def _add_init_command(subparsers: Any) -> None:
    """Register init subcommand."""
    parser = subparsers.add_parser("init", help="Create a store for the source tree")
    parser.add_argument("store_dir", help="Store root directory to create")


def _add_snapshot_command(subparsers: Any) -> None:
    """Register snapshot subcommand."""
    parser = subparsers.add_parser("snapshot", help="Snapshot the source tree")
    parser.add_argument(
        "--snapshot-id",
        type=int,
        help="Explicit snapshot identifier (default: current epoch second)",
    )


def _add_checkout_command(subparsers: Any) -> None:
    """Register checkout subcommand."""
    parser = subparsers.add_parser("checkout", help="Materialize a snapshot as hard links")
    parser.add_argument("snapshot_id", type=int, help="Snapshot identifier")
    parser.add_argument(
        "--target",
        help="Fresh target directory (default: <store>/checkouts/<snapshot_id>)",
    )


def _add_diff_command(subparsers: Any) -> None:
    """Register diff subcommand."""
    parser = subparsers.add_parser("diff", help="Compare two snapshots")
    parser.add_argument("old_id", type=int, help="Older snapshot identifier")
    parser.add_argument("new_id", type=int, help="Newer snapshot identifier")
