"""Snapshot reconstruction and comparison.

This package materializes snapshots as hard-link trees and
computes path-level differences between two snapshots.
"""
