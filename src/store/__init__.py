"""Storage and versioning layer.

This package persists content-addressed blobs and immutable snapshot
manifests, and owns the store layout and commit protocol.
"""
