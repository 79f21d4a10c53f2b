"""Store maintenance operations.

This package garbage-collects unreferenced blobs and verifies
that every stored blob still matches its content address.
"""
