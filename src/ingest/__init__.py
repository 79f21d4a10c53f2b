"""Source tree ingestion.

This package scans a source tree, resolves content hashes
incrementally, and drives the snapshot commit pipeline.
"""
