"""Core components for index lookups and segment window extraction."""
