"""
klog - offset lookups in Kafka-style segmented logs.

Finds the byte window of a log segment that holds a given record offset by
scanning the segment's sparse offset index, and hands that window to an
external dump tool for decoding:
- Streaming reader for the 8-byte big-endian index format
- Linear and binary bracket search
- Exact byte-window extraction from segments
- Topic/partition discovery under a broker data root
"""

__version__ = "0.1.0"

from klog.core.errors import KlogError
from klog.core.lookup import LookupConfig, lookup_window, lookup_windows

__all__ = [
    "KlogError",
    "LookupConfig",
    "lookup_window",
    "lookup_windows",
]
