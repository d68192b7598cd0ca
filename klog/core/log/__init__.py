"""
Segment file naming and byte-window extraction.
"""

from klog.core.log.naming import (
    INDEX_FILE_SUFFIX,
    SEGMENT_FILE_SUFFIX,
    base_offset_from_path,
    index_path_for,
    parse_partition_dir,
    segment_file_name,
    segment_path_for,
)
from klog.core.log.window import Window, extract_window

__all__ = [
    "INDEX_FILE_SUFFIX",
    "SEGMENT_FILE_SUFFIX",
    "base_offset_from_path",
    "index_path_for",
    "parse_partition_dir",
    "segment_file_name",
    "segment_path_for",
    "Window",
    "extract_window",
]
