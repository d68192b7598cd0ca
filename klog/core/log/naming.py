"""
Naming conventions for segment files, index files and partition directories.

A segment and its index share a base name, the segment's starting offset
zero-padded to 20 digits, and differ only in suffix:

    topic1-0/00000000000000012345.log
    topic1-0/00000000000000012345.index
"""

from pathlib import Path
from typing import Tuple, Union

from klog.core.errors import InvalidPathError

SEGMENT_FILE_SUFFIX = ".log"
INDEX_FILE_SUFFIX = ".index"
OFFSET_PADDING = 20

PathLike = Union[str, Path]


def _swap_suffix(path: PathLike, from_suffix: str, to_suffix: str) -> Path:
    path = Path(path)
    if path.suffix != from_suffix or path.stem == "":
        raise InvalidPathError(f"Expected a {from_suffix} file, got {str(path)!r}")
    return path.with_suffix(to_suffix)


def segment_path_for(index_path: PathLike) -> Path:
    """
    Get the data segment paired with an index file.

    Args:
        index_path: Path ending in .index

    Returns:
        Sibling path ending in .log

    Raises:
        InvalidPathError: If the path has no .index suffix
    """
    return _swap_suffix(index_path, INDEX_FILE_SUFFIX, SEGMENT_FILE_SUFFIX)


def index_path_for(segment_path: PathLike) -> Path:
    """
    Get the index file paired with a data segment.

    Args:
        segment_path: Path ending in .log

    Returns:
        Sibling path ending in .index

    Raises:
        InvalidPathError: If the path has no .log suffix
    """
    return _swap_suffix(segment_path, SEGMENT_FILE_SUFFIX, INDEX_FILE_SUFFIX)


def segment_file_name(base_offset: int, suffix: str = SEGMENT_FILE_SUFFIX) -> str:
    """
    Build the file name for a segment or index.

    Args:
        base_offset: First offset stored in the segment
        suffix: File suffix (.log or .index)

    Returns:
        File name such as 00000000000000012345.log
    """
    if base_offset < 0:
        raise ValueError(f"Base offset must be non-negative, got {base_offset}")
    return f"{str(base_offset).zfill(OFFSET_PADDING)}{suffix}"


def base_offset_from_path(path: PathLike) -> int:
    """
    Parse the base offset out of a segment or index file name.

    Raises:
        InvalidPathError: If the base name is not a decimal offset
    """
    path = Path(path)
    if path.suffix not in (SEGMENT_FILE_SUFFIX, INDEX_FILE_SUFFIX):
        raise InvalidPathError(f"Not a segment or index file: {str(path)!r}")
    if not path.stem.isdigit():
        raise InvalidPathError(f"Base name is not an offset: {str(path)!r}")
    return int(path.stem)


def parse_partition_dir(path: PathLike) -> Tuple[str, int]:
    """
    Split a partition directory name into topic and partition number.

    The topic may itself contain dashes; the partition is the part after
    the last one.

    Args:
        path: Directory such as /tmp/kafka-logs-0/topic1-3

    Returns:
        Tuple of (topic, partition)

    Raises:
        InvalidPathError: If the name is not {topic}-{partition}
    """
    name = Path(path).name
    topic, sep, partition = name.rpartition("-")
    if not sep or not topic or not partition.isdigit():
        raise InvalidPathError(f"Not a partition directory: {name!r}")
    return topic, int(partition)
