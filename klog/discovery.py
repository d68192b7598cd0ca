"""
Locate partition directories and segment files under a broker data root.

A broker keeps one directory per partition replica, named
{topic}-{partition}, each holding .log segments and their .index files.
"""

import glob
from pathlib import Path
from typing import Iterable, List, Union

from klog.core.errors import InvalidPathError, LogFileNotFoundError
from klog.core.log.naming import parse_partition_dir
from klog.utils.logging import get_logger

logger = get_logger(__name__)


def find_in_path(pattern: str, root: Union[str, Path]) -> List[Path]:
    """
    Find files and directories matching a glob pattern, recursively.

    Args:
        pattern: Name pattern such as "topic1-*" or "*.index"
        root: Directory to search

    Returns:
        Sorted matching paths; empty if nothing matches

    Raises:
        LogFileNotFoundError: If root doesn't exist
    """
    root = Path(root)
    if not root.exists():
        raise LogFileNotFoundError(f"Root folder not found: {root}")

    matches = sorted(root.rglob(pattern))

    logger.debug("Searched path", root=str(root), pattern=pattern, matches=len(matches))

    return matches


def find_partition_dirs(topic: str, root: Union[str, Path]) -> List[Path]:
    """
    Find the partition directories of a topic.

    Directories such as topic1-extra-0 also match topic1-*; only those whose
    parsed topic is exactly the requested one are kept.

    Args:
        topic: Topic name
        root: Broker data root

    Returns:
        Sorted partition directories

    Raises:
        LogFileNotFoundError: If root doesn't exist
    """
    partitions = []
    for path in find_in_path(f"{glob.escape(topic)}-*", root):
        if not path.is_dir():
            continue
        try:
            name, _ = parse_partition_dir(path)
        except InvalidPathError:
            continue
        if name == topic:
            partitions.append(path)

    logger.info("Found partitions", topic=topic, root=str(root), partitions=len(partitions))

    return partitions


def find_files(paths: Iterable[Union[str, Path]], suffix: str) -> List[Path]:
    """
    Find files with a suffix under each of several directories.

    Directories that vanished since discovery are skipped.

    Args:
        paths: Directories to search
        suffix: File suffix such as ".log" or ".index"

    Returns:
        Matching files, grouped by directory in the order given
    """
    files: List[Path] = []
    for path in paths:
        path = Path(path)
        if not path.exists():
            logger.debug("Skipping missing path", path=str(path))
            continue
        files.extend(p for p in find_in_path(f"*{suffix}", path) if p.is_file())
    return files
