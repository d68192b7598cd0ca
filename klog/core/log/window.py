"""
Byte-window extraction from log segments.

Reads the range of a segment delimited by an index bracket into a standalone
buffer, so it can be written out and decoded without keeping the segment
open.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from klog.core.errors import LogFileNotFoundError, LogReadError, ShortReadError
from klog.core.index.search import Bracket
from klog.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Window:
    """
    Candidate region of a segment holding the wanted record.

    The region may also contain records following the wanted one, up to
    the next index checkpoint.

    Attributes:
        segment_path: Segment the bytes were read from
        bracket: Index entries delimiting the region
        data: Bytes in [bracket.lower.position, bracket.upper.position)
        base_offset: Added to bracket offsets when the index stores
            offsets relative to the segment base
    """

    segment_path: Path
    bracket: Bracket
    data: bytes
    base_offset: int = 0

    @property
    def start(self) -> int:
        return self.bracket.lower.position

    @property
    def end(self) -> int:
        return self.bracket.upper.position

    def __len__(self) -> int:
        return len(self.data)

    def __repr__(self) -> str:
        return (
            f"Window(segment={self.segment_path.name}, "
            f"start={self.start}, end={self.end})"
        )


def extract_window(segment_path: Union[str, Path], bracket: Bracket) -> bytes:
    """
    Read exactly the bytes between a bracket's positions.

    Args:
        segment_path: Path to the segment file
        bracket: Bracket whose positions delimit the window

    Returns:
        The window bytes

    Raises:
        CorruptIndexError: If the bracket positions decrease (no I/O is done)
        LogFileNotFoundError: If the segment file doesn't exist
        LogReadError: If open, seek or read fails
        ShortReadError: If the segment ends inside the window
    """
    size = bracket.size()
    start = bracket.lower.position
    path = Path(segment_path)

    try:
        fd = os.open(path, os.O_RDONLY)
    except FileNotFoundError as e:
        raise LogFileNotFoundError(f"Segment file not found: {path}") from e
    except OSError as e:
        raise LogReadError(f"Cannot open segment file {path}: {e}") from e

    try:
        try:
            os.lseek(fd, start, os.SEEK_SET)
        except OSError as e:
            raise LogReadError(f"Cannot seek to {start} in {path}: {e}") from e

        chunks = []
        remaining = size
        while remaining > 0:
            try:
                chunk = os.read(fd, remaining)
            except OSError as e:
                raise LogReadError(
                    f"Failed reading {path} at byte {start + size - remaining}: {e}"
                ) from e

            if len(chunk) == 0:
                break

            chunks.append(chunk)
            remaining -= len(chunk)
    finally:
        os.close(fd)

    if remaining > 0:
        raise ShortReadError(path, expected=size, got=size - remaining)

    logger.debug(
        "Extracted segment window",
        path=str(path),
        position=start,
        size=size,
    )

    return b"".join(chunks)
