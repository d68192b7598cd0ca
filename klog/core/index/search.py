"""
Bracket search over a sparse offset index.

A bracket is the pair of consecutive index entries surrounding a wanted
offset: the first entry strictly greater than the wanted offset, and the
entry just before it. The byte range between their positions is the
smallest window of the segment guaranteed to hold the wanted record.
"""

import mmap
import struct
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Union

from klog.core.errors import (
    CorruptIndexError,
    LogFileNotFoundError,
    LogReadError,
    LookupCancelledError,
    OffsetNotIndexedError,
    OffsetOutOfRangeError,
)
from klog.core.index.offset_index import ZERO_ENTRY, IndexEntry
from klog.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Bracket:
    """
    Pair of index entries with lower.logical_offset <= wanted < upper.logical_offset.

    Attributes:
        lower: Last entry at or below the wanted offset (or the zero entry)
        upper: First entry above the wanted offset
    """

    lower: IndexEntry
    upper: IndexEntry

    def size(self) -> int:
        """
        Number of segment bytes between the two entries.

        Returns:
            upper.position - lower.position

        Raises:
            CorruptIndexError: If the positions decrease
        """
        if self.upper.position < self.lower.position:
            raise CorruptIndexError(
                f"Index positions decrease: {self.lower!r} followed by {self.upper!r}"
            )
        return self.upper.position - self.lower.position


def _check_wanted(wanted: int) -> None:
    if isinstance(wanted, bool) or not isinstance(wanted, int):
        raise TypeError(f"Wanted offset must be an int, got {type(wanted)}")
    if wanted < 0:
        raise ValueError(f"Wanted offset must be non-negative, got {wanted}")


def _check_cancel(cancel: Optional[threading.Event]) -> None:
    if cancel is not None and cancel.is_set():
        raise LookupCancelledError("Index scan cancelled")


def find_bracket(
    entries: Iterable[IndexEntry],
    wanted: int,
    cancel: Optional[threading.Event] = None,
) -> Bracket:
    """
    Scan index entries linearly for the bracket around an offset.

    Args:
        entries: Index entries in file order
        wanted: Logical offset to bracket
        cancel: Optional event checked before each entry

    Returns:
        The tightest Bracket around wanted

    Raises:
        OffsetNotIndexedError: If an unpopulated slot comes first
        OffsetOutOfRangeError: If no entry is greater than wanted
        CorruptIndexError: If the bracket positions decrease
        LookupCancelledError: If cancel is set during the scan
    """
    _check_wanted(wanted)

    previous = ZERO_ENTRY
    scanned = 0

    for entry in entries:
        _check_cancel(cancel)
        scanned += 1

        if not entry.populated:
            raise OffsetNotIndexedError(
                f"Offset {wanted} not indexed: unpopulated slot after {scanned - 1} entries"
            )

        if entry.logical_offset > wanted:
            bracket = Bracket(lower=previous, upper=entry)
            bracket.size()

            logger.debug(
                "Found bracket",
                wanted=wanted,
                lower=previous.logical_offset,
                upper=entry.logical_offset,
                entries_scanned=scanned,
            )
            return bracket

        previous = entry

    raise OffsetOutOfRangeError(
        f"Offset {wanted} beyond the index: {scanned} entries, "
        f"last offset {previous.logical_offset}"
    )


def find_bracket_bisect(
    index_path: Union[str, Path],
    wanted: int,
    cancel: Optional[threading.Event] = None,
) -> Bracket:
    """
    Find the bracket around an offset by binary search over a mapped index.

    Relies on the index being sorted and zero-padded only at its tail. Gives
    the same result as find_bracket on such indexes.

    Args:
        index_path: Path to the index file
        wanted: Logical offset to bracket
        cancel: Optional event checked on each probe

    Returns:
        The tightest Bracket around wanted

    Raises:
        LogFileNotFoundError: If the index file doesn't exist
        LogReadError: If the index cannot be opened or mapped
        OffsetNotIndexedError: If the padded tail is reached first
        OffsetOutOfRangeError: If no entry is greater than wanted
        CorruptIndexError: If the bracket positions decrease
        LookupCancelledError: If cancel is set during the search
    """
    _check_wanted(wanted)
    path = Path(index_path)

    try:
        f = open(path, "rb")
    except FileNotFoundError as e:
        raise LogFileNotFoundError(f"Index file not found: {path}") from e
    except OSError as e:
        raise LogReadError(f"Cannot open index file {path}: {e}") from e

    with f:
        try:
            file_size = path.stat().st_size
        except OSError as e:
            raise LogReadError(f"Cannot stat index file {path}: {e}") from e

        total = file_size // IndexEntry.SIZE
        if total == 0:
            raise OffsetOutOfRangeError(f"Offset {wanted} beyond the index: 0 entries")

        try:
            mm = mmap.mmap(f.fileno(), length=0, access=mmap.ACCESS_READ)
        except (OSError, ValueError) as e:
            raise LogReadError(f"Cannot map index file {path}: {e}") from e

        with mm:
            def offset_at(i: int) -> int:
                start = i * IndexEntry.SIZE
                return struct.unpack_from(">I", mm, start)[0]

            def entry_at(i: int) -> IndexEntry:
                start = i * IndexEntry.SIZE
                return IndexEntry.deserialize(mm[start : start + IndexEntry.SIZE], first=i == 0)

            # First padded slot; entry 0 is always populated.
            left, right = 1, total
            while left < right:
                _check_cancel(cancel)
                mid = (left + right) // 2
                if offset_at(mid) == 0:
                    right = mid
                else:
                    left = mid + 1
            populated = left

            # First populated entry above wanted.
            left, right = 0, populated
            while left < right:
                _check_cancel(cancel)
                mid = (left + right) // 2
                if offset_at(mid) > wanted:
                    right = mid
                else:
                    left = mid + 1

            if left == populated:
                if populated < total:
                    raise OffsetNotIndexedError(
                        f"Offset {wanted} not indexed: unpopulated slot after {populated} entries"
                    )
                raise OffsetOutOfRangeError(
                    f"Offset {wanted} beyond the index: {total} entries, "
                    f"last offset {offset_at(total - 1)}"
                )

            lower = entry_at(left - 1) if left > 0 else ZERO_ENTRY
            bracket = Bracket(lower=lower, upper=entry_at(left))

    bracket.size()

    logger.debug(
        "Found bracket by bisection",
        wanted=wanted,
        lower=bracket.lower.logical_offset,
        upper=bracket.upper.logical_offset,
        entries=total,
    )
    return bracket
