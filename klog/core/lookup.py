"""
Offset lookups across index/segment pairs.

lookup_window is a pure function of its arguments: it opens its own file
handles and shares no state, so lookups over many segments can run side by
side. lookup_windows does exactly that and keeps going past segments that
fail.
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Union

from klog.core.errors import KlogError, OffsetOutOfRangeError
from klog.core.index.offset_index import UINT32_MAX, IndexEntryReader
from klog.core.index.search import find_bracket, find_bracket_bisect
from klog.core.log.naming import base_offset_from_path, segment_path_for
from klog.core.log.window import Window, extract_window
from klog.utils.logging import get_logger, segment_context

logger = get_logger(__name__)

SEARCH_STRATEGIES = ("linear", "binary")


@dataclass(frozen=True)
class LookupConfig:
    """
    Options for a single lookup.

    Attributes:
        search: "linear" scans entries in order, "binary" bisects a mapped index
        relative_offsets: Index offsets are relative to the segment base offset
    """

    search: str = "linear"
    relative_offsets: bool = False

    def __post_init__(self) -> None:
        if self.search not in SEARCH_STRATEGIES:
            raise ValueError(
                f"Unknown search strategy {self.search!r}, expected one of {SEARCH_STRATEGIES}"
            )


@dataclass(frozen=True)
class LookupResult:
    """Outcome of one lookup in a multi-segment query: a window or an error."""

    index_path: Path
    window: Optional[Window] = None
    error: Optional[KlogError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def lookup_window(
    index_path: Union[str, Path],
    wanted: int,
    config: Optional[LookupConfig] = None,
    cancel: Optional[threading.Event] = None,
) -> Window:
    """
    Find and read the segment window holding an offset.

    Args:
        index_path: Path to the .index file; the .log sibling is read
        wanted: Logical offset to look up
        config: Lookup options (defaults to LookupConfig())
        cancel: Optional event that aborts the index scan

    Returns:
        Window over the paired segment

    Raises:
        KlogError: Any lookup failure; see klog.core.errors
    """
    config = config or LookupConfig()
    index_path = Path(index_path)
    segment_path = segment_path_for(index_path)

    base_offset = 0
    target = wanted
    if config.relative_offsets:
        base_offset = base_offset_from_path(index_path)
        if wanted < base_offset:
            raise OffsetOutOfRangeError(
                f"Offset {wanted} precedes segment base offset {base_offset}"
            )
        target = wanted - base_offset
        if target > UINT32_MAX:
            raise OffsetOutOfRangeError(
                f"Offset {wanted} too far past segment base offset {base_offset}"
            )

    logger.debug(
        "Looking up offset",
        index_path=str(index_path),
        offset=wanted,
        search=config.search,
        base_offset=base_offset,
    )

    if config.search == "binary":
        bracket = find_bracket_bisect(index_path, target, cancel=cancel)
    else:
        bracket = find_bracket(IndexEntryReader(index_path), target, cancel=cancel)

    data = extract_window(segment_path, bracket)

    logger.info(
        "Extracted window",
        segment=str(segment_path),
        offset=wanted,
        lower=base_offset + bracket.lower.logical_offset,
        upper=base_offset + bracket.upper.logical_offset,
        position=bracket.lower.position,
        size=len(data),
    )

    return Window(
        segment_path=segment_path,
        bracket=bracket,
        data=data,
        base_offset=base_offset,
    )


def lookup_windows(
    index_paths: Sequence[Union[str, Path]],
    wanted: int,
    config: Optional[LookupConfig] = None,
    workers: int = 1,
    cancel: Optional[threading.Event] = None,
) -> List[LookupResult]:
    """
    Look up an offset in several index files.

    A failure in one segment is logged and recorded in its result; the other
    segments are still searched.

    Args:
        index_paths: Index files to search
        wanted: Logical offset to look up
        config: Lookup options shared by every lookup
        workers: Number of threads; 1 runs the lookups in order
        cancel: Optional event that aborts pending index scans

    Returns:
        One LookupResult per index file, in input order
    """
    if workers < 1:
        raise ValueError(f"Workers must be at least 1, got {workers}")

    config = config or LookupConfig()

    def run(path: Union[str, Path]) -> LookupResult:
        path = Path(path)
        with segment_context(path, wanted):
            try:
                window = lookup_window(path, wanted, config=config, cancel=cancel)
            except KlogError as e:
                logger.warning(
                    "Lookup failed for segment",
                    error_type=type(e).__name__,
                    error=str(e),
                )
                return LookupResult(index_path=path, error=e)
        return LookupResult(index_path=path, window=window)

    if workers == 1 or len(index_paths) <= 1:
        return [run(path) for path in index_paths]

    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="klog-lookup") as pool:
        return list(pool.map(run, index_paths))
