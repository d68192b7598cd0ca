"""
Sparse offset index entries and a streaming reader for index files.

An index file is a headerless run of 8-byte records, each a big-endian
(logical offset, byte position) pair, ending at end-of-file. Preallocated
index files are zero-padded past their last written entry.
"""

import struct
from pathlib import Path
from typing import Iterator, Union

from klog.core.errors import LogFileNotFoundError, LogReadError
from klog.utils.logging import get_logger

logger = get_logger(__name__)

UINT32_MAX = 0xFFFFFFFF


class IndexEntry:
    """
    A single entry in the offset index.

    Maps a logical offset to the byte position of its record in the paired
    segment file. An entry with populated=False is a zero-padded slot that
    was never written.
    """

    SIZE = 8
    FORMAT = ">II"

    __slots__ = ("logical_offset", "position", "populated")

    def __init__(self, logical_offset: int, position: int, populated: bool = True):
        """
        Create an index entry.

        Args:
            logical_offset: Logical offset of the record
            position: Byte position in the segment file
            populated: False for an unwritten zero slot

        Raises:
            ValueError: If a value does not fit an unsigned 32-bit field
        """
        if not 0 <= logical_offset <= UINT32_MAX:
            raise ValueError(f"Logical offset out of uint32 range: {logical_offset}")
        if not 0 <= position <= UINT32_MAX:
            raise ValueError(f"Position out of uint32 range: {position}")

        self.logical_offset = logical_offset
        self.position = position
        self.populated = populated

    def serialize(self) -> bytes:
        """
        Serialize entry to bytes.

        Returns:
            8 bytes representing the entry
        """
        return struct.pack(self.FORMAT, self.logical_offset, self.position)

    @classmethod
    def deserialize(cls, data: bytes, first: bool = True) -> "IndexEntry":
        """
        Deserialize entry from bytes.

        A zero offset is only a real offset for the first entry of a file;
        anywhere else it marks an unpopulated slot.

        Args:
            data: 8 bytes of serialized entry
            first: Whether this is the first entry of its file

        Returns:
            IndexEntry instance

        Raises:
            ValueError: If data is not 8 bytes
        """
        if len(data) != cls.SIZE:
            raise ValueError(f"Expected {cls.SIZE} bytes, got {len(data)}")

        logical_offset, position = struct.unpack(cls.FORMAT, data)
        populated = first or logical_offset != 0
        return cls(logical_offset, position, populated)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, IndexEntry):
            return NotImplemented
        return (
            self.logical_offset == other.logical_offset
            and self.position == other.position
            and self.populated == other.populated
        )

    def __hash__(self) -> int:
        return hash((self.logical_offset, self.position, self.populated))

    def __repr__(self) -> str:
        if not self.populated:
            return "IndexEntry(unpopulated)"
        return f"IndexEntry(offset={self.logical_offset}, pos={self.position})"


ZERO_ENTRY = IndexEntry(0, 0)


class IndexEntryReader:
    """
    Forward-only reader over the entries of an index file.

    Each iteration opens the file afresh and closes it when the entries are
    exhausted or the caller stops consuming, so one reader can be scanned
    any number of times.
    """

    def __init__(self, path: Union[str, Path]):
        """
        Initialize an index reader.

        Args:
            path: Path to the index file

        Raises:
            LogFileNotFoundError: If the index file doesn't exist
        """
        self.path = Path(path)

        if not self.path.exists():
            raise LogFileNotFoundError(f"Index file not found: {self.path}")

    def __iter__(self) -> Iterator[IndexEntry]:
        """
        Yield entries in on-disk order.

        Yields:
            IndexEntry for each complete 8-byte record

        Raises:
            LogFileNotFoundError: If the file disappeared since construction
            LogReadError: If opening or reading fails
        """
        try:
            f = open(self.path, "rb")
        except FileNotFoundError as e:
            raise LogFileNotFoundError(f"Index file not found: {self.path}") from e
        except OSError as e:
            raise LogReadError(f"Cannot open index file {self.path}: {e}") from e

        with f:
            position = 0
            while True:
                try:
                    data = f.read(IndexEntry.SIZE)
                except OSError as e:
                    raise LogReadError(
                        f"Failed reading index file {self.path} at byte {position}: {e}"
                    ) from e

                if len(data) == 0:
                    break

                if len(data) < IndexEntry.SIZE:
                    logger.warning(
                        "Partial entry at end of index",
                        path=str(self.path),
                        position=position,
                        bytes_read=len(data),
                    )
                    break

                yield IndexEntry.deserialize(data, first=position == 0)
                position += IndexEntry.SIZE

    def __repr__(self) -> str:
        return f"IndexEntryReader(path={str(self.path)!r})"
