"""
Exceptions raised by index lookups and window extraction.

Every failure is scoped to a single segment: callers iterating over several
segments catch KlogError for one of them and carry on with the next.
"""


class KlogError(Exception):
    """Base class for all klog errors."""
    pass


class LogFileNotFoundError(KlogError):
    """Raised when an index, segment or root path does not exist."""
    pass


class LogReadError(KlogError):
    """Raised when opening, seeking or reading a file fails."""
    pass


class OffsetNotIndexedError(KlogError):
    """Raised when an unpopulated index slot is reached before the wanted offset."""
    pass


class OffsetOutOfRangeError(KlogError):
    """Raised when the index is exhausted without bracketing the wanted offset."""
    pass


class CorruptIndexError(KlogError):
    """Raised when index positions decrease, which would give a negative window."""
    pass


class ShortReadError(KlogError):
    """Raised when a segment holds fewer bytes than the window requires."""

    def __init__(self, path, expected: int, got: int):
        super().__init__(
            f"Short read from {path}: expected {expected} bytes, got {got} bytes"
        )
        self.path = path
        self.expected = expected
        self.got = got


class InvalidPathError(KlogError):
    """Raised when a path does not follow the segment naming convention."""
    pass


class LookupCancelledError(KlogError):
    """Raised when an index scan observes its cancellation signal."""
    pass


class DecoderError(KlogError):
    """Raised when the external dump tool cannot be run or fails."""
    pass
