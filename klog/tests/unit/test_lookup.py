"""Tests for single and multi-segment lookups."""

import struct
import tempfile
import threading
from pathlib import Path

import pytest

from klog.core.errors import (
    InvalidPathError,
    LogFileNotFoundError,
    LookupCancelledError,
    OffsetNotIndexedError,
    OffsetOutOfRangeError,
    ShortReadError,
)
from klog.core.index.offset_index import IndexEntry
from klog.core.lookup import LookupConfig, lookup_window, lookup_windows


def write_pair(directory: Path, base_offset: int, pairs, segment: bytes) -> Path:
    """Write an index/segment pair and return the index path."""
    stem = str(base_offset).zfill(20)
    index_path = directory / f"{stem}.index"
    index_path.write_bytes(b"".join(struct.pack(">II", o, p) for o, p in pairs))
    (directory / f"{stem}.log").write_bytes(segment)
    return index_path


class TestLookupConfig:
    """Test LookupConfig."""

    def test_defaults(self):
        """Test default options."""
        config = LookupConfig()

        assert config.search == "linear"
        assert not config.relative_offsets

    def test_unknown_strategy(self):
        """Test that unknown strategies are rejected."""
        with pytest.raises(ValueError, match="Unknown search strategy"):
            LookupConfig(search="interpolation")


class TestLookupWindow:
    """Test lookup_window."""

    @pytest.fixture
    def temp_dir(self):
        """Create a temporary directory for tests."""
        with tempfile.TemporaryDirectory() as tmpdir:
            yield Path(tmpdir)

    @pytest.mark.parametrize("search", ["linear", "binary"])
    def test_lookup_extracts_window(self, temp_dir, search):
        """Test the full index-to-window path."""
        index_path = write_pair(
            temp_dir, 0, [(0, 0), (100, 50), (250, 120)], bytes(range(200))
        )

        window = lookup_window(index_path, 150, LookupConfig(search=search))

        assert window.segment_path == temp_dir / "00000000000000000000.log"
        assert window.bracket.lower == IndexEntry(100, 50)
        assert window.bracket.upper == IndexEntry(250, 120)
        assert window.data == bytes(range(50, 120))

    def test_out_of_range(self, temp_dir):
        """Test an offset past the index."""
        index_path = write_pair(temp_dir, 0, [(0, 0), (100, 50)], bytes(100))

        with pytest.raises(OffsetOutOfRangeError):
            lookup_window(index_path, 300)

    def test_not_indexed(self, temp_dir):
        """Test an index made of padding."""
        index_path = write_pair(temp_dir, 0, [(0, 0), (0, 0)], bytes(100))

        with pytest.raises(OffsetNotIndexedError):
            lookup_window(index_path, 5)

    def test_missing_index(self, temp_dir):
        """Test a missing index file."""
        with pytest.raises(LogFileNotFoundError):
            lookup_window(temp_dir / "00000000000000000000.index", 5)

    def test_missing_segment(self, temp_dir):
        """Test an index whose segment is gone."""
        index_path = write_pair(temp_dir, 0, [(0, 0), (10, 8)], b"")
        (temp_dir / "00000000000000000000.log").unlink()

        with pytest.raises(LogFileNotFoundError, match="Segment file not found"):
            lookup_window(index_path, 5)

    def test_truncated_segment(self, temp_dir):
        """Test a segment shorter than the index claims."""
        index_path = write_pair(temp_dir, 0, [(0, 0), (10, 80)], bytes(40))

        with pytest.raises(ShortReadError):
            lookup_window(index_path, 5)

    def test_not_an_index_path(self, temp_dir):
        """Test that the naming convention is enforced."""
        with pytest.raises(InvalidPathError):
            lookup_window(temp_dir / "00000000000000000000.log", 5)

    def test_relative_offsets(self, temp_dir):
        """Test indexes storing offsets relative to the segment base."""
        index_path = write_pair(
            temp_dir, 5000, [(10, 64), (20, 128), (30, 192)], bytes(256)
        )
        config = LookupConfig(relative_offsets=True)

        window = lookup_window(index_path, 5015, config)

        assert window.base_offset == 5000
        assert window.bracket.lower == IndexEntry(10, 64)
        assert window.bracket.upper == IndexEntry(20, 128)
        assert len(window) == 64

    def test_relative_offset_before_base(self, temp_dir):
        """Test that offsets before the segment base are out of range."""
        index_path = write_pair(temp_dir, 5000, [(10, 64)], bytes(256))

        with pytest.raises(OffsetOutOfRangeError, match="precedes segment base"):
            lookup_window(index_path, 4999, LookupConfig(relative_offsets=True))

    def test_cancelled(self, temp_dir):
        """Test that a cancelled lookup reads nothing."""
        index_path = write_pair(temp_dir, 0, [(0, 0), (10, 8)], bytes(8))
        cancel = threading.Event()
        cancel.set()

        with pytest.raises(LookupCancelledError):
            lookup_window(index_path, 5, cancel=cancel)


class TestLookupWindows:
    """Test lookup_windows across segments."""

    @pytest.fixture
    def partition(self):
        """Create a partition with three segments, the middle one truncated."""
        with tempfile.TemporaryDirectory() as tmpdir:
            directory = Path(tmpdir) / "topic1-0"
            directory.mkdir()
            paths = [
                write_pair(directory, 0, [(0, 0), (10, 40), (20, 80)], bytes(80)),
                write_pair(directory, 20, [(0, 0), (10, 40), (20, 80)], bytes(30)),
                write_pair(directory, 40, [(0, 0), (5, 16), (30, 64)], bytes(64)),
            ]
            yield paths

    @pytest.mark.parametrize("workers", [1, 3])
    def test_continues_past_failures(self, partition, workers):
        """Test that one failing segment does not stop the others."""
        results = lookup_windows(partition, 12, workers=workers)

        assert [r.index_path for r in results] == partition
        assert results[0].ok
        assert results[0].window.data == bytes(40)
        assert not results[1].ok
        assert isinstance(results[1].error, ShortReadError)
        assert results[1].window is None
        assert results[2].ok
        assert results[2].window.bracket.lower == IndexEntry(5, 16)

    def test_no_segments(self):
        """Test that an empty query returns no results."""
        assert lookup_windows([], 12) == []

    def test_missing_index_is_reported(self, partition):
        """Test that a vanished index is a per-segment failure."""
        missing = partition[0].with_name("00000000000000009999.index")

        results = lookup_windows([missing, partition[0]], 12)

        assert isinstance(results[0].error, LogFileNotFoundError)
        assert results[1].ok

    def test_invalid_workers(self, partition):
        """Test that at least one worker is required."""
        with pytest.raises(ValueError):
            lookup_windows(partition, 12, workers=0)
