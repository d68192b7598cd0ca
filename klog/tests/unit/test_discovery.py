"""Tests for partition and segment discovery."""

import tempfile
from pathlib import Path

import pytest

from klog.core.errors import LogFileNotFoundError
from klog.discovery import find_files, find_in_path, find_partition_dirs


class TestDiscovery:
    """Test discovery helpers against a fake broker data root."""

    @pytest.fixture
    def root(self):
        """Create a broker root with two topics and a few segments."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            for name in ["topic1-0", "topic1-1", "topic1-extra-0", "other-0"]:
                directory = root / name
                directory.mkdir()
                for stem in ["00000000000000000000", "00000000000000000100"]:
                    (directory / f"{stem}.log").write_bytes(b"")
                    (directory / f"{stem}.index").write_bytes(b"")
                    (directory / f"{stem}.timeindex").write_bytes(b"")
            (root / "topic1-checkpoint").write_text("not a partition")
            yield root

    def test_find_in_path_is_recursive(self, root):
        """Test recursive pattern matching."""
        matches = find_in_path("*.index", root)

        assert len(matches) == 8
        assert matches == sorted(matches)

    def test_find_in_path_no_match(self, root):
        """Test that no match is not an error."""
        assert find_in_path("nothing-*", root) == []

    def test_find_in_path_missing_root(self, root):
        """Test that a missing root is reported."""
        with pytest.raises(LogFileNotFoundError, match="Root folder not found"):
            find_in_path("*", root / "absent")

    def test_find_partition_dirs(self, root):
        """Test that only the topic's own partitions are returned."""
        partitions = find_partition_dirs("topic1", root)

        assert [p.name for p in partitions] == ["topic1-0", "topic1-1"]

    def test_find_partition_dirs_dashed_topic(self, root):
        """Test a topic whose name contains a dash."""
        partitions = find_partition_dirs("topic1-extra", root)

        assert [p.name for p in partitions] == ["topic1-extra-0"]

    def test_find_partition_dirs_topic_with_glob_characters(self, root):
        """Test that glob characters in a topic are matched literally."""
        (root / "ab-0").mkdir()
        (root / "a[b]-0").mkdir()
        (root / "a*-0").mkdir()

        assert [p.name for p in find_partition_dirs("a[b]", root)] == ["a[b]-0"]
        assert [p.name for p in find_partition_dirs("a*", root)] == ["a*-0"]

    def test_find_partition_dirs_unknown_topic(self, root):
        """Test that an unknown topic has no partitions."""
        assert find_partition_dirs("missing", root) == []

    def test_find_files_by_suffix(self, root):
        """Test selecting segments or indexes only."""
        partitions = find_partition_dirs("topic1", root)

        logs = find_files(partitions, ".log")
        indexes = find_files(partitions, ".index")

        assert len(logs) == 4
        assert all(p.suffix == ".log" for p in logs)
        assert [p.parent.name for p in indexes] == ["topic1-0", "topic1-0", "topic1-1", "topic1-1"]

    def test_find_files_skips_missing_paths(self, root):
        """Test that vanished directories are skipped."""
        files = find_files([root / "gone-0", root / "other-0"], ".log")

        assert len(files) == 2
