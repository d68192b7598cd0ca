"""
Record decoding through an external segment dump tool.

klog never interprets record bytes itself. Whole segments, and windows cut
out of them, are handed to a dump tool (Kafka's DumpLogSegments by default)
whose output lines are returned as-is.
"""

import subprocess
import tempfile
from pathlib import Path
from typing import List, Optional, Sequence, Union

from klog.core.errors import DecoderError, LogFileNotFoundError
from klog.core.log.window import Window
from klog.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_DUMP_COMMAND = (
    "kafka-run-class.sh",
    "kafka.tools.DumpLogSegments",
    "--print-data-log",
    "--files",
)


def split_lines(output: str) -> List[str]:
    """Split tool output into lines, dropping blank ones."""
    return [line for line in output.split("\n") if line.strip(" ") != ""]


class SegmentDumper:
    """
    Runs the dump tool on segment files.

    Attributes:
        command: Tool argv; the file path is appended as the last argument
        timeout: Seconds to wait for the tool, or None to wait indefinitely
    """

    def __init__(
        self,
        command: Sequence[str] = DEFAULT_DUMP_COMMAND,
        timeout: Optional[float] = None,
    ):
        if not command:
            raise ValueError("Dump command must not be empty")
        self.command = list(command)
        self.timeout = timeout

    def dump_file(self, path: Union[str, Path]) -> List[str]:
        """
        Decode every record of a segment file.

        Args:
            path: Segment file to decode

        Returns:
            Non-blank output lines of the tool

        Raises:
            LogFileNotFoundError: If the file doesn't exist
            DecoderError: If the tool is missing, times out or exits non-zero
        """
        path = Path(path)
        if not path.exists():
            raise LogFileNotFoundError(f"Log file not found: {path}")

        argv = self.command + [str(path)]
        logger.debug("Running dump tool", argv=argv)

        try:
            completed = subprocess.run(
                argv,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise DecoderError(f"Dump tool not found: {self.command[0]}") from e
        except subprocess.TimeoutExpired as e:
            raise DecoderError(f"Dump tool timed out after {self.timeout}s on {path}") from e
        except OSError as e:
            raise DecoderError(f"Cannot run dump tool on {path}: {e}") from e

        if completed.stderr.strip():
            logger.warning("Dump tool stderr", path=str(path), stderr=completed.stderr.strip())

        if completed.returncode != 0:
            raise DecoderError(
                f"Dump tool exited with status {completed.returncode} on {path}"
            )

        return split_lines(completed.stdout)

    def dump_window(self, window: Window) -> List[str]:
        """
        Decode the records of a segment window.

        The window is written to a temporary file named after its segment,
        since the tool derives the segment base offset from the file name.
        The file is removed whatever the outcome.

        Args:
            window: Window extracted from a segment

        Returns:
            Non-blank output lines of the tool

        Raises:
            DecoderError: If the tool is missing, times out or exits non-zero
        """
        with tempfile.TemporaryDirectory(prefix="klog-") as tmpdir:
            window_path = Path(tmpdir) / window.segment_path.name
            window_path.write_bytes(window.data)

            logger.debug(
                "Wrote window to temporary file",
                path=str(window_path),
                size=len(window.data),
            )

            return self.dump_file(window_path)
