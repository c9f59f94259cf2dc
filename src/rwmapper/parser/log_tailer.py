"""Log tailer - reads complete lines appended to a log file."""

from pathlib import Path
from typing import Iterator

from rwmapper.config.logging import get_logger

logger = get_logger(__name__)


class LogTailer:
    """
    Incremental reader for a growing log file.

    Remembers the byte offset after the last complete line. A trailing line
    without a newline is left unread until it is completed, and a file that
    shrinks below the saved offset is treated as a new log and read from the start.
    """

    def __init__(self, file_path: Path, encoding: str = "utf-8") -> None:
        self.file_path = Path(file_path)
        self.encoding = encoding
        self.position = 0
        self.file_size = 0

    def reset(self) -> None:
        """Read from the beginning on the next call."""
        self.position = 0
        self.file_size = 0

    def set_position(self, position: int, file_size: int) -> None:
        """Resume from a saved offset."""
        self.position = position
        self.file_size = file_size

    def read_new_lines(self) -> Iterator[str]:
        """
        Yield lines appended since the last call.

        Yields:
            Complete lines without their line terminator
        """
        if not self.file_path.exists():
            return

        size = self.file_path.stat().st_size
        if size < self.position:
            logger.info("Log file truncated, reading from start: %s", self.file_path)
            self.position = 0
        self.file_size = size

        if size == self.position:
            return

        with open(self.file_path, "rb") as f:
            f.seek(self.position)
            data = f.read(size - self.position)

        end = data.rfind(b"\n")
        if end < 0:
            return

        self.position += end + 1
        # Split on \n only, like StreamDriver.feed_text
        for raw in data[:end].split(b"\n"):
            yield raw.rstrip(b"\r").decode(self.encoding, errors="replace")
