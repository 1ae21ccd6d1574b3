"""Sources of raw build output."""

import logging
from collections.abc import Iterator
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


class RunLogSource(Protocol):
    """Supplies the run's raw console output, one line at a time.

    Iteration may raise OSError if the log cannot be read.
    """

    def read_lines(self) -> Iterator[str]:
        ...


class TextLogSource:
    """Log source over text already held in memory."""

    def __init__(self, text: str | None) -> None:
        self._text = text or ""

    def read_lines(self) -> Iterator[str]:
        yield from self._text.splitlines()


class FileLogSource:
    """
    Log source reading a console log file from disk.

    The file is opened lazily and closed on every exit path; a failure
    to close is logged rather than raised.
    """

    def __init__(self, path: str | Path, encoding: str = "utf-8") -> None:
        """
        Initialize the log source.

        Args:
            path: Path to the console log
            encoding: Text encoding of the log; undecodable bytes are replaced
        """
        self._path = Path(path)
        self._encoding = encoding

    @property
    def path(self) -> Path:
        return self._path

    def read_lines(self) -> Iterator[str]:
        reader = open(self._path, "r", encoding=self._encoding, errors="replace")
        try:
            for line in reader:
                yield line.rstrip("\r\n")
        finally:
            try:
                reader.close()
            except OSError as e:
                logger.warning(f"Failed to close log {self._path}: {e}")
