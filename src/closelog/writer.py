"""Append close records to monthly CSV files."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import datetime
from pathlib import Path

from closelog.models import HEADER, LogRecord

logger = logging.getLogger(__name__)

LINE_TERMINATOR = "\r\n"
_NEEDS_QUOTES = (",", '"', "\n", "\r")


def csv_escape(value: str | None) -> str:
    """Quote a field if it contains a comma, quote or line break."""
    if value is None:
        return ""
    escaped = value.replace('"', '""')
    if any(ch in value for ch in _NEEDS_QUOTES):
        return f'"{escaped}"'
    return escaped


def format_line(fields: Iterable[str]) -> str:
    return ",".join(csv_escape(f) for f in fields) + LINE_TERMINATOR


class CsvAppendWriter:
    """Writes one CSV file per calendar month under *logs_dir*.

    Files are only ever opened for append. Header and row go out in a single
    write on a handle that is closed right after, so concurrent host
    processes appending to the same month do not interleave partial lines.
    """

    def __init__(
        self,
        logs_dir: Path,
        file_prefix: str = "logs",
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.logs_dir = logs_dir
        self.file_prefix = file_prefix
        self._clock = clock

    def monthly_log_path(self, when: datetime | None = None) -> Path:
        """Return the log file for the month containing *when*."""
        when = when or self._clock()
        return self.logs_dir / f"{self.file_prefix}_{when:%Y%m}.csv"

    def append_row(self, record: LogRecord, target_file: Path | None = None) -> Path:
        """Append *record*, writing the header first if the file is new.

        Args:
            record: The record to write.
            target_file: Explicit destination. Defaults to the monthly file
                for the current clock time.

        Returns:
            The file written to.

        Raises:
            OSError: If the directory or file cannot be written.
        """
        path = target_file or self.monthly_log_path()
        path.parent.mkdir(parents=True, exist_ok=True)

        chunk = format_line(record.to_row())
        # A zero-byte file is left by an interrupted create; it still needs a header.
        if not path.exists() or path.stat().st_size == 0:
            chunk = format_line(HEADER) + chunk

        with open(path, "a", encoding="utf-8", newline="") as f:
            f.write(chunk)

        logger.debug("Appended %s row to %s", record.action.value, path)
        return path
