"""Per-invocation append-only job log files.

Each dispatched invocation gets one file, ``<log_dir>/jobhandler-<log_id>.log``.
The scheduler tails that file through ``read_log_page`` while the task is
still running, so every write is flushed and fsynced before returning.

Writes never raise into the task: a failed write is reported through
structlog and dropped.

Example:
    >>> with open_log_writer("/var/log/jobs", 42) as writer:
    ...     writer.write("processing %d records", 120)
    ...     writer.write_line("raw line without timestamp")

Tags:
    jobspine, joblog, writer, append-only

Doc-Types:
    api-reference
"""

from __future__ import annotations

import fnmatch
import os
import threading
from datetime import datetime
from typing import BinaryIO

from jobspine.core.errors import LogWriterError
from jobspine.observability.logging import get_logger

logger = get_logger(__name__)

LOG_FILE_PREFIX = "jobhandler-"
LOG_FILE_SUFFIX = ".log"
LOG_FILE_PATTERN = f"{LOG_FILE_PREFIX}*{LOG_FILE_SUFFIX}"


def log_file_name(log_id: int) -> str:
    return f"{LOG_FILE_PREFIX}{log_id}{LOG_FILE_SUFFIX}"


def log_file_path(log_dir: str | os.PathLike[str], log_id: int) -> str:
    """Deterministic log file path for an invocation."""
    return os.path.join(os.fspath(log_dir), log_file_name(log_id))


def is_managed_log_file(name: str) -> bool:
    """True if ``name`` follows the job log naming pattern."""
    return fnmatch.fnmatchcase(name, LOG_FILE_PATTERN)


def format_timestamp(moment: datetime | None = None) -> str:
    """Millisecond-precision local timestamp, e.g. ``2024-05-01 12:00:00.123``."""
    moment = moment or datetime.now()
    return moment.strftime("%Y-%m-%d %H:%M:%S.") + f"{moment.microsecond // 1000:03d}"


class LogWriter:
    """Append-only log sink for one invocation.

    All operations are serialised under one mutex, so concurrent writers
    never interleave partial lines.
    """

    def __init__(self, log_dir: str | os.PathLike[str], log_id: int):
        if not log_dir or not os.fspath(log_dir):
            raise LogWriterError("log directory is not set")
        if log_id <= 0:
            raise LogWriterError(f"invalid log id: {log_id}")

        self.log_id = log_id
        self.path = log_file_path(log_dir, log_id)
        self._lock = threading.Lock()
        try:
            self._file: BinaryIO | None = open(self.path, "ab")  # noqa: SIM115
        except OSError as e:
            raise LogWriterError(f"failed to open log file {self.path}: {e}", cause=e) from e

    @property
    def closed(self) -> bool:
        return self._file is None

    def write(self, fmt: str, *args: object) -> None:
        """Append a timestamped line. ``fmt`` is %-formatted when args are given."""
        message = fmt
        if args:
            try:
                message = fmt % args
            except (TypeError, ValueError) as e:
                logger.warning("joblog.format_failed", path=self.path, log_id=self.log_id, error=str(e))
                message = f"{fmt} {args!r}"
        self._append(f"[{format_timestamp()}] {message}\n")

    def write_line(self, line: str) -> None:
        """Append ``line`` verbatim, adding a newline if it lacks one."""
        if not line.endswith("\n"):
            line += "\n"
        self._append(line)

    def _append(self, text: str) -> None:
        data = text.encode("utf-8", errors="replace")
        with self._lock:
            if self._file is None:
                return
            try:
                self._file.write(data)
                self._file.flush()
                os.fsync(self._file.fileno())
            except (OSError, ValueError) as e:
                logger.warning("joblog.write_failed", path=self.path, log_id=self.log_id, error=str(e))

    def close(self) -> None:
        """Flush and release the file handle. Safe to call repeatedly."""
        with self._lock:
            file, self._file = self._file, None
            if file is None:
                return
            try:
                file.flush()
                os.fsync(file.fileno())
            except (OSError, ValueError) as e:
                logger.warning("joblog.sync_failed", path=self.path, log_id=self.log_id, error=str(e))
            finally:
                try:
                    file.close()
                except OSError as e:
                    logger.warning("joblog.close_failed", path=self.path, log_id=self.log_id, error=str(e))

    def __enter__(self) -> LogWriter:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"LogWriter(path={self.path!r}, closed={self.closed})"


def open_log_writer(log_dir: str | os.PathLike[str], log_id: int) -> LogWriter:
    """Open (creating if absent) the log file for ``log_id`` under ``log_dir``.

    Raises:
        LogWriterError: Directory unset, non-positive id, or the file cannot be opened
    """
    return LogWriter(log_dir, log_id)
