"""Paginated reads of job log files.

Lines are numbered from 0. A page starts at ``from_line`` and holds up to
``page_size`` lines; ``to_line_num`` is the index of the last line returned
and ``is_end`` tells the scheduler it has caught up with the file.

Files are scanned line by line, so memory per query is bounded by one page
rather than the file size. Lines longer than ``MAX_LOG_LINE_BYTES`` are
truncated to that length; the rest of the line is skipped without being
buffered.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from dataclasses import dataclass
from typing import BinaryIO

from jobspine.core.errors import LogFileNotFoundError, LogReadError

DEFAULT_LOG_PAGE_SIZE = 1000
MAX_LOG_FILE_SIZE = 10 * 1024 * 1024
MAX_LOG_LINE_BYTES = 1024 * 1024


@dataclass(frozen=True)
class LogReadResult:
    """One page of a job log."""

    content: str
    to_line_num: int
    is_end: bool


def _effective_page_size(page_size: int, file_size: int) -> int:
    if page_size <= 0:
        page_size = DEFAULT_LOG_PAGE_SIZE
    if file_size > MAX_LOG_FILE_SIZE:
        page_size = min(page_size, DEFAULT_LOG_PAGE_SIZE)
    return page_size


def _iter_lines(f: BinaryIO) -> Iterator[bytes]:
    """Yield lines of ``f`` without the newline, each at most MAX_LOG_LINE_BYTES long."""
    cap = MAX_LOG_LINE_BYTES
    while True:
        raw = f.readline(cap + 1)
        if not raw:
            return
        if raw.endswith(b"\n"):
            yield raw[:-1]
            continue
        if len(raw) > cap:
            # Discard the remainder of an oversized line in bounded chunks
            rest = f.readline(cap)
            while rest and not rest.endswith(b"\n"):
                rest = f.readline(cap)
            raw = raw[:cap]
        yield raw


def read_log_page(path: str | os.PathLike[str], from_line: int, page_size: int = 0) -> LogReadResult:
    """Read one page of ``path`` starting at the 0-based line ``from_line``.

    Args:
        path: Log file path
        from_line: First line to return; negative values are treated as 0
        page_size: Maximum lines per page; ``<= 0`` selects the default

    Returns:
        LogReadResult whose content ends with a newline when non-empty

    Raises:
        LogFileNotFoundError: The file does not exist
        LogReadError: The file exists but cannot be read
    """
    path = os.fspath(path)
    try:
        size = os.stat(path).st_size
    except FileNotFoundError:
        raise LogFileNotFoundError(path) from None
    except OSError as e:
        raise LogReadError(f"failed to stat log file {path}: {e}", cause=e) from e

    if size == 0:
        return LogReadResult(content="", to_line_num=max(from_line, 0), is_end=True)

    start = max(from_line, 0)
    limit = _effective_page_size(page_size, size)

    lines: list[str] = []
    last_index = -1
    to_line = start
    try:
        # Binary iteration splits on "\n" only; a lone "\r" stays inside its line
        with open(path, "rb") as f:
            for index, raw in enumerate(_iter_lines(f)):
                last_index = index
                if index < start:
                    continue
                lines.append(raw.rstrip(b"\r").decode("utf-8", errors="replace"))
                to_line = index
                if len(lines) >= limit:
                    break
    except FileNotFoundError:
        raise LogFileNotFoundError(path) from None
    except OSError as e:
        raise LogReadError(f"failed to read log file {path}: {e}", cause=e) from e

    if not lines:
        # from_line is past the end of the file
        return LogReadResult(content="", to_line_num=max(last_index, 0), is_end=True)

    return LogReadResult(
        content="\n".join(lines) + "\n",
        to_line_num=to_line,
        is_end=len(lines) < limit,
    )
