"""Job log storage: per-invocation writers, paginated reads, retention."""

from jobspine.joblog.reader import DEFAULT_LOG_PAGE_SIZE, MAX_LOG_FILE_SIZE, LogReadResult, read_log_page
from jobspine.joblog.writer import (
    LOG_FILE_PATTERN,
    LogWriter,
    is_managed_log_file,
    log_file_path,
    open_log_writer,
)
from jobspine.joblog.retention import LogRetentionSweeper, RetentionReport, cleanup_old_logs
from jobspine.joblog.query import handle_log_request

__all__ = [
    # Writer
    "LogWriter",
    "open_log_writer",
    "log_file_path",
    "is_managed_log_file",
    "LOG_FILE_PATTERN",
    # Reader
    "read_log_page",
    "LogReadResult",
    "DEFAULT_LOG_PAGE_SIZE",
    "MAX_LOG_FILE_SIZE",
    # Query
    "handle_log_request",
    # Retention
    "cleanup_old_logs",
    "RetentionReport",
    "LogRetentionSweeper",
]
