"""Serve the scheduler's "tail my job log" queries."""

from __future__ import annotations

import os

from jobspine.core.errors import LogFileNotFoundError, LogReadError
from jobspine.execution.models import LogRequest, LogResponse, LogResponseContent
from jobspine.joblog.reader import DEFAULT_LOG_PAGE_SIZE, read_log_page
from jobspine.joblog.writer import log_file_path
from jobspine.observability.logging import get_logger

logger = get_logger(__name__)

CODE_SUCCESS = 200
CODE_FAILURE = 500


def handle_log_request(request: LogRequest | None, log_dir: str | os.PathLike[str] | None) -> LogResponse:
    """Answer one log query with a page of the invocation's log file.

    Never raises: every failure becomes a ``code=500`` response whose
    ``msg`` describes what went wrong.
    """
    if request is None:
        logger.error("joblog.query.invalid_request")
        return LogResponse(code=CODE_FAILURE, msg="log request is nil")

    if not log_dir:
        logger.error("joblog.query.path_not_configured", log_id=request.log_id)
        return LogResponse(code=CODE_FAILURE, msg="log path not configured")

    path = log_file_path(log_dir, request.log_id)
    try:
        result = read_log_page(path, request.from_line_num, DEFAULT_LOG_PAGE_SIZE)
    except LogFileNotFoundError:
        logger.warning("joblog.query.not_found", log_file=path, log_id=request.log_id)
        return LogResponse(code=CODE_FAILURE, msg=f"log file not found: {path}")
    except LogReadError as e:
        logger.warning(
            "joblog.query.read_failed",
            log_file=path,
            log_id=request.log_id,
            from_line=request.from_line_num,
            error=str(e),
        )
        return LogResponse(code=CODE_FAILURE, msg=f"failed to read log file: {e}")

    return LogResponse(
        code=CODE_SUCCESS,
        msg="success",
        content=LogResponseContent(
            from_line_num=request.from_line_num,
            to_line_num=result.to_line_num,
            log_content=result.content,
            is_end=result.is_end,
        ),
    )
