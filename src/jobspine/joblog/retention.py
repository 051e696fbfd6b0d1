"""Job log retention.

Deletes job log files whose last modification is older than the retention
period. Modification time is used rather than creation time because a
long-running invocation keeps appending to its file.

Only files matching ``jobhandler-*.log`` are considered; anything else in
the directory is left alone.
"""

from __future__ import annotations

import os
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from jobspine.joblog.writer import is_managed_log_file
from jobspine.observability.logging import get_logger

logger = get_logger(__name__)

DEFAULT_SWEEP_INTERVAL_SECONDS = 3600.0


@dataclass
class RetentionReport:
    """Aggregated results of one retention sweep."""

    deleted_count: int = 0
    freed_bytes: int = 0
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return len(self.errors) == 0


def compute_cutoff(days: int, now: datetime | None = None) -> datetime:
    """Files last modified before this moment are eligible for deletion."""
    return (now or datetime.now()) - timedelta(days=days)


def cleanup_old_logs(
    log_dir: str | os.PathLike[str] | None,
    retention_days: int,
    now: datetime | None = None,
) -> RetentionReport:
    """Delete managed log files older than ``retention_days``.

    Parameters
    ----------
    log_dir
        Job log directory. Nothing happens when empty.
    retention_days
        Retention period in days. Nothing happens when ``<= 0``.
    now
        Reference time (defaults to the current local time).

    Returns
    -------
    RetentionReport
        Deleted count, freed bytes and per-file errors. Failures on one
        file never stop the sweep.
    """
    report = RetentionReport()
    if not log_dir or retention_days <= 0:
        return report

    log_dir = os.fspath(log_dir)
    cutoff = compute_cutoff(retention_days, now).timestamp()

    try:
        entries = list(os.scandir(log_dir))
    except OSError as e:
        logger.warning("joblog.retention.scan_failed", log_path=log_dir, error=str(e))
        report.errors[log_dir] = str(e)
        return report

    for entry in entries:
        if not is_managed_log_file(entry.name):
            continue
        try:
            if entry.is_dir(follow_symlinks=False):
                continue
            info = entry.stat(follow_symlinks=False)
        except OSError:
            continue

        if info.st_mtime >= cutoff:
            continue

        try:
            os.remove(entry.path)
        except OSError as e:
            logger.warning("joblog.retention.remove_failed", log_file=entry.path, error=str(e))
            report.errors[entry.path] = str(e)
            continue
        report.deleted_count += 1
        report.freed_bytes += info.st_size

    if report.deleted_count > 0:
        logger.info(
            "joblog.retention.swept",
            log_path=log_dir,
            deleted_count=report.deleted_count,
            freed_size_mb=report.freed_bytes // (1024 * 1024),
            retention_days=retention_days,
        )
    return report


class LogRetentionSweeper:
    """Runs ``cleanup_old_logs`` on a fixed interval in a daemon thread.

    The first sweep happens one interval after ``start()``.
    """

    def __init__(
        self,
        log_dir: str | os.PathLike[str],
        retention_days: int,
        interval: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
    ):
        if interval <= 0:
            raise ValueError(f"Sweep interval must be positive, got {interval}")
        self.log_dir = os.fspath(log_dir)
        self.retention_days = retention_days
        self.interval = interval
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        thread = self._thread
        return thread is not None and thread.is_alive()

    def start(self) -> None:
        with self._lock:
            if self._thread is not None and self._thread.is_alive():
                return
            self._stop.clear()
            self._thread = threading.Thread(target=self._loop, name="joblog-retention", daemon=True)
            self._thread.start()
        logger.debug(
            "joblog.retention.started",
            log_path=self.log_dir,
            retention_days=self.retention_days,
            interval=self.interval,
        )

    def stop(self, timeout: float | None = 5.0) -> None:
        """Signal the sweep loop to exit and wait for it."""
        with self._lock:
            thread, self._thread = self._thread, None
        self._stop.set()
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)

    def sweep_once(self) -> RetentionReport:
        return cleanup_old_logs(self.log_dir, self.retention_days)

    def _loop(self) -> None:
        while not self._stop.wait(self.interval):
            try:
                self.sweep_once()
            except Exception:
                logger.exception("joblog.retention.sweep_failed", log_path=self.log_dir)
