"""Executor run state and health snapshots.

The running flag with its start time, and the last observed error, are
guarded by separate locks so recording a task failure never contends with
start/stop.

Example:
    >>> tracker = HealthTracker()
    >>> tracker.mark_started()
    >>> tracker.snapshot(task_count=3).to_dict()["running"]
    True
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from jobspine.core.errors import ExecutorStateError


def utcnow() -> datetime:
    """Return timezone-aware UTC datetime."""
    return datetime.now(UTC)


@dataclass(frozen=True)
class HealthStatus:
    """Point-in-time health of the executor."""

    running: bool
    task_count: int
    started_at: datetime | None = None
    last_error: BaseException | None = None

    @property
    def healthy(self) -> bool:
        return self.running and self.last_error is None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "running": self.running,
            "task_count": self.task_count,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "last_error": str(self.last_error) if self.last_error is not None else None,
        }


class HealthTracker:
    """Stopped → Running → Stopped state machine plus last-error slot."""

    def __init__(self):
        self._state_lock = threading.Lock()
        self._running = False
        self._started_at: datetime | None = None

        self._error_lock = threading.Lock()
        self._last_error: BaseException | None = None

    @property
    def running(self) -> bool:
        with self._state_lock:
            return self._running

    @property
    def started_at(self) -> datetime | None:
        with self._state_lock:
            return self._started_at

    @property
    def last_error(self) -> BaseException | None:
        with self._error_lock:
            return self._last_error

    def mark_started(self) -> datetime:
        """Transition to Running and record the start time.

        Raises:
            ExecutorStateError: Already running
        """
        with self._state_lock:
            if self._running:
                raise ExecutorStateError("executor already running")
            self._running = True
            self._started_at = utcnow()
            return self._started_at

    def mark_stopped(self) -> bool:
        """Transition to Stopped. Returns False if it already was."""
        with self._state_lock:
            if not self._running:
                return False
            self._running = False
            return True

    def record_error(self, error: BaseException) -> None:
        with self._error_lock:
            self._last_error = error

    def clear_error(self) -> None:
        with self._error_lock:
            self._last_error = None

    def snapshot(self, task_count: int) -> HealthStatus:
        with self._state_lock:
            running, started_at = self._running, self._started_at
        return HealthStatus(
            running=running,
            task_count=task_count,
            started_at=started_at,
            last_error=self.last_error,
        )
