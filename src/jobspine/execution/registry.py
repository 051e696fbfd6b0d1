"""Task Registry: thread-safe name → effective handler table.

Manifesto:
The executor resolves a dispatched job to the handler registered under its
name. The registry stores each handler once it has been wrapped by the
middleware chain, rejects duplicate names, and hands out snapshots so
callers never alias its internal table.

ARCHITECTURE
────────────
::

    TaskRegistry
      ├── .register(name, handler)  ─ store TaskInfo, reject duplicates
      ├── .get(name)                ─ TaskInfo or None
      ├── .get_all()                ─ independent copy of the table
      ├── .get_names()              ─ registered names (unordered)
      ├── .count()                  ─ table size
      ├── .unregister(name)         ─ remove or raise TaskNotFoundError
      └── .clear()                  ─ empty the table

All operations hold one lock; the table is small and lookups are O(1).

Related modules:
    middleware.py: produces the effective handler stored here
    executor.py: JobExecutor owns one registry

Tags:
    jobspine, execution, registry, task-registry, lookup

Doc-Types:
    api-reference
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import UTC, datetime

from jobspine.core.errors import DuplicateTaskError, RegistrationError, TaskNotFoundError
from jobspine.execution.middleware import Handler


def utcnow() -> datetime:
    """Return timezone-aware UTC datetime."""
    return datetime.now(UTC)


@dataclass(frozen=True)
class TaskInfo:
    """A registered task. Immutable once created."""

    name: str
    handler: Handler
    registered_at: datetime = field(default_factory=utcnow)


class TaskRegistry:
    """Thread-safe task table.

    Example:
        >>> registry = TaskRegistry()
        >>> registry.register("sync_orders", sync_orders)
        >>> registry.get("sync_orders").name
        'sync_orders'
        >>> registry.register("sync_orders", other)
        Traceback (most recent call last):
        ...
        jobspine.core.errors.DuplicateTaskError: task sync_orders already registered
    """

    def __init__(self):
        self._tasks: dict[str, TaskInfo] = {}
        self._lock = threading.Lock()

    def register(self, name: str, handler: Handler) -> TaskInfo:
        """Register ``handler`` under ``name``.

        Raises:
            RegistrationError: Empty name or missing handler
            DuplicateTaskError: Name already registered (the first registration is kept)
        """
        if not name:
            raise RegistrationError("task name cannot be empty")
        if handler is None:
            raise RegistrationError("task handler cannot be nil")

        with self._lock:
            if name in self._tasks:
                raise DuplicateTaskError(name)
            info = TaskInfo(name=name, handler=handler)
            self._tasks[name] = info
            return info

    def get(self, name: str) -> TaskInfo | None:
        with self._lock:
            return self._tasks.get(name)

    def has(self, name: str) -> bool:
        with self._lock:
            return name in self._tasks

    def get_all(self) -> dict[str, TaskInfo]:
        """Snapshot of the table; mutating it does not affect the registry."""
        with self._lock:
            return dict(self._tasks)

    def get_names(self) -> list[str]:
        with self._lock:
            return list(self._tasks)

    def count(self) -> int:
        with self._lock:
            return len(self._tasks)

    def unregister(self, name: str) -> None:
        """Remove ``name``.

        Raises:
            TaskNotFoundError: Nothing registered under ``name``
        """
        with self._lock:
            if self._tasks.pop(name, None) is None:
                raise TaskNotFoundError(name)

    def clear(self) -> None:
        with self._lock:
            self._tasks.clear()

    def __len__(self) -> int:
        return self.count()

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.has(name)
