"""Cancellation context for task invocations.

A ``TaskContext`` is the single token passed to every handler. It carries
three things down the call chain:

- a cancellation signal (``cancel()`` / ``done`` / ``wait()``),
- an optional deadline, enforced by a timer that cancels the context with
  ``DeadlineExceeded`` when it elapses,
- the invocation's ``LogWriter``, if one was opened.

Contexts form a tree. A child created with ``with_cancel()``,
``with_timeout()`` or ``with_log_writer()`` is cancelled when its parent is,
inherits the parent's deadline when that is earlier than its own, and
inherits the parent's log writer unless it sets one. Cancelling a child
never affects the parent.

Example:
    >>> root = TaskContext()
    >>> with root.with_timeout(0.5) as ctx:
    ...     if ctx.wait(1.0):
    ...         raise ctx.error
    Traceback (most recent call last):
    ...
    jobspine.core.errors.DeadlineExceeded: context deadline exceeded

Tags:
    jobspine, context, cancellation, deadline

Doc-Types:
    api-reference
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from typing import TYPE_CHECKING

from jobspine.core.errors import Cancelled, ContextError, DeadlineExceeded

if TYPE_CHECKING:
    from jobspine.joblog.writer import LogWriter


class TaskContext:
    """Thread-safe cancellation context with an optional deadline and log writer."""

    def __init__(
        self,
        parent: TaskContext | None = None,
        *,
        deadline: float | None = None,
        log_writer: LogWriter | None = None,
    ):
        """Create a context.

        Args:
            parent: Context to inherit cancellation, deadline and log writer from
            deadline: Absolute deadline on the ``time.monotonic()`` clock
            log_writer: Log writer for this invocation (overrides the parent's)
        """
        self._parent = parent
        self._lock = threading.Lock()
        self._done = threading.Event()
        self._error: ContextError | None = None
        self._callbacks: list[Callable[[], None]] = []
        self._timer: threading.Timer | None = None
        self._log_writer = log_writer

        if parent is not None and parent.deadline is not None:
            deadline = parent.deadline if deadline is None else min(deadline, parent.deadline)
        self._deadline = deadline

        if parent is not None:
            parent.add_done_callback(self._on_parent_done)

        if deadline is not None and not self._done.is_set():
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                self._expire()
            else:
                timer = threading.Timer(remaining, self._expire)
                timer.daemon = True
                with self._lock:
                    if not self._done.is_set():
                        self._timer = timer
                        timer.start()

    @classmethod
    def background(cls) -> TaskContext:
        """Root context that is only done when explicitly cancelled."""
        return cls()

    # ── State ────────────────────────────────────────────────────────────

    @property
    def done(self) -> bool:
        """True once the context is cancelled or its deadline has passed."""
        return self._done.is_set()

    @property
    def error(self) -> ContextError | None:
        """``Cancelled`` or ``DeadlineExceeded`` once done, else None."""
        with self._lock:
            return self._error

    @property
    def deadline(self) -> float | None:
        """Effective absolute deadline (monotonic clock), if any."""
        return self._deadline

    def remaining(self) -> float | None:
        """Seconds until the deadline, or None without one."""
        if self._deadline is None:
            return None
        return self._deadline - time.monotonic()

    @property
    def log_writer(self) -> LogWriter | None:
        """The invocation's log writer, looked up through the parent chain."""
        if self._log_writer is not None:
            return self._log_writer
        if self._parent is not None:
            return self._parent.log_writer
        return None

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the context is done or ``timeout`` elapses.

        Returns:
            True if the context is done
        """
        return self._done.wait(timeout)

    def raise_if_done(self) -> None:
        """Raise the context error if the context is done."""
        error = self.error
        if error is not None:
            raise error

    # ── Derivation ───────────────────────────────────────────────────────

    def with_cancel(self) -> TaskContext:
        """Child context that can be cancelled independently."""
        return TaskContext(self)

    def with_timeout(self, seconds: float) -> TaskContext:
        """Child context whose deadline is ``seconds`` from now."""
        if seconds < 0:
            raise ValueError(f"Timeout must be non-negative, got {seconds}")
        return TaskContext(self, deadline=time.monotonic() + seconds)

    def with_log_writer(self, writer: LogWriter | None) -> TaskContext:
        """Child context carrying ``writer`` as the invocation log writer."""
        return TaskContext(self, log_writer=writer)

    # ── Cancellation ─────────────────────────────────────────────────────

    def cancel(self) -> None:
        """Cancel this context and all of its children. Idempotent."""
        self._finish(Cancelled())

    def add_done_callback(self, fn: Callable[[], None]) -> None:
        """Call ``fn`` once the context is done (immediately if it already is)."""
        with self._lock:
            if not self._done.is_set():
                self._callbacks.append(fn)
                return
        fn()

    def remove_done_callback(self, fn: Callable[[], None]) -> None:
        with self._lock:
            try:
                self._callbacks.remove(fn)
            except ValueError:
                pass

    def _expire(self) -> None:
        self._finish(DeadlineExceeded())

    def _on_parent_done(self) -> None:
        self._finish(self._parent.error or Cancelled())

    def _finish(self, error: ContextError) -> None:
        with self._lock:
            if self._done.is_set():
                return
            self._error = error
            self._done.set()
            callbacks, self._callbacks = self._callbacks, []
            timer, self._timer = self._timer, None

        if timer is not None:
            timer.cancel()
        if self._parent is not None:
            self._parent.remove_done_callback(self._on_parent_done)
        for fn in callbacks:
            fn()

    # ── Context manager ──────────────────────────────────────────────────

    def __enter__(self) -> TaskContext:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cancel()

    def __repr__(self) -> str:
        state = type(self._error).__name__ if self._error else "active"
        return f"TaskContext(state={state}, deadline={self._deadline})"
