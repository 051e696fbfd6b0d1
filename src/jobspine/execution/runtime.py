"""Executor Runtime Protocol: the plug-in surface of the transport layer.

Manifesto:
Registering with the scheduling center, heartbeats and job dispatch belong
to an external executor runtime. The ``JobExecutor`` only needs to hand it
task callbacks, a log-query callback and an output sink, then start and
stop it. ``ExecutorRuntime`` is a ``typing.Protocol``: any object with the
right methods satisfies it, no base class required.

ARCHITECTURE
────────────
::

    ExecutorRuntime (Protocol)
      ├── .register_task(name, task)  ─ task(ctx, RunRequest) -> result text
      ├── .set_log_handler(handler)   ─ handler(LogRequest) -> LogResponse
      ├── .set_output(sink)           ─ where the runtime writes its chatter
      ├── .run()                      ─ block serving dispatches
      └── .stop()                     ─ unblock run()

    Implementations:
      InProcessRuntime  ─ in-process, synchronous (testing / local dev)

Tags:
    jobspine, execution, runtime, protocol, interface

Doc-Types:
    api-reference
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Protocol, TextIO, runtime_checkable

from jobspine.core.context import TaskContext
from jobspine.core.errors import TaskNotFoundError
from jobspine.execution.models import LogRequest, LogResponse, RunRequest

type RuntimeTask = Callable[[TaskContext, RunRequest], str]
type LogHandler = Callable[[LogRequest], LogResponse]


@runtime_checkable
class ExecutorRuntime(Protocol):
    """External executor runtime adapter."""

    def register_task(self, name: str, task: RuntimeTask) -> None:
        """Make ``task`` dispatchable under ``name``."""
        ...

    def set_log_handler(self, handler: LogHandler) -> None:
        """Install the callback answering the scheduler's log queries."""
        ...

    def set_output(self, sink: TextIO) -> None:
        """Direct the runtime's own text output to ``sink``."""
        ...

    def run(self) -> None:
        """Serve dispatches until ``stop()`` is called."""
        ...

    def stop(self) -> None:
        """Stop serving; unblocks ``run()``."""
        ...


class InProcessRuntime:
    """In-process runtime - dispatches synchronously in the caller's thread.

    Perfect for:
    - Unit tests
    - Local development

    NOT a transport: nothing registers with a scheduling center.

    Example:
        >>> runtime = InProcessRuntime()
        >>> executor = JobExecutor(options, runtime)
        >>> executor.register_task("sync_orders", sync_orders)
        >>> runtime.trigger("sync_orders", RunRequest(log_id=1, executor_params="full"))
        'SUCCESS'
    """

    def __init__(self):
        self.tasks: dict[str, RuntimeTask] = {}
        self.log_handler: LogHandler | None = None
        self.output: TextIO | None = None
        self._stopped = threading.Event()
        self._lock = threading.Lock()

    def register_task(self, name: str, task: RuntimeTask) -> None:
        with self._lock:
            self.tasks[name] = task

    def set_log_handler(self, handler: LogHandler) -> None:
        self.log_handler = handler

    def set_output(self, sink: TextIO) -> None:
        self.output = sink

    def run(self) -> None:
        self.emit("in-process runtime started")
        # A stop() issued before run() is consumed here, so run() returns at once
        self._stopped.wait()
        self._stopped.clear()

    def stop(self) -> None:
        self._stopped.set()

    # ── Test / development helpers ───────────────────────────────────────

    def trigger(self, name: str, request: RunRequest, ctx: TaskContext | None = None) -> str:
        """Dispatch ``request`` to the task registered as ``name``.

        Raises:
            TaskNotFoundError: No task registered under ``name``
        """
        with self._lock:
            task = self.tasks.get(name)
        if task is None:
            raise TaskNotFoundError(name)
        with (ctx or TaskContext()).with_cancel() as task_ctx:
            return task(task_ctx, request)

    def query_log(self, request: LogRequest) -> LogResponse:
        """Answer a log query through the installed log handler."""
        if self.log_handler is None:
            return LogResponse(code=500, msg="log handler not configured")
        return self.log_handler(request)

    def emit(self, text: str) -> None:
        """Write runtime chatter to the configured sink, one line per call."""
        if self.output is not None:
            self.output.write(text if text.endswith("\n") else text + "\n")
