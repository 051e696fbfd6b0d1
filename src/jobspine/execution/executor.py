"""Job executor facade.

Manifesto:
    Task authors write ``handler(ctx, param)`` and register it by name.
    Everything between the scheduler's dispatch and that call belongs here:
    the middleware chain, the per-invocation job log file, the trace span,
    metrics, result text for the scheduler, and health bookkeeping.

Architecture:
    ::

        ┌───────────────┐ dispatch ┌──────────────────────┐
        │ ExecutorRuntime│────────►│ runtime task (closure) │
        └───────────────┘          │  open LogWriter        │
               ▲                   │  execute_task_with_trace
               │ log query         │  record last error     │
               │                   │  close LogWriter       │
        handle_log_request         └──────────┬───────────┘
                                              │ effective handler
                                              ▼
                                   TaskRegistry ◄── apply_middlewares

    Run state:  Stopped ──run()──► Running ──stop()──► Stopped
    Task state: REGISTERED ──dispatch──► INVOKED ──return──► COMPLETED
                COMPLETED ──dispatch──► INVOKED

    Registration is rejected while Running.

Example:
    >>> runtime = InProcessRuntime()
    >>> executor = JobExecutor(ExecutorOptions(server_addr="http://sched",
    ...                                        registry_key="orders",
    ...                                        log_path="/var/log/jobs"), runtime)
    >>> executor.register_task("sync_orders", sync_orders)
    >>> runtime.trigger("sync_orders", RunRequest(log_id=7, executor_params="full"))
    'SUCCESS'

Tags:
    jobspine, execution, executor, facade, lifecycle

Doc-Types:
    api-reference
"""

from __future__ import annotations

import os
import threading
from enum import Enum

from opentelemetry import trace

from jobspine.core.config.options import ExecutorOptions
from jobspine.core.config.settings import ExecutorSettings
from jobspine.core.context import TaskContext
from jobspine.core.errors import (
    ExecutorStateError,
    LogWriterError,
    TaskNotFoundError,
)
from jobspine.execution.health import HealthStatus, HealthTracker
from jobspine.execution.middleware import Handler, Middleware, apply_middlewares
from jobspine.execution.models import LogRequest, LogResponse, RunRequest
from jobspine.execution.registry import TaskRegistry
from jobspine.execution.runtime import ExecutorRuntime
from jobspine.execution.wrapper import execute_task_with_trace
from jobspine.joblog.query import handle_log_request
from jobspine.joblog.retention import LogRetentionSweeper
from jobspine.joblog.writer import LogWriter, open_log_writer
from jobspine.observability.logging import get_logger
from jobspine.observability.metrics import TaskMetrics
from jobspine.observability.relay import RuntimeOutputRelay

logger = get_logger(__name__)


class TaskState(str, Enum):
    """Lifecycle of a registered task."""

    REGISTERED = "registered"
    INVOKED = "invoked"
    COMPLETED = "completed"


class _TaskTracker:
    """In-flight and completion counters for one task."""

    __slots__ = ("in_flight", "completed")

    def __init__(self):
        self.in_flight = 0
        self.completed = 0


class JobExecutor:
    """Execution-side runtime for scheduler-dispatched jobs."""

    def __init__(
        self,
        options: ExecutorOptions,
        runtime: ExecutorRuntime,
        *,
        metrics: TaskMetrics | None = None,
        tracer: trace.Tracer | None = None,
    ):
        """Validate options and plug into ``runtime``.

        Raises:
            ConfigError: Options are incomplete or invalid
        """
        options.validate()

        self.options = options
        self.runtime = runtime
        self.metrics = metrics
        self.tracer = tracer
        self.registry = TaskRegistry()
        self.health = HealthTracker()

        self._trackers: dict[str, _TaskTracker] = {}
        self._trackers_lock = threading.Lock()
        # Held across the running check and registration, and by run() while starting
        self._registration_lock = threading.Lock()
        self._sweeper: LogRetentionSweeper | None = None
        self._log_dir = ""

        if options.log_path:
            try:
                os.makedirs(options.log_path, mode=0o755, exist_ok=True)
            except OSError as e:
                logger.warning("executor.log_dir_failed", log_path=options.log_path, error=str(e))
            else:
                self._log_dir = options.log_path
                runtime.set_log_handler(self._handle_log_request)
                if options.log_retention_days > 0:
                    self._sweeper = LogRetentionSweeper(
                        self._log_dir,
                        options.log_retention_days,
                        interval=options.retention_interval,
                    )
                    self._sweeper.start()

        self.output = RuntimeOutputRelay(quiet=options.quiet_mode)
        runtime.set_output(self.output)

    @classmethod
    def from_settings(
        cls,
        settings: ExecutorSettings,
        runtime: ExecutorRuntime,
        middlewares: list[Middleware] | None = None,
        **kwargs,
    ) -> JobExecutor:
        """Build an executor from environment settings.

        Raises:
            ConfigError: Settings disabled or incomplete
        """
        options = settings.to_options()
        if middlewares:
            options.middlewares = list(middlewares)
        return cls(options, runtime, **kwargs)

    @property
    def log_dir(self) -> str:
        """Job log directory in use; empty when file logs are disabled."""
        return self._log_dir

    # ── Registration ─────────────────────────────────────────────────────

    def register_task(self, name: str, handler: Handler) -> None:
        """Register ``handler`` under ``name``.

        Raises:
            ExecutorStateError: The executor is already running
            RegistrationError: Empty name, missing handler or duplicate name
        """
        with self._registration_lock:
            if self.health.running:
                raise ExecutorStateError("cannot register task after executor started")

            effective = apply_middlewares(handler, self.options.middlewares)
            self.registry.register(name, effective)
            with self._trackers_lock:
                self._trackers[name] = _TaskTracker()

            self.runtime.register_task(name, self._make_runtime_task(name, effective))
        logger.debug("executor.task_registered", task_name=name)

    def _make_runtime_task(self, name: str, effective: Handler):
        def recording(ctx: TaskContext, param: str) -> None:
            try:
                effective(ctx, param)
            except Exception as e:
                self.health.record_error(e)
                raise

        def runtime_task(ctx: TaskContext, request: RunRequest | None) -> str:
            param = request.executor_params if request is not None else ""
            log_id = request.log_id if request is not None else 0

            writer = self._open_writer(log_id)
            self._enter(name)
            try:
                with ctx.with_log_writer(writer) as task_ctx:
                    return execute_task_with_trace(
                        task_ctx,
                        name,
                        param,
                        log_id,
                        recording,
                        self.options.enable_trace,
                        tracer=self.tracer,
                        metrics=self.metrics,
                    )
            finally:
                self._leave(name)
                if writer is not None:
                    writer.close()

        runtime_task.__name__ = f"runtime_task_{name}"
        return runtime_task

    def _open_writer(self, log_id: int) -> LogWriter | None:
        if not self._log_dir or log_id <= 0:
            return None
        try:
            return open_log_writer(self._log_dir, log_id)
        except LogWriterError as e:
            logger.warning("executor.log_writer_failed", log_id=log_id, error=str(e))
            return None

    def _handle_log_request(self, request: LogRequest) -> LogResponse:
        return handle_log_request(request, self._log_dir)

    # ── Task state ───────────────────────────────────────────────────────

    def _enter(self, name: str) -> None:
        with self._trackers_lock:
            self._trackers[name].in_flight += 1

    def _leave(self, name: str) -> None:
        with self._trackers_lock:
            tracker = self._trackers[name]
            tracker.in_flight -= 1
            tracker.completed += 1

    def task_state(self, name: str) -> TaskState:
        """Current lifecycle state of a registered task.

        Raises:
            TaskNotFoundError: Nothing registered under ``name``
        """
        with self._trackers_lock:
            tracker = self._trackers.get(name)
            if tracker is None:
                raise TaskNotFoundError(name)
            if tracker.in_flight > 0:
                return TaskState.INVOKED
            if tracker.completed > 0:
                return TaskState.COMPLETED
            return TaskState.REGISTERED

    # ── Lifecycle ────────────────────────────────────────────────────────

    def run(self) -> None:
        """Start serving dispatches; blocks until ``stop()``.

        Raises:
            ExecutorStateError: Already running
        """
        with self._registration_lock:
            self.health.mark_started()
        if self._sweeper is not None:
            self._sweeper.start()

        logger.info(
            "executor.started",
            server_addr=self.options.server_addr,
            registry_key=self.options.registry_key,
            executor_port=self.options.executor_port,
            executor_ip=self.options.executor_ip,
            task_count=self.registry.count(),
            trace_enabled=self.options.enable_trace,
        )
        task_names = self.registry.get_names()
        if task_names:
            logger.info("executor.tasks_registered", task_names=task_names, registry_key=self.options.registry_key)

        try:
            self.runtime.run()
        except Exception as e:
            self.health.record_error(e)
            self.health.mark_stopped()
            raise

    def stop(self) -> None:
        """Stop serving. No-op when already stopped."""
        if not self.health.mark_stopped():
            return
        logger.info("executor.stopping")
        self.runtime.stop()
        if self._sweeper is not None:
            self._sweeper.stop()

    def close(self) -> None:
        """Stop, shut down the retention sweeper and flush the output relay."""
        self.stop()
        if self._sweeper is not None:
            self._sweeper.stop()
        self.output.close()

    def is_running(self) -> bool:
        return self.health.running

    def get_task_names(self) -> list[str]:
        return self.registry.get_names()

    def health_status(self) -> HealthStatus:
        return self.health.snapshot(task_count=self.registry.count())

    def __enter__(self) -> JobExecutor:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
