"""jobspine: execution-side runtime for scheduler-dispatched jobs.

Register plain ``handler(ctx, param)`` functions with a ``JobExecutor``;
the executor wraps them in middleware, writes a per-invocation job log
the scheduler can page through, and reports each outcome as result text.

Example:
    >>> from jobspine import ExecutorOptions, InProcessRuntime, JobExecutor
    >>> runtime = InProcessRuntime()
    >>> executor = JobExecutor(ExecutorOptions(server_addr="http://sched", registry_key="orders"), runtime)
    >>> executor.register_task("noop", lambda ctx, param: None)
    >>> runtime.trigger("noop", RunRequest(log_id=1))
    'SUCCESS'
"""

__version__ = "0.1.0"

# Execution first: jobspine.joblog depends on jobspine.execution.models
from jobspine.execution import (
    ExecutorRuntime,
    InProcessRuntime,
    JobExecutor,
    LogRequest,
    LogResponse,
    RunRequest,
    TaskState,
    apply_middlewares,
    chain,
    recovery_middleware,
    retry_middleware,
    timeout_middleware,
)
from jobspine.core import TaskContext, TaskError
from jobspine.core.config import ExecutorOptions, ExecutorSettings, get_settings
from jobspine.joblog import LogWriter, handle_log_request, read_log_page
from jobspine.observability import configure_logging

__all__ = [
    "__version__",
    "JobExecutor",
    "ExecutorRuntime",
    "InProcessRuntime",
    "TaskState",
    "TaskContext",
    "TaskError",
    "ExecutorOptions",
    "ExecutorSettings",
    "get_settings",
    "RunRequest",
    "LogRequest",
    "LogResponse",
    "chain",
    "apply_middlewares",
    "recovery_middleware",
    "timeout_middleware",
    "retry_middleware",
    "LogWriter",
    "read_log_page",
    "handle_log_request",
    "configure_logging",
]
