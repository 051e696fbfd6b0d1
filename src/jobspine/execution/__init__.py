"""Execution package for jobspine.

Key components:
- middleware: chain composition plus recovery/timeout/retry built-ins
- registry: thread-safe task table
- wrapper: trace/log/metrics wrapper and result text for one invocation
- health: run state and health snapshots
- runtime: ExecutorRuntime protocol and the in-process runtime
- executor: JobExecutor facade tying it together
"""

from jobspine.execution.models import LogRequest, LogResponse, LogResponseContent, RunRequest
from jobspine.execution.middleware import (
    Handler,
    Middleware,
    apply_middlewares,
    backoff_schedule,
    chain,
    recovery_middleware,
    retry_middleware,
    timeout_middleware,
)
from jobspine.execution.registry import TaskInfo, TaskRegistry
from jobspine.execution.health import HealthStatus, HealthTracker
from jobspine.execution.wrapper import execute_task_with_trace
from jobspine.execution.runtime import ExecutorRuntime, InProcessRuntime

# Imported last: the executor pulls in jobspine.joblog, which needs the models above
from jobspine.execution.executor import JobExecutor, TaskState

__all__ = [
    # Models
    "RunRequest",
    "LogRequest",
    "LogResponse",
    "LogResponseContent",
    # Middleware
    "Handler",
    "Middleware",
    "chain",
    "apply_middlewares",
    "recovery_middleware",
    "timeout_middleware",
    "retry_middleware",
    "backoff_schedule",
    # Registry / health
    "TaskInfo",
    "TaskRegistry",
    "HealthStatus",
    "HealthTracker",
    # Execution
    "execute_task_with_trace",
    "ExecutorRuntime",
    "InProcessRuntime",
    "JobExecutor",
    "TaskState",
]
