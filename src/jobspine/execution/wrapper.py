"""Trace/log/metrics wrapper around one task invocation.

Every dispatched job goes through ``execute_task_with_trace``:

1. open a ``job.task.execute`` span (when tracing is enabled)
2. write "started" to the invocation's job log and emit ``task.started``
3. run the effective handler and time it
4. count the execution and observe its duration
5. write "completed"/"failed" to the job log, emit ``task.completed`` /
   ``task.failed`` and set the span status

The scheduler learns the outcome from the returned text only: ``"SUCCESS"``
or ``"FAIL: <message>"``. Handler failures are therefore never raised to
the caller.
"""

from __future__ import annotations

import time
from contextlib import nullcontext

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

from jobspine.core.context import TaskContext
from jobspine.execution.middleware import Handler
from jobspine.observability.logging import bind_task_context, get_logger
from jobspine.observability.metrics import TaskMetrics, get_task_metrics
from jobspine.observability.tracing import get_tracer

logger = get_logger(__name__)

SPAN_NAME = "job.task.execute"
RESULT_SUCCESS = "SUCCESS"
RESULT_FAIL_PREFIX = "FAIL: "


def format_duration(seconds: float) -> str:
    """Human-readable duration: ``850µs``, ``12.5ms``, ``3.2s``, ``2m5.0s``."""
    if seconds < 1e-3:
        return f"{seconds * 1e6:.0f}µs"
    if seconds < 1:
        return f"{seconds * 1e3:.1f}ms"
    if seconds < 60:
        return f"{seconds:.3f}s"
    minutes, rest = divmod(seconds, 60)
    return f"{int(minutes)}m{rest:.1f}s"


def execute_task_with_trace(
    ctx: TaskContext,
    task_name: str,
    param: str,
    log_id: int,
    handler: Handler,
    enable_trace: bool,
    *,
    tracer: trace.Tracer | None = None,
    metrics: TaskMetrics | None = None,
) -> str:
    """Run ``handler`` once and encode its outcome as result text.

    Args:
        ctx: Invocation context; its ``log_writer`` (if any) receives the
            started/completed/failed lines
        task_name: Registered task name
        param: Job parameter passed through to the handler
        log_id: Scheduler-assigned invocation id
        handler: Effective (middleware-wrapped) handler
        enable_trace: Open a span around the invocation
        tracer: Tracer to use (defaults to the global jobspine tracer)
        metrics: Metrics sink (defaults to the process-wide instance)

    Returns:
        ``"SUCCESS"`` or ``"FAIL: <error>"``
    """
    metrics = metrics if metrics is not None else get_task_metrics()
    writer = ctx.log_writer

    if enable_trace:
        span_cm = (tracer or get_tracer()).start_as_current_span(
            SPAN_NAME,
            attributes={
                "job.task.name": task_name,
                "job.task.param": param,
                "job.log.id": log_id,
            },
            record_exception=False,
            set_status_on_exception=False,
        )
    else:
        span_cm = nullcontext(None)

    with span_cm as span, bind_task_context(task_name, log_id):
        if writer is not None:
            writer.write("Task [%s] started, param: %s", task_name, param)
        logger.info("task.started", param=param)

        start = time.perf_counter()
        error: Exception | None = None
        try:
            handler(ctx, param)
        except Exception as e:
            error = e
        duration = time.perf_counter() - start

        metrics.observe(task_name, "error" if error is not None else "success", duration)

        if error is not None:
            if writer is not None:
                writer.write("Task [%s] failed after %s: %s", task_name, format_duration(duration), error)
            logger.error(
                "task.failed",
                param=param,
                duration_ms=round(duration * 1000, 3),
                error=str(error),
                error_type=type(error).__name__,
            )
            if span is not None:
                span.set_status(Status(StatusCode.ERROR, str(error)))
                span.record_exception(error)
                span.set_attributes({"job.task.status": "failed", "job.task.error": str(error)})
            return f"{RESULT_FAIL_PREFIX}{error}"

        if writer is not None:
            writer.write("Task [%s] completed successfully in %s", task_name, format_duration(duration))
        logger.info("task.completed", param=param, duration_ms=round(duration * 1000, 3))
        if span is not None:
            span.set_status(Status(StatusCode.OK))
            span.set_attributes(
                {"job.task.status": "success", "job.task.duration_ms": float(int(duration * 1000))}
            )
        return RESULT_SUCCESS
