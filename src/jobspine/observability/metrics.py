"""Prometheus metrics for task executions."""

from __future__ import annotations

import threading

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram

TASK_DURATION_BUCKETS = [0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0, 600.0]


class TaskMetrics:
    """Execution counter and duration histogram, labelled by task name.

    Example:
        >>> metrics = TaskMetrics(registry=CollectorRegistry())
        >>> metrics.observe("sync_orders", "success", 0.42)
    """

    def __init__(self, registry: CollectorRegistry | None = None, enabled: bool = True):
        self.enabled = enabled
        self.registry = registry if registry is not None else REGISTRY

        self.task_total = Counter(
            "jobspine_task_executions",
            "Total number of task executions",
            ["task_name", "status"],
            registry=self.registry,
        )
        self.task_duration = Histogram(
            "jobspine_task_duration_seconds",
            "Task execution duration in seconds",
            ["task_name"],
            buckets=TASK_DURATION_BUCKETS,
            registry=self.registry,
        )

    def observe(self, task_name: str, status: str, duration: float) -> None:
        """Count one execution and record its duration."""
        if not self.enabled:
            return
        self.task_total.labels(task_name=task_name, status=status).inc()
        self.task_duration.labels(task_name=task_name).observe(duration)


_default_metrics: TaskMetrics | None = None
_default_lock = threading.Lock()


def get_task_metrics() -> TaskMetrics:
    """Process-wide metrics on the default Prometheus registry, created lazily."""
    global _default_metrics
    with _default_lock:
        if _default_metrics is None:
            _default_metrics = TaskMetrics()
        return _default_metrics
