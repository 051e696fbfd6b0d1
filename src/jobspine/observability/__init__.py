"""Observability package for jobspine.

Key components:
- logging: structlog configuration and invocation context binding
- relay: quiet-mode relay for the external runtime's output
- metrics: Prometheus counters/histograms for task executions
- tracing: OpenTelemetry tracer setup
"""

from .logging import bind_task_context, configure_logging, get_logger
from .metrics import TaskMetrics, get_task_metrics
from .relay import RuntimeOutputRelay, should_filter_heartbeat_log
from .tracing import configure_tracing, get_tracer

__all__ = [
    # Logging
    "configure_logging",
    "get_logger",
    "bind_task_context",
    "RuntimeOutputRelay",
    "should_filter_heartbeat_log",
    # Metrics
    "TaskMetrics",
    "get_task_metrics",
    # Tracing
    "configure_tracing",
    "get_tracer",
]
