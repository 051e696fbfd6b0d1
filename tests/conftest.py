"""
Shared pytest fixtures for jobspine tests.

This module provides:
- Isolated Prometheus metrics per test
- An in-memory OpenTelemetry tracer for span assertions
- Job log directory and log file helpers
- Settings cache cleanup

Usage:
    Fixtures are auto-discovered by pytest; request them as arguments.

    def test_something(task_metrics, tracer, span_exporter, log_dir):
        ...
"""

import os
import time
from collections.abc import Generator
from pathlib import Path

import pytest
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from prometheus_client import CollectorRegistry

from jobspine.core.config import clear_settings_cache
from jobspine.observability.metrics import TaskMetrics


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Mark everything that is not already marked slow as a unit test."""
    for item in items:
        if "slow" not in item.keywords:
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Observability
# =============================================================================


@pytest.fixture
def metrics_registry() -> CollectorRegistry:
    return CollectorRegistry()


@pytest.fixture
def task_metrics(metrics_registry: CollectorRegistry) -> TaskMetrics:
    """TaskMetrics bound to a private registry."""
    return TaskMetrics(registry=metrics_registry)


@pytest.fixture
def span_exporter() -> InMemorySpanExporter:
    return InMemorySpanExporter()


@pytest.fixture
def tracer(span_exporter: InMemorySpanExporter):
    """Tracer whose finished spans land in ``span_exporter`` synchronously."""
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(span_exporter))
    yield provider.get_tracer("jobspine-test")
    provider.shutdown()


@pytest.fixture
def sample_value(metrics_registry: CollectorRegistry):
    """Read one sample from the test registry, 0.0 when absent."""

    def read(name: str, **labels: str) -> float:
        value = metrics_registry.get_sample_value(name, labels)
        return 0.0 if value is None else value

    return read


# =============================================================================
# Job logs
# =============================================================================


@pytest.fixture
def log_dir(tmp_path: Path) -> Path:
    path = tmp_path / "joblogs"
    path.mkdir()
    return path


@pytest.fixture
def write_lines():
    """Write ``line-0`` .. ``line-<count-1>``, newline-terminated."""

    def write(path: Path, count: int) -> Path:
        path.write_text("".join(f"line-{i}\n" for i in range(count)), encoding="utf-8")
        return path

    return write


@pytest.fixture
def age_file():
    """Backdate a file's modification time by ``days``."""

    def backdate(path: Path, days: float) -> None:
        stamp = time.time() - days * 86400
        os.utime(path, (stamp, stamp))

    return backdate


# =============================================================================
# Settings
# =============================================================================


@pytest.fixture(autouse=True)
def _clear_settings() -> Generator[None, None, None]:
    clear_settings_cache()
    yield
    clear_settings_cache()
