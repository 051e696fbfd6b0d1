"""Tests for execute_task_with_trace."""

import re

import pytest
from opentelemetry.trace import StatusCode
from structlog.testing import capture_logs

from jobspine.core.context import TaskContext
from jobspine.core.errors import TaskError
from jobspine.execution.wrapper import execute_task_with_trace, format_duration
from jobspine.joblog.writer import LogWriter


def succeed(ctx, param):
    return None


def fail(ctx, param):
    raise TaskError("upstream unavailable")


def crash(ctx, param):
    raise RuntimeError("unexpected")


@pytest.fixture
def run(tracer, task_metrics):
    """execute_task_with_trace with the test tracer and metrics."""

    def invoke(handler, *, ctx=None, enable_trace=True, task_name="sync_orders", param="full", log_id=42):
        return execute_task_with_trace(
            ctx or TaskContext(),
            task_name,
            param,
            log_id,
            handler,
            enable_trace,
            tracer=tracer,
            metrics=task_metrics,
        )

    return invoke


class TestResultText:
    """The outcome is encoded in the returned text."""

    def test_success(self, run):
        assert run(succeed) == "SUCCESS"

    def test_task_error(self, run):
        assert run(fail) == "FAIL: upstream unavailable"

    def test_unchecked_exception_does_not_escape(self, run):
        assert run(crash) == "FAIL: unexpected"

    def test_keyboard_interrupt_escapes(self, run):
        def interrupted(ctx, param):
            raise KeyboardInterrupt

        with pytest.raises(KeyboardInterrupt):
            run(interrupted)

    def test_handler_receives_context_and_param(self, run):
        seen = {}

        def handler(ctx, param):
            seen["ctx"], seen["param"] = ctx, param

        ctx = TaskContext()
        run(handler, ctx=ctx, param="p1")
        assert seen == {"ctx": ctx, "param": "p1"}


class TestJobLog:
    """Lines written to the invocation's LogWriter."""

    def test_started_and_completed(self, run, log_dir):
        writer = LogWriter(log_dir, 42)
        ctx = TaskContext().with_log_writer(writer)

        def handler(ctx, param):
            ctx.log_writer.write("working on %s", param)

        run(handler, ctx=ctx)
        writer.close()

        lines = (log_dir / "jobhandler-42.log").read_text(encoding="utf-8").splitlines()
        assert len(lines) == 3
        assert lines[0].endswith("Task [sync_orders] started, param: full")
        assert lines[1].endswith("working on full")
        assert re.search(r"Task \[sync_orders\] completed successfully in \S+$", lines[2])

    def test_failed_line(self, run, log_dir):
        writer = LogWriter(log_dir, 42)
        run(fail, ctx=TaskContext().with_log_writer(writer))
        writer.close()

        lines = (log_dir / "jobhandler-42.log").read_text(encoding="utf-8").splitlines()
        assert lines[0].endswith("Task [sync_orders] started, param: full")
        assert re.search(r"Task \[sync_orders\] failed after \S+: upstream unavailable$", lines[1])

    def test_no_writer_no_file(self, run, log_dir):
        run(succeed)
        assert list(log_dir.iterdir()) == []


class TestStructuredLogs:
    """structlog records around the invocation."""

    def test_success_events(self, run):
        with capture_logs() as logs:
            run(succeed)
        events = [entry["event"] for entry in logs]
        assert events == ["task.started", "task.completed"]
        assert logs[0]["param"] == "full"
        assert "duration_ms" in logs[1]

    def test_failure_events(self, run):
        with capture_logs() as logs:
            run(fail)
        assert [entry["event"] for entry in logs] == ["task.started", "task.failed"]
        assert logs[1]["log_level"] == "error"
        assert logs[1]["error"] == "upstream unavailable"
        assert logs[1]["error_type"] == "TaskError"

    def test_handler_logs_carry_task_identity(self, run):
        from structlog.contextvars import get_contextvars

        seen = {}

        def handler(ctx, param):
            seen.update(get_contextvars())

        run(handler, task_name="sync_orders", log_id=42)
        assert seen == {"task_name": "sync_orders", "log_id": 42}
        assert "task_name" not in get_contextvars()


class TestMetrics:
    """Prometheus counter and histogram."""

    def test_success_counted(self, run, sample_value):
        run(succeed)
        run(succeed)
        assert sample_value("jobspine_task_executions_total", task_name="sync_orders", status="success") == 2
        assert sample_value("jobspine_task_duration_seconds_count", task_name="sync_orders") == 2

    def test_error_counted(self, run, sample_value):
        run(fail)
        assert sample_value("jobspine_task_executions_total", task_name="sync_orders", status="error") == 1
        assert sample_value("jobspine_task_executions_total", task_name="sync_orders", status="success") == 0

    def test_disabled_metrics(self, tracer, metrics_registry, sample_value):
        from jobspine.observability.metrics import TaskMetrics

        metrics = TaskMetrics(registry=metrics_registry, enabled=False)
        execute_task_with_trace(TaskContext(), "t", "", 1, succeed, True, tracer=tracer, metrics=metrics)
        assert sample_value("jobspine_task_executions_total", task_name="t", status="success") == 0


class TestTracing:
    """OpenTelemetry span around the invocation."""

    def test_success_span(self, run, span_exporter):
        run(succeed)
        (span,) = span_exporter.get_finished_spans()
        assert span.name == "job.task.execute"
        assert span.attributes["job.task.name"] == "sync_orders"
        assert span.attributes["job.task.param"] == "full"
        assert span.attributes["job.log.id"] == 42
        assert span.attributes["job.task.status"] == "success"
        assert "job.task.duration_ms" in span.attributes
        assert span.status.status_code == StatusCode.OK

    def test_failure_span(self, run, span_exporter):
        run(fail)
        (span,) = span_exporter.get_finished_spans()
        assert span.status.status_code == StatusCode.ERROR
        assert span.status.description == "upstream unavailable"
        assert span.attributes["job.task.status"] == "failed"
        assert span.attributes["job.task.error"] == "upstream unavailable"
        assert [event.name for event in span.events] == ["exception"]

    def test_trace_disabled(self, run, span_exporter):
        assert run(succeed, enable_trace=False) == "SUCCESS"
        assert span_exporter.get_finished_spans() == ()

    def test_span_is_current_inside_handler(self, run, span_exporter):
        from opentelemetry import trace

        seen = {}

        def handler(ctx, param):
            seen["span"] = trace.get_current_span()

        run(handler)
        (span,) = span_exporter.get_finished_spans()
        assert seen["span"].get_span_context().span_id == span.context.span_id


class TestFormatDuration:
    """format_duration()."""

    @pytest.mark.parametrize(
        "seconds, text",
        [
            (0.0005, "500µs"),
            (0.0125, "12.5ms"),
            (3.2, "3.200s"),
            (125.0, "2m5.0s"),
        ],
    )
    def test_units(self, seconds, text):
        assert format_duration(seconds) == text
