"""Tests for the task cancellation context."""

import threading
import time

import pytest

from jobspine.core.context import TaskContext
from jobspine.core.errors import Cancelled, DeadlineExceeded


class TestCancellation:
    """Tests for cancel() and the done state."""

    def test_new_context_is_active(self):
        ctx = TaskContext()
        assert not ctx.done
        assert ctx.error is None
        assert ctx.deadline is None
        assert ctx.remaining() is None

    def test_cancel_sets_error(self):
        ctx = TaskContext()
        ctx.cancel()
        assert ctx.done
        assert isinstance(ctx.error, Cancelled)
        assert str(ctx.error) == "context canceled"

    def test_cancel_is_idempotent(self):
        ctx = TaskContext()
        ctx.cancel()
        first = ctx.error
        ctx.cancel()
        assert ctx.error is first

    def test_raise_if_done(self):
        ctx = TaskContext()
        ctx.raise_if_done()
        ctx.cancel()
        with pytest.raises(Cancelled):
            ctx.raise_if_done()

    def test_wait_returns_true_once_cancelled(self):
        ctx = TaskContext()
        threading.Timer(0.02, ctx.cancel).start()
        assert ctx.wait(2.0) is True

    def test_wait_times_out(self):
        ctx = TaskContext()
        assert ctx.wait(0.01) is False

    def test_context_manager_cancels_on_exit(self):
        with TaskContext() as ctx:
            assert not ctx.done
        assert isinstance(ctx.error, Cancelled)


class TestTree:
    """Tests for parent/child propagation."""

    def test_parent_cancel_propagates_to_child(self):
        parent = TaskContext()
        child = parent.with_cancel()
        grandchild = child.with_cancel()
        parent.cancel()
        assert child.done
        assert grandchild.done
        assert isinstance(grandchild.error, Cancelled)

    def test_child_cancel_does_not_affect_parent(self):
        parent = TaskContext()
        child = parent.with_cancel()
        child.cancel()
        assert child.done
        assert not parent.done

    def test_child_of_done_parent_is_done(self):
        parent = TaskContext()
        parent.cancel()
        assert parent.with_cancel().done

    def test_done_callbacks_fire_once(self):
        ctx = TaskContext()
        calls = []
        ctx.add_done_callback(lambda: calls.append(1))
        ctx.cancel()
        ctx.cancel()
        assert calls == [1]

    def test_callback_on_done_context_runs_immediately(self):
        ctx = TaskContext()
        ctx.cancel()
        calls = []
        ctx.add_done_callback(lambda: calls.append(1))
        assert calls == [1]

    def test_removed_callback_not_called(self):
        ctx = TaskContext()
        calls = []

        def callback():
            calls.append(1)

        ctx.add_done_callback(callback)
        ctx.remove_done_callback(callback)
        ctx.cancel()
        assert calls == []


class TestDeadline:
    """Tests for with_timeout()."""

    def test_deadline_expires(self):
        ctx = TaskContext().with_timeout(0.02)
        assert ctx.wait(2.0)
        assert isinstance(ctx.error, DeadlineExceeded)
        assert str(ctx.error) == "context deadline exceeded"

    def test_zero_timeout_is_immediately_done(self):
        ctx = TaskContext().with_timeout(0)
        assert ctx.done
        assert isinstance(ctx.error, DeadlineExceeded)

    def test_negative_timeout_rejected(self):
        with pytest.raises(ValueError):
            TaskContext().with_timeout(-1)

    def test_remaining_decreases(self):
        ctx = TaskContext().with_timeout(5.0)
        remaining = ctx.remaining()
        assert 4.5 < remaining <= 5.0
        ctx.cancel()

    def test_child_inherits_earlier_parent_deadline(self):
        parent = TaskContext().with_timeout(0.05)
        child = parent.with_timeout(10.0)
        assert child.deadline == parent.deadline
        assert child.wait(2.0)
        assert isinstance(child.error, DeadlineExceeded)

    def test_child_keeps_earlier_own_deadline(self):
        parent = TaskContext().with_timeout(10.0)
        child = parent.with_timeout(0.02)
        assert child.deadline < parent.deadline
        assert child.wait(2.0)
        assert not parent.done
        parent.cancel()

    def test_cancel_before_deadline_reports_cancelled(self):
        ctx = TaskContext().with_timeout(10.0)
        ctx.cancel()
        time.sleep(0.01)
        assert isinstance(ctx.error, Cancelled)


class TestLogWriterField:
    """Tests for the log_writer field threading."""

    def test_no_writer_by_default(self):
        assert TaskContext().log_writer is None

    def test_child_inherits_writer(self):
        writer = object()
        ctx = TaskContext().with_log_writer(writer)
        assert ctx.log_writer is writer
        assert ctx.with_cancel().with_timeout(1.0).log_writer is writer

    def test_child_overrides_writer(self):
        outer, inner = object(), object()
        ctx = TaskContext().with_log_writer(outer).with_log_writer(inner)
        assert ctx.log_writer is inner
