"""Task middleware: composable interceptors around a handler.

Manifesto:
    Cross-cutting behaviour (panic containment, time limits, client-side
    retries) should not live inside every task handler. A middleware is a
    plain function ``Handler -> Handler``; the executor composes the
    configured list once at registration and stores the result.

Architecture:
    ::

        chain(m1, m2, m3)(handler) == m1(m2(m3(handler)))

        invocation ──► m1 ──► m2 ──► m3 ──► handler
        result     ◄── m1 ◄── m2 ◄── m3 ◄──

    The first middleware is the outermost wrapper: it sees the invocation
    first and the outcome last. Put ``recovery_middleware()`` first so it
    also contains failures raised by the timeout and retry layers.

Built-ins:
    - ``recovery_middleware()``: unchecked exceptions become ``PanicError``
    - ``timeout_middleware(seconds)``: race the handler against a deadline
    - ``retry_middleware(max_attempts, backoff)``: re-run failed attempts
      with exponential backoff

Examples:
    >>> handler = apply_middlewares(
    ...     sync_orders,
    ...     [recovery_middleware(), timeout_middleware(30.0), retry_middleware(2, 1.0)],
    ... )
    >>> handler(TaskContext(), "param")

Tags:
    jobspine, execution, middleware, retry, timeout, recovery

Doc-Types:
    api-reference
"""

from __future__ import annotations

import contextvars
import functools
import threading
from collections.abc import Callable, Iterator, Sequence
from concurrent.futures import Future

from jobspine.core.context import TaskContext
from jobspine.core.errors import PanicError, TaskError
from jobspine.observability.logging import get_logger

logger = get_logger(__name__)

type Handler = Callable[[TaskContext, str], None]
type Middleware = Callable[[Handler], Handler]


# ── Composition ──────────────────────────────────────────────────────────


def chain(*middlewares: Middleware) -> Middleware:
    """Compose middlewares into one; the first argument is the outermost."""

    def composed(handler: Handler) -> Handler:
        for middleware in reversed(middlewares):
            handler = middleware(handler)
        return handler

    return composed


def apply_middlewares(handler: Handler, middlewares: Sequence[Middleware]) -> Handler:
    """Wrap ``handler`` with ``middlewares``; returns it unchanged for an empty list."""
    if not middlewares:
        return handler
    return chain(*middlewares)(handler)


# ── Recovery ─────────────────────────────────────────────────────────────


def recovery_middleware() -> Middleware:
    """Convert unchecked exceptions escaping the handler into ``PanicError``.

    ``TaskError`` subclasses pass through unchanged. ``KeyboardInterrupt``
    and ``SystemExit`` are never intercepted.
    """

    def middleware(next_handler: Handler) -> Handler:
        @functools.wraps(next_handler)
        def handler(ctx: TaskContext, param: str) -> None:
            try:
                next_handler(ctx, param)
            except TaskError:
                raise
            except Exception as e:
                logger.error("task.panic_recovered", error=f"{type(e).__name__}: {e}", exc_info=True)
                raise PanicError(e) from e

        return handler

    return middleware


# ── Timeout ──────────────────────────────────────────────────────────────


def timeout_middleware(seconds: float) -> Middleware:
    """Bound each invocation to ``seconds``.

    The handler runs on a daemon worker thread with the caller's context
    variables, and receives a child context whose deadline is ``seconds``
    away. If the deadline (or a parent cancellation) wins the race, the
    caller gets ``DeadlineExceeded`` (or ``Cancelled``) immediately. The
    worker cannot be killed: it keeps running until the handler returns,
    and its result is discarded.
    """
    if seconds < 0:
        raise ValueError(f"Timeout must be non-negative, got {seconds}")

    def middleware(next_handler: Handler) -> Handler:
        @functools.wraps(next_handler)
        def handler(ctx: TaskContext, param: str) -> None:
            with ctx.with_timeout(seconds) as child:
                outcome: Future[None] = Future()
                wake = threading.Event()
                outcome.add_done_callback(lambda _f: wake.set())
                child.add_done_callback(wake.set)

                def run() -> None:
                    outcome.set_running_or_notify_cancel()
                    try:
                        next_handler(child, param)
                    except BaseException as e:
                        outcome.set_exception(e)
                    else:
                        outcome.set_result(None)

                worker = threading.Thread(
                    target=contextvars.copy_context().run,
                    args=(run,),
                    name="task-timeout-worker",
                    daemon=True,
                )
                worker.start()
                wake.wait()

                if outcome.done():
                    outcome.result()
                    return

                logger.warning(
                    "task.timeout.abandoned",
                    timeout=seconds,
                    reason=str(child.error),
                    worker=worker.name,
                )
                raise child.error

        return handler

    return middleware


# ── Retry ────────────────────────────────────────────────────────────────


def backoff_schedule(base: float, max_delay: float | None = None) -> Iterator[float]:
    """Yield ``base, 2*base, 4*base, ...``, each capped at ``max_delay`` if given.

    Example:
        >>> from itertools import islice
        >>> list(islice(backoff_schedule(0.1, max_delay=0.3), 4))
        [0.1, 0.2, 0.3, 0.3]
    """
    if base < 0:
        raise ValueError(f"Backoff must be non-negative, got {base}")
    delay = base
    while True:
        yield delay if max_delay is None else min(delay, max_delay)
        delay *= 2


def retry_middleware(max_attempts: int, backoff: float, max_backoff: float | None = None) -> Middleware:
    """Re-run a failing handler up to ``max_attempts`` more times.

    Failures (``TaskError``) are retried after ``backoff``, ``2*backoff``, ...
    seconds. The wait is interrupted by cancellation of the invocation
    context, and a failure observed while the context is done aborts with
    the context error. When every attempt fails, the last error is raised.

    Only ``TaskError`` is retried. Any other exception, including builtins
    such as ``ConnectionError`` or ``TimeoutError``, is treated as a panic
    and propagates on the first attempt. Handlers that want transient I/O
    failures retried must convert them::

        try:
            client.fetch()
        except ConnectionError as e:
            raise TaskError(f"fetch failed: {e}") from e

    Args:
        max_attempts: Retries after the first attempt (0 disables retrying)
        backoff: Delay before the first retry, in seconds
        max_backoff: Optional cap on any single delay
    """
    if max_attempts < 0:
        raise ValueError(f"max_attempts must be non-negative, got {max_attempts}")
    if backoff < 0:
        raise ValueError(f"Backoff must be non-negative, got {backoff}")

    def middleware(next_handler: Handler) -> Handler:
        @functools.wraps(next_handler)
        def handler(ctx: TaskContext, param: str) -> None:
            delays = backoff_schedule(backoff, max_backoff)
            last_error: TaskError | None = None

            for attempt in range(max_attempts + 1):
                if last_error is not None:
                    delay = next(delays)
                    logger.warning(
                        "task.retry",
                        attempt=attempt,
                        max_attempts=max_attempts,
                        delay=delay,
                        error=str(last_error),
                    )
                    if ctx.wait(delay):
                        raise ctx.error from last_error

                try:
                    next_handler(ctx, param)
                    return
                except TaskError as e:
                    last_error = e
                    if ctx.done:
                        raise ctx.error from e

            assert last_error is not None
            raise last_error

        return handler

    return middleware
