"""
Structured error types for jobspine.

Every failure the executor can observe maps onto one branch of a small
typed hierarchy, so that logging, tracing and health reporting can treat
errors uniformly instead of sniffing messages.

Manifesto:
    - **Typed Error Hierarchy:** Configuration, registration, execution and
      log storage failures each get their own branch
    - **Rich Context:** Errors carry the task name and log id they belong to
    - **Error Chaining:** The original exception is preserved as ``cause``

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────────┐
        │                       JobSpineError                              │
        │  (category, context, cause)                                     │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │  ConfigError         RegistrationError      TaskError            │
        │  (CONFIG)            (REGISTRATION)         (EXECUTION)          │
        │      │                     │                    │                │
        │  MissingConfig       DuplicateTask          PanicError           │
        │  InvalidConfig       TaskNotFound           ContextError         │
        │                      ExecutorState            Cancelled          │
        │                                               DeadlineExceeded   │
        │                                                                  │
        │  JobLogError (STORAGE)                                           │
        │      LogWriterError   LogReadError ── LogFileNotFoundError       │
        └─────────────────────────────────────────────────────────────────┘

Guardrails:
    ❌ DON'T: Raise plain Exception from a task handler for expected failures
    ✅ DO: Raise TaskError; anything else is treated as a panic by Recovery

    ❌ DON'T: Let JobLogError escape into task execution
    ✅ DO: Log it and carry on, log delivery is best effort

Tags:
    error-handling, exception-hierarchy, error-context, jobspine

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """
    Standard error categories for classification and routing.

    Attributes:
        CONFIG: Missing or invalid configuration, fatal at build time
        REGISTRATION: Task registration rejected, returned to the caller
        EXECUTION: Handler failure, panic, timeout, cancellation
        STORAGE: Job log open/write/read failures
        INTERNAL: Bugs, unexpected state
        UNKNOWN: Uncategorized errors
    """

    CONFIG = "CONFIG"
    REGISTRATION = "REGISTRATION"
    EXECUTION = "EXECUTION"
    STORAGE = "STORAGE"
    INTERNAL = "INTERNAL"
    UNKNOWN = "UNKNOWN"


@dataclass
class ErrorContext:
    """
    Structured metadata context for errors.

    Attributes:
        task_name: Registered task the error belongs to
        log_id: Invocation (log) identifier assigned by the scheduler
        metadata: Additional key-value pairs
    """

    task_name: str | None = None
    log_id: int | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result: dict[str, Any] = {}
        if self.task_name is not None:
            result["task_name"] = self.task_name
        if self.log_id is not None:
            result["log_id"] = self.log_id
        if self.metadata:
            result.update(self.metadata)
        return result


class JobSpineError(Exception):
    """
    Base exception for all jobspine errors.

    Subclasses set ``default_category`` to route themselves.

    Examples:
        >>> error = JobSpineError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>

        >>> error = TaskError("import failed").with_context(task_name="sync_orders", log_id=42)
        >>> error.context.log_id
        42
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> JobSpineError:
        """Add context to this error (fluent API)."""
        for key, value in kwargs.items():
            if key != "metadata" and hasattr(self.context, key):
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(JobSpineError):
    """
    Configuration error.

    Fatal to executor construction.
    """

    default_category = ErrorCategory.CONFIG


class MissingConfigError(ConfigError):
    """Required configuration is missing."""

    def __init__(self, key: str, message: str | None = None):
        self.key = key
        super().__init__(message or f"Missing required configuration: {key}")


class InvalidConfigError(ConfigError):
    """Configuration value is invalid."""

    def __init__(self, key: str, value: Any, message: str | None = None):
        self.key = key
        self.value = value
        super().__init__(message or f"Invalid configuration for {key}: {value!r}")


# =============================================================================
# REGISTRATION ERRORS
# =============================================================================


class RegistrationError(JobSpineError):
    """Task registration or lookup rejected."""

    default_category = ErrorCategory.REGISTRATION


class DuplicateTaskError(RegistrationError):
    """A task with this name is already registered."""

    def __init__(self, name: str):
        self.task_name = name
        super().__init__(f"task {name} already registered")


class TaskNotFoundError(RegistrationError):
    """No task registered under this name."""

    def __init__(self, name: str):
        self.task_name = name
        super().__init__(f"task {name} not found")


class ExecutorStateError(RegistrationError):
    """Operation not allowed in the executor's current run state."""

    pass


# =============================================================================
# EXECUTION ERRORS
# =============================================================================


class TaskError(JobSpineError):
    """
    Task execution failure.

    Handlers raise this (or a subclass) to report an expected failure.
    """

    default_category = ErrorCategory.EXECUTION


class PanicError(TaskError):
    """An unchecked exception escaped a handler and was recovered."""

    def __init__(self, value: BaseException):
        self.value = value
        super().__init__(f"panic: {type(value).__name__}: {value}", cause=value)


class ContextError(TaskError):
    """The invocation's cancellation context is done."""

    pass


class Cancelled(ContextError):
    """The cancellation context was cancelled."""

    def __init__(self, message: str = "context canceled"):
        super().__init__(message)


class DeadlineExceeded(ContextError):
    """The cancellation context's deadline elapsed before completion."""

    def __init__(self, message: str = "context deadline exceeded"):
        super().__init__(message)


# =============================================================================
# JOB LOG ERRORS
# =============================================================================


class JobLogError(JobSpineError):
    """Job log storage error."""

    default_category = ErrorCategory.STORAGE


class LogWriterError(JobLogError):
    """The per-invocation log file could not be opened."""

    pass


class LogReadError(JobLogError):
    """A job log file could not be read."""

    pass


class LogFileNotFoundError(LogReadError):
    """The requested job log file does not exist."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"log file not found: {path}")


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def categorize_error(error: BaseException) -> ErrorCategory:
    """Get the category of an error."""
    if isinstance(error, JobSpineError):
        return error.category
    if isinstance(error, OSError):
        return ErrorCategory.STORAGE
    return ErrorCategory.UNKNOWN


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "JobSpineError",
    # Config
    "ConfigError",
    "MissingConfigError",
    "InvalidConfigError",
    # Registration
    "RegistrationError",
    "DuplicateTaskError",
    "TaskNotFoundError",
    "ExecutorStateError",
    # Execution
    "TaskError",
    "PanicError",
    "ContextError",
    "Cancelled",
    "DeadlineExceeded",
    # Job log
    "JobLogError",
    "LogWriterError",
    "LogReadError",
    "LogFileNotFoundError",
    # Utilities
    "categorize_error",
]
