"""Core primitives: error hierarchy, cancellation context, configuration."""

from jobspine.core.context import TaskContext
from jobspine.core.errors import (
    Cancelled,
    ConfigError,
    ContextError,
    DeadlineExceeded,
    DuplicateTaskError,
    ErrorCategory,
    ErrorContext,
    ExecutorStateError,
    InvalidConfigError,
    JobLogError,
    JobSpineError,
    LogFileNotFoundError,
    LogReadError,
    LogWriterError,
    MissingConfigError,
    PanicError,
    RegistrationError,
    TaskError,
    TaskNotFoundError,
    categorize_error,
)

__all__ = [
    "TaskContext",
    "ErrorCategory",
    "ErrorContext",
    "JobSpineError",
    "ConfigError",
    "MissingConfigError",
    "InvalidConfigError",
    "RegistrationError",
    "DuplicateTaskError",
    "TaskNotFoundError",
    "ExecutorStateError",
    "TaskError",
    "PanicError",
    "ContextError",
    "Cancelled",
    "DeadlineExceeded",
    "JobLogError",
    "LogWriterError",
    "LogReadError",
    "LogFileNotFoundError",
    "categorize_error",
]
