"""Validated option set consumed by :class:`~jobspine.execution.executor.JobExecutor`."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from jobspine.core.errors import InvalidConfigError, MissingConfigError

DEFAULT_EXECUTOR_PORT = "9999"
DEFAULT_LOG_RETENTION_DAYS = 30
DEFAULT_RETENTION_INTERVAL_SECONDS = 3600.0


@dataclass
class ExecutorOptions:
    """Executor options.

    Attributes:
        server_addr: Scheduling center address
        registry_key: Executor AppName registered with the scheduler
        executor_port: Port the runtime listens on
        access_token: Shared secret for the scheduler, optional
        executor_ip: Advertised IP, optional (runtime picks one if empty)
        log_path: Job log directory; empty disables job log files
        log_retention_days: Age after which job logs are swept; 0 disables
        enable_trace: Open a trace span around every invocation
        quiet_mode: Drop runtime heartbeat/registration chatter
        middlewares: Ordered middleware list, first entry is outermost
        retention_interval: Seconds between retention sweeps
    """

    server_addr: str = ""
    registry_key: str = ""
    executor_port: str = DEFAULT_EXECUTOR_PORT
    access_token: str = ""
    executor_ip: str = ""
    log_path: str = ""
    log_retention_days: int = DEFAULT_LOG_RETENTION_DAYS
    enable_trace: bool = False
    quiet_mode: bool = False
    middlewares: list[Callable[[Any], Any]] = field(default_factory=list)
    retention_interval: float = DEFAULT_RETENTION_INTERVAL_SECONDS

    def validate(self) -> None:
        """Check required fields.

        Raises:
            MissingConfigError: If server address, registry key or port is empty
            InvalidConfigError: If a numeric field is out of range
        """
        if not self.server_addr:
            raise MissingConfigError("server_addr", "server address is required")
        if not self.registry_key:
            raise MissingConfigError("registry_key", "registry key is required")
        if not self.executor_port:
            raise MissingConfigError("executor_port", "executor port is required")
        if self.log_retention_days < 0:
            raise InvalidConfigError("log_retention_days", self.log_retention_days)
        if self.retention_interval <= 0:
            raise InvalidConfigError("retention_interval", self.retention_interval)
