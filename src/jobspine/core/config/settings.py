"""
Executor settings loaded from the environment.

``ExecutorSettings`` is the file/env facing side of configuration: every
field can be set through an ``XXL_JOB_*`` environment variable (e.g.
``XXL_JOB_SERVER_ADDR``) or a ``.env`` file. ``to_options()`` turns it into
the validated :class:`~jobspine.core.config.options.ExecutorOptions` the
executor consumes.

Tags:
    jobspine, configuration, settings, pydantic, caching, validation

Doc-Types:
    api-reference
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from jobspine.core.config.options import ExecutorOptions
from jobspine.core.errors import ConfigError, MissingConfigError


class ExecutorSettings(BaseSettings):
    """Executor configuration read from ``XXL_JOB_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="XXL_JOB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    enabled: bool = Field(default=False)

    # ── Scheduler connection ─────────────────────────────────────
    server_addr: str = Field(default="", description="Scheduling center address")
    access_token: str = Field(default="")
    registry_key: str = Field(default="", description="Executor AppName registered with the scheduler")

    # ── Executor endpoint ────────────────────────────────────────
    executor_ip: str = Field(default="")
    executor_port: str = Field(default="9999")

    # ── Job logs ─────────────────────────────────────────────────
    log_path: str = Field(default="./logs/xxl-job")
    log_retention_days: int = Field(default=30, ge=0)

    # ── Observability ────────────────────────────────────────────
    enable_trace: bool = Field(default=True)
    quiet_mode: bool = Field(default=False, description="Drop runtime heartbeat/registration chatter")

    def validate_enabled(self) -> None:
        """Check required fields. Disabled settings are always valid.

        Raises:
            MissingConfigError: If a required field is empty
        """
        if not self.enabled:
            return
        for key in ("server_addr", "registry_key", "executor_port"):
            if not getattr(self, key):
                raise MissingConfigError(key, f"xxl-job {key} is required")

    def to_options(self) -> ExecutorOptions:
        """Convert to validated executor options.

        Raises:
            ConfigError: If the executor is disabled or a field is missing
        """
        self.validate_enabled()
        if not self.enabled:
            raise ConfigError("xxl-job is not enabled")

        options = ExecutorOptions(
            server_addr=self.server_addr,
            access_token=self.access_token,
            executor_ip=self.executor_ip,
            executor_port=self.executor_port,
            registry_key=self.registry_key,
            log_path=self.log_path,
            log_retention_days=self.log_retention_days,
            enable_trace=self.enable_trace,
            quiet_mode=self.quiet_mode,
        )
        options.validate()
        return options


# ── Settings factory with caching ────────────────────────────────────────

_settings_cache: ExecutorSettings | None = None


def get_settings(*, _force_reload: bool = False) -> ExecutorSettings:
    """Load and cache an :class:`ExecutorSettings` instance."""
    global _settings_cache
    if _settings_cache is None or _force_reload:
        _settings_cache = ExecutorSettings()
    return _settings_cache


def clear_settings_cache() -> None:
    """Drop the cached settings (for testing)."""
    global _settings_cache
    _settings_cache = None
