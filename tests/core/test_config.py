"""Tests for executor settings and options."""

import pytest

from jobspine.core.config import ExecutorOptions, ExecutorSettings, get_settings
from jobspine.core.errors import ConfigError, InvalidConfigError, MissingConfigError


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """No XXL_JOB_* variables and no .env file in the working directory."""
    import os

    for key in list(os.environ):
        if key.startswith("XXL_JOB_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)


class TestExecutorOptions:
    """Tests for ExecutorOptions.validate()."""

    def test_valid_options(self):
        options = ExecutorOptions(server_addr="http://sched:8080/xxl-job-admin", registry_key="orders")
        options.validate()
        assert options.executor_port == "9999"
        assert options.log_retention_days == 30
        assert options.middlewares == []

    @pytest.mark.parametrize(
        "overrides, key",
        [
            ({"server_addr": ""}, "server_addr"),
            ({"registry_key": ""}, "registry_key"),
            ({"executor_port": ""}, "executor_port"),
        ],
    )
    def test_missing_required(self, overrides, key):
        fields = {"server_addr": "http://sched", "registry_key": "orders", **overrides}
        with pytest.raises(MissingConfigError) as exc_info:
            ExecutorOptions(**fields).validate()
        assert exc_info.value.key == key

    def test_negative_retention_rejected(self):
        options = ExecutorOptions(server_addr="http://sched", registry_key="orders", log_retention_days=-1)
        with pytest.raises(InvalidConfigError):
            options.validate()

    def test_non_positive_interval_rejected(self):
        options = ExecutorOptions(server_addr="http://sched", registry_key="orders", retention_interval=0)
        with pytest.raises(InvalidConfigError):
            options.validate()


class TestExecutorSettings:
    """Tests for environment-driven settings."""

    def test_defaults(self, clean_env):
        settings = ExecutorSettings()
        assert settings.enabled is False
        assert settings.executor_port == "9999"
        assert settings.log_path == "./logs/xxl-job"
        assert settings.log_retention_days == 30
        assert settings.enable_trace is True
        assert settings.quiet_mode is False

    def test_reads_environment(self, clean_env, monkeypatch):
        monkeypatch.setenv("XXL_JOB_ENABLED", "true")
        monkeypatch.setenv("XXL_JOB_SERVER_ADDR", "http://sched:8080")
        monkeypatch.setenv("XXL_JOB_REGISTRY_KEY", "orders")
        monkeypatch.setenv("XXL_JOB_LOG_RETENTION_DAYS", "7")
        monkeypatch.setenv("XXL_JOB_QUIET_MODE", "1")

        settings = ExecutorSettings()
        assert settings.enabled is True
        assert settings.server_addr == "http://sched:8080"
        assert settings.log_retention_days == 7
        assert settings.quiet_mode is True

    def test_reads_dotenv_file(self, clean_env, tmp_path):
        (tmp_path / ".env").write_text("XXL_JOB_REGISTRY_KEY=from-dotenv\n", encoding="utf-8")
        assert ExecutorSettings().registry_key == "from-dotenv"

    def test_disabled_settings_are_valid(self, clean_env):
        ExecutorSettings().validate_enabled()

    def test_enabled_requires_server_addr(self, clean_env):
        settings = ExecutorSettings(enabled=True, registry_key="orders")
        with pytest.raises(MissingConfigError, match="xxl-job server_addr is required"):
            settings.validate_enabled()

    def test_enabled_requires_registry_key(self, clean_env):
        settings = ExecutorSettings(enabled=True, server_addr="http://sched")
        with pytest.raises(MissingConfigError, match="registry_key"):
            settings.validate_enabled()

    def test_to_options(self, clean_env):
        settings = ExecutorSettings(
            enabled=True,
            server_addr="http://sched",
            registry_key="orders",
            access_token="secret",
            log_path="/tmp/joblogs",
            quiet_mode=True,
        )
        options = settings.to_options()
        assert options.server_addr == "http://sched"
        assert options.access_token == "secret"
        assert options.log_path == "/tmp/joblogs"
        assert options.quiet_mode is True
        assert options.enable_trace is True

    def test_to_options_when_disabled(self, clean_env):
        with pytest.raises(ConfigError, match="not enabled"):
            ExecutorSettings().to_options()

    def test_negative_retention_rejected_by_pydantic(self, clean_env):
        from pydantic import ValidationError

        with pytest.raises(ValidationError):
            ExecutorSettings(log_retention_days=-1)


class TestGetSettings:
    """Tests for the settings cache."""

    def test_cached(self, clean_env):
        assert get_settings() is get_settings()

    def test_force_reload(self, clean_env, monkeypatch):
        first = get_settings()
        monkeypatch.setenv("XXL_JOB_REGISTRY_KEY", "reloaded")
        second = get_settings(_force_reload=True)
        assert second is not first
        assert second.registry_key == "reloaded"
