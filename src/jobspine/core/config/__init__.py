"""Executor configuration.

Quick start::

    from jobspine.core.config import get_settings

    options = get_settings().to_options()

Architecture::

    settings.py   ExecutorSettings (pydantic-settings) + get_settings() cache
    options.py    ExecutorOptions, the validated set the executor consumes
"""

from .options import ExecutorOptions
from .settings import ExecutorSettings, clear_settings_cache, get_settings

__all__ = [
    "ExecutorOptions",
    "ExecutorSettings",
    "get_settings",
    "clear_settings_cache",
]
