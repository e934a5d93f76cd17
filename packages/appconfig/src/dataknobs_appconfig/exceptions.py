"""Custom exceptions for the appconfig package.

Only loader-configuration problems are raised as exceptions. Problems with
files referenced from inside a configuration are reported as sentinel strings
in the assembled data instead (see :mod:`dataknobs_appconfig.loaders`).

Example:
    ```python
    from dataknobs_appconfig import ApplicationConfig, ConfigNotFoundError

    app_config = ApplicationConfig({"configName": "konfig.yaml"})
    try:
        app_config.config
    except ConfigNotFoundError as e:
        logger.error(f"Error: {e}")
        if e.context:
            logger.error(f"Context: {e.context}")
    ```
"""

from typing import Any, Dict


class AppConfigError(Exception):
    """Base exception for the appconfig package.

    Attributes:
        context: Dictionary containing contextual information about the error

    Args:
        message: Human-readable error message
        context: Optional dictionary with error context (paths, option names)
    """

    def __init__(self, message: str, context: Dict[str, Any] | None = None):
        super().__init__(message)
        self.context = context or {}


class ConfigError(AppConfigError):
    """Raised when the loader itself is configured incorrectly."""

    pass


class ConfigNotFoundError(ConfigError):
    """Raised when the base configuration file does not exist."""

    pass


class ConfigLoadError(ConfigError):
    """Raised when a configuration source exists but cannot be used."""

    pass


class ValidationError(AppConfigError):
    """Raised when options passed to ``configure`` are invalid."""

    pass


__all__ = [
    "AppConfigError",
    "ConfigError",
    "ConfigNotFoundError",
    "ConfigLoadError",
    "ValidationError",
]
