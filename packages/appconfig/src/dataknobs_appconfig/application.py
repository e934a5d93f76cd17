"""Layered application configuration.

This module assembles one configuration dictionary from, in increasing
precedence:

1. the base config file (``config.yaml``, required)
2. the environment config file (``config.<environment>.yaml``, optional)
3. the local config file (``config.local.yaml``, optional, uncommitted)
4. environment variables (``app_config_db_user=...``)

Redirect markers are then resolved against the environment, ``startupPath``
is added, and unless disabled the state variables ``nodeEnv``, ``isDebug``,
``isProduction`` and ``isStage`` are added.

Example:
    ```python
    from dataknobs_appconfig import configure, get_config

    configure({"startupPath": "/srv/app", "environmentPrefix": "myapp_"})
    config = get_config()

    if config["isDebug"]:
        ...
    ```
"""

from __future__ import annotations

import copy
import logging
from pathlib import Path
from typing import Any, Dict, Mapping

from .environment import EnvironmentParser
from .exceptions import ConfigLoadError, ConfigNotFoundError
from .loaders import FILE_NOT_FOUND, Absent, Failed, FormatLoader, SafeLoader
from .merging import merge_trees
from .options import ConfigOptions
from .redirect import resolve_redirects
from .state import active_environment, state_variables

logger = logging.getLogger(__name__)


class ApplicationConfig:
    """Lazily assembled, cached application configuration.

    The first read of :attr:`config` runs the whole pipeline and caches the
    result. ``configure`` replaces the options and drops the cache without
    loading; ``reload`` drops the cache and assembles again right away.

    The returned dictionary is shared by every reader and must not be
    mutated; use :meth:`get` for a private copy.
    """

    def __init__(
        self,
        options: ConfigOptions | Mapping[str, Any] | None = None,
        environ: Mapping[str, str] | None = None,
        loaders: Dict[str, FormatLoader] | None = None,
    ):
        """Initialize the application config.

        Args:
            options: Options, as ConfigOptions or a mapping of option keys
            environ: Environment mapping read at every assembly.
                    If None, ``os.environ`` is used.
            loaders: Format loaders keyed by file suffix (default: YAML, JSON, Python)
        """
        self._environ = environ
        self._loaders = loaders
        self._options = self._make_options(options)
        self._config: Dict[str, Any] | None = None

    @property
    def options(self) -> ConfigOptions:
        """Get the active options."""
        return self._options

    @property
    def is_loaded(self) -> bool:
        """Whether an assembled configuration is cached."""
        return self._config is not None

    @property
    def environment(self) -> str:
        """Get the active environment name."""
        return active_environment(self._options, self._environ)

    @property
    def config(self) -> Dict[str, Any]:
        """Get the assembled configuration, assembling it on first access.

        Raises:
            ConfigNotFoundError: If the base config file does not exist
            ConfigLoadError: If a config file exists but cannot be used
        """
        if self._config is None:
            self._config = self._assemble()
        else:
            logger.debug("Using cached application config")
        return self._config

    def configure(
        self,
        options: ConfigOptions | Mapping[str, Any] | None = None,
        **kwargs: Any,
    ) -> None:
        """Replace the options and drop the cached configuration.

        Options not given fall back to their defaults, so ``configure({})``
        restores the default options.

        Args:
            options: ConfigOptions or a mapping of option keys
            **kwargs: Option keys, applied after ``options``

        Raises:
            ValidationError: If an option key is unknown
        """
        self._options = self._make_options(options, **kwargs)
        self._config = None
        logger.debug(f"Configured application config: {self._options}")

    def reload(self) -> Dict[str, Any]:
        """Drop the cached configuration and assemble it again.

        Returns:
            The freshly assembled configuration
        """
        self._config = None
        config = self.config
        logger.info("Reloaded application config")
        return config

    def get(self, key: str | None = None, default: Any = None) -> Any:
        """Get a value from the config.

        Args:
            key: Configuration key (supports dot notation for nested access).
                If None, the whole config is returned.
            default: Default value if not found

        Returns:
            Deep copy of the configuration value
        """
        value: Any = self.config
        if key is None:
            return copy.deepcopy(value)

        for k in key.split("."):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return copy.deepcopy(value)

    def _make_options(
        self,
        options: ConfigOptions | Mapping[str, Any] | None,
        **kwargs: Any,
    ) -> ConfigOptions:
        if isinstance(options, ConfigOptions):
            if kwargs:
                return ConfigOptions.from_dict(options.to_dict(), **kwargs)
            return options
        return ConfigOptions.from_dict(options, **kwargs)

    def _assemble(self) -> Dict[str, Any]:
        options = self._options
        environment = active_environment(options, self._environ)
        loader = SafeLoader(options.startup_path, self._loaders)

        logger.debug(
            f"Assembling application config for '{environment}' from {options.startup_path}"
        )

        base = self._load_source(loader, options.config_name, required=True)
        environment_file = self._load_source(
            loader, options.environment_config_file(environment)
        )
        local_file = self._load_source(loader, options.local_config_file())
        environment_vars = EnvironmentParser(
            options.environment_prefix, options.environment_delimiter
        ).parse(self._environ)

        config = merge_trees(base, environment_file, local_file, environment_vars)
        config = resolve_redirects(config, self._environ)

        config["startupPath"] = options.startup_path
        if options.enable_state_variables:
            config.update(state_variables(environment, options))

        logger.info(f"Assembled application config for environment '{environment}'")
        return config

    def _load_source(
        self, loader: SafeLoader, name: str, required: bool = False
    ) -> Dict[str, Any] | None:
        """Load one file-based source.

        Args:
            loader: Loader bound to the startup path
            name: Source file name
            required: Whether a missing file is an error

        Returns:
            Source dictionary, or None for an absent optional file

        Raises:
            ConfigNotFoundError: If a required file does not exist
            ConfigLoadError: If the file exists but cannot be used
        """
        result = loader.load(name, optional=not required)
        context = {"path": str(Path(loader.base_path) / name)}

        if isinstance(result, Absent):
            return None

        if isinstance(result, Failed):
            if result.sentinel.startswith(FILE_NOT_FOUND):
                raise ConfigNotFoundError(
                    f"Configuration file not found: {name} in {loader.base_path}",
                    context=context,
                )
            raise ConfigLoadError(
                f"Failed to load configuration file {name}: {result.sentinel}",
                context=context,
            )

        data = result.data
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigLoadError(
                f"Configuration file must contain a dictionary: {name}",
                context=context,
            )
        return data


class _ApplicationConfigSingleton:
    """Singleton container for the process-wide ApplicationConfig."""

    _instance: ApplicationConfig | None = None

    @classmethod
    def get(cls) -> ApplicationConfig:
        """Get the singleton instance, creating it with default options if needed."""
        if cls._instance is None:
            cls._instance = ApplicationConfig()
            logger.debug("Created default ApplicationConfig singleton")
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset the singleton instance."""
        cls._instance = None
        logger.debug("Reset ApplicationConfig singleton")


def get_application_config() -> ApplicationConfig:
    """Get the process-wide ApplicationConfig."""
    return _ApplicationConfigSingleton.get()


def configure(
    options: ConfigOptions | Mapping[str, Any] | None = None, **kwargs: Any
) -> None:
    """Replace the options of the process-wide ApplicationConfig.

    Args:
        options: ConfigOptions or a mapping of option keys
        **kwargs: Option keys, applied after ``options``
    """
    get_application_config().configure(options, **kwargs)


def get_config() -> Dict[str, Any]:
    """Get the process-wide assembled configuration."""
    return get_application_config().config


def reload() -> Dict[str, Any]:
    """Reassemble the process-wide configuration."""
    return get_application_config().reload()


def reset_application_config() -> None:
    """Discard the process-wide ApplicationConfig, options included."""
    _ApplicationConfigSingleton.reset()
