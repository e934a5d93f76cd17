"""Options controlling where and how the application config is assembled."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping

from .environment import DEFAULT_DELIMITER, DEFAULT_PREFIX
from .exceptions import ValidationError

# camelCase option keys accepted by ``configure`` next to the field names
OPTION_ALIASES = {
    "startupPath": "startup_path",
    "configName": "config_name",
    "localConfigName": "local_config_name",
    "environmentConfigName": "environment_config_name",
    "environmentPrefix": "environment_prefix",
    "environmentDelimiter": "environment_delimiter",
    "environmentVariable": "environment_variable",
    "defaultEnvironment": "default_environment",
    "productionEnvironment": "production_environment",
    "stageEnvironment": "stage_environment",
    "enableStateVariables": "enable_state_variables",
}


@dataclass(frozen=True)
class ConfigOptions:
    """Options for assembling the application configuration.

    Attributes:
        startup_path: Directory that source and referenced file paths resolve against
        config_name: Base config file name; the file must exist
        local_config_name: Local override file name (default: ``<stem>.local<suffix>``)
        environment_config_name: Template for the environment file name with an
            ``{environment}`` field (default: ``<stem>.{environment}<suffix>``)
        environment_prefix: Prefix of environment variable overrides
        environment_delimiter: Key path separator in environment variable names
        environment_variable: Variable selecting the active environment
        default_environment: Environment used when that variable is unset
        production_environment: Environment name that turns debug mode off
        stage_environment: Environment name flagged by ``isStage``
        enable_state_variables: Whether to add ``nodeEnv``/``isDebug``/... keys
    """

    startup_path: str = field(default_factory=os.getcwd)
    config_name: str = "config.yaml"
    local_config_name: str | None = None
    environment_config_name: str | None = None
    environment_prefix: str = DEFAULT_PREFIX
    environment_delimiter: str = DEFAULT_DELIMITER
    environment_variable: str = "NODE_ENV"
    default_environment: str = "development"
    production_environment: str = "production"
    stage_environment: str = "stage"
    enable_state_variables: bool = True

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None = None, **kwargs: Any) -> ConfigOptions:
        """Create options from camelCase or snake_case keys.

        Keys not given keep their defaults.

        Args:
            data: Option mapping
            **kwargs: Further options, applied after ``data``

        Returns:
            ConfigOptions instance

        Raises:
            ValidationError: If an option key is unknown
        """
        known = {f.name for f in fields(cls)}
        values: dict[str, Any] = {}

        for key, value in {**(data or {}), **kwargs}.items():
            name = OPTION_ALIASES.get(key, key)
            if name not in known:
                raise ValidationError(
                    f"Unknown configuration option: {key}",
                    context={"option": key, "known": sorted(OPTION_ALIASES)},
                )
            values[name] = value

        if values.get("startup_path") is not None:
            values["startup_path"] = str(values["startup_path"])
        else:
            values.pop("startup_path", None)

        if "environment_delimiter" in values and not values["environment_delimiter"]:
            raise ValidationError("environmentDelimiter must not be empty")

        return cls(**values)

    def local_config_file(self) -> str:
        """Name of the local override file."""
        if self.local_config_name:
            return self.local_config_name
        path = Path(self.config_name)
        return str(path.with_name(f"{path.stem}.local{path.suffix}"))

    def environment_config_file(self, environment: str) -> str:
        """Name of the override file for an environment.

        Args:
            environment: Active environment name

        Returns:
            File name, relative to the startup path
        """
        if self.environment_config_name:
            return self.environment_config_name.format(environment=environment)
        path = Path(self.config_name)
        return str(path.with_name(f"{path.stem}.{environment}{path.suffix}"))

    def to_dict(self) -> dict[str, Any]:
        """Export options with their camelCase keys."""
        names = {name: alias for alias, name in OPTION_ALIASES.items()}
        return {names[f.name]: getattr(self, f.name) for f in fields(self)}
