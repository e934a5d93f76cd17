"""DataKnobs AppConfig Package

Layered application configuration: base, environment and local config files
merged with environment variable overrides into one cached dictionary.
"""

from .application import (
    ApplicationConfig,
    configure,
    get_application_config,
    get_config,
    reload,
    reset_application_config,
)
from .environment import EnvironmentParser, EnvVarEntry, parse_environment
from .exceptions import (
    AppConfigError,
    ConfigError,
    ConfigLoadError,
    ConfigNotFoundError,
    ValidationError,
)
from .loaders import (
    ABSOLUTE_PATH_NOT_ALLOWED,
    FILE_NOT_FOUND,
    REQUIRE_ERROR,
    Absent,
    Failed,
    FileReference,
    Loaded,
    SafeLoader,
    require_file,
)
from .merging import ValuedTree, deep_merge, merge_trees
from .options import ConfigOptions
from .redirect import EnvRedirect, env_redirect, resolve_redirects
from .state import STATE_VARIABLES, active_environment, state_variables

__version__ = "0.1.0"
__all__ = [
    "ApplicationConfig",
    "ConfigOptions",
    "configure",
    "get_application_config",
    "get_config",
    "reload",
    "reset_application_config",
    # Exceptions
    "AppConfigError",
    "ConfigError",
    "ConfigLoadError",
    "ConfigNotFoundError",
    "ValidationError",
    # Loading
    "ABSOLUTE_PATH_NOT_ALLOWED",
    "FILE_NOT_FOUND",
    "REQUIRE_ERROR",
    "Absent",
    "Failed",
    "FileReference",
    "Loaded",
    "SafeLoader",
    "require_file",
    # Environment variables
    "EnvVarEntry",
    "EnvironmentParser",
    "parse_environment",
    "EnvRedirect",
    "env_redirect",
    "resolve_redirects",
    # Merging
    "ValuedTree",
    "deep_merge",
    "merge_trees",
    # State variables
    "STATE_VARIABLES",
    "active_environment",
    "state_variables",
]
