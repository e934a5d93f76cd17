"""Derived state variables describing the active run mode."""

import os
from typing import Any, Dict, Mapping

from .options import ConfigOptions

STATE_VARIABLES = ("nodeEnv", "isDebug", "isProduction", "isStage")


def active_environment(
    options: ConfigOptions, environ: Mapping[str, str] | None = None
) -> str:
    """Name of the active environment.

    Args:
        options: Active options
        environ: Environment mapping, defaults to ``os.environ``

    Returns:
        Value of the environment-name variable, or the default environment
        when it is unset or empty
    """
    if environ is None:
        environ = os.environ
    return environ.get(options.environment_variable) or options.default_environment


def state_variables(environment: str, options: ConfigOptions) -> Dict[str, Any]:
    """Compute the state variables for an environment.

    Args:
        environment: Active environment name
        options: Active options

    Returns:
        Dictionary with ``nodeEnv``, ``isDebug``, ``isProduction`` and ``isStage``
    """
    is_production = environment == options.production_environment
    return {
        "nodeEnv": environment,
        "isDebug": not is_production,
        "isProduction": is_production,
        "isStage": environment == options.stage_environment,
    }
