"""Redirection of configuration values to environment variables.

A config file declares a redirect with the name of the variable that should
supply the value:

    ```yaml
    special:
      routes:
        redirect: !env TEST_ENV_VAR
        other: {"$env": "OTHER_VAR"}
    ```

After all sources are merged, every marker is replaced by the variable's value.
If the variable is not set the marker's own name is left in place, so the
missing setting stays visible in the assembled config.
"""

import logging
import os
from typing import Any, Mapping

from .merging import ValuedTree

logger = logging.getLogger(__name__)

ENV_MARKER_KEY = "$env"


class EnvRedirect(str):
    """A config value naming the environment variable that replaces it."""

    @property
    def variable(self) -> str:
        return str(self)

    def __repr__(self) -> str:
        return f"EnvRedirect({str.__repr__(self)})"


def env_redirect(name: str) -> EnvRedirect:
    """Declare a redirect from a Python config module.

    Args:
        name: Name of the environment variable

    Returns:
        Redirect marker
    """
    return EnvRedirect(name)


def resolve_redirects(data: Any, environ: Mapping[str, str] | None = None) -> Any:
    """Recursively replace redirect markers with environment values.

    Args:
        data: Configuration data (dict, list, string, or primitive)
        environ: Environment mapping, defaults to ``os.environ``

    Returns:
        New data with every redirect resolved
    """
    if environ is None:
        environ = os.environ

    if isinstance(data, EnvRedirect):
        return _resolve(data, environ)
    elif isinstance(data, ValuedTree):
        return ValuedTree(
            {k: resolve_redirects(v, environ) for k, v in data.items()},
            value=resolve_redirects(data.value, environ),
        )
    elif isinstance(data, dict):
        return {k: resolve_redirects(v, environ) for k, v in data.items()}
    elif isinstance(data, list):
        return [resolve_redirects(item, environ) for item in data]
    else:
        return data


def _resolve(marker: EnvRedirect, environ: Mapping[str, str]) -> str:
    value = environ.get(marker.variable)
    if value is None:
        logger.debug(f"Redirect target not set, keeping its name: {marker.variable}")
        return marker.variable
    return value
