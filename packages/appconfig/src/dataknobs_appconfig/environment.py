"""Environment variable override parsing.

Environment variable format:
<PREFIX><KEY><DELIMITER><KEY>...

Examples (default prefix ``app_config_`` and delimiter ``_``):
    - app_config_db_user=envUser -> {"db": {"user": "envUser"}}
    - app_config_hosts=a|b|c -> {"hosts": ["a", "b", "c"]}
    - app_config_hosts=| -> {"hosts": []}
"""

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Tuple

from .merging import ValuedTree

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "app_config_"
DEFAULT_DELIMITER = "_"
ARRAY_SEPARATOR = "|"


@dataclass(frozen=True)
class EnvVarEntry:
    """A parsed environment variable.

    Attributes:
        path: Key path the value is inserted at
        raw_value: Value exactly as found in the environment
        is_array: Whether the value is split into a list
    """

    path: Tuple[str, ...]
    raw_value: str
    is_array: bool

    @property
    def value(self) -> Any:
        """The coerced value: a list of strings for arrays, else the raw string."""
        if self.is_array:
            return [item for item in self.raw_value.split(ARRAY_SEPARATOR) if item]
        return self.raw_value


class EnvironmentParser:
    """Turns prefixed environment variables into a configuration tree."""

    def __init__(self, prefix: str | None = None, delimiter: str | None = None) -> None:
        """Initialize the environment parser.

        Args:
            prefix: Environment variable prefix (default: app_config_)
            delimiter: Separator between key path segments (default: _)
        """
        self.prefix = DEFAULT_PREFIX if prefix is None else prefix
        self.delimiter = delimiter or DEFAULT_DELIMITER

    def entries(self, environ: Mapping[str, str] | None = None) -> List[EnvVarEntry]:
        """Collect the environment variables carrying the prefix.

        Args:
            environ: Environment mapping, defaults to ``os.environ``

        Returns:
            Parsed entries in environment order
        """
        if environ is None:
            environ = os.environ

        result = []
        for key, raw_value in environ.items():
            if not key.startswith(self.prefix):
                continue

            path = tuple(
                segment
                for segment in key[len(self.prefix) :].split(self.delimiter)
                if segment
            )
            if not path:
                logger.debug(f"Ignoring environment variable without a key path: {key}")
                continue

            result.append(
                EnvVarEntry(
                    path=path,
                    raw_value=raw_value,
                    is_array=ARRAY_SEPARATOR in raw_value,
                )
            )

        return result

    def parse(self, environ: Mapping[str, str] | None = None) -> Dict[str, Any]:
        """Build the configuration tree from the environment.

        Args:
            environ: Environment mapping, defaults to ``os.environ``

        Returns:
            Nested dictionary of overrides
        """
        tree: Dict[str, Any] = {}
        for entry in self.entries(environ):
            _insert(tree, entry.path, entry.value)
        return tree


def _insert(tree: Dict[str, Any], path: Tuple[str, ...], value: Any) -> None:
    """Insert a value at a key path, building containers as needed.

    A scalar standing where a container is needed becomes the ``value`` of a
    ValuedTree, and a scalar landing on an existing container is kept the same
    way, so colliding shallow and deep paths lose nothing.
    """
    node = tree
    for segment in path[:-1]:
        child = node.get(segment)
        if not isinstance(child, dict):
            child = ValuedTree(value=child) if segment in node else {}
            node[segment] = child
        node = child

    leaf = path[-1]
    existing = node.get(leaf)
    if isinstance(existing, dict):
        node[leaf] = ValuedTree(existing, value=value)
    else:
        node[leaf] = value


def parse_environment(
    environ: Mapping[str, str] | None = None,
    prefix: str | None = None,
    delimiter: str | None = None,
) -> Dict[str, Any]:
    """Convenience function to parse environment overrides.

    Args:
        environ: Environment mapping, defaults to ``os.environ``
        prefix: Environment variable prefix
        delimiter: Key path separator

    Returns:
        Nested dictionary of overrides
    """
    return EnvironmentParser(prefix, delimiter).parse(environ)
