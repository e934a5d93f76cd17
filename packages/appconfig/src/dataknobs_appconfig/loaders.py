"""Safe loading of configuration sources and referenced files.

The SafeLoader never raises. Every outcome is a LoadResult:

- ``Loaded(data)``: the file was read and parsed
- ``Absent(path)``: an optional file does not exist
- ``Failed(sentinel)``: anything else, with a greppable sentinel string

Config files may inline other files. The reference is replaced with the
referenced file's content, or with the sentinel if it cannot be loaded:

    ```yaml
    # config.yaml
    db: !require ./db.json
    routes: {"$require": ./routes.yaml}
    ```

    ```python
    # config.py
    from dataknobs_appconfig import require_file

    config = {"db": require_file("./db.json")}
    ```

Sentinels:
    - ``ABSOLUTE_PATH_NOT_ALLOWED``: a reference used an absolute path
    - ``FILE_NOT_FOUND: <path>``: the referenced file does not exist
    - ``REQUIRE_ERROR: <path>: <detail>``: the file exists but failed to load
"""

import importlib.util
import json
import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Union

import yaml

from .exceptions import ConfigLoadError
from .merging import ValuedTree
from .redirect import ENV_MARKER_KEY, EnvRedirect

logger = logging.getLogger(__name__)

ABSOLUTE_PATH_NOT_ALLOWED = "ABSOLUTE_PATH_NOT_ALLOWED"
FILE_NOT_FOUND = "FILE_NOT_FOUND"
REQUIRE_ERROR = "REQUIRE_ERROR"

REQUIRE_MARKER_KEY = "$require"
MODULE_CONFIG_ATTRIBUTE = "config"

FormatLoader = Callable[[Path], Any]


@dataclass(frozen=True)
class FileReference:
    """A config value to be replaced by the content of a relative file."""

    path: str


def require_file(path: str) -> FileReference:
    """Reference another file from a Python config module.

    Args:
        path: Path relative to the startup path

    Returns:
        File reference resolved when the module is loaded
    """
    return FileReference(path)


@dataclass(frozen=True)
class Loaded:
    data: Any


@dataclass(frozen=True)
class Absent:
    path: str


@dataclass(frozen=True)
class Failed:
    sentinel: str


LoadResult = Union[Loaded, Absent, Failed]


class ConfigYamlLoader(yaml.SafeLoader):
    """YAML loader understanding the ``!env`` and ``!require`` tags."""

    pass


def _construct_env(loader: yaml.SafeLoader, node: yaml.Node) -> EnvRedirect:
    return EnvRedirect(loader.construct_scalar(node))  # type: ignore[arg-type]


def _construct_require(loader: yaml.SafeLoader, node: yaml.Node) -> FileReference:
    return FileReference(str(loader.construct_scalar(node)))  # type: ignore[arg-type]


ConfigYamlLoader.add_constructor("!env", _construct_env)
ConfigYamlLoader.add_constructor("!require", _construct_require)


def load_yaml(path: Path) -> Any:
    with open(path, encoding="utf-8") as f:
        return yaml.load(f, Loader=ConfigYamlLoader)  # noqa: S506


def load_json(path: Path) -> Any:
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def load_module(path: Path) -> Any:
    """Execute a Python config module and return its ``config`` attribute.

    The module is registered in ``sys.modules`` only while its body runs, so
    every load runs the module body again.

    Args:
        path: Path to the ``.py`` file

    Returns:
        Value of the module's ``config`` attribute

    Raises:
        ConfigLoadError: If the module cannot be imported or defines no config
    """
    module_name = f"_appconfig_{path.stem.replace('.', '_')}"
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise ConfigLoadError(f"Cannot import config module: {path}")

    module = importlib.util.module_from_spec(spec)
    previous = sys.modules.get(module_name)
    # dataclasses and similar look the defining module up while the body runs
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    finally:
        if previous is None:
            sys.modules.pop(module_name, None)
        else:
            sys.modules[module_name] = previous

    if not hasattr(module, MODULE_CONFIG_ATTRIBUTE):
        raise ConfigLoadError(
            f"Config module does not define '{MODULE_CONFIG_ATTRIBUTE}': {path}",
            context={"path": str(path)},
        )
    return getattr(module, MODULE_CONFIG_ATTRIBUTE)


DEFAULT_LOADERS: Dict[str, FormatLoader] = {
    ".yaml": load_yaml,
    ".yml": load_yaml,
    ".json": load_json,
    ".py": load_module,
}


def decode_markers(data: Any) -> Any:
    """Convert ``{"$env": ...}`` and ``{"$require": ...}`` mappings to markers.

    Args:
        data: Loaded configuration data

    Returns:
        Data with single-key marker mappings replaced
    """
    if isinstance(data, dict):
        if len(data) == 1:
            key, value = next(iter(data.items()))
            if key == ENV_MARKER_KEY and isinstance(value, str):
                return EnvRedirect(value)
            if key == REQUIRE_MARKER_KEY and isinstance(value, str):
                return FileReference(value)
        return {k: decode_markers(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [decode_markers(item) for item in data]
    else:
        return data


class SafeLoader:
    """Loads configuration files relative to a base path without raising.

    Attributes:
        base_path: Directory relative paths are resolved against
        loaders: Format loaders keyed by lowercase file suffix
    """

    def __init__(
        self,
        base_path: str | Path,
        loaders: Dict[str, FormatLoader] | None = None,
    ) -> None:
        """Initialize the loader.

        Args:
            base_path: Directory relative paths are resolved against
            loaders: Format loaders keyed by suffix (default: YAML, JSON, Python)
        """
        self.base_path = Path(base_path)
        self.loaders = dict(DEFAULT_LOADERS if loaders is None else loaders)
        self._loading: set[Path] = set()  # Track files being loaded to detect cycles

    def load(
        self,
        path: str,
        allow_absolute: bool = True,
        optional: bool = False,
    ) -> LoadResult:
        """Load a file and resolve the file references inside it.

        Args:
            path: File path, relative to the base path
            allow_absolute: Whether an absolute path is acceptable
            optional: Report a missing file as Absent instead of Failed

        Returns:
            Loaded, Absent or Failed
        """
        if not allow_absolute and os.path.isabs(path):
            return self._fail(path, ABSOLUTE_PATH_NOT_ALLOWED)

        try:
            filepath = (self.base_path / path).resolve()
            exists = filepath.is_file()
        except (OSError, ValueError) as e:
            return self._fail(path, f"{REQUIRE_ERROR}: {path}: {type(e).__name__}: {e}")

        if not exists:
            if optional:
                logger.debug(f"Optional configuration file not present: {filepath}")
                return Absent(path)
            return self._fail(path, f"{FILE_NOT_FOUND}: {path}")

        if filepath in self._loading:
            return self._fail(path, f"{REQUIRE_ERROR}: {path}: circular file reference")

        format_loader = self.loaders.get(filepath.suffix.lower())
        if format_loader is None:
            return self._fail(
                path, f"{REQUIRE_ERROR}: {path}: unsupported file format '{filepath.suffix}'"
            )

        self._loading.add(filepath)
        try:
            try:
                data = format_loader(filepath)
            except (Exception, SystemExit) as e:
                return self._fail(path, f"{REQUIRE_ERROR}: {path}: {type(e).__name__}: {e}")

            logger.debug(f"Loaded configuration file: {filepath}")
            return Loaded(self.resolve_references(decode_markers(data)))
        finally:
            self._loading.discard(filepath)

    def require(self, path: str) -> Any:
        """Load a referenced file, degrading failures to a sentinel string.

        Args:
            path: Relative path of the referenced file

        Returns:
            The file's data, or the sentinel describing the failure
        """
        result = self.load(path, allow_absolute=False)
        if isinstance(result, Loaded):
            return result.data
        # Absent is impossible for a non-optional load
        return result.sentinel  # type: ignore[union-attr]

    def resolve_references(self, data: Any) -> Any:
        """Recursively replace file references with the referenced content.

        Args:
            data: Configuration data

        Returns:
            Data with every FileReference replaced
        """
        if isinstance(data, FileReference):
            return self.require(data.path)
        elif isinstance(data, ValuedTree):
            return ValuedTree(
                {k: self.resolve_references(v) for k, v in data.items()},
                value=data.value,
            )
        elif isinstance(data, dict):
            return {k: self.resolve_references(v) for k, v in data.items()}
        elif isinstance(data, list):
            return [self.resolve_references(item) for item in data]
        else:
            return data

    def _fail(self, path: str, sentinel: str) -> Failed:
        logger.warning(f"Could not load configuration file '{path}': {sentinel}")
        return Failed(sentinel)
