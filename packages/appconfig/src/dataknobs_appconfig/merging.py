"""Deep merging of configuration trees.

Sources are merged in precedence order, each later tree overriding the
earlier ones:

    ```python
    merged = merge_trees(base, environment_file, local_file, environment_vars)
    ```
"""

from typing import Any, Dict


class ValuedTree(dict):
    """A configuration node that is both a mapping and a scalar.

    Produced when one environment variable sets ``additional`` while another
    sets ``additional_variable``: the node holds the nested keys and keeps the
    shallow value in :attr:`value`.

    Example:
        >>> node = ValuedTree({"variable": "deep"}, value="shallow")
        >>> node["variable"], node.value
        ('deep', 'shallow')
    """

    def __init__(self, data: Any = (), value: Any = None) -> None:
        super().__init__(data)
        self.value = value

    def __eq__(self, other: object) -> bool:
        # Against a plain dict only the keys count
        if isinstance(other, ValuedTree) and self.value != other.value:
            return False
        return dict.__eq__(self, other)

    def __ne__(self, other: object) -> bool:
        result = self.__eq__(other)
        return result if result is NotImplemented else not result

    def copy(self) -> "ValuedTree":
        return ValuedTree(self, value=self.value)

    def __repr__(self) -> str:
        return f"ValuedTree({dict.__repr__(self)}, value={self.value!r})"


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge two dictionaries.

    Recursively merges override into base, with override values taking precedence.
    Nested dictionaries are merged recursively; all other types are replaced.
    Neither input is modified.

    Args:
        base: Base dictionary (values used when not overridden)
        override: Override dictionary (takes precedence)

    Returns:
        New merged dictionary

    Example:
        >>> base = {"a": 1, "nested": {"x": 10, "y": 20}}
        >>> override = {"a": 2, "nested": {"y": 25, "z": 30}}
        >>> deep_merge(base, override)
        {'a': 2, 'nested': {'x': 10, 'y': 25, 'z': 30}}
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            # Recursively merge nested dicts
            result[key] = deep_merge(result[key], value)
        else:
            # Override takes precedence
            result[key] = value

    if isinstance(override, ValuedTree):
        return ValuedTree(result, value=override.value)
    return result


def merge_trees(*trees: Dict[str, Any] | None) -> Dict[str, Any]:
    """Merge configuration trees from lowest to highest precedence.

    ``None`` entries stand for absent sources and are skipped.

    Args:
        *trees: Trees ordered from lowest to highest precedence

    Returns:
        New merged dictionary
    """
    result: Dict[str, Any] = {}
    for tree in trees:
        if tree is None:
            continue
        result = deep_merge(result, tree)
    return result
