"""Tree-shaped configuration sources.

A tree source yields a nested mapping; the injector reads its settings from
the ``injector`` section of the merged tree (see
:func:`~aodi.config_runtime.load_settings`). Available sources:
:class:`DictSource`, :class:`JsonTreeSource` and :class:`YamlTreeSource`.
"""

import json
from typing import Any, Mapping

from .exceptions import ConfigurationError


def _require_mapping(data: Any, origin: str) -> Mapping[str, Any]:
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ConfigurationError(f"{origin} must contain a mapping at the top level, got {type(data).__name__}")
    return data


class TreeSource:
    """Base class for tree-structured configuration sources."""

    def get_tree(self) -> Mapping[str, Any]:
        """Return the configuration tree as a nested mapping."""
        raise NotImplementedError


class DictSource(TreeSource):
    """Tree source backed by an in-memory mapping.

    Example:
        >>> DictSource({"injector": {"dedupe_singletons": False}}).get_tree()["injector"]
        {'dedupe_singletons': False}
    """

    def __init__(self, data: Mapping[str, Any]):
        self._data = _require_mapping(data, "DictSource")

    def get_tree(self) -> Mapping[str, Any]:
        return self._data


class JsonTreeSource(TreeSource):
    """Tree source read from a JSON file each time the tree is requested.

    Raises:
        ConfigurationError: If the file cannot be read or parsed, or does not
            hold an object.
    """

    def __init__(self, path: str):
        self._path = path

    def get_tree(self) -> Mapping[str, Any]:
        try:
            with open(self._path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise ConfigurationError(f"Failed to load JSON config {self._path}: {e}") from e
        return _require_mapping(data, self._path)


class YamlTreeSource(TreeSource):
    """Tree source read from a YAML file.

    Requires ``PyYAML`` (``pip install aodi[yaml]``).

    Raises:
        ConfigurationError: If PyYAML is not installed, or the file cannot be
            read or parsed, or does not hold a mapping.
    """

    def __init__(self, path: str):
        self._path = path

    def get_tree(self) -> Mapping[str, Any]:
        try:
            import yaml
        except ImportError as e:
            raise ConfigurationError("PyYAML not installed; install aodi[yaml]") from e
        try:
            with open(self._path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Failed to load YAML config {self._path}: {e}") from e
        return _require_mapping(data, self._path)
