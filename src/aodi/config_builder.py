"""Configuration builder and flat sources.

:func:`configuration` collects flat (key/value) and tree sources into an
immutable :class:`ContextConfig`, which :func:`~aodi.config_runtime.load_settings`
turns into :class:`~aodi.config_runtime.InjectorSettings`.
"""

import json
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Protocol, Tuple, runtime_checkable

from .config_sources import TreeSource
from .exceptions import ConfigurationError

_SCALARS = (str, int, float, bool)


def _scalar(v: Any) -> Optional[str]:
    if isinstance(v, _SCALARS):
        return str(v)
    return None


@runtime_checkable
class ConfigSource(Protocol):
    """Protocol for flat configuration sources: ``get(KEY)`` returns a string or ``None``."""

    def get(self, key: str) -> Optional[str]: ...


class EnvSource:
    """Flat source backed by ``os.environ``.

    Example:
        >>> src = EnvSource(prefix="AODI_")
        >>> src.get("DEDUPE_SINGLETONS")  # reads os.environ["AODI_DEDUPE_SINGLETONS"]
    """

    def __init__(self, prefix: str = "") -> None:
        self.prefix = prefix

    def get(self, key: str) -> Optional[str]:
        return os.environ.get(self.prefix + key)


class FileSource:
    """Flat source backed by a JSON file.

    Keys are looked up case-insensitively at the top level, and ``__`` in a key
    walks into nested objects (``INJECTOR__LOG_LEVEL``).

    Raises:
        ConfigurationError: If the file cannot be read or parsed.
    """

    def __init__(self, path: str, prefix: str = "") -> None:
        self.prefix = prefix
        try:
            with open(path, encoding="utf-8") as f:
                self._data = json.load(f)
        except (OSError, ValueError) as e:
            raise ConfigurationError(f"Failed to load config file {path}: {e}") from e

    def get(self, key: str) -> Optional[str]:
        node: Any = self._data
        for part in (self.prefix + key).split("__"):
            if not isinstance(node, dict):
                return None
            matches = [k for k in node if k.upper() == part.upper()]
            if not matches:
                return None
            node = node[matches[0]]
        return _scalar(node)


class FlatDictSource:
    """Flat source backed by an in-memory mapping.

    Args:
        data: The key/value mapping.
        prefix: Prepended to every lookup.
        case_sensitive: When ``False``, keys are compared upper-cased.
    """

    def __init__(self, data: Mapping[str, Any], prefix: str = "", case_sensitive: bool = True):
        norm = (lambda s: s) if case_sensitive else str.upper
        self._norm = norm
        self._prefix = norm(prefix)
        self._data = {norm(str(k)): v for k, v in data.items()}

    def get(self, key: str) -> Optional[str]:
        if not key:
            return None
        return _scalar(self._data.get(self._prefix + self._norm(key)))


@dataclass(frozen=True)
class ContextConfig:
    """Immutable set of configuration sources.

    Attributes:
        flat_sources: Flat sources, consulted in order.
        tree_sources: Tree sources, deep-merged in order (later wins).
        overrides: Values that win over every source.
    """

    flat_sources: Tuple[ConfigSource, ...] = ()
    tree_sources: Tuple[TreeSource, ...] = ()
    overrides: Dict[str, Any] = field(default_factory=dict)


def configuration(*sources: Any, overrides: Optional[Dict[str, Any]] = None) -> ContextConfig:
    """Build a :class:`ContextConfig` from flat and tree sources.

    Raises:
        ConfigurationError: If a source is neither a :class:`TreeSource` nor a
            flat source.

    Example:
        >>> cfg = configuration(
        ...     EnvSource(prefix="AODI_"),
        ...     DictSource({"injector": {"log_level": "DEBUG"}}),
        ...     overrides={"dedupe_singletons": False},
        ... )
    """
    flat = []
    tree = []
    for src in sources:
        if isinstance(src, TreeSource):
            tree.append(src)
        elif isinstance(src, ConfigSource) and not isinstance(src, Mapping):
            flat.append(src)
        else:
            raise ConfigurationError(f"Unknown configuration source type: {type(src).__name__}")
    return ContextConfig(flat_sources=tuple(flat), tree_sources=tuple(tree), overrides=dict(overrides or {}))
