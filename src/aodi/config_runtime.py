"""Injector settings and their resolution from configuration sources.

Lookup order for each :class:`InjectorSettings` field, first hit wins:

1. ``ContextConfig.overrides`` (by field name, either case);
2. flat sources, in order, by upper-case field name (``DEDUPE_SINGLETONS``);
3. the ``injector`` section of the deep-merged tree sources;
4. the field default.
"""

import logging
import os
import re
from dataclasses import MISSING, dataclass, fields
from typing import Any, Dict, Mapping, Optional, Tuple

from .config_builder import ContextConfig, EnvSource, configuration
from .config_sources import TreeSource
from .constants import ENV_PREFIX, LOGGER, SETTINGS_SECTION
from .exceptions import ConfigurationError

_TRUE = {"1", "true", "yes", "on", "y", "t"}
_FALSE = {"0", "false", "no", "off", "n", "f"}
_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET")
_env_pat = re.compile(r"\$\{ENV:([A-Za-z_][A-Za-z0-9_]*)\}")


@dataclass(frozen=True)
class InjectorSettings:
    """Runtime options of an :class:`~aodi.Injector`.

    Attributes:
        dedupe_singletons: When ``True``, concurrent first resolutions of the
            same singleton share one construction. When ``False``, each racing
            caller may run the factory before the first result is cached.
        log_level: If set, applied to the ``aodi`` logger when the injector
            is created.
    """

    dedupe_singletons: bool = True
    log_level: Optional[str] = None

    def __post_init__(self) -> None:
        if self.log_level is not None and self.log_level.upper() not in _LEVELS:
            raise ConfigurationError(f"Unknown log level: {self.log_level!r}")

    def apply_logging(self) -> None:
        if self.log_level is not None:
            LOGGER.setLevel(getattr(logging, self.log_level.upper()))


def _deep_merge(a: Any, b: Any) -> Any:
    if isinstance(a, Mapping) and isinstance(b, Mapping):
        out: Dict[str, Any] = dict(a)
        for k, v in b.items():
            out[k] = _deep_merge(out[k], v) if k in out else v
        return out
    return b


def _interpolate(node: Any) -> Any:
    if isinstance(node, Mapping):
        return {k: _interpolate(v) for k, v in node.items()}
    if isinstance(node, list):
        return [_interpolate(x) for x in node]
    if isinstance(node, str):
        def repl(m):
            v = os.environ.get(m.group(1))
            if v is None:
                raise ConfigurationError(f"Missing ENV var {m.group(1)}")
            return v
        return _env_pat.sub(repl, node)
    return node


class ConfigResolver:
    """Deep-merges tree sources once and serves sections of the result."""

    def __init__(self, sources: Tuple[TreeSource, ...]):
        self._sources = tuple(sources)
        self._tree: Optional[Mapping[str, Any]] = None

    def tree(self) -> Mapping[str, Any]:
        if self._tree is None:
            acc: Mapping[str, Any] = {}
            for s in self._sources:
                acc = _deep_merge(acc, s.get_tree())
            self._tree = _interpolate(acc)
        return self._tree

    def section(self, name: str) -> Mapping[str, Any]:
        node = self.tree().get(name, {})
        if not isinstance(node, Mapping):
            raise ConfigurationError(f"Config section '{name}' must be a mapping, got {type(node).__name__}")
        return node


def _coerce(raw: Any, t: Any, name: str) -> Any:
    if t is bool:
        if isinstance(raw, bool):
            return raw
        s = str(raw).strip().lower()
        if s in _TRUE:
            return True
        if s in _FALSE:
            return False
        raise ConfigurationError(f"Invalid boolean for {name}: {raw!r}")
    return str(raw)


def _lookup(cfg: ContextConfig, resolver: ConfigResolver, name: str) -> Any:
    for k in (name, name.upper()):
        if k in cfg.overrides:
            return cfg.overrides[k]
    for src in cfg.flat_sources:
        v = src.get(name.upper())
        if v is not None:
            return v
    section = resolver.section(SETTINGS_SECTION)
    if name in section:
        return section[name]
    return MISSING


def load_settings(config: Optional[ContextConfig] = None) -> InjectorSettings:
    """Resolve :class:`InjectorSettings` from *config*.

    Raises:
        ConfigurationError: If a value can not be coerced, or a source fails.
    """
    cfg = config or ContextConfig()
    resolver = ConfigResolver(cfg.tree_sources)
    values: Dict[str, Any] = {}
    for f in fields(InjectorSettings):
        raw = _lookup(cfg, resolver, f.name)
        if raw is MISSING or raw is None:
            continue
        values[f.name] = _coerce(raw, f.type, f.name)
    settings = InjectorSettings(**values)
    LOGGER.debug("Loaded injector settings: %r", settings)
    return settings


def settings_from_env(prefix: str = ENV_PREFIX) -> InjectorSettings:
    """Shortcut for ``load_settings(configuration(EnvSource(prefix)))``."""
    return load_settings(configuration(EnvSource(prefix)))
