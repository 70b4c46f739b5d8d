# aodi/__init__.py
from ._version import __version__

from .token import Token, is_injectable
from .injector import Injector
from .providers import MISSING, Provider, ProviderKind, ProviderRegistry
from .metadata import DEPENDENCIES, PROVIDERS, DependencyEdge, MetadataKey, ProviderEntry
from .decorators import (
    declare_dependency, declare_provider,
    inject, injectable,
    provides, singleton, dependencies,
)
from .config_builder import ContextConfig, EnvSource, FileSource, FlatDictSource, configuration
from .config_sources import DictSource, JsonTreeSource, TreeSource, YamlTreeSource
from .config_runtime import InjectorSettings, load_settings, settings_from_env
from .exceptions import (
    AodiError,
    ConfigurationError,
    ConstructTargetError,
    EmptyDependencyListError,
    InvalidInjectableError,
    InvalidProviderError,
    InvalidProviderObjectError,
    ProviderNotFoundError,
)

__all__ = [
    "__version__",
    "Token",
    "is_injectable",
    "Injector",
    "MISSING",
    "Provider",
    "ProviderKind",
    "ProviderRegistry",
    "DEPENDENCIES",
    "PROVIDERS",
    "DependencyEdge",
    "MetadataKey",
    "ProviderEntry",
    "declare_dependency",
    "declare_provider",
    "inject",
    "injectable",
    "provides",
    "singleton",
    "dependencies",
    "ContextConfig",
    "EnvSource",
    "FileSource",
    "FlatDictSource",
    "configuration",
    "DictSource",
    "JsonTreeSource",
    "TreeSource",
    "YamlTreeSource",
    "InjectorSettings",
    "load_settings",
    "settings_from_env",
    "AodiError",
    "ConfigurationError",
    "ConstructTargetError",
    "EmptyDependencyListError",
    "InvalidInjectableError",
    "InvalidProviderError",
    "InvalidProviderObjectError",
    "ProviderNotFoundError",
]
