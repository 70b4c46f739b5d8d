"""Per-target metadata side-table.

Dependency edges and provider entries are kept in a table keyed by the
identity of the class (or function) they describe, instead of attributes on
the class itself. A lookup only ever sees what was stored for that exact
target; inheritance is applied explicitly by :func:`ensure_dependencies`.
"""

import weakref
from dataclasses import dataclass
from typing import Any, Dict, Generic, Iterator, List, MutableMapping, Optional, Sequence, TypeVar, Union

from .token import Token

K = TypeVar("K")
V = TypeVar("V")

Injectable = Union[type, Token]


class MetadataKey:
    """Reserved slot identity for one kind of metadata.

    Two keys never collide, even when created with the same name, so metadata
    can not be confused with a user-defined attribute.
    """

    __slots__ = ("name",)

    def __init__(self, name: str) -> None:
        self.name = name

    def __repr__(self) -> str:
        return f"MetadataKey({self.name!r})"


DEPENDENCIES = MetadataKey("dependencies")
"""Slot holding the :class:`DependencyEdge` list declared by a class itself."""

PROVIDERS = MetadataKey("providers")
"""Slot holding the ``member -> ProviderEntry`` map of a provider class."""


@dataclass(frozen=True)
class DependencyEdge:
    """Constructing the owner requires resolving *token* and passing it as *key*."""

    key: str
    token: Injectable


@dataclass
class ProviderEntry:
    """Declared provider settings for one member of a provider class.

    Fields left as ``None`` were never declared.
    """

    token: Optional[Injectable] = None
    dependencies: Optional[Sequence[Injectable]] = None
    singleton: Optional[bool] = None


_table: "weakref.WeakKeyDictionary[Any, Dict[MetadataKey, Any]]" = weakref.WeakKeyDictionary()


def _check_key(key: Any) -> None:
    if not isinstance(key, MetadataKey):
        raise TypeError(f"metadata key must be a MetadataKey, got {type(key).__name__}")


def annotate(target: Any, key: MetadataKey, data: Any) -> None:
    """Attach *data* to *target* under *key*, replacing any previous value.

    Raises:
        TypeError: If *target* is ``None`` or *key* is not a :class:`MetadataKey`.
        ValueError: If *data* is ``None``.
    """
    if target is None:
        raise TypeError("annotate can be applied only to a class, function or provider object")
    _check_key(key)
    if data is None:
        raise ValueError("unable to annotate target: there is no data for annotation provided")
    _table.setdefault(target, {})[key] = data


def get_metadata(target: Any, key: MetadataKey) -> Any:
    """Return the value stored for *target* itself under *key*, or ``None``.

    Base classes are never consulted.
    """
    if target is None:
        raise TypeError("get_metadata can be applied only to a class, function or provider object")
    _check_key(key)
    try:
        slots = _table.get(target)
    except TypeError:
        # not weak-referenceable, so nothing can have been stored for it
        return None
    if slots is None:
        return None
    return slots.get(key)


def iterate_to_inheritance_root(cls: type) -> Iterator[type]:
    """Yield *cls* and then each of its bases in MRO order, stopping before ``object``."""
    if not isinstance(cls, type):
        raise TypeError(f"target for iterate should be a class, got {type(cls).__name__}")
    for klass in cls.__mro__:
        if klass is not object:
            yield klass


def _typing_base(klass: type) -> bool:
    return klass is Generic or getattr(klass, "_is_protocol", False)


def has_explicit_constructor(cls: type) -> bool:
    """Whether *cls* or a base defines ``__init__``.

    ``typing.Protocol`` and ``typing.Generic`` bases are skipped: the
    ``__init__`` that ``Protocol`` installs on protocol classes is not a
    constructor written for the class.
    """
    return any(
        "__init__" in vars(klass) for klass in iterate_to_inheritance_root(cls) if not _typing_base(klass)
    )


def ensure_map_entry(mapping: MutableMapping[K, V], key: K, default: V) -> V:
    """Return ``mapping[key]``, storing *default* under *key* first if it is absent."""
    if key not in mapping:
        mapping[key] = default
    return mapping[key]


def ensure_dependencies(cls: type) -> List[DependencyEdge]:
    """Return the dependency edges of *cls* merged over its whole MRO.

    Edges declared by each class are stored on that class alone and merged on
    every call, from the root of the hierarchy to *cls*, so the result does not
    depend on the order of declarations. When two classes declare the same key,
    the one nearer to *cls* wins; the edge keeps the position of its first
    declaration. *cls* gets an empty list of its own if it has none yet.
    """
    if get_metadata(cls, DEPENDENCIES) is None:
        annotate(cls, DEPENDENCIES, [])
    merged: Dict[str, DependencyEdge] = {}
    for klass in reversed(list(iterate_to_inheritance_root(cls))):
        for edge in get_metadata(klass, DEPENDENCIES) or ():
            merged[edge.key] = edge
    return list(merged.values())


def ensure_provider_entry(cls: type, key: str) -> ProviderEntry:
    """Get or create the :class:`ProviderEntry` declared by *cls* for member *key*."""
    providers = get_metadata(cls, PROVIDERS)
    if providers is None:
        providers = {}
        annotate(cls, PROVIDERS, providers)
    return ensure_map_entry(providers, key, ProviderEntry())


def get_provider_entries(cls: type) -> Dict[str, ProviderEntry]:
    """Return the provider entries of *cls* merged over its bases.

    Subclass entries override base entries declared for the same member.
    """
    merged: Dict[str, ProviderEntry] = {}
    for klass in reversed(list(iterate_to_inheritance_root(cls))):
        own = get_metadata(klass, PROVIDERS)
        if own:
            merged.update(own)
    return merged
