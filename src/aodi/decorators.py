"""Declaration API and decorators.

``declare_dependency`` and ``declare_provider`` write the metadata the
injector reads. The decorators below are thin wrappers around them::

    class Service:
        repo = inject(Repository)
        url = inject(DatabaseUrl)

    class Providers:
        @provides(DatabaseUrl)
        def url(self):
            return "sqlite://"

        @provides(Repository)
        @singleton
        @dependencies(DatabaseUrl)
        def repository(self, url):
            return SqlRepository(url)
"""

from typing import Any, Callable, Dict, Sequence

from .constants import LOGGER
from .exceptions import EmptyDependencyListError, InvalidInjectableError
from .metadata import (
    DEPENDENCIES,
    DependencyEdge,
    Injectable,
    ProviderEntry,
    annotate,
    ensure_dependencies,
    ensure_provider_entry,
    get_metadata,
)
from .token import is_injectable

_UNSET: Any = object()


def _check_injectable(token: Any, what: str) -> None:
    if not is_injectable(token):
        raise InvalidInjectableError(
            token, f"Unable to {what} dependency {token!r}, it should be a class or instance of Token"
        )


def _check_dependency_list(tokens: Sequence[Any]) -> None:
    if not tokens:
        raise EmptyDependencyListError()
    for index, token in enumerate(tokens):
        if not is_injectable(token):
            raise InvalidInjectableError(
                token,
                f"Dependency #{index} must be an injection token or class, but {token!r} is {type(token).__name__}",
            )


def declare_dependency(cls: type, key: str, token: Injectable) -> DependencyEdge:
    """Record that building *cls* needs *token* resolved and passed as *key*.

    The edge is stored on *cls* only. Bases and subclasses pick it up when
    their edges are read, whenever it is declared.
    """
    _check_injectable(token, "inject")
    edge = DependencyEdge(key, token)
    annotate(cls, DEPENDENCIES, [*(get_metadata(cls, DEPENDENCIES) or ()), edge])
    return edge


def declare_provider(
    cls: type,
    key: str,
    *,
    token: Any = _UNSET,
    dependencies: Any = _UNSET,
    singleton: Any = _UNSET,
) -> ProviderEntry:
    """Record provider settings for member *key* of provider class *cls*.

    Only the fields passed are written, so separate calls for the same member
    accumulate instead of replacing each other.
    """
    entry = ensure_provider_entry(cls, key)
    if token is not _UNSET:
        _check_injectable(token, "provide")
        entry.token = token
    if dependencies is not _UNSET:
        deps = tuple(dependencies)
        _check_dependency_list(deps)
        entry.dependencies = deps
    if singleton is not _UNSET:
        entry.singleton = bool(singleton)
    LOGGER.debug("Declared provider %s.%s -> %r", cls.__name__, key, entry)
    return entry


class _InjectMarker:
    __slots__ = ("token",)

    def __init__(self, token: Injectable) -> None:
        self.token = token

    def __set_name__(self, owner: type, name: str) -> None:
        declare_dependency(owner, name, self.token)
        # the resolved value is set on the instance or passed to __init__
        delattr(owner, name)


def inject(dependency: Injectable) -> Any:
    """Mark a class attribute as a dependency.

    The attribute name becomes the key: the resolved value is passed to the
    constructor as a keyword argument, or assigned to the instance when the
    class defines no ``__init__``.
    """
    _check_injectable(dependency, "inject")
    return _InjectMarker(dependency)


def injectable(cls: type) -> type:
    """Register *cls* as a class the injector constructs.

    Classes using :func:`inject` are registered automatically. Inherited
    dependencies are merged when read, so this step only marks the class.
    """
    ensure_dependencies(cls)
    return cls


class _ProviderMember:
    __slots__ = ("target", "fields")

    def __init__(self, target: Any) -> None:
        self.target = target
        self.fields: Dict[str, Any] = {}

    def __set_name__(self, owner: type, name: str) -> None:
        declare_provider(owner, name, **self.fields)
        setattr(owner, name, self.target)


def _member(target: Any) -> _ProviderMember:
    return target if isinstance(target, _ProviderMember) else _ProviderMember(target)


def provides(token: Injectable) -> Callable[[Any], _ProviderMember]:
    """Mark a method or class attribute of a provider class as the provider for *token*.

    A method is called as a factory, a class is constructed by the injector,
    and any other value is provided as is.
    """
    _check_injectable(token, "provide")

    def dec(target: Any) -> _ProviderMember:
        m = _member(target)
        m.fields["token"] = token
        return m
    return dec


def singleton(target: Any) -> Any:
    """Cache the first value produced by a provider member and reuse it afterwards."""
    m = _member(target)
    m.fields["singleton"] = True
    return m


def dependencies(*tokens: Injectable) -> Callable[[Any], _ProviderMember]:
    """Resolve *tokens* and pass them positionally to the decorated provider method."""
    _check_dependency_list(tokens)

    def dec(target: Any) -> _ProviderMember:
        m = _member(target)
        m.fields["dependencies"] = tokens
        return m
    return dec


__all__ = [
    "declare_dependency", "declare_provider",
    "inject", "injectable",
    "provides", "singleton", "dependencies",
]
