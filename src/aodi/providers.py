"""Provider descriptors and the token-to-provider registry.

This module defines :class:`Provider` (how a single token is satisfied),
:class:`ProviderKind` (the strategy a descriptor resolves through), and
:class:`ProviderRegistry` (the identity-keyed mapping owned by one injector).
"""

import enum
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Iterator, Mapping, Optional, Sequence, Tuple

from .constants import LOGGER
from .exceptions import InvalidInjectableError, InvalidProviderError, ProviderNotFoundError
from .metadata import Injectable
from .token import is_injectable


class _Missing:
    __slots__ = ()

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()
"""Marks a :class:`Provider` whose value has not been set or resolved yet."""

_FIELDS = ("value", "factory", "module", "dependencies", "singleton")


class ProviderKind(enum.Enum):
    VALUE = "value"
    FACTORY = "factory"
    MODULE = "module"


@dataclass
class Provider:
    """Strategy for satisfying one token.

    The strategy is chosen by precedence: a set ``value`` always wins, then
    ``factory``, then ``module``. A singleton provider stores its first
    resolved result in ``value``, so later lookups return it directly.

    Attributes:
        value: A ready value, or :data:`MISSING`.
        factory: Callable invoked with the resolved ``dependencies`` as
            positional arguments. May return an awaitable.
        module: Class built by :meth:`Injector.create`.
        dependencies: Tokens resolved for ``factory``, in order.
        singleton: Whether the first resolved value is cached.
    """

    value: Any = MISSING
    factory: Optional[Callable[..., Any]] = None
    module: Optional[type] = None
    dependencies: Tuple[Injectable, ...] = ()
    singleton: bool = False

    @classmethod
    def of_value(cls, value: Any) -> "Provider":
        return cls(value=value)

    @classmethod
    def of_factory(
        cls, factory: Callable[..., Any], dependencies: Sequence[Injectable] = (), singleton: bool = False
    ) -> "Provider":
        return cls(factory=factory, dependencies=tuple(dependencies), singleton=singleton)

    @classmethod
    def of_module(cls, module: type, singleton: bool = False) -> "Provider":
        return cls(module=module, singleton=singleton)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Provider":
        """Build a provider from a ``{"value"|"factory"|"module", "dependencies", "singleton"}`` mapping."""
        unknown = sorted(set(data) - set(_FIELDS))
        if unknown:
            raise ValueError(f"unknown provider fields: {', '.join(unknown)}")
        deps = data.get("dependencies")
        return cls(
            value=data.get("value", MISSING),
            factory=data.get("factory"),
            module=data.get("module"),
            dependencies=tuple(deps) if deps else (),
            singleton=bool(data.get("singleton")),
        )

    @property
    def kind(self) -> ProviderKind:
        if self.value is not MISSING:
            return ProviderKind.VALUE
        if self.factory is not None:
            return ProviderKind.FACTORY
        return ProviderKind.MODULE

    @property
    def resolved(self) -> bool:
        return self.value is not MISSING

    def validate(self, token: Any) -> None:
        """Check that this descriptor can resolve *token*.

        Raises:
            InvalidProviderError: If nothing is set, or the factory or module
                has the wrong type.
            InvalidInjectableError: If a dependency is not injectable.
        """
        for dep in self.dependencies:
            if not is_injectable(dep):
                raise InvalidInjectableError(dep)
        if self.kind is ProviderKind.VALUE:
            return
        if self.factory is not None:
            if not callable(self.factory):
                raise InvalidProviderError(token, f"factory {self.factory!r} is not callable")
            if self.module is not None:
                LOGGER.warning(
                    "Provider for %r declares both a factory and a module; the factory takes precedence", token
                )
            return
        if self.module is None:
            raise InvalidProviderError(token, "no value, factory or module given")
        if not isinstance(self.module, type):
            raise InvalidProviderError(token, f"module {self.module!r} is not a class")


def normalize_provider(token: Any, provider: Any = None, **fields: Any) -> Provider:
    """Turn the arguments of :meth:`Injector.provide` into a validated :class:`Provider`.

    A class becomes a module provider; a mapping or keyword fields become a
    descriptor with those fields. With nothing given, a class token provides
    itself.

    Raises:
        InvalidInjectableError: If *token* is not injectable, or is a
            :class:`~aodi.Token` given without any provider.
        InvalidProviderError: If the descriptor is malformed.
    """
    if not is_injectable(token):
        raise InvalidInjectableError(token)
    if provider is not None and fields:
        raise InvalidProviderError(token, "pass either a provider or provider fields, not both")

    if fields:
        provider = dict(fields)
    if provider is None:
        if not isinstance(token, type):
            raise InvalidInjectableError(
                token, "Can't provide injection token without specifying any resolvers in second parameter"
            )
        result = Provider.of_module(token)
    elif isinstance(provider, Provider):
        # the registry owns its descriptor; singleton results are written into it
        result = replace(provider)
    elif isinstance(provider, type):
        result = Provider.of_module(provider)
    elif isinstance(provider, Mapping):
        try:
            result = Provider.from_mapping(provider)
        except ValueError as e:
            raise InvalidProviderError(token, str(e)) from e
    else:
        raise InvalidProviderError(
            token, f"expected a class, a Provider or a mapping, got {type(provider).__name__}"
        )

    result.validate(token)
    return result


class ProviderRegistry:
    """Identity-keyed mapping from tokens and classes to :class:`Provider` descriptors."""

    def __init__(self) -> None:
        self._providers: Dict[Injectable, Provider] = {}

    def bind(self, token: Injectable, provider: Provider) -> None:
        """Bind *provider* to *token*, replacing any previous binding."""
        self._providers[token] = provider

    def has(self, token: Injectable) -> bool:
        return token in self._providers

    def get(self, token: Injectable) -> Provider:
        """Return the provider bound to *token*.

        Raises:
            ProviderNotFoundError: If nothing is bound to *token*.
        """
        try:
            return self._providers[token]
        except KeyError:
            raise ProviderNotFoundError(token) from None

    def __contains__(self, token: object) -> bool:
        return token in self._providers

    def __iter__(self) -> Iterator[Injectable]:
        return iter(self._providers)

    def __len__(self) -> int:
        return len(self._providers)
