"""The injector: provider registration, resolution and construction."""

import asyncio
import functools
import inspect
from typing import Any, Dict, Iterable, Mapping, Optional, TypeVar, Union, overload

from .config_builder import ContextConfig
from .config_runtime import InjectorSettings, load_settings
from .constants import LOGGER
from .exceptions import ConstructTargetError, InvalidInjectableError, InvalidProviderError, InvalidProviderObjectError
from .metadata import DependencyEdge, Injectable, ensure_dependencies, get_provider_entries, has_explicit_constructor
from .providers import Provider, ProviderRegistry, normalize_provider
from .token import Token, is_injectable

T = TypeVar("T")


def _name(token: Any) -> str:
    return getattr(token, "__name__", None) or repr(token)


class Injector:
    """Registry of providers plus the engine that resolves tokens through it.

    Each injector owns its own registry; nothing is shared between instances.
    All resolution runs on the current event loop. Sibling dependencies are
    resolved concurrently, and a failure anywhere propagates to the caller.

    Args:
        settings: Runtime options; defaults to :class:`InjectorSettings()`.

    Example:
        >>> injector = Injector().provide(Url, value="sqlite://").provide(Repository)
        >>> repo = await injector.get(Repository)
    """

    def __init__(self, settings: Optional[InjectorSettings] = None) -> None:
        self.settings = settings or InjectorSettings()
        self.settings.apply_logging()
        self._registry = ProviderRegistry()
        self._in_flight: Dict[Injectable, "asyncio.Future[Any]"] = {}

    @classmethod
    def from_config(cls, config: ContextConfig) -> "Injector":
        return cls(load_settings(config))

    @property
    def providers(self) -> ProviderRegistry:
        return self._registry

    def has(self, token: Injectable) -> bool:
        return self._registry.has(token)

    def provide(self, token: Injectable, provider: Any = None, **fields: Any) -> "Injector":
        """Register how *token* is resolved, replacing any previous registration.

        *provider* may be a class (constructed on demand), a :class:`Provider`,
        or a mapping of provider fields; the same fields may be passed as
        keywords instead (``value=``, ``factory=``, ``module=``,
        ``dependencies=``, ``singleton=``). A class given without a provider
        provides itself.

        Returns:
            The injector, for chaining.

        Raises:
            InvalidInjectableError: If *token* is not injectable, or is a
                :class:`Token` given without a provider.
            InvalidProviderError: If the provider is malformed.
        """
        descriptor = normalize_provider(token, provider, **fields)
        self._registry.bind(token, descriptor)
        self._in_flight.pop(token, None)
        LOGGER.debug("Provided %s via %s", _name(token), descriptor.kind.value)
        return self

    def provider(self, obj: Any) -> "Injector":
        """Register every member of *obj* declared with :func:`~aodi.provides`.

        Each member is inspected on *obj*: a non-callable is provided as a
        value, a class is constructed on demand, and any other callable (a
        method, already bound to *obj*) is used as a factory.

        Raises:
            InvalidProviderObjectError: If the class of *obj* declares no providers.
            InvalidProviderError: If a member declares no token.
        """
        entries = get_provider_entries(type(obj))
        if not entries:
            raise InvalidProviderObjectError(obj)
        for key, entry in entries.items():
            if entry.token is None:
                raise InvalidProviderError(f"{type(obj).__name__}.{key}", "member declares no token")
            member = getattr(obj, key)
            deps = tuple(entry.dependencies or ())
            singleton = bool(entry.singleton)
            if not callable(member):
                descriptor = Provider(value=member, dependencies=deps, singleton=singleton)
            elif isinstance(member, type):
                descriptor = Provider(module=member, dependencies=deps, singleton=singleton)
            else:
                descriptor = Provider(factory=member, dependencies=deps, singleton=singleton)
            self.provide(entry.token, descriptor)
        LOGGER.debug("Imported %d providers from %s", len(entries), type(obj).__name__)
        return self

    async def resolve_dependency(self, token: Injectable) -> Any:
        """Resolve *token* through its registered provider.

        A ready value is returned as is. Otherwise the factory is called with
        its dependencies (resolved concurrently, passed in order) and awaited
        if it returns an awaitable, or the module is built with :meth:`create`.
        When both a factory and a module are set, the factory is used.
        Singleton results are stored on the provider.

        Raises:
            ProviderNotFoundError: If nothing is registered for *token*.
        """
        provider = self._registry.get(token)
        if provider.resolved:
            return provider.value
        if provider.singleton and self.settings.dedupe_singletons:
            return await self._resolve_shared(token, provider)
        return await self._produce(token, provider)

    async def _produce(self, token: Injectable, provider: Provider) -> Any:
        if provider.factory is not None:
            args = await asyncio.gather(*(self.resolve_dependency(dep) for dep in provider.dependencies))
            result = provider.factory(*args)
            if inspect.isawaitable(result):
                result = await result
        else:
            result = await self.create(provider.module)
        if provider.singleton:
            provider.value = result
            LOGGER.debug("Cached singleton %s", _name(token))
        return result

    async def _resolve_shared(self, token: Injectable, provider: Provider) -> Any:
        task = self._in_flight.get(token)
        if task is None or task.done():
            task = asyncio.ensure_future(self._produce(token, provider))
            self._in_flight[token] = task
            task.add_done_callback(functools.partial(self._forget, token))
        else:
            LOGGER.debug("Joining in-flight resolution of %s", _name(token))
        # one waiter being cancelled must not cancel the others
        return await asyncio.shield(task)

    def _forget(self, token: Injectable, task: "asyncio.Future[Any]") -> None:
        if self._in_flight.get(token) is task:
            del self._in_flight[token]
        # waiters may all have been cancelled; mark the outcome as retrieved
        if not task.cancelled() and task.exception() is not None:
            LOGGER.debug("Resolution of %s failed: %r", _name(token), task.exception())

    async def resolve_dependencies(self, dependencies: Iterable[DependencyEdge]) -> Dict[str, Any]:
        """Resolve every edge concurrently into a ``{edge.key: value}`` dict."""

        async def one(edge: DependencyEdge) -> Dict[str, Any]:
            return {edge.key: await self.resolve_dependency(edge.token)}

        parts = await asyncio.gather(*(one(edge) for edge in dependencies))
        bag: Dict[str, Any] = {}
        for part in parts:
            bag.update(part)
        return bag

    @overload
    async def get(self, token: Token[T]) -> T: ...
    @overload
    async def get(self, token: type) -> Any: ...
    async def get(self, token: Union[Token[Any], type]) -> Any:
        """Resolve *token*.

        Raises:
            InvalidInjectableError: If *token* is not a class or a :class:`Token`.
            ProviderNotFoundError: If nothing is registered for *token*.
        """
        if not is_injectable(token):
            raise InvalidInjectableError(
                token,
                f"Unable to get dependency: provided token should be a class or instance of Token but got {type(token).__name__}",
            )
        return await self.resolve_dependency(token)

    async def create(self, cls: type, extra_params: Optional[Mapping[str, Any]] = None) -> Any:
        """Build an instance of *cls* with its declared dependencies.

        Dependencies are resolved and merged with *extra_params*, which win on
        conflicting keys. If *cls* or one of its bases defines ``__init__``,
        the result is passed as keyword arguments; otherwise the class is
        called without arguments and every item is set as an attribute on the
        new instance.

        Raises:
            ConstructTargetError: If *cls* is not a class.
        """
        if not isinstance(cls, type):
            raise ConstructTargetError(cls)
        edges = ensure_dependencies(cls)
        params: Dict[str, Any] = await self.resolve_dependencies(edges) if edges else {}
        if extra_params:
            params.update(extra_params)
        if has_explicit_constructor(cls):
            return cls(**params)
        instance = cls()
        for key, value in params.items():
            setattr(instance, key, value)
        return instance
