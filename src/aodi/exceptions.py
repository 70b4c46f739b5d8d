"""Exception hierarchy for aodi.

All framework-specific exceptions inherit from :class:`AodiError`, making it
easy to catch any aodi error with a single ``except AodiError`` clause.
"""

from typing import Any


def _describe(obj: Any) -> str:
    return getattr(obj, "__name__", None) or repr(obj)


class AodiError(Exception):
    """Base exception for all aodi errors."""

    pass


class InvalidInjectableError(AodiError):
    """Raised when a value that is neither a class nor a :class:`~aodi.Token` is used as a dependency identity.

    Attributes:
        value: The rejected value.
    """

    def __init__(self, value: Any, msg: str | None = None):
        super().__init__(msg or f"{value!r} is not injectable: expected a class or an instance of Token, got {type(value).__name__}")
        self.value = value


class ProviderNotFoundError(AodiError):
    """Raised when the injector has no provider registered for a requested token.

    Attributes:
        token: The token that was not found.
    """

    def __init__(self, token: Any):
        super().__init__(f"Unable to provide dependency {_describe(token)}: provider not found")
        self.token = token


class InvalidProviderObjectError(AodiError):
    """Raised when :meth:`Injector.provider` receives an object whose class declares no providers.

    Attributes:
        obj: The rejected provider object.
    """

    def __init__(self, obj: Any):
        super().__init__(f"{type(obj).__name__} declares no providers; mark its members with @provides first")
        self.obj = obj


class ConstructTargetError(AodiError):
    """Raised when :meth:`Injector.create` is asked to build something that is not a class.

    Attributes:
        target: The rejected construction target.
    """

    def __init__(self, target: Any):
        super().__init__(f"Unable to construct dependency: parameter should be a class but got {type(target).__name__}")
        self.target = target


class EmptyDependencyListError(AodiError):
    """Raised when a dependency declaration is given no tokens."""

    def __init__(self, msg: str = "Dependencies list for @dependencies should not be empty"):
        super().__init__(msg)


class InvalidProviderError(AodiError):
    """Raised when a provider descriptor cannot be used to resolve anything.

    Attributes:
        token: The token the descriptor was registered for.
    """

    def __init__(self, token: Any, msg: str):
        super().__init__(f"Invalid provider for {_describe(token)}: {msg}")
        self.token = token


class ConfigurationError(AodiError):
    """Raised for configuration problems (invalid sources, bad values, missing ENV vars)."""

    def __init__(self, msg: str):
        super().__init__(msg)
