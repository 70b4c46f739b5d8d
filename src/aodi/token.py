"""Dependency identities.

A :class:`Token` names a dependency that is not itself a class: a number, a
plain dict, or one of several implementations of a protocol that share no base
class. Classes are the other kind of identity and need no token.

Example:
    >>> from aodi import Token
    >>> DatabaseUrl: Token[str] = Token("database_url")
"""

from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")


class Token(Generic[T]):
    """Opaque placeholder bound to a provider in an :class:`~aodi.Injector`.

    Tokens compare by identity only: two tokens created with the same name are
    still different identities. The optional *name* is used for ``repr`` and
    error messages.

    Args:
        name: Human-readable label.
    """

    __slots__ = ("name", "__weakref__")

    def __init__(self, name: Optional[str] = None) -> None:
        self.name = name

    def __repr__(self) -> str:
        if self.name:
            return f"Token({self.name!r})"
        return f"<Token at {id(self):#x}>"

    @staticmethod
    def is_injectable(dependency: Any) -> bool:
        """Return ``True`` if *dependency* is a class or a :class:`Token` instance."""
        return isinstance(dependency, (type, Token))


def is_injectable(dependency: Any) -> bool:
    return Token.is_injectable(dependency)
