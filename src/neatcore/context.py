"""
Context-indexed scope chains.

A :class:`Context` maps de Bruijn references ``0 .. len(context) - 1`` to
values, innermost binder first. Extending a context conses one value onto the
front and shares the outer chain unchanged, so every reference that was valid
before an extension resolves to the same value afterwards.

Example::

    >>> outer = EmptyContext.INSTANCE.extend("a")
    >>> inner = outer.extend("b")
    >>> inner.lookup(0), inner.lookup(1)
    ('b', 'a')
    >>> inner.tail is outer
    True
"""

from abc import ABC
from collections.abc import Collection, Iterable, Iterator
from dataclasses import dataclass
from enum import Enum, auto
from typing import (
    TYPE_CHECKING,
    Final,
    Generic,
    Never,
    Type,
    TypeVar,
    cast,
    final,
)


T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)


def absurd(index: Never) -> Never:
    """
    Eliminate a reference into the empty context.

    The empty context has no valid reference, so a well-scoped caller can never
    get here. Reaching this function means the generator and the converter
    disagree about scoping, which is a bug in the harness itself.
    """
    raise AssertionError(f"unreachable: reference {index!r} into the empty context")


@cast(Type[ABC], Collection).register
class Context(*((Collection,) if TYPE_CHECKING else ()), Generic[T_co]):
    """Base class for persistent contexts indexed by de Bruijn references."""

    __slots__ = ()

    def extend(self, value: T) -> "ExtendedContext[T]":  # type: ignore[misc]
        """Bind ``value`` as the new innermost reference ``0``."""
        return ExtendedContext(head=value, tail=self)  # type: ignore[arg-type]

    @staticmethod
    def from_iterable(values: Iterable[T]) -> "Context[T]":
        """
        Build a context from values listed innermost first.

        :param values: The bound values, the innermost binder first.
        :return: ``EmptyContext.INSTANCE`` when ``values`` is empty.
        """
        result: Context[T] = EmptyContext.INSTANCE
        for value in reversed(tuple(values)):
            result = result.extend(value)
        return result


@final
class EmptyContext(Context[Never], Enum):
    """
    The context with no binders.

    Uses Enum to guarantee exactly one instance exists.
    """

    INSTANCE = auto()

    def lookup(self, index: Never) -> Never:
        return absurd(index)

    def __iter__(self) -> Iterator[Never]:
        return iter(())

    def __len__(self) -> int:
        return 0

    def __contains__(self, item: object) -> bool:
        return False


@final
@dataclass(kw_only=True, slots=True, frozen=True, weakref_slot=True, eq=False)
class ExtendedContext(Context[T]):
    """
    A context with at least one binder.

    Reference ``0`` is :attr:`head`; reference ``i + 1`` is reference ``i`` of
    :attr:`tail`, so lookups one level further out are delegated unchanged.
    """

    head: Final[T]
    tail: Final[Context[T]]

    def lookup(self, index: int) -> T:
        current: Context[T] = self
        remaining = index
        while isinstance(current, ExtendedContext):
            if remaining == 0:
                return current.head
            remaining -= 1
            current = current.tail
        assert isinstance(current, EmptyContext)
        return current.lookup(cast(Never, index))

    def __iter__(self) -> Iterator[T]:
        current: Context[T] = self
        while isinstance(current, ExtendedContext):
            yield current.head
            current = current.tail

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def __contains__(self, item: object) -> bool:
        return any(element == item for element in self)
