"""
Fresh-name allocation for converting de Bruijn syntax into named syntax.

A :class:`NameState` pairs a context of already allocated names with a
persistent stream of name strings that have not been handed out yet. The
converter creates an empty state per conversion, extends it once per binder,
and throws it away afterwards, so no state is ever shared between examples.

Term variables and type variables live in separate namespaces:
:class:`NameState` allocates :class:`Name` values and :class:`TyNameState`
allocates :class:`TyName` values, each seeded from its own stream.
"""

from __future__ import annotations

import itertools
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Final, final

from neatcore.context import Context, EmptyContext

_uniques: Final = itertools.count()
"""Process-wide source of uniques. Never reset, so no unique is reused."""


@final
@dataclass(frozen=True, slots=True)
class Name:
    """A term-level name. Two names are the same name iff their uniques agree."""

    text: str
    unique: int

    def __str__(self) -> str:
        return f"{self.text}_{self.unique}"


@final
@dataclass(frozen=True, slots=True)
class TyName:
    """A type-level name, kept distinct from :class:`Name` so namespaces cannot mix."""

    name: Name

    @property
    def text(self) -> str:
        return self.name.text

    @property
    def unique(self) -> int:
        return self.name.unique

    def __str__(self) -> str:
        return str(self.name)


def fresh_name(text: str) -> Name:
    """Allocate a name with the given text and a never-before-used unique."""
    return Name(text, next(_uniques))


def fresh_ty_name(text: str) -> TyName:
    return TyName(fresh_name(text))


@final
@dataclass(frozen=True, slots=True)
class NameStream:
    """
    The infinite stream ``prefix + "0", prefix + "1", ...`` from :attr:`position` on.

    The stream is a value: taking :attr:`tail` returns a new stream and leaves
    this one untouched, so the same stream can be replayed any number of times.
    """

    prefix: str
    position: int = 0

    @property
    def head(self) -> str:
        return f"{self.prefix}{self.position}"

    @property
    def tail(self) -> NameStream:
        return NameStream(self.prefix, self.position + 1)

    def __iter__(self) -> Iterator[str]:
        for position in itertools.count(self.position):
            yield f"{self.prefix}{position}"


def name_stream(prefix: str) -> NameStream:
    """Create a stream of names ``x0, x1, x2, ...`` from a prefix ``"x"``."""
    return NameStream(prefix)


@final
@dataclass(frozen=True, kw_only=True, slots=True)
class NameState:
    """Names allocated for the binders in scope, plus the unused name strings."""

    names: Context[Name]
    """The name of each in-scope reference, innermost binder first."""

    fresh_name_strings: NameStream
    """Strings not yet used by this state."""

    @property
    def size(self) -> int:
        return len(self.names)

    def name_of(self, index: int) -> Name:
        """
        Return the name allocated for the reference ``index``.

        :raises AssertionError: If ``index`` is not a valid reference in this
            context. Generated syntax is well-scoped by construction, so this
            only happens when the generator and the converter disagree.
        """
        assert 0 <= index < self.size, (
            f"reference {index} out of scope in a context of size {self.size}"
        )
        return self.names.lookup(index)


def empty_name_state(strings: NameStream) -> NameState:
    """Create a name state for the empty context from a stream of name strings."""
    return NameState(names=EmptyContext.INSTANCE, fresh_name_strings=strings)


def extend_name_state(state: NameState) -> NameState:
    """
    Allocate a fresh name for a new innermost binder.

    The head of the stream becomes the new name's text; every outer reference
    keeps resolving to the name it had in ``state``.
    """
    name = fresh_name(state.fresh_name_strings.head)
    return NameState(
        names=state.names.extend(name),
        fresh_name_strings=state.fresh_name_strings.tail,
    )


@final
@dataclass(frozen=True, slots=True)
class TyNameState:
    """A :class:`NameState` used for the type-variable namespace."""

    name_state: NameState

    @property
    def size(self) -> int:
        return self.name_state.size

    def tyname_of(self, index: int) -> TyName:
        return TyName(self.name_state.name_of(index))


def empty_ty_name_state(strings: NameStream) -> TyNameState:
    return TyNameState(empty_name_state(strings))


def extend_ty_name_state(state: TyNameState) -> TyNameState:
    """Allocate a fresh type name for a new innermost type binder."""
    return TyNameState(extend_name_state(state.name_state))
