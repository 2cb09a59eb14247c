"""
Bounded enumeration and counterexample search over an index.

An index is anything that can list its values constructor by constructor at
each size and tell whether a value belongs to it. The indices in
:mod:`neatcore.generators` are the ones used by the property suite.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass
from itertools import islice
from typing import Any, Generic, Protocol, TypeAlias, TypeVar, final

from neatcore.config import GenOptions, SearchStrategy

logger = logging.getLogger(__name__)

V = TypeVar("V")
V_co = TypeVar("V_co", covariant=True)


class Enumerable(Protocol[V]):
    @property
    def parameter(self) -> Any:
        """The kind or type that the values of this index are witnesses of."""
        ...

    @property
    def constructors(self) -> Sequence[Callable[[int], Iterator[V]]]:
        """One enumeration per top-level constructor, from size to values of exactly that size."""
        ...

    def check(self, value: V) -> bool: ...


def enumerate_values(options: GenOptions, index: Enumerable[V]) -> Iterator[V]:
    """
    Lazily enumerate the values of ``index`` of size at most ``options.depth``.

    Both strategies visit the same finite set of values, in a different order.
    """
    constructors = index.constructors
    sizes = range(1, options.depth + 1)
    match options.strategy:
        case SearchStrategy.SIZED:
            for size in sizes:
                for constructor in constructors:
                    yield from constructor(size)
        case SearchStrategy.DEPTH_FIRST:
            for constructor in constructors:
                for size in sizes:
                    yield from constructor(size)
        case _:
            raise ValueError(f"Unknown search strategy: {options.strategy!r}")


def members(options: GenOptions, index: Enumerable[V]) -> Iterator[V]:
    """
    Lazily yield the values of ``index`` within the bound that pass its membership check.

    At most ``options.max_examples`` values are yielded.
    """
    candidates = (value for value in enumerate_values(options, index) if index.check(value))
    return islice(candidates, options.max_examples)


def search(options: GenOptions, index: Enumerable[V]) -> list[V]:
    """All values of ``index`` within the bound that pass its membership predicate."""
    values = list(members(options, index))
    logger.debug("Generated %d examples for %r at %s", len(values), index, options)
    return values


@final
@dataclass(frozen=True, slots=True)
class Found(Generic[V_co]):
    value: V_co
    count: int
    """How many examples were tried, including ``value``."""


@final
@dataclass(frozen=True, slots=True)
class Exhausted:
    count: int


SearchResult: TypeAlias = Found[V] | Exhausted


def search_for_counterexample(
    options: GenOptions,
    index: Enumerable[V],
    holds: Callable[[V], bool],
) -> SearchResult[V]:
    """
    Look for the first member of ``index`` for which ``holds`` is false.

    With :attr:`SearchStrategy.SIZED` the counterexample found is a smallest one.
    """
    count = 0
    for value in members(options, index):
        count += 1
        if not holds(value):
            return Found(value, count)
    return Exhausted(count)
