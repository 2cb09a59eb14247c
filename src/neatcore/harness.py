"""
Running a property over every example an index generates.

There are two ways to run a property:

- :func:`run_fail_fast` stops at the first example for which the property
  fails and reports that example;
- :func:`run_exhaustive` applies the property to every example, collects
  every counterexample, and reports them all at the end.

In both modes any failure that is not a counterexample aborts the run at
once with :class:`PropertyAborted`, so a fault in the harness is never
mistaken for a bug in the system under test.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any, TypeAlias, TypeVar, final

from neatcore.config import GenOptions
from neatcore.failures import CounterexampleFailure, PropertyFailure
from neatcore.pretty import show_generated
from neatcore.search import (
    Enumerable,
    Exhausted,
    Found,
    members,
    search,
    search_for_counterexample,
)

logger = logging.getLogger(__name__)

V = TypeVar("V")

Property: TypeAlias = Callable[[Any, V], None]
"""A property of a generated value, given the parameter of its index."""


@final
@dataclass(frozen=True, slots=True)
class PropertyReport:
    name: str
    examples: int
    """Number of examples the property was applied to."""

    def __str__(self) -> str:
        return f"{self.name}: {self.examples} examples generated"


class CounterexamplesFound(AssertionError):
    """A property has counterexamples."""

    def __init__(self, name: str, examples: int, failures: Sequence[CounterexampleFailure]) -> None:
        details = "\n".join(str(failure) for failure in failures)
        super().__init__(
            f"{name}: {len(failures)} of {examples} examples are counterexamples\n{details}"
        )
        self.name = name
        self.examples = examples
        self.failures = tuple(failures)


class PropertyAborted(AssertionError):
    """A property failed for a reason other than a counterexample."""

    def __init__(self, name: str, value: object, failure: PropertyFailure) -> None:
        super().__init__(
            f"{name}: aborted on {show_generated(value)} "
            f"(not a counterexample, the harness itself failed): {failure}"
        )
        self.name = name
        self.value = value
        self.failure = failure


def is_ok(prop: Property[V], parameter: Any, value: V) -> bool:
    try:
        prop(parameter, value)
    except PropertyFailure:
        return False
    return True


def pack_assertion(prop: Property[V]) -> Callable[[Any, V], None]:
    """
    Turn a property into an assertion for a single example.

    A failing property raises :class:`AssertionError` carrying the formatted
    failure, so a test that calls the result fails with a readable message.
    """

    def assertion(parameter: Any, value: V) -> None:
        try:
            prop(parameter, value)
        except PropertyFailure as failure:
            raise AssertionError(str(failure)) from failure

    return assertion


def _abort(name: str, value: object, failure: PropertyFailure) -> PropertyAborted:
    logger.error("%s aborted on %s: %s", name, show_generated(value), failure)
    return PropertyAborted(name, value, failure)


def run_fail_fast(
    name: str,
    options: GenOptions,
    index: Enumerable[V],
    prop: Property[V],
) -> PropertyReport:
    """
    Search for the first example on which ``prop`` fails.

    :raises CounterexamplesFound: With the single counterexample found.
    :raises PropertyAborted: If the first failure is not a counterexample.
    """
    parameter = index.parameter
    match search_for_counterexample(options, index, lambda value: is_ok(prop, parameter, value)):
        case Exhausted(count):
            report = PropertyReport(name, count)
            logger.info("%s", report)
            return report
        case Found(value, count):
            try:
                prop(parameter, value)
            except CounterexampleFailure as failure:
                logger.warning("%s: %s", name, failure)
                raise CounterexamplesFound(name, count, (failure,)) from failure
            except PropertyFailure as failure:
                raise _abort(name, value, failure) from failure
            raise AssertionError(f"{name}: property failed on {value!r} but passed when rerun")
        case result:
            raise TypeError(f"Unexpected search result: {result!r}")


def run_exhaustive(
    name: str,
    options: GenOptions,
    index: Enumerable[V],
    prop: Property[V],
) -> PropertyReport:
    """
    Apply ``prop`` to every example and collect the counterexamples.

    Examples are generated one at a time and are not kept once checked.

    :raises CounterexamplesFound: After all examples ran, if any is a counterexample.
    :raises PropertyAborted: At the first failure that is not a counterexample.
    """
    parameter = index.parameter
    count = 0
    failures: list[CounterexampleFailure] = []
    for value in members(options, index):
        count += 1
        logger.debug("%s: checking %r", name, value)
        try:
            prop(parameter, value)
        except CounterexampleFailure as failure:
            logger.warning("%s: %s", name, failure)
            failures.append(failure)
        except PropertyFailure as failure:
            raise _abort(name, value, failure) from failure
    if failures:
        raise CounterexamplesFound(name, count, failures)
    report = PropertyReport(name, count)
    logger.info("%s", report)
    return report


def examples(options: GenOptions, index: Enumerable[V]) -> list[V]:
    """
    The examples of ``index``, for generating one test per example.

    Example::

        @pytest.mark.parametrize("type_g", examples(options, index), ids=show_generated)
        def test_commutes(type_g: TypeG) -> None:
            pack_assertion(prop_normalize_convert_commute_types)(STAR, type_g)
    """
    return search(options, index)
