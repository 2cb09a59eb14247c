"""Tests for running properties in fail-fast and exhaustive mode."""

import logging
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass, field

import pytest

from neatcore.config import GenOptions
from neatcore.convert import GenError
from neatcore.failures import (
    CounterexampleFailure,
    GeneratorFailure,
    KindCheckFail,
    PropertyFailure,
)
from neatcore.generators import ClosedTypesOfKind, TyForallG, TypeG, TyVarG
from neatcore.harness import (
    CounterexamplesFound,
    PropertyAborted,
    PropertyReport,
    examples,
    is_ok,
    pack_assertion,
    run_exhaustive,
    run_fail_fast,
)
from neatcore.pretty import show_generated
from neatcore.search import search
from neatcore.syntax import STAR, Kind

OPTIONS = GenOptions(depth=5)
INDEX = ClosedTypesOfKind(STAR)
FIRST_FORALL = TyForallG(STAR, TyVarG(0))


def _always_holds(kind: Kind, type_g: TypeG) -> None:
    pass


def _no_foralls(kind: Kind, type_g: TypeG) -> None:
    if isinstance(type_g, TyForallG):
        raise CounterexampleFailure(KindCheckFail(kind, type_g))


def _broken_generator(kind: Kind, type_g: TypeG) -> None:
    if isinstance(type_g, TyForallG):
        raise GeneratorFailure(GenError("inconsistent generator"))


@dataclass
class _CountingIndex:
    """An index of the sizes themselves that records how many values it produced."""

    produced: list[int] = field(default_factory=list)

    @property
    def parameter(self) -> None:
        return None

    @property
    def constructors(self) -> Sequence[Callable[[int], Iterator[int]]]:
        return (self._sizes,)

    def _sizes(self, size: int) -> Iterator[int]:
        self.produced.append(size)
        yield size

    def check(self, value: int) -> bool:
        return True


class TestRunExhaustive:
    """run_exhaustive applies the property to every example."""

    def test_success_reports_the_example_count(self) -> None:
        report = run_exhaustive("always", OPTIONS, INDEX, _always_holds)
        assert report == PropertyReport("always", len(search(OPTIONS, INDEX)))
        assert str(report) == f"always: {report.examples} examples generated"

    def test_collects_every_counterexample(self) -> None:
        foralls = [value for value in search(OPTIONS, INDEX) if isinstance(value, TyForallG)]
        with pytest.raises(CounterexamplesFound) as info:
            run_exhaustive("no foralls", OPTIONS, INDEX, _no_foralls)
        assert len(info.value.failures) == len(foralls)
        assert [failure.counterexample.type_g for failure in info.value.failures] == foralls
        assert info.value.examples == len(search(OPTIONS, INDEX))
        assert "Counterexample found (kind check fail)" in str(info.value)

    def test_other_failures_abort(self) -> None:
        with pytest.raises(PropertyAborted) as info:
            run_exhaustive("broken", OPTIONS, INDEX, _broken_generator)
        assert isinstance(info.value.failure, GeneratorFailure)
        assert info.value.value == FIRST_FORALL
        message = str(info.value)
        assert "not a counterexample" in message
        assert "generator error: inconsistent generator" in message

    def test_examples_are_generated_one_at_a_time(self) -> None:
        """Each example is checked before the next one is generated."""
        index = _CountingIndex()
        produced_when_checked = []

        def record(parameter: None, value: int) -> None:
            produced_when_checked.append(len(index.produced))

        report = run_exhaustive("lazy", GenOptions(depth=5), index, record)
        assert report == PropertyReport("lazy", 5)
        assert produced_when_checked == [1, 2, 3, 4, 5]

    def test_counts_counterexamples_without_keeping_examples(self) -> None:
        index = _CountingIndex()

        def odd_sizes_fail(parameter: None, value: int) -> None:
            if value % 2:
                raise CounterexampleFailure(KindCheckFail(STAR, FIRST_FORALL))

        with pytest.raises(CounterexamplesFound) as info:
            run_exhaustive("odd", GenOptions(depth=5, max_examples=4), index, odd_sizes_fail)
        assert info.value.examples == 4
        assert len(info.value.failures) == 2
        assert index.produced == [1, 2, 3, 4]

    def test_aborts_are_not_counterexamples(self) -> None:
        assert not issubclass(PropertyAborted, CounterexamplesFound)
        assert not issubclass(CounterexamplesFound, PropertyAborted)

    def test_reports_are_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="neatcore.harness"):
            run_exhaustive("always", OPTIONS, INDEX, _always_holds)
        assert "always:" in caplog.text
        assert "examples generated" in caplog.text

    def test_counterexamples_are_logged_as_warnings(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="neatcore.harness"):
            with pytest.raises(CounterexamplesFound):
                run_exhaustive("no foralls", OPTIONS, INDEX, _no_foralls)
        assert any(record.levelno == logging.WARNING for record in caplog.records)


class TestRunFailFast:
    """run_fail_fast stops at the first failing example."""

    def test_success(self) -> None:
        report = run_fail_fast("always", OPTIONS, INDEX, _always_holds)
        assert report.examples == len(search(OPTIONS, INDEX))

    def test_first_counterexample(self) -> None:
        with pytest.raises(CounterexamplesFound) as info:
            run_fail_fast("no foralls", OPTIONS, INDEX, _no_foralls)
        (failure,) = info.value.failures
        assert failure.counterexample == KindCheckFail(STAR, FIRST_FORALL)
        assert info.value.examples == 7

    def test_other_failures_abort(self) -> None:
        with pytest.raises(PropertyAborted, match="not a counterexample"):
            run_fail_fast("broken", OPTIONS, INDEX, _broken_generator)


class TestPackAssertion:
    """pack_assertion turns a property into an assertion for one example."""

    def test_passing(self) -> None:
        pack_assertion(_no_foralls)(STAR, search(OPTIONS, INDEX)[0])

    def test_failing(self) -> None:
        assertion = pack_assertion(_no_foralls)
        with pytest.raises(AssertionError, match="counter example error") as info:
            assertion(STAR, FIRST_FORALL)
        assert isinstance(info.value.__cause__, PropertyFailure)

    def test_is_ok(self) -> None:
        assert is_ok(_no_foralls, STAR, search(OPTIONS, INDEX)[0])
        assert not is_ok(_no_foralls, STAR, FIRST_FORALL)


class TestExamples:
    """examples lists one value per generated test."""

    def test_examples_match_search(self) -> None:
        assert examples(OPTIONS, INDEX) == search(OPTIONS, INDEX)


@pytest.mark.parametrize(
    "type_g", examples(GenOptions(depth=3), ClosedTypesOfKind(STAR)), ids=show_generated
)
def test_one_test_per_example(type_g: TypeG) -> None:
    pack_assertion(_always_holds)(STAR, type_g)
