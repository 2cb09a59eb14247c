"""
Why a property failed.

A property raises a :class:`PropertyFailure`. Only a
:class:`CounterexampleFailure` means that the system under test violated the
property; every other failure is a fault in the generator, the checker or an
evaluator, and must never be reported as a counterexample.

Counterexamples are plain data, one class per property, and
:func:`format_counterexample` renders them.
"""

from __future__ import annotations

from abc import ABC
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TypeAlias, final

from neatcore.convert import GenError
from neatcore.evaluation import EvaluationError
from neatcore.generators import TermG, TypeG
from neatcore.pretty import render, show_generated
from neatcore.syntax import Kind, Term, Type, UTerm
from neatcore.typecheck import TypeCheckError


# =============================================================================
# Counterexamples
# =============================================================================


class Counterexample(ABC):
    __slots__ = ()

    def __str__(self) -> str:
        return format_counterexample(self)


@final
@dataclass(frozen=True, slots=True, eq=False)
class NormalizeConvertCommuteTypes(Counterexample):
    """Normalizing a converted type differs from converting the normalized type."""

    kind: Kind
    type_g: TypeG
    converted_then_normalized: Type
    normalized_then_converted: Type


@final
@dataclass(frozen=True, slots=True)
class NormalTypesCannotReduce(Counterexample):
    kind: Kind
    type_g: TypeG


@final
@dataclass(frozen=True, slots=True)
class KindCheckFail(Counterexample):
    kind: Kind
    type_g: TypeG


@final
@dataclass(frozen=True, slots=True)
class KindPreservationFail(Counterexample):
    kind: Kind
    type_g: TypeG


@final
@dataclass(frozen=True, slots=True)
class TypeCheckFail(Counterexample):
    type_g: TypeG
    term_g: TermG


@final
@dataclass(frozen=True, slots=True, eq=False)
class TypePreservationFail(Counterexample):
    type_g: TypeG
    term_g: TermG
    before: Term
    after: Term


@final
@dataclass(frozen=True, slots=True, eq=False)
class UntypedTermEvaluationMismatch(Counterexample):
    type_g: TypeG
    term_g: TermG
    outputs: Sequence[tuple[str, UTerm]]
    """Each evaluator's result, labeled by the evaluator that produced it."""


def format_counterexample(counterexample: Counterexample) -> str:
    match counterexample:
        case NormalizeConvertCommuteTypes(kind, type_g, left, right):
            return (
                f"Counterexample found: {show_generated(type_g)} :: {render(kind)}\n"
                f"- convert then normalize gives {render(left)}\n"
                f"- normalize then convert gives {render(right)}\n"
            )
        case NormalTypesCannotReduce(kind, type_g):
            return (
                f"Counterexample found: normal type {show_generated(type_g)} "
                f"of kind {render(kind)} can reduce."
            )
        case KindCheckFail(kind, type_g):
            return (
                f"Counterexample found (kind check fail): "
                f"{show_generated(type_g)} :: {render(kind)}"
            )
        case KindPreservationFail(kind, type_g):
            return (
                f"Counterexample found (kind preservation fail): "
                f"{show_generated(type_g)} :: {render(kind)}"
            )
        case TypeCheckFail(type_g, term_g):
            return (
                f"Counterexample found (typecheck fail): "
                f"{show_generated(term_g)} :: {show_generated(type_g)}"
            )
        case TypePreservationFail(type_g, term_g, before, after):
            return (
                f"Counterexample found: {show_generated(term_g)} :: {show_generated(type_g)}\n"
                f"before evaluation: {render(before)}\n"
                f"after evaluation:  {render(after)}\n"
            )
        case UntypedTermEvaluationMismatch(type_g, term_g, outputs):
            lines = [
                "UntypedTermEvaluationMismatch\n",
                f"Counterexample found: {show_generated(term_g)} :: {show_generated(type_g)}\n",
            ]
            lines.extend(f"{label} evaluation: {render(output)}\n" for label, output in outputs)
            return "".join(lines)
        case _:
            raise TypeError(f"Not a counterexample: {counterexample!r}")


# =============================================================================
# Failures
# =============================================================================


class PropertyFailure(Exception):
    """A property did not hold for an example."""


class GeneratorFailure(PropertyFailure):
    def __init__(self, error: GenError) -> None:
        super().__init__(f"generator error: {error}")
        self.error = error


class TypeCheckFailure(PropertyFailure):
    def __init__(self, error: TypeCheckError) -> None:
        super().__init__(f"type error: {error}")
        self.error = error


class EvaluationFailure(PropertyFailure):
    """An evaluator hit an internal error on well-typed input."""

    def __init__(self, machine: str, error: EvaluationError) -> None:
        super().__init__(f"{machine} error: {error}")
        self.machine = machine
        self.error = error


class CounterexampleFailure(PropertyFailure):
    def __init__(self, counterexample: Counterexample) -> None:
        super().__init__(f"counter example error: {counterexample}")
        self.counterexample = counterexample


FailureFactory: TypeAlias = Callable[[BaseException], PropertyFailure]


@contextmanager
def reraise_as(wrap: FailureFactory, *error_types: type[Exception]) -> Iterator[None]:
    """
    Translate errors of ``error_types`` raised in the block into property failures.

    Example::

        with reraise_as(GeneratorFailure, GenError):
            type_ = convert_closed_type(TYNAMES, kind, type_g)
    """
    try:
        yield
    except error_types as error:
        raise wrap(error) from error


def evaluation_failure(machine: str) -> FailureFactory:
    """A factory labeling evaluator errors with the name of ``machine``."""

    def wrap(error: BaseException) -> PropertyFailure:
        assert isinstance(error, EvaluationError)
        return EvaluationFailure(machine, error)

    return wrap
