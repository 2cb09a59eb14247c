"""
The untyped CEK machine.

An environment-based machine over untyped terms. Lambdas and delays evaluate
to closures; a closure returned from the machine is discharged back into a
term by substituting its environment into its body.
"""

from __future__ import annotations

from abc import ABC
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TypeAlias, final

from neatcore.evaluation import (
    DEFAULT_STEP_BUDGET,
    InternalEvaluationError,
    UserEvaluationError,
)
from neatcore.naming import Name
from neatcore.syntax import (
    Literal,
    UApply,
    UConstant,
    UDelay,
    UError,
    UForce,
    ULamAbs,
    UTerm,
    UVar,
)

Environment: TypeAlias = Mapping[Name, "CekValue"]


class CekValue(ABC):
    __slots__ = ()


@final
@dataclass(frozen=True, slots=True, eq=False)
class VCon(CekValue):
    literal: Literal


@final
@dataclass(frozen=True, slots=True, eq=False)
class VLamAbs(CekValue):
    name: Name
    body: UTerm
    environment: Environment


@final
@dataclass(frozen=True, slots=True, eq=False)
class VDelay(CekValue):
    body: UTerm
    environment: Environment


@final
@dataclass(frozen=True, slots=True)
class _FrameAwaitArgument:
    argument: UTerm
    environment: Environment


@final
@dataclass(frozen=True, slots=True, eq=False)
class _FrameAwaitFunction:
    function: CekValue


@final
@dataclass(frozen=True, slots=True)
class _FrameForce:
    pass


_Frame: TypeAlias = _FrameAwaitArgument | _FrameAwaitFunction | _FrameForce


def discharge(value: CekValue) -> UTerm:
    """Turn a machine value back into a closed term."""
    match value:
        case VCon(literal):
            return UConstant(literal)
        case VLamAbs(name, body, environment):
            return ULamAbs(name, _discharge_term(body, environment, frozenset((name,))))
        case VDelay(body, environment):
            return UDelay(_discharge_term(body, environment, frozenset()))
        case _:
            raise TypeError(f"Not a CEK value: {value!r}")


def _discharge_term(term: UTerm, environment: Environment, bound: frozenset[Name]) -> UTerm:
    match term:
        case UVar(name):
            if name in bound or name not in environment:
                return term
            return discharge(environment[name])
        case ULamAbs(name, body):
            return ULamAbs(name, _discharge_term(body, environment, bound | {name}))
        case UApply(function, argument):
            return UApply(
                _discharge_term(function, environment, bound),
                _discharge_term(argument, environment, bound),
            )
        case UDelay(body):
            return UDelay(_discharge_term(body, environment, bound))
        case UForce(inner):
            return UForce(_discharge_term(inner, environment, bound))
        case UConstant() | UError():
            return term
        case _:
            raise TypeError(f"Not an untyped term: {term!r}")


def evaluate_cek(term: UTerm, *, budget: int = DEFAULT_STEP_BUDGET) -> UTerm:
    """
    Evaluate a closed untyped term and discharge the resulting value.

    :raises UserEvaluationError: If ``error`` is evaluated or the budget runs out.
    :raises InternalEvaluationError: If the machine gets stuck.
    """
    stack: list[_Frame] = []
    steps = 0
    focus = term
    environment: Environment = {}
    while True:
        steps += 1
        if steps > budget:
            raise UserEvaluationError(f"CEK machine exceeded its budget of {budget} steps", term)
        match focus:
            case UVar(name):
                try:
                    value = environment[name]
                except KeyError:
                    raise InternalEvaluationError(f"free variable {name}", focus) from None
            case ULamAbs(name, body):
                value = VLamAbs(name, body, environment)
            case UDelay(body):
                value = VDelay(body, environment)
            case UConstant(literal):
                value = VCon(literal)
            case UApply(function, argument):
                stack.append(_FrameAwaitArgument(argument, environment))
                focus = function
                continue
            case UForce(inner):
                stack.append(_FrameForce())
                focus = inner
                continue
            case UError():
                raise UserEvaluationError("evaluated error", focus)
            case _:
                raise TypeError(f"Not an untyped term: {focus!r}")

        if not stack:
            return discharge(value)
        match stack.pop():
            case _FrameAwaitArgument(argument, argument_environment):
                stack.append(_FrameAwaitFunction(value))
                focus = argument
                environment = argument_environment
            case _FrameAwaitFunction(VLamAbs(name, body, closure_environment)):
                focus = body
                environment = {**closure_environment, name: value}
            case _FrameAwaitFunction(function):
                raise InternalEvaluationError(
                    "application of a non-function", UApply(discharge(function), discharge(value))
                )
            case _FrameForce():
                match value:
                    case VDelay(body, closure_environment):
                        focus = body
                        environment = closure_environment
                    case _:
                        raise InternalEvaluationError("force of a non-delay", UForce(discharge(value)))
