"""
The typed CK machine.

A substitution-based machine over typed terms with an explicit continuation
stack. Values are lambdas, type abstractions and constants.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TypeAlias, final

from neatcore.evaluation import (
    DEFAULT_STEP_BUDGET,
    InternalEvaluationError,
    UserEvaluationError,
)
from neatcore.syntax import (
    Apply,
    Constant,
    Error,
    LamAbs,
    Term,
    TyAbs,
    TyInst,
    Type,
    Var,
    substitute_term,
    substitute_type_in_term,
)


@final
@dataclass(frozen=True, slots=True)
class _FrameAwaitArgument:
    argument: Term


@final
@dataclass(frozen=True, slots=True)
class _FrameAwaitFunction:
    """Apply the function value to the argument being computed."""

    function: Term


@final
@dataclass(frozen=True, slots=True)
class _FrameInstantiate:
    type: Type


_Frame: TypeAlias = _FrameAwaitArgument | _FrameAwaitFunction | _FrameInstantiate


def evaluate_ck(term: Term, *, budget: int = DEFAULT_STEP_BUDGET) -> Term:
    """
    Evaluate a closed typed term to a value.

    :raises UserEvaluationError: If ``error`` is evaluated or the budget runs out.
    :raises InternalEvaluationError: If the machine gets stuck.
    """
    stack: list[_Frame] = []
    steps = 0
    focus = term
    while True:
        # Compute ``focus`` until it is a value.
        steps += 1
        if steps > budget:
            raise UserEvaluationError(f"CK machine exceeded its budget of {budget} steps", term)
        match focus:
            case Apply(function, argument):
                stack.append(_FrameAwaitArgument(argument))
                focus = function
                continue
            case TyInst(inner, type_):
                stack.append(_FrameInstantiate(type_))
                focus = inner
                continue
            case Error():
                raise UserEvaluationError("evaluated error", focus)
            case Var(name):
                raise InternalEvaluationError(f"free variable {name}", focus)
            case LamAbs() | TyAbs() | Constant():
                value = focus
            case _:
                raise TypeError(f"Not a term: {focus!r}")

        # Return ``value`` to the innermost frame.
        if not stack:
            return value
        match stack.pop():
            case _FrameAwaitArgument(argument):
                stack.append(_FrameAwaitFunction(value))
                focus = argument
            case _FrameAwaitFunction(LamAbs(name, _, body)):
                focus = substitute_term(body, name, value)
            case _FrameAwaitFunction(function):
                raise InternalEvaluationError(
                    "application of a non-function", Apply(function, value)
                )
            case _FrameInstantiate(type_):
                match value:
                    case TyAbs(name, _, body):
                        focus = substitute_type_in_term(body, name, type_)
                    case _:
                        raise InternalEvaluationError(
                            "instantiation of a non-type-abstraction", TyInst(value, type_)
                        )
