"""
Properties checked against generated kinds, types and terms.

Each property takes the index a value was generated at (a kind or a
generated type) and the generated value, runs it through the converter, the
checker, the normalizer and the evaluators, and returns ``None`` when the
property holds. Otherwise it raises a
:class:`~neatcore.failures.PropertyFailure`:

- a :class:`~neatcore.failures.CounterexampleFailure` when the system under
  test violates the property;
- any other failure when the generator, the checker or an evaluator
  misbehaved in a way that makes the example meaningless.

Every conversion starts from fresh name states seeded by :data:`TYNAMES` and
:data:`NAMES`, so examples share no state and can be checked in any order.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Final

from neatcore.cek import evaluate_cek
from neatcore.ck import evaluate_ck
from neatcore.convert import GenError, convert_closed_term, convert_closed_type
from neatcore.erase import erase_term
from neatcore.evaluation import (
    EvaluationError,
    InternalEvaluationError,
    UserEvaluationError,
)
from neatcore.failures import (
    CounterexampleFailure,
    GeneratorFailure,
    KindCheckFail,
    KindPreservationFail,
    NormalizeConvertCommuteTypes,
    NormalTypesCannotReduce,
    TypeCheckFail,
    TypeCheckFailure,
    TypePreservationFail,
    UntypedTermEvaluationMismatch,
    evaluation_failure,
    reraise_as,
)
from neatcore.generators import (
    Normalized,
    TermG,
    TypeG,
    normalize_type_g,
    step_type_g,
)
from neatcore.naming import name_stream
from neatcore.syntax import STAR, Error, Kind, Term, Type, UError, UTerm
from neatcore.typecheck import (
    TypeCheckConfig,
    TypeCheckError,
    check_kind,
    check_type,
    default_check_config,
    normalize_type,
)

TYNAMES: Final = name_stream("t")
"""Seed of the type variable names ``t0, t1, t2, ...``."""

NAMES: Final = name_stream("x")
"""Seed of the term variable names ``x0, x1, x2, ...``."""

TYPED_MACHINE: Final = "CK"
UNTYPED_MACHINE: Final = "UCEK"

TypedEvaluator = Callable[[Term], Term]
UntypedEvaluator = Callable[[UTerm], UTerm]


# =============================================================================
# Evaluation outcomes
# =============================================================================


def handle_error(type_: Type, error: EvaluationError) -> Term:
    """
    Turn a user error into an ``error`` term of ``type_``.

    :raises InternalEvaluationError: ``error`` itself, if it is not a user error.
    """
    if isinstance(error, UserEvaluationError):
        return Error(type_)
    raise error


def handle_uerror(error: EvaluationError) -> UTerm:
    """Untyped version of :func:`handle_error`."""
    if isinstance(error, UserEvaluationError):
        return UError()
    raise error


def _evaluate_typed(evaluator: TypedEvaluator, type_: Type, term: Term) -> Term:
    with reraise_as(evaluation_failure(TYPED_MACHINE), InternalEvaluationError):
        try:
            return evaluator(term)
        except EvaluationError as error:
            return handle_error(type_, error)


def _evaluate_untyped(evaluator: UntypedEvaluator, term: UTerm) -> UTerm:
    with reraise_as(evaluation_failure(UNTYPED_MACHINE), InternalEvaluationError):
        try:
            return evaluator(term)
        except EvaluationError as error:
            return handle_uerror(error)


# =============================================================================
# Conversion
# =============================================================================


def _convert_checked_type(kind: Kind, type_g: TypeG) -> Type:
    with reraise_as(GeneratorFailure, GenError):
        type_ = convert_closed_type(TYNAMES, kind, type_g)
    with reraise_as(TypeCheckFailure, TypeCheckError):
        check_kind(type_, kind)
    return type_


def _convert_checked_term(
    config: TypeCheckConfig, type_g: TypeG, term_g: TermG
) -> tuple[Type, Term]:
    type_ = _convert_checked_type(STAR, type_g)
    with reraise_as(GeneratorFailure, GenError):
        term = convert_closed_term(TYNAMES, NAMES, type_g, term_g)
    with reraise_as(TypeCheckFailure, TypeCheckError):
        check_type(config, term, normalize_type(type_))
    return type_, term


# =============================================================================
# Properties of types
# =============================================================================


def prop_kind_checking_sound(kind: Kind, type_g: TypeG) -> None:
    """Every generated type kind-checks at the kind it was generated at."""
    with reraise_as(GeneratorFailure, GenError):
        type_ = convert_closed_type(TYNAMES, kind, type_g)
    try:
        check_kind(type_, kind)
    except TypeCheckError as error:
        raise CounterexampleFailure(KindCheckFail(kind, type_g)) from error


def prop_normalize_convert_commute_types(kind: Kind, type_g: TypeG) -> None:
    """
    Normalization commutes with conversion::

                         convert
        generated type -----------> type
             |                        |
             | normalize_type_g       | normalize_type
             v                        v
        generated type -----------> type
                         convert
    """
    type_ = _convert_checked_type(kind, type_g)

    with reraise_as(TypeCheckFailure, TypeCheckError):
        converted_then_normalized = normalize_type(type_)
    try:
        check_kind(converted_then_normalized, kind)
    except TypeCheckError as error:
        raise CounterexampleFailure(KindPreservationFail(kind, type_g)) from error

    with reraise_as(GeneratorFailure, GenError):
        normalized_then_converted = convert_closed_type(TYNAMES, kind, normalize_type_g(type_g))

    if converted_then_normalized != normalized_then_converted:
        raise CounterexampleFailure(
            NormalizeConvertCommuteTypes(
                kind, type_g, converted_then_normalized, normalized_then_converted
            )
        )


def prop_normal_types_cannot_reduce(kind: Kind, normalized: Normalized[TypeG]) -> None:
    if step_type_g(normalized.value) is not None:
        raise CounterexampleFailure(NormalTypesCannotReduce(kind, normalized.value))


# =============================================================================
# Properties of terms
# =============================================================================


def prop_type_checking_sound(type_g: TypeG, term_g: TermG) -> None:
    """Every generated term type-checks at the type it was generated at."""
    config = default_check_config()
    type_ = _convert_checked_type(STAR, type_g)
    with reraise_as(GeneratorFailure, GenError):
        term = convert_closed_term(TYNAMES, NAMES, type_g, term_g)
    try:
        check_type(config, term, normalize_type(type_))
    except TypeCheckError as error:
        raise CounterexampleFailure(TypeCheckFail(type_g, term_g)) from error


def prop_type_preservation(
    type_g: TypeG,
    term_g: TermG,
    *,
    typed_evaluator: TypedEvaluator = evaluate_ck,
) -> None:
    """Evaluation with the typed machine does not change the type of a term."""
    config = default_check_config()
    type_, term = _convert_checked_term(config, type_g, term_g)

    evaluated = _evaluate_typed(typed_evaluator, type_, term)
    try:
        check_type(config, evaluated, normalize_type(type_))
    except TypeCheckError as error:
        raise CounterexampleFailure(
            TypePreservationFail(type_g, term_g, term, evaluated)
        ) from error


def prop_agree_term_eval(
    type_g: TypeG,
    term_g: TermG,
    *,
    typed_evaluator: TypedEvaluator = evaluate_ck,
    untyped_evaluator: UntypedEvaluator = evaluate_cek,
) -> None:
    """The typed machine and the untyped machine agree modulo erasure."""
    config = default_check_config()
    type_, term = _convert_checked_term(config, type_g, term_g)

    typed_output = erase_term(_evaluate_typed(typed_evaluator, type_, term))
    untyped_output = _evaluate_untyped(untyped_evaluator, erase_term(term))

    if typed_output != untyped_output:
        raise CounterexampleFailure(
            UntypedTermEvaluationMismatch(
                type_g,
                term_g,
                (("untyped CK", typed_output), ("untyped CEK", untyped_output)),
            )
        )
