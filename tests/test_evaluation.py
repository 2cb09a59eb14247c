"""Tests for the typed CK machine, the untyped CEK machine and erasure."""

import pytest

from neatcore.cek import VCon, VDelay, discharge, evaluate_cek
from neatcore.ck import evaluate_ck
from neatcore.erase import erase_term
from neatcore.evaluation import InternalEvaluationError, UserEvaluationError
from neatcore.naming import fresh_name, fresh_ty_name
from neatcore.syntax import (
    STAR,
    TRUE_LITERAL,
    UNIT_LITERAL,
    Apply,
    BuiltinType,
    Constant,
    Error,
    LamAbs,
    TyAbs,
    TyBuiltin,
    TyInst,
    TyVar,
    UApply,
    UConstant,
    UDelay,
    UError,
    UForce,
    ULamAbs,
    UVar,
    Var,
)

UNIT = TyBuiltin(BuiltinType.UNIT)


def _identity() -> LamAbs:
    name = fresh_name("x")
    return LamAbs(name, UNIT, Var(name))


def _constant_function() -> LamAbs:
    """``\\x -> \\y -> x``"""
    x = fresh_name("x")
    y = fresh_name("y")
    return LamAbs(x, UNIT, LamAbs(y, UNIT, Var(x)))


def _omega() -> Apply:
    name = fresh_name("x")
    self_application = LamAbs(name, UNIT, Apply(Var(name), Var(name)))
    return Apply(self_application, self_application)


class TestCkMachine:
    """The typed CK machine."""

    def test_values_are_returned(self) -> None:
        assert evaluate_ck(Constant(UNIT_LITERAL)) == Constant(UNIT_LITERAL)
        identity = _identity()
        assert evaluate_ck(identity) == identity

    def test_beta_reduction(self) -> None:
        assert evaluate_ck(Apply(_identity(), Constant(UNIT_LITERAL))) == Constant(UNIT_LITERAL)

    def test_closure_body_is_substituted(self) -> None:
        result = evaluate_ck(Apply(_constant_function(), Constant(TRUE_LITERAL)))
        y = fresh_name("y")
        assert result == LamAbs(y, UNIT, Constant(TRUE_LITERAL))

    def test_instantiation(self) -> None:
        type_name = fresh_ty_name("t")
        name = fresh_name("x")
        identity = TyAbs(type_name, STAR, LamAbs(name, TyVar(type_name), Var(name)))
        result = evaluate_ck(Apply(TyInst(identity, UNIT), Constant(UNIT_LITERAL)))
        assert result == Constant(UNIT_LITERAL)

    def test_error_is_a_user_error(self) -> None:
        with pytest.raises(UserEvaluationError):
            evaluate_ck(Apply(_identity(), Error(UNIT)))

    def test_budget_exhaustion_is_a_user_error(self) -> None:
        with pytest.raises(UserEvaluationError, match="budget"):
            evaluate_ck(_omega(), budget=100)

    def test_free_variable_is_internal(self) -> None:
        with pytest.raises(InternalEvaluationError, match="free variable"):
            evaluate_ck(Var(fresh_name("x")))

    def test_applying_a_constant_is_internal(self) -> None:
        with pytest.raises(InternalEvaluationError, match="non-function"):
            evaluate_ck(Apply(Constant(UNIT_LITERAL), Constant(UNIT_LITERAL)))

    def test_instantiating_a_constant_is_internal(self) -> None:
        with pytest.raises(InternalEvaluationError) as info:
            evaluate_ck(TyInst(Constant(UNIT_LITERAL), UNIT))
        assert info.value.cause == TyInst(Constant(UNIT_LITERAL), UNIT)


class TestCekMachine:
    """The untyped CEK machine."""

    def test_beta_reduction(self) -> None:
        name = fresh_name("x")
        term = UApply(ULamAbs(name, UVar(name)), UConstant(UNIT_LITERAL))
        assert evaluate_cek(term) == UConstant(UNIT_LITERAL)

    def test_closures_are_discharged(self) -> None:
        result = evaluate_cek(erase_term(Apply(_constant_function(), Constant(TRUE_LITERAL))))
        y = fresh_name("y")
        assert result == ULamAbs(y, UConstant(TRUE_LITERAL))

    def test_force_delay(self) -> None:
        assert evaluate_cek(UForce(UDelay(UConstant(UNIT_LITERAL)))) == UConstant(UNIT_LITERAL)

    def test_delay_is_a_value(self) -> None:
        assert evaluate_cek(UDelay(UError())) == UDelay(UError())

    def test_error_is_a_user_error(self) -> None:
        with pytest.raises(UserEvaluationError):
            evaluate_cek(UForce(UDelay(UError())))

    def test_budget_exhaustion_is_a_user_error(self) -> None:
        with pytest.raises(UserEvaluationError, match="budget"):
            evaluate_cek(erase_term(_omega()), budget=100)

    def test_free_variable_is_internal(self) -> None:
        with pytest.raises(InternalEvaluationError):
            evaluate_cek(UVar(fresh_name("x")))

    def test_forcing_a_constant_is_internal(self) -> None:
        with pytest.raises(InternalEvaluationError, match="force"):
            evaluate_cek(UForce(UConstant(UNIT_LITERAL)))

    def test_applying_a_constant_is_internal(self) -> None:
        with pytest.raises(InternalEvaluationError, match="non-function"):
            evaluate_cek(UApply(UConstant(UNIT_LITERAL), UConstant(UNIT_LITERAL)))

    def test_discharge(self) -> None:
        name = fresh_name("x")
        assert discharge(VCon(TRUE_LITERAL)) == UConstant(TRUE_LITERAL)
        delayed = VDelay(UVar(name), {name: VCon(UNIT_LITERAL)})
        assert discharge(delayed) == UDelay(UConstant(UNIT_LITERAL))


class TestErase:
    """Erasure drops annotations and keeps the evaluation structure."""

    def test_type_abstraction_and_instantiation(self) -> None:
        type_name = fresh_ty_name("t")
        name = fresh_name("x")
        term = TyInst(TyAbs(type_name, STAR, LamAbs(name, TyVar(type_name), Var(name))), UNIT)
        assert erase_term(term) == UForce(UDelay(ULamAbs(name, UVar(name))))

    def test_error_and_constants(self) -> None:
        assert erase_term(Error(UNIT)) == UError()
        name = fresh_name("x")
        assert erase_term(Apply(_identity(), Constant(UNIT_LITERAL))) == UApply(
            ULamAbs(name, UVar(name)), UConstant(UNIT_LITERAL)
        )

    def test_both_machines_agree_on_erasure(self) -> None:
        term = Apply(_constant_function(), Constant(UNIT_LITERAL))
        assert erase_term(evaluate_ck(term)) == evaluate_cek(erase_term(term))
