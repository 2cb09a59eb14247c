"""Tests for readable rendering of syntax."""

from neatcore.generators import (
    ErrorG,
    LamAbsG,
    Normalized,
    TyAppG,
    TyBuiltinG,
    TyFunG,
    TyLamG,
    TyVarG,
    VarG,
)
from neatcore.naming import Name, TyName
from neatcore.pretty import PrettyConfig, ShowKinds, render, show_generated
from neatcore.syntax import (
    STAR,
    TRUE_LITERAL,
    UNIT_LITERAL,
    Apply,
    BuiltinType,
    Constant,
    Error,
    KindArrow,
    LamAbs,
    TyAbs,
    TyApp,
    TyBuiltin,
    TyForall,
    TyFun,
    TyInst,
    TyVar,
    UDelay,
    UError,
    UForce,
    ULamAbs,
    UVar,
    Var,
)

UNIT = TyBuiltin(BuiltinType.UNIT)
T0 = TyName(Name("t0", 7))
X0 = Name("x0", 8)


class TestKinds:
    def test_arrows_associate_to_the_right(self) -> None:
        assert render(KindArrow(STAR, KindArrow(STAR, STAR))) == "* -> * -> *"
        assert render(KindArrow(KindArrow(STAR, STAR), STAR)) == "(* -> *) -> *"


class TestTypes:
    """Fixities decide parenthesization of types."""

    def test_function_arrows(self) -> None:
        assert render(TyFun(UNIT, TyFun(UNIT, UNIT))) == "unit -> unit -> unit"
        assert render(TyFun(TyFun(UNIT, UNIT), UNIT)) == "(unit -> unit) -> unit"

    def test_application_associates_to_the_left(self) -> None:
        f = TyVar(TyName(Name("f", 1)))
        a = TyVar(TyName(Name("a", 2)))
        assert render(TyApp(TyApp(f, a), a)) == "f a a"
        assert render(TyApp(f, TyApp(f, a))) == "f (f a)"

    def test_binders(self) -> None:
        assert render(TyForall(T0, STAR, TyVar(T0))) == "all (t0 :: *). t0"
        assert render(TyFun(TyForall(T0, STAR, TyVar(T0)), UNIT)) == "(all (t0 :: *). t0) -> unit"

    def test_hiding_kinds(self) -> None:
        config = PrettyConfig(show_kinds=ShowKinds.NO)
        assert render(TyForall(T0, STAR, TyVar(T0)), config) == "all t0. t0"

    def test_showing_uniques(self) -> None:
        assert render(TyVar(T0), PrettyConfig(show_uniques=True)) == "t0_7"
        assert render(X0) == "x0"


class TestTerms:
    """Rendering typed and untyped terms."""

    def test_lambda(self) -> None:
        assert render(LamAbs(X0, UNIT, Var(X0))) == "\\(x0 : unit) -> x0"

    def test_application_of_a_lambda(self) -> None:
        term = Apply(LamAbs(X0, UNIT, Var(X0)), Constant(UNIT_LITERAL))
        assert render(term) == "(\\(x0 : unit) -> x0) ()"

    def test_instantiation(self) -> None:
        term = TyInst(TyAbs(T0, STAR, Error(TyVar(T0))), UNIT)
        assert render(term) == "(/\\(t0 :: *) -> error {t0}) {unit}"

    def test_literals(self) -> None:
        assert render(Constant(TRUE_LITERAL)) == "True"
        assert render(Constant(UNIT_LITERAL)) == "()"

    def test_untyped(self) -> None:
        assert render(ULamAbs(X0, UVar(X0))) == "\\x0 -> x0"
        assert render(UDelay(UError())) == "delay error"
        assert render(UForce(UDelay(UError()))) == "force (delay error)"


class TestShowGenerated:
    """Generated syntax is shown constructor by constructor."""

    def test_types(self) -> None:
        assert (
            show_generated(TyFunG(TyVarG(0), TyLamG(TyVarG(1))))
            == "(TyFunG (TyVarG 0) (TyLamG (TyVarG 1)))"
        )
        assert (
            show_generated(TyAppG(TyLamG(TyVarG(0)), TyBuiltinG(BuiltinType.UNIT), STAR))
            == "(TyAppG (TyLamG (TyVarG 0)) (TyBuiltinG unit) *)"
        )

    def test_normalized(self) -> None:
        assert show_generated(Normalized(TyBuiltinG(BuiltinType.BOOL))) == (
            "(Normalized (TyBuiltinG bool))"
        )

    def test_terms(self) -> None:
        assert show_generated(LamAbsG(VarG(0))) == "(LamAbsG (VarG 0))"
        assert show_generated(ErrorG()) == "ErrorG"
