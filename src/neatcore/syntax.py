"""
Concrete named syntax of the object calculus.

Types and terms compare by alpha-equivalence: bound names are compared by
binding position and free names by identity. Kinds, literals and names
compare structurally.
"""

from __future__ import annotations

from abc import ABC
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Final, TypeAlias, final

from neatcore.naming import Name, TyName, fresh_name, fresh_ty_name


# =============================================================================
# Kinds
# =============================================================================


class Kind(ABC):
    __slots__ = ()


@final
@dataclass(frozen=True, slots=True)
class Star(Kind):
    """The kind of types that classify terms."""


@final
@dataclass(frozen=True, slots=True)
class KindArrow(Kind):
    argument: Kind
    result: Kind


STAR: Final = Star()


# =============================================================================
# Builtins
# =============================================================================


class BuiltinType(Enum):
    UNIT = "unit"
    BOOL = "bool"


@final
@dataclass(frozen=True, slots=True)
class Literal:
    """A constant of a builtin type."""

    builtin: BuiltinType
    value: bool | None


UNIT_LITERAL: Final = Literal(BuiltinType.UNIT, None)
TRUE_LITERAL: Final = Literal(BuiltinType.BOOL, True)
FALSE_LITERAL: Final = Literal(BuiltinType.BOOL, False)


def literals_of(builtin: BuiltinType) -> tuple[Literal, ...]:
    """All literals inhabiting a builtin type."""
    match builtin:
        case BuiltinType.UNIT:
            return (UNIT_LITERAL,)
        case BuiltinType.BOOL:
            return (TRUE_LITERAL, FALSE_LITERAL)


# =============================================================================
# Types
# =============================================================================


class Type(ABC):
    __slots__ = ()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Type):
            return NotImplemented
        return _types_equal(self, other, {}, {}, 0)

    __hash__ = None  # type: ignore[assignment]


@final
@dataclass(frozen=True, slots=True, eq=False)
class TyVar(Type):
    name: TyName


@final
@dataclass(frozen=True, slots=True, eq=False)
class TyFun(Type):
    argument: Type
    result: Type


@final
@dataclass(frozen=True, slots=True, eq=False)
class TyForall(Type):
    name: TyName
    kind: Kind
    body: Type


@final
@dataclass(frozen=True, slots=True, eq=False)
class TyLam(Type):
    name: TyName
    kind: Kind
    body: Type


@final
@dataclass(frozen=True, slots=True, eq=False)
class TyApp(Type):
    function: Type
    argument: Type


@final
@dataclass(frozen=True, slots=True, eq=False)
class TyBuiltin(Type):
    builtin: BuiltinType


# =============================================================================
# Typed terms
# =============================================================================


class Term(ABC):
    __slots__ = ()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Term):
            return NotImplemented
        return _terms_equal(self, other, _Scopes(), _Scopes(), 0)

    __hash__ = None  # type: ignore[assignment]


@final
@dataclass(frozen=True, slots=True, eq=False)
class Var(Term):
    name: Name


@final
@dataclass(frozen=True, slots=True, eq=False)
class LamAbs(Term):
    name: Name
    type: Type
    body: Term


@final
@dataclass(frozen=True, slots=True, eq=False)
class Apply(Term):
    function: Term
    argument: Term


@final
@dataclass(frozen=True, slots=True, eq=False)
class TyAbs(Term):
    name: TyName
    kind: Kind
    body: Term


@final
@dataclass(frozen=True, slots=True, eq=False)
class TyInst(Term):
    term: Term
    type: Type


@final
@dataclass(frozen=True, slots=True, eq=False)
class Constant(Term):
    literal: Literal


@final
@dataclass(frozen=True, slots=True, eq=False)
class Error(Term):
    """The error term; evaluating it is a user error."""

    type: Type


# =============================================================================
# Untyped terms
# =============================================================================


class UTerm(ABC):
    __slots__ = ()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, UTerm):
            return NotImplemented
        return _uterms_equal(self, other, {}, {}, 0)

    __hash__ = None  # type: ignore[assignment]


@final
@dataclass(frozen=True, slots=True, eq=False)
class UVar(UTerm):
    name: Name


@final
@dataclass(frozen=True, slots=True, eq=False)
class ULamAbs(UTerm):
    name: Name
    body: UTerm


@final
@dataclass(frozen=True, slots=True, eq=False)
class UApply(UTerm):
    function: UTerm
    argument: UTerm


@final
@dataclass(frozen=True, slots=True, eq=False)
class UDelay(UTerm):
    body: UTerm


@final
@dataclass(frozen=True, slots=True, eq=False)
class UForce(UTerm):
    term: UTerm


@final
@dataclass(frozen=True, slots=True, eq=False)
class UConstant(UTerm):
    literal: Literal


@final
@dataclass(frozen=True, slots=True, eq=False)
class UError(UTerm):
    pass


Syntax: TypeAlias = Kind | Type | Term | UTerm


# =============================================================================
# Alpha-equivalence
# =============================================================================


def _same_variable(
    left: object,
    right: object,
    left_scope: Mapping[object, int],
    right_scope: Mapping[object, int],
) -> bool:
    left_level = left_scope.get(left)
    right_level = right_scope.get(right)
    if left_level is None and right_level is None:
        return left == right
    return left_level == right_level


def _types_equal(
    left: Type,
    right: Type,
    left_scope: Mapping[TyName, int],
    right_scope: Mapping[TyName, int],
    level: int,
) -> bool:
    match left, right:
        case TyVar(left_name), TyVar(right_name):
            return _same_variable(left_name, right_name, left_scope, right_scope)
        case TyFun(left_argument, left_result), TyFun(right_argument, right_result):
            return _types_equal(
                left_argument, right_argument, left_scope, right_scope, level
            ) and _types_equal(left_result, right_result, left_scope, right_scope, level)
        case (
            TyForall(left_name, left_kind, left_body),
            TyForall(right_name, right_kind, right_body),
        ) | (
            TyLam(left_name, left_kind, left_body),
            TyLam(right_name, right_kind, right_body),
        ):
            return left_kind == right_kind and _types_equal(
                left_body,
                right_body,
                {**left_scope, left_name: level},
                {**right_scope, right_name: level},
                level + 1,
            )
        case TyApp(left_function, left_argument), TyApp(right_function, right_argument):
            return _types_equal(
                left_function, right_function, left_scope, right_scope, level
            ) and _types_equal(left_argument, right_argument, left_scope, right_scope, level)
        case TyBuiltin(left_builtin), TyBuiltin(right_builtin):
            return left_builtin == right_builtin
        case _:
            return False


@dataclass(slots=True)
class _Scopes:
    """Binding levels of the type and term names in scope on one side of a comparison."""

    types: dict[TyName, int] | None = None
    terms: dict[Name, int] | None = None

    def bind_type(self, name: TyName, level: int) -> _Scopes:
        return _Scopes({**(self.types or {}), name: level}, self.terms)

    def bind_term(self, name: Name, level: int) -> _Scopes:
        return _Scopes(self.types, {**(self.terms or {}), name: level})


def _terms_equal(left: Term, right: Term, left_scopes: _Scopes, right_scopes: _Scopes, level: int) -> bool:
    def types_equal(left_type: Type, right_type: Type) -> bool:
        return _types_equal(
            left_type, right_type, left_scopes.types or {}, right_scopes.types or {}, level
        )

    match left, right:
        case Var(left_name), Var(right_name):
            return _same_variable(
                left_name, right_name, left_scopes.terms or {}, right_scopes.terms or {}
            )
        case LamAbs(left_name, left_type, left_body), LamAbs(right_name, right_type, right_body):
            return types_equal(left_type, right_type) and _terms_equal(
                left_body,
                right_body,
                left_scopes.bind_term(left_name, level),
                right_scopes.bind_term(right_name, level),
                level + 1,
            )
        case Apply(left_function, left_argument), Apply(right_function, right_argument):
            return _terms_equal(
                left_function, right_function, left_scopes, right_scopes, level
            ) and _terms_equal(left_argument, right_argument, left_scopes, right_scopes, level)
        case TyAbs(left_name, left_kind, left_body), TyAbs(right_name, right_kind, right_body):
            return left_kind == right_kind and _terms_equal(
                left_body,
                right_body,
                left_scopes.bind_type(left_name, level),
                right_scopes.bind_type(right_name, level),
                level + 1,
            )
        case TyInst(left_term, left_type), TyInst(right_term, right_type):
            return types_equal(left_type, right_type) and _terms_equal(
                left_term, right_term, left_scopes, right_scopes, level
            )
        case Constant(left_literal), Constant(right_literal):
            return left_literal == right_literal
        case Error(left_type), Error(right_type):
            return types_equal(left_type, right_type)
        case _:
            return False


def _uterms_equal(
    left: UTerm,
    right: UTerm,
    left_scope: Mapping[Name, int],
    right_scope: Mapping[Name, int],
    level: int,
) -> bool:
    match left, right:
        case UVar(left_name), UVar(right_name):
            return _same_variable(left_name, right_name, left_scope, right_scope)
        case ULamAbs(left_name, left_body), ULamAbs(right_name, right_body):
            return _uterms_equal(
                left_body,
                right_body,
                {**left_scope, left_name: level},
                {**right_scope, right_name: level},
                level + 1,
            )
        case UApply(left_function, left_argument), UApply(right_function, right_argument):
            return _uterms_equal(
                left_function, right_function, left_scope, right_scope, level
            ) and _uterms_equal(left_argument, right_argument, left_scope, right_scope, level)
        case UDelay(left_body), UDelay(right_body):
            return _uterms_equal(left_body, right_body, left_scope, right_scope, level)
        case UForce(left_term), UForce(right_term):
            return _uterms_equal(left_term, right_term, left_scope, right_scope, level)
        case UConstant(left_literal), UConstant(right_literal):
            return left_literal == right_literal
        case UError(), UError():
            return True
        case _:
            return False


# =============================================================================
# Free variables
# =============================================================================


def free_type_variables(type_: Type) -> frozenset[TyName]:
    match type_:
        case TyVar(name):
            return frozenset((name,))
        case TyFun(argument, result):
            return free_type_variables(argument) | free_type_variables(result)
        case TyForall(name, _, body) | TyLam(name, _, body):
            return free_type_variables(body) - {name}
        case TyApp(function, argument):
            return free_type_variables(function) | free_type_variables(argument)
        case TyBuiltin():
            return frozenset()
        case _:
            raise TypeError(f"Not a type: {type_!r}")


def free_variables(term: Term) -> frozenset[Name]:
    """Free term variables of a typed term."""
    match term:
        case Var(name):
            return frozenset((name,))
        case LamAbs(name, _, body):
            return free_variables(body) - {name}
        case Apply(function, argument):
            return free_variables(function) | free_variables(argument)
        case TyAbs(_, _, body):
            return free_variables(body)
        case TyInst(inner, _):
            return free_variables(inner)
        case Constant() | Error():
            return frozenset()
        case _:
            raise TypeError(f"Not a term: {term!r}")


def free_type_variables_of_term(term: Term) -> frozenset[TyName]:
    match term:
        case Var() | Constant():
            return frozenset()
        case LamAbs(_, type_, body):
            return free_type_variables(type_) | free_type_variables_of_term(body)
        case Apply(function, argument):
            return free_type_variables_of_term(function) | free_type_variables_of_term(argument)
        case TyAbs(name, _, body):
            return free_type_variables_of_term(body) - {name}
        case TyInst(inner, type_):
            return free_type_variables_of_term(inner) | free_type_variables(type_)
        case Error(type_):
            return free_type_variables(type_)
        case _:
            raise TypeError(f"Not a term: {term!r}")


# =============================================================================
# Capture-avoiding substitution
# =============================================================================


def substitute_type(type_: Type, name: TyName, replacement: Type) -> Type:
    """Substitute ``replacement`` for the free occurrences of ``name`` in ``type_``."""
    return _substitute_type(type_, name, replacement, free_type_variables(replacement))


def _substitute_type(
    type_: Type, name: TyName, replacement: Type, captured: frozenset[TyName]
) -> Type:
    match type_:
        case TyVar(variable):
            return replacement if variable == name else type_
        case TyFun(argument, result):
            return TyFun(
                _substitute_type(argument, name, replacement, captured),
                _substitute_type(result, name, replacement, captured),
            )
        case TyForall(binder, kind, body) | TyLam(binder, kind, body):
            if binder == name:
                return type_
            if binder in captured:
                renamed = fresh_ty_name(binder.text)
                body = _substitute_type(body, binder, TyVar(renamed), frozenset((renamed,)))
                binder = renamed
            rebuilt = TyForall if isinstance(type_, TyForall) else TyLam
            return rebuilt(binder, kind, _substitute_type(body, name, replacement, captured))
        case TyApp(function, argument):
            return TyApp(
                _substitute_type(function, name, replacement, captured),
                _substitute_type(argument, name, replacement, captured),
            )
        case TyBuiltin():
            return type_
        case _:
            raise TypeError(f"Not a type: {type_!r}")


def substitute_type_in_term(term: Term, name: TyName, replacement: Type) -> Term:
    """Substitute ``replacement`` for the free type variable ``name`` in ``term``."""
    captured = free_type_variables(replacement)

    def go(current: Term) -> Term:
        match current:
            case Var() | Constant():
                return current
            case LamAbs(binder, type_, body):
                return LamAbs(binder, _substitute_type(type_, name, replacement, captured), go(body))
            case Apply(function, argument):
                return Apply(go(function), go(argument))
            case TyAbs(binder, kind, body):
                if binder == name:
                    return current
                if binder in captured:
                    renamed = fresh_ty_name(binder.text)
                    body = substitute_type_in_term(body, binder, TyVar(renamed))
                    binder = renamed
                return TyAbs(binder, kind, go(body))
            case TyInst(inner, type_):
                return TyInst(go(inner), _substitute_type(type_, name, replacement, captured))
            case Error(type_):
                return Error(_substitute_type(type_, name, replacement, captured))
            case _:
                raise TypeError(f"Not a term: {current!r}")

    return go(term)


def substitute_term(term: Term, name: Name, replacement: Term) -> Term:
    """Substitute ``replacement`` for the free occurrences of ``name`` in ``term``."""
    captured = free_variables(replacement)
    captured_types = free_type_variables_of_term(replacement)

    def go(current: Term) -> Term:
        match current:
            case Var(variable):
                return replacement if variable == name else current
            case LamAbs(binder, type_, body):
                if binder == name:
                    return current
                if binder in captured:
                    renamed = fresh_name(binder.text)
                    body = substitute_term(body, binder, Var(renamed))
                    binder = renamed
                return LamAbs(binder, type_, go(body))
            case Apply(function, argument):
                return Apply(go(function), go(argument))
            case TyAbs(binder, kind, body):
                if binder in captured_types:
                    renamed_type = fresh_ty_name(binder.text)
                    body = substitute_type_in_term(body, binder, TyVar(renamed_type))
                    binder = renamed_type
                return TyAbs(binder, kind, go(body))
            case TyInst(inner, type_):
                return TyInst(go(inner), type_)
            case Constant() | Error():
                return current
            case _:
                raise TypeError(f"Not a term: {current!r}")

    return go(term)
