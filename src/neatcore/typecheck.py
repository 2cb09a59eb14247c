"""
Kind checking, type normalization and type checking of concrete syntax.

Types are checked with explicit contexts mapping names to kinds (for type
variables) or to normalized types (for term variables). Inferred types are
always in normal form.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import final

from neatcore.naming import Name, TyName
from neatcore.pretty import render
from neatcore.syntax import (
    STAR,
    Apply,
    BuiltinType,
    Constant,
    Error,
    Kind,
    KindArrow,
    LamAbs,
    Term,
    TyAbs,
    TyApp,
    TyBuiltin,
    TyForall,
    TyFun,
    TyInst,
    TyLam,
    Type,
    TyVar,
    Var,
    substitute_type,
)


class TypeCheckError(Exception):
    """A kind or type error in concrete syntax."""


class KindMismatch(TypeCheckError):
    def __init__(self, type_: Type, expected: Kind, actual: Kind) -> None:
        super().__init__(
            f"{render(type_)} has kind {render(actual)}, expected {render(expected)}"
        )
        self.type = type_
        self.expected = expected
        self.actual = actual


class TypeMismatch(TypeCheckError):
    def __init__(self, term: Term, expected: Type, actual: Type) -> None:
        super().__init__(
            f"{render(term)} has type {render(actual)}, expected {render(expected)}"
        )
        self.term = term
        self.expected = expected
        self.actual = actual


class UnexpectedShapeError(TypeCheckError):
    """A function type, a ``forall`` type or an arrow kind was expected but not found."""


class FreeTypeVariableError(TypeCheckError):
    def __init__(self, name: TyName) -> None:
        super().__init__(f"free type variable {name}")
        self.name = name


class FreeVariableError(TypeCheckError):
    def __init__(self, name: Name) -> None:
        super().__init__(f"free variable {name}")
        self.name = name


@final
@dataclass(frozen=True, kw_only=True, slots=True)
class TypeCheckConfig:
    builtin_kinds: Mapping[BuiltinType, Kind] = field(
        default_factory=lambda: MappingProxyType({builtin: STAR for builtin in BuiltinType})
    )
    """The kind of every builtin type constants may have."""


def default_check_config() -> TypeCheckConfig:
    return TypeCheckConfig()


# =============================================================================
# Kinds
# =============================================================================


def infer_kind(type_: Type, context: Mapping[TyName, Kind] | None = None) -> Kind:
    """
    Infer the kind of ``type_``.

    :raises TypeCheckError: If ``type_`` is ill-kinded or has free variables
        outside ``context``.
    """
    context = {} if context is None else context
    match type_:
        case TyVar(name):
            try:
                return context[name]
            except KeyError:
                raise FreeTypeVariableError(name) from None
        case TyFun(argument, result):
            check_kind(argument, STAR, context)
            check_kind(result, STAR, context)
            return STAR
        case TyForall(name, kind, body):
            check_kind(body, STAR, {**context, name: kind})
            return STAR
        case TyLam(name, kind, body):
            return KindArrow(kind, infer_kind(body, {**context, name: kind}))
        case TyApp(function, argument):
            function_kind = infer_kind(function, context)
            if not isinstance(function_kind, KindArrow):
                raise UnexpectedShapeError(
                    f"{render(function)} of kind {render(function_kind)} is applied to a type"
                )
            check_kind(argument, function_kind.argument, context)
            return function_kind.result
        case TyBuiltin():
            return STAR
        case _:
            raise TypeError(f"Not a type: {type_!r}")


def check_kind(type_: Type, kind: Kind, context: Mapping[TyName, Kind] | None = None) -> None:
    actual = infer_kind(type_, context)
    if actual != kind:
        raise KindMismatch(type_, kind, actual)


def normalize_type(type_: Type) -> Type:
    """Beta-normalize a well-kinded type."""
    match type_:
        case TyVar() | TyBuiltin():
            return type_
        case TyFun(argument, result):
            return TyFun(normalize_type(argument), normalize_type(result))
        case TyForall(name, kind, body):
            return TyForall(name, kind, normalize_type(body))
        case TyLam(name, kind, body):
            return TyLam(name, kind, normalize_type(body))
        case TyApp(function, argument):
            normal_function = normalize_type(function)
            normal_argument = normalize_type(argument)
            match normal_function:
                case TyLam(name, _, body):
                    return normalize_type(substitute_type(body, name, normal_argument))
                case _:
                    return TyApp(normal_function, normal_argument)
        case _:
            raise TypeError(f"Not a type: {type_!r}")


# =============================================================================
# Types
# =============================================================================


def infer_type(
    config: TypeCheckConfig,
    term: Term,
    type_context: Mapping[TyName, Kind] | None = None,
    context: Mapping[Name, Type] | None = None,
) -> Type:
    """
    Infer the normalized type of ``term``.

    :raises TypeCheckError: If ``term`` is ill-typed.
    """
    type_context = {} if type_context is None else type_context
    context = {} if context is None else context
    match term:
        case Var(name):
            try:
                return context[name]
            except KeyError:
                raise FreeVariableError(name) from None
        case LamAbs(name, annotation, body):
            check_kind(annotation, STAR, type_context)
            argument_type = normalize_type(annotation)
            result_type = infer_type(config, body, type_context, {**context, name: argument_type})
            return TyFun(argument_type, result_type)
        case Apply(function, argument):
            function_type = infer_type(config, function, type_context, context)
            if not isinstance(function_type, TyFun):
                raise UnexpectedShapeError(
                    f"{render(function)} of non-function type {render(function_type)} is applied"
                )
            argument_type = infer_type(config, argument, type_context, context)
            if argument_type != function_type.argument:
                raise TypeMismatch(argument, function_type.argument, argument_type)
            return function_type.result
        case TyAbs(name, kind, body):
            body_type = infer_type(config, body, {**type_context, name: kind}, context)
            return TyForall(name, kind, body_type)
        case TyInst(inner, argument):
            inner_type = infer_type(config, inner, type_context, context)
            if not isinstance(inner_type, TyForall):
                raise UnexpectedShapeError(
                    f"{render(inner)} of non-forall type {render(inner_type)} is instantiated"
                )
            check_kind(argument, inner_type.kind, type_context)
            return normalize_type(
                substitute_type(inner_type.body, inner_type.name, normalize_type(argument))
            )
        case Constant(literal):
            if config.builtin_kinds.get(literal.builtin) != STAR:
                raise UnexpectedShapeError(f"no constants of builtin type {literal.builtin.value}")
            return TyBuiltin(literal.builtin)
        case Error(annotation):
            check_kind(annotation, STAR, type_context)
            return normalize_type(annotation)
        case _:
            raise TypeError(f"Not a term: {term!r}")


def check_type(config: TypeCheckConfig, term: Term, normalized_type: Type) -> None:
    """Check that the closed ``term`` has the normalized type ``normalized_type``."""
    actual = infer_type(config, term)
    if actual != normalized_type:
        raise TypeMismatch(term, normalized_type, actual)
