"""
Readable pretty-printing of kinds, types and terms.

Parenthesization follows fixities: binders are right-associative at
precedence 1, arrows right-associative at precedence 2 and juxtaposition
left-associative at precedence 10. A subterm is parenthesized when its own
precedence is lower than what its position requires.

Generated de Bruijn syntax is shown constructor by constructor with
:func:`show_generated`, since it has no names to print.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Final, final

from neatcore.generators import (
    ApplyG,
    ConstantG,
    ErrorG,
    LamAbsG,
    Normalized,
    TermG,
    TyAbsG,
    TyAppG,
    TyBuiltinG,
    TyForallG,
    TyFunG,
    TyInstG,
    TyLamG,
    TypeG,
    TyVarG,
    VarG,
)
from neatcore.naming import Name, TyName
from neatcore.syntax import (
    Apply,
    Constant,
    Error,
    Kind,
    KindArrow,
    LamAbs,
    Literal,
    Star,
    Syntax,
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
    UApply,
    UConstant,
    UDelay,
    UError,
    UForce,
    ULamAbs,
    UTerm,
    UVar,
    Var,
)


class ShowKinds(Enum):
    YES = auto()
    NO = auto()


class Associativity(Enum):
    LEFT = auto()
    RIGHT = auto()


@final
@dataclass(frozen=True, slots=True)
class Fixity:
    precedence: int
    associativity: Associativity


BINDER_FIXITY: Final = Fixity(1, Associativity.RIGHT)
ARROW_FIXITY: Final = Fixity(2, Associativity.RIGHT)
JUXTAPOSITION_FIXITY: Final = Fixity(10, Associativity.LEFT)

_TOP: Final = 0
_ATOM: Final = 11


@final
@dataclass(frozen=True, kw_only=True, slots=True)
class PrettyConfig:
    show_kinds: ShowKinds = ShowKinds.YES
    """Whether binders of type variables are annotated with their kinds."""

    show_uniques: bool = False
    """Whether names are printed with their uniques, e.g. ``x0_42``."""


DEFAULT_PRETTY_CONFIG: Final = PrettyConfig()


@final
@dataclass(frozen=True, slots=True)
class _Doc:
    text: str
    precedence: int

    def at(self, required: int) -> str:
        return self.text if self.precedence >= required else f"({self.text})"


def _operands(fixity: Fixity) -> tuple[int, int]:
    """Precedences required of the left and right operands of an infix form."""
    if fixity.associativity is Associativity.RIGHT:
        return fixity.precedence + 1, fixity.precedence
    return fixity.precedence, fixity.precedence + 1


def _infix(left: _Doc, operator: str, right: _Doc, fixity: Fixity) -> _Doc:
    left_required, right_required = _operands(fixity)
    return _Doc(
        f"{left.at(left_required)}{operator}{right.at(right_required)}", fixity.precedence
    )


def _binder(head: str, body: _Doc) -> _Doc:
    return _Doc(f"{head}{body.at(BINDER_FIXITY.precedence)}", BINDER_FIXITY.precedence)


@final
@dataclass(frozen=True, slots=True)
class _Renderer:
    config: PrettyConfig

    def name(self, name: Name | TyName) -> str:
        if self.config.show_uniques:
            return str(name)
        return name.text

    def kind(self, kind: Kind) -> _Doc:
        match kind:
            case Star():
                return _Doc("*", _ATOM)
            case KindArrow(argument, result):
                return _infix(self.kind(argument), " -> ", self.kind(result), ARROW_FIXITY)
            case _:
                raise TypeError(f"Not a kind: {kind!r}")

    def type_binder(self, name: TyName, kind: Kind) -> str:
        if self.config.show_kinds is ShowKinds.YES:
            return f"({self.name(name)} :: {self.kind(kind).text})"
        return self.name(name)

    def type(self, type_: Type) -> _Doc:
        match type_:
            case TyVar(name):
                return _Doc(self.name(name), _ATOM)
            case TyFun(argument, result):
                return _infix(self.type(argument), " -> ", self.type(result), ARROW_FIXITY)
            case TyForall(name, kind, body):
                return _binder(f"all {self.type_binder(name, kind)}. ", self.type(body))
            case TyLam(name, kind, body):
                return _binder(f"\\{self.type_binder(name, kind)} -> ", self.type(body))
            case TyApp(function, argument):
                return _infix(self.type(function), " ", self.type(argument), JUXTAPOSITION_FIXITY)
            case TyBuiltin(builtin):
                return _Doc(builtin.value, _ATOM)
            case _:
                raise TypeError(f"Not a type: {type_!r}")

    def term(self, term: Term) -> _Doc:
        match term:
            case Var(name):
                return _Doc(self.name(name), _ATOM)
            case LamAbs(name, type_, body):
                return _binder(
                    f"\\({self.name(name)} : {self.type(type_).text}) -> ", self.term(body)
                )
            case Apply(function, argument):
                return _infix(self.term(function), " ", self.term(argument), JUXTAPOSITION_FIXITY)
            case TyAbs(name, kind, body):
                return _binder(f"/\\{self.type_binder(name, kind)} -> ", self.term(body))
            case TyInst(inner, type_):
                return _Doc(
                    f"{self.term(inner).at(JUXTAPOSITION_FIXITY.precedence)} {{{self.type(type_).text}}}",
                    JUXTAPOSITION_FIXITY.precedence,
                )
            case Constant(literal):
                return _Doc(_literal(literal), _ATOM)
            case Error(type_):
                return _Doc(f"error {{{self.type(type_).text}}}", JUXTAPOSITION_FIXITY.precedence)
            case _:
                raise TypeError(f"Not a term: {term!r}")

    def uterm(self, term: UTerm) -> _Doc:
        match term:
            case UVar(name):
                return _Doc(self.name(name), _ATOM)
            case ULamAbs(name, body):
                return _binder(f"\\{self.name(name)} -> ", self.uterm(body))
            case UApply(function, argument):
                return _infix(
                    self.uterm(function), " ", self.uterm(argument), JUXTAPOSITION_FIXITY
                )
            case UDelay(body):
                return _Doc(f"delay {self.uterm(body).at(_ATOM)}", JUXTAPOSITION_FIXITY.precedence)
            case UForce(inner):
                return _Doc(f"force {self.uterm(inner).at(_ATOM)}", JUXTAPOSITION_FIXITY.precedence)
            case UConstant(literal):
                return _Doc(_literal(literal), _ATOM)
            case UError():
                return _Doc("error", _ATOM)
            case _:
                raise TypeError(f"Not an untyped term: {term!r}")


def _literal(literal: Literal) -> str:
    if literal.value is None:
        return "()"
    return str(literal.value)


def render(node: Syntax | Name | TyName, config: PrettyConfig = DEFAULT_PRETTY_CONFIG) -> str:
    """Render concrete syntax readably. Used for diagnostics only."""
    renderer = _Renderer(config)
    match node:
        case Name() | TyName():
            return renderer.name(node)
        case Kind():
            return renderer.kind(node).text
        case Type():
            return renderer.type(node).text
        case Term():
            return renderer.term(node).text
        case UTerm():
            return renderer.uterm(node).text
        case _:
            raise TypeError(f"Cannot render {node!r}")


def show_generated(value: TypeG | TermG | Normalized[TypeG] | Kind) -> str:
    """
    Show generated syntax constructor by constructor.

    Example::

        >>> show_generated(TyFunG(TyVarG(0), TyLamG(TyVarG(1))))
        '(TyFunG (TyVarG 0) (TyLamG (TyVarG 1)))'
    """
    match value:
        case Normalized(inner):
            return f"(Normalized {show_generated(inner)})"
        case Star():
            return "*"
        case KindArrow(argument, result):
            return f"({show_generated(argument)} -> {show_generated(result)})"
        case TyVarG(index):
            return f"(TyVarG {index})"
        case TyFunG(argument, result):
            return f"(TyFunG {show_generated(argument)} {show_generated(result)})"
        case TyForallG(kind, body):
            return f"(TyForallG {show_generated(kind)} {show_generated(body)})"
        case TyBuiltinG(builtin):
            return f"(TyBuiltinG {builtin.value})"
        case TyLamG(body):
            return f"(TyLamG {show_generated(body)})"
        case TyAppG(function, argument, kind):
            return (
                f"(TyAppG {show_generated(function)} {show_generated(argument)} "
                f"{show_generated(kind)})"
            )
        case VarG(index):
            return f"(VarG {index})"
        case LamAbsG(body):
            return f"(LamAbsG {show_generated(body)})"
        case ApplyG(function, argument, argument_type):
            return (
                f"(ApplyG {show_generated(function)} {show_generated(argument)} "
                f"{show_generated(argument_type)})"
            )
        case TyAbsG(body):
            return f"(TyAbsG {show_generated(body)})"
        case TyInstG(term, body_type, argument_type, kind):
            return (
                f"(TyInstG {show_generated(term)} {show_generated(body_type)} "
                f"{show_generated(argument_type)} {show_generated(kind)})"
            )
        case ConstantG(literal):
            return f"(ConstantG {_literal(literal)})"
        case ErrorG():
            return "ErrorG"
        case _:
            raise TypeError(f"Not generated syntax: {value!r}")
