"""
Conversion from generated de Bruijn syntax to concrete named syntax.

Conversion is deterministic: converting the same value from identically
seeded name streams yields alpha-equivalent results whose binders carry the
same name texts. Each binder gets a fresh unique.
"""

from neatcore.generators import (
    ApplyG,
    ConstantG,
    ErrorG,
    KindContext,
    LamAbsG,
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
    normalize_type_g,
)
from neatcore.naming import (
    NameState,
    NameStream,
    TyNameState,
    empty_name_state,
    empty_ty_name_state,
    extend_name_state,
    extend_ty_name_state,
)
from neatcore.syntax import (
    STAR,
    Apply,
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
)


class GenError(Exception):
    """
    Generated syntax that does not fit the index it was generated at.

    The enumerations only produce well-formed values, so this signals a bug in
    the generator or the converter rather than in the system under test.
    """


def _expect_star(kind: Kind, type_g: TypeG) -> None:
    if kind != STAR:
        raise GenError(f"{type_g!r} is of kind * but was expected at kind {kind!r}")


def _extend_kinds(kinds: KindContext | None, kind: Kind) -> KindContext | None:
    return None if kinds is None else (kind, *kinds)


def convert_type(
    state: TyNameState,
    kind: Kind,
    type_g: TypeG,
    *,
    kinds: KindContext | None = None,
) -> Type:
    """
    Convert a generated type at ``kind`` into a named type.

    :param state: Names for the type variables in scope.
    :param kinds: Kinds of the type variables in scope, innermost first. When
        given, every variable must be used at the kind of its binder;
        otherwise only its scope is checked.
    :raises GenError: If ``type_g`` cannot have kind ``kind``.
    """
    match type_g:
        case TyVarG(index):
            if kinds is not None and index < len(kinds) and kinds[index] != kind:
                raise GenError(
                    f"{type_g!r} is bound at kind {kinds[index]!r} "
                    f"but was expected at kind {kind!r}"
                )
            return TyVar(state.tyname_of(index))
        case TyFunG(argument, result):
            _expect_star(kind, type_g)
            return TyFun(
                convert_type(state, STAR, argument, kinds=kinds),
                convert_type(state, STAR, result, kinds=kinds),
            )
        case TyForallG(binder_kind, body):
            _expect_star(kind, type_g)
            inner = extend_ty_name_state(state)
            return TyForall(
                inner.tyname_of(0),
                binder_kind,
                convert_type(inner, STAR, body, kinds=_extend_kinds(kinds, binder_kind)),
            )
        case TyBuiltinG(builtin):
            _expect_star(kind, type_g)
            return TyBuiltin(builtin)
        case TyLamG(body):
            if not isinstance(kind, KindArrow):
                raise GenError(f"type lambda {type_g!r} expected at non-arrow kind {kind!r}")
            inner = extend_ty_name_state(state)
            return TyLam(
                inner.tyname_of(0),
                kind.argument,
                convert_type(inner, kind.result, body, kinds=_extend_kinds(kinds, kind.argument)),
            )
        case TyAppG(function, argument, argument_kind):
            return TyApp(
                convert_type(state, KindArrow(argument_kind, kind), function, kinds=kinds),
                convert_type(state, argument_kind, argument, kinds=kinds),
            )
        case _:
            raise GenError(f"Not a generated type: {type_g!r}")


def convert_term(
    ty_state: TyNameState,
    state: NameState,
    type_g: TypeG,
    term_g: TermG,
    *,
    type_kinds: KindContext | None = None,
) -> Term:
    """
    Convert a generated term at ``type_g`` into a named term.

    The type is threaded through so that lambda binders get their annotations.

    :param type_kinds: Kinds of the type variables in scope, as for
        :func:`convert_type`.
    :raises GenError: If ``term_g`` cannot have type ``type_g``.
    """
    type_g = normalize_type_g(type_g)
    match term_g:
        case VarG(index):
            return Var(state.name_of(index))
        case LamAbsG(body):
            if not isinstance(type_g, TyFunG):
                raise GenError(f"lambda {term_g!r} expected at non-function type {type_g!r}")
            inner = extend_name_state(state)
            return LamAbs(
                inner.name_of(0),
                convert_type(ty_state, STAR, type_g.argument, kinds=type_kinds),
                convert_term(ty_state, inner, type_g.result, body, type_kinds=type_kinds),
            )
        case ApplyG(function, argument, argument_type):
            return Apply(
                convert_term(
                    ty_state, state, TyFunG(argument_type, type_g), function, type_kinds=type_kinds
                ),
                convert_term(ty_state, state, argument_type, argument, type_kinds=type_kinds),
            )
        case TyAbsG(body):
            if not isinstance(type_g, TyForallG):
                raise GenError(
                    f"type abstraction {term_g!r} expected at non-forall type {type_g!r}"
                )
            inner_ty = extend_ty_name_state(ty_state)
            return TyAbs(
                inner_ty.tyname_of(0),
                type_g.kind,
                convert_term(
                    inner_ty,
                    state,
                    type_g.body,
                    body,
                    type_kinds=_extend_kinds(type_kinds, type_g.kind),
                ),
            )
        case TyInstG(term, body_type, argument_type, kind):
            return TyInst(
                convert_term(
                    ty_state, state, TyForallG(kind, body_type), term, type_kinds=type_kinds
                ),
                convert_type(ty_state, kind, argument_type, kinds=type_kinds),
            )
        case ConstantG(literal):
            if type_g != TyBuiltinG(literal.builtin):
                raise GenError(f"constant {term_g!r} expected at type {type_g!r}")
            return Constant(literal)
        case ErrorG():
            return Error(convert_type(ty_state, STAR, type_g, kinds=type_kinds))
        case _:
            raise GenError(f"Not a generated term: {term_g!r}")


def convert_closed_type(type_names: NameStream, kind: Kind, type_g: TypeG) -> Type:
    """Convert a closed generated type, allocating type names from ``type_names``."""
    return convert_type(empty_ty_name_state(type_names), kind, type_g, kinds=())


def convert_closed_term(
    type_names: NameStream,
    names: NameStream,
    type_g: TypeG,
    term_g: TermG,
) -> Term:
    """Convert a closed generated term, with separate streams for each namespace."""
    return convert_term(
        empty_ty_name_state(type_names), empty_name_state(names), type_g, term_g, type_kinds=()
    )
