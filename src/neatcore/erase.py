"""Erasure from typed to untyped terms."""

from neatcore.syntax import (
    Apply,
    Constant,
    Error,
    LamAbs,
    Term,
    TyAbs,
    TyInst,
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


def erase_term(term: Term) -> UTerm:
    """
    Drop every type and kind annotation from ``term``.

    Type abstraction becomes ``delay`` and type instantiation becomes
    ``force``, so the untyped machine still takes one step where the typed
    machine does.
    """
    match term:
        case Var(name):
            return UVar(name)
        case LamAbs(name, _, body):
            return ULamAbs(name, erase_term(body))
        case Apply(function, argument):
            return UApply(erase_term(function), erase_term(argument))
        case TyAbs(_, _, body):
            return UDelay(erase_term(body))
        case TyInst(inner, _):
            return UForce(erase_term(inner))
        case Constant(literal):
            return UConstant(literal)
        case Error():
            return UError()
        case _:
            raise TypeError(f"Not a term: {term!r}")
