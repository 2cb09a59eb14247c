"""
Size-bounded generated syntax in de Bruijn form.

Generated types and terms refer to binders by position. A context is a tuple
listing the kinds (or types) of the binders in scope, innermost first, and a
variable at index ``i`` must satisfy ``i < len(context)``.

The enumerations in this module produce only well-formed values: well-kinded
types at a kind, normal-form types at a kind, and well-typed terms at a type.
Each enumeration is split into one sized enumeration per top-level
constructor so that :mod:`neatcore.search` can choose the visiting order.

Size is a proxy for program size: every constructor costs 1, a variable at
index ``i`` costs ``i + 1``, and embedded kinds and types cost their own size.
"""

from __future__ import annotations

from abc import ABC
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass
from functools import cache, partial
from itertools import chain
from typing import Generic, TypeAlias, TypeVar, final

from neatcore.syntax import (
    STAR,
    BuiltinType,
    Kind,
    KindArrow,
    Literal,
    Star,
    literals_of,
)

T = TypeVar("T")


# =============================================================================
# Generated types
# =============================================================================


class TypeG(ABC):
    __slots__ = ()


@final
@dataclass(frozen=True, slots=True)
class TyVarG(TypeG):
    index: int


@final
@dataclass(frozen=True, slots=True)
class TyFunG(TypeG):
    argument: TypeG
    result: TypeG


@final
@dataclass(frozen=True, slots=True)
class TyForallG(TypeG):
    kind: Kind
    body: TypeG


@final
@dataclass(frozen=True, slots=True)
class TyBuiltinG(TypeG):
    builtin: BuiltinType


@final
@dataclass(frozen=True, slots=True)
class TyLamG(TypeG):
    """A type-level function. Its argument kind comes from the kind it is checked at."""

    body: TypeG


@final
@dataclass(frozen=True, slots=True)
class TyAppG(TypeG):
    function: TypeG
    argument: TypeG
    kind: Kind
    """The kind of :attr:`argument`."""


# =============================================================================
# Generated terms
# =============================================================================


class TermG(ABC):
    __slots__ = ()


@final
@dataclass(frozen=True, slots=True)
class VarG(TermG):
    index: int


@final
@dataclass(frozen=True, slots=True)
class LamAbsG(TermG):
    """A lambda. Its argument type comes from the type it is checked at."""

    body: TermG


@final
@dataclass(frozen=True, slots=True)
class ApplyG(TermG):
    function: TermG
    argument: TermG
    argument_type: TypeG


@final
@dataclass(frozen=True, slots=True)
class TyAbsG(TermG):
    body: TermG


@final
@dataclass(frozen=True, slots=True)
class TyInstG(TermG):
    term: TermG
    body_type: TypeG
    """The body of the ``forall`` type of :attr:`term`, one binder deeper."""

    argument_type: TypeG
    kind: Kind
    """The kind of :attr:`argument_type`."""


@final
@dataclass(frozen=True, slots=True)
class ConstantG(TermG):
    literal: Literal


@final
@dataclass(frozen=True, slots=True)
class ErrorG(TermG):
    pass


@final
@dataclass(frozen=True, slots=True)
class Normalized(Generic[T]):
    """A value drawn from the normal-form grammar."""

    value: T


KindContext: TypeAlias = tuple[Kind, ...]
TypeContext: TypeAlias = tuple[TypeG, ...]


# =============================================================================
# Sizes
# =============================================================================


def kind_size(kind: Kind) -> int:
    match kind:
        case Star():
            return 1
        case KindArrow(argument, result):
            return 1 + kind_size(argument) + kind_size(result)
        case _:
            raise TypeError(f"Not a kind: {kind!r}")


def type_size_g(type_g: TypeG) -> int:
    match type_g:
        case TyVarG(index):
            return index + 1
        case TyFunG(argument, result):
            return 1 + type_size_g(argument) + type_size_g(result)
        case TyForallG(kind, body):
            return 1 + kind_size(kind) + type_size_g(body)
        case TyBuiltinG():
            return 1
        case TyLamG(body):
            return 1 + type_size_g(body)
        case TyAppG(function, argument, kind):
            return 1 + type_size_g(function) + type_size_g(argument) + kind_size(kind)
        case _:
            raise TypeError(f"Not a generated type: {type_g!r}")


def term_size_g(term_g: TermG) -> int:
    match term_g:
        case VarG(index):
            return index + 1
        case LamAbsG(body) | TyAbsG(body):
            return 1 + term_size_g(body)
        case ApplyG(function, argument, argument_type):
            return 1 + term_size_g(function) + term_size_g(argument) + type_size_g(argument_type)
        case TyInstG(term, body_type, argument_type, kind):
            return (
                1
                + term_size_g(term)
                + type_size_g(body_type)
                + type_size_g(argument_type)
                + kind_size(kind)
            )
        case ConstantG() | ErrorG():
            return 1
        case _:
            raise TypeError(f"Not a generated term: {term_g!r}")


# =============================================================================
# Shifting, substitution and reduction
# =============================================================================


def shift_type_g(type_g: TypeG, amount: int, cutoff: int = 0) -> TypeG:
    """Add ``amount`` to every variable at or above ``cutoff``."""
    match type_g:
        case TyVarG(index):
            return TyVarG(index + amount) if index >= cutoff else type_g
        case TyFunG(argument, result):
            return TyFunG(shift_type_g(argument, amount, cutoff), shift_type_g(result, amount, cutoff))
        case TyForallG(kind, body):
            return TyForallG(kind, shift_type_g(body, amount, cutoff + 1))
        case TyBuiltinG():
            return type_g
        case TyLamG(body):
            return TyLamG(shift_type_g(body, amount, cutoff + 1))
        case TyAppG(function, argument, kind):
            return TyAppG(
                shift_type_g(function, amount, cutoff),
                shift_type_g(argument, amount, cutoff),
                kind,
            )
        case _:
            raise TypeError(f"Not a generated type: {type_g!r}")


def _substitute_g(type_g: TypeG, depth: int, replacement: TypeG) -> TypeG:
    match type_g:
        case TyVarG(index):
            if index == depth:
                return shift_type_g(replacement, depth)
            if index > depth:
                return TyVarG(index - 1)
            return type_g
        case TyFunG(argument, result):
            return TyFunG(
                _substitute_g(argument, depth, replacement),
                _substitute_g(result, depth, replacement),
            )
        case TyForallG(kind, body):
            return TyForallG(kind, _substitute_g(body, depth + 1, replacement))
        case TyBuiltinG():
            return type_g
        case TyLamG(body):
            return TyLamG(_substitute_g(body, depth + 1, replacement))
        case TyAppG(function, argument, kind):
            return TyAppG(
                _substitute_g(function, depth, replacement),
                _substitute_g(argument, depth, replacement),
                kind,
            )
        case _:
            raise TypeError(f"Not a generated type: {type_g!r}")


def substitute_top_g(body: TypeG, argument: TypeG) -> TypeG:
    """Instantiate the innermost binder of ``body`` with ``argument``."""
    return _substitute_g(body, 0, argument)


@cache
def normalize_type_g(type_g: TypeG) -> TypeG:
    """Beta-normalize a well-kinded generated type."""
    match type_g:
        case TyVarG() | TyBuiltinG():
            return type_g
        case TyFunG(argument, result):
            return TyFunG(normalize_type_g(argument), normalize_type_g(result))
        case TyForallG(kind, body):
            return TyForallG(kind, normalize_type_g(body))
        case TyLamG(body):
            return TyLamG(normalize_type_g(body))
        case TyAppG(function, argument, kind):
            normal_function = normalize_type_g(function)
            normal_argument = normalize_type_g(argument)
            if isinstance(normal_function, TyLamG):
                return normalize_type_g(substitute_top_g(normal_function.body, normal_argument))
            return TyAppG(normal_function, normal_argument, kind)
        case _:
            raise TypeError(f"Not a generated type: {type_g!r}")


def step_type_g(type_g: TypeG) -> TypeG | None:
    """
    Contract the leftmost-outermost beta-redex of ``type_g``.

    :return: The reduct, or ``None`` if ``type_g`` has no redex.
    """
    match type_g:
        case TyAppG(TyLamG(body), argument, _):
            return substitute_top_g(body, argument)
        case TyAppG(function, argument, kind):
            if (stepped := step_type_g(function)) is not None:
                return TyAppG(stepped, argument, kind)
            if (stepped := step_type_g(argument)) is not None:
                return TyAppG(function, stepped, kind)
            return None
        case TyFunG(argument, result):
            if (stepped := step_type_g(argument)) is not None:
                return TyFunG(stepped, result)
            if (stepped := step_type_g(result)) is not None:
                return TyFunG(argument, stepped)
            return None
        case TyForallG(kind, body):
            if (stepped := step_type_g(body)) is not None:
                return TyForallG(kind, stepped)
            return None
        case TyLamG(body):
            if (stepped := step_type_g(body)) is not None:
                return TyLamG(stepped)
            return None
        case TyVarG() | TyBuiltinG():
            return None
        case _:
            raise TypeError(f"Not a generated type: {type_g!r}")


# =============================================================================
# Membership predicates
# =============================================================================


def check_type_g(context: KindContext, kind: Kind, type_g: TypeG) -> bool:
    """Whether ``type_g`` is a well-kinded type of kind ``kind`` in ``context``."""
    match type_g:
        case TyVarG(index):
            return 0 <= index < len(context) and context[index] == kind
        case TyFunG(argument, result):
            return (
                kind == STAR
                and check_type_g(context, STAR, argument)
                and check_type_g(context, STAR, result)
            )
        case TyForallG(binder_kind, body):
            return kind == STAR and check_type_g((binder_kind, *context), STAR, body)
        case TyBuiltinG():
            return kind == STAR
        case TyLamG(body):
            return isinstance(kind, KindArrow) and check_type_g(
                (kind.argument, *context), kind.result, body
            )
        case TyAppG(function, argument, argument_kind):
            return check_type_g(
                context, KindArrow(argument_kind, kind), function
            ) and check_type_g(context, argument_kind, argument)
        case _:
            return False


def is_normal_type_g(type_g: TypeG) -> bool:
    match type_g:
        case TyVarG() | TyBuiltinG():
            return True
        case TyFunG(argument, result):
            return is_normal_type_g(argument) and is_normal_type_g(result)
        case TyForallG(_, body) | TyLamG(body):
            return is_normal_type_g(body)
        case TyAppG():
            return is_neutral_type_g(type_g)
        case _:
            return False


def is_neutral_type_g(type_g: TypeG) -> bool:
    match type_g:
        case TyVarG():
            return True
        case TyAppG(function, argument, _):
            return is_neutral_type_g(function) and is_normal_type_g(argument)
        case _:
            return False


def check_term_g(
    type_context: KindContext,
    term_context: TypeContext,
    type_g: TypeG,
    term_g: TermG,
) -> bool:
    """Whether ``term_g`` is a well-typed term of type ``type_g`` in the given contexts."""
    type_g = normalize_type_g(type_g)
    match term_g:
        case VarG(index):
            return 0 <= index < len(term_context) and normalize_type_g(term_context[index]) == type_g
        case LamAbsG(body):
            return isinstance(type_g, TyFunG) and check_term_g(
                type_context, (type_g.argument, *term_context), type_g.result, body
            )
        case ApplyG(function, argument, argument_type):
            return (
                check_type_g(type_context, STAR, argument_type)
                and check_term_g(type_context, term_context, TyFunG(argument_type, type_g), function)
                and check_term_g(type_context, term_context, argument_type, argument)
            )
        case TyAbsG(body):
            return isinstance(type_g, TyForallG) and check_term_g(
                (type_g.kind, *type_context),
                tuple(shift_type_g(bound, 1) for bound in term_context),
                type_g.body,
                body,
            )
        case TyInstG(term, body_type, argument_type, kind):
            return (
                check_type_g((kind, *type_context), STAR, body_type)
                and check_type_g(type_context, kind, argument_type)
                and normalize_type_g(substitute_top_g(body_type, argument_type)) == type_g
                and check_term_g(type_context, term_context, TyForallG(kind, body_type), term)
            )
        case ConstantG(literal):
            return type_g == TyBuiltinG(literal.builtin)
        case ErrorG():
            return True
        case _:
            return False


# =============================================================================
# Enumeration
# =============================================================================

SizedEnumeration: TypeAlias = Callable[[int], Iterator[T]]


@cache
def kinds_of_size(size: int) -> tuple[Kind, ...]:
    if size < 1:
        return ()
    if size == 1:
        return (STAR,)
    return tuple(
        KindArrow(argument, result)
        for argument_size in range(1, size - 1)
        for argument in kinds_of_size(argument_size)
        for result in kinds_of_size(size - 1 - argument_size)
    )


def _type_variables(context: KindContext, kind: Kind, size: int) -> Iterator[TypeG]:
    index = size - 1
    if 0 <= index < len(context) and context[index] == kind:
        yield TyVarG(index)


def _type_builtins(context: KindContext, kind: Kind, size: int) -> Iterator[TypeG]:
    if kind == STAR and size == 1:
        for builtin in BuiltinType:
            yield TyBuiltinG(builtin)


def _type_functions(
    operands: Callable[[KindContext, Kind, int], tuple[TypeG, ...]],
    context: KindContext,
    kind: Kind,
    size: int,
) -> Iterator[TypeG]:
    if kind != STAR:
        return
    for argument_size in range(1, size - 1):
        results = operands(context, STAR, size - 1 - argument_size)
        if not results:
            continue
        for argument in operands(context, STAR, argument_size):
            for result in results:
                yield TyFunG(argument, result)


def _type_foralls(
    bodies: Callable[[KindContext, Kind, int], tuple[TypeG, ...]],
    context: KindContext,
    kind: Kind,
    size: int,
) -> Iterator[TypeG]:
    if kind != STAR:
        return
    for kind_size_ in range(1, size - 1):
        for binder_kind in kinds_of_size(kind_size_):
            for body in bodies((binder_kind, *context), STAR, size - 1 - kind_size_):
                yield TyForallG(binder_kind, body)


def _type_lambdas(
    bodies: Callable[[KindContext, Kind, int], tuple[TypeG, ...]],
    context: KindContext,
    kind: Kind,
    size: int,
) -> Iterator[TypeG]:
    if isinstance(kind, KindArrow):
        for body in bodies((kind.argument, *context), kind.result, size - 1):
            yield TyLamG(body)


def _type_applications(
    functions_of: Callable[[KindContext, Kind, int], tuple[TypeG, ...]],
    arguments_of: Callable[[KindContext, Kind, int], tuple[TypeG, ...]],
    context: KindContext,
    kind: Kind,
    size: int,
) -> Iterator[TypeG]:
    for kind_size_ in range(1, size - 2):
        for argument_kind in kinds_of_size(kind_size_):
            for function_size in range(1, size - 1 - kind_size_):
                functions = functions_of(context, KindArrow(argument_kind, kind), function_size)
                if not functions:
                    continue
                arguments = arguments_of(
                    context, argument_kind, size - 1 - kind_size_ - function_size
                )
                for function in functions:
                    for argument in arguments:
                        yield TyAppG(function, argument, argument_kind)


@cache
def types_of_size(context: KindContext, kind: Kind, size: int) -> tuple[TypeG, ...]:
    """All well-kinded types of exactly ``size`` at ``kind`` in ``context``."""
    if size < 1:
        return ()
    return tuple(chain.from_iterable(constructor(context, kind, size) for constructor in _TYPES))


@cache
def normal_types_of_size(context: KindContext, kind: Kind, size: int) -> tuple[TypeG, ...]:
    """All beta-normal types of exactly ``size`` at ``kind`` in ``context``."""
    if size < 1:
        return ()
    return tuple(
        chain.from_iterable(constructor(context, kind, size) for constructor in _NORMAL_TYPES)
    )


@cache
def neutral_types_of_size(context: KindContext, kind: Kind, size: int) -> tuple[TypeG, ...]:
    """Normal types headed by a variable."""
    if size < 1:
        return ()
    return tuple(
        chain.from_iterable(constructor(context, kind, size) for constructor in _NEUTRAL_TYPES)
    )


_TYPES: Sequence[Callable[[KindContext, Kind, int], Iterator[TypeG]]] = (
    _type_variables,
    _type_builtins,
    partial(_type_functions, types_of_size),
    partial(_type_foralls, types_of_size),
    partial(_type_lambdas, types_of_size),
    partial(_type_applications, types_of_size, types_of_size),
)

_NEUTRAL_TYPES: Sequence[Callable[[KindContext, Kind, int], Iterator[TypeG]]] = (
    _type_variables,
    partial(_type_applications, neutral_types_of_size, normal_types_of_size),
)

_NORMAL_TYPES: Sequence[Callable[[KindContext, Kind, int], Iterator[TypeG]]] = (
    _type_variables,
    _type_builtins,
    partial(_type_functions, normal_types_of_size),
    partial(_type_foralls, normal_types_of_size),
    partial(_type_lambdas, normal_types_of_size),
    partial(_type_applications, neutral_types_of_size, normal_types_of_size),
)


def _term_variables(
    type_context: KindContext, term_context: TypeContext, type_g: TypeG, size: int
) -> Iterator[TermG]:
    index = size - 1
    if 0 <= index < len(term_context) and term_context[index] == type_g:
        yield VarG(index)


def _term_constants(
    type_context: KindContext, term_context: TypeContext, type_g: TypeG, size: int
) -> Iterator[TermG]:
    if size == 1 and isinstance(type_g, TyBuiltinG):
        for literal in literals_of(type_g.builtin):
            yield ConstantG(literal)


def _term_errors(
    type_context: KindContext, term_context: TypeContext, type_g: TypeG, size: int
) -> Iterator[TermG]:
    if size == 1:
        yield ErrorG()


def _term_lambdas(
    type_context: KindContext, term_context: TypeContext, type_g: TypeG, size: int
) -> Iterator[TermG]:
    if isinstance(type_g, TyFunG):
        for body in terms_of_size(
            type_context, (type_g.argument, *term_context), type_g.result, size - 1
        ):
            yield LamAbsG(body)


def _term_type_abstractions(
    type_context: KindContext, term_context: TypeContext, type_g: TypeG, size: int
) -> Iterator[TermG]:
    if isinstance(type_g, TyForallG):
        weakened = tuple(shift_type_g(bound, 1) for bound in term_context)
        for body in terms_of_size((type_g.kind, *type_context), weakened, type_g.body, size - 1):
            yield TyAbsG(body)


def _term_applications(
    type_context: KindContext, term_context: TypeContext, type_g: TypeG, size: int
) -> Iterator[TermG]:
    for type_size in range(1, size - 2):
        for argument_type in normal_types_of_size(type_context, STAR, type_size):
            function_type = TyFunG(argument_type, type_g)
            for function_size in range(1, size - 1 - type_size):
                functions = terms_of_size(type_context, term_context, function_type, function_size)
                if not functions:
                    continue
                arguments = terms_of_size(
                    type_context,
                    term_context,
                    argument_type,
                    size - 1 - type_size - function_size,
                )
                for function in functions:
                    for argument in arguments:
                        yield ApplyG(function, argument, argument_type)


def _term_instantiations(
    type_context: KindContext, term_context: TypeContext, type_g: TypeG, size: int
) -> Iterator[TermG]:
    for kind_size_ in range(1, size - 3):
        for kind in kinds_of_size(kind_size_):
            for body_size in range(1, size - 2 - kind_size_):
                for body_type in normal_types_of_size((kind, *type_context), STAR, body_size):
                    for argument_size in range(1, size - 1 - kind_size_ - body_size):
                        term_size = size - 1 - kind_size_ - body_size - argument_size
                        for argument_type in normal_types_of_size(type_context, kind, argument_size):
                            if normalize_type_g(substitute_top_g(body_type, argument_type)) != type_g:
                                continue
                            for term in terms_of_size(
                                type_context, term_context, TyForallG(kind, body_type), term_size
                            ):
                                yield TyInstG(term, body_type, argument_type, kind)


@cache
def terms_of_size(
    type_context: KindContext,
    term_context: TypeContext,
    type_g: TypeG,
    size: int,
) -> tuple[TermG, ...]:
    """
    All well-typed terms of exactly ``size`` at ``type_g``.

    ``type_g`` and every type in ``term_context`` must be in normal form.
    """
    if size < 1:
        return ()
    return tuple(
        chain.from_iterable(
            constructor(type_context, term_context, type_g, size) for constructor in _TERMS
        )
    )


_TERMS: Sequence[Callable[[KindContext, TypeContext, TypeG, int], Iterator[TermG]]] = (
    _term_variables,
    _term_constants,
    _term_errors,
    _term_lambdas,
    _term_type_abstractions,
    _term_applications,
    _term_instantiations,
)


def clear_enumeration_caches() -> None:
    """
    Drop every memoised enumeration.

    The caches grow with the largest size enumerated so far and are shared by
    the whole process, so a long run should clear them once it is done.
    """
    kinds_of_size.cache_clear()
    types_of_size.cache_clear()
    normal_types_of_size.cache_clear()
    neutral_types_of_size.cache_clear()
    terms_of_size.cache_clear()


# =============================================================================
# Enumeration indices
# =============================================================================


@final
@dataclass(frozen=True, slots=True)
class ClosedTypesOfKind:
    """Index of the closed well-kinded types of a kind."""

    kind: Kind

    @property
    def parameter(self) -> Kind:
        return self.kind

    @property
    def constructors(self) -> Sequence[SizedEnumeration[TypeG]]:
        return tuple(partial(constructor, (), self.kind) for constructor in _TYPES)

    def check(self, value: TypeG) -> bool:
        return check_type_g((), self.kind, value)


def _normalized(
    constructor: Callable[[KindContext, Kind, int], Iterator[TypeG]],
    kind: Kind,
    size: int,
) -> Iterator[Normalized[TypeG]]:
    for type_g in constructor((), kind, size):
        yield Normalized(type_g)


@final
@dataclass(frozen=True, slots=True)
class NormalizedTypesOfKind:
    """Index of the closed normal-form types of a kind."""

    kind: Kind

    @property
    def parameter(self) -> Kind:
        return self.kind

    @property
    def constructors(self) -> Sequence[SizedEnumeration[Normalized[TypeG]]]:
        return tuple(partial(_normalized, constructor, self.kind) for constructor in _NORMAL_TYPES)

    def check(self, value: Normalized[TypeG]) -> bool:
        return check_type_g((), self.kind, value.value) and is_normal_type_g(value.value)


@final
@dataclass(frozen=True, slots=True)
class ClosedTermsOfType:
    """Index of the closed well-typed terms of a closed type of kind ``*``."""

    type_g: TypeG

    @property
    def parameter(self) -> TypeG:
        return self.type_g

    @property
    def constructors(self) -> Sequence[SizedEnumeration[TermG]]:
        normal_type = normalize_type_g(self.type_g)
        return tuple(partial(constructor, (), (), normal_type) for constructor in _TERMS)

    def check(self, value: TermG) -> bool:
        return check_type_g((), STAR, self.type_g) and check_term_g((), (), self.type_g, value)
