"""The default property suite and a runner for it."""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Final, final

from neatcore.config import RunMode, SuiteConfig
from neatcore.generators import (
    ClosedTermsOfType,
    ClosedTypesOfKind,
    NormalizedTypesOfKind,
    TyBuiltinG,
    clear_enumeration_caches,
)
from neatcore.harness import Property, PropertyReport, run_exhaustive, run_fail_fast
from neatcore.properties import (
    prop_agree_term_eval,
    prop_kind_checking_sound,
    prop_normal_types_cannot_reduce,
    prop_normalize_convert_commute_types,
    prop_type_preservation,
)
from neatcore.search import Enumerable
from neatcore.syntax import STAR, BuiltinType

logger = logging.getLogger(__name__)

TERM_EXAMPLES: Final = 25_000
"""Default number of examples checked by the term properties."""


@final
@dataclass(frozen=True, kw_only=True, slots=True)
class PropertyCase:
    name: str
    depth: int
    """Default search depth of this case."""

    index: Enumerable[Any]
    prop: Property[Any]
    max_examples: int | None = None
    """
    Default example cap of this case, used unless the suite configuration sets one.

    Closed terms grow about tenfold every two sizes, so the term properties
    are capped to stay within minutes at their depth.
    """


def default_suite() -> tuple[PropertyCase, ...]:
    unit = TyBuiltinG(BuiltinType.UNIT)
    return (
        PropertyCase(
            name="kind checking",
            depth=11,
            index=ClosedTypesOfKind(STAR),
            prop=prop_kind_checking_sound,
        ),
        PropertyCase(
            name="normalization commutes with conversion from generated types",
            depth=13,
            index=ClosedTypesOfKind(STAR),
            prop=prop_normalize_convert_commute_types,
        ),
        PropertyCase(
            name="normal types cannot reduce",
            depth=14,
            index=NormalizedTypesOfKind(STAR),
            prop=prop_normal_types_cannot_reduce,
        ),
        PropertyCase(
            name="type preservation - CK",
            depth=18,
            index=ClosedTermsOfType(unit),
            prop=prop_type_preservation,
            max_examples=TERM_EXAMPLES,
        ),
        PropertyCase(
            name="typed CK vs untyped CEK produce the same output",
            depth=18,
            index=ClosedTermsOfType(unit),
            prop=prop_agree_term_eval,
            max_examples=TERM_EXAMPLES,
        ),
    )


def run_suite(
    config: SuiteConfig | None = None,
    cases: Sequence[PropertyCase] | None = None,
) -> list[PropertyReport]:
    """
    Run every case of a suite, in order.

    Each case runs at its own depth unless ``config.depths`` overrides it by
    name, and with its own example cap unless ``config.options`` sets one.
    The strategy comes from ``config.options``. The enumeration caches are
    cleared after every case.

    :raises ValueError: If ``config.depths`` names a case that is not in the suite.
    :raises CounterexamplesFound: From the first case with counterexamples.
    :raises PropertyAborted: From the first case that failed otherwise.
    """
    config = SuiteConfig() if config is None else config
    cases = default_suite() if cases is None else cases
    _check_overrides(config.depths, cases)

    run = run_fail_fast if config.mode is RunMode.FAIL_FAST else run_exhaustive
    reports = []
    for case in cases:
        max_examples = config.options.max_examples
        options = dataclasses.replace(
            config.options,
            depth=config.depths.get(case.name, case.depth),
            max_examples=case.max_examples if max_examples is None else max_examples,
        )
        logger.info("Running %r at depth %d", case.name, options.depth)
        try:
            reports.append(run(case.name, options, case.index, case.prop))
        finally:
            clear_enumeration_caches()
    return reports


def _check_overrides(depths: Mapping[str, int], cases: Sequence[PropertyCase]) -> None:
    unknown = set(depths) - {case.name for case in cases}
    if unknown:
        raise ValueError(f"Unknown properties in depth overrides: {', '.join(sorted(unknown))}")
