"""Tests for the default suite and its runner."""

import logging
from pathlib import Path

import pytest

from neatcore.config import GenOptions, RunMode, SuiteConfig, load_suite_config
from neatcore.failures import CounterexampleFailure, KindCheckFail
from neatcore.generators import (
    ClosedTypesOfKind,
    TyForallG,
    TypeG,
    terms_of_size,
    types_of_size,
)
from neatcore.harness import CounterexamplesFound, PropertyReport
from neatcore.properties import prop_kind_checking_sound
from neatcore.suite import TERM_EXAMPLES, PropertyCase, default_suite, run_suite
from neatcore.syntax import STAR, Kind

FIXTURES_PATH = Path(__file__).parent / "fixtures" / "config"
CAPPED = GenOptions(max_examples=50)


def _no_foralls(kind: Kind, type_g: TypeG) -> None:
    if isinstance(type_g, TyForallG):
        raise CounterexampleFailure(KindCheckFail(kind, type_g))


def _cases(prop=prop_kind_checking_sound, max_examples=None) -> tuple[PropertyCase, ...]:
    return (
        PropertyCase(
            name="small types",
            depth=4,
            index=ClosedTypesOfKind(STAR),
            prop=prop,
            max_examples=max_examples,
        ),
    )


class TestDefaultSuite:
    """The default suite lists the five properties at their depths."""

    def test_names_and_depths(self) -> None:
        assert [(case.name, case.depth) for case in default_suite()] == [
            ("kind checking", 11),
            ("normalization commutes with conversion from generated types", 13),
            ("normal types cannot reduce", 14),
            ("type preservation - CK", 18),
            ("typed CK vs untyped CEK produce the same output", 18),
        ]

    def test_term_cases_are_capped(self) -> None:
        assert [case.max_examples for case in default_suite()] == [
            None,
            None,
            None,
            TERM_EXAMPLES,
            TERM_EXAMPLES,
        ]

    def test_fixture_overrides_name_suite_cases(self) -> None:
        config = load_suite_config(FIXTURES_PATH / "suite.yaml")
        names = {case.name for case in default_suite()}
        assert set(config.depths) <= names


class TestRunSuite:
    """run_suite runs every case with the configured options."""

    def test_capped_default_suite(self) -> None:
        reports = run_suite(SuiteConfig(options=CAPPED))
        assert [report.name for report in reports] == [case.name for case in default_suite()]
        assert all(report.examples == 50 for report in reports)

    def test_fail_fast_mode(self) -> None:
        reports = run_suite(SuiteConfig(options=CAPPED, mode=RunMode.FAIL_FAST))
        assert len(reports) == 5
        assert all(report.examples == 50 for report in reports)

    def test_case_depth_is_used(self) -> None:
        (report,) = run_suite(SuiteConfig(), _cases())
        (expected,) = run_suite(SuiteConfig(depths={"small types": 4}), _cases())
        assert report == expected

    def test_depth_override(self) -> None:
        (shallow,) = run_suite(SuiteConfig(depths={"small types": 2}), _cases())
        assert shallow == PropertyReport("small types", 2)

    def test_unknown_override_raises(self) -> None:
        with pytest.raises(ValueError, match="Unknown properties in depth overrides: no such"):
            run_suite(SuiteConfig(depths={"no such": 3}), _cases())

    def test_counterexamples_stop_the_suite(self) -> None:
        with pytest.raises(CounterexamplesFound) as info:
            run_suite(SuiteConfig(), _cases(_no_foralls))
        assert info.value.name == "small types"

    def test_case_cap_is_used_without_a_configured_cap(self) -> None:
        (report,) = run_suite(SuiteConfig(), _cases(max_examples=3))
        assert report == PropertyReport("small types", 3)

    def test_configured_cap_overrides_the_case_cap(self) -> None:
        config = SuiteConfig(options=GenOptions(max_examples=2))
        (report,) = run_suite(config, _cases(max_examples=3))
        assert report == PropertyReport("small types", 2)

    def test_enumeration_caches_are_cleared_after_each_case(self) -> None:
        run_suite(SuiteConfig(), _cases())
        assert types_of_size.cache_info().currsize == 0
        assert terms_of_size.cache_info().currsize == 0

    def test_enumeration_caches_are_cleared_when_a_case_fails(self) -> None:
        with pytest.raises(CounterexamplesFound):
            run_suite(SuiteConfig(), _cases(_no_foralls))
        assert types_of_size.cache_info().currsize == 0

    def test_cases_are_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="neatcore.suite"):
            run_suite(SuiteConfig(), _cases())
        assert "Running 'small types' at depth 4" in caplog.text
