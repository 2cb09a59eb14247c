"""
neatcore: exhaustive differential testing of a typed core calculus.

Well-kinded types and well-typed closed terms are enumerated by construction
up to a size bound, converted into named syntax, and run through a kind and
type checker, a type normalizer and two independent evaluators.

Public API
==========

Properties:
    - :func:`prop_kind_checking_sound`
    - :func:`prop_normalize_convert_commute_types`
    - :func:`prop_normal_types_cannot_reduce`
    - :func:`prop_type_checking_sound`
    - :func:`prop_type_preservation`
    - :func:`prop_agree_term_eval`

Running:
    - :func:`run_fail_fast`
    - :func:`run_exhaustive`
    - :func:`run_suite`
    - :func:`examples`
    - :func:`pack_assertion`

Configuration:
    - :class:`GenOptions`
    - :class:`SuiteConfig`
    - :func:`load_gen_options`
    - :func:`load_suite_config`
"""

from neatcore.config import GenOptions as GenOptions
from neatcore.config import RunMode as RunMode
from neatcore.config import SearchStrategy as SearchStrategy
from neatcore.config import SuiteConfig as SuiteConfig
from neatcore.config import load_gen_options as load_gen_options
from neatcore.config import load_suite_config as load_suite_config
from neatcore.failures import CounterexampleFailure as CounterexampleFailure
from neatcore.failures import PropertyFailure as PropertyFailure
from neatcore.harness import CounterexamplesFound as CounterexamplesFound
from neatcore.harness import PropertyAborted as PropertyAborted
from neatcore.harness import PropertyReport as PropertyReport
from neatcore.harness import examples as examples
from neatcore.harness import pack_assertion as pack_assertion
from neatcore.harness import run_exhaustive as run_exhaustive
from neatcore.harness import run_fail_fast as run_fail_fast
from neatcore.properties import prop_agree_term_eval as prop_agree_term_eval
from neatcore.properties import prop_kind_checking_sound as prop_kind_checking_sound
from neatcore.properties import (
    prop_normal_types_cannot_reduce as prop_normal_types_cannot_reduce,
)
from neatcore.properties import (
    prop_normalize_convert_commute_types as prop_normalize_convert_commute_types,
)
from neatcore.properties import prop_type_checking_sound as prop_type_checking_sound
from neatcore.properties import prop_type_preservation as prop_type_preservation
from neatcore.suite import default_suite as default_suite
from neatcore.suite import run_suite as run_suite
