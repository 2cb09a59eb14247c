"""
Generation and search options, and loading them from YAML/JSON/TOML files.

A configuration file holds a mapping such as::

    depth: 11
    strategy: sized
    max_examples: 5000
    mode: exhaustive
    depths:
      normal types cannot reduce: 14
"""

from __future__ import annotations

import json
import logging
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum, auto
from pathlib import Path
from types import MappingProxyType
from typing import Any, TypeVar, final

import yaml

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)


class SearchStrategy(Enum):
    SIZED = auto()
    """
    Visit all values of size 1, then of size 2, and so on.

    The first counterexample found is a smallest one.
    """

    DEPTH_FIRST = auto()
    """
    Visit the values of one top-level constructor at every size up to the
    bound before moving on to the next constructor.
    """


class RunMode(Enum):
    FAIL_FAST = auto()
    """Stop at the first example that violates the property."""

    EXHAUSTIVE = auto()
    """Apply the property to every generated example."""


@final
@dataclass(frozen=True, kw_only=True, slots=True)
class GenOptions:
    depth: int = 11
    """Search depth, measured in program size."""

    strategy: SearchStrategy = SearchStrategy.SIZED
    """Order in which the enumeration visits values."""

    max_examples: int | None = None
    """
    Stop after this many examples, or never if ``None``.

    The cut is taken from the strategy's visiting order, so it stays
    deterministic.
    """

    def __post_init__(self) -> None:
        if self.depth < 0:
            raise ValueError(f"depth must not be negative, got {self.depth}")
        if self.max_examples is not None and self.max_examples < 1:
            raise ValueError(f"max_examples must be positive, got {self.max_examples}")


def default_gen_options() -> GenOptions:
    return GenOptions()


@final
@dataclass(frozen=True, kw_only=True, slots=True)
class SuiteConfig:
    options: GenOptions = field(default_factory=default_gen_options)
    mode: RunMode = RunMode.EXHAUSTIVE
    depths: Mapping[str, int] = field(default_factory=lambda: MappingProxyType({}))
    """Per-property depth overrides, keyed by property name."""


def _parse_enum(enum_type: type[E], value: Any, key: str) -> E:
    if not isinstance(value, str):
        raise ValueError(f"{key} must be a string, got {type(value).__name__}")
    try:
        return enum_type[value.upper().replace("-", "_")]
    except KeyError:
        choices = ", ".join(member.name.lower() for member in enum_type)
        raise ValueError(f"Unknown {key} {value!r}, expected one of: {choices}") from None


def _parse_int(value: Any, key: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key} must be an integer, got {type(value).__name__}: {value!r}")
    return value


def parse_gen_options(data: Mapping[str, Any]) -> GenOptions:
    """
    Build :class:`GenOptions` from a parsed mapping.

    :raises ValueError: On unknown keys or ill-typed values.
    """
    unknown = set(data) - {"depth", "strategy", "max_examples"}
    if unknown:
        raise ValueError(f"Unknown generation options: {', '.join(sorted(unknown))}")

    options: dict[str, Any] = {}
    if "depth" in data:
        options["depth"] = _parse_int(data["depth"], "depth")
    if "strategy" in data:
        options["strategy"] = _parse_enum(SearchStrategy, data["strategy"], "strategy")
    if data.get("max_examples") is not None:
        options["max_examples"] = _parse_int(data["max_examples"], "max_examples")
    return GenOptions(**options)


def parse_suite_config(data: Mapping[str, Any]) -> SuiteConfig:
    """Build a :class:`SuiteConfig`; keys other than ``mode`` and ``depths`` are generation options."""
    remaining = dict(data)
    mode = RunMode.EXHAUSTIVE
    if "mode" in remaining:
        mode = _parse_enum(RunMode, remaining.pop("mode"), "mode")

    depths: dict[str, int] = {}
    raw_depths = remaining.pop("depths", None) or {}
    if not isinstance(raw_depths, dict):
        raise ValueError(f"depths must be a mapping, got {type(raw_depths).__name__}")
    for name, depth in raw_depths.items():
        if not isinstance(name, str):
            raise ValueError(f"Property name must be a string, got {type(name).__name__}")
        depths[name] = _parse_int(depth, f"depth of {name!r}")

    return SuiteConfig(
        options=parse_gen_options(remaining),
        mode=mode,
        depths=MappingProxyType(depths),
    )


def load_config_file(file_path: Path) -> Mapping[str, Any]:
    """
    Read a YAML, JSON or TOML configuration file.

    :raises ValueError: If the format is not recognized or the file does not
        contain a mapping.
    """
    content = file_path.read_text(encoding="utf-8")

    suffix = file_path.suffix.lower()
    if suffix in (".yaml", ".yml"):
        data = yaml.safe_load(content)
    elif suffix == ".json":
        data = json.loads(content)
    elif suffix == ".toml":
        data = tomllib.loads(content)
    else:
        raise ValueError(
            f"Unrecognized configuration format: {file_path.name}. "
            f"Expected .yaml, .yml, .json, or .toml"
        )

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError(
            f"Configuration file must contain a mapping at top level, got {type(data).__name__}"
        )
    logger.debug("Loaded configuration from %s: %r", file_path, data)
    return data


def load_gen_options(file_path: Path) -> GenOptions:
    return parse_gen_options(load_config_file(file_path))


def load_suite_config(file_path: Path) -> SuiteConfig:
    return parse_suite_config(load_config_file(file_path))
