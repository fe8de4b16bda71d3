from __future__ import annotations

import re
from dataclasses import dataclass, field, fields
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, MutableMapping, Pattern, Sequence, Tuple

import yaml

from .errors import ConfigError
from .models import DocType

DEFAULT_TECHNICAL_PATTERNS: Tuple[str, ...] = (
    # HTTP verbs
    r"\b(?:GET|POST|PUT|PATCH|DELETE|HEAD|OPTIONS)\b",
    # status codes
    r"\b[1-5][0-9]{2}\b",
    # header names such as Content-Type or X-Request-Id
    r"\b(?:X-)?[A-Z][a-z]+(?:-[A-Z][a-z]*)+\b",
    # camelCase and PascalCase identifiers
    r"\b[a-z]+(?:[A-Z][a-z0-9]*)+\b",
    r"\b[A-Z][a-z0-9]+(?:[A-Z][a-z0-9]+)+\b",
    # snake_case identifiers
    r"\b[a-z0-9]+(?:_[a-z0-9]+)+\b",
)

DEFAULT_TECHNICAL_TERMS: Tuple[str, ...] = (
    "oauth", "jwt", "cors", "hateoas", "crud", "rest", "api", "http", "json",
    "microservice", "endpoint", "middleware", "authentication", "authorization",
    "pagination", "idempotent", "webhook", "async", "reactive", "streaming",
    "schema", "openapi", "rfc", "ssl", "tls", "cdn", "load balancer",
    "circuit breaker", "retry", "backoff", "timeout", "cache", "redis",
    "database", "transaction", "acid", "nosql", "sql", "index", "query",
    "testing", "monitoring",
)


@dataclass(frozen=True, slots=True)
class Threshold:
    """Readability limits for one document type."""

    grade_ceiling: float
    flesch_minimum: float


@dataclass(frozen=True, slots=True)
class TierCutoffs:
    """Upper grade-level bounds for the Beginner and Intermediate tiers."""

    beginner_max: float = 11.0
    intermediate_max: float = 17.0


def default_thresholds() -> Dict[DocType, Threshold]:
    return {
        DocType.MAIN: Threshold(grade_ceiling=14.0, flesch_minimum=30.0),
        DocType.README: Threshold(grade_ceiling=12.0, flesch_minimum=40.0),
        DocType.GETTING_STARTED: Threshold(grade_ceiling=10.0, flesch_minimum=50.0),
        DocType.REFERENCE: Threshold(grade_ceiling=16.0, flesch_minimum=30.0),
    }


@dataclass(frozen=True, slots=True)
class ReadingLevelConfig:
    """Immutable configuration shared read-only by every analysis step."""

    thresholds: Mapping[DocType, Threshold] = field(default_factory=default_thresholds)
    exemption_density: float = 80.0
    words_per_minute: int = 200
    tier_cutoffs: TierCutoffs = field(default_factory=TierCutoffs)
    technical_patterns: Tuple[str, ...] = DEFAULT_TECHNICAL_PATTERNS
    technical_terms: Tuple[str, ...] = DEFAULT_TECHNICAL_TERMS
    top_n: int = 5
    workers: int = 1
    gates: Tuple[str, ...] = ()
    file_extensions: Tuple[str, ...] = (".md", ".markdown")

    def __post_init__(self) -> None:
        if not 0.0 <= self.exemption_density <= 100.0:
            raise ConfigError("exemption_density must be between 0 and 100.")
        if self.words_per_minute <= 0:
            raise ConfigError("words_per_minute must be a positive integer.")
        if self.top_n < 1:
            raise ConfigError("top_n must be at least 1.")
        if self.workers < 1:
            raise ConfigError("workers must be at least 1.")
        if self.tier_cutoffs.beginner_max > self.tier_cutoffs.intermediate_max:
            raise ConfigError(
                "tier_cutoffs.beginner_max must not exceed tier_cutoffs.intermediate_max."
            )
        missing = [doc_type.value for doc_type in DocType if doc_type not in self.thresholds]
        if missing:
            raise ConfigError(f"Missing thresholds for: {', '.join(missing)}")
        compile_patterns(self.technical_patterns)
        object.__setattr__(self, "thresholds", MappingProxyType(dict(self.thresholds)))

    def threshold_for(self, doc_type: DocType) -> Threshold:
        return self.thresholds[doc_type]

    def to_dict(self) -> dict[str, Any]:
        """Return a plain, YAML-friendly dictionary representation of the configuration."""
        return {
            "thresholds": {
                doc_type.value: {
                    "grade_ceiling": threshold.grade_ceiling,
                    "flesch_minimum": threshold.flesch_minimum,
                }
                for doc_type, threshold in self.thresholds.items()
            },
            "exemption_density": self.exemption_density,
            "words_per_minute": self.words_per_minute,
            "tier_cutoffs": {
                "beginner_max": self.tier_cutoffs.beginner_max,
                "intermediate_max": self.tier_cutoffs.intermediate_max,
            },
            "technical_patterns": list(self.technical_patterns),
            "technical_terms": list(self.technical_terms),
            "top_n": self.top_n,
            "workers": self.workers,
            "gates": list(self.gates),
            "file_extensions": list(self.file_extensions),
        }


@lru_cache(maxsize=8)
def compile_patterns(patterns: Tuple[str, ...]) -> Tuple[Pattern[str], ...]:
    """Compile the technical-token patterns once per distinct pattern list."""
    compiled = []
    for pattern in patterns:
        try:
            compiled.append(re.compile(pattern))
        except re.error as exc:
            raise ConfigError(f"Invalid technical pattern {pattern!r}: {exc}") from exc
    return tuple(compiled)


def _as_float(value: Any, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"{name} must be a number, got {value!r}.")
    return float(value)


def _as_int(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{name} must be an integer, got {value!r}.")
    return value


def _as_strings(value: Any, name: str) -> Tuple[str, ...]:
    if isinstance(value, str) or not isinstance(value, Sequence):
        raise ConfigError(f"{name} must be a list of strings.")
    if not all(isinstance(item, str) for item in value):
        raise ConfigError(f"{name} must be a list of strings.")
    return tuple(value)


def parse_doc_type(value: str) -> DocType:
    """Resolve a doc type name such as 'readme' or 'getting-started'."""
    normalized = value.strip().lower().replace("-", "_").replace(" ", "_")
    try:
        return DocType(normalized)
    except ValueError as exc:
        choices = ", ".join(doc_type.value for doc_type in DocType)
        raise ConfigError(f"Unknown doc type {value!r} (expected one of {choices}).") from exc


def _build_thresholds(data: Any) -> Dict[DocType, Threshold]:
    if not isinstance(data, Mapping):
        raise ConfigError("thresholds must be a mapping of doc type to limits.")
    thresholds = default_thresholds()
    for key, limits in data.items():
        doc_type = parse_doc_type(str(key))
        if not isinstance(limits, Mapping):
            raise ConfigError(f"thresholds.{key} must be a mapping.")
        # Only override the limits that were provided; the rest keep their defaults.
        base = thresholds[doc_type]
        thresholds[doc_type] = Threshold(
            grade_ceiling=_as_float(
                limits.get("grade_ceiling", base.grade_ceiling),
                f"thresholds.{key}.grade_ceiling",
            ),
            flesch_minimum=_as_float(
                limits.get("flesch_minimum", base.flesch_minimum),
                f"thresholds.{key}.flesch_minimum",
            ),
        )
    return thresholds


def _build_tier_cutoffs(data: Any) -> TierCutoffs:
    if not isinstance(data, Mapping):
        raise ConfigError("tier_cutoffs must be a mapping.")
    base = TierCutoffs()
    return TierCutoffs(
        beginner_max=_as_float(
            data.get("beginner_max", base.beginner_max), "tier_cutoffs.beginner_max"
        ),
        intermediate_max=_as_float(
            data.get("intermediate_max", base.intermediate_max),
            "tier_cutoffs.intermediate_max",
        ),
    )


def _build_kwargs(data: Mapping[str, Any]) -> dict[str, Any]:
    allowed = {field.name for field in fields(ReadingLevelConfig)}
    unknown = sorted(str(key) for key in data if key not in allowed)
    if unknown:
        raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")
    kwargs: dict[str, Any] = {}
    if "thresholds" in data:
        kwargs["thresholds"] = _build_thresholds(data["thresholds"])
    if "tier_cutoffs" in data:
        kwargs["tier_cutoffs"] = _build_tier_cutoffs(data["tier_cutoffs"])
    if "exemption_density" in data:
        kwargs["exemption_density"] = _as_float(
            data["exemption_density"], "exemption_density"
        )
    for name in ("words_per_minute", "top_n", "workers"):
        if name in data:
            kwargs[name] = _as_int(data[name], name)
    for name in ("technical_patterns", "technical_terms", "gates", "file_extensions"):
        if name in data:
            kwargs[name] = _as_strings(data[name], name)
    return kwargs


def config_from_dict(data: Mapping[str, Any] | None) -> ReadingLevelConfig:
    """Build a ReadingLevelConfig from a dictionary-like input."""
    if data is None:
        return ReadingLevelConfig()
    return ReadingLevelConfig(**_build_kwargs(data))


def config_from_yaml(path: str | Path) -> ReadingLevelConfig:
    """Load configuration from a YAML file."""
    try:
        contents = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Cannot read configuration file {path}: {exc}") from exc
    try:
        parsed = yaml.safe_load(contents) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Configuration file {path} is not valid YAML: {exc}") from exc
    if not isinstance(parsed, MutableMapping):
        raise ConfigError("Configuration YAML must define a mapping.")
    return config_from_dict(parsed)


def load_config(path: str | Path | None = None) -> ReadingLevelConfig:
    """Load configuration from YAML when provided, otherwise return defaults."""
    if path is None:
        return ReadingLevelConfig()
    return config_from_yaml(path)
