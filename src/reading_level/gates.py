from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Mapping, Sequence, Tuple

from .aggregation import DirectorySummary
from .errors import ConfigError
from .models import ComplexityTier, DocumentResult

logger = logging.getLogger(__name__)


class GateKind(str, Enum):
    MAX_AVERAGE_GRADE = "max_average_grade"
    MIN_AVERAGE_FLESCH = "min_average_flesch"
    NO_GRADE_INCREASE = "no_grade_increase"
    NO_VIOLATIONS = "no_violations"
    FLESCH_MINIMUM = "flesch_minimum"
    GRADE_CEILING = "grade_ceiling"
    BEGINNER_PER_SCOPE = "beginner_per_scope"


VALUE_REQUIRED = {GateKind.MAX_AVERAGE_GRADE, GateKind.MIN_AVERAGE_FLESCH}


@dataclass(frozen=True, slots=True)
class GateRule:
    name: str
    kind: GateKind
    value: float | None = None


@dataclass(frozen=True, slots=True)
class GateResult:
    name: str
    passed: bool
    actual: float | int
    expected: float | int
    detail: str = ""


@dataclass(slots=True)
class GateReport:
    results: List[GateResult] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return all(result.passed for result in self.results)


@dataclass(frozen=True, slots=True)
class GateInput:
    """Everything a gate may look at; identical in single-file and corpus mode."""

    results: Tuple[DocumentResult, ...]
    summary: DirectorySummary
    scopes: Mapping[str, DirectorySummary] = field(default_factory=dict)
    baseline_grade: float | None = None


def parse_gate_spec(spec: str) -> GateRule:
    """Parse 'kind' or 'kind=value' (e.g. 'max_average_grade=12')."""
    raw_kind, sep, raw_value = spec.strip().partition("=")
    kind_name = raw_kind.strip().lower().replace("-", "_")
    try:
        kind = GateKind(kind_name)
    except ValueError as exc:
        choices = ", ".join(kind.value for kind in GateKind)
        raise ConfigError(f"Unknown gate {raw_kind!r} (expected one of {choices}).") from exc

    value: float | None = None
    if sep:
        try:
            value = float(raw_value)
        except ValueError as exc:
            raise ConfigError(f"Gate {spec!r} has a non-numeric value.") from exc
    if kind in VALUE_REQUIRED and value is None:
        raise ConfigError(f"Gate {kind.value!r} needs a value, e.g. {kind.value}=12.")
    return GateRule(name=spec.strip(), kind=kind, value=value)


def parse_gate_specs(specs: Iterable[str]) -> List[GateRule]:
    return [parse_gate_spec(spec) for spec in specs]


def load_baseline(path: str | Path) -> float:
    """Read the corpus average grade level from a previously written JSON report."""
    try:
        payload = json.loads(Path(path).read_text(encoding="utf-8"))
        value = payload["summary"]["avg_grade_level"]
    except (OSError, ValueError, KeyError, TypeError) as exc:
        raise ConfigError(f"Cannot read baseline report {path}: {exc}") from exc
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"Baseline report {path} has a non-numeric avg_grade_level.")
    return float(value)


def evaluate_gates(rules: Sequence[GateRule], gate_input: GateInput) -> GateReport:
    """Evaluate every rule and collect pass/fail results."""
    report = GateReport()
    for rule in rules:
        result = _evaluate(rule, gate_input)
        if not result.passed:
            logger.info(
                "Gate %s failed: actual=%s expected=%s",
                rule.name,
                result.actual,
                result.expected,
            )
        report.results.append(result)
    return report


def _evaluate(rule: GateRule, gate_input: GateInput) -> GateResult:
    summary = gate_input.summary
    if rule.kind is GateKind.MAX_AVERAGE_GRADE:
        limit = float(rule.value or 0.0)
        actual = summary.avg_grade_level
        return GateResult(rule.name, actual <= limit, actual, limit)

    if rule.kind is GateKind.MIN_AVERAGE_FLESCH:
        minimum = float(rule.value or 0.0)
        actual = summary.avg_flesch_score
        passed = summary.scored_count == 0 or actual >= minimum
        return GateResult(rule.name, passed, actual, minimum)

    if rule.kind is GateKind.NO_GRADE_INCREASE:
        if gate_input.baseline_grade is None:
            raise ConfigError(f"Gate {rule.name!r} requires a baseline report.")
        actual = summary.avg_grade_level
        baseline = gate_input.baseline_grade
        return GateResult(rule.name, actual <= baseline, actual, baseline)

    if rule.kind is GateKind.BEGINNER_PER_SCOPE:
        scopes = gate_input.scopes or {".": summary}
        missing = sorted(
            scope
            for scope, scope_summary in scopes.items()
            if scope_summary.scored_count
            and not scope_summary.tier_counts.get(ComplexityTier.BEGINNER, 0)
        )
        return GateResult(rule.name, not missing, len(missing), 0, ", ".join(missing))

    metric = {
        GateKind.FLESCH_MINIMUM: "flesch_score",
        GateKind.GRADE_CEILING: "grade_level",
        GateKind.NO_VIOLATIONS: None,
    }[rule.kind]
    matching = [
        violation
        for result in gate_input.results
        if result.classification is not None
        for violation in result.classification.violations
        if metric is None or violation.metric == metric
    ]
    offenders = sorted({violation.path for violation in matching})
    return GateResult(rule.name, not matching, len(matching), 0, ", ".join(offenders))
