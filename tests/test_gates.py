import json
from pathlib import Path

import pytest

from reading_level.aggregation import summarize, summarize_tree
from reading_level.errors import ConfigError
from reading_level.gates import (
    GateInput,
    GateKind,
    GateRule,
    evaluate_gates,
    load_baseline,
    parse_gate_spec,
    parse_gate_specs,
)
from reading_level.models import DocType

from tests.utils import make_result


def _gate_input(results, baseline_grade=None) -> GateInput:
    scopes = summarize_tree(results)
    return GateInput(
        results=tuple(results),
        summary=scopes["."],
        scopes=scopes,
        baseline_grade=baseline_grade,
    )


def test_parse_gate_spec_variants():
    assert parse_gate_spec("no_violations") == GateRule("no_violations", GateKind.NO_VIOLATIONS)
    rule = parse_gate_spec(" max-average-grade=12.5 ")
    assert rule.kind is GateKind.MAX_AVERAGE_GRADE
    assert rule.value == 12.5
    assert rule.name == "max-average-grade=12.5"


@pytest.mark.parametrize(
    "spec",
    ["unknown_gate", "max_average_grade", "max_average_grade=high", "min_average_flesch"],
)
def test_parse_gate_spec_rejects_bad_input(spec):
    with pytest.raises(ConfigError):
        parse_gate_spec(spec)


def test_flesch_minimum_gate_follows_the_readme_threshold():
    """A README at Flesch 34.9 fails; after a rewrite to 42.6 it passes."""
    rules = parse_gate_specs(["flesch_minimum"])
    before = make_result("README.md", grade_level=9.0, flesch_score=34.9, doc_type=DocType.README)
    after = make_result("README.md", grade_level=9.0, flesch_score=42.6, doc_type=DocType.README)

    failing = evaluate_gates(rules, _gate_input([before]))
    passing = evaluate_gates(rules, _gate_input([after]))

    assert not failing.passed
    assert failing.results[0].actual == 1
    assert failing.results[0].detail == "README.md"
    assert passing.passed


def test_grade_ceiling_ignores_flesch_violations():
    results = [
        make_result("README.md", grade_level=9.0, flesch_score=20.0, doc_type=DocType.README),
        make_result("guide.md", grade_level=15.0, flesch_score=60.0),
    ]
    report = evaluate_gates(
        parse_gate_specs(["grade_ceiling", "no_violations"]), _gate_input(results)
    )

    grade_ceiling, no_violations = report.results
    assert grade_ceiling.actual == 1
    assert grade_ceiling.detail == "guide.md"
    assert no_violations.actual == 2
    assert no_violations.detail == "README.md, guide.md"


def test_exempt_documents_pass_violation_gates():
    exempt = make_result(
        "README.md",
        grade_level=45.0,
        flesch_score=-60.0,
        technical_density=92.0,
        doc_type=DocType.README,
    )

    report = evaluate_gates(parse_gate_specs(["no_violations"]), _gate_input([exempt]))

    assert report.passed


def test_average_gates():
    results = [
        make_result("a.md", grade_level=10.0, flesch_score=50.0),
        make_result("b.md", grade_level=14.0, flesch_score=40.0),
    ]
    report = evaluate_gates(
        parse_gate_specs(
            ["max_average_grade=12", "max_average_grade=11.9", "min_average_flesch=45"]
        ),
        _gate_input(results),
    )

    assert [result.passed for result in report.results] == [True, False, True]
    assert report.results[0].actual == pytest.approx(12.0)
    assert not report.passed


def test_no_grade_increase_compares_against_baseline():
    results = [make_result("a.md", grade_level=10.0)]
    rules = parse_gate_specs(["no_grade_increase"])

    assert evaluate_gates(rules, _gate_input(results, baseline_grade=10.0)).passed
    assert not evaluate_gates(rules, _gate_input(results, baseline_grade=9.5)).passed
    with pytest.raises(ConfigError):
        evaluate_gates(rules, _gate_input(results))


def test_beginner_per_scope_names_scopes_without_beginner_docs():
    results = [
        make_result("intro.md", grade_level=8.0),
        make_result("advanced/deep.md", grade_level=18.0),
        make_result("basics/start.md", grade_level=6.0),
    ]

    report = evaluate_gates(parse_gate_specs(["beginner_per_scope"]), _gate_input(results))

    assert not report.passed
    assert report.results[0].actual == 1
    assert report.results[0].detail == "advanced"


def test_gates_see_same_summary_in_single_file_mode():
    result = make_result("README.md", grade_level=11.0, doc_type=DocType.README)
    gate_input = GateInput(results=(result,), summary=summarize([result]))

    report = evaluate_gates(
        parse_gate_specs(["max_average_grade=11", "beginner_per_scope"]), gate_input
    )

    assert report.passed


def test_load_baseline_reads_previous_report(tmp_path: Path):
    report = tmp_path / "baseline.json"
    report.write_text(json.dumps({"summary": {"avg_grade_level": 11.25}}), encoding="utf-8")

    assert load_baseline(report) == 11.25


@pytest.mark.parametrize(
    "content",
    [
        "not json",
        json.dumps({"documents": []}),
        json.dumps({"summary": {"avg_grade_level": "x"}}),
    ],
)
def test_load_baseline_rejects_bad_reports(tmp_path: Path, content: str):
    report = tmp_path / "baseline.json"
    report.write_text(content, encoding="utf-8")

    with pytest.raises(ConfigError):
        load_baseline(report)
