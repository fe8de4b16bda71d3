import json

import pytest

from reading_level.aggregation import summarize
from reading_level.gates import GateInput, evaluate_gates, parse_gate_specs
from reading_level.infobox import (
    extract_key_topics,
    render_infobox,
    suggest_improvements,
    suggest_prerequisites,
)
from reading_level.models import ComplexityTier, DocType, DocumentResult, Metrics
from reading_level.report import build_report, dumps_report, render_report

from tests.utils import make_result


def test_build_report_is_sorted_and_deterministic():
    results = [
        make_result("b.md", grade_level=9.0),
        make_result("a.md", grade_level=15.0),
    ]
    summary = summarize(results)

    first = dumps_report(build_report(results, summary, {".": summary}))
    second = dumps_report(build_report(list(reversed(results)), summary, {".": summary}))

    assert first == second
    payload = json.loads(first)
    assert [doc["path"] for doc in payload["documents"]] == ["a.md", "b.md"]
    assert payload["documents"][0]["violations"][0]["metric"] == "grade_level"
    assert payload["summary"]["tier_distribution"]["Beginner"]["count"] == 1


def test_text_report_shows_gate_results():
    results = [make_result("README.md", grade_level=13.0, doc_type=DocType.README)]
    summary = summarize(results)
    gate_report = evaluate_gates(
        parse_gate_specs(["grade_ceiling", "max_average_grade=14"]),
        GateInput(results=tuple(results), summary=summary),
    )

    text = render_report(build_report(results, summary, {".": summary}, gate_report))

    assert "[FAIL] grade_ceiling: actual 1, expected 0 (README.md)" in text
    assert "[PASS] max_average_grade=14: actual 13.00, expected 14.00" in text
    assert text.endswith("Overall: FAIL")


def test_failed_document_renders_as_error_line():
    failed = DocumentResult(path="bad.md", doc_type=DocType.MAIN, error="not valid UTF-8")

    text = render_report(build_report([failed], summarize([failed])), single_file=True)

    assert text == "bad.md: ERROR not valid UTF-8"


@pytest.mark.parametrize(
    "tier, terms, expected",
    [
        (ComplexityTier.BEGINNER, ("oauth",), "Basic HTTP knowledge"),
        (ComplexityTier.INTERMEDIATE, ("jwt", "api"), "HTTP fundamentals, basic API experience"),
        (ComplexityTier.INTERMEDIATE, ("api",), "Basic REST API knowledge"),
        (
            ComplexityTier.ADVANCED,
            (),
            "Strong API background, experience with complex systems",
        ),
    ],
)
def test_suggest_prerequisites(tier, terms, expected):
    assert suggest_prerequisites(tier, terms) == expected


def test_extract_key_topics_dedupes_and_defaults():
    assert extract_key_topics(("oauth", "jwt", "cors", "streaming", "testing")) == (
        "Authentication, Security, Architecture"
    )
    assert extract_key_topics(("api",)) == "API Design"


def test_suggest_improvements_for_dense_document():
    metrics = Metrics(
        grade_level=18.0,
        flesch_score=20.0,
        technical_density=40.0,
        reading_time_minutes=3,
        word_count=500,
        sentence_count=20,
        syllable_count=900,
    )

    suggestions = suggest_improvements(metrics, ComplexityTier.ADVANCED, code_block_count=12)

    assert len(suggestions) == 5
    assert suggestions[0] == "Consider breaking long sentences into shorter ones"
    assert suggestions[-1].startswith("Many code examples")


def test_render_infobox_requires_metrics():
    result = make_result("guide.md", grade_level=8.0, reading_time=2)

    box = render_infobox(result)

    assert box.splitlines()[0] == "> **📖 Reading Guide**"
    assert "2 minutes" in box
    assert "8.0 grade level" in box
    with pytest.raises(ValueError):
        render_infobox(DocumentResult(path="bad.md", doc_type=DocType.MAIN, error="boom"))
