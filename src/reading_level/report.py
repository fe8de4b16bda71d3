"""
Report payloads and their text rendering.

The JSON payload is the single source of truth: the text tables are rendered
from the same dictionaries, so both formats always show identical values.
"""

from __future__ import annotations

import json
from typing import Dict, List, Mapping, Sequence, TypedDict

from .aggregation import DirectorySummary, RankedDocument
from .gates import GateReport
from .infobox import render_infobox, suggest_improvements
from .models import DocumentResult
from .scoring import interpret_flesch


class MetricsPayload(TypedDict):
    grade_level: float
    flesch_score: float
    flesch_interpretation: str
    technical_density: float
    reading_time_minutes: int
    word_count: int
    sentence_count: int
    syllable_count: int


class BreachPayload(TypedDict):
    metric: str
    actual: float
    threshold: float
    label: str


class DocumentPayload(TypedDict):
    path: str
    doc_type: str
    error: str | None
    tier: str | None
    metrics: MetricsPayload | None
    violations: List[BreachPayload]
    accepted: List[BreachPayload]
    warnings: List[str]
    suggestions: List[str]
    code_blocks: int
    infobox: str | None


class TierPayload(TypedDict):
    count: int
    percent: float


class RankedPayload(TypedDict):
    path: str
    value: float
    tier: str


class SummaryPayload(TypedDict):
    total_documents: int
    scored_documents: int
    failed_documents: int
    violation_count: int
    accepted_count: int
    avg_reading_time: float
    avg_grade_level: float
    avg_technical_density: float
    avg_flesch_score: float
    tier_distribution: Dict[str, TierPayload]
    longest_reading_times: List[RankedPayload]
    most_complex: List[RankedPayload]


class GateResultPayload(TypedDict):
    name: str
    passed: bool
    actual: float
    expected: float
    detail: str


class GatesPayload(TypedDict):
    passed: bool
    results: List[GateResultPayload]


class ReportPayload(TypedDict):
    documents: List[DocumentPayload]
    summary: SummaryPayload
    scopes: Dict[str, SummaryPayload]
    gates: GatesPayload


def document_payload(result: DocumentResult) -> DocumentPayload:
    """Serialize a DocumentResult so it can be emitted in JSON."""
    metrics = result.metrics
    classification = result.classification
    return {
        "path": result.path,
        "doc_type": result.doc_type.value,
        "error": result.error,
        "tier": classification.tier.value if classification else None,
        "metrics": (
            {
                "grade_level": metrics.grade_level,
                "flesch_score": metrics.flesch_score,
                "flesch_interpretation": interpret_flesch(metrics.flesch_score),
                "technical_density": metrics.technical_density,
                "reading_time_minutes": metrics.reading_time_minutes,
                "word_count": metrics.word_count,
                "sentence_count": metrics.sentence_count,
                "syllable_count": metrics.syllable_count,
            }
            if metrics is not None
            else None
        ),
        "violations": [
            {
                "metric": violation.metric,
                "actual": violation.actual,
                "threshold": violation.threshold,
                "label": violation.severity,
            }
            for violation in (classification.violations if classification else ())
        ],
        "accepted": [
            {
                "metric": acceptance.metric,
                "actual": acceptance.actual,
                "threshold": acceptance.threshold,
                "label": acceptance.reason,
            }
            for acceptance in (classification.acceptances if classification else ())
        ],
        "warnings": list(result.warnings),
        "suggestions": (
            suggest_improvements(metrics, classification.tier, result.code_block_count)
            if metrics is not None and classification is not None
            else []
        ),
        "code_blocks": result.code_block_count,
        "infobox": (
            render_infobox(result)
            if metrics is not None and classification is not None
            else None
        ),
    }


def _ranked(entries: Sequence[RankedDocument]) -> List[RankedPayload]:
    return [
        {"path": entry.path, "value": entry.value, "tier": entry.tier.value}
        for entry in entries
    ]


def summary_payload(summary: DirectorySummary) -> SummaryPayload:
    return {
        "total_documents": summary.doc_count,
        "scored_documents": summary.scored_count,
        "failed_documents": summary.failed_count,
        "violation_count": summary.violation_count,
        "accepted_count": summary.accepted_count,
        "avg_reading_time": summary.avg_reading_time,
        "avg_grade_level": summary.avg_grade_level,
        "avg_technical_density": summary.avg_technical_density,
        "avg_flesch_score": summary.avg_flesch_score,
        "tier_distribution": {
            tier.value: {"count": share.count, "percent": share.percent}
            for tier, share in summary.tier_distribution().items()
        },
        "longest_reading_times": _ranked(summary.top_longest),
        "most_complex": _ranked(summary.top_most_complex),
    }


def gates_payload(report: GateReport | None) -> GatesPayload:
    if report is None:
        return {"passed": True, "results": []}
    return {
        "passed": report.passed,
        "results": [
            {
                "name": result.name,
                "passed": result.passed,
                "actual": result.actual,
                "expected": result.expected,
                "detail": result.detail,
            }
            for result in report.results
        ],
    }


def build_report(
    results: Sequence[DocumentResult],
    summary: DirectorySummary,
    scopes: Mapping[str, DirectorySummary] | None = None,
    gate_report: GateReport | None = None,
) -> ReportPayload:
    """Assemble the full, deterministic report payload (no timestamps)."""
    return {
        "documents": [
            document_payload(result)
            for result in sorted(results, key=lambda item: item.path)
        ],
        "summary": summary_payload(summary),
        "scopes": {
            scope: summary_payload(scope_summary)
            for scope, scope_summary in sorted((scopes or {}).items())
        },
        "gates": gates_payload(gate_report),
    }


def dumps_report(payload: ReportPayload) -> str:
    return json.dumps(payload, indent=2, sort_keys=True)


def render_document(doc: DocumentPayload) -> List[str]:
    """Text lines for one document."""
    metrics = doc["metrics"]
    if doc["error"] is not None or metrics is None:
        return [f"{doc['path']}: ERROR {doc['error']}"]
    lines = [f"=== Reading Level Analysis: {doc['path']} ==="]
    if doc["infobox"]:
        lines += [doc["infobox"], ""]
    lines += [
        f"Document Type: {doc['doc_type']}",
        f"Level: {doc['tier']}",
        f"Grade Level: {metrics['grade_level']:.1f}",
        f"Flesch Score: {metrics['flesch_score']:.1f} ({metrics['flesch_interpretation']})",
        f"Technical Density: {metrics['technical_density']:.1f}%",
        f"Reading Time: {_minutes(metrics['reading_time_minutes'])}",
        f"Total Words: {metrics['word_count']}",
        f"Sentences: {metrics['sentence_count']}",
        f"Code Blocks: {doc['code_blocks']}",
    ]
    for violation in doc["violations"]:
        lines.append(
            f"VIOLATION {violation['metric']}: {violation['actual']:.1f} "
            f"(limit {violation['threshold']:.1f})"
        )
    for accepted in doc["accepted"]:
        lines.append(
            f"{accepted['label']} {accepted['metric']}: {accepted['actual']:.1f} "
            f"(limit {accepted['threshold']:.1f})"
        )
    for warning in doc["warnings"]:
        lines.append(f"WARNING {warning}")
    if doc["suggestions"]:
        lines += ["", "=== Improvement Suggestions ==="]
        lines.extend(f"- {suggestion}" for suggestion in doc["suggestions"])
    return lines


def render_summary(
    summary: SummaryPayload, title: str = "Directory Reading Level Summary"
) -> List[str]:
    """Text lines for a DirectorySummary payload."""
    lines = [
        f"=== {title} ===",
        "",
        f"Total Documents: {summary['total_documents']}",
        f"Average Reading Time: {summary['avg_reading_time']:.1f} minutes",
        f"Average Grade Level: {summary['avg_grade_level']:.1f}",
        f"Average Technical Density: {summary['avg_technical_density']:.1f}%",
        f"Violations: {summary['violation_count']} (accepted: {summary['accepted_count']})",
    ]
    if summary["failed_documents"]:
        lines.append(f"Failed Documents: {summary['failed_documents']}")

    lines += ["", "=== Distribution by Level ==="]
    for tier, share in summary["tier_distribution"].items():
        lines.append(f"{tier}: {share['count']} documents ({share['percent']:.1f}%)")

    lines += ["", "=== Longest Reading Times ==="]
    for rank, entry in enumerate(summary["longest_reading_times"], start=1):
        minutes = _minutes(int(entry["value"]))
        lines.append(f"{rank}. {entry['path']} - {minutes} ({entry['tier']})")

    lines += ["", "=== Most Complex Documents ==="]
    for rank, entry in enumerate(summary["most_complex"], start=1):
        lines.append(
            f"{rank}. {entry['path']} - Grade {entry['value']:.1f} ({entry['tier']})"
        )
    return lines


def render_gates(gates: GatesPayload) -> List[str]:
    if not gates["results"]:
        return []
    lines = ["", "=== Quality Gates ==="]
    for result in gates["results"]:
        status = "PASS" if result["passed"] else "FAIL"
        line = (
            f"[{status}] {result['name']}: actual {_number(result['actual'])}, "
            f"expected {_number(result['expected'])}"
        )
        if result["detail"]:
            line += f" ({result['detail']})"
        lines.append(line)
    lines.append(f"Overall: {'PASS' if gates['passed'] else 'FAIL'}")
    return lines


def render_report(payload: ReportPayload, single_file: bool = False) -> str:
    """Render the human-readable report from a payload."""
    lines: List[str] = []
    if single_file:
        for doc in payload["documents"]:
            lines.extend(render_document(doc))
    else:
        lines.extend(render_summary(payload["summary"]))
        nested = {
            scope: item for scope, item in payload["scopes"].items() if scope != "."
        }
        if nested:
            lines += ["", "=== By Directory ==="]
            for scope, item in nested.items():
                lines.append(
                    f"{scope}: {item['total_documents']} documents, "
                    f"avg grade {item['avg_grade_level']:.1f}, "
                    f"avg reading time {item['avg_reading_time']:.1f} minutes"
                )
    lines.extend(render_gates(payload["gates"]))
    return "\n".join(lines)


def _minutes(value: int) -> str:
    return "1 minute" if value == 1 else f"{value} minutes"


def _number(value: float) -> str:
    if isinstance(value, int):
        return str(value)
    return f"{value:.2f}"
