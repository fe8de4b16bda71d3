from __future__ import annotations

from pathlib import PurePosixPath
from typing import List

from .config import ReadingLevelConfig, TierCutoffs, parse_doc_type
from .errors import ConfigError
from .models import (
    Acceptance,
    Classification,
    ComplexityTier,
    DocType,
    Document,
    Metrics,
    Violation,
)

GETTING_STARTED_MARKERS = (
    "getting-started",
    "getting_started",
    "gettingstarted",
    "quickstart",
    "quick-start",
    "tutorial",
)
REFERENCE_DIRECTORIES = {"reference", "references", "api", "api-reference"}


def infer_doc_type(path: str, hint: object = None) -> DocType:
    """
    Map a document path (and an optional front-matter hint) to its DocType.

    Only the path string is inspected, never the filesystem.
    """
    if isinstance(hint, str) and hint.strip():
        try:
            return parse_doc_type(hint)
        except ConfigError:
            # An unknown hint falls back to path-based inference.
            pass

    posix = PurePosixPath(path.replace("\\", "/"))
    name = posix.name.lower()
    stem = posix.stem.lower()
    if stem == "readme":
        return DocType.README
    if any(marker in name for marker in GETTING_STARTED_MARKERS):
        return DocType.GETTING_STARTED
    parents = {part.lower() for part in posix.parts[:-1]}
    if "reference" in stem or parents & REFERENCE_DIRECTORIES:
        return DocType.REFERENCE
    return DocType.MAIN


def tier_for_grade(grade_level: float, cutoffs: TierCutoffs) -> ComplexityTier:
    if grade_level <= cutoffs.beginner_max:
        return ComplexityTier.BEGINNER
    if grade_level <= cutoffs.intermediate_max:
        return ComplexityTier.INTERMEDIATE
    return ComplexityTier.ADVANCED


def is_structurally_exempt(
    technical_density: float,
    grade_level: float,
    flesch_score: float,
    config: ReadingLevelConfig,
) -> bool:
    """
    Decide whether readability breaches are artifacts of code/table density.

    True when technical density exceeds ``config.exemption_density``. The
    grade and Flesch values are passed along with the density; the current
    rule only looks at density.
    """
    return technical_density > config.exemption_density


def classify(
    document: Document, metrics: Metrics, config: ReadingLevelConfig
) -> Classification:
    """Assign a complexity tier and check the doc type thresholds."""
    tier = tier_for_grade(metrics.grade_level, config.tier_cutoffs)
    if metrics.word_count == 0:
        return Classification(tier=tier)

    doc_type = document.doc_type or infer_doc_type(document.path)
    threshold = config.threshold_for(doc_type)
    breaches = []
    if metrics.grade_level > threshold.grade_ceiling:
        breaches.append(("grade_level", metrics.grade_level, threshold.grade_ceiling))
    if metrics.flesch_score < threshold.flesch_minimum:
        breaches.append(("flesch_score", metrics.flesch_score, threshold.flesch_minimum))

    violations: List[Violation] = []
    acceptances: List[Acceptance] = []
    for metric, actual, limit in breaches:
        exempt = is_structurally_exempt(
            metrics.technical_density, metrics.grade_level, metrics.flesch_score, config
        )
        if exempt:
            acceptances.append(
                Acceptance(path=document.path, metric=metric, actual=actual, threshold=limit)
            )
        else:
            violations.append(
                Violation(path=document.path, metric=metric, actual=actual, threshold=limit)
            )
    return Classification(
        tier=tier, violations=tuple(violations), acceptances=tuple(acceptances)
    )
