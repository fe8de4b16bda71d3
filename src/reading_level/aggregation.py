"""
Directory and corpus summaries.

A DirectorySummary is a pure reduction over document results. Metric totals
are kept as exact fractions and Top-N lists are re-ranked with a path
tie-break, so merging partial summaries gives the same result in any order or
grouping.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from fractions import Fraction
from functools import reduce
from pathlib import PurePosixPath
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Tuple

from .models import ComplexityTier, DocumentResult

DEFAULT_TOP_N = 5


@dataclass(frozen=True, slots=True)
class RankedDocument:
    path: str
    value: float
    tier: ComplexityTier


@dataclass(frozen=True, slots=True)
class TierShare:
    count: int
    percent: float


@dataclass(frozen=True, slots=True)
class DirectorySummary:
    """Mergeable summary of every document in a scope."""

    doc_count: int = 0
    scored_count: int = 0
    failed_count: int = 0
    violation_count: int = 0
    accepted_count: int = 0
    reading_time_total: int = 0
    grade_level_total: Fraction = Fraction(0)
    technical_density_total: Fraction = Fraction(0)
    flesch_score_total: Fraction = Fraction(0)
    tier_counts: Mapping[ComplexityTier, int] = field(default_factory=dict)
    top_longest: Tuple[RankedDocument, ...] = ()
    top_most_complex: Tuple[RankedDocument, ...] = ()
    top_n: int = DEFAULT_TOP_N

    def __post_init__(self) -> None:
        object.__setattr__(self, "tier_counts", MappingProxyType(dict(self.tier_counts)))

    @property
    def avg_reading_time(self) -> float:
        return self._mean(Fraction(self.reading_time_total))

    @property
    def avg_grade_level(self) -> float:
        return self._mean(self.grade_level_total)

    @property
    def avg_technical_density(self) -> float:
        return self._mean(self.technical_density_total)

    @property
    def avg_flesch_score(self) -> float:
        return self._mean(self.flesch_score_total)

    def _mean(self, total: Fraction) -> float:
        if self.scored_count == 0:
            return 0.0
        return float(total / self.scored_count)

    def tier_distribution(self) -> Dict[ComplexityTier, TierShare]:
        """Counts and percentages per tier, over documents that have prose."""
        distribution: Dict[ComplexityTier, TierShare] = {}
        for tier in ComplexityTier:
            count = self.tier_counts.get(tier, 0)
            percent = 100.0 * count / self.scored_count if self.scored_count else 0.0
            distribution[tier] = TierShare(count=count, percent=percent)
        return distribution

    def merge(self, other: DirectorySummary) -> DirectorySummary:
        """Combine two summaries of disjoint document sets."""
        if self.top_n != other.top_n:
            raise ValueError(
                f"Cannot merge summaries with different top_n ({self.top_n} vs {other.top_n})."
            )
        tier_counts = {
            tier: self.tier_counts.get(tier, 0) + other.tier_counts.get(tier, 0)
            for tier in ComplexityTier
            if self.tier_counts.get(tier, 0) + other.tier_counts.get(tier, 0)
        }
        return DirectorySummary(
            doc_count=self.doc_count + other.doc_count,
            scored_count=self.scored_count + other.scored_count,
            failed_count=self.failed_count + other.failed_count,
            violation_count=self.violation_count + other.violation_count,
            accepted_count=self.accepted_count + other.accepted_count,
            reading_time_total=self.reading_time_total + other.reading_time_total,
            grade_level_total=self.grade_level_total + other.grade_level_total,
            technical_density_total=self.technical_density_total
            + other.technical_density_total,
            flesch_score_total=self.flesch_score_total + other.flesch_score_total,
            tier_counts=tier_counts,
            top_longest=_rank(self.top_longest + other.top_longest, self.top_n),
            top_most_complex=_rank(
                self.top_most_complex + other.top_most_complex, self.top_n
            ),
            top_n=self.top_n,
        )


def _rank(entries: Iterable[RankedDocument], top_n: int) -> Tuple[RankedDocument, ...]:
    """Highest value first; equal values ordered by path."""
    ordered = sorted(entries, key=lambda entry: (-entry.value, entry.path))
    return tuple(ordered[:top_n])


def summary_for_result(
    result: DocumentResult, top_n: int = DEFAULT_TOP_N
) -> DirectorySummary:
    """Summary of a single document, the leaf of every reduction."""
    if result.error is not None or result.metrics is None:
        return DirectorySummary(failed_count=1, top_n=top_n)

    classification = result.classification
    violations = len(classification.violations) if classification else 0
    accepted = len(classification.acceptances) if classification else 0
    if not result.scored or classification is None:
        # Documents without prose are counted but never averaged or ranked.
        return DirectorySummary(
            doc_count=1,
            violation_count=violations,
            accepted_count=accepted,
            top_n=top_n,
        )

    metrics = result.metrics
    tier = classification.tier
    return DirectorySummary(
        doc_count=1,
        scored_count=1,
        violation_count=violations,
        accepted_count=accepted,
        reading_time_total=metrics.reading_time_minutes,
        grade_level_total=Fraction(metrics.grade_level),
        technical_density_total=Fraction(metrics.technical_density),
        flesch_score_total=Fraction(metrics.flesch_score),
        tier_counts={tier: 1},
        top_longest=(
            RankedDocument(result.path, float(metrics.reading_time_minutes), tier),
        ),
        top_most_complex=(RankedDocument(result.path, metrics.grade_level, tier),),
        top_n=top_n,
    )


def merge_summaries(
    *summaries: DirectorySummary, top_n: int = DEFAULT_TOP_N
) -> DirectorySummary:
    """Merge any number of summaries; with no input, return an empty summary."""
    if not summaries:
        return DirectorySummary(top_n=top_n)
    return reduce(DirectorySummary.merge, summaries)


def summarize(
    results: Iterable[DocumentResult], top_n: int = DEFAULT_TOP_N
) -> DirectorySummary:
    """Reduce document results into one summary."""
    return merge_summaries(
        *(summary_for_result(result, top_n) for result in results), top_n=top_n
    )


def summarize_tree(
    results: Iterable[DocumentResult], top_n: int = DEFAULT_TOP_N
) -> Dict[str, DirectorySummary]:
    """
    Build one summary per directory, each covering its whole subtree.

    Keys are POSIX directory paths relative to the analysis root; "." is the
    corpus summary. Directories are folded into their parents deepest-first.
    """
    direct: Dict[str, List[DirectorySummary]] = {".": []}
    for result in results:
        parent = PurePosixPath(result.path).parent
        direct.setdefault(str(parent), []).append(summary_for_result(result, top_n))
        for ancestor in parent.parents:
            direct.setdefault(str(ancestor), [])

    tree: Dict[str, DirectorySummary] = {
        scope: merge_summaries(*leaves, top_n=top_n) for scope, leaves in direct.items()
    }
    for scope in sorted(tree, key=lambda key: (-_depth(key), key)):
        if scope == ".":
            continue
        parent_scope = str(PurePosixPath(scope).parent)
        tree[parent_scope] = tree[parent_scope].merge(tree[scope])
    return dict(sorted(tree.items()))


def _depth(scope: str) -> int:
    return 0 if scope == "." else len(PurePosixPath(scope).parts)
