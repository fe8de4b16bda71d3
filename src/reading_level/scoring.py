from __future__ import annotations

import math
import re
from typing import List, Sequence, Tuple

from .config import ReadingLevelConfig, compile_patterns
from .models import Counts, ExtractionResult, Metrics

FLESCH_BANDS: Tuple[Tuple[float, str], ...] = (
    (70.0, "Very Easy"),
    (60.0, "Easy"),
    (50.0, "Fairly Easy"),
    (30.0, "Fairly Difficult"),
    (10.0, "Difficult"),
)


def flesch_kincaid_grade(counts: Counts) -> float:
    words_per_sentence = counts.word_count / counts.sentence_count
    syllables_per_word = counts.syllable_count / counts.word_count
    return 0.39 * words_per_sentence + 11.8 * syllables_per_word - 15.59


def flesch_reading_ease(counts: Counts) -> float:
    words_per_sentence = counts.word_count / counts.sentence_count
    syllables_per_word = counts.syllable_count / counts.word_count
    return 206.835 - 1.015 * words_per_sentence - 84.6 * syllables_per_word


def reading_time_minutes(word_count: int, words_per_minute: int) -> int:
    if word_count <= 0:
        return 0
    return max(1, math.ceil(word_count / words_per_minute))


def measure_technical_tokens(text: str, patterns: Sequence[re.Pattern[str]]) -> int:
    """Return the number of prose characters covered by any technical pattern."""
    spans: List[Tuple[int, int]] = []
    for pattern in patterns:
        spans.extend(
            match.span() for match in pattern.finditer(text) if match.end() > match.start()
        )
    if not spans:
        return 0

    # Overlapping matches (e.g. a camelCase header name) are counted once.
    spans.sort()
    covered = 0
    current_start, current_end = spans[0]
    for start, end in spans[1:]:
        if start > current_end:
            covered += current_end - current_start
            current_start, current_end = start, end
        else:
            current_end = max(current_end, end)
    covered += current_end - current_start
    return covered


def technical_density(
    extraction: ExtractionResult, technical_token_chars: int
) -> float:
    if extraction.total_chars <= 0:
        return 0.0
    technical = (
        extraction.code_block_chars + extraction.table_chars + technical_token_chars
    )
    return min(100.0, 100.0 * technical / extraction.total_chars)


def compute_metrics(
    counts: Counts, extraction: ExtractionResult, config: ReadingLevelConfig
) -> Metrics:
    """Compute readability metrics from prose counts and structural statistics."""
    if counts.word_count == 0:
        return Metrics(
            grade_level=0.0,
            flesch_score=0.0,
            technical_density=0.0,
            reading_time_minutes=0,
        )

    technical_chars = measure_technical_tokens(
        extraction.cleaned_prose, compile_patterns(config.technical_patterns)
    )
    return Metrics(
        grade_level=flesch_kincaid_grade(counts),
        flesch_score=flesch_reading_ease(counts),
        technical_density=technical_density(extraction, technical_chars),
        reading_time_minutes=reading_time_minutes(
            counts.word_count, config.words_per_minute
        ),
        word_count=counts.word_count,
        sentence_count=counts.sentence_count,
        syllable_count=counts.syllable_count,
        technical_token_chars=technical_chars,
    )


def interpret_flesch(score: float) -> str:
    """Describe a Flesch reading ease score in words."""
    for minimum, label in FLESCH_BANDS:
        if score >= minimum:
            return label
    return "Very Difficult"


def find_technical_terms(text: str, vocabulary: Sequence[str]) -> Tuple[str, ...]:
    """Return the vocabulary terms that appear as whole words in `text`."""
    lowered = text.lower()
    found = []
    for term in vocabulary:
        if re.search(rf"\b{re.escape(term.lower())}\b", lowered):
            found.append(term)
    return tuple(found)
