from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Tuple


class DocType(str, Enum):
    """Document category that selects the readability thresholds."""

    MAIN = "main"
    README = "readme"
    GETTING_STARTED = "getting_started"
    REFERENCE = "reference"


class ComplexityTier(str, Enum):
    """Reading-level bucket derived from the grade level."""

    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"


@dataclass(slots=True)
class Document:
    """Represents an input markdown document."""

    path: str
    text: str
    doc_type: DocType | None = None


@dataclass(slots=True)
class Token:
    """Represents a word token and its inclusive-exclusive character offsets."""

    text: str
    start_char: int
    end_char: int


@dataclass(slots=True)
class ExtractionResult:
    """Prose left after stripping markdown, plus the structural character counts."""

    cleaned_prose: str
    code_block_chars: int
    table_chars: int
    total_chars: int
    code_block_count: int = 0
    front_matter: Dict[str, Any] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class Counts:
    word_count: int
    sentence_count: int
    syllable_count: int


@dataclass(frozen=True, slots=True)
class Metrics:
    """Readability metrics for a single document."""

    grade_level: float
    flesch_score: float
    technical_density: float
    reading_time_minutes: int
    word_count: int = 0
    sentence_count: int = 0
    syllable_count: int = 0
    technical_token_chars: int = 0

    @property
    def avg_words_per_sentence(self) -> float:
        if self.sentence_count == 0:
            return 0.0
        return self.word_count / self.sentence_count


@dataclass(frozen=True, slots=True)
class Violation:
    """A threshold breach that is not covered by the structural exemption."""

    path: str
    metric: str
    actual: float
    threshold: float
    severity: str = "error"


@dataclass(frozen=True, slots=True)
class Acceptance:
    """A threshold breach accepted because the document is mostly code or tables."""

    path: str
    metric: str
    actual: float
    threshold: float
    reason: str = "Accepted (structural)"


@dataclass(frozen=True, slots=True)
class Classification:
    tier: ComplexityTier
    violations: Tuple[Violation, ...] = ()
    acceptances: Tuple[Acceptance, ...] = ()


@dataclass(frozen=True, slots=True)
class DocumentResult:
    """Everything computed for one document; `error` is set when it failed to load."""

    path: str
    doc_type: DocType
    metrics: Metrics | None = None
    classification: Classification | None = None
    code_block_count: int = 0
    technical_terms: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()
    error: str | None = None

    @property
    def scored(self) -> bool:
        """True when the document has prose and takes part in averages."""
        return self.metrics is not None and self.metrics.word_count > 0

    @property
    def tier(self) -> ComplexityTier | None:
        if self.classification is None:
            return None
        return self.classification.tier
