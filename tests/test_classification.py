import pytest

from reading_level.classification import (
    classify,
    infer_doc_type,
    is_structurally_exempt,
    tier_for_grade,
)
from reading_level.config import ReadingLevelConfig, TierCutoffs
from reading_level.models import ComplexityTier, DocType, Document, Metrics


def _metrics(grade: float, flesch: float, density: float = 5.0, words: int = 120) -> Metrics:
    return Metrics(
        grade_level=grade,
        flesch_score=flesch,
        technical_density=density,
        reading_time_minutes=1,
        word_count=words,
        sentence_count=6,
        syllable_count=200,
    )


@pytest.mark.parametrize(
    "path, expected",
    [
        ("README.md", DocType.README),
        ("docs/readme.markdown", DocType.README),
        ("docs/getting-started.md", DocType.GETTING_STARTED),
        ("guides/quickstart.md", DocType.GETTING_STARTED),
        ("docs/api-reference.md", DocType.REFERENCE),
        ("docs/reference/errors.md", DocType.REFERENCE),
        ("docs\\api\\users.md", DocType.REFERENCE),
        ("docs/overview.md", DocType.MAIN),
    ],
)
def test_infer_doc_type_from_path(path, expected):
    assert infer_doc_type(path) == expected


def test_infer_doc_type_prefers_a_valid_hint():
    assert infer_doc_type("docs/overview.md", "getting-started") == DocType.GETTING_STARTED
    assert infer_doc_type("README.md", "not-a-type") == DocType.README
    assert infer_doc_type("README.md", 42) == DocType.README


@pytest.mark.parametrize(
    "grade, tier",
    [
        (-3.0, ComplexityTier.BEGINNER),
        (11.0, ComplexityTier.BEGINNER),
        (11.01, ComplexityTier.INTERMEDIATE),
        (17.0, ComplexityTier.INTERMEDIATE),
        (17.5, ComplexityTier.ADVANCED),
    ],
)
def test_tier_boundaries_are_inclusive(grade, tier):
    assert tier_for_grade(grade, TierCutoffs()) == tier


def test_exemption_requires_density_strictly_above_cutoff():
    config = ReadingLevelConfig()

    assert not is_structurally_exempt(80.0, 30.0, -10.0, config)
    assert is_structurally_exempt(80.1, 30.0, -10.0, config)


def test_readme_breaches_are_violations():
    document = Document(path="README.md", text="", doc_type=DocType.README)
    classification = classify(document, _metrics(grade=13.2, flesch=34.9), ReadingLevelConfig())

    assert classification.tier == ComplexityTier.INTERMEDIATE
    assert [v.metric for v in classification.violations] == ["grade_level", "flesch_score"]
    assert classification.violations[1].threshold == 40.0
    assert classification.acceptances == ()


def test_flesch_at_threshold_passes():
    document = Document(path="README.md", text="", doc_type=DocType.README)
    classification = classify(document, _metrics(grade=9.0, flesch=40.0), ReadingLevelConfig())

    assert classification.violations == ()


def test_structural_exemption_turns_breaches_into_acceptances():
    document = Document(path="README.md", text="", doc_type=DocType.README)
    metrics = _metrics(grade=50.0, flesch=-80.0, density=90.0)

    classification = classify(document, metrics, ReadingLevelConfig())

    assert classification.violations == ()
    assert {a.metric for a in classification.acceptances} == {"grade_level", "flesch_score"}
    assert classification.acceptances[0].reason == "Accepted (structural)"
    assert classification.tier == ComplexityTier.ADVANCED


def test_doc_type_comes_from_path_when_unset():
    document = Document(path="docs/getting-started.md", text="")
    classification = classify(document, _metrics(grade=10.5, flesch=60.0), ReadingLevelConfig())

    assert [v.metric for v in classification.violations] == ["grade_level"]
    assert classification.violations[0].threshold == 10.0


def test_zero_word_document_has_no_violations():
    document = Document(path="README.md", text="", doc_type=DocType.README)
    metrics = Metrics(
        grade_level=0.0, flesch_score=0.0, technical_density=0.0, reading_time_minutes=0
    )

    classification = classify(document, metrics, ReadingLevelConfig())

    assert classification.violations == ()
    assert classification.acceptances == ()
