from __future__ import annotations

from pathlib import Path
from typing import Mapping

from reading_level.config import ReadingLevelConfig
from reading_level.classification import classify
from reading_level.models import DocType, Document, DocumentResult, Metrics

# One short sentence of very long words: grade far above every ceiling.
DENSE_SENTENCE = (
    "Comprehensive internationalization considerations necessitate "
    "extraordinarily sophisticated organizational methodologies."
)


def write_markdown_tree(root: Path, files: Mapping[str, str | bytes]) -> Path:
    """Create markdown files under root from a {relative path: content} mapping."""
    for relative, content in files.items():
        target = root / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            target.write_bytes(content)
        else:
            target.write_text(content, encoding="utf-8")
    return root


def code_heavy_markdown(prose: str, code_lines: int = 200) -> str:
    """Markdown with a little prose followed by a large fenced code block."""
    return prose + "\n\n```python\n" + "x = 1\n" * code_lines + "```\n"


def make_result(
    path: str,
    grade_level: float,
    reading_time: int = 1,
    flesch_score: float = 60.0,
    technical_density: float = 5.0,
    word_count: int = 100,
    doc_type: DocType = DocType.MAIN,
    config: ReadingLevelConfig | None = None,
) -> DocumentResult:
    """Build a classified DocumentResult without going through extraction."""
    config = config or ReadingLevelConfig()
    metrics = Metrics(
        grade_level=grade_level,
        flesch_score=flesch_score,
        technical_density=technical_density,
        reading_time_minutes=reading_time if word_count else 0,
        word_count=word_count,
        sentence_count=max(1, word_count // 10) if word_count else 0,
        syllable_count=word_count * 2,
    )
    document = Document(path=path, text="", doc_type=doc_type)
    return DocumentResult(
        path=path,
        doc_type=doc_type,
        metrics=metrics,
        classification=classify(document, metrics, config),
    )
