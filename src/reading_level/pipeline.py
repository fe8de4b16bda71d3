from __future__ import annotations

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, List, Mapping, Sequence

from .classification import classify, infer_doc_type
from .config import ReadingLevelConfig
from .errors import ParseError
from .extraction import extract_markdown
from .models import ComplexityTier, DocType, Document, DocumentResult, Metrics
from .scoring import compute_metrics, find_technical_terms
from .tokenization import count_text

logger = logging.getLogger(__name__)

# Claimed grade levels within this distance of the computed value are not reported.
GRADE_CLAIM_TOLERANCE = 1.0
CLAIM_NUMBER_RE = re.compile(r"-?\d+(?:\.\d+)?")


def analyze_document(
    document: Document, config: ReadingLevelConfig, type_path: str | None = None
) -> DocumentResult:
    """
    Run extraction, counting, scoring and classification for one document.

    `type_path` is the path used for doc type inference when it differs from
    the reported `document.path`, e.g. the full path given on the command line.
    """
    extraction = extract_markdown(document.text)
    doc_type = document.doc_type or infer_doc_type(
        type_path or document.path, extraction.front_matter.get("doc_type")
    )
    typed = Document(path=document.path, text=document.text, doc_type=doc_type)

    counts = count_text(extraction.cleaned_prose)
    metrics = compute_metrics(counts, extraction, config)
    classification = classify(typed, metrics, config)

    warnings = list(extraction.warnings)
    warnings.extend(check_claims(extraction.front_matter, metrics, classification.tier))
    for warning in warnings:
        logger.debug("%s: %s", document.path, warning)
    return DocumentResult(
        path=document.path,
        doc_type=doc_type,
        metrics=metrics,
        classification=classification,
        code_block_count=extraction.code_block_count,
        technical_terms=find_technical_terms(
            extraction.cleaned_prose, config.technical_terms
        ),
        warnings=tuple(warnings),
    )


def check_claims(
    front_matter: Mapping[str, Any], metrics: Metrics, tier: ComplexityTier
) -> List[str]:
    """Compare values claimed in front matter with the computed ones."""
    warnings: List[str] = []
    claimed_time = _claimed_number(front_matter.get("reading_time"))
    if claimed_time is not None and round(claimed_time) != metrics.reading_time_minutes:
        warnings.append(
            f"Front matter claims reading_time {claimed_time:g} but computed "
            f"{metrics.reading_time_minutes} minutes."
        )
    claimed_grade = _claimed_number(front_matter.get("grade_level"))
    if (
        claimed_grade is not None
        and abs(claimed_grade - metrics.grade_level) > GRADE_CLAIM_TOLERANCE
    ):
        warnings.append(
            f"Front matter claims grade_level {claimed_grade:g} but computed "
            f"{metrics.grade_level:.1f}."
        )
    claimed_tier = front_matter.get("tier", front_matter.get("level"))
    if isinstance(claimed_tier, str) and claimed_tier.strip().lower() != tier.value.lower():
        warnings.append(
            f"Front matter claims tier {claimed_tier.strip()} but computed {tier.value}."
        )
    return warnings


def _claimed_number(value: Any) -> float | None:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)
    # Accept strings such as "5 minutes" or "grade 9.5".
    match = CLAIM_NUMBER_RE.search(str(value))
    return float(match.group()) if match else None


def read_document(path: Path, root: Path | None = None) -> Document:
    """Read a markdown file as UTF-8; the document path is relative to `root`."""
    doc_path = path.relative_to(root).as_posix() if root is not None else path.name
    try:
        text = path.read_bytes().decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise ParseError(doc_path, f"not valid UTF-8 ({exc.reason} at byte {exc.start})") from exc
    except OSError as exc:
        raise ParseError(doc_path, exc.strerror or str(exc)) from exc
    return Document(path=doc_path, text=text)


def analyze_path(
    path: Path,
    config: ReadingLevelConfig,
    root: Path | None = None,
    doc_type: DocType | None = None,
) -> DocumentResult:
    """Read and analyze one file, turning a read failure into an error result."""
    try:
        document = read_document(path, root)
    except ParseError as exc:
        logger.warning("Skipping %s: %s", exc.path, exc.reason)
        return DocumentResult(
            path=exc.path,
            doc_type=doc_type or infer_doc_type(exc.path),
            error=exc.reason,
        )
    if doc_type is not None:
        document.doc_type = doc_type
    return analyze_document(document, config)


def discover_documents(root: Path, extensions: Sequence[str]) -> List[Path]:
    """List markdown files under `root`, skipping hidden files and directories."""
    wanted = {extension.lower() for extension in extensions}
    return sorted(
        path
        for path in root.rglob("*")
        if path.is_file()
        and path.suffix.lower() in wanted
        and not any(part.startswith(".") for part in path.relative_to(root).parts)
    )


def analyze_corpus(
    paths: Sequence[Path], config: ReadingLevelConfig, root: Path
) -> List[DocumentResult]:
    """Analyze many files, in parallel when `config.workers` > 1."""
    if config.workers <= 1 or len(paths) <= 1:
        results = [analyze_path(path, config, root) for path in paths]
    else:
        with ThreadPoolExecutor(max_workers=config.workers) as executor:
            results = list(
                executor.map(lambda path: analyze_path(path, config, root), paths)
            )
    # Completion order never leaks into reports.
    return sorted(results, key=lambda result: result.path)
