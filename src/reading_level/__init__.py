"""
reading_level package exports convenience helpers for library consumers.
"""

from __future__ import annotations

from .aggregation import DirectorySummary, merge_summaries, summarize, summarize_tree
from .classification import classify, infer_doc_type, is_structurally_exempt
from .config import ReadingLevelConfig, config_from_dict, config_from_yaml, load_config
from .errors import ConfigError, ParseError
from .extraction import extract_markdown
from .gates import GateRule, evaluate_gates, parse_gate_spec
from .pipeline import analyze_corpus, analyze_document
from .scoring import compute_metrics
from .tokenization import count_text

__all__ = [
    "ConfigError",
    "DirectorySummary",
    "GateRule",
    "ParseError",
    "ReadingLevelConfig",
    "analyze_corpus",
    "analyze_document",
    "classify",
    "compute_metrics",
    "config_from_dict",
    "config_from_yaml",
    "count_text",
    "evaluate_gates",
    "extract_markdown",
    "infer_doc_type",
    "is_structurally_exempt",
    "load_config",
    "merge_summaries",
    "parse_gate_spec",
    "summarize",
    "summarize_tree",
]

__version__ = "0.1.0"
