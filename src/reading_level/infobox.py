from __future__ import annotations

from typing import Dict, List, Sequence

from .models import ComplexityTier, DocumentResult, Metrics
from .scoring import interpret_flesch

ADVANCED_CONCEPTS = {"hateoas", "oauth", "jwt", "circuit breaker", "reactive"}

TOPIC_BY_TERM: Dict[str, str] = {
    "oauth": "Authentication",
    "jwt": "Authentication",
    "cors": "Security",
    "hateoas": "REST",
    "pagination": "Data",
    "reactive": "Architecture",
    "streaming": "Architecture",
    "microservice": "Architecture",
    "openapi": "Documentation",
    "testing": "Quality",
    "monitoring": "Observability",
}

TIER_MARKERS: Dict[ComplexityTier, str] = {
    ComplexityTier.BEGINNER: "🟢",
    ComplexityTier.INTERMEDIATE: "🟡",
    ComplexityTier.ADVANCED: "🔴",
}


def suggest_prerequisites(tier: ComplexityTier, technical_terms: Sequence[str]) -> str:
    if tier is ComplexityTier.BEGINNER:
        return "Basic HTTP knowledge"
    if tier is ComplexityTier.INTERMEDIATE:
        if ADVANCED_CONCEPTS.intersection(technical_terms):
            return "HTTP fundamentals, basic API experience"
        return "Basic REST API knowledge"
    return "Strong API background, experience with complex systems"


def extract_key_topics(technical_terms: Sequence[str], limit: int = 3) -> str:
    topics: List[str] = []
    for term in technical_terms:
        topic = TOPIC_BY_TERM.get(term)
        if topic and topic not in topics:
            topics.append(topic)
    return ", ".join(topics[:limit]) if topics else "API Design"


def suggest_improvements(
    metrics: Metrics, tier: ComplexityTier, code_block_count: int
) -> List[str]:
    """Plain-language hints for making a document easier to read."""
    suggestions: List[str] = []
    if metrics.word_count == 0:
        return suggestions
    if metrics.grade_level > 16:
        suggestions.append("Consider breaking long sentences into shorter ones")
    if metrics.avg_words_per_sentence > 20:
        suggestions.append(
            "Average sentence length is high - consider shorter sentences"
        )
    if metrics.technical_density > 25:
        suggestions.append(
            "High technical density - consider adding explanations for technical terms"
        )
    if metrics.flesch_score < 30:
        suggestions.append("Text is difficult to read - consider simplifying language")
    if tier is ComplexityTier.ADVANCED and code_block_count > 10:
        suggestions.append(
            "Many code examples - consider consolidating or moving to appendix"
        )
    return suggestions


def render_infobox(result: DocumentResult) -> str:
    """Render the markdown 'Reading Guide' blockquote for a document."""
    if result.metrics is None or result.classification is None:
        raise ValueError(f"No metrics available for {result.path}.")
    metrics = result.metrics
    tier = result.classification.tier
    minutes = metrics.reading_time_minutes
    time_text = "1 minute" if minutes == 1 else f"{minutes} minutes"
    prerequisites = suggest_prerequisites(tier, result.technical_terms)
    topics = extract_key_topics(result.technical_terms)
    interpretation = interpret_flesch(metrics.flesch_score).lower()
    return "\n".join(
        [
            "> **📖 Reading Guide**",
            "> ",
            f"> **⏱️ Reading Time:** {time_text} | **{TIER_MARKERS[tier]} Level:** {tier.value}",
            "> ",
            f"> **📋 Prerequisites:** {prerequisites}  ",
            f"> **🎯 Key Topics:** {topics}",
            "> ",
            f"> **📊 Complexity:** {metrics.grade_level:.1f} grade level • "
            f"{metrics.technical_density:.1f}% technical density • {interpretation}",
        ]
    )
