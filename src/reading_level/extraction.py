"""
Markdown-to-prose extraction.

The extractor walks the document line by line, moving fenced code and table
rows into the structural character counts and stripping inline markup so only
readable prose reaches the tokenizer.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Tuple

import yaml

from .models import ExtractionResult

logger = logging.getLogger(__name__)

FENCE_RE = re.compile(r"^\s{0,3}(`{3,}|~{3,})")
FRONT_MATTER_DELIMITER_RE = re.compile(r"^---\s*$")
FRONT_MATTER_END_RE = re.compile(r"^(?:---|\.\.\.)\s*$")
TABLE_SEPARATOR_RE = re.compile(r"^\s*\|?\s*:?-{3,}:?\s*(?:\|\s*:?-{3,}:?\s*)*\|?\s*$")
HORIZONTAL_RULE_RE = re.compile(r"^\s{0,3}(?:[-*_]\s*){3,}$")
HEADING_RE = re.compile(r"^\s{0,3}#{1,6}(?:\s+|$)")
HEADING_CLOSE_RE = re.compile(r"\s+#+\s*$")
SETEXT_UNDERLINE_RE = re.compile(r"^\s{0,3}(?:=+|-+)\s*$")
BLOCKQUOTE_RE = re.compile(r"^\s*(?:>\s?)+")
LIST_ITEM_RE = re.compile(r"^\s*(?:[-*+]|\d+[.)])\s+")
LINK_DEFINITION_RE = re.compile(r"^\s{0,3}\[[^\]]+\]:\s*\S+")

INLINE_CODE_RE = re.compile(r"(`+)(?!`)(.+?)(?<!`)\1(?!`)")
IMAGE_RE = re.compile(r"!\[([^\]]*)\]\([^)]*\)")
LINK_RE = re.compile(r"\[([^\]]+)\]\([^)]*\)")
REFERENCE_LINK_RE = re.compile(r"\[([^\]]+)\]\[[^\]]*\]")
AUTOLINK_RE = re.compile(r"<(?:https?|ftp|mailto):[^>\s]+>")
HTML_TAG_RE = re.compile(r"</?[A-Za-z][^>]*>|<!--.*?-->")
EMPHASIS_RE = re.compile(r"\*{1,3}|(?<!\w)_{1,3}|_{1,3}(?!\w)|~~")
SENTENCE_END_RE = re.compile(r"[.!?][\"')\]]*$")


def extract_markdown(text: str) -> ExtractionResult:
    """Strip markdown syntax from `text` and measure its code and table content."""
    warnings: List[str] = []
    lines = text.splitlines(keepends=True)
    front_matter, start = _split_front_matter(lines, warnings)

    blocks: List[str] = []
    paragraph: List[str] = []
    code_chars = 0
    table_chars = 0
    code_blocks = 0
    idx = start

    def flush_paragraph() -> None:
        if paragraph:
            blocks.append(_terminate(" ".join(paragraph)))
            paragraph.clear()

    while idx < len(lines):
        line = lines[idx]
        stripped = line.strip()

        fence = FENCE_RE.match(line)
        if fence:
            flush_paragraph()
            end = _find_fence_end(lines, idx, fence.group(1))
            code_blocks += 1
            if end is None:
                # Fail open: everything after the opening fence counts as code.
                message = f"Unterminated code fence at line {idx + 1}; treating the rest as code."
                logger.warning(message)
                warnings.append(message)
                code_chars += sum(len(rest) for rest in lines[idx:])
                break
            code_chars += sum(len(block_line) for block_line in lines[idx : end + 1])
            idx = end + 1
            continue

        if _is_table_row(stripped):
            flush_paragraph()
            table_chars += len(line)
            idx += 1
            continue

        if not stripped:
            flush_paragraph()
            idx += 1
            continue

        if HORIZONTAL_RULE_RE.match(line) or LINK_DEFINITION_RE.match(line):
            flush_paragraph()
            idx += 1
            continue

        if paragraph and SETEXT_UNDERLINE_RE.match(line):
            # The buffered paragraph was a setext heading.
            flush_paragraph()
            idx += 1
            continue

        body = BLOCKQUOTE_RE.sub("", line.rstrip("\r\n"), count=1)
        standalone = bool(HEADING_RE.match(body) or LIST_ITEM_RE.match(body))
        if standalone:
            flush_paragraph()
            body = HEADING_RE.sub("", body, count=1)
            body = HEADING_CLOSE_RE.sub("", body)
            body = LIST_ITEM_RE.sub("", body, count=1)
        content, inline_code = _strip_inline(body)
        code_chars += inline_code
        content = _collapse(content)
        if content and standalone:
            blocks.append(_terminate(content))
        elif content:
            paragraph.append(content)
        idx += 1

    flush_paragraph()
    return ExtractionResult(
        cleaned_prose="\n".join(blocks),
        code_block_chars=code_chars,
        table_chars=table_chars,
        total_chars=len(text),
        code_block_count=code_blocks,
        front_matter=front_matter,
        warnings=warnings,
    )


def _split_front_matter(
    lines: List[str], warnings: List[str]
) -> Tuple[Dict[str, Any], int]:
    """Parse a leading YAML block; return its mapping and the first body line index."""
    if not lines or not FRONT_MATTER_DELIMITER_RE.match(lines[0].lstrip("\ufeff")):
        return {}, 0
    for idx in range(1, len(lines)):
        if FRONT_MATTER_END_RE.match(lines[idx]):
            raw = "".join(lines[1:idx])
            try:
                parsed = yaml.safe_load(raw) or {}
            except yaml.YAMLError as exc:
                message = f"Ignoring malformed front matter: {exc}"
                logger.warning(message)
                warnings.append(message)
                parsed = {}
            if not isinstance(parsed, dict):
                warnings.append("Ignoring front matter that is not a mapping.")
                parsed = {}
            return parsed, idx + 1
    # No closing delimiter: the leading '---' is an ordinary horizontal rule.
    return {}, 0


def _find_fence_end(lines: List[str], open_idx: int, marker: str) -> int | None:
    closing = re.compile(rf"^\s{{0,3}}{re.escape(marker[0])}{{{len(marker)},}}\s*$")
    for idx in range(open_idx + 1, len(lines)):
        if closing.match(lines[idx]):
            return idx
    return None


def _is_table_row(stripped: str) -> bool:
    if not stripped or "|" not in stripped:
        return False
    if TABLE_SEPARATOR_RE.match(stripped):
        return True
    return stripped.startswith("|") or stripped.count("|") >= 2


def _strip_inline(line: str) -> Tuple[str, int]:
    """Remove inline markup from one line; return the text and inline code length."""
    code_chars = 0

    def drop_code(match: re.Match[str]) -> str:
        nonlocal code_chars
        code_chars += len(match.group(0))
        return " "

    content = INLINE_CODE_RE.sub(drop_code, line)
    content = IMAGE_RE.sub(r"\1", content)
    content = LINK_RE.sub(r"\1", content)
    content = REFERENCE_LINK_RE.sub(r"\1", content)
    content = AUTOLINK_RE.sub(" ", content)
    content = HTML_TAG_RE.sub(" ", content)
    content = EMPHASIS_RE.sub("", content)
    return content, code_chars


def _collapse(value: str) -> str:
    return re.sub(r"\s+", " ", value).strip()


def _terminate(block: str) -> str:
    """Make each block end a sentence so headings and bullets stay separate."""
    if SENTENCE_END_RE.search(block):
        return block
    return block.rstrip(":;,") + "."
