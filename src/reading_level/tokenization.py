from __future__ import annotations

import re
from typing import List

from .models import Counts, Token

TOKEN_PATTERN = re.compile(r"[^\W_]+(?:['’\-][^\W_]+)*", re.UNICODE)
TERMINATOR_PATTERN = re.compile(r"[.!?]+")
CLOSING_PUNCTUATION = "\"')]’”»"
VOWEL_CLUSTER_RE = re.compile(r"[aeiouy]+")


def tokenize_words(text: str) -> List[Token]:
    """Tokenize text into word tokens with character offsets."""
    tokens: List[Token] = []
    for match in TOKEN_PATTERN.finditer(text):
        tokens.append(
            Token(text=match.group(), start_char=match.start(), end_char=match.end())
        )
    return tokens


def split_sentences(text: str) -> List[str]:
    """
    Split prose into sentences.

    Every line is a separate block (the extractor puts each heading, list item
    and paragraph on its own line), so a sentence never spans a newline.
    Within a line, a run of '.', '!' or '?' ends a sentence when it is followed
    by whitespace and an uppercase letter, or by the end of the line (closing
    quotes and brackets may sit in between). Abbreviations such as "e.g. the"
    and decimals are therefore not boundaries, and neither are periods inside
    URLs or paths, which are never followed by whitespace.
    """
    sentences: List[str] = []
    for block in text.split("\n"):
        sentences.extend(_split_block(block))
    return sentences


def _split_block(text: str) -> List[str]:
    sentences: List[str] = []
    start = 0
    for match in TERMINATOR_PATTERN.finditer(text):
        end = match.end()
        while end < len(text) and text[end] in CLOSING_PUNCTUATION:
            end += 1
        if not _is_boundary(text, end):
            continue
        sentence = text[start:end].strip()
        if TOKEN_PATTERN.search(sentence):
            sentences.append(sentence)
        start = end

    remainder = text[start:].strip()
    if TOKEN_PATTERN.search(remainder):
        sentences.append(remainder)
    return sentences


def _is_boundary(text: str, position: int) -> bool:
    if position >= len(text):
        return True
    if not text[position].isspace():
        return False
    rest = text[position:].lstrip()
    if not rest:
        return True
    nxt = rest[0]
    if nxt in "\"'“‘([":
        nxt = rest[1:2] or nxt
    return nxt.isupper()


def count_syllables(word: str) -> int:
    """
    Estimate syllables without a dictionary.

    Counts vowel clusters, drops a trailing silent 'e' that stands alone, and
    never returns less than 1.
    """
    letters = re.sub(r"[^a-z]", "", word.lower())
    if not letters:
        return 1
    count = len(VOWEL_CLUSTER_RE.findall(letters))
    if letters.endswith("e") and (len(letters) == 1 or letters[-2] not in "aeiouy"):
        count -= 1
    return max(1, count)


def count_text(text: str) -> Counts:
    """Derive word, sentence and syllable counts from cleaned prose."""
    words = tokenize_words(text)
    word_count = len(words)
    if word_count == 0:
        return Counts(word_count=0, sentence_count=0, syllable_count=0)
    # With words present there is always at least one sentence.
    sentence_count = max(1, len(split_sentences(text)))
    syllable_count = sum(count_syllables(token.text) for token in words)
    return Counts(
        word_count=word_count,
        sentence_count=sentence_count,
        syllable_count=syllable_count,
    )
