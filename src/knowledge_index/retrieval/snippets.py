"""Readable excerpts for retrieved chunks.

:func:`build_snippet` tries, in order:

1. a window of text around the earliest keyword hit,
2. the sentence containing the most distinct keywords,
3. the whole text if short, otherwise its head and tail.
"""

from __future__ import annotations

import re

KEYWORD_WINDOW = 120
FALLBACK_EDGE = 250

_TOKEN = re.compile(r"[a-z0-9]+")
_SENTENCE = re.compile(r"[^.!?]+[.!?]?")
_WHITESPACE = re.compile(r"\s+")


def extract_keywords(text: str) -> list[str]:
    """Lower-cased alphanumeric tokens of 3+ characters, deduplicated in order."""
    seen: dict[str, None] = {}
    for token in _TOKEN.findall(text.lower()):
        if len(token) > 2:
            seen.setdefault(token)
    return list(seen)


def normalize_whitespace(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


def build_snippet(text: str, keywords: list[str]) -> str:
    normalized = normalize_whitespace(text)
    return (
        keyword_snippet(normalized, keywords)
        or best_sentence_snippet(normalized, keywords)
        or edge_snippet(normalized)
    )


def keyword_snippet(text: str, keywords: list[str]) -> str | None:
    if not keywords:
        return None

    lower = text.lower()
    best_index = -1
    best_keyword = ""
    for keyword in keywords:
        idx = lower.find(keyword.lower())
        if idx != -1 and (best_index == -1 or idx < best_index):
            best_index = idx
            best_keyword = keyword

    if best_index == -1:
        return None

    start = max(0, best_index - KEYWORD_WINDOW)
    end = min(len(text), best_index + len(best_keyword) + KEYWORD_WINDOW)
    prefix = "..." if start > 0 else ""
    suffix = "..." if end < len(text) else ""
    return f"{prefix}{text[start:end].strip()}{suffix}"


def best_sentence_snippet(text: str, keywords: list[str]) -> str | None:
    sentences = _SENTENCE.findall(text)
    if not sentences:
        return None

    if not keywords:
        return sentences[0].strip()

    best_sentence = ""
    best_score = 0
    for sentence in sentences:
        lowered = sentence.lower()
        score = sum(1 for keyword in keywords if keyword.lower() in lowered)
        if score > best_score:
            best_score = score
            best_sentence = sentence.strip()

    return best_sentence if best_score > 0 else None


def edge_snippet(text: str) -> str:
    if len(text) <= FALLBACK_EDGE * 2:
        return text.strip()
    head = text[:FALLBACK_EDGE].strip()
    tail = text[-FALLBACK_EDGE:].strip()
    return f"{head} ... {tail}"
