"""Unit tests for keyword extraction and snippet selection."""

from __future__ import annotations

from knowledge_index.retrieval.snippets import (
    FALLBACK_EDGE,
    KEYWORD_WINDOW,
    best_sentence_snippet,
    build_snippet,
    edge_snippet,
    extract_keywords,
    keyword_snippet,
    normalize_whitespace,
)


class TestExtractKeywords:
    def test_lowercases_and_drops_short_tokens(self) -> None:
        assert extract_keywords("How DO I get a Refund?") == ["how", "get", "refund"]

    def test_deduplicates_in_order(self) -> None:
        assert extract_keywords("refund policy refund window") == ["refund", "policy", "window"]

    def test_splits_on_punctuation(self) -> None:
        assert extract_keywords("e-mail: support@acme.io, 24h") == ["mail", "support", "acme", "24h"]

    def test_empty(self) -> None:
        assert extract_keywords("") == []


def test_normalize_whitespace() -> None:
    assert normalize_whitespace("  a\n\n b\t c  ") == "a b c"


class TestKeywordSnippet:
    def test_short_text_no_ellipsis(self) -> None:
        assert keyword_snippet("Refunds take five days.", ["refunds"]) == "Refunds take five days."

    def test_window_around_earliest_hit(self) -> None:
        text = "x" * 300 + " refund " + "y" * 300
        snippet = keyword_snippet(text, ["refund"])
        assert snippet is not None
        assert snippet.startswith("...")
        assert snippet.endswith("...")
        assert "refund" in snippet
        assert len(snippet) <= 2 * KEYWORD_WINDOW + len("refund") + 6

    def test_earliest_keyword_wins(self) -> None:
        text = "alpha " + "z" * 200 + " beta"
        snippet = keyword_snippet(text, ["beta", "alpha"])
        assert snippet is not None
        assert snippet.startswith("alpha")

    def test_case_insensitive(self) -> None:
        assert keyword_snippet("REFUND NOW", ["refund"]) == "REFUND NOW"

    def test_no_hit(self) -> None:
        assert keyword_snippet("nothing relevant", ["refund"]) is None

    def test_no_keywords(self) -> None:
        assert keyword_snippet("anything", []) is None


class TestBestSentenceSnippet:
    def test_sentence_with_most_keywords(self) -> None:
        text = "Shipping is free. Refund policy explains the refund window. Contact us."
        assert best_sentence_snippet(text, ["refund", "window"]) == "Refund policy explains the refund window."

    def test_first_sentence_without_keywords(self) -> None:
        assert best_sentence_snippet("First one. Second one.", []) == "First one."

    def test_no_keyword_match(self) -> None:
        assert best_sentence_snippet("First one. Second one.", ["refund"]) is None

    def test_empty_text(self) -> None:
        assert best_sentence_snippet("", ["refund"]) is None


class TestEdgeSnippet:
    def test_short_text_returned_whole(self) -> None:
        assert edge_snippet("short text") == "short text"

    def test_long_text_head_and_tail(self) -> None:
        text = "h" * FALLBACK_EDGE + "m" * 100 + "t" * FALLBACK_EDGE
        snippet = edge_snippet(text)
        assert snippet == "h" * FALLBACK_EDGE + " ... " + "t" * FALLBACK_EDGE


class TestBuildSnippet:
    def test_prefers_keyword_window(self) -> None:
        assert build_snippet("Refunds\n\ntake   five days.", ["refunds"]) == "Refunds take five days."

    def test_falls_back_to_first_sentence(self) -> None:
        assert build_snippet("First one. Second one.", []) == "First one."

    def test_falls_back_to_edges(self) -> None:
        text = "word " * 200
        snippet = build_snippet(text, ["refund"])
        assert " ... " in snippet
        assert snippet.startswith("word") and snippet.endswith("word")
        assert len(snippet) <= 2 * FALLBACK_EDGE + 5

    def test_empty_text(self) -> None:
        assert build_snippet("", ["refund"]) == ""
