"""Prompt templates for the LLM calls made by the knowledge index.

Both prompts ask for a bare JSON object so replies can be validated
against a strict schema before anything downstream sees them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from langchain_core.messages import HumanMessage, SystemMessage

if TYPE_CHECKING:
    from langchain_core.messages import BaseMessage

# ── 1. Query expansion ────────────────────────────────────────────────

QUERY_EXPANSION_SYSTEM = """\
You generate search queries for a semantic knowledge-base search.

Generate 3-5 short search queries or keyword phrases relevant to the
user query.  Return ONLY JSON with key "queries": string[].

Rules:
- include the original query in the list.
- keep each query under {max_words} words.
- deduplicate queries.

Respond with **only** valid JSON — no markdown fences, no commentary.
"""


def build_query_expansion_prompt(query: str, *, max_words: int = 12) -> list[BaseMessage]:
    """Build the prompt for :class:`~knowledge_index.retrieval.expander.QueryExpander`."""
    return [
        SystemMessage(content=QUERY_EXPANSION_SYSTEM.format(max_words=max_words)),
        HumanMessage(content=f"QUERY: {query}"),
    ]


# ── 2. Document summary ───────────────────────────────────────────────

SUMMARY_SYSTEM = """\
You generate summaries for internal knowledge base documents.

Return ONLY JSON with key: "summary".

Rules:
- summary: 2-5 lines, concise.

Respond with **only** valid JSON.
"""


def build_summary_prompt(content: str) -> list[BaseMessage]:
    """Build the prompt used by ``KnowledgeService.generate_summary``."""
    return [
        SystemMessage(content=SUMMARY_SYSTEM),
        HumanMessage(content=f"DOCUMENT:\n{content}"),
    ]
