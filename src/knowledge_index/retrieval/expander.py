"""Query expansion — paraphrase and keyword variants of a search query."""

from __future__ import annotations

import logging
from typing import Annotated

from langchain_core.language_models import BaseChatModel
from pydantic import BaseModel, Field, StringConstraints, ValidationError

from knowledge_index.config import settings
from knowledge_index.llm import get_llm, parse_json_reply
from knowledge_index.prompts import build_query_expansion_prompt

logger = logging.getLogger(__name__)


class QueryExpansion(BaseModel):
    """Schema the LLM reply must satisfy."""

    queries: list[Annotated[str, StringConstraints(min_length=1)]] = Field(min_length=1, max_length=5)


class QueryExpander:
    """Ask an LLM for query variants to widen recall.

    The original query is always the first variant.  Malformed LLM output
    degrades to ``[query]`` instead of failing the search; transport
    errors from the LLM client propagate.

    Parameters
    ----------
    llm:
        Chat model.  When *None*, :func:`~knowledge_index.llm.get_llm` is
        called on first use.
    max_variants:
        Maximum number of variants returned, original included.
    max_words:
        Variants longer than this are cut to their first *max_words* words.
    """

    def __init__(
        self,
        llm: BaseChatModel | None = None,
        *,
        max_variants: int = settings.query_max_variants,
        max_words: int = settings.query_max_words,
    ) -> None:
        self._llm = llm
        self.max_variants = max_variants
        self.max_words = max_words

    @property
    def llm(self) -> BaseChatModel:
        if self._llm is None:
            self._llm = get_llm(temperature=0.0)
        return self._llm

    async def expand(self, query: str) -> list[str]:
        prompt = build_query_expansion_prompt(query, max_words=self.max_words)
        response = await self.llm.ainvoke(prompt)

        data = parse_json_reply(response.content)
        try:
            expansion = QueryExpansion.model_validate(data)
        except ValidationError:
            logger.warning("Query expansion reply failed validation; searching with the original query only")
            return [query]

        unique: dict[str, None] = {query: None}
        for item in expansion.queries:
            normalized = " ".join(item.split()[: self.max_words])
            if normalized:
                unique.setdefault(normalized)
        return list(unique)[: self.max_variants]
