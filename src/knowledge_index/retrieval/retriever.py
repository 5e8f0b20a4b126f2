"""Multi-query retriever — fuses vector searches over several query variants.

Usage::

    retriever = MultiQueryRetriever(store, EmbeddingGateway(), QueryExpander())
    matches = await retriever.search(["doc-1", "doc-2"], "how are refunds issued?", top_k=5)
    for m in matches:
        print(m.chunk.doc_id, m.score, m.snippet)
"""

from __future__ import annotations

import asyncio
import logging

from knowledge_index.config import settings
from knowledge_index.errors import EmbeddingFailed, QueryRequired
from knowledge_index.ingestion.embedder import EmbeddingGateway
from knowledge_index.retrieval.base import VectorStoreBase
from knowledge_index.retrieval.expander import QueryExpander
from knowledge_index.retrieval.models import RetrievalMatch, ScoredPoint, StoredChunk, doc_filter
from knowledge_index.retrieval.snippets import build_snippet, extract_keywords
from knowledge_index.retrieval.sync import build_collection_name

logger = logging.getLogger(__name__)


class MultiQueryRetriever:
    """Search chunks of the given documents with expanded queries.

    Every query variant is embedded in one batch and searched
    concurrently.  Hits are merged by chunk id keeping the best score,
    so one strong match outranks several weak ones.

    Parameters
    ----------
    store:
        Vector-store backend.
    embedder:
        Gateway used to embed the query variants.
    expander:
        Produces the query variants.
    base_collection:
        Collection base name; must match the synchronizer's.
    default_k:
        Number of matches returned when *top_k* is not given.
    """

    def __init__(
        self,
        store: VectorStoreBase,
        embedder: EmbeddingGateway,
        expander: QueryExpander,
        *,
        base_collection: str = settings.chroma_collection,
        default_k: int = settings.search_top_k,
    ) -> None:
        self._store = store
        self._embedder = embedder
        self._expander = expander
        self.base_collection = base_collection
        self.default_k = default_k

    async def search(self, doc_ids: list[str], query: str, top_k: int | None = None) -> list[RetrievalMatch]:
        """Return up to *top_k* matches across *doc_ids*, best first.

        Raises
        ------
        QueryRequired
            When *query* is blank.
        EmbeddingFailed
            When the embedding provider returned no vectors.
        """
        k = self.default_k if top_k is None else top_k
        if not doc_ids or k <= 0:
            return []

        normalized = query.strip()
        if not normalized:
            raise QueryRequired("QUERY_REQUIRED")

        variants = await self._expander.expand(normalized)
        embeddings = await self._embedder.embed_texts(variants)
        if not embeddings:
            raise EmbeddingFailed("EMBEDDING_FAILED")

        collection = build_collection_name(self.base_collection, len(embeddings[0]))
        filters = doc_filter(doc_ids)
        batches = await asyncio.gather(
            *(self._store.search(collection, vector, k=k, filters=filters) for vector in embeddings)
        )

        best = self.merge(batches)
        keywords = extract_keywords(" ".join([normalized, *variants]))
        matches = [
            RetrievalMatch(
                chunk=StoredChunk.from_point(point),
                score=point.score or 0.0,
                snippet=build_snippet(point.payload.get("text", ""), keywords),
            )
            for point in best
        ]
        matches.sort(key=lambda m: m.score, reverse=True)

        logger.debug(
            "Search over %d docs: %d variants, %d unique hits, returning %d",
            len(doc_ids),
            len(variants),
            len(matches),
            min(k, len(matches)),
        )
        return matches[:k]

    @staticmethod
    def merge(batches: list[list[ScoredPoint]]) -> list[ScoredPoint]:
        """Deduplicate hits by id, keeping the highest-scoring occurrence.

        On equal scores the first occurrence wins.
        """
        by_id: dict[str, ScoredPoint] = {}
        for hits in batches:
            for hit in hits:
                current = by_id.get(hit.id)
                if current is None or (hit.score or 0.0) > (current.score or 0.0):
                    by_id[hit.id] = hit
        return list(by_id.values())
