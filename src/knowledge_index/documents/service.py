"""Knowledge document lifecycle: the write path around the chunk index.

Create and update run summary generation and chunk planning concurrently,
then embed and sync the chunks.  Chunks are fully replaced on every
content change and removed when the document is deleted.  The document
records its ``embedding_model`` only once its chunks are stored, so a
failed sync is picked up by the next reindex sweep.

Callers must not edit the same document concurrently; updates of
different documents never interfere because point ids are scoped per
document.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from langchain_core.language_models import BaseChatModel
from pydantic import BaseModel, Field, ValidationError

from knowledge_index.config import settings
from knowledge_index.documents.models import (
    KnowledgeDoc,
    KnowledgeDocInput,
    KnowledgeDocUpdate,
    normalize_tags,
)
from knowledge_index.documents.reindex import ReindexOrchestrator
from knowledge_index.documents.store import DocumentStore
from knowledge_index.errors import ContentRequired, DocumentNotFound
from knowledge_index.ingestion.embedder import EmbeddingGateway
from knowledge_index.ingestion.materializer import materialize_chunks
from knowledge_index.ingestion.models import ChunkMaterial
from knowledge_index.ingestion.planner import TextChunkPlanner
from knowledge_index.llm import get_llm, parse_json_reply
from knowledge_index.prompts import build_summary_prompt
from knowledge_index.retrieval.base import VectorStoreBase
from knowledge_index.retrieval.expander import QueryExpander
from knowledge_index.retrieval.models import RetrievalMatch, StoredChunk
from knowledge_index.retrieval.retriever import MultiQueryRetriever
from knowledge_index.retrieval.sync import VectorStoreSynchronizer

logger = logging.getLogger(__name__)

NO_SUMMARY = "No summary available."


class KnowledgeSummary(BaseModel):
    summary: str = Field(min_length=1)


class KnowledgeService:
    """Create, update, delete, and search knowledge documents.

    Parameters
    ----------
    doc_store:
        Metadata store owned by the host service.
    planner, embedder, synchronizer, retriever:
        Chunk index components.
    llm:
        Chat model for summaries.  When *None*, created on first use.
    """

    def __init__(
        self,
        doc_store: DocumentStore,
        planner: TextChunkPlanner,
        embedder: EmbeddingGateway,
        synchronizer: VectorStoreSynchronizer,
        retriever: MultiQueryRetriever,
        *,
        llm: BaseChatModel | None = None,
        summary_fallback_chars: int = settings.summary_fallback_chars,
    ) -> None:
        self._doc_store = doc_store
        self._planner = planner
        self._embedder = embedder
        self._synchronizer = synchronizer
        self._retriever = retriever
        self._llm = llm
        self.summary_fallback_chars = summary_fallback_chars

    @property
    def llm(self) -> BaseChatModel:
        if self._llm is None:
            self._llm = get_llm(temperature=0.0)
        return self._llm

    # -- public API -----------------------------------------------------------

    async def create_doc(self, data: KnowledgeDocInput) -> KnowledgeDoc:
        content = data.content.strip()
        if not content:
            raise ContentRequired("CONTENT_REQUIRED")

        summary, chunks = await asyncio.gather(
            self.generate_summary(content),
            self._prepare_chunks(content),
        )
        embeddings = await self._embedder.embed_texts([c.text for c in chunks])

        doc = await self._doc_store.create(
            {
                "content": content,
                "title": data.title,
                "summary": summary,
                "politic": data.politic,
                "tags": normalize_tags(data.tags),
                "embedding_model": None,
            }
        )
        return await self._sync_chunks(doc, chunks, embeddings)

    async def update_doc(self, doc_id: str, data: KnowledgeDocUpdate) -> KnowledgeDoc:
        existing = await self._doc_store.get(doc_id)
        if existing is None:
            raise DocumentNotFound("KNOWLEDGE_DOC_NOT_FOUND", doc_id=doc_id)

        patch: dict[str, Any] = data.model_dump(exclude_none=True)
        if data.tags is not None:
            patch["tags"] = normalize_tags(data.tags)

        chunks: list[ChunkMaterial] | None = None
        embeddings: list[list[float]] = []
        if data.content is not None:
            content = data.content.strip()
            if not content:
                raise ContentRequired("CONTENT_REQUIRED")
            summary, chunks = await asyncio.gather(
                self.generate_summary(content),
                self._prepare_chunks(content),
            )
            embeddings = await self._embedder.embed_texts([c.text for c in chunks])
            # Unset until the new chunks are stored.
            patch.update(content=content, summary=summary, embedding_model=None)

        updated = await self._doc_store.update_by_id(doc_id, patch)
        if updated is None:
            raise DocumentNotFound("KNOWLEDGE_DOC_NOT_FOUND", doc_id=doc_id)

        if chunks is not None:
            return await self._sync_chunks(updated, chunks, embeddings)
        return updated

    async def delete_doc(self, doc_id: str) -> None:
        existing = await self._doc_store.get(doc_id)
        if existing is None:
            raise DocumentNotFound("KNOWLEDGE_DOC_NOT_FOUND", doc_id=doc_id)
        await self._synchronizer.delete_doc_chunks(doc_id)
        await self._doc_store.delete_by_id(doc_id)

    async def get_doc(self, doc_id: str) -> KnowledgeDoc:
        doc = await self._doc_store.get(doc_id)
        if doc is None:
            raise DocumentNotFound("KNOWLEDGE_DOC_NOT_FOUND", doc_id=doc_id)
        return doc

    async def get_doc_chunks(self, doc_id: str) -> list[StoredChunk]:
        await self.get_doc(doc_id)
        return await self._synchronizer.get_doc_chunks(doc_id)

    async def search_chunks(self, doc_ids: list[str], query: str, top_k: int | None = None) -> list[RetrievalMatch]:
        return await self._retriever.search(doc_ids, query, top_k)

    async def generate_summary(self, content: str) -> str:
        """Summarize *content* with the LLM, falling back to its opening text."""
        response = await self.llm.ainvoke(build_summary_prompt(content))
        try:
            return KnowledgeSummary.model_validate(parse_json_reply(response.content)).summary
        except ValidationError:
            logger.warning("Summary reply failed validation; using content prefix")
            return self.fallback_summary(content)

    def fallback_summary(self, content: str) -> str:
        summary = content.strip()[: self.summary_fallback_chars]
        return summary or NO_SUMMARY

    # -- internals ------------------------------------------------------------

    async def _sync_chunks(
        self, doc: KnowledgeDoc, chunks: list[ChunkMaterial], embeddings: list[list[float]]
    ) -> KnowledgeDoc:
        """Store the chunks, then record the embedding model on the document."""
        await self._synchronizer.upsert_doc_chunks(doc.id, doc.public_id, chunks, embeddings)
        stamped = await self._doc_store.update_by_id(doc.id, {"embedding_model": self._embedder.model_name})
        if stamped is None:
            raise DocumentNotFound("KNOWLEDGE_DOC_NOT_FOUND", doc_id=doc.id)
        return stamped

    async def _prepare_chunks(self, content: str) -> list[ChunkMaterial]:
        boundaries = await asyncio.to_thread(self._planner.plan, content)
        return materialize_chunks(content, boundaries)


def build_knowledge_service(
    doc_store: DocumentStore,
    *,
    store: VectorStoreBase | None = None,
    embedder: EmbeddingGateway | None = None,
    llm: BaseChatModel | None = None,
) -> tuple[KnowledgeService, ReindexOrchestrator]:
    """Wire the knowledge index from global settings.

    Returns the document service and the reindex orchestrator sharing one
    set of components.  Defaults: :class:`ChromaVectorStore`, HuggingFace
    embeddings, and the configured OpenAI-compatible chat model.
    """
    if store is None:
        from knowledge_index.retrieval.chroma_store import ChromaVectorStore

        store = ChromaVectorStore()
    embedder = embedder or EmbeddingGateway()
    planner = TextChunkPlanner()
    synchronizer = VectorStoreSynchronizer(store)
    retriever = MultiQueryRetriever(store, embedder, QueryExpander(llm))
    service = KnowledgeService(doc_store, planner, embedder, synchronizer, retriever, llm=llm)
    reindexer = ReindexOrchestrator(doc_store, planner, embedder, synchronizer)
    return service, reindexer
