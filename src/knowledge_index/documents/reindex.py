"""Background sweep re-embedding documents indexed with an outdated model.

A document's chunks must be embedded by the currently configured model to
be comparable with query embeddings.  The sweep finds every document
whose stored ``embedding_model`` differs, re-runs the write path for it
(plan → materialize → embed → sync), and records the new model on
success.  At most ``concurrency`` documents are processed at once.

A failure on one document is logged and the sweep moves on; the failed
document keeps its old ``embedding_model`` so the next sweep retries it.
"""

from __future__ import annotations

import asyncio
import logging

from pydantic import BaseModel, Field

from knowledge_index.config import settings
from knowledge_index.documents.models import KnowledgeDoc
from knowledge_index.documents.store import DocumentStore
from knowledge_index.ingestion.embedder import EmbeddingGateway
from knowledge_index.ingestion.materializer import materialize_chunks
from knowledge_index.ingestion.planner import TextChunkPlanner
from knowledge_index.retrieval.sync import VectorStoreSynchronizer

logger = logging.getLogger(__name__)


class ReindexReport(BaseModel):
    """Outcome of one sweep, by document id."""

    embedding_model: str | None = None
    total: int = 0
    reindexed: list[str] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)


class ReindexOrchestrator:
    """Re-embed and re-sync documents whose embedding model is out of date.

    Parameters
    ----------
    doc_store:
        Metadata store listing candidates and receiving the model patch.
    planner, embedder, synchronizer:
        The write-path components, shared with document create/update.
    concurrency:
        Maximum number of documents processed at the same time.
    """

    def __init__(
        self,
        doc_store: DocumentStore,
        planner: TextChunkPlanner,
        embedder: EmbeddingGateway,
        synchronizer: VectorStoreSynchronizer,
        *,
        concurrency: int = settings.reindex_concurrency,
    ) -> None:
        if concurrency <= 0:
            raise ValueError(f"concurrency must be positive, got {concurrency!r}")
        self._doc_store = doc_store
        self._planner = planner
        self._embedder = embedder
        self._synchronizer = synchronizer
        self.concurrency = concurrency

    async def reindex_mismatched(self, current_embedding_model: str | None = None) -> ReindexReport:
        """Reindex every document not embedded with the embedder's model.

        *current_embedding_model*, if given, must name that model.  Never raises for a
        single document's failure.

        Raises
        ------
        ValueError
            When *current_embedding_model* is not the embedder's model.
        """
        model = self._embedder.model_name
        if current_embedding_model is not None and current_embedding_model != model:
            raise ValueError(
                f"current_embedding_model {current_embedding_model!r} does not match "
                f"the embedder's model {model!r}"
            )
        report = ReindexReport(embedding_model=model)
        if not model:
            return report

        docs = await self._doc_store.get_embedding_model_mismatches(model)
        if not docs:
            return report

        report.total = len(docs)
        logger.info("Reindexing %d knowledge docs for embedding model %s", len(docs), model)

        queue: asyncio.Queue[KnowledgeDoc] = asyncio.Queue()
        for doc in docs:
            queue.put_nowait(doc)

        async def worker() -> None:
            while True:
                try:
                    doc = queue.get_nowait()
                except asyncio.QueueEmpty:
                    return
                try:
                    if await self.reindex_doc(doc):
                        report.reindexed.append(doc.id)
                    else:
                        report.skipped.append(doc.id)
                except Exception:
                    logger.exception("Failed to reindex knowledge doc %s", doc.id)
                    report.failed.append(doc.id)

        await asyncio.gather(*(worker() for _ in range(min(self.concurrency, len(docs)))))

        logger.info(
            "Reindex finished: %d reindexed, %d skipped, %d failed",
            len(report.reindexed),
            len(report.skipped),
            len(report.failed),
        )
        return report

    async def reindex_doc(self, doc: KnowledgeDoc) -> bool:
        """Rebuild one document's chunks.  Returns ``False`` if skipped."""
        content = doc.content.strip()
        if not content:
            logger.warning("Skipping knowledge doc %s reindex with empty content", doc.id)
            return False

        boundaries = await asyncio.to_thread(self._planner.plan, content)
        chunks = materialize_chunks(content, boundaries)
        embeddings = await self._embedder.embed_texts([c.text for c in chunks])
        await self._synchronizer.upsert_doc_chunks(doc.id, doc.public_id, chunks, embeddings)
        await self._doc_store.update_by_id(doc.id, {"embedding_model": self._embedder.model_name})
        return True
