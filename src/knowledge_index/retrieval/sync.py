"""Content-addressed synchronization of document chunks into the vector index.

Point ids are ``uuid5(namespace, f"{doc_id}|{sha1(text)}")``.  Re-chunking
identical text therefore reproduces identical ids, which makes an upsert
idempotent: retrying a sync, or syncing an unchanged document, never
creates duplicate points.

A sync writes the new points first and only then removes the document's
stale points (ids stored before that are absent from the new set).  A
concurrent search sees either the old chunks, the new ones, or a mix of
both, but never a document with zero chunks.

Vectors of different dimensionality never share a collection: points are
written to ``f"{base}_{dimension}"``.  After a successful upsert the
document's points are removed from every other dimension partition, so a
model switch does not leave the document searchable in two spaces.
"""

from __future__ import annotations

import hashlib
import logging
import uuid
from datetime import datetime, timezone

from knowledge_index.config import settings
from knowledge_index.errors import EmbeddingCountMismatch, EmbeddingFailed
from knowledge_index.ingestion.models import ChunkMaterial
from knowledge_index.retrieval.base import VectorStoreBase
from knowledge_index.retrieval.models import StoredChunk, VectorPoint, doc_filter

logger = logging.getLogger(__name__)


def build_collection_name(base_name: str, vector_size: int) -> str:
    return f"{base_name}_{vector_size}"


def content_hash(text: str) -> str:
    return hashlib.sha1(text.encode("utf-8")).hexdigest()


def build_point_id(doc_id: str, text: str, namespace: uuid.UUID) -> str:
    """Deterministic point id for one chunk of one document."""
    return str(uuid.uuid5(namespace, f"{doc_id}|{content_hash(text)}"))


class VectorStoreSynchronizer:
    """Keeps a document's chunk points in the vector store in step with its content.

    Parameters
    ----------
    store:
        Vector-store backend.
    base_collection:
        Collection base name; the vector dimension is appended per partition.
    namespace:
        UUID namespace for point ids.
    """

    def __init__(
        self,
        store: VectorStoreBase,
        *,
        base_collection: str = settings.chroma_collection,
        namespace: str | uuid.UUID = settings.point_id_namespace,
    ) -> None:
        self._store = store
        self.base_collection = base_collection
        self.namespace = namespace if isinstance(namespace, uuid.UUID) else uuid.UUID(namespace)

    # -- public API -----------------------------------------------------------

    async def upsert_doc_chunks(
        self,
        doc_id: str,
        doc_public_id: int | None,
        chunks: list[ChunkMaterial],
        embeddings: list[list[float]],
    ) -> list[str]:
        """Replace the stored chunks of *doc_id* with *chunks*.

        Returns the point ids now stored for the document, in chunk order.
        Store errors propagate unchanged.
        """
        if len(chunks) != len(embeddings):
            raise EmbeddingCountMismatch(
                "EMBEDDING_COUNT_MISMATCH",
                expected=len(chunks),
                actual=len(embeddings),
            )
        if not chunks:
            await self.delete_doc_chunks(doc_id)
            return []

        vector_size = len(embeddings[0])
        if not vector_size or any(len(v) != vector_size for v in embeddings):
            raise EmbeddingFailed("EMBEDDING_MISSING", doc_id=doc_id)

        collection = build_collection_name(self.base_collection, vector_size)
        points = self.build_points(doc_id, doc_public_id, chunks, embeddings)
        await self._store.upsert(collection, points)

        current_ids = {p.id for p in points}
        existing = await self._store.scroll(collection, filters=doc_filter([doc_id]))
        stale = [p.id for p in existing if p.id not in current_ids]
        if stale:
            await self._store.delete(collection, stale)

        for other in await self._partitions():
            if other != collection:
                await self._store.delete_by_filter(other, doc_filter([doc_id]))

        logger.info(
            "Synced doc %s: %d points upserted, %d stale points removed (collection=%s)",
            doc_id,
            len(points),
            len(stale),
            collection,
        )
        return [p.id for p in points]

    async def delete_doc_chunks(self, doc_id: str) -> None:
        """Remove every point of *doc_id* from every dimension partition."""
        for collection in await self._partitions():
            await self._store.delete_by_filter(collection, doc_filter([doc_id]))

    async def get_doc_chunks(self, doc_id: str) -> list[StoredChunk]:
        """Return all stored chunks of *doc_id*, ordered by ``chunk_index``."""
        chunks: list[StoredChunk] = []
        for collection in await self._partitions():
            points = await self._store.scroll(collection, filters=doc_filter([doc_id]))
            chunks.extend(StoredChunk.from_point(p) for p in points)
        return sorted(chunks, key=lambda c: c.chunk_index)

    def collection_for(self, vector_size: int) -> str:
        return build_collection_name(self.base_collection, vector_size)

    def build_points(
        self,
        doc_id: str,
        doc_public_id: int | None,
        chunks: list[ChunkMaterial],
        embeddings: list[list[float]],
    ) -> list[VectorPoint]:
        """Build content-addressed points, one per distinct chunk text.

        Chunks of one document with identical text share an id; the first
        occurrence is kept.
        """
        created_at = datetime.now(timezone.utc).isoformat()
        points: list[VectorPoint] = []
        seen: set[str] = set()
        for index, (chunk, vector) in enumerate(zip(chunks, embeddings)):
            point_id = build_point_id(doc_id, chunk.text, self.namespace)
            if point_id in seen:
                continue
            seen.add(point_id)
            stored = StoredChunk(
                id=point_id,
                doc_id=doc_id,
                doc_public_id=doc_public_id,
                chunk_index=index,
                text=chunk.text,
                start_offset=chunk.start_offset,
                end_offset=chunk.end_offset,
                label=chunk.label,
                keywords=chunk.keywords,
                created_at=created_at,
            )
            points.append(VectorPoint(id=point_id, vector=vector, payload=stored.to_payload()))
        return points

    # -- internals ------------------------------------------------------------

    async def _partitions(self) -> list[str]:
        """Existing collections belonging to this index, one per dimension."""
        prefix = f"{self.base_collection}_"
        return [
            name
            for name in await self._store.list_collections()
            if name.startswith(prefix) and name[len(prefix) :].isdigit()
        ]
