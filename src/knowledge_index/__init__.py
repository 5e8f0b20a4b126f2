"""
knowledge_index — chunking, indexing, and retrieval for a knowledge base.

Write path: document text → :class:`TextChunkPlanner` → chunk materials →
:class:`EmbeddingGateway` → :class:`VectorStoreSynchronizer`.

Read path: query → :class:`QueryExpander` → :class:`EmbeddingGateway` →
:class:`MultiQueryRetriever` → snippets.

The package is a library: the host service owns HTTP, auth, and the
document metadata database (see :class:`~knowledge_index.documents.store.DocumentStore`).
"""

from knowledge_index.errors import (
    ContentRequired,
    DocumentNotFound,
    EmbeddingCountMismatch,
    EmbeddingFailed,
    InvalidChunkPlan,
    KnowledgeError,
    QueryRequired,
)
from knowledge_index.ingestion.embedder import EmbeddingGateway
from knowledge_index.ingestion.materializer import materialize_chunks
from knowledge_index.ingestion.models import ChunkBoundary, ChunkMaterial
from knowledge_index.ingestion.planner import TextChunkPlanner
from knowledge_index.retrieval import (
    MultiQueryRetriever,
    QueryExpander,
    RetrievalMatch,
    StoredChunk,
    VectorStoreBase,
    VectorStoreSynchronizer,
    build_snippet,
    extract_keywords,
)

__all__ = [
    "ChunkBoundary",
    "ChunkMaterial",
    "ContentRequired",
    "DocumentNotFound",
    "EmbeddingCountMismatch",
    "EmbeddingFailed",
    "EmbeddingGateway",
    "InvalidChunkPlan",
    "KnowledgeError",
    "MultiQueryRetriever",
    "QueryExpander",
    "QueryRequired",
    "RetrievalMatch",
    "StoredChunk",
    "TextChunkPlanner",
    "VectorStoreBase",
    "VectorStoreSynchronizer",
    "build_snippet",
    "extract_keywords",
    "materialize_chunks",
]
