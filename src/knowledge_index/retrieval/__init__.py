"""
Retrieval — vector-store synchronization, query expansion, and search.

This module wraps the vector store behind a clean interface so that
callers never need to know which DB is backing the index.

Public surface
--------------
- :class:`VectorStoreSynchronizer` — content-addressed upsert / cleanup per document.
- :class:`MultiQueryRetriever` — expanded, fused similarity search.
- :class:`QueryExpander` — LLM-generated query variants.
- :class:`VectorStoreBase` — abstract backend (subclass for Qdrant, etc.).
- :class:`ChromaVectorStore` — default Chroma backend.
- :func:`build_snippet`, :func:`extract_keywords` — excerpt helpers.
"""

from knowledge_index.retrieval.base import VectorStoreBase
from knowledge_index.retrieval.expander import QueryExpander
from knowledge_index.retrieval.models import MetadataFilter, RetrievalMatch, StoredChunk
from knowledge_index.retrieval.retriever import MultiQueryRetriever
from knowledge_index.retrieval.snippets import build_snippet, extract_keywords
from knowledge_index.retrieval.sync import VectorStoreSynchronizer

__all__ = [
    "ChromaVectorStore",
    "MetadataFilter",
    "MultiQueryRetriever",
    "QueryExpander",
    "RetrievalMatch",
    "StoredChunk",
    "VectorStoreBase",
    "VectorStoreSynchronizer",
    "build_snippet",
    "extract_keywords",
]


def __getattr__(name: str):  # noqa: ANN001
    """Lazy-import ChromaVectorStore to avoid pulling in chromadb at import time."""
    if name == "ChromaVectorStore":
        from knowledge_index.retrieval.chroma_store import ChromaVectorStore

        return ChromaVectorStore
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
