"""
Documents — lifecycle of knowledge documents around the chunk index.

- :class:`KnowledgeService` — create / update / delete flows that keep the
  vector index in step with document content.
- :class:`ReindexOrchestrator` — background sweep re-embedding documents
  whose embedding model is out of date.
- :class:`DocumentStore` — interface to the metadata store owned by the
  host service.
"""

from knowledge_index.documents.models import KnowledgeDoc, KnowledgeDocInput, KnowledgeDocUpdate
from knowledge_index.documents.reindex import ReindexOrchestrator, ReindexReport
from knowledge_index.documents.service import KnowledgeService, build_knowledge_service
from knowledge_index.documents.store import DocumentStore

__all__ = [
    "DocumentStore",
    "KnowledgeDoc",
    "KnowledgeDocInput",
    "KnowledgeDocUpdate",
    "KnowledgeService",
    "ReindexOrchestrator",
    "ReindexReport",
    "build_knowledge_service",
]
