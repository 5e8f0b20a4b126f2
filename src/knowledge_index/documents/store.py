"""Interface to the document metadata store.

The metadata store (titles, summaries, tags, ``embedding_model``) belongs
to the host service.  The knowledge index only needs the handful of
coroutines below; implement them over whatever database backs documents.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from knowledge_index.documents.models import KnowledgeDoc


class DocumentStore(ABC):
    @abstractmethod
    async def create(self, fields: dict[str, Any]) -> KnowledgeDoc:
        """Persist a new document and return it with its ids assigned."""
        ...

    @abstractmethod
    async def get(self, doc_id: str) -> KnowledgeDoc | None: ...

    @abstractmethod
    async def update_by_id(self, doc_id: str, patch: dict[str, Any]) -> KnowledgeDoc | None:
        """Apply *patch* and return the updated document, or ``None`` if missing."""
        ...

    @abstractmethod
    async def delete_by_id(self, doc_id: str) -> None: ...

    @abstractmethod
    async def get_embedding_model_mismatches(self, embedding_model: str) -> list[KnowledgeDoc]:
        """Documents whose ``embedding_model`` differs from *embedding_model*."""
        ...
