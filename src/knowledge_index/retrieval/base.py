"""Abstract base class for vector-store backends.

The knowledge index treats the vector store as a key/value store with
approximate nearest-neighbour search.  Adding a backend (Qdrant,
Pinecone, …) only requires subclassing :class:`VectorStoreBase` and
implementing the abstract coroutines below.

Collections are addressed by name on every call because the index keeps
one collection per vector dimension (see
:func:`knowledge_index.retrieval.sync.build_collection_name`).
Reads, scrolls, and deletes against a collection that does not exist
yet behave as if it were empty.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from knowledge_index.retrieval.models import MetadataFilter, ScoredPoint, VectorPoint


class VectorStoreBase(ABC):
    """Backend-agnostic async vector-store interface."""

    # -- required overrides ---------------------------------------------------

    @abstractmethod
    async def upsert(self, collection: str, points: list[VectorPoint]) -> None:
        """Insert or overwrite *points* by id, creating *collection* if needed."""
        ...

    @abstractmethod
    async def search(
        self,
        collection: str,
        vector: list[float],
        *,
        k: int = 5,
        filters: list[MetadataFilter] | None = None,
    ) -> list[ScoredPoint]:
        """Return the top-*k* points nearest to *vector*, payload included.

        Scores are similarities: higher means more similar.  Raw vectors
        are never returned.
        """
        ...

    @abstractmethod
    async def scroll(
        self,
        collection: str,
        *,
        filters: list[MetadataFilter] | None = None,
    ) -> list[ScoredPoint]:
        """Return every point matching *filters*, paging through the store."""
        ...

    @abstractmethod
    async def delete(self, collection: str, ids: list[str]) -> None:
        """Delete points by id."""
        ...

    @abstractmethod
    async def delete_by_filter(self, collection: str, filters: list[MetadataFilter]) -> None:
        """Delete every point matching *filters*."""
        ...

    @abstractmethod
    async def list_collections(self) -> list[str]:
        """Return the names of all existing collections."""
        ...

    # -- optional overrides ---------------------------------------------------

    async def health_check(self) -> bool:
        """Return ``True`` when the backend is reachable and ready."""
        return True
