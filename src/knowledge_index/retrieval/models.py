"""Domain models for stored chunks, vector points, and search results."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field


class MetadataFilter(BaseModel):
    """Declarative payload filter for vector-store queries.

    Attributes
    ----------
    field:
        The payload key to filter on (e.g. ``"doc_id"``).
    operator:
        Comparison operator — one of ``eq``, ``ne``, ``gt``, ``gte``,
        ``lt``, ``lte``, ``in``, ``nin``.
    value:
        The value (or list of values for ``in`` / ``nin``) to compare against.
    """

    field: str
    operator: str = "eq"
    value: Any = None

    # -- helpers for common filters ------------------------------------------

    @classmethod
    def equals(cls, field: str, value: Any) -> MetadataFilter:
        return cls(field=field, operator="eq", value=value)

    @classmethod
    def one_of(cls, field: str, values: list[Any]) -> MetadataFilter:
        return cls(field=field, operator="in", value=values)


def doc_filter(doc_ids: list[str]) -> list[MetadataFilter]:
    """Filter matching points of one or more documents."""
    if len(doc_ids) == 1:
        return [MetadataFilter.equals("doc_id", doc_ids[0])]
    return [MetadataFilter.one_of("doc_id", list(doc_ids))]


class VectorPoint(BaseModel):
    """One point to write: id, dense vector, and its payload."""

    id: str
    vector: list[float]
    payload: dict[str, Any] = Field(default_factory=dict)


class ScoredPoint(BaseModel):
    """A point returned by the vector store, with its similarity score.

    ``score`` is ``None`` for points read by a scroll rather than a search.
    """

    id: str
    payload: dict[str, Any] = Field(default_factory=dict)
    score: float | None = None


class StoredChunk(BaseModel):
    """A chunk as persisted in the vector index, minus its vector."""

    id: str
    doc_id: str
    doc_public_id: int | None = None
    chunk_index: int
    text: str
    start_offset: int
    end_offset: int
    label: str | None = None
    keywords: list[str] | None = None
    created_at: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(exclude={"id"})

    @classmethod
    def from_point(cls, point: ScoredPoint) -> StoredChunk:
        return cls.model_validate({**point.payload, "id": point.id})


class RetrievalMatch(BaseModel):
    """A retrieved chunk with its fused score and a readable excerpt."""

    chunk: StoredChunk
    score: float
    snippet: str = ""

    def __str__(self) -> str:  # noqa: D105
        return f"[{self.chunk.doc_id}§{self.chunk.chunk_index}] {self.score:.3f} {self.snippet[:120]}"
