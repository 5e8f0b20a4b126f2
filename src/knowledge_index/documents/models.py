"""Knowledge document models and tag normalization."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field

MAX_TAGS = 12


def normalize_tags(tags: list[str]) -> list[str]:
    """Trim, lower-case, and deduplicate *tags*, keeping at most 12."""
    seen: dict[str, None] = {}
    for tag in tags:
        normalized = tag.strip().lower()
        if normalized:
            seen.setdefault(normalized)
    return list(seen)[:MAX_TAGS]


class KnowledgeDoc(BaseModel):
    """A document as held by the metadata store.

    Attributes
    ----------
    id:
        Immutable document identifier; also the ``doc_id`` of its chunks.
    public_id:
        Integer id exposed to users; copied into every chunk payload.
    embedding_model:
        Model last used to embed this document's chunks (``None`` if never).
    """

    id: str
    public_id: int | None = None
    content: str
    title: str
    summary: str | None = None
    politic: str | None = None
    embedding_model: str | None = None
    tags: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class KnowledgeDocInput(BaseModel):
    """Fields accepted when creating a document."""

    content: str
    title: str
    politic: str | None = None
    tags: list[str] = Field(default_factory=list)


class KnowledgeDocUpdate(BaseModel):
    """Partial update; ``None`` leaves a field unchanged."""

    content: str | None = None
    title: str | None = None
    politic: str | None = None
    tags: list[str] | None = None
