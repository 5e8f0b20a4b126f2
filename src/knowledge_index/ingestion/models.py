"""Data models for the write path: chunk boundaries and materialized chunks."""

from __future__ import annotations

from pydantic import BaseModel, Field


class ChunkBoundary(BaseModel):
    """Half-open ``[start, end)`` character span into one document's content."""

    start: int = Field(ge=0)
    end: int = Field(gt=0)
    label: str | None = None

    @property
    def length(self) -> int:
        return self.end - self.start


class ChunkMaterial(BaseModel):
    """A boundary together with the text it covers.

    Transient: produced for embedding and never stored on its own.
    """

    text: str
    start_offset: int
    end_offset: int
    label: str | None = None
    keywords: list[str] | None = None
