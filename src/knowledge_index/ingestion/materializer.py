"""Turn chunk boundaries into concrete chunk records."""

from __future__ import annotations

from knowledge_index.ingestion.models import ChunkBoundary, ChunkMaterial


def materialize_chunks(content: str, boundaries: list[ChunkBoundary]) -> list[ChunkMaterial]:
    """Slice *content* along *boundaries*, preserving boundary order."""
    return [
        ChunkMaterial(
            text=content[boundary.start : boundary.end],
            start_offset=boundary.start,
            end_offset=boundary.end,
            label=boundary.label,
            keywords=None,
        )
        for boundary in boundaries
    ]
