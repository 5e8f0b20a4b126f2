"""Embedding gateway — batches texts through a LangChain embedding model."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from langchain_core.embeddings import Embeddings

from knowledge_index.config import settings
from knowledge_index.errors import EmbeddingCountMismatch

if TYPE_CHECKING:
    from langchain_huggingface import HuggingFaceEmbeddings

logger = logging.getLogger(__name__)


def get_embedding_function(model_name: str = settings.embedding_model) -> HuggingFaceEmbeddings:
    """Return the configured sentence-transformer embedding function."""
    from langchain_huggingface import HuggingFaceEmbeddings

    return HuggingFaceEmbeddings(
        model_name=model_name,
        encode_kwargs={"normalize_embeddings": True},
    )


class EmbeddingGateway:
    """Thin async adapter over a LangChain :class:`Embeddings` instance.

    Parameters
    ----------
    embeddings:
        Embedding backend.  When *None*, a HuggingFace model named by
        *model_name* is loaded lazily on first use.
    model_name:
        Name recorded on documents as their ``embedding_model`` tag.
    batch_size:
        Maximum number of texts per provider call.
    """

    def __init__(
        self,
        embeddings: Embeddings | None = None,
        *,
        model_name: str = settings.embedding_model,
        batch_size: int = settings.embedding_batch_size,
    ) -> None:
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size!r}")
        self._embeddings = embeddings
        self.model_name = model_name
        self.batch_size = batch_size

    @property
    def embeddings(self) -> Embeddings:
        if self._embeddings is None:
            self._embeddings = get_embedding_function(self.model_name)
        return self._embeddings

    async def embed_texts(self, texts: list[str]) -> list[list[float]]:
        """Embed *texts* in order, one vector per input."""
        if not texts:
            return []

        vectors: list[list[float]] = []
        for start in range(0, len(texts), self.batch_size):
            batch = texts[start : start + self.batch_size]
            result = await self.embeddings.aembed_documents(batch)
            if len(result) != len(batch):
                raise EmbeddingCountMismatch(
                    "EMBEDDING_COUNT_MISMATCH",
                    expected=len(batch),
                    actual=len(result),
                )
            vectors.extend(result)

        logger.debug("Embedded %d texts with model=%s", len(texts), self.model_name)
        return vectors
