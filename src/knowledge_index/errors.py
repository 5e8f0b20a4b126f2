"""Exception hierarchy for the knowledge index.

Every error carries a stable ``code`` string so the surrounding service
can map it to a response without parsing messages.  Errors are split in
two families:

* :class:`KnowledgeInputError` — the caller sent something we cannot
  index or search (surfaced as a client error).
* :class:`KnowledgeInternalError` — an invariant between collaborators
  broke (surfaced as a server error, never retried here).
"""

from __future__ import annotations

from typing import Any


class KnowledgeError(Exception):
    """Base class for all knowledge-index errors."""

    code = "KNOWLEDGE_ERROR"

    def __init__(self, message: str | None = None, **details: Any) -> None:
        super().__init__(message or self.code)
        self.details: dict[str, Any] = details


class KnowledgeInputError(KnowledgeError):
    code = "KNOWLEDGE_BAD_REQUEST"


class KnowledgeInternalError(KnowledgeError):
    code = "KNOWLEDGE_INTERNAL"


class InvalidChunkPlan(KnowledgeInputError):
    """No candidate chunk size produced a valid partition of the content."""

    code = "INVALID_CHUNK_PLAN"


class QueryRequired(KnowledgeInputError):
    code = "QUERY_REQUIRED"


class ContentRequired(KnowledgeInputError):
    code = "CONTENT_REQUIRED"


class DocumentNotFound(KnowledgeInputError):
    code = "KNOWLEDGE_DOC_NOT_FOUND"


class EmbeddingFailed(KnowledgeInternalError):
    code = "EMBEDDING_FAILED"


class EmbeddingCountMismatch(KnowledgeInternalError):
    """The embedding provider returned a different number of vectors than inputs."""

    code = "EMBEDDING_COUNT_MISMATCH"
