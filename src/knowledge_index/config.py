"""Shared configuration loaded from environment / .env file."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application-wide settings, populated from env vars or .env file."""

    # LLM
    openai_api_key: str = Field(default="", description="OpenAI API key (or dummy value for local vLLM)")
    llm_model_name: str = Field(default="gpt-4o-mini", description="Model used for query expansion and summaries")
    llm_base_url: str = Field(
        default="",
        description=(
            "Base URL for an OpenAI-compatible API. Leave empty to use OpenAI cloud."
        ),
    )

    # Vector store
    chroma_host: str = "localhost"
    chroma_port: int = 8000
    chroma_collection: str = Field(
        default="knowledge_chunks",
        description="Collection base name; the vector dimension is appended per partition.",
    )
    chroma_distance: str = "cosine"
    chroma_scroll_batch_size: int = 256

    # Embedding
    embedding_model: str = "sentence-transformers/all-MiniLM-L6-v2"
    embedding_batch_size: int = 64

    # Chunking
    chunk_max_tokens: int = 500
    chunk_max_count: int = 100
    chunk_chars_per_token: int = 4
    chunk_min_size: int = 100
    chunk_shrink_ratio: float = 0.8

    # Retrieval
    search_top_k: int = 5
    query_max_variants: int = 5
    query_max_words: int = 12

    # Point ids are uuid5(namespace, ...); changing this re-keys every stored point.
    point_id_namespace: str = "6f1d3c3e-2b0a-5d5e-9c1f-4a7b8e2d9f10"

    # Background reindex
    reindex_concurrency: int = 4

    # Document metadata
    summary_fallback_chars: int = 500

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


# Singleton — import `settings` wherever needed.
settings = Settings()
