"""Shared pytest configuration and fixtures."""

from __future__ import annotations

import pytest
from fakes import FakeEmbeddings, FakeVectorStore, InMemoryDocumentStore


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests requiring external services")


@pytest.fixture()
def fake_embeddings() -> FakeEmbeddings:
    return FakeEmbeddings()


@pytest.fixture()
def vector_store() -> FakeVectorStore:
    return FakeVectorStore()


@pytest.fixture()
def doc_store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()
