"""Unit tests for the Chroma adapter, using a stub async client."""

from __future__ import annotations

from typing import Any

import pytest

from knowledge_index.retrieval.chroma_store import (
    ChromaVectorStore,
    _build_chroma_where,
    _from_chroma_metadata,
    _is_collection_not_found,
    _to_chroma_metadata,
)
from knowledge_index.retrieval.models import MetadataFilter, VectorPoint


# ── Stub client ─────────────────────────────────────────────────────────


class StubCollection:
    def __init__(self, name: str) -> None:
        self.name = name
        self.records: dict[str, dict[str, Any]] = {}
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.query_result: dict[str, Any] = {}

    async def upsert(self, **kwargs: Any) -> None:
        self.calls.append(("upsert", kwargs))
        for i, point_id in enumerate(kwargs["ids"]):
            self.records[point_id] = {"document": kwargs["documents"][i], "metadata": kwargs["metadatas"][i]}

    async def query(self, **kwargs: Any) -> dict[str, Any]:
        self.calls.append(("query", kwargs))
        return self.query_result

    async def get(self, **kwargs: Any) -> dict[str, Any]:
        self.calls.append(("get", kwargs))
        ids = sorted(self.records)[kwargs["offset"] : kwargs["offset"] + kwargs["limit"]]
        return {
            "ids": ids,
            "documents": [self.records[i]["document"] for i in ids],
            "metadatas": [self.records[i]["metadata"] for i in ids],
        }

    async def delete(self, **kwargs: Any) -> None:
        self.calls.append(("delete", kwargs))


class StubClient:
    def __init__(self) -> None:
        self.collections: dict[str, StubCollection] = {}
        self.created: list[tuple[str, dict[str, Any]]] = []

    async def get_or_create_collection(self, name: str, metadata: dict[str, Any]) -> StubCollection:
        self.created.append((name, metadata))
        return self.collections.setdefault(name, StubCollection(name))

    async def get_collection(self, name: str) -> StubCollection:
        if name not in self.collections:
            raise ValueError(f"Collection {name} does not exist.")
        return self.collections[name]

    async def list_collections(self) -> list[StubCollection]:
        return list(self.collections.values())

    async def heartbeat(self) -> int:
        return 1


def _store(client: StubClient, **kwargs: Any) -> ChromaVectorStore:
    store = ChromaVectorStore(**kwargs)
    store._client = client
    return store


# ── Helpers ─────────────────────────────────────────────────────────────


class TestBuildWhere:
    def test_single_filter(self) -> None:
        assert _build_chroma_where([MetadataFilter.equals("doc_id", "d1")]) == {"doc_id": {"$eq": "d1"}}

    def test_in_filter(self) -> None:
        where = _build_chroma_where([MetadataFilter.one_of("doc_id", ["d1", "d2"])])
        assert where == {"doc_id": {"$in": ["d1", "d2"]}}

    def test_multiple_filters_anded(self) -> None:
        where = _build_chroma_where(
            [MetadataFilter.equals("doc_id", "d1"), MetadataFilter(field="chunk_index", operator="gte", value=2)]
        )
        assert where == {"$and": [{"doc_id": {"$eq": "d1"}}, {"chunk_index": {"$gte": 2}}]}

    def test_empty(self) -> None:
        assert _build_chroma_where([]) is None

    def test_unknown_operator(self) -> None:
        with pytest.raises(ValueError, match="Unsupported"):
            _build_chroma_where([MetadataFilter(field="x", operator="like", value="y")])


class TestNotFoundHeuristic:
    @pytest.mark.parametrize(
        "message",
        [
            "Collection knowledge_chunks_384 does not exist.",
            "Collection [knowledge_chunks_384] not found",
            "collection doesn't exist",
            "Not found",
            "Resource not found: collection knowledge_chunks_384",
        ],
    )
    def test_recognised(self, message: str) -> None:
        assert _is_collection_not_found(ValueError(message))

    @pytest.mark.parametrize("message", ["connection refused", "record not found in segment", "timeout"])
    def test_other_errors(self, message: str) -> None:
        assert not _is_collection_not_found(RuntimeError(message))


class TestMetadata:
    def test_flattening(self) -> None:
        meta = _to_chroma_metadata(
            {"doc_id": "d1", "chunk_index": 2, "text": "body", "label": None, "keywords": ["a", "b"]}
        )
        assert meta == {"doc_id": "d1", "chunk_index": 2, "keywords": '["a", "b"]'}

    def test_restores_payload(self) -> None:
        payload = _from_chroma_metadata({"doc_id": "d1", "keywords": '["a"]'}, "body")
        assert payload == {"doc_id": "d1", "keywords": ["a"], "text": "body"}

    def test_missing_document(self) -> None:
        assert _from_chroma_metadata(None, None) == {"text": ""}


# ── Store ───────────────────────────────────────────────────────────────


class TestChromaVectorStore:
    @pytest.mark.asyncio
    async def test_upsert_creates_collection_with_distance(self) -> None:
        client = StubClient()
        store = _store(client, distance="cosine")
        await store.upsert(
            "kc_2", [VectorPoint(id="p1", vector=[0.1, 0.2], payload={"doc_id": "d1", "text": "hello"})]
        )
        assert client.created == [("kc_2", {"hnsw:space": "cosine"})]
        assert client.collections["kc_2"].records["p1"] == {"document": "hello", "metadata": {"doc_id": "d1"}}

    @pytest.mark.asyncio
    async def test_upsert_batches(self) -> None:
        client = StubClient()
        store = _store(client, upsert_batch_size=2)
        points = [VectorPoint(id=f"p{i}", vector=[1.0], payload={"text": str(i)}) for i in range(5)]
        await store.upsert("kc_1", points)
        sizes = [len(kwargs["ids"]) for op, kwargs in client.collections["kc_1"].calls if op == "upsert"]
        assert sizes == [2, 2, 1]

    @pytest.mark.asyncio
    async def test_search_converts_distances(self) -> None:
        client = StubClient()
        collection = client.collections.setdefault("kc_2", StubCollection("kc_2"))
        collection.query_result = {
            "ids": [["p1", "p2"]],
            "documents": [["one", "two"]],
            "metadatas": [[{"doc_id": "d1"}, {"doc_id": "d2"}]],
            "distances": [[0.25, 0.5]],
        }
        hits = await _store(client, distance="cosine").search(
            "kc_2", [1.0, 0.0], k=2, filters=[MetadataFilter.equals("doc_id", "d1")]
        )
        assert [(h.id, h.score) for h in hits] == [("p1", 0.75), ("p2", 0.5)]
        assert hits[0].payload["text"] == "one"
        _, kwargs = collection.calls[0]
        assert kwargs["where"] == {"doc_id": {"$eq": "d1"}}
        assert kwargs["n_results"] == 2

    def test_l2_score(self) -> None:
        assert _store(StubClient(), distance="l2")._to_score(1.0) == 0.5

    @pytest.mark.asyncio
    async def test_missing_collection_reads_as_empty(self) -> None:
        store = _store(StubClient())
        assert await store.search("absent", [1.0], k=3) == []
        assert await store.scroll("absent") == []
        await store.delete("absent", ["p1"])
        await store.delete_by_filter("absent", [MetadataFilter.equals("doc_id", "d1")])

    @pytest.mark.asyncio
    async def test_other_errors_propagate(self) -> None:
        class BrokenClient(StubClient):
            async def get_collection(self, name: str) -> StubCollection:
                raise ConnectionError("connection refused")

        with pytest.raises(ConnectionError):
            await _store(BrokenClient()).scroll("kc_2")

    @pytest.mark.asyncio
    async def test_scroll_pages_through_results(self) -> None:
        client = StubClient()
        store = _store(client, scroll_batch_size=2)
        await store.upsert("kc_1", [VectorPoint(id=f"p{i}", vector=[1.0], payload={"text": str(i)}) for i in range(5)])
        points = await store.scroll("kc_1")
        assert [p.id for p in points] == ["p0", "p1", "p2", "p3", "p4"]
        offsets = [kwargs["offset"] for op, kwargs in client.collections["kc_1"].calls if op == "get"]
        assert offsets == [0, 2, 4]

    @pytest.mark.asyncio
    async def test_delete_by_filter_uses_where(self) -> None:
        client = StubClient()
        store = _store(client)
        await store.upsert("kc_1", [VectorPoint(id="p1", vector=[1.0], payload={"text": "x"})])
        await store.delete_by_filter("kc_1", [MetadataFilter.equals("doc_id", "d1")])
        assert client.collections["kc_1"].calls[-1] == ("delete", {"where": {"doc_id": {"$eq": "d1"}}})

    @pytest.mark.asyncio
    async def test_list_collections_and_health(self) -> None:
        client = StubClient()
        store = _store(client)
        await store.upsert("kc_1", [VectorPoint(id="p1", vector=[1.0], payload={"text": "x"})])
        assert await store.list_collections() == ["kc_1"]
        assert await store.health_check() is True
