"""Chroma implementation of the vector-store abstraction."""

from __future__ import annotations

import json
import logging
import re
from typing import Any

import chromadb

from knowledge_index.config import settings
from knowledge_index.retrieval.base import VectorStoreBase
from knowledge_index.retrieval.models import MetadataFilter, ScoredPoint, VectorPoint

logger = logging.getLogger(__name__)

# Payload keys stored outside Chroma's flat metadata.
_TEXT_KEY = "text"
_JSON_KEYS = ("keywords",)

_NOT_FOUND_PATTERNS = [
    re.compile(r"collection\b.*\bnot found", re.IGNORECASE),
    re.compile(r"collection\b.*\b(?:does ?not|doesn't) exist", re.IGNORECASE),
    re.compile(r"not found.*\bcollection", re.IGNORECASE),
]


def _build_chroma_where(filters: list[MetadataFilter]) -> dict[str, Any] | None:
    """Convert a list of :class:`MetadataFilter` to Chroma ``where`` syntax."""
    if not filters:
        return None

    _OP_MAP = {
        "eq": "$eq",
        "ne": "$ne",
        "gt": "$gt",
        "gte": "$gte",
        "lt": "$lt",
        "lte": "$lte",
        "in": "$in",
        "nin": "$nin",
    }

    clauses: list[dict[str, Any]] = []
    for f in filters:
        chroma_op = _OP_MAP.get(f.operator)
        if chroma_op is None:
            raise ValueError(f"Unsupported filter operator: {f.operator!r}")
        clauses.append({f.field: {chroma_op: f.value}})

    if len(clauses) == 1:
        return clauses[0]
    return {"$and": clauses}


def _is_collection_not_found(error: Exception) -> bool:
    """Whether *error* means the collection does not exist.

    Chroma reports a missing collection with different exception types
    across releases, so only the message is reliable.
    """
    message = str(error).strip().lower()
    if message == "not found":
        return True
    return any(p.search(message) for p in _NOT_FOUND_PATTERNS)


def _to_chroma_metadata(payload: dict[str, Any]) -> dict[str, Any]:
    """Flatten a point payload into Chroma metadata (str/int/float/bool only)."""
    meta: dict[str, Any] = {}
    for key, value in payload.items():
        if key == _TEXT_KEY or value is None:
            continue
        if key in _JSON_KEYS:
            meta[key] = json.dumps(value)
        elif isinstance(value, (str, int, float, bool)):
            meta[key] = value
        else:
            meta[key] = str(value)
    return meta


def _from_chroma_metadata(meta: dict[str, Any] | None, document: str | None) -> dict[str, Any]:
    payload: dict[str, Any] = dict(meta or {})
    for key in _JSON_KEYS:
        raw = payload.get(key)
        if isinstance(raw, str):
            payload[key] = json.loads(raw)
    payload[_TEXT_KEY] = document or ""
    return payload


class ChromaVectorStore(VectorStoreBase):
    """Chroma-backed vector store using the async HTTP client.

    Parameters
    ----------
    host:
        Chroma server hostname.
    port:
        Chroma server port.
    distance:
        HNSW space for newly created collections (``cosine`` | ``l2`` | ``ip``).
    scroll_batch_size:
        Page size used by :meth:`scroll`.
    upsert_batch_size:
        Max records per upsert call.
    """

    def __init__(
        self,
        *,
        host: str = settings.chroma_host,
        port: int = settings.chroma_port,
        distance: str = settings.chroma_distance,
        scroll_batch_size: int = settings.chroma_scroll_batch_size,
        upsert_batch_size: int = 5000,
    ) -> None:
        self._host = host
        self._port = port
        self._distance = distance
        self._scroll_batch_size = scroll_batch_size
        self._upsert_batch_size = upsert_batch_size
        self._client: Any = None
        self._collections: dict[str, Any] = {}

    # -- client / collection handling -----------------------------------------

    async def _get_client(self) -> Any:
        if self._client is None:
            self._client = await chromadb.AsyncHttpClient(host=self._host, port=self._port)
        return self._client

    async def _get_or_create(self, name: str) -> Any:
        collection = self._collections.get(name)
        if collection is None:
            client = await self._get_client()
            collection = await client.get_or_create_collection(
                name=name,
                metadata={"hnsw:space": self._distance},
            )
            self._collections[name] = collection
        return collection

    async def _get_existing(self, name: str) -> Any | None:
        collection = self._collections.get(name)
        if collection is not None:
            return collection
        client = await self._get_client()
        try:
            collection = await client.get_collection(name=name)
        except Exception as exc:
            if _is_collection_not_found(exc):
                return None
            raise
        self._collections[name] = collection
        return collection

    def _to_score(self, distance: float) -> float:
        if self._distance == "cosine":
            return 1.0 - distance
        if self._distance == "ip":
            return -distance
        # L2 distances; convert to a 0-1 similarity score.
        return 1.0 / (1.0 + distance)

    # -- VectorStoreBase overrides --------------------------------------------

    async def upsert(self, collection: str, points: list[VectorPoint]) -> None:
        if not points:
            return
        target = await self._get_or_create(collection)
        for start in range(0, len(points), self._upsert_batch_size):
            batch = points[start : start + self._upsert_batch_size]
            await target.upsert(
                ids=[p.id for p in batch],
                embeddings=[p.vector for p in batch],
                documents=[p.payload.get(_TEXT_KEY, "") for p in batch],
                metadatas=[_to_chroma_metadata(p.payload) for p in batch],
            )

    async def search(
        self,
        collection: str,
        vector: list[float],
        *,
        k: int = 5,
        filters: list[MetadataFilter] | None = None,
    ) -> list[ScoredPoint]:
        if not vector or k <= 0:
            return []
        target = await self._get_existing(collection)
        if target is None:
            return []

        results = await target.query(
            query_embeddings=[vector],
            n_results=k,
            where=_build_chroma_where(filters) if filters else None,
            include=["documents", "metadatas", "distances"],
        )

        ids = (results.get("ids") or [[]])[0]
        docs = (results.get("documents") or [[]])[0]
        metas = (results.get("metadatas") or [[]])[0]
        distances = (results.get("distances") or [[]])[0]

        return [
            ScoredPoint(
                id=str(point_id),
                payload=_from_chroma_metadata(meta, doc),
                score=self._to_score(dist),
            )
            for point_id, doc, meta, dist in zip(ids, docs, metas, distances)
        ]

    async def scroll(
        self,
        collection: str,
        *,
        filters: list[MetadataFilter] | None = None,
    ) -> list[ScoredPoint]:
        target = await self._get_existing(collection)
        if target is None:
            return []

        where = _build_chroma_where(filters) if filters else None
        out: list[ScoredPoint] = []
        offset = 0
        while True:
            page = await target.get(
                where=where,
                limit=self._scroll_batch_size,
                offset=offset,
                include=["documents", "metadatas"],
            )
            ids = page.get("ids") or []
            docs = page.get("documents") or [None] * len(ids)
            metas = page.get("metadatas") or [None] * len(ids)
            for point_id, doc, meta in zip(ids, docs, metas):
                out.append(ScoredPoint(id=str(point_id), payload=_from_chroma_metadata(meta, doc)))

            if len(ids) < self._scroll_batch_size:
                break
            offset += len(ids)
        return out

    async def delete(self, collection: str, ids: list[str]) -> None:
        if not ids:
            return
        target = await self._get_existing(collection)
        if target is None:
            return
        await target.delete(ids=ids)

    async def delete_by_filter(self, collection: str, filters: list[MetadataFilter]) -> None:
        target = await self._get_existing(collection)
        if target is None:
            return
        await target.delete(where=_build_chroma_where(filters))

    async def list_collections(self) -> list[str]:
        client = await self._get_client()
        collections = await client.list_collections()
        # Older clients return names, newer ones return collection objects.
        return [getattr(c, "name", c) for c in collections]

    async def health_check(self) -> bool:
        try:
            client = await self._get_client()
            await client.heartbeat()
            return True
        except Exception:
            logger.warning("Chroma health-check failed", exc_info=True)
            return False
