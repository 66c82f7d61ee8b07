"""
In-process vector store for local development and tests.

Brute-force cosine similarity over everything written since startup.
Supports the subset of the Pinecone filter language the services use:
field equality via {"field": {"$eq": value}} or {"field": value}, and
"$and" lists of those.
"""

from __future__ import annotations

import asyncio
import logging
import math

from legaldoc.vectorstore.base import QueryResult, VectorRecord, VectorStoreBase

logger = logging.getLogger(__name__)


def cosine_similarity(a: list[float], b: list[float]) -> float:
    dot    = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)


def _matches(payload: dict, filter: dict | None) -> bool:
    if not filter:
        return True
    for key, condition in filter.items():
        if key == "$and":
            if not all(_matches(payload, sub) for sub in condition):
                return False
            continue
        expected = condition.get("$eq") if isinstance(condition, dict) else condition
        if payload.get(key) != expected:
            return False
    return True


class InMemoryVectorStore(VectorStoreBase):

    def __init__(self) -> None:
        self._records: dict[str, VectorRecord] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._records)

    async def ensure_ready(self) -> None:
        return None

    async def upsert(self, records: list[VectorRecord]) -> int:
        async with self._lock:
            for rec in records:
                self._records[rec.id] = rec
        logger.debug("Memory upsert | vectors=%d total=%d", len(records), len(self._records))
        return len(records)

    async def query(
        self,
        vector: list[float],
        top_k: int = 30,
        filter: dict | None = None,
    ) -> list[QueryResult]:
        async with self._lock:
            candidates = [
                rec for rec in self._records.values()
                if _matches(rec.metadata.to_store(), filter)
            ]

        scored = sorted(
            (
                QueryResult(
                    id=rec.id,
                    score=cosine_similarity(vector, rec.vector),
                    metadata=rec.metadata,
                )
                for rec in candidates
            ),
            key=lambda r: r.score,
            reverse=True,
        )
        return scored[:top_k]
