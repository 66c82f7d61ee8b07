"""
Pinecone Vector Store

Storage model:
  One shared index (default namespace) holding every document's chunks.
  Documents are separated by the `filename` metadata field; every query
  carries an exact-match filter on it.

  The index is NOT created by the service. It must exist beforehand with
  768 dimensions and the cosine metric; ensure_ready() checks this before
  the first write and fails with a remediation hint otherwise.

The Pinecone SDK is synchronous; every call runs in a worker thread via
asyncio.to_thread so the event loop is never blocked.
"""

from __future__ import annotations

import asyncio
import logging

from fastapi import status
from pinecone import Pinecone
from pinecone.exceptions import NotFoundException, PineconeException

from legaldoc.core.errors import StoreError
from legaldoc.vectorstore.base import ChunkMetadata, QueryResult, VectorRecord, VectorStoreBase

logger = logging.getLogger(__name__)

PINECONE_MAX_TOP_K = 100

_INDEX_HINT = (
    "Please create a Pinecone index named '{name}' with {dims} dimensions "
    "and cosine metric"
)


class PineconeVectorStore(VectorStoreBase):
    """
    Pinecone-backed chunk store.

    The client and index handle are created lazily on first use, so building
    the application without a Pinecone key does not fail at import or
    startup time.
    """

    def __init__(
        self,
        api_key:    str,
        index_name: str,
        dimensions: int = 768,
        client:     Pinecone | None = None,
    ) -> None:
        self._api_key    = api_key
        self._index_name = index_name
        self._dimensions = dimensions
        self._pc         = client
        self._index      = None

    # ------------------------------------------------------------------
    # Lazy handles
    # ------------------------------------------------------------------

    def _client(self) -> Pinecone:
        if self._pc is None:
            self._pc = Pinecone(api_key=self._api_key)
        return self._pc

    def _get_index(self):
        if self._index is None:
            self._index = self._client().Index(self._index_name)
        return self._index

    def _missing_index_error(self) -> StoreError:
        return StoreError(
            f"Pinecone index '{self._index_name}' not found",
            details=_INDEX_HINT.format(name=self._index_name, dims=self._dimensions),
            status_code=status.HTTP_404_NOT_FOUND,
        )

    # ------------------------------------------------------------------
    # Core operations
    # ------------------------------------------------------------------

    async def ensure_ready(self) -> None:
        try:
            description = await asyncio.to_thread(
                self._client().describe_index, self._index_name
            )
        except NotFoundException as exc:
            logger.error("Pinecone index missing | index=%s", self._index_name)
            raise self._missing_index_error() from exc
        except PineconeException as exc:
            logger.error("Pinecone describe_index failed | index=%s error=%s", self._index_name, exc)
            raise StoreError(
                "Failed to access vector database",
                details=str(exc),
            ) from exc

        dimension = getattr(description, "dimension", None)
        if dimension is not None and dimension != self._dimensions:
            raise StoreError(
                f"Pinecone index '{self._index_name}' has {dimension} dimensions, "
                f"expected {self._dimensions}",
                details=_INDEX_HINT.format(name=self._index_name, dims=self._dimensions),
            )

    async def upsert(self, records: list[VectorRecord]) -> int:
        """
        Upsert every record in a single request.
        A short acknowledgement is a batch failure. No per-record retry.
        """
        if not records:
            return 0

        vectors = [
            {
                "id":       rec.id,
                "values":   rec.vector,
                "metadata": rec.metadata.to_store(),
            }
            for rec in records
        ]

        try:
            resp = await asyncio.to_thread(self._get_index().upsert, vectors=vectors)
        except NotFoundException as exc:
            raise self._missing_index_error() from exc
        except PineconeException as exc:
            logger.error("Pinecone upsert failed | index=%s error=%s", self._index_name, exc)
            raise StoreError("Failed to store document vectors", details=str(exc)) from exc

        upserted = getattr(resp, "upserted_count", None)
        if upserted is None:
            upserted = len(vectors)
        if upserted < len(vectors):
            logger.error(
                "Pinecone upsert short | index=%s sent=%d acknowledged=%d",
                self._index_name, len(vectors), upserted,
            )
            raise StoreError(
                "Failed to store document vectors",
                details=f"Store acknowledged {upserted} of {len(vectors)} vectors",
            )

        logger.debug("Pinecone upsert | index=%s vectors=%d", self._index_name, upserted)
        return upserted

    async def query(
        self,
        vector: list[float],
        top_k: int = 30,
        filter: dict | None = None,
    ) -> list[QueryResult]:
        """
        Similarity search restricted by `filter`.
        top_k is capped at 100 (Pinecone limit for metadata-filtered queries).
        """
        top_k = min(top_k, PINECONE_MAX_TOP_K)

        try:
            resp = await asyncio.to_thread(
                self._get_index().query,
                vector=vector,
                top_k=top_k,
                filter=filter,
                include_metadata=True,
                include_values=False,   # values not needed for grounding
            )
        except NotFoundException as exc:
            raise self._missing_index_error() from exc
        except PineconeException as exc:
            logger.error("Pinecone query failed | index=%s error=%s", self._index_name, exc)
            raise StoreError("Failed to query vector database", details=str(exc)) from exc

        results = [
            QueryResult(
                id=match.id,
                score=match.score,
                metadata=ChunkMetadata.from_store(match.metadata or {}),
            )
            for match in (resp.matches or [])
        ]

        logger.debug(
            "Pinecone query | index=%s top_k=%d results=%d",
            self._index_name, top_k, len(results),
        )
        return results
