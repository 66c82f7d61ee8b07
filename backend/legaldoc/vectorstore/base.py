"""
Vector Store — Abstract Base

Every concrete vector store backend (Pinecone, in-memory) implements this
interface. The ingestion and analysis services only speak this protocol,
so backends are swappable without touching pipeline or API code.

Document partitioning contract (enforced by the services):
  - Every chunk record carries its source `filename` in metadata.
  - Every analysis query filters on {"filename": {"$eq": <name>}}.
  - Re-uploading a filename adds records; nothing is deduplicated.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


# ---------------------------------------------------------------------------
# Shared data types
# ---------------------------------------------------------------------------

class ChunkMetadata(BaseModel):
    """
    Payload stored alongside every chunk vector.

    Serialized with camelCase keys (fileSize, uploadDate, chunkIndex, ...)
    which is the on-index schema. Records with missing or malformed fields
    are rejected here, never defaulted.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    filename:     str = Field(min_length=1)
    file_size:    int = Field(ge=0)
    upload_date:  datetime
    chunk_index:  int = Field(ge=0)
    total_chunks: int = Field(ge=1)
    content:      str
    file_type:    str
    degraded:     bool = False

    @model_validator(mode="after")
    def _index_within_total(self) -> "ChunkMetadata":
        if self.chunk_index >= self.total_chunks:
            raise ValueError(
                f"chunkIndex ({self.chunk_index}) must be < totalChunks ({self.total_chunks})"
            )
        return self

    def to_store(self) -> dict:
        """Flat JSON-safe dict as written to the index (uploadDate as ISO-8601)."""
        return self.model_dump(by_alias=True, mode="json")

    @classmethod
    def from_store(cls, payload: dict) -> "ChunkMetadata":
        return cls.model_validate(payload)


@dataclass
class VectorRecord:
    """A single chunk embedding to upsert into the vector store."""
    id:       str                  # <safe filename>_chunk_<i>_<epoch ms>
    vector:   list[float]
    metadata: ChunkMetadata


@dataclass
class QueryResult:
    """One result returned from a similarity search."""
    id:       str
    score:    float                # cosine similarity
    metadata: ChunkMetadata
    text:     str = field(default="")   # convenience alias for metadata.content

    def __post_init__(self) -> None:
        if not self.text:
            self.text = self.metadata.content


# ---------------------------------------------------------------------------
# Abstract interface
# ---------------------------------------------------------------------------

class VectorStoreBase(ABC):
    """Chunk vector store shared by all documents, partitioned by filename filter."""

    @abstractmethod
    async def ensure_ready(self) -> None:
        """
        Verify the backing index exists and is usable.
        Raises StoreError with a remediation hint when it is not.
        """

    @abstractmethod
    async def upsert(self, records: list[VectorRecord]) -> int:
        """
        Write all records in one batched call.
        Returns the number of vectors acknowledged; raises StoreError when
        the store acknowledges fewer than were sent.
        """

    @abstractmethod
    async def query(
        self,
        vector: list[float],
        top_k: int = 30,
        filter: dict | None = None,
    ) -> list[QueryResult]:
        """Nearest-neighbour search, highest score first, restricted by `filter`."""


def filename_filter(filename: str) -> dict:
    """Exact-match metadata filter selecting one document's chunks."""
    return {"filename": {"$eq": filename}}
