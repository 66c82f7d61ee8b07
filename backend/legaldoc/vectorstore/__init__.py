from legaldoc.vectorstore.base import (
    ChunkMetadata,
    QueryResult,
    VectorRecord,
    VectorStoreBase,
    filename_filter,
)
from legaldoc.vectorstore.factory import get_vector_store

__all__ = [
    "ChunkMetadata",
    "VectorStoreBase",
    "VectorRecord",
    "QueryResult",
    "filename_filter",
    "get_vector_store",
]
