"""
Vector Store Factory

Selects the backend (Pinecone | in-memory) from config. The services only
receive a VectorStoreBase and never touch the concrete classes.

The store is built once per application by build_context() and lives on
app.state; there is no module-level client.
"""

from __future__ import annotations

from legaldoc.core.config import Settings
from legaldoc.vectorstore.base import VectorStoreBase


def get_vector_store(settings: Settings) -> VectorStoreBase:
    """Return the vector store for the configured backend."""
    backend = settings.vector_store_backend.lower()

    if backend == "pinecone":
        from legaldoc.vectorstore.pinecone_store import PineconeVectorStore
        return PineconeVectorStore(
            api_key=settings.pinecone_api_key,
            index_name=settings.pinecone_index_name,
            dimensions=settings.embedding_dimensions,
        )

    if backend == "memory":
        from legaldoc.vectorstore.memory_store import InMemoryVectorStore
        return InMemoryVectorStore()

    raise ValueError(
        f"Unknown vector store backend: '{backend}'. "
        f"Valid options: 'pinecone', 'memory'"
    )
