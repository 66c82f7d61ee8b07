"""
Application context — the single wiring point for pipeline collaborators.

build_context() turns Settings into one AppContext holding the embedding
generator, vector store, chunker and model invoker. main.create_app()
stores it on app.state; route dependencies pull per-request services from
it. Nothing here opens a network connection: API clients are created
lazily by the components themselves.

Tests build their own AppContext (fake embedding backend, in-memory store,
fake chat models) and pass it to create_app().
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import partial

from legaldoc.core.config import Settings
from legaldoc.llm.gateway import ChatModelFactory, GenerativeModelInvoker
from legaldoc.processing.chunking import OverlapChunker
from legaldoc.processing.embeddings import (
    EmbeddingBackend,
    EmbeddingGenerator,
    FallbackVectorFactory,
    OpenAIEmbeddingBackend,
)
from legaldoc.processing.rate_limit import build_limiter
from legaldoc.services.analysis import AnalysisService
from legaldoc.services.ingestion import IngestionService
from legaldoc.vectorstore.base import VectorStoreBase
from legaldoc.vectorstore.factory import get_vector_store


@dataclass
class AppContext:
    settings: Settings
    embedder: EmbeddingGenerator
    store:    VectorStoreBase
    chunker:  OverlapChunker
    invoker:  GenerativeModelInvoker

    def ingestion_service(self) -> IngestionService:
        return IngestionService(
            embedder=self.embedder,
            store=self.store,
            chunker=self.chunker,
            max_upload_bytes=self.settings.max_upload_bytes,
            min_document_chars=self.settings.min_document_chars,
        )

    def analysis_service(self) -> AnalysisService:
        return AnalysisService(
            embedder=self.embedder,
            store=self.store,
            invoker=self.invoker,
            top_k=self.settings.query_top_k,
        )

    async def aclose(self) -> None:
        await self.embedder.aclose()


def build_context(
    settings:          Settings,
    embedding_backend: EmbeddingBackend | None = None,
    store:             VectorStoreBase | None = None,
    model_factory:     ChatModelFactory | None = None,
) -> AppContext:
    """Build the application context; any collaborator may be overridden."""
    if embedding_backend is None:
        embedding_backend = OpenAIEmbeddingBackend(
            api_key=settings.openai_api_key,
            model=settings.embedding_model,
            dimensions=settings.embedding_dimensions,
        )
    if store is None:
        store = get_vector_store(settings)

    embedder = EmbeddingGenerator(
        backend=embedding_backend,
        dimensions=settings.embedding_dimensions,
        # fresh limiter per ingestion
        limiter_factory=partial(build_limiter, settings.embedding_delay_seconds),
        fallback=FallbackVectorFactory(
            dimensions=settings.embedding_dimensions,
            strategy=settings.embedding_fallback,
        ),
    )

    return AppContext(
        settings=settings,
        embedder=embedder,
        store=store,
        chunker=OverlapChunker(
            chunk_size=settings.chunk_size,
            overlap=settings.chunk_overlap,
            max_chunks=settings.max_chunks,
        ),
        invoker=GenerativeModelInvoker.from_settings(settings, model_factory=model_factory),
    )
