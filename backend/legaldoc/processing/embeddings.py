"""
Embedding Generator  —  Sequential, Rate-Limited, Never Fails
══════════════════════════════════════════════════════════════

Design goals:
  • One backend call per chunk, never batched. External rate limits are
    tight and a per-chunk failure must stay local to that chunk.
  • Calls are paced by a RateLimiter (≈100 ms apart by default).
  • Availability over precision: an unreadable chunk or a failed backend
    call yields a *fallback vector* instead of an exception. Ingestion of a
    document never fails because one chunk could not be embedded.
  • Fallback vectors are flagged (`Embedding.degraded`) and the flag is
    persisted in the vector record, so retrieval quality problems are
    diagnosable rather than silently masked.

OpenAI embedding model:
  text-embedding-3-small with dimensions=768  (the store is provisioned
  with 768 dims; text-embedding-3-* models support shortened outputs)

Fallback strategies:
  sentinel → constant vector (deterministic, identical for every failure)
  random   → uniform values in [0, 0.01)  (legacy behaviour)

  The sentinel is a small constant rather than all zeros: cosine-metric
  indexes reject zero vectors.
"""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass
from typing import Callable, Protocol, Sequence

from legaldoc.core.errors import EmbeddingBackendError
from legaldoc.processing.normalizer import is_valid
from legaldoc.processing.rate_limit import RateLimiter, UnlimitedLimiter

logger = logging.getLogger(__name__)

EMBEDDING_DIMENSIONS = 768

SENTINEL_VALUE = 1e-3
RANDOM_RANGE   = (0.0, 0.01)


# ---------------------------------------------------------------------------
# Result dataclass
# ---------------------------------------------------------------------------

@dataclass
class Embedding:
    """
    One embedding vector.

    degraded : True when `values` is a fallback vector with no semantic meaning
    reason   : why the fallback was used ("invalid_text" | "backend_error")
    """
    values:   list[float]
    degraded: bool = False
    reason:   str | None = None


# ---------------------------------------------------------------------------
# Fallback vectors
# ---------------------------------------------------------------------------

class FallbackVectorFactory:
    """Builds placeholder vectors for chunks/queries that could not be embedded."""

    STRATEGIES = ("sentinel", "random")

    def __init__(
        self,
        dimensions: int = EMBEDDING_DIMENSIONS,
        strategy:   str = "sentinel",
        rng:        random.Random | None = None,
    ) -> None:
        if strategy not in self.STRATEGIES:
            raise ValueError(
                f"Unknown embedding fallback strategy: '{strategy}'. "
                f"Valid options: {', '.join(self.STRATEGIES)}"
            )
        self._dimensions = dimensions
        self._strategy   = strategy
        self._rng        = rng or random.Random()

    @property
    def strategy(self) -> str:
        return self._strategy

    def build(self, reason: str) -> Embedding:
        if self._strategy == "random":
            low, high = RANDOM_RANGE
            values = [self._rng.uniform(low, high) for _ in range(self._dimensions)]
        else:
            values = [SENTINEL_VALUE] * self._dimensions
        return Embedding(values=values, degraded=True, reason=reason)


# ---------------------------------------------------------------------------
# Backends
# ---------------------------------------------------------------------------

class EmbeddingBackend(Protocol):
    async def embed(self, text: str) -> list[float]:
        """Return the raw embedding for one text. May raise anything."""
        ...


class OpenAIEmbeddingBackend:
    """
    Single-input calls to the OpenAI embeddings endpoint.

    One AsyncOpenAI client per backend, created on the first call, so a
    missing API key surfaces as a per-chunk failure (fallback vector) rather
    than an import-time crash. aclose() releases its connection pool.
    """

    def __init__(
        self,
        api_key:    str,
        model:      str = "text-embedding-3-small",
        dimensions: int = EMBEDDING_DIMENSIONS,
    ) -> None:
        self._api_key    = api_key
        self._model      = model
        self._dimensions = dimensions
        self._client     = None

    def _get_client(self):
        if self._client is None:
            from openai import AsyncOpenAI
            self._client = AsyncOpenAI(api_key=self._api_key)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None

    async def embed(self, text: str) -> list[float]:
        client = self._get_client()
        t_api  = time.monotonic()

        response = await client.embeddings.create(
            model=self._model,
            input=[text],
            dimensions=self._dimensions,
        )

        logger.debug(
            "OpenAI embeddings | model=%s chars=%d api_ms=%.0f",
            self._model, len(text), (time.monotonic() - t_api) * 1000,
        )

        if not response.data:
            raise EmbeddingBackendError("Embedding response contained no data")
        return list(response.data[0].embedding)


# ---------------------------------------------------------------------------
# Generator
# ---------------------------------------------------------------------------

class EmbeddingGenerator:
    """
    Turns chunk texts and analysis queries into fixed-length vectors.

    Usage:
        generator  = EmbeddingGenerator(backend, limiter_factory=lambda: build_limiter(0.1))
        embeddings = await generator.embed_chunks([c.text for c in chunks])
        query_vec  = await generator.embed_query("risks analysis of lease.txt")

    Never raises for backend or validation problems; see module docstring.
    """

    def __init__(
        self,
        backend:         EmbeddingBackend,
        dimensions:      int = EMBEDDING_DIMENSIONS,
        limiter_factory: Callable[[], RateLimiter] | None = None,
        fallback:        FallbackVectorFactory | None = None,
    ) -> None:
        self._backend         = backend
        self._dimensions      = dimensions
        self._limiter_factory = limiter_factory or UnlimitedLimiter
        self._fallback        = fallback or FallbackVectorFactory(dimensions=dimensions)

    @property
    def dimensions(self) -> int:
        return self._dimensions

    async def aclose(self) -> None:
        """Release backend resources (HTTP clients), if the backend holds any."""
        close = getattr(self._backend, "aclose", None)
        if close is not None:
            await close()

    # ------------------------------------------------------------------
    # Public entry points
    # ------------------------------------------------------------------

    async def embed_chunks(self, texts: Sequence[str]) -> list[Embedding]:
        """
        Embed chunk texts strictly in order, one backend call at a time.

        Returns exactly one Embedding per input text.
        """
        limiter = self._limiter_factory()
        t0 = time.monotonic()

        embeddings: list[Embedding] = []
        for idx, text in enumerate(texts):
            if not is_valid(text):
                logger.warning(
                    "Embedding skipped | chunk=%d reason=invalid_text preview=%r",
                    idx, text[:100],
                )
                embeddings.append(self._fallback.build("invalid_text"))
                continue

            await limiter.acquire()
            embeddings.append(await self._embed_one(text, label=f"chunk={idx}"))

        degraded = sum(1 for e in embeddings if e.degraded)
        logger.info(
            "EmbeddingGenerator done | chunks=%d degraded=%d elapsed_ms=%.0f",
            len(embeddings), degraded, (time.monotonic() - t0) * 1000,
        )
        return embeddings

    async def embed_query(self, text: str) -> Embedding:
        """Embed one analysis query; falls back to a placeholder on failure."""
        return await self._embed_one(text, label="query")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _embed_one(self, text: str, label: str) -> Embedding:
        try:
            values = await self._backend.embed(text)
            self._check_dimensions(values)
        except Exception as exc:
            logger.warning(
                "Embedding fallback | %s reason=backend_error error=%s: %s",
                label, type(exc).__name__, exc,
            )
            return self._fallback.build("backend_error")
        return Embedding(values=values)

    def _check_dimensions(self, values: list[float]) -> None:
        if len(values) != self._dimensions:
            raise EmbeddingBackendError(
                f"Expected {self._dimensions}-dim embedding, got {len(values)}"
            )
