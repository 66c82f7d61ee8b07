"""
Document Processing Package
════════════════════════════

The ingestion half of the pipeline:

  Raw bytes → Normalization → Overlap Chunking → Rate-Limited Embedding

Modules
───────
  normalizer.py  Decoding, cleaning and readability scoring
  chunking.py    Boundary-aware fixed-window chunker with overlap
  rate_limit.py  Token-bucket pacing for embedding backend calls
  embeddings.py  Sequential embedding with flagged fallback vectors

Every component is stateless apart from the per-ingestion rate limiter,
and every step emits pipe-delimited log lines.
"""

from legaldoc.processing.chunking import ChunkResult, OverlapChunker
from legaldoc.processing.embeddings import Embedding, EmbeddingGenerator
from legaldoc.processing.normalizer import clean_text, is_valid, normalize

__all__ = [
    "ChunkResult",
    "OverlapChunker",
    "Embedding",
    "EmbeddingGenerator",
    "clean_text",
    "is_valid",
    "normalize",
]
