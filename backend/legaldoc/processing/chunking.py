"""
Overlap Chunker  —  Boundary-Aware Fixed-Window Segmentation
═════════════════════════════════════════════════════════════

Splits normalized document text into windows of at most `chunk_size`
characters, each sharing `overlap` characters with its predecessor.

Boundary search
───────────────
  A naive window ends at cursor + chunk_size. When that is not the end of
  the text we look backwards for:

    1. the last "." at or before the cut   → window ends just after it
    2. otherwise the last " "              → window ends on it

  and only accept the boundary if it lies beyond the window midpoint
  (cursor + chunk_size / 2) and beyond cursor + overlap. Sparse
  punctuation therefore degrades to a hard cut instead of a run of
  micro-chunks.

  The next window starts exactly `overlap` characters before the previous
  end. Because every end lies past cursor + overlap, the cursor always
  moves forward and the shared overlap is the same for every pair of
  neighbouring chunks, even when overlap exceeds half the window.

Normalized input has no newlines (the normalizer collapses all whitespace
to single spaces), so there is no paragraph logic here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 1000
DEFAULT_OVERLAP    = 200
MAX_CHUNKS         = 30


@dataclass
class ChunkResult:
    """A single chunk of one document, ready for embedding."""
    filename:     str    # source document (partition key in the vector store)
    chunk_index:  int    # 0-based ordering within the document
    total_chunks: int
    text:         str

    @property
    def char_count(self) -> int:
        return len(self.text)


def _check_params(chunk_size: int, overlap: int) -> None:
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    if overlap < 0:
        raise ValueError(f"overlap must not be negative, got {overlap}")
    if overlap >= chunk_size:
        raise ValueError(
            f"overlap ({overlap}) must be smaller than chunk_size ({chunk_size})"
        )


def split_text(
    text:       str,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    overlap:    int = DEFAULT_OVERLAP,
) -> list[str]:
    """
    Split `text` into ordered, overlapping, non-empty chunk strings.

    Raises:
        ValueError: if overlap >= chunk_size (the cursor could stall).
    """
    _check_params(chunk_size, overlap)

    chunks: list[str] = []
    length = len(text)
    start  = 0
    min_offset = max(chunk_size / 2, overlap)

    while start < length:
        end = start + chunk_size

        if end < length:
            last_sentence = text.rfind(".", start, end)
            last_space    = text.rfind(" ", start, end + 1)

            if last_sentence > start + min_offset:
                end = last_sentence + 1   # include the period
            elif last_space > start + min_offset:
                end = last_space

        chunk = text[start:end].strip()
        if chunk:
            chunks.append(chunk)

        if end >= length:
            break

        start = end - overlap

    return chunks


class OverlapChunker:
    """
    Stateless chunker bound to one (chunk_size, overlap, max_chunks) config.

    Usage:
        chunker = OverlapChunker(chunk_size=1000, overlap=200, max_chunks=30)
        chunks  = chunker.chunk(text, filename="lease.txt")
    """

    def __init__(
        self,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        overlap:    int = DEFAULT_OVERLAP,
        max_chunks: int = MAX_CHUNKS,
    ) -> None:
        _check_params(chunk_size, overlap)
        self.chunk_size = chunk_size
        self.overlap    = overlap
        self.max_chunks = max_chunks

    def split(self, text: str) -> list[str]:
        return split_text(text, self.chunk_size, self.overlap)

    def chunk(self, text: str, filename: str) -> list[ChunkResult]:
        """
        Split `text` and wrap the first `max_chunks` pieces as ChunkResults.

        Pieces beyond the cap are discarded, not queued.
        """
        pieces = self.split(text)
        if len(pieces) > self.max_chunks:
            logger.warning(
                "OverlapChunker | file=%s chunks=%d exceeds cap=%d, truncating",
                filename, len(pieces), self.max_chunks,
            )
            pieces = pieces[: self.max_chunks]

        results = [
            ChunkResult(
                filename=filename,
                chunk_index=idx,
                total_chunks=len(pieces),
                text=piece,
            )
            for idx, piece in enumerate(pieces)
        ]

        logger.info(
            "OverlapChunker | file=%s chunks=%d avg_chars=%.0f",
            filename, len(results),
            sum(c.char_count for c in results) / max(1, len(results)),
        )
        return results
