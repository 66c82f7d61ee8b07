"""
Document Ingestion Service

Orchestrates the upload pipeline:
  1. Validate extension (.txt only) and size (5 MB cap)
  2. Normalize raw bytes → clean text (TextNormalizer)
  3. Reject empty / too-short / unreadable documents
  4. Chunk (≤ 30 overlapping windows)
  5. Embed every chunk sequentially, rate-limited, fallback-tolerant
  6. Verify the vector index exists
  7. Build typed records and upsert them in ONE batch
  8. Return an IngestionResult

Record ids: <filename with [^a-zA-Z0-9.-] → "_">_chunk_<i>_<epoch ms>.
The upload timestamp is taken once per ingestion, so every chunk of one
upload shares it; a later re-upload of the same filename gets new ids and
adds records alongside the old ones.
"""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from legaldoc.core.errors import DocumentValidationError, ExtractionError
from legaldoc.processing.chunking import OverlapChunker
from legaldoc.processing.embeddings import EmbeddingGenerator
from legaldoc.processing.normalizer import is_valid, normalize
from legaldoc.vectorstore.base import ChunkMetadata, VectorRecord, VectorStoreBase

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = frozenset({".txt"})

_UNSAFE_ID_CHARS_RE = re.compile(r"[^a-zA-Z0-9.\-]")

# ---------------------------------------------------------------------------
# User-facing messages
# ---------------------------------------------------------------------------

class UploadErrors:
    NO_FILE        = "No file provided"
    TOO_LARGE      = "File size too large. Maximum size is {max_mb}MB."
    UNSUPPORTED    = (
        "Currently only plain text (.txt) files are supported. "
        "Please convert your document to a text file and try again."
    )
    PDF_HINT       = (
        "PDF files are currently not supported due to text extraction limitations. "
        "Please convert your PDF to a text (.txt) file and upload that instead."
    )
    WORD_HINT      = (
        "{ext} files are not yet supported. Please save your document as a "
        "plain text (.txt) file and upload that instead."
    )
    NO_TEXT        = "No text could be extracted from the file"
    TOO_SHORT      = "Extracted text is too short. Please check if the file contains readable text."
    UNREADABLE     = (
        "The uploaded file contains corrupted or unreadable text. "
        "Please ensure it's a valid text file."
    )
    NO_CHUNKS      = "No chunks could be created from the document"


def get_extension(filename: str) -> str:
    """Lowercased extension including the dot ("" when there is none)."""
    parts = filename.rsplit(".", 1)
    return f".{parts[-1].lower()}" if len(parts) == 2 else ""


def safe_record_prefix(filename: str) -> str:
    return _UNSAFE_ID_CHARS_RE.sub("_", filename)


def record_id(filename: str, chunk_index: int, epoch_ms: int) -> str:
    return f"{safe_record_prefix(filename)}_chunk_{chunk_index}_{epoch_ms}"


@dataclass
class IngestionResult:
    document_id:           str     # the filename
    chunks_created:        int
    vectors_uploaded:      int
    extracted_text_length: int
    degraded_chunks:       int = 0


class IngestionService:
    """
    Stateless per-request orchestrator; all collaborators are injected.

    `clock` returns the current UTC datetime (overridable in tests).
    """

    def __init__(
        self,
        embedder:           EmbeddingGenerator,
        store:              VectorStoreBase,
        chunker:            OverlapChunker,
        max_upload_bytes:   int = 5 * 1024 * 1024,
        min_document_chars: int = 50,
        clock:              Callable[[], datetime] | None = None,
    ) -> None:
        self._embedder           = embedder
        self._store              = store
        self._chunker            = chunker
        self._max_upload_bytes   = max_upload_bytes
        self._min_document_chars = min_document_chars
        self._clock              = clock or (lambda: datetime.now(timezone.utc))

    # ------------------------------------------------------------------
    # Public entry point
    # ------------------------------------------------------------------

    async def ingest(
        self,
        filename:  str,
        raw:       bytes,
        size:      int | None = None,
    ) -> IngestionResult:
        """
        Run the full ingestion pipeline for one uploaded document.

        Raises:
            ExtractionError:         unsupported type or undecodable bytes
            DocumentValidationError: too large, empty, too short, unreadable
            StoreError:              index missing or upsert failed
        """
        size = len(raw) if size is None else size
        t0   = time.monotonic()
        logger.info("Ingest start | file=%s size=%d", filename, size)

        extension = self._validate_upload(filename, size)
        text      = self._extract_text(raw)

        chunks = self._chunker.chunk(text, filename=filename)
        if not chunks:
            raise DocumentValidationError(UploadErrors.NO_CHUNKS)

        embeddings = await self._embedder.embed_chunks([c.text for c in chunks])

        await self._store.ensure_ready()

        uploaded_at = self._clock()
        epoch_ms    = int(uploaded_at.timestamp() * 1000)

        records = [
            VectorRecord(
                id=record_id(filename, chunk.chunk_index, epoch_ms),
                vector=embedding.values,
                metadata=ChunkMetadata(
                    filename=filename,
                    file_size=size,
                    upload_date=uploaded_at,
                    chunk_index=chunk.chunk_index,
                    total_chunks=chunk.total_chunks,
                    content=chunk.text,
                    file_type=extension,
                    degraded=embedding.degraded,
                ),
            )
            for chunk, embedding in zip(chunks, embeddings)
        ]

        uploaded = await self._store.upsert(records)
        degraded = sum(1 for e in embeddings if e.degraded)

        logger.info(
            "Ingest done | file=%s chars=%d chunks=%d vectors=%d degraded=%d elapsed_ms=%.0f",
            filename, len(text), len(chunks), uploaded, degraded,
            (time.monotonic() - t0) * 1000,
        )

        return IngestionResult(
            document_id=filename,
            chunks_created=len(chunks),
            vectors_uploaded=uploaded,
            extracted_text_length=len(text),
            degraded_chunks=degraded,
        )

    # ------------------------------------------------------------------
    # Validation helpers
    # ------------------------------------------------------------------

    def _validate_upload(self, filename: str, size: int) -> str:
        if size > self._max_upload_bytes:
            raise DocumentValidationError(
                UploadErrors.TOO_LARGE.format(max_mb=self._max_upload_bytes // (1024 * 1024))
            )

        extension = get_extension(filename)
        if extension in ALLOWED_EXTENSIONS:
            return extension

        if extension == ".pdf":
            raise ExtractionError(UploadErrors.PDF_HINT)
        if extension in (".docx", ".doc"):
            raise ExtractionError(
                UploadErrors.WORD_HINT.format(ext=extension[1:].upper())
            )
        raise ExtractionError(UploadErrors.UNSUPPORTED)

    def _extract_text(self, raw: bytes) -> str:
        text = normalize(raw)

        if not text.strip():
            raise DocumentValidationError(UploadErrors.NO_TEXT)
        if len(text) < self._min_document_chars:
            raise DocumentValidationError(UploadErrors.TOO_SHORT)
        if not is_valid(text):
            raise DocumentValidationError(UploadErrors.UNREADABLE)

        logger.debug("Extracted %d characters of valid text", len(text))
        return text
