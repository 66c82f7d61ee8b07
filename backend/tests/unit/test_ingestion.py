"""
Unit Tests — IngestionService
══════════════════════════════
Covers every branch of the ingestion pipeline with the fake embedding
backend and the in-memory store from conftest.py.

  ✅ Valid .txt → records stored, counts returned
  ✅ Record ids sanitized, unique per upload, shared timestamp
  ✅ Typed metadata (camelCase, ISO upload date, degraded flag)
  ✅ .pdf / .docx / .doc / other → ExtractionError with specific hint
  ✅ > 5 MB → DocumentValidationError
  ✅ Empty / too short / unreadable → DocumentValidationError
  ✅ Non-UTF-8 bytes with no readable reading → ExtractionError
  ✅ Missing index → StoreError before any upsert
  ✅ Chunk cap respected
  ✅ Re-upload adds records (no dedup)
"""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from legaldoc.core.errors import DocumentValidationError, ExtractionError, StoreError
from legaldoc.processing.chunking import OverlapChunker
from legaldoc.services.ingestion import (
    IngestionService,
    UploadErrors,
    get_extension,
    record_id,
)
from legaldoc.vectorstore import filename_filter

FIXED_NOW = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)
FIXED_MS  = 1709294400000


@pytest.fixture
def make_service(embedder, memory_store):
    """Factory: build an IngestionService with injected fakes."""
    def _build(store=None, chunker=None, clock=lambda: FIXED_NOW, **kwargs):
        return IngestionService(
            embedder=embedder,
            store=memory_store if store is None else store,
            chunker=chunker if chunker is not None else OverlapChunker(),
            clock=clock,
            **kwargs,
        )
    return _build


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────

@pytest.mark.unit
class TestHelpers:

    @pytest.mark.parametrize("filename,ext", [
        ("lease.txt", ".txt"),
        ("LEASE.TXT", ".txt"),
        ("archive.tar.gz", ".gz"),
        ("README", ""),
    ])
    def test_get_extension(self, filename, ext):
        assert get_extension(filename) == ext

    def test_record_id_sanitized(self):
        assert record_id("my lease (v2).txt", 3, FIXED_MS) == f"my_lease__v2_.txt_chunk_3_{FIXED_MS}"


# ─────────────────────────────────────────────────────────────────────────────
# Happy path
# ─────────────────────────────────────────────────────────────────────────────

@pytest.mark.unit
class TestIngestionHappyPath:

    async def test_sentence_document_two_chunks(self, make_service, memory_store, sentence_document):
        result = await make_service().ingest("lease.txt", sentence_document)

        assert result.document_id == "lease.txt"
        assert result.chunks_created == 2
        assert result.vectors_uploaded == 2
        assert result.extracted_text_length == 1199
        assert result.degraded_chunks == 0
        assert len(memory_store) == 2

    async def test_records_carry_typed_metadata(self, make_service, memory_store, sentence_document):
        await make_service().ingest("lease.txt", sentence_document, size=1200)

        results = await memory_store.query([1.0] * 768, top_k=30, filter=filename_filter("lease.txt"))
        by_index = {r.metadata.chunk_index: r for r in results}

        assert set(by_index) == {0, 1}
        first = by_index[0]
        assert first.id == f"lease.txt_chunk_0_{FIXED_MS}"
        assert first.metadata.to_store()["uploadDate"] == "2024-03-01T12:00:00Z"
        assert first.metadata.file_size == 1200
        assert first.metadata.total_chunks == 2
        assert first.metadata.file_type == ".txt"
        assert first.metadata.degraded is False

    async def test_degraded_chunks_flagged(self, make_service, memory_store, embedding_backend, sentence_document):
        embedding_backend.fail_all = True

        result = await make_service().ingest("lease.txt", sentence_document)

        assert result.chunks_created == 2
        assert result.degraded_chunks == 2
        stored = await memory_store.query([1.0] * 768, filter=filename_filter("lease.txt"))
        assert all(r.metadata.degraded for r in stored)

    async def test_reupload_adds_records(self, make_service, memory_store, lease_document):
        stamps = iter([FIXED_NOW, FIXED_NOW.replace(minute=5)])
        service = make_service(clock=lambda: next(stamps))

        first = await service.ingest("lease.txt", lease_document)
        await service.ingest("lease.txt", lease_document)

        assert len(memory_store) == 2 * first.vectors_uploaded

    async def test_chunk_cap(self, make_service, memory_store):
        text = " ".join(f"Clause {i} binds the parties and their successors." for i in range(200))
        service = make_service(chunker=OverlapChunker(chunk_size=300, overlap=50, max_chunks=4))

        result = await service.ingest("long.txt", text.encode())

        assert result.chunks_created == 4
        assert len(memory_store) == 4


# ─────────────────────────────────────────────────────────────────────────────
# Rejections
# ─────────────────────────────────────────────────────────────────────────────

@pytest.mark.unit
class TestIngestionRejections:

    async def test_pdf_rejected_with_hint(self, make_service):
        with pytest.raises(ExtractionError) as exc_info:
            await make_service().ingest("contract.pdf", b"%PDF-1.4 ...")
        assert exc_info.value.message == UploadErrors.PDF_HINT
        assert exc_info.value.status_code == 400

    @pytest.mark.parametrize("filename,label", [("contract.docx", "DOCX"), ("contract.doc", "DOC")])
    async def test_word_rejected_with_hint(self, make_service, filename, label):
        with pytest.raises(ExtractionError) as exc_info:
            await make_service().ingest(filename, b"PK\x03\x04")
        assert exc_info.value.message.startswith(f"{label} files are not yet supported")

    async def test_other_extension_rejected(self, make_service):
        with pytest.raises(ExtractionError) as exc_info:
            await make_service().ingest("image.png", b"\x89PNG")
        assert exc_info.value.message == UploadErrors.UNSUPPORTED

    async def test_oversized_rejected(self, make_service, lease_document):
        with pytest.raises(DocumentValidationError) as exc_info:
            await make_service().ingest("lease.txt", lease_document, size=6 * 1024 * 1024)
        assert "Maximum size is 5MB" in exc_info.value.message

    async def test_empty_text_rejected(self, make_service):
        with pytest.raises(DocumentValidationError) as exc_info:
            await make_service().ingest("blank.txt", b"   \n\t  ")
        assert exc_info.value.message == UploadErrors.NO_TEXT

    async def test_short_text_rejected(self, make_service):
        with pytest.raises(DocumentValidationError) as exc_info:
            await make_service().ingest("short.txt", b"Too short to analyze.")
        assert exc_info.value.message == UploadErrors.TOO_SHORT

    async def test_unreadable_text_rejected(self, make_service):
        garbled = ("#$%^&*@~`|" * 10 + "ok").encode()
        with pytest.raises(DocumentValidationError) as exc_info:
            await make_service().ingest("garbled.txt", garbled)
        assert exc_info.value.message == UploadErrors.UNREADABLE

    async def test_undecodable_binary_rejected(self, make_service, memory_store):
        binary = (b"\x00\x89" + bytes(range(33, 48))) * 20
        with pytest.raises(ExtractionError) as exc_info:
            await make_service().ingest("scan.txt", binary)
        assert exc_info.value.status_code == 400
        assert exc_info.value.message.startswith("Failed to read text file")
        assert len(memory_store) == 0

    async def test_missing_index_aborts_before_upsert(self, make_service, lease_document):
        store = AsyncMock()
        store.ensure_ready.side_effect = StoreError("Pinecone index 'legaldoc' not found", status_code=404)

        with pytest.raises(StoreError):
            await make_service(store=store).ingest("lease.txt", lease_document)
        store.upsert.assert_not_called()

    async def test_nothing_stored_on_rejection(self, make_service, memory_store):
        with pytest.raises(DocumentValidationError):
            await make_service().ingest("short.txt", b"tiny")
        assert len(memory_store) == 0
