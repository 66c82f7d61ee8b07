"""
Integration Tests — POST /api/upload-document, POST /api/analyze-document
═════════════════════════════════════════════════════════════════════════
These tests exercise the FULL FastAPI routing stack, including:
  - Multipart form parsing (field `document`)
  - JSON body parsing with camelCase fields
  - AppContext wiring from app.state
  - Exception handlers → {success: false, error, details}

What is mocked vs real
──────────────────────
  ✅ Real: FastAPI routing, request parsing, Pydantic schemas, normalizer,
           chunker, embedding generator, ingestion/analysis services,
           model cascade, in-memory vector store
  🔲 Fake: OpenAI embeddings   (FakeEmbeddingBackend)
  🔲 Fake: OpenAI chat models  (FakeListChatModel via FakeChatModels)
  🔲 Fake: Pinecone            (InMemoryVectorStore, AsyncMock for failures)

How to run
──────────
  pytest -m integration backend/tests/integration/test_document_api.py -v
"""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from legaldoc.core.errors import StoreError
from legaldoc.llm.fallback import BASIC_WARNING, SECONDARY_NOTE


async def _upload(client, filename: str, content: bytes, content_type: str = "text/plain"):
    return await client.post(
        "/api/upload-document",
        files={"document": (filename, content, content_type)},
    )


async def _analyze(client, analysis_type: str, filename: str):
    return await client.post(
        "/api/analyze-document",
        json={"analysisType": analysis_type, "fileName": filename},
    )


# ─────────────────────────────────────────────────────────────────────────────
# Upload
# ─────────────────────────────────────────────────────────────────────────────

@pytest.mark.integration
class TestUploadEndpoint:

    async def test_upload_success(self, async_client, sentence_document):
        resp = await _upload(async_client, "lease.txt", sentence_document)

        assert resp.status_code == 200
        assert resp.json() == {
            "success":             True,
            "message":             "Document uploaded and processed successfully",
            "documentId":          "lease.txt",
            "chunksCreated":       2,
            "vectorsUploaded":     2,
            "extractedTextLength": 1199,
        }
        assert "X-Request-ID" in resp.headers

    async def test_missing_file_field(self, async_client):
        resp = await async_client.post("/api/upload-document", data={"other": "x"})

        assert resp.status_code == 400
        body = resp.json()
        assert body["success"] is False
        assert body["error"] == "No file provided"

    async def test_pdf_rejected(self, async_client):
        resp = await _upload(async_client, "contract.pdf", b"%PDF-1.4", "application/pdf")

        assert resp.status_code == 400
        assert resp.json()["error"].startswith("PDF files are currently not supported")

    async def test_too_short_rejected(self, async_client):
        resp = await _upload(async_client, "note.txt", b"Too short.")

        assert resp.status_code == 400
        assert resp.json()["error"].startswith("Extracted text is too short")

    async def test_oversized_rejected(self, async_client):
        resp = await _upload(async_client, "huge.txt", b"word " * (1024 * 1024 + 1))

        assert resp.status_code == 400
        assert "Maximum size is 5MB" in resp.json()["error"]

    async def test_missing_index(self, async_client, app_context, sentence_document):
        app_context.store = AsyncMock()
        app_context.store.ensure_ready.side_effect = StoreError(
            "Pinecone index 'legaldoc' not found",
            details="Please create a Pinecone index named 'legaldoc' with 768 dimensions and cosine metric",
            status_code=404,
        )

        resp = await _upload(async_client, "lease.txt", sentence_document)

        assert resp.status_code == 404
        body = resp.json()
        assert body["success"] is False
        assert "768 dimensions" in body["details"]

    async def test_unexpected_error_is_500(self, async_client, app_context, sentence_document):
        app_context.store = AsyncMock()
        app_context.store.upsert.side_effect = ConnectionResetError("connection reset by peer")

        resp = await _upload(async_client, "lease.txt", sentence_document)

        assert resp.status_code == 500
        assert resp.json() == {
            "success": False,
            "error":   "Failed to process document",
            "details": "connection reset by peer",
        }


# ─────────────────────────────────────────────────────────────────────────────
# Analysis
# ─────────────────────────────────────────────────────────────────────────────

@pytest.mark.integration
class TestAnalyzeEndpoint:

    async def test_upload_then_risks_analysis(self, async_client, chat_models, sentence_document):
        chat_models.responses["gpt-4o-mini"] = ["HIGH: no termination clause."]
        await _upload(async_client, "lease.txt", sentence_document)

        resp = await _analyze(async_client, "risks", "lease.txt")

        assert resp.status_code == 200
        assert resp.json() == {
            "success":        True,
            "analysis":       "HIGH: no termination clause.",
            "analysisType":   "risks",
            "fileName":       "lease.txt",
            "chunksAnalyzed": 2,
        }

    async def test_fallback_model_note(self, async_client, chat_models, lease_document):
        chat_models.failing.add("gpt-4o-mini")
        await _upload(async_client, "lease.txt", lease_document)

        body = (await _analyze(async_client, "summarize", "lease.txt")).json()

        assert body["note"] == SECONDARY_NOTE
        assert body["analysis"] == "Analysis by gpt-4o"
        assert "warning" not in body

    async def test_basic_extraction_warning(self, async_client, chat_models, lease_document):
        chat_models.failing.update({"gpt-4o-mini", "gpt-4o"})
        await _upload(async_client, "lease.txt", lease_document)

        body = (await _analyze(async_client, "key-terms", "lease.txt")).json()

        assert body["success"] is True
        assert body["warning"] == BASIC_WARNING
        assert "Key Terms & Clauses" in body["analysis"]
        assert "note" not in body

    async def test_unknown_document_404(self, async_client):
        resp = await _analyze(async_client, "summarize", "never-uploaded.txt")

        assert resp.status_code == 404
        assert resp.json() == {"success": False, "error": "Document not found in database"}

    @pytest.mark.parametrize("payload", [
        {"analysisType": "risks"},
        {"fileName": "lease.txt"},
        {"analysisType": "", "fileName": "lease.txt"},
        {},
    ])
    async def test_missing_fields_400(self, async_client, payload):
        resp = await async_client.post("/api/analyze-document", json=payload)

        assert resp.status_code == 400
        assert resp.json()["error"] == "Missing analysis type or file name"

    async def test_unknown_type_uses_summary_template(self, async_client, lease_document):
        await _upload(async_client, "lease.txt", lease_document)

        resp = await _analyze(async_client, "compliance", "lease.txt")

        assert resp.status_code == 200
        assert resp.json()["analysisType"] == "compliance"


@pytest.mark.integration
class TestOperations:

    async def test_health(self, async_client):
        resp = await async_client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"

    async def test_request_id_echoed(self, async_client):
        resp = await async_client.get("/health", headers={"X-Request-ID": "req-123"})
        assert resp.headers["X-Request-ID"] == "req-123"
