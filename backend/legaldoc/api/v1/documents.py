"""
Document API Router
POST /api/upload-document
POST /api/analyze-document

Request lifecycle (upload):
  ┌─────────────────────────────────────────────────────────┐
  │ 1. Multipart field `document` (missing → 400)           │
  │ 2. IngestionService: type/size checks, normalize,       │
  │    chunk, embed, ensure index, single upsert            │
  │ 3. 200 with chunk / vector counts                       │
  └─────────────────────────────────────────────────────────┘

Request lifecycle (analysis):
  ┌─────────────────────────────────────────────────────────┐
  │ 1. JSON {analysisType, fileName} (missing → 400)        │
  │ 2. AnalysisService: query embed, filtered retrieval,    │
  │    prompt catalog, model cascade                        │
  │ 3. 200 with analysis text (+ note / warning)            │
  └─────────────────────────────────────────────────────────┘

Pipeline errors (DocumentPipelineError) propagate to the app-level handler;
anything else is logged and answered with a route-specific 500.
"""

from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, File, Request, UploadFile, status
from fastapi.responses import JSONResponse

from legaldoc.api.dependencies import Analysis, Ingestion
from legaldoc.core.errors import DocumentPipelineError
from legaldoc.schemas.documents import (
    AnalysisRequest,
    AnalysisResponse,
    DocumentUploadResponse,
    ErrorResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Documents"])


def _internal_error(request: Request, message: str, exc: Exception) -> JSONResponse:
    request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
    logger.exception("%s | path=%s request_id=%s", message, request.url.path, request_id)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(error=message, details=str(exc) or type(exc).__name__).to_json(),
        headers={"X-Request-ID": request_id},
    )


# ---------------------------------------------------------------------------
# POST /upload-document
# ---------------------------------------------------------------------------

@router.post(
    "/upload-document",
    response_model=DocumentUploadResponse,
    summary="Upload and index a plain-text document",
    responses={
        400: {"model": ErrorResponse, "description": "Missing file, unsupported type, too large or unreadable"},
        404: {"model": ErrorResponse, "description": "Vector index does not exist"},
        500: {"model": ErrorResponse, "description": "Store failure or unexpected error"},
    },
)
async def upload_document(
    request:  Request,
    service:  Ingestion,
    document: UploadFile = File(..., description="Plain text (.txt) file, max 5 MB"),
) -> JSONResponse:
    filename = document.filename or ""
    try:
        raw    = await document.read()
        result = await service.ingest(
            filename=filename,
            raw=raw,
            size=document.size if document.size is not None else len(raw),
        )
    except DocumentPipelineError:
        raise
    except Exception as exc:
        return _internal_error(request, "Failed to process document", exc)
    finally:
        await document.close()

    body = DocumentUploadResponse(
        document_id=result.document_id,
        chunks_created=result.chunks_created,
        vectors_uploaded=result.vectors_uploaded,
        extracted_text_length=result.extracted_text_length,
    )
    return JSONResponse(status_code=status.HTTP_200_OK, content=body.to_json())


# ---------------------------------------------------------------------------
# POST /analyze-document
# ---------------------------------------------------------------------------

@router.post(
    "/analyze-document",
    response_model=AnalysisResponse,
    response_model_exclude_none=True,
    summary="Generate an AI analysis grounded in a stored document",
    responses={
        400: {"model": ErrorResponse, "description": "Missing analysisType or fileName"},
        404: {"model": ErrorResponse, "description": "Document not found"},
        500: {"model": ErrorResponse, "description": "Store failure or unexpected error"},
    },
)
async def analyze_document(
    request: Request,
    payload: AnalysisRequest,
    service: Analysis,
) -> JSONResponse:
    try:
        result = await service.analyze(payload.analysis_type, payload.file_name)
    except DocumentPipelineError:
        raise
    except Exception as exc:
        return _internal_error(request, "Failed to analyze document", exc)

    body = AnalysisResponse(
        analysis=result.text,
        analysis_type=result.analysis_type,
        file_name=result.filename,
        chunks_analyzed=result.chunks_analyzed,
        note=result.note,
        warning=result.warning,
    )
    return JSONResponse(status_code=status.HTTP_200_OK, content=body.to_json())
