"""
Document Upload & Analysis — Pydantic Request/Response Schemas

Wire format is camelCase (documentId, chunksCreated, analysisType, ...);
Python attributes stay snake_case via the to_camel alias generator.

Every failure, whatever its status code, uses the same envelope:
    {"success": false, "error": "<message>", "details": "<optional hint>"}
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ---------------------------------------------------------------------------
# POST /api/upload-document
# ---------------------------------------------------------------------------

class DocumentUploadResponse(_CamelModel):
    success:               bool = True
    message:               str  = "Document uploaded and processed successfully"
    document_id:           str  = Field(..., description="Document key (the uploaded filename)")
    chunks_created:        int
    vectors_uploaded:      int
    extracted_text_length: int


# ---------------------------------------------------------------------------
# POST /api/analyze-document
# ---------------------------------------------------------------------------

class AnalysisRequest(_CamelModel):
    analysis_type: str = Field(..., min_length=1, description="summarize | detailed | risks | key-terms | plain-english")
    file_name:     str = Field(..., min_length=1, description="Filename used at upload time")


class AnalysisResponse(_CamelModel):
    success:         bool = True
    analysis:        str
    analysis_type:   str
    file_name:       str
    chunks_analyzed: int
    note:            str | None = None
    warning:         str | None = None


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class ErrorResponse(_CamelModel):
    """Uniform error envelope for all 4xx/5xx responses."""
    success: bool       = False
    error:   str        = Field(..., description="Human-readable summary")
    details: str | None = Field(None, description="Remediation hint or underlying error")
