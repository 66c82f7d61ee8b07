"""
Pipeline error taxonomy.

Every error raised by the ingestion / analysis pipeline derives from
DocumentPipelineError and carries the HTTP status the API layer should
answer with, a human-readable message and optional remediation details.

  ExtractionError          400  unsupported format, undecodable bytes
  DocumentValidationError  400  text too short / unreadable
  EmbeddingBackendError    --   absorbed per chunk (fallback vector)
  StoreError               500  vector store write/query failure, missing index
  ModelInvocationError     502  every cascade tier failed
  DocumentNotFoundError    404  no chunks stored for the requested filename
"""

from __future__ import annotations

from fastapi import status


class DocumentPipelineError(Exception):
    """Base class, converted to an ErrorResponse by the app exception handler."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message:     str,
        details:     str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details
        if status_code is not None:
            self.status_code = status_code


class ExtractionError(DocumentPipelineError):
    status_code = status.HTTP_400_BAD_REQUEST


class DocumentValidationError(DocumentPipelineError):
    status_code = status.HTTP_400_BAD_REQUEST


class EmbeddingBackendError(DocumentPipelineError):
    """Raised by embedding backends; the generator never lets it escape."""


class StoreError(DocumentPipelineError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class ModelInvocationError(DocumentPipelineError):
    status_code = status.HTTP_502_BAD_GATEWAY


class DocumentNotFoundError(DocumentPipelineError):
    status_code = status.HTTP_404_NOT_FOUND
