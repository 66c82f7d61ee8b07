"""
Composed FastAPI Dependencies

Route handlers import services from here, never from core/context or the
service modules directly. The AppContext lives on app.state (set by
create_app) and hands out one service object per request.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from legaldoc.core.context import AppContext
from legaldoc.services.analysis import AnalysisService
from legaldoc.services.ingestion import IngestionService


def get_context(request: Request) -> AppContext:
    return request.app.state.context


def get_ingestion_service(
    context: Annotated[AppContext, Depends(get_context)],
) -> IngestionService:
    return context.ingestion_service()


def get_analysis_service(
    context: Annotated[AppContext, Depends(get_context)],
) -> AnalysisService:
    return context.analysis_service()


# ---------------------------------------------------------------------------
# Type aliases for cleaner route signatures
# ---------------------------------------------------------------------------

Ingestion = Annotated[IngestionService, Depends(get_ingestion_service)]
Analysis  = Annotated[AnalysisService,  Depends(get_analysis_service)]
