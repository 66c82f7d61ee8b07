"""
FastAPI Application — Entry Point

Legal Document Analysis API

Architecture:
  - Routes live under /api/ (upload-document, analyze-document)
  - Pipeline collaborators are built once into an AppContext on app.state
  - Uniform {success: false, error, details} bodies on all 4xx/5xx

Middleware stack (innermost → outermost):
  1. CORS: open in development, configured origins otherwise
  2. Request ID + request logging, X-Request-ID on every response
"""

from __future__ import annotations

import logging
import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from legaldoc.api.v1.documents import router as documents_router
from legaldoc.core.config import Settings, get_settings
from legaldoc.core.context import AppContext, build_context
from legaldoc.core.errors import DocumentPipelineError
from legaldoc.schemas.documents import ErrorResponse

logger = logging.getLogger(__name__)

logging.basicConfig(
    level=logging.DEBUG if get_settings().debug else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)

# Request validation failures are reported with the route's own wording
_VALIDATION_MESSAGES: dict[str, str] = {
    "/api/upload-document":  "No file provided",
    "/api/analyze-document": "Missing analysis type or file name",
}


def _error_response(
    status_code: int,
    error:       str,
    details:     str | None,
    request_id:  str,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, details=details).to_json(),
        headers={"X-Request-ID": request_id},
    )


def _request_id(request: Request) -> str:
    return request.headers.get("X-Request-ID") or str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Application lifespan — startup / shutdown hooks
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.context.settings
    logger.info(
        "Starting Legal Document Analyzer | env=%s vector_store=%s index=%s "
        "embedding_model=%s llm=%s→%s",
        settings.app_env, settings.vector_store_backend, settings.pinecone_index_name,
        settings.embedding_model, settings.llm_primary_model, settings.llm_secondary_model,
    )
    yield
    logger.info("Shutting down Legal Document Analyzer")
    await app.state.context.aclose()


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------

def create_app(context: AppContext | None = None) -> FastAPI:
    settings = context.settings if context is not None else get_settings()

    app = FastAPI(
        title="Legal Document Analyzer",
        description=(
            "Upload plain-text legal documents and request AI-generated analyses "
            "(summary, detailed analysis, risks, key terms, plain English) grounded "
            "in the document's own content."
        ),
        version="1.0.0",
        docs_url="/api/docs" if not settings.is_production else None,
        redoc_url="/api/redoc" if not settings.is_production else None,
        openapi_url="/api/openapi.json" if not settings.is_production else None,
        lifespan=lifespan,
    )
    app.state.context = context or build_context(settings)

    # ----------------------------------------------------------------
    # Middleware (applied in reverse order, last added = outermost)
    # ----------------------------------------------------------------

    allowed_origins = ["*"] if settings.app_env == "development" else settings.cors_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type", "X-Request-ID"],
        expose_headers=["X-Request-ID"],
    )

    @app.middleware("http")
    async def request_id_and_logging(request: Request, call_next):
        request_id = _request_id(request)
        start = time.perf_counter()

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start) * 1000
        response.headers["X-Request-ID"] = request_id

        logger.info(
            "HTTP %s %s %d %.1fms | request_id=%s",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            request_id,
        )
        return response

    # ----------------------------------------------------------------
    # Exception handlers: uniform structured error responses
    # ----------------------------------------------------------------

    @app.exception_handler(DocumentPipelineError)
    async def pipeline_exception_handler(request: Request, exc: DocumentPipelineError):
        level = logging.ERROR if exc.status_code >= 500 else logging.WARNING
        logger.log(
            level,
            "Pipeline error | path=%s status=%d error=%s details=%s",
            request.url.path, exc.status_code, exc.message, exc.details,
        )
        return _error_response(exc.status_code, exc.message, exc.details, _request_id(request))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Missing/invalid request fields → 400 with the route's message."""
        details = "; ".join(
            f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}"
            for err in exc.errors()
        )
        error = _VALIDATION_MESSAGES.get(request.url.path, "Request validation failed")
        return _error_response(
            status.HTTP_400_BAD_REQUEST, error, details, _request_id(request),
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        """Catch-all for unhandled exceptions. Never exposes stack traces."""
        request_id = _request_id(request)
        logger.exception(
            "Unhandled exception | path=%s request_id=%s",
            request.url.path, request_id,
        )
        return _error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "An unexpected error occurred",
            type(exc).__name__,
            request_id,
        )

    # ----------------------------------------------------------------
    # Routers
    # ----------------------------------------------------------------

    app.include_router(documents_router, prefix="/api")

    @app.get(
        "/health",
        tags=["Operations"],
        summary="Liveness probe",
        description="Returns 200 if the process is alive. No external checks.",
    )
    async def health() -> dict:
        return {"status": "ok", "service": "legaldoc-api"}

    return app


# ---------------------------------------------------------------------------
# Application instance (imported by uvicorn)
# ---------------------------------------------------------------------------

app = create_app()


# ---------------------------------------------------------------------------
# Local development entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    import uvicorn

    _settings = get_settings()
    uvicorn.run(
        "legaldoc.main:app",
        host="0.0.0.0",
        port=8000,
        reload=_settings.app_env == "development",
        log_level="debug" if _settings.debug else "info",
        access_log=True,
    )
