"""
Application configuration via environment variables (12-factor).
Pydantic BaseSettings validates and coerces all values at startup.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # ------------------------------------------------------------------
    # Vector Store
    # ------------------------------------------------------------------
    vector_store_backend: str = "pinecone"   # "pinecone" | "memory"

    # Pinecone
    pinecone_api_key:    str = ""
    pinecone_index_name: str = "legaldoc"

    # ------------------------------------------------------------------
    # Embeddings
    # ------------------------------------------------------------------
    openai_api_key:       str = ""
    embedding_model:      str = "text-embedding-3-small"
    embedding_dimensions: int = 768

    embedding_delay_seconds: float = 0.1          # pacing between backend calls
    embedding_fallback:      str   = "sentinel"   # "sentinel" | "random"

    # ------------------------------------------------------------------
    # LLM: PRIMARY → SECONDARY → basic extraction
    # ------------------------------------------------------------------
    llm_primary_model:   str   = "gpt-4o-mini"
    llm_secondary_model: str   = "gpt-4o"
    llm_temperature:     float = 0.1
    llm_max_tokens:      int   = 4000

    # ------------------------------------------------------------------
    # Ingestion / retrieval
    # ------------------------------------------------------------------
    chunk_size:          int = 1000
    chunk_overlap:       int = 200
    max_chunks:          int = 30     # embedding cost ceiling per document
    query_top_k:         int = 30     # >= max_chunks so a whole document comes back
    max_upload_bytes:    int = 5 * 1024 * 1024
    min_document_chars:  int = 50
    basic_excerpt_chars: int = 500

    # ------------------------------------------------------------------
    # Application
    # ------------------------------------------------------------------
    app_env: str = "development"   # development | staging | production
    debug: bool = False
    cors_origins: list[str] = []   # JSON list; "*" is used in development

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
