"""
Root conftest.py — Shared fixtures for ALL tests (unit + integration)

Fixture hierarchy:
  function-scoped : test_settings, embedding_backend, memory_store,
                    chat_models, app_context, app, async_client

Environment strategy:
  - No test talks to OpenAI or Pinecone.
  - Embeddings come from FakeEmbeddingBackend (deterministic per text).
  - Vectors live in InMemoryVectorStore.
  - Chat models are LangChain FakeListChatModel instances built by
    FakeChatModels, which can also be told to fail for a model id.
  - Embedding pacing is disabled (EMBEDDING_DELAY_SECONDS=0).

How to run:
  pytest                          # all tests
  pytest -m unit                  # unit tests only (fast, no I/O)
  pytest -m integration           # API tests over ASGITransport
  pytest backend/tests/unit/test_chunking.py
"""

from __future__ import annotations

import os
import random
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from langchain_core.language_models.fake_chat_models import FakeListChatModel

# ─────────────────────────────────────────────────────────────────────────────
# Patch settings BEFORE any app imports so modules read test config
# ─────────────────────────────────────────────────────────────────────────────

os.environ.setdefault("VECTOR_STORE_BACKEND",    "memory")
os.environ.setdefault("OPENAI_API_KEY",          "sk-test-key")
os.environ.setdefault("PINECONE_API_KEY",        "pc-test-key")
os.environ.setdefault("PINECONE_INDEX_NAME",     "legaldoc-test")
os.environ.setdefault("EMBEDDING_DELAY_SECONDS", "0")
os.environ.setdefault("APP_ENV",                 "development")
os.environ.setdefault("DEBUG",                   "true")

DIMENSIONS = 768


# ─────────────────────────────────────────────────────────────────────────────
# Fakes
# ─────────────────────────────────────────────────────────────────────────────

class FakeEmbeddingBackend:
    """
    Deterministic embedding backend: the same text always maps to the same
    768-dim vector. Records every text it was asked to embed.

    fail_on  : texts (or substrings) that make embed() raise
    fail_all : every call raises
    """

    def __init__(self, dimensions: int = DIMENSIONS) -> None:
        self.dimensions = dimensions
        self.calls: list[str] = []
        self.fail_on: set[str] = set()
        self.fail_all = False

    async def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        if self.fail_all or any(marker in text for marker in self.fail_on):
            raise RuntimeError("embedding backend unavailable")
        rng = random.Random(text)
        return [rng.uniform(-1.0, 1.0) for _ in range(self.dimensions)]


class FakeChatModels:
    """
    Chat model factory for the model cascade.

        chat_models.responses["gpt-4o-mini"] = ["primary answer"]
        chat_models.failing.add("gpt-4o-mini")   # construction raises
    """

    def __init__(self) -> None:
        self.responses: dict[str, list[str]] = {}
        self.failing: set[str] = set()
        self.built: list[str] = []

    def __call__(self, model_id: str) -> FakeListChatModel:
        self.built.append(model_id)
        if model_id in self.failing:
            raise RuntimeError(f"{model_id} unavailable")
        return FakeListChatModel(
            responses=self.responses.get(model_id, [f"Analysis by {model_id}"]),
        )


# ─────────────────────────────────────────────────────────────────────────────
# Core fixtures
# ─────────────────────────────────────────────────────────────────────────────

@pytest.fixture
def test_settings():
    from legaldoc.core.config import Settings
    return Settings(
        vector_store_backend="memory",
        openai_api_key="sk-test-key",
        embedding_delay_seconds=0,
        embedding_fallback="sentinel",
        app_env="development",
    )


@pytest.fixture
def embedding_backend() -> FakeEmbeddingBackend:
    return FakeEmbeddingBackend()


@pytest.fixture
def memory_store():
    from legaldoc.vectorstore.memory_store import InMemoryVectorStore
    return InMemoryVectorStore()


@pytest.fixture
def chat_models() -> FakeChatModels:
    return FakeChatModels()


@pytest.fixture
def app_context(test_settings, embedding_backend, memory_store, chat_models):
    """AppContext wired entirely with fakes."""
    from legaldoc.core.context import build_context
    return build_context(
        test_settings,
        embedding_backend=embedding_backend,
        store=memory_store,
        model_factory=chat_models,
    )


@pytest.fixture
def embedder(app_context):
    return app_context.embedder


# ─────────────────────────────────────────────────────────────────────────────
# Sample documents
# ─────────────────────────────────────────────────────────────────────────────

@pytest.fixture
def sentence_document() -> bytes:
    """1200 raw characters of repeated sentences (1199 after cleaning → 2 chunks)."""
    return ("This is a sentence. " * 60).encode()


@pytest.fixture
def lease_document() -> bytes:
    """A short, realistic residential lease."""
    return (
        "RESIDENTIAL LEASE AGREEMENT\n\n"
        "This Lease Agreement is made on January 1, 2024 between Jane Landlord "
        "(\"Landlord\") and John Tenant (\"Tenant\").\n\n"
        "1. TERM. The lease term begins on February 1, 2024 and ends on January 31, 2025.\n"
        "2. RENT. Tenant shall pay $1,500 per month, due on the first day of each month. "
        "A late fee of $75 applies after the fifth day.\n"
        "3. SECURITY DEPOSIT. Tenant shall deposit $1,500, refundable within 30 days "
        "of move-out less lawful deductions.\n"
        "4. TERMINATION. Either party may terminate with 60 days written notice. "
        "Early termination by Tenant forfeits the security deposit.\n"
    ).encode()


# ─────────────────────────────────────────────────────────────────────────────
# FastAPI test client
# ─────────────────────────────────────────────────────────────────────────────

@pytest.fixture
def app(app_context):
    """FastAPI app built around the fake-backed AppContext."""
    from legaldoc.main import create_app
    return create_app(context=app_context)


@pytest_asyncio.fixture
async def async_client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP test client.

    httpx >= 0.28 removed the 'app=' shortcut; use ASGITransport explicitly.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
