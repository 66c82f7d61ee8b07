"""
Generative Model Invoker — single entry point for analysis generation.

  ┌──────────────────────────────────────────────┐
  │  GenerativeModelInvoker.invoke(prompt)       │
  │       │                                      │
  │       ▼                                      │
  │  FallbackChain.ainvoke                       │
  │    PRIMARY → SECONDARY → BASIC_EXTRACTION    │
  │       │                                      │
  │       ▼                                      │
  │  CascadeResult (text, tier, note, warning)   │
  └──────────────────────────────────────────────┘

Usage::

    invoker = GenerativeModelInvoker.from_settings(settings)
    result  = await invoker.invoke(prompt)
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from langchain_core.language_models.chat_models import BaseChatModel

from legaldoc.core.config import Settings
from legaldoc.llm.fallback import (
    SECONDARY_NOTE,
    AnalysisPrompt,
    BasicExtractionStrategy,
    CascadeResult,
    ChatModelStrategy,
    FallbackChain,
    ModelTier,
)

logger = logging.getLogger(__name__)

ChatModelFactory = Callable[[str], BaseChatModel]


def openai_chat_factory(settings: Settings) -> ChatModelFactory:
    """Build ChatOpenAI instances for a model id with the configured sampling."""

    def build(model_id: str) -> BaseChatModel:
        from langchain_openai import ChatOpenAI
        return ChatOpenAI(
            model=model_id,
            api_key=settings.openai_api_key,
            temperature=settings.llm_temperature,
            max_tokens=settings.llm_max_tokens,
        )

    return build


class GenerativeModelInvoker:
    """Runs an analysis prompt through the model cascade."""

    def __init__(self, chain: FallbackChain) -> None:
        self._chain = chain

    @classmethod
    def from_settings(
        cls,
        settings:      Settings,
        model_factory: ChatModelFactory | None = None,
    ) -> "GenerativeModelInvoker":
        """
        PRIMARY and SECONDARY use `model_factory` (ChatOpenAI by default);
        the terminal tier is always basic extraction.
        """
        build = model_factory or openai_chat_factory(settings)
        primary_id   = settings.llm_primary_model
        secondary_id = settings.llm_secondary_model

        chain = FallbackChain([
            ChatModelStrategy(
                ModelTier.PRIMARY, primary_id, lambda: build(primary_id),
            ),
            ChatModelStrategy(
                ModelTier.SECONDARY, secondary_id, lambda: build(secondary_id),
                note=SECONDARY_NOTE,
            ),
            BasicExtractionStrategy(excerpt_chars=settings.basic_excerpt_chars),
        ])
        return cls(chain)

    async def invoke(self, prompt: AnalysisPrompt) -> CascadeResult:
        t0     = time.perf_counter()
        result = await self._chain.ainvoke(prompt)

        logger.info(
            "GenerativeModelInvoker | file=%s type=%s tier=%s prompt_chars=%d "
            "output_chars=%d latency_ms=%.1f",
            prompt.filename, prompt.analysis_type, result.tier.value,
            len(prompt.content), len(result.text), (time.perf_counter() - t0) * 1000,
        )
        return result
