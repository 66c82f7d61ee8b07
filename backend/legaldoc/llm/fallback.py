"""
Model Fallback Cascade — Ordered Strategies, First Success Wins

An analysis prompt is sent down an explicit, ordered list of strategies.
The first strategy that returns text ends the cascade; a failing strategy
is logged and the next one is tried. There is no retry within a tier.

Default cascade:
  1. PRIMARY           gpt-4o-mini                     (no annotation)
  2. SECONDARY         gpt-4o, identical prompt        (note)
  3. BASIC_EXTRACTION  deterministic excerpt, no model (warning)

BASIC_EXTRACTION cannot fail, so with the default cascade the caller
always gets text. ModelInvocationError only escapes a cascade built
without a terminal tier.

Chat models are constructed inside the tier attempt: a ChatOpenAI that
cannot be built (missing API key) is just another tier failure.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Protocol

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import HumanMessage

from legaldoc.core.errors import ModelInvocationError
from legaldoc.llm.prompts import format_label

logger = logging.getLogger(__name__)

SECONDARY_NOTE = "Used fallback model due to primary model unavailability"
BASIC_WARNING  = "AI analysis unavailable - showing basic content extraction"

BASIC_EXCERPT_CHARS = 500


class ModelTier(str, Enum):
    PRIMARY          = "primary"
    SECONDARY        = "secondary"
    BASIC_EXTRACTION = "basic_extraction"


# ---------------------------------------------------------------------------
# Prompt + result
# ---------------------------------------------------------------------------

@dataclass
class AnalysisPrompt:
    """Everything a tier needs to produce an analysis."""
    analysis_type: str
    filename:      str
    template:      str
    content:       str      # retrieved chunk texts joined with blank lines
    section_count: int      # number of retrieved matches

    def render(self) -> str:
        return f"{self.template}\n\nDocument Content:\n{self.content}"


@dataclass
class CascadeResult:
    text:     str
    tier:     ModelTier
    model_id: str | None = None
    note:     str | None = None
    warning:  str | None = None


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

class CascadeStrategy(Protocol):
    tier: ModelTier

    async def run(self, prompt: AnalysisPrompt) -> CascadeResult:
        ...


class ChatModelStrategy:
    """One generative model tier backed by a LangChain chat model."""

    def __init__(
        self,
        tier:     ModelTier,
        model_id: str,
        factory:  Callable[[], BaseChatModel],
        note:     str | None = None,
    ) -> None:
        self.tier     = tier
        self.model_id = model_id
        self._factory = factory
        self._note    = note

    async def run(self, prompt: AnalysisPrompt) -> CascadeResult:
        llm    = self._factory()
        result = await llm.ainvoke([HumanMessage(content=prompt.render())])

        text = result.content if isinstance(result.content, str) else ""
        if not text.strip():
            raise ModelInvocationError(f"{self.model_id} returned an empty response")

        return CascadeResult(
            text=text,
            tier=self.tier,
            model_id=self.model_id,
            note=self._note,
        )


class BasicExtractionStrategy:
    """Terminal tier: plain excerpt of the retrieved content, no model call."""

    tier = ModelTier.BASIC_EXTRACTION

    def __init__(self, excerpt_chars: int = BASIC_EXCERPT_CHARS) -> None:
        self._excerpt_chars = excerpt_chars

    def render(self, prompt: AnalysisPrompt) -> str:
        excerpt = prompt.content[: self._excerpt_chars]
        return (
            f"Document Analysis for {prompt.filename}\n"
            f"\n"
            f"Analysis Type: {format_label(prompt.analysis_type)}\n"
            f"\n"
            f"Content Summary:\n"
            f"The document contains {prompt.section_count} sections of content.\n"
            f"\n"
            f"Key Content Preview:\n"
            f"{excerpt}...\n"
            f"\n"
            f"Note: AI analysis is currently unavailable. This is a basic content "
            f"extraction. Please try again later for full AI-powered analysis."
        )

    async def run(self, prompt: AnalysisPrompt) -> CascadeResult:
        return CascadeResult(
            text=self.render(prompt),
            tier=self.tier,
            warning=BASIC_WARNING,
        )


# ---------------------------------------------------------------------------
# FallbackChain
# ---------------------------------------------------------------------------

class FallbackChain:
    """
    Ordered cascade of strategies.

    Usage::

        chain  = FallbackChain([primary, secondary, BasicExtractionStrategy()])
        result = await chain.ainvoke(prompt)

    Stateless per call and safe to share across requests.
    """

    def __init__(self, strategies: list[CascadeStrategy]) -> None:
        if not strategies:
            raise ValueError("FallbackChain needs at least one strategy")
        self._strategies = list(strategies)

    @property
    def tiers(self) -> list[ModelTier]:
        return [s.tier for s in self._strategies]

    async def ainvoke(self, prompt: AnalysisPrompt) -> CascadeResult:
        """
        Run strategies in order until one succeeds.

        Raises:
            ModelInvocationError: if every strategy failed.
        """
        errors: list[str] = []

        for strategy in self._strategies:
            t0 = time.perf_counter()
            try:
                result = await strategy.run(prompt)
            except Exception as exc:
                err = f"{strategy.tier.value}: {type(exc).__name__}: {exc}"
                logger.warning("FallbackChain | tier failed | %s", err)
                errors.append(err)
                continue

            logger.info(
                "FallbackChain | tier=%s model=%s latency_ms=%.1f",
                result.tier.value, result.model_id, (time.perf_counter() - t0) * 1000,
            )
            return result

        raise ModelInvocationError(
            "All analysis models failed",
            details="; ".join(errors),
        )
