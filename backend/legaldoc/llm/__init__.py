"""
LLM Package

Analysis generation over OpenAI chat models with a three-tier fallback:
  - PRIMARY            (gpt-4o-mini)
  - SECONDARY          (gpt-4o, same prompt, annotated with a note)
  - BASIC_EXTRACTION   (deterministic excerpt, annotated with a warning)

Public API::

    from legaldoc.llm import GenerativeModelInvoker, AnalysisPrompt

    invoker = GenerativeModelInvoker.from_settings(settings)
    result  = await invoker.invoke(prompt)
"""

from legaldoc.llm.fallback import AnalysisPrompt, CascadeResult, FallbackChain, ModelTier
from legaldoc.llm.gateway import GenerativeModelInvoker
from legaldoc.llm.prompts import AnalysisType, format_label, get_template

__all__ = [
    "AnalysisPrompt",
    "AnalysisType",
    "CascadeResult",
    "FallbackChain",
    "GenerativeModelInvoker",
    "ModelTier",
    "format_label",
    "get_template",
]
