"""
Analysis Prompt Catalog — fixed instruction templates per analysis type.

Five analysis types are supported. Each maps to:
  - an instruction template (sent ahead of the grounded document content)
  - a display label (used in the basic-extraction fallback text)

Unknown analysis types are NOT rejected: they fall back to the `summarize`
template and get a capitalised version of their identifier as label.
"""

from __future__ import annotations

from enum import Enum
from typing import Final


class AnalysisType(str, Enum):
    SUMMARIZE     = "summarize"
    DETAILED      = "detailed"
    RISKS         = "risks"
    KEY_TERMS     = "key-terms"
    PLAIN_ENGLISH = "plain-english"


DEFAULT_ANALYSIS_TYPE: Final[AnalysisType] = AnalysisType.SUMMARIZE


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------

_SUMMARIZE_TEMPLATE: Final[str] = """\
You are a legal document analyzer. Provide a clear, concise summary of this legal document in plain English. Focus on:
- What type of document this is
- Main parties involved
- Key obligations and rights
- Important dates or deadlines
- Overall purpose and scope

Keep the summary accessible to non-lawyers."""

_DETAILED_TEMPLATE: Final[str] = """\
You are a legal expert providing detailed analysis. Analyze this legal document comprehensively, covering:
- Document structure and sections
- Legal implications of each major clause
- Rights and obligations of all parties
- Potential consequences and enforcement mechanisms
- Important legal terminology explanations
- Risk factors and protections

Provide thorough but understandable explanations."""

_RISKS_TEMPLATE: Final[str] = """\
You are a legal risk analyst. Identify and explain potential risks and red flags in this legal document:
- Financial risks and liabilities
- Legal vulnerabilities
- Unfavorable terms or clauses
- Potential disputes or conflicts
- Missing protections or safeguards
- Recommendations for risk mitigation

Rate each risk as HIGH, MEDIUM, or LOW and explain why."""

_KEY_TERMS_TEMPLATE: Final[str] = """\
You are a legal document interpreter. Extract and explain the most important terms and clauses:
- Define complex legal terminology
- Explain key obligations and rights
- Highlight critical deadlines and conditions
- Identify penalty or consequence clauses
- Point out any unusual or non-standard terms

Make technical language accessible to general audiences."""

_PLAIN_ENGLISH_TEMPLATE: Final[str] = """\
You are a legal translator. Convert the complex legal language in this document into plain English:
- Replace legal jargon with everyday language
- Simplify complex sentence structures
- Explain what each section actually means in practice
- Use analogies or examples where helpful
- Maintain the essential legal meaning while making it understandable

Focus on clarity and accessibility."""


TEMPLATES: Final[dict[AnalysisType, str]] = {
    AnalysisType.SUMMARIZE:     _SUMMARIZE_TEMPLATE,
    AnalysisType.DETAILED:      _DETAILED_TEMPLATE,
    AnalysisType.RISKS:         _RISKS_TEMPLATE,
    AnalysisType.KEY_TERMS:     _KEY_TERMS_TEMPLATE,
    AnalysisType.PLAIN_ENGLISH: _PLAIN_ENGLISH_TEMPLATE,
}

LABELS: Final[dict[AnalysisType, str]] = {
    AnalysisType.SUMMARIZE:     "Document Summary",
    AnalysisType.DETAILED:      "Detailed Analysis",
    AnalysisType.RISKS:         "Risk Assessment",
    AnalysisType.KEY_TERMS:     "Key Terms & Clauses",
    AnalysisType.PLAIN_ENGLISH: "Plain English Translation",
}


def _lookup(analysis_type: str) -> AnalysisType | None:
    try:
        return AnalysisType(analysis_type)
    except ValueError:
        return None


def get_template(analysis_type: str) -> str:
    """Instruction template for `analysis_type`; unknown types → summarize."""
    known = _lookup(analysis_type)
    return TEMPLATES[known or DEFAULT_ANALYSIS_TYPE]


def format_label(analysis_type: str) -> str:
    """
    Human-readable label, e.g. "risks" → "Risk Assessment".
    Unknown identifiers are capitalised: "custom" → "Custom".
    """
    known = _lookup(analysis_type)
    if known is not None:
        return LABELS[known]
    return analysis_type[:1].upper() + analysis_type[1:]
