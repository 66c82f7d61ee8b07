"""
Document Analysis Service

Retrieval-augmented analysis of one previously ingested document:

  query text  "<type> analysis of <filename>"
      │
      ▼
  embed_query            (fallback vector on failure, never raises)
      │
      ▼
  vector store query     top_k, filter {"filename": {"$eq": filename}}
      │                  zero matches → DocumentNotFoundError
      ▼
  join chunk contents    "\n\n"; nothing left → DocumentNotFoundError
      │
      ▼
  prompt catalog + GenerativeModelInvoker cascade
      │
      ▼
  AnalysisResult (chunks_analyzed = number of matches)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from legaldoc.core.errors import DocumentNotFoundError
from legaldoc.llm.fallback import AnalysisPrompt
from legaldoc.llm.gateway import GenerativeModelInvoker
from legaldoc.llm.prompts import get_template
from legaldoc.processing.embeddings import EmbeddingGenerator
from legaldoc.vectorstore.base import VectorStoreBase, filename_filter

logger = logging.getLogger(__name__)


@dataclass
class AnalysisResult:
    analysis_type:   str
    filename:        str
    text:            str
    chunks_analyzed: int
    note:            str | None = None
    warning:         str | None = None


def build_query_text(analysis_type: str, filename: str) -> str:
    return f"{analysis_type} analysis of {filename}"


class AnalysisService:

    def __init__(
        self,
        embedder: EmbeddingGenerator,
        store:    VectorStoreBase,
        invoker:  GenerativeModelInvoker,
        top_k:    int = 30,
    ) -> None:
        self._embedder = embedder
        self._store    = store
        self._invoker  = invoker
        self._top_k    = top_k

    async def analyze(self, analysis_type: str, filename: str) -> AnalysisResult:
        """
        Raises:
            DocumentNotFoundError: no chunks stored for `filename`, or none with content
            StoreError:            the vector store query failed
        """
        query = await self._embedder.embed_query(build_query_text(analysis_type, filename))
        if query.degraded:
            logger.warning(
                "Analysis query embedding degraded | file=%s relying on filename filter",
                filename,
            )

        matches = await self._store.query(
            vector=query.values,
            top_k=self._top_k,
            filter=filename_filter(filename),
        )
        if not matches:
            logger.info("Analysis miss | file=%s type=%s", filename, analysis_type)
            raise DocumentNotFoundError("Document not found in database")

        content = "\n\n".join(m.text for m in matches if m.text)
        if not content:
            raise DocumentNotFoundError("No content found for analysis")

        prompt = AnalysisPrompt(
            analysis_type=analysis_type,
            filename=filename,
            template=get_template(analysis_type),
            content=content,
            section_count=len(matches),
        )
        outcome = await self._invoker.invoke(prompt)

        return AnalysisResult(
            analysis_type=analysis_type,
            filename=filename,
            text=outcome.text,
            chunks_analyzed=len(matches),
            note=outcome.note,
            warning=outcome.warning,
        )
