"""
Text Normalizer  —  Cleaning & Readability Scoring
═══════════════════════════════════════════════════

Uploaded .txt files arrive as raw bytes of unknown encoding. Before any
chunking happens we:

  1. Decode (strict UTF-8 first, ISO-8859-1 second; bytes that are
     neither UTF-8 nor readable as ISO-8859-1 raise ExtractionError)
  2. Replace control characters and anything outside printable ASCII
  3. Collapse whitespace runs to a single space

and then score the result. A text is "valid" when it is at least
MIN_VALID_CHARS long and more than READABLE_RATIO of its characters belong
to the readable class (letters, digits, whitespace, common punctuation).

The ratio heuristic catches garbled / binary extraction output without a
full encoding detector. It is applied twice: once to the whole document
(failure aborts ingestion) and once per chunk in the embedding step
(failure routes the chunk to a fallback vector).
"""

from __future__ import annotations

import logging
import re

from legaldoc.core.errors import ExtractionError

logger = logging.getLogger(__name__)

MIN_VALID_CHARS = 10
READABLE_RATIO  = 0.7

_CONTROL_RE    = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F-\x9F]")
_NON_ASCII_RE  = re.compile(r"[^\x20-\x7E\s]")
_WHITESPACE_RE = re.compile(r"\s+")
_READABLE_RE   = re.compile(r"[a-zA-Z0-9\s.,!?;:()\-\"']")


def clean_text(text: str) -> str:
    """
    Strip control characters, restrict to printable ASCII + whitespace and
    collapse whitespace. Idempotent: clean_text(clean_text(t)) == clean_text(t).
    """
    text = _CONTROL_RE.sub(" ", text)
    text = _NON_ASCII_RE.sub(" ", text)
    text = _WHITESPACE_RE.sub(" ", text)
    return text.strip()


def readable_ratio(text: str) -> float:
    """Fraction of characters in the readable class (0.0 for empty text)."""
    if not text:
        return 0.0
    return len(_READABLE_RE.findall(text)) / len(text)


def is_valid(text: str) -> bool:
    """True when `text` is long enough and mostly readable."""
    if len(text) < MIN_VALID_CHARS:
        return False
    return readable_ratio(text) > READABLE_RATIO


def normalize(raw: bytes) -> str:
    """
    Decode and clean raw upload bytes.

    Strict UTF-8 is tried first. When that reading is not valid text the
    ISO-8859-1 reading is tried. If neither is valid:

      - bytes that decode as UTF-8 are returned as-is (cleaned), so the
        caller can report *why* the text is unusable (empty, too short,
        unreadable);
      - bytes that are not UTF-8 raise ExtractionError.
    """
    try:
        text = clean_text(raw.decode("utf-8"))
    except UnicodeDecodeError:
        logger.debug("Normalizer | utf-8 decode failed, trying iso-8859-1")
        text = None
    else:
        if is_valid(text):
            logger.debug("Normalizer | encoding=utf-8 raw_bytes=%d chars=%d", len(raw), len(text))
            return text

    # ISO-8859-1 maps every byte, so this decode cannot fail
    latin = clean_text(raw.decode("iso-8859-1"))
    if is_valid(latin):
        logger.debug("Normalizer | encoding=iso-8859-1 raw_bytes=%d chars=%d", len(raw), len(latin))
        return latin

    if text is None:
        logger.warning(
            "Normalizer | undecodable upload | raw_bytes=%d latin1_ratio=%.2f",
            len(raw), readable_ratio(latin),
        )
        raise ExtractionError(
            "Failed to read text file. Please ensure it's a valid UTF-8 encoded text file.",
            details="Could not decode text file properly",
        )

    logger.warning(
        "Normalizer | no encoding produced valid text | raw_bytes=%d ratio=%.2f",
        len(raw), readable_ratio(text),
    )
    return text
