"""
Corpus text normalization: diacritic stripping and case folding.
"""
from __future__ import annotations

import logging
import unicodedata

logger = logging.getLogger(__name__)


def strip_diacritics(text: str) -> str:
    """Decompose, drop nonspacing marks (category Mn), recompose."""
    decomposed = unicodedata.normalize("NFD", text)
    stripped = "".join(ch for ch in decomposed if unicodedata.category(ch) != "Mn")
    return unicodedata.normalize("NFC", stripped)


def normalize_text(text: str) -> str:
    """
    Canonicalize corpus text before tokenization.

    "Café CRÈME" -> "cafe creme". Case folding happens before mark
    stripping, since lowercasing can itself emit combining marks
    ("İ" -> "i" + U+0307). A transform failure falls back to the
    lowercased original.
    """
    lowered = text.lower()
    try:
        return strip_diacritics(lowered)
    except (TypeError, ValueError) as e:
        logger.warning(f"[Normalize] Diacritic stripping failed, keeping text: {e}")
        return lowered
