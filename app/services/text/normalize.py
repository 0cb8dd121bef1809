from __future__ import annotations

import re

# Arabic tashkeel (harakat, tanween, shadda, sukun, ...) and the superscript alef.
_ARABIC_DIACRITICS_RE = re.compile(r"[\u064B-\u065F\u0670]")


def strip_diacritics(text: str) -> str:
    """Remove Arabic diacritical marks, leaving the base letters untouched."""
    return _ARABIC_DIACRITICS_RE.sub("", text or "")


def normalize_for_lexicon(text: str) -> str:
    """Normalize text for deterministic lexicon matching.

    Only diacritics are removed and case is folded; spacing and punctuation
    are preserved so multi-word phrases still match as written.
    """
    return strip_diacritics(text).lower()


__all__ = ["normalize_for_lexicon", "strip_diacritics"]
