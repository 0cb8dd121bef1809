from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, Pattern, Tuple

from app.services.moderation.lexicon import Lexicon

# A Unicode letter: a word character that is neither a digit nor underscore.
_LETTER = r"[^\W\d_]"


@dataclass(frozen=True)
class MatchResult:
    flagged_words: Tuple[str, ...] = ()
    category_abuse: bool = False

    @property
    def inappropriate(self) -> bool:
        return bool(self.flagged_words)


@lru_cache(maxsize=4096)
def boundary_pattern(
    entry: str,
    prefixes: Tuple[str, ...] = (),
    suffixes: Tuple[str, ...] = (),
    min_stem: int = 3,
) -> Pattern[str]:
    """Compile ``entry`` so it only matches as a standalone word.

    The entry may be flanked by punctuation, digits, whitespace or the string
    edge, but not by a letter, so short terms do not fire inside benign
    words. Entries of at least ``min_stem`` characters may additionally carry
    up to two of ``prefixes`` and one of ``suffixes`` ("الكلب", "حمارة").
    The entry itself is literal text.
    """
    stem = entry.strip()
    head = tail = ""
    if len(stem) >= min_stem:
        if prefixes:
            head = f"(?:{_alternation(prefixes)}){{0,2}}"
        if suffixes:
            tail = f"(?:{_alternation(suffixes)})?"
    return re.compile(f"(?<!{_LETTER}){head}{re.escape(stem)}{tail}(?!{_LETTER})")


def _alternation(options: Tuple[str, ...]) -> str:
    # Longest first so "ها" is tried before "ه".
    return "|".join(re.escape(o) for o in sorted(options, key=len, reverse=True))


def match_lexicon(normalized_text: str, lexicon: Lexicon) -> MatchResult:
    """Scan already-normalized text against the lexicon.

    Category-abuse phrases are checked first and win outright: when any is
    present the general scan and compound heuristics are skipped.
    """
    text = normalized_text or ""
    flagged: Dict[str, None] = {}

    for phrase in lexicon.category_abuse_phrases:
        if phrase in text:
            flagged[phrase] = None
    if flagged:
        return MatchResult(flagged_words=tuple(flagged), category_abuse=True)

    for term in lexicon.scan_terms:
        pattern = boundary_pattern(
            term, lexicon.prefixes, lexicon.suffixes, lexicon.min_affix_stem
        )
        if pattern.search(text):
            flagged[term] = None

    # Insults split across words ("ابن ... متناك") still count as the compound.
    token = lexicon.relational_token
    if token and lexicon.relational_compound and token in text:
        if any(term in text for term in lexicon.relational_severe_terms):
            flagged.setdefault(lexicon.relational_compound, None)

    rule = lexicon.targeted_abuse
    if (
        rule is not None
        and token
        and rule.role_noun in text
        and token in text
        and rule.severe_term in text
    ):
        flagged.setdefault(rule.phrase, None)

    words = tuple(flagged)
    return MatchResult(
        flagged_words=words,
        category_abuse=any(lexicon.is_category_abuse(w) for w in words),
    )


__all__ = ["MatchResult", "boundary_pattern", "match_lexicon"]
