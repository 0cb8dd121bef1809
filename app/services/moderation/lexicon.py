# File: app/services/moderation/lexicon.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

import yaml

log = logging.getLogger(__name__)

_BUNDLED_PATH = Path(__file__).resolve().parent / "data" / "egyptian_lexicon.yaml"

_default: Optional["Lexicon"] = None


class LexiconError(ValueError):
    """Raised when a lexicon file does not have the expected shape."""


@dataclass(frozen=True)
class TargetedAbuseRule:
    role_noun: str
    severe_term: str
    phrase: str


@dataclass(frozen=True)
class Lexicon:
    general_inappropriate: Tuple[str, ...]
    category_abuse_phrases: Tuple[str, ...]
    core_profanity: Tuple[str, ...]
    relational_token: str
    relational_severe_terms: Tuple[str, ...]
    relational_compound: str
    targeted_abuse: Optional[TargetedAbuseRule]
    version: str = "unknown"
    # Clitics allowed to hug a scan term; shorter terms match bare only.
    prefixes: Tuple[str, ...] = ()
    suffixes: Tuple[str, ...] = ()
    min_affix_stem: int = 3

    @property
    def scan_terms(self) -> Tuple[str, ...]:
        """General vocabulary plus core profanity, in order, without repeats."""
        return _dedupe((*self.general_inappropriate, *self.core_profanity))

    def is_category_abuse(self, term: str) -> bool:
        return term in self.category_abuse_phrases


def _clean(entry: Any) -> str:
    return str(entry).strip().lower()


def _dedupe(entries: Iterable[str]) -> Tuple[str, ...]:
    seen: Dict[str, None] = {}
    for entry in entries:
        if entry and entry not in seen:
            seen[entry] = None
    return tuple(seen)


def _string_list(raw: Any, field: str) -> Tuple[str, ...]:
    if raw is None:
        return ()
    if isinstance(raw, str) or not isinstance(raw, (list, tuple)):
        raise LexiconError(f"'{field}' must be a list of strings")
    return _dedupe(_clean(item) for item in raw)


def _grouped_list(raw: Any, field: str) -> Tuple[str, ...]:
    # Sub-category groups are a curation aid; matching sees one flat list.
    if isinstance(raw, Mapping):
        out: List[str] = []
        for group, items in raw.items():
            out.extend(_string_list(items, f"{field}.{group}"))
        return _dedupe(out)
    return _string_list(raw, field)


def _targeted_rule(raw: Any) -> Optional[TargetedAbuseRule]:
    if raw is None:
        return None
    if not isinstance(raw, Mapping):
        raise LexiconError("'compounds.targeted_abuse' must be a mapping")
    try:
        rule = TargetedAbuseRule(
            role_noun=_clean(raw["role_noun"]),
            severe_term=_clean(raw["severe_term"]),
            phrase=_clean(raw["phrase"]),
        )
    except KeyError as exc:
        raise LexiconError(f"'compounds.targeted_abuse' is missing {exc}") from exc
    if not (rule.role_noun and rule.severe_term and rule.phrase):
        raise LexiconError("'compounds.targeted_abuse' entries must be non-empty")
    return rule


def parse_lexicon(data: Any) -> Lexicon:
    if not isinstance(data, Mapping):
        raise LexiconError("lexicon root must be a mapping")

    compounds = data.get("compounds") or {}
    if not isinstance(compounds, Mapping):
        raise LexiconError("'compounds' must be a mapping")

    affixes = data.get("affixes") or {}
    if not isinstance(affixes, Mapping):
        raise LexiconError("'affixes' must be a mapping")
    min_stem = affixes.get("min_stem_length", 3)
    if isinstance(min_stem, bool) or not isinstance(min_stem, int) or min_stem < 1:
        raise LexiconError("'affixes.min_stem_length' must be a positive integer")

    return Lexicon(
        general_inappropriate=_grouped_list(
            data.get("general_inappropriate"), "general_inappropriate"
        ),
        category_abuse_phrases=_string_list(
            data.get("category_abuse_phrases"), "category_abuse_phrases"
        ),
        core_profanity=_string_list(data.get("core_profanity"), "core_profanity"),
        relational_token=_clean(compounds.get("relational_token") or ""),
        relational_severe_terms=_string_list(
            compounds.get("relational_severe_terms"), "compounds.relational_severe_terms"
        ),
        relational_compound=_clean(compounds.get("relational_compound") or ""),
        targeted_abuse=_targeted_rule(compounds.get("targeted_abuse")),
        version=str(data.get("version") or "unknown"),
        prefixes=_string_list(affixes.get("prefixes"), "affixes.prefixes"),
        suffixes=_string_list(affixes.get("suffixes"), "affixes.suffixes"),
        min_affix_stem=min_stem,
    )


def load_lexicon(path: str | Path | None = None) -> Lexicon:
    """Load a lexicon from YAML (JSON files parse too). Defaults to the bundled asset."""
    target = Path(path) if path else _BUNDLED_PATH
    if not target.is_file():
        raise FileNotFoundError(f"Lexicon not found: {target}")
    with target.open("r", encoding="utf-8") as fh:
        try:
            data = yaml.safe_load(fh)
        except yaml.YAMLError as exc:
            raise LexiconError(f"Lexicon is not valid YAML: {target}") from exc
    lexicon = parse_lexicon(data)
    log.info(
        "lexicon loaded",
        extra={
            "lexicon_path": str(target),
            "lexicon_version": lexicon.version,
            "scan_terms": len(lexicon.scan_terms),
            "category_phrases": len(lexicon.category_abuse_phrases),
        },
    )
    return lexicon


def default_lexicon() -> Lexicon:
    """Process-wide bundled lexicon, loaded once."""
    global _default
    if _default is None:
        _default = load_lexicon()
    return _default


__all__ = [
    "Lexicon",
    "LexiconError",
    "TargetedAbuseRule",
    "default_lexicon",
    "load_lexicon",
    "parse_lexicon",
]
