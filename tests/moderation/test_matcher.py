from __future__ import annotations

import pytest

from app.services.moderation.lexicon import default_lexicon, parse_lexicon
from app.services.moderation.matcher import MatchResult, boundary_pattern, match_lexicon
from app.services.text.normalize import normalize_for_lexicon


def _match(text: str) -> MatchResult:
    return match_lexicon(normalize_for_lexicon(text), default_lexicon())


@pytest.mark.parametrize("text", ["سم", "ده سم", "سم!", "(سم)", "سم2", "قال: سم."])
def test_boundary_pattern_matches_when_flanked_by_non_letters(text: str) -> None:
    assert boundary_pattern("سم").search(text)


@pytest.mark.parametrize("text", ["سمك", "بسم", "اسماء", "kosa"])
def test_boundary_pattern_ignores_letter_internal_fragments(text: str) -> None:
    entry = "kos" if text.startswith("kos") else "سم"
    assert boundary_pattern(entry).search(text) is None


def test_boundary_pattern_escapes_regex_metacharacters() -> None:
    pat = boundary_pattern("a.b")
    assert pat.search("x a.b y")
    assert pat.search("x aXb y") is None


def test_boundary_pattern_treats_star_literally() -> None:
    pat = boundary_pattern("ابن ال*")
    assert pat.search("يا ابن ال* ده")
    assert pat.search("يا ابن الجزار") is None


@pytest.mark.parametrize("text", ["الكلب", "والكلب", "بالكلب", "كلبة", "كلبها", "الكلبين."])
def test_boundary_pattern_accepts_clitics(text: str) -> None:
    lex = default_lexicon()
    pat = boundary_pattern("كلب", lex.prefixes, lex.suffixes, lex.min_affix_stem)
    assert pat.search(text)


@pytest.mark.parametrize("text", ["سمك", "بسم", "والسمك"])
def test_short_terms_ignore_clitics(text: str) -> None:
    lex = default_lexicon()
    pat = boundary_pattern("سم", lex.prefixes, lex.suffixes, lex.min_affix_stem)
    assert pat.search(text) is None


def test_clitics_do_not_bridge_into_other_letters() -> None:
    lex = default_lexicon()
    pat = boundary_pattern("كلب", lex.prefixes, lex.suffixes, lex.min_affix_stem)
    assert pat.search("مكلبش") is None


def test_category_abuse_phrase_short_circuits_general_scan() -> None:
    result = _match("المدرس ده مدرس حمار بجد")
    assert result.flagged_words == ("مدرس حمار",)
    assert result.category_abuse is True
    assert result.inappropriate is True


def test_educator_abuse_scenario() -> None:
    result = _match("مدرس ابن متناكة")
    assert result.flagged_words == ("مدرس ابن متناكة",)
    assert result.category_abuse is True


def test_general_term_glued_to_punctuation_is_flagged() -> None:
    result = _match("انت كلب.")
    assert result.flagged_words == ("كلب",)
    assert result.category_abuse is False


def test_general_term_inside_longer_word_is_not_flagged() -> None:
    # "زبالة" contains "زب"; "الخدمة" contains "دم".
    result = _match("الخدمة زبالة!")
    assert result.flagged_words == ("زبالة",)


def test_benign_words_containing_short_terms_pass() -> None:
    result = _match("اكلت سمك في دمياط")
    assert result.flagged_words == ()
    assert result.inappropriate is False


def test_transliterated_terms_are_flagged() -> None:
    assert _match("ya 7OMAR!").flagged_words == ("7omar",)


@pytest.mark.parametrize(
    "text,expected",
    [
        ("انت زي الكلب", ("كلب",)),
        ("الخدمة وسخة", ("وسخ",)),
        ("المدير حمارة", ("حمار",)),
    ],
)
def test_affixed_terms_are_flagged_by_stem(text: str, expected) -> None:
    assert _match(text).flagged_words == expected


@pytest.mark.parametrize(
    "text",
    ["الراجل ابن الحلال والخدمة ممتازة", "يا ابن الحلال", "ابن البلد", "ولاد الناس وابن الناس"],
)
def test_compliments_with_relational_token_pass(text: str) -> None:
    assert _match(text) == MatchResult()


def test_masked_entry_recorded_literally() -> None:
    assert "ابن ال*" in _match("يا ابن ال* ده").flagged_words


def test_relational_compound_added_for_split_insult() -> None:
    result = _match("انت ابن واحد عرص")
    assert result.flagged_words == ("عرص", "ابن متناكة")


def test_relational_compound_fires_without_boundary_matches() -> None:
    result = _match("هوابنعرص")
    assert result.flagged_words == ("ابن متناكة",)
    assert result.category_abuse is False


def test_targeted_abuse_heuristic_for_non_adjacent_tokens() -> None:
    result = _match("مدرس الفيزيا ده ابن ستين متناكة")
    assert result.flagged_words == ("متناك", "متناكة", "ابن متناكة", "مدرس ابن متناكة")
    assert result.category_abuse is True


def test_clean_english_text_has_no_matches() -> None:
    assert _match("great service, very professional") == MatchResult()


def test_empty_text_has_no_matches() -> None:
    assert match_lexicon("", default_lexicon()).inappropriate is False


def test_flagged_words_are_deduplicated_in_first_seen_order() -> None:
    lex = parse_lexicon(
        {
            "general_inappropriate": ["rude", "mean"],
            "core_profanity": ["mean"],
            "compounds": {
                "relational_token": "son of",
                "relational_severe_terms": ["mean"],
                "relational_compound": "mean",
            },
        }
    )
    result = match_lexicon("mean and rude, son of mean", lex)
    assert result.flagged_words == ("rude", "mean")
