from __future__ import annotations

import asyncio

import pytest
from conftest import FakeScorer

from app.models.moderation import ContentType
from app.services.moderation import pipeline
from app.services.moderation.pipeline import ContentModerator, FallbackPolicy
from app.services.moderation.scorer import CategoryScores, PerspectiveScorer, ScorerError


async def test_category_abuse_never_calls_scorer(fake_scorer, moderator) -> None:
    result = await moderator.analyze_content("مدرس ابن متناكة")
    assert result.toxic is True
    assert result.passed is False
    assert result.content_type is ContentType.CATEGORY_ABUSE
    assert "مدرس ابن متناكة" in result.flagged_words
    assert fake_scorer.calls == []


async def test_diacritics_do_not_hide_category_abuse(fake_scorer, moderator) -> None:
    result = await moderator.analyze_content("مُدَرِّس حمار")
    assert result.content_type is ContentType.CATEGORY_ABUSE
    assert result.flagged_words == ["مدرس حمار"]
    assert fake_scorer.calls == []


async def test_general_hit_never_calls_scorer(fake_scorer, moderator) -> None:
    result = await moderator.analyze_content("المكان زبالة")
    assert result.content_type is ContentType.GENERAL_INAPPROPRIATE
    assert result.toxicity_score == 1.0
    assert fake_scorer.calls == []


async def test_clean_text_goes_to_scorer_with_raw_text(fake_scorer, moderator) -> None:
    text = "Great Service, very professional"
    result = await moderator.analyze_content(text)
    assert result.passed is True
    assert result.content_type is ContentType.APPROPRIATE
    assert result.flagged_words == []
    assert fake_scorer.calls == [text]


async def test_severe_toxicity_just_over_threshold_blocks() -> None:
    scorer = FakeScorer(scores=CategoryScores(severe_toxicity=0.41))
    result = await ContentModerator(scorer).analyze_content("some unpleasant remark")
    assert result.toxic is True
    assert result.passed is False
    assert result.flagged_words == []
    assert result.content_type is ContentType.GENERAL_INAPPROPRIATE


@pytest.mark.parametrize(
    "error",
    [ScorerError("boom"), RuntimeError("unexpected"), asyncio.TimeoutError()],
)
async def test_scorer_failure_fails_open(error) -> None:
    scorer = FakeScorer(error=error)
    result = await ContentModerator(scorer).analyze_content("any text at all")
    assert result == FallbackPolicy.FAIL_OPEN.verdict()
    assert result.toxic is False
    assert result.passed is True
    assert result.categories == {}
    assert result.content_type is ContentType.APPROPRIATE
    assert len(scorer.calls) == 1


async def test_slow_scorer_times_out_and_fails_open() -> None:
    class SlowScorer:
        async def score(self, text: str) -> CategoryScores:
            await asyncio.sleep(5)
            return CategoryScores.uniform(1.0)

    moderator = ContentModerator(SlowScorer(), timeout_s=0.01)
    result = await moderator.analyze_content("hello")
    assert result == FallbackPolicy.FAIL_OPEN.verdict()


async def test_fail_closed_policy_blocks_on_scorer_failure() -> None:
    scorer = FakeScorer(error=ScorerError("down"))
    moderator = ContentModerator(scorer, fallback=FallbackPolicy.FAIL_CLOSED)
    result = await moderator.analyze_content("hello")
    assert result.passed is False
    assert result.content_type is ContentType.GENERAL_INAPPROPRIATE
    assert result.flagged_words == []


async def test_fallback_does_not_apply_to_lexicon_hits() -> None:
    scorer = FakeScorer(error=ScorerError("down"))
    result = await ContentModerator(scorer).analyze_content("انت كلب")
    assert result.passed is False
    assert scorer.calls == []


async def test_analysis_is_idempotent() -> None:
    scorer = FakeScorer(scores=CategoryScores(toxicity=0.3, insult=0.65))
    moderator = ContentModerator(scorer)
    first = await moderator.analyze_content("meh")
    second = await moderator.analyze_content("meh")
    assert first == second
    assert first.toxic is True


async def test_unconfigured_perspective_scenario() -> None:
    moderator = ContentModerator(PerspectiveScorer(None))
    result = await moderator.analyze_content("great service, very professional")
    assert result.passed is True
    assert result.content_type is ContentType.APPROPRIATE


async def test_empty_text_is_appropriate_without_key() -> None:
    moderator = ContentModerator(PerspectiveScorer(None))
    assert await moderator.is_content_appropriate("") is True


async def test_is_content_appropriate_mirrors_passed(moderator) -> None:
    assert await moderator.is_content_appropriate("خدمة ممتازة") is True
    assert await moderator.is_content_appropriate("يا خول") is False


async def test_module_level_helpers_use_default_moderator(fake_scorer, moderator) -> None:
    pipeline.reset_moderator(moderator)
    assert pipeline.get_moderator() is moderator
    result = await pipeline.analyze_content("مدرس حمار")
    assert result.content_type is ContentType.CATEGORY_ABUSE
    assert await pipeline.is_content_appropriate("thanks a lot") is True
    assert fake_scorer.calls == ["thanks a lot"]


def test_default_moderator_built_from_settings(monkeypatch) -> None:
    monkeypatch.setenv("MODERATION_FALLBACK", "fail_closed")
    monkeypatch.setenv("PROFANITY_THRESHOLD", "0.9")
    moderator = pipeline.get_moderator()
    assert moderator.fallback is FallbackPolicy.FAIL_CLOSED
    assert moderator.thresholds.profanity == 0.9
    assert isinstance(moderator.scorer, PerspectiveScorer)
    assert moderator.scorer.configured is False


def test_lexicon_path_override(monkeypatch, tmp_path) -> None:
    path = tmp_path / "lexicon.yaml"
    path.write_text("general_inappropriate: [awful]\n", encoding="utf-8")
    monkeypatch.setenv("MODERATION_LEXICON_PATH", str(path))
    moderator = pipeline.get_moderator()
    assert moderator.lexicon.scan_terms == ("awful",)


async def test_relational_compliment_reaches_scorer_and_passes(fake_scorer, moderator) -> None:
    text = "الراجل ابن الحلال والخدمة ممتازة"
    result = await moderator.analyze_content(text)
    assert result.passed is True
    assert result.flagged_words == []
    assert fake_scorer.calls == [text]


async def test_affixed_insult_is_caught_without_scorer(fake_scorer, moderator) -> None:
    result = await moderator.analyze_content("انت زي الكلب")
    assert result.passed is False
    assert result.flagged_words == ["كلب"]
    assert fake_scorer.calls == []
