# file: app/services/moderation/pipeline.py
"""Content moderation façade.

Flow: normalize -> lexicon match -> (no hit) remote scorer -> thresholds.
A lexicon hit never reaches the scorer. Scorer failures are resolved by an
explicit FallbackPolicy instead of propagating to the caller.
"""
from __future__ import annotations

import asyncio
import logging
import time
from enum import Enum
from typing import Optional

from app.config import Settings, get_settings
from app.models.moderation import ContentAnalysisResult, ContentType
from app.services.moderation.decision import Thresholds, decide
from app.services.moderation.lexicon import Lexicon, default_lexicon, load_lexicon
from app.services.moderation.matcher import match_lexicon
from app.services.moderation.scorer import CategoryScores, ToxicityScorer, build_scorer
from app.services.text.normalize import normalize_for_lexicon
from app.telemetry.metrics import inc_scorer_call, inc_verdict, observe_scorer_latency

log = logging.getLogger(__name__)


class FallbackPolicy(str, Enum):
    """What to answer when the remote scorer is unavailable."""

    FAIL_OPEN = "fail_open"
    FAIL_CLOSED = "fail_closed"

    def verdict(self) -> ContentAnalysisResult:
        if self is FallbackPolicy.FAIL_CLOSED:
            return ContentAnalysisResult(
                toxic=True,
                toxicity_score=0.0,
                categories={},
                flagged_words=[],
                content_type=ContentType.GENERAL_INAPPROPRIATE,
            )
        return ContentAnalysisResult(
            toxic=False,
            toxicity_score=0.0,
            categories={},
            flagged_words=[],
            content_type=ContentType.APPROPRIATE,
        )


class ContentModerator:
    def __init__(
        self,
        scorer: ToxicityScorer,
        *,
        lexicon: Optional[Lexicon] = None,
        thresholds: Optional[Thresholds] = None,
        fallback: FallbackPolicy = FallbackPolicy.FAIL_OPEN,
        timeout_s: Optional[float] = None,
    ) -> None:
        self.scorer = scorer
        self.lexicon = lexicon or default_lexicon()
        self.thresholds = thresholds or Thresholds()
        self.fallback = fallback
        self.timeout_s = timeout_s

    @classmethod
    def from_settings(cls, settings: Settings) -> "ContentModerator":
        lexicon = (
            load_lexicon(settings.MODERATION_LEXICON_PATH)
            if settings.MODERATION_LEXICON_PATH
            else default_lexicon()
        )
        # Outer bound slightly above the per-request HTTP timeout.
        return cls(
            build_scorer(settings),
            lexicon=lexicon,
            thresholds=Thresholds.from_settings(settings),
            fallback=FallbackPolicy(settings.MODERATION_FALLBACK),
            timeout_s=settings.PERSPECTIVE_TIMEOUT_S + 1.0,
        )

    @property
    def scorer_name(self) -> str:
        return str(getattr(self.scorer, "name", type(self.scorer).__name__))

    async def _score(self, text: str) -> CategoryScores:
        call = self.scorer.score(text)
        if self.timeout_s:
            return await asyncio.wait_for(call, timeout=self.timeout_s)
        return await call

    async def analyze_content(self, text: str) -> ContentAnalysisResult:
        match = match_lexicon(normalize_for_lexicon(text), self.lexicon)
        if match.inappropriate:
            result = decide(match, None, self.thresholds)
            self._record(result, "lexicon")
            return result

        scorer = self.scorer_name
        t0 = time.perf_counter()
        try:
            scores = await self._score(text)
        except Exception as exc:
            # Any scorer failure, including timeouts, resolves through the policy.
            observe_scorer_latency(scorer, time.perf_counter() - t0)
            inc_scorer_call(scorer, "error")
            log.warning(
                "toxicity scorer failed; applying %s",
                self.fallback.value,
                extra={"scorer": scorer, "error_type": type(exc).__name__, "error": str(exc)},
            )
            result = self.fallback.verdict()
            self._record(result, "fallback")
            return result

        observe_scorer_latency(scorer, time.perf_counter() - t0)
        inc_scorer_call(scorer, "ok")
        result = decide(match, scores, self.thresholds)
        self._record(result, "scorer")
        return result

    async def is_content_appropriate(self, text: str) -> bool:
        result = await self.analyze_content(text)
        return result.passed

    def _record(self, result: ContentAnalysisResult, source: str) -> None:
        inc_verdict(result.content_type.value, source)
        log.info(
            "moderation verdict",
            extra={
                "source": source,
                "toxic": result.toxic,
                "content_type": result.content_type.value,
                "flagged_words": list(result.flagged_words),
                "toxicity_score": result.toxicity_score,
            },
        )


_moderator: Optional[ContentModerator] = None


def get_moderator() -> ContentModerator:
    """Process-wide moderator built from settings on first use.

    ``create_app()`` without arguments serves this same instance, so the HTTP
    routes, the review write gate and the module-level helpers below agree.
    """
    global _moderator
    if _moderator is None:
        _moderator = ContentModerator.from_settings(get_settings())
    return _moderator


def reset_moderator(moderator: Optional[ContentModerator] = None) -> None:
    global _moderator
    _moderator = moderator


async def analyze_content(text: str) -> ContentAnalysisResult:
    return await get_moderator().analyze_content(text)


async def is_content_appropriate(text: str) -> bool:
    return await get_moderator().is_content_appropriate(text)


__all__ = [
    "ContentModerator",
    "FallbackPolicy",
    "analyze_content",
    "get_moderator",
    "is_content_appropriate",
    "reset_moderator",
]
