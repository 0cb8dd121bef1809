from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from app.config import Settings
from app.models.moderation import ContentAnalysisResult, ContentType, Severity
from app.services.moderation.matcher import MatchResult
from app.services.moderation.scorer import CategoryScores

MESSAGE_APPROPRIATE = "Content appears appropriate"
MESSAGE_CATEGORY_ABUSE = "Content contains inappropriate educational references"
MESSAGE_INAPPROPRIATE = "Content contains inappropriate language"


@dataclass(frozen=True)
class Thresholds:
    """Per-attribute bars; an attribute trips when its score is >= its bar."""

    toxicity: float = 0.6
    severe_toxicity: float = 0.4
    insult: float = 0.6
    profanity: float = 0.6

    @classmethod
    def from_settings(cls, settings: Settings) -> "Thresholds":
        return cls(
            toxicity=settings.TOXICITY_THRESHOLD,
            severe_toxicity=settings.SEVERE_TOXICITY_THRESHOLD,
            insult=settings.INSULT_THRESHOLD,
            profanity=settings.PROFANITY_THRESHOLD,
        )

    def exceeded(self, scores: CategoryScores) -> List[str]:
        tripped: List[str] = []
        if scores.toxicity >= self.toxicity:
            tripped.append("toxicity")
        if scores.severe_toxicity >= self.severe_toxicity:
            tripped.append("severe_toxicity")
        if scores.insult >= self.insult:
            tripped.append("insult")
        if scores.profanity >= self.profanity:
            tripped.append("profanity")
        return tripped


def decide(
    match: MatchResult,
    scores: Optional[CategoryScores],
    thresholds: Thresholds = Thresholds(),
) -> ContentAnalysisResult:
    """Merge lexicon and scorer output into one verdict.

    A lexicon hit is final: it is reported at full confidence and any scores
    passed alongside are ignored. Otherwise a single tripped threshold is
    enough to mark the text toxic. ``scores=None`` means the scorer did not
    run and counts as all zeros.
    """
    if match.inappropriate:
        return ContentAnalysisResult(
            toxic=True,
            toxicity_score=1.0,
            categories=CategoryScores.uniform(1.0).as_dict(),
            flagged_words=list(match.flagged_words),
            content_type=(
                ContentType.CATEGORY_ABUSE
                if match.category_abuse
                else ContentType.GENERAL_INAPPROPRIATE
            ),
        )

    scores = scores or CategoryScores.zero()
    toxic = bool(thresholds.exceeded(scores))
    return ContentAnalysisResult(
        toxic=toxic,
        toxicity_score=scores.toxicity,
        categories=scores.as_dict(),
        flagged_words=[],
        content_type=ContentType.GENERAL_INAPPROPRIATE if toxic else ContentType.APPROPRIATE,
    )


def severity(result: ContentAnalysisResult) -> Severity:
    return "high" if result.toxic else "none"


def summary_message(result: ContentAnalysisResult) -> str:
    if result.passed:
        return MESSAGE_APPROPRIATE
    if result.content_type is ContentType.CATEGORY_ABUSE:
        return MESSAGE_CATEGORY_ABUSE
    return MESSAGE_INAPPROPRIATE


def summary_details(result: ContentAnalysisResult) -> Optional[str]:
    if result.flagged_words:
        return f"Inappropriate terms detected: {', '.join(result.flagged_words)}"
    if result.passed:
        return None
    return "Your content contains inappropriate language"


__all__ = [
    "MESSAGE_APPROPRIATE",
    "MESSAGE_CATEGORY_ABUSE",
    "MESSAGE_INAPPROPRIATE",
    "Thresholds",
    "decide",
    "severity",
    "summary_details",
    "summary_message",
]
