"""Review text moderation: Egyptian Arabic lexicon plus a remote toxicity scorer."""

from app.services.moderation.pipeline import (
    ContentModerator,
    FallbackPolicy,
    analyze_content,
    get_moderator,
    is_content_appropriate,
    reset_moderator,
)

__all__ = [
    "ContentModerator",
    "FallbackPolicy",
    "analyze_content",
    "get_moderator",
    "is_content_appropriate",
    "reset_moderator",
]
