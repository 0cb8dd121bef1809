from __future__ import annotations

from enum import Enum
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel


class ContentType(str, Enum):
    APPROPRIATE = "appropriate"
    GENERAL_INAPPROPRIATE = "general_inappropriate"
    CATEGORY_ABUSE = "category_abuse"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ContentAnalysisResult(CamelModel):
    """Verdict for one piece of text. ``passed`` is always ``not toxic``."""

    model_config = ConfigDict(frozen=True)

    toxic: bool
    toxicity_score: float = Field(ge=0.0, le=1.0)
    categories: Dict[str, float] = Field(default_factory=dict)
    flagged_words: List[str] = Field(default_factory=list)
    content_type: ContentType = ContentType.APPROPRIATE

    @computed_field  # type: ignore[prop-decorator]
    @property
    def passed(self) -> bool:
        return not self.toxic


Severity = Literal["high", "none"]


class ContentAnalysisResponse(CamelModel):
    result: ContentAnalysisResult
    success: bool = True
    message: str
    details: Optional[str] = None
    flagged_words: List[str]
    content_type: ContentType
    severity: Severity


__all__ = [
    "CamelModel",
    "ContentAnalysisResponse",
    "ContentAnalysisResult",
    "ContentType",
    "Severity",
]
