# app/config.py
from __future__ import annotations

import os
from typing import List, Literal, Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings

APP_VERSION = os.getenv("APP_VERSION", "1.0.0")
GIT_SHA = os.getenv("GIT_SHA", "")
BUILD_TS = os.getenv("BUILD_TS", "")

SERVICE_NAME = "review-moderation-api"
PERSPECTIVE_DEFAULT_URL = "https://commentanalyzer.googleapis.com/v1alpha1/comments:analyze"


class Settings(BaseSettings):
    # --- Identity / Build ---
    APP_NAME: str = Field(default="Review Moderation API")
    ENV: str = Field(default=os.environ.get("ENV", "dev"))
    VERSION: str = Field(default=os.environ.get("VERSION", "0.1.0"))

    # --- Toxicity scorer (Perspective) ---
    # Absent key disables the remote scorer stage only; lexicon matching still runs.
    PERSPECTIVE_API_KEY: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("PERSPECTIVE_API_KEY", "NEXT_PUBLIC_PERSPECTIVE_API_KEY"),
    )
    PERSPECTIVE_URL: str = Field(default=PERSPECTIVE_DEFAULT_URL)
    PERSPECTIVE_LANGUAGES: str = Field(default="ar,en")  # comma-separated
    PERSPECTIVE_TIMEOUT_S: float = Field(default=5.0, gt=0, le=30)

    # --- Moderation policy ---
    TOXICITY_THRESHOLD: float = Field(default=0.6, ge=0.0, le=1.0)
    SEVERE_TOXICITY_THRESHOLD: float = Field(default=0.4, ge=0.0, le=1.0)
    INSULT_THRESHOLD: float = Field(default=0.6, ge=0.0, le=1.0)
    PROFANITY_THRESHOLD: float = Field(default=0.6, ge=0.0, le=1.0)
    MODERATION_FALLBACK: Literal["fail_open", "fail_closed"] = Field(
        default="fail_open", description="Verdict used when the scorer fails"
    )
    MODERATION_LEXICON_PATH: str = Field(default="")

    # --- Logging ---
    LOG_JSON: bool = Field(default=True)
    LOG_LEVEL: str = Field(default="INFO")

    model_config = {
        "extra": "ignore",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }

    @field_validator("PERSPECTIVE_API_KEY")
    @classmethod
    def _blank_key_is_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        return value or None

    @property
    def perspective_languages(self) -> List[str]:
        items = [part.strip() for part in self.PERSPECTIVE_LANGUAGES.split(",")]
        return [item for item in items if item]


def get_settings() -> Settings:
    return Settings()
