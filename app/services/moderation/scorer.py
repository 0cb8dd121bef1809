# file: app/services/moderation/scorer.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Sequence

import httpx

from app.config import PERSPECTIVE_DEFAULT_URL, Settings
from app.net.http_client import get_http_client

log = logging.getLogger(__name__)

# Remote attribute name -> CategoryScores field
ATTRIBUTES: Dict[str, str] = {
    "TOXICITY": "toxicity",
    "SEVERE_TOXICITY": "severe_toxicity",
    "INSULT": "insult",
    "PROFANITY": "profanity",
}


class ScorerError(Exception):
    """The remote toxicity scorer could not produce scores."""


def _clamp01(value: Any) -> float:
    try:
        x = float(value)
    except (TypeError, ValueError):
        return 0.0
    if x != x:  # NaN
        return 0.0
    return min(max(x, 0.0), 1.0)


@dataclass(frozen=True)
class CategoryScores:
    toxicity: float = 0.0
    severe_toxicity: float = 0.0
    insult: float = 0.0
    profanity: float = 0.0

    @classmethod
    def zero(cls) -> "CategoryScores":
        return cls()

    @classmethod
    def uniform(cls, value: float) -> "CategoryScores":
        v = _clamp01(value)
        return cls(toxicity=v, severe_toxicity=v, insult=v, profanity=v)

    def as_dict(self) -> Dict[str, float]:
        return {
            "toxicity": self.toxicity,
            "severeToxicity": self.severe_toxicity,
            "insult": self.insult,
            "profanity": self.profanity,
        }


class ToxicityScorer(Protocol):
    async def score(self, text: str) -> CategoryScores: ...


class PerspectiveScorer:
    """
    Adapter for the Perspective comment analyzer.

    - No API key: returns zero scores without touching the network.
    - One POST per call, no retries; the caller decides what failure means.
    - Transport errors, timeouts, non-2xx and malformed bodies raise ScorerError.
    - Never logs the request text or the key.
    """

    name = "perspective"

    def __init__(
        self,
        api_key: Optional[str],
        *,
        url: str = PERSPECTIVE_DEFAULT_URL,
        languages: Sequence[str] = ("ar", "en"),
        timeout_s: float = 5.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.api_key = (api_key or "").strip()
        self.url = url
        self.languages: List[str] = list(languages)
        self.timeout_s = float(timeout_s)
        self._client = client

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _client_or_shared(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = get_http_client()
        return self._client

    def _payload(self, text: str) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "comment": {"text": text},
            "requestedAttributes": {name: {} for name in ATTRIBUTES},
            "doNotStore": True,
        }
        if self.languages:
            payload["languages"] = self.languages
        return payload

    async def score(self, text: str) -> CategoryScores:
        if not self.configured:
            log.debug("perspective key not configured; scorer skipped")
            return CategoryScores.zero()

        client = self._client_or_shared()
        try:
            resp = await client.post(
                self.url,
                params={"key": self.api_key},
                json=self._payload(text),
                timeout=self.timeout_s,
            )
        except httpx.TimeoutException as exc:
            raise ScorerError("perspective request timed out") from exc
        except httpx.HTTPError as exc:
            raise ScorerError(f"perspective transport error: {type(exc).__name__}") from exc

        if resp.status_code >= 400:
            raise ScorerError(f"perspective returned HTTP {resp.status_code}")

        try:
            data = resp.json()
        except ValueError as exc:
            raise ScorerError("perspective returned a non-JSON body") from exc
        return parse_attribute_scores(data)


def parse_attribute_scores(data: Any) -> CategoryScores:
    """Read ``attributeScores.<ATTR>.summaryScore.value``; absent attributes score 0."""
    if not isinstance(data, dict):
        raise ScorerError("perspective response is not an object")
    attrs = data.get("attributeScores", {})
    if not isinstance(attrs, dict):
        raise ScorerError("perspective attributeScores is not an object")

    values: Dict[str, float] = {}
    for remote, field in ATTRIBUTES.items():
        entry = attrs.get(remote) or {}
        summary = entry.get("summaryScore") if isinstance(entry, dict) else None
        value = summary.get("value") if isinstance(summary, dict) else None
        values[field] = _clamp01(value) if value is not None else 0.0
    return CategoryScores(**values)


def build_scorer(settings: Settings) -> PerspectiveScorer:
    return PerspectiveScorer(
        settings.PERSPECTIVE_API_KEY,
        url=settings.PERSPECTIVE_URL,
        languages=settings.perspective_languages,
        timeout_s=settings.PERSPECTIVE_TIMEOUT_S,
    )


__all__ = [
    "ATTRIBUTES",
    "CategoryScores",
    "PerspectiveScorer",
    "ScorerError",
    "ToxicityScorer",
    "build_scorer",
    "parse_attribute_scores",
]
