from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, TypeVar, cast

from prometheus_client import REGISTRY, Counter, Histogram

# ---- Minimal helpers for registry access -------------------------------------


def _registry_map() -> Dict[str, Any]:
    mapping = getattr(REGISTRY, "_names_to_collectors", {})
    return mapping if isinstance(mapping, dict) else {}


T = TypeVar("T")


def _get_or_create(name: str, factory: Callable[[], T]) -> T:
    # Re-imports (reloads in tests) must not register a collector twice.
    existing = _registry_map().get(name)
    if existing is not None:
        return cast(T, existing)
    return factory()


def _mk_counter(name: str, doc: str, labels: Iterable[str] | None = None) -> Counter:
    return _get_or_create(name, lambda: Counter(name, doc, list(labels or ())))


def _mk_histogram(name: str, doc: str, labels: Iterable[str] | None = None) -> Histogram:
    return _get_or_create(name, lambda: Histogram(name, doc, list(labels or ())))


# ---- Moderation collectors ---------------------------------------------------

moderation_verdicts_total = _mk_counter(
    "moderation_verdicts_total",
    "Moderation verdicts by content type and deciding stage.",
    ["content_type", "source"],
)
moderation_scorer_calls_total = _mk_counter(
    "moderation_scorer_calls_total",
    "Remote toxicity scorer calls by outcome.",
    ["scorer", "outcome"],
)
moderation_scorer_latency_seconds = _mk_histogram(
    "moderation_scorer_latency_seconds",
    "Remote toxicity scorer latency (seconds).",
    ["scorer"],
)
review_writes_rejected_total = _mk_counter(
    "review_writes_rejected_total",
    "Review writes rejected by the moderation gate.",
    ["operation"],
)


# ---- Helpers -----------------------------------------------------------------


def inc_verdict(content_type: str, source: str) -> None:
    moderation_verdicts_total.labels(content_type or "unknown", source or "unknown").inc()


def inc_scorer_call(scorer: str, outcome: str) -> None:
    moderation_scorer_calls_total.labels(scorer or "unknown", outcome or "unknown").inc()


def observe_scorer_latency(scorer: str, seconds: float) -> None:
    moderation_scorer_latency_seconds.labels(scorer or "unknown").observe(max(0.0, seconds))


def inc_review_rejected(operation: str) -> None:
    review_writes_rejected_total.labels(operation or "unknown").inc()


__all__ = [
    "inc_review_rejected",
    "inc_scorer_call",
    "inc_verdict",
    "moderation_scorer_calls_total",
    "moderation_scorer_latency_seconds",
    "moderation_verdicts_total",
    "observe_scorer_latency",
    "review_writes_rejected_total",
]
