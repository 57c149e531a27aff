"""
Review Priority Scheduler.

Ranks previously-missed items by urgency and returns the top N.

Score (graduated items are excluded first):
    recency   = min(days_since_review * 10, 100)     stale items resurface
    mastery   = (3 - min(consecutive_correct, 3)) * 20
    frequency = min(wrong_count * 5, 50)             chronic misses stay visible

Ties keep their input order (stable sort). Filters run before scoring so a
filtered queue is still filled up to the requested count.
"""

from __future__ import annotations

import time
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from quizstate.taxonomy.codes import matches

MS_PER_DAY = 1000 * 60 * 60 * 24
ALL_CATEGORIES = "all"


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class ReviewItem:
    """A previously-missed unit scheduled for re-practice."""

    id: str
    timestamp: int  # last interaction, epoch ms
    last_review_date: int | None = None  # epoch ms; falls back to timestamp
    consecutive_correct: int = 0
    wrong_count: int = 0
    is_graduated: bool = False
    tags: list[str] = field(default_factory=list)
    category: str | None = None
    subject: str | None = None  # legacy single-subject field

    @property
    def last_seen(self) -> int:
        return self.last_review_date or self.timestamp


@dataclass(frozen=True)
class PriorityWeights:
    """Weights of the review priority score."""

    recency_per_day: float = 10.0
    recency_cap: float = 100.0
    mastery_cap: int = 3
    mastery_weight: float = 20.0
    frequency_per_wrong: float = 5.0
    frequency_cap: float = 50.0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PriorityWeights:
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


DEFAULT_WEIGHTS = PriorityWeights()


@dataclass(frozen=True)
class ScoredItem:
    item: ReviewItem
    score: float
    days_since: float


def review_score(
    item: ReviewItem,
    now: int,
    weights: PriorityWeights = DEFAULT_WEIGHTS,
) -> float:
    """Priority score of one item at time now (epoch ms)."""
    return _score(item, _days_since(item, now), weights)


def _days_since(item: ReviewItem, now: int) -> float:
    # Clock skew between devices can put last_seen in the future
    return max(0.0, (now - item.last_seen) / MS_PER_DAY)


def _score(item: ReviewItem, days: float, weights: PriorityWeights) -> float:
    recency = min(days * weights.recency_per_day, weights.recency_cap)
    mastery = (weights.mastery_cap - min(item.consecutive_correct, weights.mastery_cap)) * weights.mastery_weight
    frequency = min(item.wrong_count * weights.frequency_per_wrong, weights.frequency_cap)
    return recency + mastery + frequency


def rank_review_items(
    items: Iterable[ReviewItem],
    now: int | None = None,
    weights: PriorityWeights = DEFAULT_WEIGHTS,
) -> list[ScoredItem]:
    """Score every non-graduated item, highest first, ties in input order."""
    now = now_ms() if now is None else now
    scored = []
    for item in items:
        if item.is_graduated:
            continue
        days = _days_since(item, now)
        scored.append(ScoredItem(item=item, score=_score(item, days, weights), days_since=days))
    return sorted(scored, key=lambda s: -s.score)


def calculate_review_priority(
    items: Iterable[ReviewItem],
    count: int = 5,
    now: int | None = None,
    weights: PriorityWeights = DEFAULT_WEIGHTS,
) -> list[ReviewItem]:
    """
    Top-count items to review next.

    Args:
        items: Review pool (not mutated)
        count: Maximum items to return
        now: Current time in epoch ms (defaults to the wall clock)
        weights: Score weights

    Returns:
        Items ordered by descending priority
    """
    return [s.item for s in rank_review_items(items, now, weights)[:count]]


def filter_review_items(
    items: Iterable[ReviewItem],
    category: str | None = None,
    codes: Sequence[str] | None = None,
) -> list[ReviewItem]:
    """Pre-filter a review pool by category and/or classification codes."""
    pool = [item for item in items if not item.is_graduated]

    if category and category != ALL_CATEGORIES:
        pool = [item for item in pool if category in (item.category, item.subject)]

    if codes:
        pool = [item for item in pool if matches(item.tags, codes)]

    return pool


def get_quick_review(
    items: Iterable[ReviewItem],
    category: str | None = None,
    codes: Sequence[str] | None = None,
    count: int = 5,
    now: int | None = None,
    weights: PriorityWeights = DEFAULT_WEIGHTS,
) -> list[ReviewItem]:
    """Filter the pool, then pick the top-count items by priority."""
    pool = filter_review_items(items, category=category, codes=codes)
    return calculate_review_priority(pool, count=count, now=now, weights=weights)
