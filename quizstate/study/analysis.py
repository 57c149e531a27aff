"""Learner insights derived from quiz history and wrong notes."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from quizstate.review.notes import WrongNote

MIN_QUESTIONS_FOR_WEAKNESS = 5


@dataclass(frozen=True)
class SubjectInsight:
    subject: str
    total: int
    correct: int

    @property
    def accuracy(self) -> float:
        return self.correct / self.total * 100 if self.total else 0.0


@dataclass(frozen=True)
class CoverageInsight:
    subject: str
    studied: int
    available: int

    @property
    def ratio(self) -> float:
        return self.studied / self.available if self.available else 0.0


@dataclass(frozen=True)
class ReviewStatus:
    pending: int  # active notes with no correct answer yet
    active: int
    graduated: int


def _record_subject(record: dict[str, Any]) -> str:
    return record.get("subjectId") or record.get("subject") or record.get("category") or "unknown"


def weakest_subject(history: Iterable[dict[str, Any]]) -> SubjectInsight | None:
    """Subject with the lowest accuracy among those with enough answers."""
    totals: dict[str, list[int]] = {}
    for record in history:
        counts = totals.setdefault(_record_subject(record), [0, 0])
        counts[0] += int(record.get("total", 0))
        counts[1] += int(record.get("score", 0))

    weakest: SubjectInsight | None = None
    for subject, (total, correct) in totals.items():
        if total < MIN_QUESTIONS_FOR_WEAKNESS:
            continue
        insight = SubjectInsight(subject=subject, total=total, correct=correct)
        if weakest is None or insight.accuracy < weakest.accuracy:
            weakest = insight
    return weakest


def least_covered_subject(
    history: Iterable[dict[str, Any]],
    questions: Iterable[dict[str, Any]],
) -> CoverageInsight | None:
    """Category whose question bank has been explored the least."""
    studied: dict[str, int] = {}
    for record in history:
        subject = _record_subject(record)
        studied[subject] = studied.get(subject, 0) + int(record.get("total", 0))

    available: dict[str, int] = {}
    for question in questions:
        subject = (question.get("examInfo") or {}).get("category") or question.get("subject")
        if subject:
            available[subject] = available.get(subject, 0) + 1

    lowest: CoverageInsight | None = None
    for subject, count in available.items():
        insight = CoverageInsight(subject=subject, studied=studied.get(subject, 0), available=count)
        if lowest is None or insight.ratio < lowest.ratio:
            lowest = insight
    return lowest


def review_status(notes: Iterable[WrongNote]) -> ReviewStatus:
    pending = active = graduated = 0
    for note in notes:
        if note.is_graduated:
            graduated += 1
            continue
        active += 1
        if note.consecutive_correct == 0:
            pending += 1
    return ReviewStatus(pending=pending, active=active, graduated=graduated)
