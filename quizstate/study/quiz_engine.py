"""
Quiz engine: question filtering and session creation.

Questions are plain dicts as loaded from the exam content files:
    {"id": 3, "subjects": ["CIV_01_02"], "question": ..., "options": [...], "answer": 2}
`answer` and selected options are 1-based.
"""

from __future__ import annotations

import random
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from quizstate.taxonomy.categories import subject_prefixes
from quizstate.taxonomy.codes import matches

from .quiz_config import QuizConfig


@dataclass(frozen=True)
class QuizResult:
    correct: int
    total: int

    @property
    def percentage(self) -> int:
        return round(self.correct / self.total * 100) if self.total else 0

    @property
    def is_perfect(self) -> bool:
        return self.total > 0 and self.correct == self.total


def filter_questions(questions: Iterable[dict[str, Any]], config: QuizConfig) -> list[dict[str, Any]]:
    """
    Questions matching the configured subjects and classification codes.

    Empty selections mean "everything".
    """
    pool = list(questions)

    if config.selected_subjects:
        prefixes = subject_prefixes(config.selected_subjects)
        pool = [
            q for q in pool
            if any(code.startswith(prefix) for code in q.get("subjects", []) for prefix in prefixes)
        ]

    if config.selected_codes:
        pool = [q for q in pool if matches(q.get("subjects", []), config.selected_codes)]

    return pool


def create_session_questions(
    pool: list[dict[str, Any]],
    seen_ids: Iterable[str],
    config: QuizConfig,
    rng: random.Random | None = None,
) -> list[dict[str, Any]]:
    """
    Pick config.question_count questions for a session.

    With prioritize_unseen, unseen questions come first and seen ones only
    fill the remainder. Each returned question carries displayOptions
    ({text, originalIndex}), shuffled when config.shuffle_options is set.
    """
    rng = rng or random.Random()
    seen = {str(i) for i in seen_ids}
    needed = config.question_count

    def shuffled(items: list[dict[str, Any]]) -> list[dict[str, Any]]:
        items = list(items)
        rng.shuffle(items)
        return items

    if config.prioritize_unseen:
        unseen = [q for q in pool if str(q["id"]) not in seen]
        already = [q for q in pool if str(q["id"]) in seen]
        if len(unseen) >= needed:
            selected = shuffled(unseen)[:needed]
        else:
            selected = shuffled(unseen) + shuffled(already)[: needed - len(unseen)]
    else:
        selected = shuffled(pool)[:needed]

    session = []
    for q in selected:
        options = [
            {"text": text.strip(), "originalIndex": i + 1}
            for i, text in enumerate(q.get("options", []))
        ]
        if config.shuffle_options:
            rng.shuffle(options)
        session.append({**q, "displayOptions": options})
    return session


def is_correct_answer(question: dict[str, Any], selected: int) -> bool:
    return question.get("answer") == selected


def selected_answer(answers: dict[Any, int], index: int) -> int | None:
    """Answer for a question index; JSON round-trips turn int keys into strings."""
    if index in answers:
        return answers[index]
    return answers.get(str(index))


def calculate_score(questions: list[dict[str, Any]], answers: dict[Any, int]) -> QuizResult:
    correct = 0
    for idx, question in enumerate(questions):
        selected = selected_answer(answers, idx)
        if selected is not None and is_correct_answer(question, selected):
            correct += 1
    return QuizResult(correct=correct, total=len(questions))
