"""
Hierarchical accuracy statistics over quiz history.

Two passes instead of a full history scan per category node:
1. index every answered question by its classification tags
2. walk the category tree bottom-up; each node collects the answers whose
   tag starts with the node id, unioned with its children's answers

An answer is counted once per node even when several of its tags fall under
the same node.
"""

from __future__ import annotations

import bisect
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from .quiz_engine import is_correct_answer, selected_answer

AnswerKey = tuple[int, int]  # (record index, question index)


@dataclass
class CategoryNode:
    id: str
    name: str
    subcategories: list[CategoryNode] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CategoryNode:
        return cls(
            id=data["id"],
            name=data.get("name", data["id"]),
            subcategories=[cls.from_dict(sub) for sub in data.get("subcategories", [])],
        )


@dataclass
class StatNode:
    id: str
    name: str
    total: int = 0
    correct: int = 0
    children: list[StatNode] = field(default_factory=list)

    @property
    def accuracy(self) -> int:
        return round(self.correct / self.total * 100) if self.total else 0


class _AnswerIndex:
    """Answered questions indexed by tag, with sorted tags for prefix lookups."""

    def __init__(self, history: Iterable[dict[str, Any]]):
        self.by_tag: dict[str, set[AnswerKey]] = {}
        self.correct: set[AnswerKey] = set()

        for r_idx, record in enumerate(history):
            answers = record.get("answers", {})
            for q_idx, question in enumerate(record.get("questions", [])):
                key = (r_idx, q_idx)
                for tag in question.get("subjects", []):
                    self.by_tag.setdefault(tag, set()).add(key)
                selected = selected_answer(answers, q_idx)
                if selected is not None and is_correct_answer(question, selected):
                    self.correct.add(key)

        self.tags = sorted(self.by_tag)

    def with_prefix(self, prefix: str) -> set[AnswerKey]:
        keys: set[AnswerKey] = set()
        start = bisect.bisect_left(self.tags, prefix)
        for tag in self.tags[start:]:
            if not tag.startswith(prefix):
                break
            keys |= self.by_tag[tag]
        return keys


def _record_matches_subject(record: dict[str, Any], subject: str) -> bool:
    return subject in (record.get("subjectId"), record.get("subject"), record.get("category"))


def calculate_hierarchy_stats(
    history: list[dict[str, Any]],
    categories: list[CategoryNode],
    subject: str | None = None,
) -> list[StatNode]:
    """
    Per-category totals and accuracy for a taxonomy tree.

    Args:
        history: Quiz records ({questions, answers, ...})
        categories: Root category nodes
        subject: Only count records of this subject/category

    Returns:
        StatNode trees mirroring categories
    """
    if subject is not None:
        history = [r for r in history if _record_matches_subject(r, subject)]
    index = _AnswerIndex(history)

    def build(node: CategoryNode) -> tuple[StatNode, set[AnswerKey]]:
        children = [build(sub) for sub in node.subcategories]
        keys = index.with_prefix(node.id)
        for _, child_keys in children:
            keys |= child_keys
        stat = StatNode(
            id=node.id,
            name=node.name,
            total=len(keys),
            correct=len(keys & index.correct),
            children=[child for child, _ in children],
        )
        return stat, keys

    return [build(cat)[0] for cat in categories]
