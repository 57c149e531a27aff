"""
Spaced review of missed questions.

- priority: Review Priority Scheduler (score, rank, quick review queue)
- notes: WrongNote records and the answer-recording operations
"""

from .notes import (
    WrongNote,
    dump_notes,
    find_note,
    load_notes,
    record_review,
    record_wrong,
    remove_note,
    set_memo,
    split_notes,
)
from .priority import (
    DEFAULT_WEIGHTS,
    PriorityWeights,
    ReviewItem,
    ScoredItem,
    calculate_review_priority,
    filter_review_items,
    get_quick_review,
    rank_review_items,
    review_score,
)

__all__ = [
    "ReviewItem",
    "PriorityWeights",
    "DEFAULT_WEIGHTS",
    "ScoredItem",
    "review_score",
    "rank_review_items",
    "calculate_review_priority",
    "filter_review_items",
    "get_quick_review",
    "WrongNote",
    "load_notes",
    "split_notes",
    "find_note",
    "dump_notes",
    "record_wrong",
    "record_review",
    "set_memo",
    "remove_note",
]
