"""
Wrong-answer notes.

A WrongNote is a ReviewItem plus the question it came from and the learner's
memo. Notes are persisted as plain JSON (camelCase keys, epoch-ms timestamps)
inside the wrong_notes store; every operation here returns a new list and
leaves its input untouched.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any

from loguru import logger

from .priority import ReviewItem, now_ms

# Keys owned by the note itself; everything else is question payload.
_NOTE_KEYS = {
    "id",
    "timestamp",
    "wrongCount",
    "consecutiveCorrect",
    "lastWrongDate",
    "lastReviewDate",
    "isGraduated",
    "memo",
    "subjects",
    "examInfo",
}


@dataclass
class WrongNote(ReviewItem):
    """A missed question under spaced review."""

    last_wrong_date: int | None = None
    memo: str | None = None
    exam_info: dict[str, Any] | None = None
    question: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> WrongNote:
        """
        Create a WrongNote from its persisted JSON form.

        Args:
            data: Dictionary from the wrong_notes store

        Returns:
            WrongNote instance
        """
        exam_info = data.get("examInfo")
        return cls(
            id=str(data["id"]),
            timestamp=int(data.get("timestamp", 0)),
            last_review_date=data.get("lastReviewDate"),
            consecutive_correct=int(data.get("consecutiveCorrect", 0)),
            wrong_count=int(data.get("wrongCount", 0)),
            is_graduated=bool(data.get("isGraduated", False)),
            tags=list(data.get("subjects", [])),
            category=exam_info.get("category") if isinstance(exam_info, dict) else None,
            subject=data.get("subject"),
            last_wrong_date=data.get("lastWrongDate"),
            memo=data.get("memo"),
            exam_info=exam_info,
            question={k: v for k, v in data.items() if k not in _NOTE_KEYS or k == "id"},
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = dict(self.question)
        data.update(
            {
                "id": self.question.get("id", self.id),
                "timestamp": self.timestamp,
                "wrongCount": self.wrong_count,
                "consecutiveCorrect": self.consecutive_correct,
                "isGraduated": self.is_graduated,
                "subjects": list(self.tags),
            }
        )
        if self.last_review_date is not None:
            data["lastReviewDate"] = self.last_review_date
        if self.last_wrong_date is not None:
            data["lastWrongDate"] = self.last_wrong_date
        if self.memo is not None:
            data["memo"] = self.memo
        if self.exam_info is not None:
            data["examInfo"] = self.exam_info
        return data


def split_notes(raw: list[Any] | None) -> tuple[list[WrongNote], list[Any]]:
    """
    Parse persisted notes.

    Returns:
        (notes, unparsed) where unparsed holds the raw entries that could
        not be read, so a later write can carry them through untouched.
    """
    notes: list[WrongNote] = []
    unparsed: list[Any] = []
    for entry in raw or []:
        try:
            notes.append(WrongNote.from_dict(entry))
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Unreadable wrong note {entry!r}: {e}")
            unparsed.append(entry)
    return notes, unparsed


def load_notes(raw: list[Any] | None) -> list[WrongNote]:
    """Parse persisted notes for reading; unreadable entries are left out."""
    return split_notes(raw)[0]


def dump_notes(notes: list[WrongNote], unparsed: list[Any] | None = None) -> list[Any]:
    return [note.to_dict() for note in notes] + list(unparsed or [])


def _index_of(notes: list[WrongNote], note_id: str) -> int | None:
    for i, note in enumerate(notes):
        if note.id == str(note_id):
            return i
    return None


def find_note(notes: list[WrongNote], note_id: str) -> WrongNote | None:
    idx = _index_of(notes, note_id)
    return None if idx is None else notes[idx]


def record_wrong(
    notes: list[WrongNote],
    question: dict[str, Any],
    exam_info: dict[str, Any] | None = None,
    now: int | None = None,
) -> list[WrongNote]:
    """
    Record a missed question.

    An existing note gets its wrong count bumped, its streak reset and is
    returned to the active pool; otherwise a new note is appended.
    """
    now = now_ms() if now is None else now
    result = list(notes)
    idx = _index_of(result, str(question["id"]))

    if idx is not None:
        note = result[idx]
        result[idx] = replace(
            note,
            wrong_count=note.wrong_count + 1,
            consecutive_correct=0,
            last_wrong_date=now,
            is_graduated=False,
        )
        return result

    exam_info = exam_info or question.get("examInfo")
    result.append(
        WrongNote(
            id=str(question["id"]),
            timestamp=now,
            wrong_count=1,
            tags=list(question.get("subjects", [])),
            category=exam_info.get("category") if exam_info else None,
            subject=question.get("subject"),
            last_wrong_date=now,
            exam_info=exam_info,
            question={k: v for k, v in question.items() if k not in _NOTE_KEYS or k == "id"},
        )
    )
    return result


def record_review(
    notes: list[WrongNote],
    note_id: str,
    correct: bool,
    graduation_streak: int = 3,
    now: int | None = None,
) -> list[WrongNote]:
    """
    Apply a review answer to one note.

    Correct answers extend the streak and graduate the note once the streak
    reaches graduation_streak; a wrong answer resets the streak. Unknown ids
    leave the notes unchanged.
    """
    now = now_ms() if now is None else now
    result = list(notes)
    idx = _index_of(result, note_id)
    if idx is None:
        logger.warning(f"No wrong note with id {note_id!r}")
        return result

    note = result[idx]
    if correct:
        streak = note.consecutive_correct + 1
        result[idx] = replace(
            note,
            consecutive_correct=streak,
            last_review_date=now,
            is_graduated=streak >= graduation_streak,
        )
    else:
        result[idx] = replace(
            note,
            consecutive_correct=0,
            wrong_count=note.wrong_count + 1,
            last_review_date=now,
            last_wrong_date=now,
            is_graduated=False,
        )
    return result


def set_memo(notes: list[WrongNote], note_id: str, memo: str | None) -> list[WrongNote]:
    """Attach (or clear, with None/empty) the learner's memo on a note."""
    result = list(notes)
    idx = _index_of(result, note_id)
    if idx is None:
        logger.warning(f"No wrong note with id {note_id!r}")
        return result
    result[idx] = replace(result[idx], memo=memo or None)
    return result


def remove_note(notes: list[WrongNote], note_id: str) -> list[WrongNote]:
    return [note for note in notes if note.id != str(note_id)]
