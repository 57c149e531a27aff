"""
Unit tests for wrong-answer notes.
"""

import pytest

from quizstate.review import (
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


@pytest.fixture
def notes(sample_question, now_ms):
    """One freshly recorded note."""
    return record_wrong([], sample_question, now=now_ms)


class TestRecordWrong:
    """Tests for recording missed questions."""

    def test_new_note(self, notes, now_ms):
        note = notes[0]

        assert note.id == "101"
        assert note.wrong_count == 1
        assert note.consecutive_correct == 0
        assert note.timestamp == now_ms
        assert note.last_wrong_date == now_ms
        assert note.tags == ["CIV_01_02"]
        assert note.category == "민사법"
        assert note.question["answer"] == 3

    def test_repeat_miss_bumps_count(self, notes, sample_question, now_ms):
        reviewed = record_review(notes, "101", correct=True, now=now_ms)

        again = record_wrong(reviewed, sample_question, now=now_ms + 1000)

        assert len(again) == 1
        assert again[0].wrong_count == 2
        assert again[0].consecutive_correct == 0
        assert again[0].last_wrong_date == now_ms + 1000

    def test_miss_ungraduates(self, notes, sample_question, now_ms):
        graduated = record_review(notes, "101", True, graduation_streak=1, now=now_ms)
        assert graduated[0].is_graduated

        again = record_wrong(graduated, sample_question, now=now_ms)

        assert again[0].is_graduated is False

    def test_input_not_mutated(self, notes, sample_question, now_ms):
        record_wrong(notes, {**sample_question, "id": 202}, now=now_ms)

        assert len(notes) == 1

    def test_explicit_exam_info(self, sample_question, now_ms):
        question = {k: v for k, v in sample_question.items() if k != "examInfo"}

        result = record_wrong([], question, exam_info={"category": "공법", "round": "3회"}, now=now_ms)

        assert result[0].category == "공법"
        assert result[0].exam_info["round"] == "3회"


class TestRecordReview:
    """Tests for review answers."""

    def test_correct_extends_streak(self, notes, now_ms):
        result = record_review(notes, "101", correct=True, now=now_ms)

        assert result[0].consecutive_correct == 1
        assert result[0].last_review_date == now_ms
        assert result[0].is_graduated is False

    def test_graduates_after_streak(self, notes, now_ms):
        for _ in range(3):
            notes = record_review(notes, "101", correct=True, now=now_ms)

        assert notes[0].consecutive_correct == 3
        assert notes[0].is_graduated is True

    def test_custom_graduation_streak(self, notes, now_ms):
        for _ in range(2):
            notes = record_review(notes, "101", correct=True, graduation_streak=5, now=now_ms)

        assert notes[0].is_graduated is False

    def test_wrong_resets_streak(self, notes, now_ms):
        notes = record_review(notes, "101", correct=True, now=now_ms)

        notes = record_review(notes, "101", correct=False, now=now_ms + 5)

        assert notes[0].consecutive_correct == 0
        assert notes[0].wrong_count == 2
        assert notes[0].last_review_date == now_ms + 5
        assert notes[0].last_wrong_date == now_ms + 5

    def test_unknown_id_is_noop(self, notes, now_ms):
        result = record_review(notes, "missing", correct=True, now=now_ms)

        assert result == notes


class TestMemoAndRemove:
    """Tests for memo and removal."""

    def test_set_and_clear_memo(self, notes):
        with_memo = set_memo(notes, "101", "표현대리 요건 다시 보기")
        cleared = set_memo(with_memo, "101", "")

        assert with_memo[0].memo == "표현대리 요건 다시 보기"
        assert cleared[0].memo is None

    def test_remove_note(self, notes):
        assert remove_note(notes, "101") == []


class TestSerialization:
    """Tests for the persisted JSON form."""

    def test_round_trip(self, notes, now_ms):
        notes = set_memo(record_review(notes, "101", True, now=now_ms), "101", "memo")

        restored = load_notes(dump_notes(notes))

        assert restored == notes

    def test_dump_uses_camel_case(self, notes):
        data = dump_notes(notes)[0]

        assert data["id"] == 101
        assert data["wrongCount"] == 1
        assert data["isGraduated"] is False
        assert data["subjects"] == ["CIV_01_02"]
        assert data["examInfo"]["category"] == "민사법"
        assert "memo" not in data

    def test_from_dict_defaults(self):
        note = WrongNote.from_dict({"id": "x", "timestamp": 5})

        assert note.wrong_count == 0
        assert note.tags == []
        assert note.category is None

    def test_load_skips_malformed(self):
        result = load_notes([{"timestamp": 1}, {"id": 7, "timestamp": 2}])

        assert [n.id for n in result] == ["7"]

    def test_load_none(self):
        assert load_notes(None) == []

    def test_split_keeps_unreadable_entries(self):
        bad = [{"timestamp": 1}, {"id": 8, "timestamp": None}, "garbage"]

        notes, unparsed = split_notes([{"id": 7, "timestamp": 2}, *bad])

        assert [n.id for n in notes] == ["7"]
        assert unparsed == bad

    def test_dump_writes_unparsed_back(self):
        notes, unparsed = split_notes([{"timestamp": 1}, {"id": 7, "timestamp": 2}])

        data = dump_notes(record_review(notes, "7", True, now=3), unparsed)

        assert [entry.get("id") for entry in data] == [7, None]
        assert data[1] == {"timestamp": 1}

    def test_legacy_subject_field(self):
        note = WrongNote.from_dict({"id": 1, "timestamp": 0, "subject": "형사법"})

        assert note.subject == "형사법"
        assert note.to_dict()["subject"] == "형사법"

    def test_find_note(self, notes):
        assert find_note(notes, "101").id == "101"
        assert find_note(notes, "999") is None
