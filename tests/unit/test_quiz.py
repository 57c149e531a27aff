"""
Unit tests for the quiz config and quiz engine.
"""

import random

import pytest
from pydantic import ValidationError

from quizstate.errors import InvalidCodeError
from quizstate.study.quiz_config import QuizConfig, default_config, round_name
from quizstate.study.quiz_engine import (
    calculate_score,
    create_session_questions,
    filter_questions,
    selected_answer,
)
from quizstate.taxonomy import Category


@pytest.fixture
def bank():
    """Question bank spanning civil and constitutional law."""
    return [
        {"id": 1, "subjects": ["CIV_01_02"], "options": ["a", "b", "c"], "answer": 1},
        {"id": 2, "subjects": ["CIV_02"], "options": ["a", "b"], "answer": 2},
        {"id": 3, "subjects": ["CON_01"], "options": ["a", "b"], "answer": 1},
        {"id": 4, "subjects": ["CIV_01"], "options": ["a", "b"], "answer": 2},
        {"id": 5, "subjects": [], "options": ["a"], "answer": 1},
    ]


class TestQuizConfig:
    """Tests for QuizConfig validation and storage."""

    def test_defaults(self):
        config = QuizConfig()

        assert config.category is Category.PUBLIC_LAW
        assert config.selected_rounds == ["1회"]
        assert config.question_count == 10

    def test_store_uses_camel_case(self):
        stored = default_config()

        assert stored["category"] == "공법"
        assert stored["selectedCodes"] == []
        assert stored["questionCount"] == 10

    def test_round_trip(self):
        config = QuizConfig(category="민사법", selected_codes=["CIV_01"], question_count=20)

        assert QuizConfig.from_store(config.to_store()) == config

    def test_invalid_code_rejected(self):
        with pytest.raises(ValidationError):
            QuizConfig(selected_codes=["CIV__01"])

    def test_invalid_category_rejected(self):
        with pytest.raises(ValidationError):
            QuizConfig(category="세법")

    def test_invalid_exam_type_rejected(self):
        with pytest.raises(ValidationError):
            QuizConfig(exam_types=["weekly"])

    def test_from_store_falls_back(self):
        """Test corrupt stored config yields defaults instead of raising."""
        assert QuizConfig.from_store({"questionCount": 0}) == QuizConfig()
        assert QuizConfig.from_store("garbage") == QuizConfig()

    def test_rounds_in_range(self):
        config = QuizConfig(start_year=2012, end_year=2013, exam_types=["official", "6mo"])

        assert config.rounds_in_range() == ["1회", "1회_6mo", "2회", "2회_6mo"]

    def test_round_name(self):
        assert round_name(2024) == "13회"
        assert round_name(2020, "10mo") == "9회_10mo"


class TestFilterQuestions:
    """Tests for question filtering."""

    def test_no_filters(self, bank):
        assert len(filter_questions(bank, QuizConfig())) == 5

    def test_subject_filter(self, bank):
        config = QuizConfig(selected_subjects=["민법"])

        assert [q["id"] for q in filter_questions(bank, config)] == [1, 2, 4]

    def test_code_filter(self, bank):
        config = QuizConfig(selected_codes=["CIV_01"])

        assert [q["id"] for q in filter_questions(bank, config)] == [1, 4]

    def test_deep_code_matches_broad_tag(self, bank):
        config = QuizConfig(selected_codes=["CIV_01_02_03"])

        assert [q["id"] for q in filter_questions(bank, config)] == [1, 4]


class TestCreateSession:
    """Tests for session creation."""

    def test_unseen_first(self, bank):
        config = QuizConfig(question_count=3, shuffle_options=False)

        session = create_session_questions(bank, ["1", "2", "3"], config, rng=random.Random(0))

        ids = [q["id"] for q in session]
        assert len(ids) == 3
        assert set(ids[:2]) == {4, 5}
        assert ids[2] in {1, 2, 3}

    def test_all_unseen_available(self, bank):
        config = QuizConfig(question_count=2)

        session = create_session_questions(bank, [1, 2], config, rng=random.Random(1))

        assert {q["id"] for q in session} <= {3, 4, 5}

    def test_count_larger_than_pool(self, bank):
        session = create_session_questions(bank, [], QuizConfig(question_count=50), rng=random.Random(2))

        assert len(session) == 5

    def test_display_options_keep_original_index(self, bank):
        config = QuizConfig(question_count=5, shuffle_options=True)

        session = create_session_questions(bank, [], config, rng=random.Random(3))

        for question in session:
            indices = sorted(opt["originalIndex"] for opt in question["displayOptions"])
            assert indices == list(range(1, len(question["options"]) + 1))

    def test_unshuffled_options_in_order(self, bank):
        config = QuizConfig(question_count=5, shuffle_options=False)

        session = create_session_questions(bank, [], config, rng=random.Random(4))

        first = next(q for q in session if q["id"] == 1)
        assert [o["text"] for o in first["displayOptions"]] == ["a", "b", "c"]

    def test_pool_not_mutated(self, bank):
        create_session_questions(bank, [], QuizConfig(), rng=random.Random(5))

        assert all("displayOptions" not in q for q in bank)


class TestScoring:
    """Tests for scoring."""

    def test_calculate_score(self, bank):
        result = calculate_score(bank[:3], {0: 1, 1: 1, 2: 1})

        assert (result.correct, result.total) == (2, 3)
        assert result.percentage == 67
        assert not result.is_perfect

    def test_string_keys(self, bank):
        """Test answers that went through JSON still score."""
        result = calculate_score(bank[:2], {"0": 1, "1": 2})

        assert result.is_perfect

    def test_unanswered_is_wrong(self, bank):
        assert calculate_score(bank[:2], {}).correct == 0

    def test_selected_answer(self):
        assert selected_answer({0: 3}, 0) == 3
        assert selected_answer({"1": 2}, 1) == 2
        assert selected_answer({}, 0) is None

    def test_empty_quiz(self):
        result = calculate_score([], {})

        assert result.percentage == 0
        assert not result.is_perfect


def test_invalid_code_error_is_raised_directly():
    """Test the validator's own error type carries the bad code."""
    from quizstate.taxonomy import validate_code

    with pytest.raises(InvalidCodeError) as exc_info:
        validate_code("CIV-1")

    assert exc_info.value.code == "CIV-1"
