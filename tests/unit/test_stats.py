"""
Unit tests for hierarchical stats and learner analysis.
"""

import pytest

from quizstate.review import WrongNote
from quizstate.study.analysis import least_covered_subject, review_status, weakest_subject
from quizstate.study.stats import CategoryNode, calculate_hierarchy_stats


@pytest.fixture
def categories():
    """민법 tree: CIV_01 (CIV_01_02, CIV_01_03) and CIV_02."""
    return [
        CategoryNode.from_dict(
            {
                "id": "CIV_01",
                "name": "총칙",
                "subcategories": [
                    {"id": "CIV_01_02", "name": "법률행위"},
                    {"id": "CIV_01_03", "name": "대리"},
                ],
            }
        ),
        CategoryNode(id="CIV_02", name="물권"),
    ]


@pytest.fixture
def history():
    """Two quiz records with tagged questions."""
    return [
        {
            "category": "민사법",
            "score": 2,
            "total": 3,
            "questions": [
                {"id": 1, "subjects": ["CIV_01_02_01"], "answer": 1},
                {"id": 2, "subjects": ["CIV_01_03"], "answer": 2},
                {"id": 3, "subjects": ["CIV_02"], "answer": 3},
            ],
            "answers": {"0": 1, "1": 4, "2": 3},
        },
        {
            "category": "공법",
            "score": 1,
            "total": 1,
            "questions": [
                {"id": 4, "subjects": ["CIV_01_02", "CIV_01_03"], "answer": 1},
            ],
            "answers": {"0": 1},
        },
    ]


class TestHierarchyStats:
    """Tests for calculate_hierarchy_stats."""

    def test_leaf_counts(self, history, categories):
        roots = calculate_hierarchy_stats(history, categories)
        civ01 = roots[0]
        by_id = {child.id: child for child in civ01.children}

        assert (by_id["CIV_01_02"].total, by_id["CIV_01_02"].correct) == (2, 2)
        assert (by_id["CIV_01_03"].total, by_id["CIV_01_03"].correct) == (2, 1)

    def test_parent_counts_each_answer_once(self, history, categories):
        """Test a question tagged under two children counts once for the parent."""
        civ01 = calculate_hierarchy_stats(history, categories)[0]

        assert civ01.total == 3
        assert civ01.correct == 2
        assert civ01.accuracy == 67

    def test_sibling_root(self, history, categories):
        civ02 = calculate_hierarchy_stats(history, categories)[1]

        assert (civ02.total, civ02.correct, civ02.accuracy) == (1, 1, 100)

    def test_unrelated_tags_not_counted(self):
        history = [{"questions": [{"id": 1, "subjects": ["CIV_010"], "answer": 1}], "answers": {}}]

        roots = calculate_hierarchy_stats(history, [CategoryNode(id="CIV_011", name="x")])

        assert roots[0].total == 0
        assert roots[0].accuracy == 0

    def test_subject_filter(self, history, categories):
        civ01 = calculate_hierarchy_stats(history, categories, subject="민사법")[0]

        assert civ01.total == 2

    def test_empty_history(self, categories):
        roots = calculate_hierarchy_stats([], categories)

        assert [r.total for r in roots] == [0, 0]


class TestAnalysis:
    """Tests for learner insights."""

    def test_weakest_subject(self):
        history = [
            {"category": "공법", "score": 9, "total": 10},
            {"category": "민사법", "score": 2, "total": 10},
            {"category": "형사법", "score": 0, "total": 3},
        ]

        weakest = weakest_subject(history)

        assert weakest.subject == "민사법"
        assert weakest.accuracy == 20

    def test_weakest_needs_enough_answers(self):
        assert weakest_subject([{"category": "형사법", "score": 0, "total": 4}]) is None

    def test_least_covered(self):
        history = [{"category": "공법", "total": 10}]
        questions = (
            [{"examInfo": {"category": "공법"}}] * 20
            + [{"examInfo": {"category": "민사법"}}] * 40
        )

        insight = least_covered_subject(history, questions)

        assert insight.subject == "민사법"
        assert insight.ratio == 0

    def test_review_status(self):
        notes = [
            WrongNote(id="a", timestamp=0),
            WrongNote(id="b", timestamp=0, consecutive_correct=1),
            WrongNote(id="c", timestamp=0, consecutive_correct=3, is_graduated=True),
        ]

        status = review_status(notes)

        assert (status.pending, status.active, status.graduated) == (1, 2, 1)
