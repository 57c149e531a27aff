"""
Unit tests for the quizstate CLI.
"""

import json

import pytest
from typer.testing import CliRunner

from config import get_settings
from quizstate.cli.main import app
from quizstate.sync import SqliteLocalStorage

runner = CliRunner()


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    """Point settings at a temp data dir with no remote configured."""
    monkeypatch.setenv("QUIZSTATE_DATA_DIR", str(tmp_path))
    monkeypatch.delenv("QUIZSTATE_REMOTE_URL", raising=False)
    monkeypatch.delenv("QUIZSTATE_USER", raising=False)
    get_settings.cache_clear()
    yield tmp_path
    get_settings.cache_clear()


@pytest.fixture
def seeded(data_dir, sample_question, now_ms):
    """Local database holding one wrong note."""
    storage = SqliteLocalStorage(data_dir / "state.db")
    note = {
        **{k: v for k, v in sample_question.items() if k != "examInfo"},
        "timestamp": now_ms,
        "wrongCount": 2,
        "consecutiveCorrect": 0,
        "isGraduated": False,
        "examInfo": sample_question["examInfo"],
    }
    storage.set_item("quiz_wrong_notes", json.dumps([note], ensure_ascii=False))
    storage.close()
    return data_dir


class TestCodesCommands:
    """Tests for code commands (no state needed)."""

    def test_match(self):
        result = runner.invoke(app, ["codes", "match", "--tag", "CIV_01_02", "--selected", "CIV_01"])

        assert result.exit_code == 0
        assert "match" in result.output

    def test_no_match(self):
        result = runner.invoke(app, ["codes", "match", "--tag", "CIV_02", "--selected", "CIV_01"])

        assert result.exit_code == 1
        assert "no match" in result.output

    def test_invalid_code(self):
        result = runner.invoke(app, ["codes", "match", "--tag", "CIV__02"])

        assert result.exit_code == 1
        assert "Invalid classification code" in result.output

    def test_expand(self, tmp_path, master_codes):
        path = tmp_path / "master_codes.json"
        path.write_text(json.dumps(master_codes, ensure_ascii=False), encoding="utf-8")

        result = runner.invoke(app, ["codes", "expand", "CIV_01_02", "--master-codes", str(path)])

        assert result.exit_code == 0
        assert "CIV_01_02_01" in result.output
        assert "CIV_01_03" not in result.output


class TestStateCommands:
    """Tests for commands that open the learner state."""

    def test_review_lists_notes(self, seeded):
        result = runner.invoke(app, ["review"])

        assert result.exit_code == 0
        assert "101" in result.output

    def test_review_empty(self, data_dir):
        result = runner.invoke(app, ["review"])

        assert result.exit_code == 0
        assert "Nothing to review" in result.output

    def test_review_unknown_category(self, data_dir):
        result = runner.invoke(app, ["review", "--category", "세법"])

        assert result.exit_code == 1

    def test_record_review(self, seeded):
        result = runner.invoke(app, ["record", "101", "--correct"])

        assert result.exit_code == 0
        assert "streak 1" in result.output

        storage = SqliteLocalStorage(seeded / "state.db")
        notes = json.loads(storage.get_item("quiz_wrong_notes"))
        storage.close()
        assert notes[0]["consecutiveCorrect"] == 1

    def test_record_unknown_note(self, data_dir):
        result = runner.invoke(app, ["record", "999", "--wrong"])

        assert result.exit_code == 1

    def test_memo_saved(self, seeded):
        result = runner.invoke(app, ["memo", "101", "조문 확인"])

        assert result.exit_code == 0
        assert "Memo saved" in result.output

        storage = SqliteLocalStorage(seeded / "state.db")
        notes = json.loads(storage.get_item("quiz_wrong_notes"))
        storage.close()
        assert notes[0]["memo"] == "조문 확인"

    def test_memo_unknown_note(self, seeded):
        before = SqliteLocalStorage(seeded / "state.db")
        stored = before.get_item("quiz_wrong_notes")
        before.close()

        result = runner.invoke(app, ["memo", "nope", "hello"])

        assert result.exit_code == 1
        assert "No wrong note with id nope" in result.output
        assert "Memo saved" not in result.output

        after = SqliteLocalStorage(seeded / "state.db")
        assert after.get_item("quiz_wrong_notes") == stored
        after.close()

    def test_set_codes_then_show(self, data_dir):
        set_result = runner.invoke(app, ["config", "set-codes", "CIV_01", "CON_02"])
        show_result = runner.invoke(app, ["config", "show"])

        assert set_result.exit_code == 0
        assert show_result.exit_code == 0
        assert "CIV_01, CON_02" in show_result.output

    def test_set_codes_rejects_invalid(self, data_dir):
        result = runner.invoke(app, ["config", "set-codes", "CIV-01"])

        assert result.exit_code == 1

    def test_quiz_record(self, data_dir, sample_question, tmp_path):
        path = tmp_path / "result.json"
        path.write_text(
            json.dumps(
                {"category": "민사법", "round": "1회", "questions": [sample_question], "answers": {"0": 3}},
                ensure_ascii=False,
            ),
            encoding="utf-8",
        )

        result = runner.invoke(app, ["quiz", "record", str(path)])
        status = runner.invoke(app, ["status"])

        assert result.exit_code == 0
        assert "1/1 (100%)" in result.output
        assert status.exit_code == 0
        assert "Total XP" in status.output

    def test_version(self):
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert "quizstate" in result.output
