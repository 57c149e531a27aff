"""
Application state wiring.

StudyState creates one synchronized store per piece of learner state, all
sharing the same AuthObserver and storage pair, and exposes the study
actions that mutate them.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import datetime
from typing import Any

from loguru import logger

from config import Settings
from quizstate.review.notes import (
    WrongNote,
    dump_notes,
    find_note,
    load_notes,
    record_review,
    record_wrong,
    set_memo,
    split_notes,
)
from quizstate.review.priority import PriorityWeights, get_quick_review, now_ms
from quizstate.sync.auth import AuthObserver
from quizstate.sync.contracts import DocumentStore, LocalStorage
from quizstate.sync.local_storage import SqliteLocalStorage
from quizstate.sync.remote_store import HttpDocumentStore
from quizstate.sync.synced_store import PersistedStore, SyncedStore, create_synced, persisted

from .missions import initial_mission_state, register_activity
from .quiz_config import QuizConfig, default_config
from .quiz_engine import QuizResult, calculate_score, is_correct_answer, selected_answer


class StudyState:
    """
    The learner's persisted state.

    Stores (storage key / remote id):
        config       quiz_config / config
        history      quiz_history / history
        wrong_notes  quiz_wrong_notes / wrong_notes
        seen_ids     quiz_seen_ids / seen_ids
        missions     quiz_mission_state / mission
        session      quiz_session_active (local only)
    """

    def __init__(
        self,
        auth: AuthObserver,
        local: LocalStorage | None = None,
        remote: DocumentStore | None = None,
        graduation_streak: int = 3,
        weights: PriorityWeights | None = None,
        daily_target: int = 30,
    ):
        self.auth = auth
        self.local = local
        self.remote = remote
        self.graduation_streak = graduation_streak
        self.weights = weights or PriorityWeights()

        def synced(key: str, remote_id: str, default: Any) -> SyncedStore:
            return create_synced(key, remote_id, default, auth=auth, local=local, remote=remote)

        self.config: SyncedStore[dict] = synced("quiz_config", "config", default_config())
        self.history: SyncedStore[list] = synced("quiz_history", "history", [])
        self.wrong_notes: SyncedStore[list] = synced("quiz_wrong_notes", "wrong_notes", [])
        self.seen_ids: SyncedStore[list] = synced("quiz_seen_ids", "seen_ids", [])
        self.missions: SyncedStore[dict] = synced(
            "quiz_mission_state", "mission", initial_mission_state(daily_target=daily_target)
        )
        self.session: PersistedStore[Any] = persisted("quiz_session_active", None, local)

    @classmethod
    def from_settings(cls, settings: Settings, auth: AuthObserver) -> StudyState:
        """Build state with SQLite local storage and, if configured, the HTTP document store."""
        local = SqliteLocalStorage(settings.local_db_path)
        remote = None
        if settings.has_remote_configured():
            remote = HttpDocumentStore(
                settings.remote_url,
                api_key=settings.remote_api_key,
                timeout_seconds=settings.remote_timeout_seconds,
                poll_interval_seconds=settings.remote_poll_interval_seconds,
            )
        return cls(
            auth,
            local=local,
            remote=remote,
            graduation_streak=settings.graduation_streak,
            weights=PriorityWeights.from_dict(settings.get_review_weights()),
            daily_target=settings.daily_target,
        )

    @property
    def stores(self) -> list[SyncedStore]:
        return [self.config, self.history, self.wrong_notes, self.seen_ids, self.missions]

    # =========================================================================
    # Config
    # =========================================================================

    def get_config(self) -> QuizConfig:
        return QuizConfig.from_store(self.config.get())

    def update_config(self, **changes: Any) -> QuizConfig:
        """Validate and persist config changes (raises pydantic.ValidationError)."""
        merged = {**self.get_config().model_dump(), **changes}
        config = QuizConfig.model_validate(merged)
        self.config.set(config.to_store())
        return config

    # =========================================================================
    # Study actions
    # =========================================================================

    def record_quiz(
        self,
        questions: list[dict[str, Any]],
        answers: dict[int, int],
        category: str,
        round_name: str,
        time_taken: int = 0,
        now: datetime | None = None,
    ) -> QuizResult:
        """
        Record a finished quiz.

        Appends the history record, files missed questions as wrong notes,
        marks every question as seen and folds the result into missions.
        """
        now = now or datetime.now()
        stamp = int(now.timestamp() * 1000)
        result = calculate_score(questions, answers)
        exam_info = {"category": category, "round": round_name}

        record = {
            "id": stamp,
            "date": now.isoformat(),
            "timestamp": stamp,
            "category": category,
            "round": round_name,
            "score": result.correct,
            "total": result.total,
            "timeTaken": time_taken,
            "questions": questions,
            "answers": {str(k): v for k, v in answers.items()},
        }
        self.history.update(lambda history: [*history, record])

        def add_wrong(notes: list[WrongNote]) -> list[WrongNote]:
            for idx, question in enumerate(questions):
                selected = selected_answer(answers, idx)
                if selected is None or not is_correct_answer(question, selected):
                    notes = record_wrong(notes, question, question.get("examInfo") or exam_info, now=stamp)
            return notes

        self._update_notes(add_wrong)

        def add_seen(seen: list) -> list:
            known = set(seen)
            return [*seen, *(str(q["id"]) for q in questions if str(q["id"]) not in known)]

        self.seen_ids.update(add_seen)
        self.missions.update(lambda m: register_activity(m, result.total, result.correct, now=now))

        logger.info(f"Recorded quiz {round_name} {category}: {result.correct}/{result.total}")
        return result

    def _update_notes(self, change: Callable[[list[WrongNote]], list[WrongNote]]) -> bool:
        """
        Apply change to the parsed wrong notes and store the result.

        Entries that could not be parsed are written back as they were read.
        Nothing is written when change leaves the notes as they were.
        """
        notes, unparsed = split_notes(self.wrong_notes.get())
        updated = change(notes)
        if updated == notes:
            return False
        self.wrong_notes.set(dump_notes(updated, unparsed))
        return True

    def find_note(self, note_id: str) -> WrongNote | None:
        return find_note(load_notes(self.wrong_notes.get()), note_id)

    def record_review_answer(self, note_id: str, correct: bool, now: int | None = None) -> bool:
        """Returns False when no note has note_id."""
        return self._update_notes(
            lambda notes: record_review(notes, note_id, correct, self.graduation_streak, now=now)
        )

    def set_note_memo(self, note_id: str, memo: str | None) -> bool:
        """Returns False when no note has note_id or the memo is unchanged."""
        return self._update_notes(lambda notes: set_memo(notes, note_id, memo))

    def quick_review(
        self,
        count: int = 5,
        category: str | None = None,
        codes: list[str] | None = None,
        now: int | None = None,
    ) -> list[WrongNote]:
        """Top-count wrong notes to review next."""
        notes = load_notes(self.wrong_notes.get())
        return get_quick_review(
            notes,
            category=category,
            codes=codes,
            count=count,
            now=now_ms() if now is None else now,
            weights=self.weights,
        )

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def refresh(self) -> None:
        """Pull every store from its current source."""
        await asyncio.gather(*(store.refresh() for store in self.stores))

    async def flush(self) -> None:
        await asyncio.gather(*(store.flush() for store in self.stores))

    async def aclose(self) -> None:
        await self.flush()
        for store in self.stores:
            store.close()
        if isinstance(self.remote, HttpDocumentStore):
            await self.remote.close()
        if isinstance(self.local, SqliteLocalStorage):
            self.local.close()
