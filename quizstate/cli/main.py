"""
Typer CLI for the quizstate engine.

Commands:
    quizstate review                 - Show the quick review queue with scores
    quizstate record NOTE_ID         - Record a review answer (--correct/--wrong)
    quizstate memo NOTE_ID TEXT      - Attach a memo to a wrong note
    quizstate status                 - Level, streak, review pool and weak spots
    quizstate stats CATEGORIES       - Hierarchical accuracy for a category tree
    quizstate quiz build QUESTIONS   - Build a session from a question bank
    quizstate quiz record RESULT     - Record a finished quiz
    quizstate codes expand CODE      - List a code and its known descendants
    quizstate codes match            - Check item tags against selected codes
    quizstate config show            - Show the synced quiz config
    quizstate config set-codes CODE  - Replace the selected classification codes

Usage:
    quizstate --help
    quizstate --user alice review --category 민사법 --code CIV_01
    quizstate codes match --tag CIV_01_02 --selected CIV_01
"""

from __future__ import annotations

import asyncio
import json
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

import typer
from loguru import logger
from pydantic import ValidationError
from rich import print as rprint
from rich.console import Console
from rich.table import Table

from config import get_settings
from quizstate import __version__
from quizstate.errors import QuizStateError
from quizstate.review.notes import load_notes
from quizstate.review.priority import (
    ALL_CATEGORIES,
    filter_review_items,
    now_ms,
    rank_review_items,
)
from quizstate.study.analysis import review_status, weakest_subject
from quizstate.study.missions import level_info
from quizstate.study.quiz_engine import create_session_questions, filter_questions
from quizstate.study.state import StudyState
from quizstate.study.stats import CategoryNode, StatNode, calculate_hierarchy_stats
from quizstate.sync.auth import AuthObserver
from quizstate.taxonomy.categories import parse_category
from quizstate.taxonomy.codes import matches, validate_code
from quizstate.taxonomy.universe import CodeUniverse

T = TypeVar("T")

console = Console()

app = typer.Typer(
    help="quizstate: offline-first study state with spaced review",
    no_args_is_help=True,
)


# ========================================
# Logging
# ========================================


def configure_logging() -> None:
    """Replace loguru's default sink with the configured stderr/file sinks."""
    settings = get_settings()
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level,
        format="<level>{level: <8}</level> | {name}:{function} - <level>{message}</level>",
    )
    if settings.log_file:
        logger.add(
            settings.log_file,
            level="DEBUG",
            rotation="10 MB",
            retention="7 days",
        )


# ========================================
# Context Builder (Dependency Injection)
# ========================================


class CLIContext:
    """Per-invocation settings and identity."""

    def __init__(self, user: str | None = None):
        self.settings = get_settings()
        self.user = user

    def run(self, action: Callable[[StudyState], T]) -> T:
        """
        Open the learner state, apply action, and wait for writes to land.

        The state is built inside the event loop so remote subscriptions and
        writes have a loop to run on.
        """

        async def runner() -> T:
            state = StudyState.from_settings(self.settings, AuthObserver(identity=self.user))
            try:
                await state.refresh()
                return action(state)
            finally:
                await state.aclose()

        return asyncio.run(runner())


def _context(ctx: typer.Context) -> CLIContext:
    if ctx.obj is None:
        ctx.obj = CLIContext()
    return ctx.obj


def _fail(message: str) -> None:
    rprint(f"[red]✗[/red] {message}")
    raise typer.Exit(code=1)


def _validated_codes(codes: list[str] | None) -> list[str]:
    try:
        return [validate_code(code) for code in codes or []]
    except QuizStateError as e:
        _fail(str(e))


def _validated_category(category: str | None) -> str | None:
    if category is None or category == ALL_CATEGORIES:
        return category
    try:
        return parse_category(category).value
    except QuizStateError as e:
        _fail(str(e))


def _load_json(path: Path) -> Any:
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        _fail(f"Could not read {path}: {e}")


@app.callback()
def main_callback(
    ctx: typer.Context,
    user: str | None = typer.Option(
        None, "--user", "-u", envvar="QUIZSTATE_USER",
        help="Signed-in identity (omit for guest/local state)",
    ),
) -> None:
    """Offline-first study state with spaced review."""
    ctx.obj = CLIContext(user=user)


# ========================================
# REVIEW COMMANDS
# ========================================


@app.command("review")
def review(
    ctx: typer.Context,
    count: int | None = typer.Option(None, "--count", "-n", help="Queue size (default: from config)"),
    category: str | None = typer.Option(None, "--category", "-c", help="Exam category or 'all'"),
    codes: list[str] | None = typer.Option(None, "--code", help="Classification code filter (repeatable)"),
) -> None:
    """
    Show the wrong notes to review next, highest priority first.

    Examples:
        quizstate review
        quizstate review --category 공법 --code CON_02 -n 10
    """
    cli = _context(ctx)
    count = count or cli.settings.quick_review_count
    category = _validated_category(category)
    codes = _validated_codes(codes)

    def ranked(state: StudyState):
        pool = filter_review_items(load_notes(state.wrong_notes.get()), category=category, codes=codes)
        return rank_review_items(pool, now=now_ms(), weights=state.weights)[:count]

    scored = cli.run(ranked)
    if not scored:
        rprint("[green]✓[/green] Nothing to review")
        return

    table = Table(title=f"Quick Review ({len(scored)})", show_header=True)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Note", style="cyan")
    table.add_column("Score", justify="right", style="bold")
    table.add_column("Days", justify="right")
    table.add_column("Wrong", justify="right", style="red")
    table.add_column("Streak", justify="right", style="green")
    table.add_column("Category")
    table.add_column("Codes", style="dim")

    for rank, entry in enumerate(scored, start=1):
        item = entry.item
        table.add_row(
            str(rank),
            item.id,
            f"{entry.score:.1f}",
            f"{entry.days_since:.1f}",
            str(item.wrong_count),
            str(item.consecutive_correct),
            item.category or "-",
            ", ".join(item.tags) or "-",
        )

    console.print(table)


@app.command("record")
def record(
    ctx: typer.Context,
    note_id: str = typer.Argument(..., help="Wrong note id"),
    correct: bool = typer.Option(..., "--correct/--wrong", help="Review outcome"),
) -> None:
    """Record a review answer for one wrong note."""
    cli = _context(ctx)

    def apply(state: StudyState):
        state.record_review_answer(note_id, correct)
        return state.find_note(note_id)

    note = cli.run(apply)
    if note is None:
        _fail(f"No wrong note with id {note_id}")

    if note.is_graduated:
        rprint(f"[bold green]✓ {note_id} graduated[/bold green]")
    elif correct:
        rprint(f"[green]✓[/green] {note_id}: streak {note.consecutive_correct}")
    else:
        rprint(f"[yellow]✗[/yellow] {note_id}: wrong {note.wrong_count} times")


@app.command("memo")
def memo(
    ctx: typer.Context,
    note_id: str = typer.Argument(..., help="Wrong note id"),
    text: str = typer.Argument("", help="Memo text (empty clears it)"),
) -> None:
    """Attach or clear the memo on a wrong note."""

    def apply(state: StudyState) -> bool:
        if state.find_note(note_id) is None:
            return False
        state.set_note_memo(note_id, text)
        return True

    if not _context(ctx).run(apply):
        _fail(f"No wrong note with id {note_id}")

    rprint(f"[green]✓[/green] Memo {'saved' if text else 'cleared'} for {note_id}")


@app.command("status")
def status(ctx: typer.Context) -> None:
    """Show level, streak, review pool and the weakest subject."""

    def snapshot(state: StudyState):
        return state.missions.get(), state.history.get(), load_notes(state.wrong_notes.get())

    mission, history, notes = _context(ctx).run(snapshot)
    level = level_info(int(mission.get("totalXp", 0)))
    pool = review_status(notes)
    weakest = weakest_subject(history)

    table = Table(title="Study Status", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Level", f"{level.level} ({level.title})")
    table.add_row("Total XP", str(mission.get("totalXp", 0)))
    table.add_row("Streak", f"{mission.get('currentStreak', 0)} days (best {mission.get('maxStreak', 0)})")
    table.add_row("Today", f"{mission.get('dailyProgress', 0)}/{mission.get('dailyTarget', 0)}")
    table.add_row("Quizzes", str(len(history)))
    table.add_row("Review pool", f"{pool.active} active, {pool.pending} pending, {pool.graduated} graduated")
    table.add_row(
        "Weakest",
        f"{weakest.subject} ({weakest.accuracy:.0f}%)" if weakest else "-",
    )
    console.print(table)


@app.command("stats")
def stats(
    ctx: typer.Context,
    categories_file: Path = typer.Argument(..., help="JSON list of {id, name, subcategories}"),
    subject: str | None = typer.Option(None, "--subject", "-s", help="Only count this subject/category"),
) -> None:
    """Show accuracy per node of a category tree."""
    raw = _load_json(categories_file)
    categories = [CategoryNode.from_dict(node) for node in raw]
    history = _context(ctx).run(lambda state: state.history.get())
    roots = calculate_hierarchy_stats(history, categories, subject=subject)

    table = Table(title="Accuracy by Category", show_header=True)
    table.add_column("Category", style="cyan")
    table.add_column("Total", justify="right")
    table.add_column("Correct", justify="right", style="green")
    table.add_column("Accuracy", justify="right", style="bold")

    def add(node: StatNode, depth: int) -> None:
        table.add_row(
            "  " * depth + f"{node.name} [dim]{node.id}[/dim]",
            str(node.total),
            str(node.correct),
            f"{node.accuracy}%" if node.total else "-",
        )
        for child in node.children:
            add(child, depth + 1)

    for root in roots:
        add(root, 0)
    console.print(table)


# ========================================
# QUIZ COMMANDS
# ========================================

quiz_app = typer.Typer(help="Quiz sessions")
app.add_typer(quiz_app, name="quiz")


@quiz_app.command("build")
def quiz_build(
    ctx: typer.Context,
    questions_file: Path = typer.Argument(..., help="JSON list of questions"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Write the session as JSON"),
) -> None:
    """Pick a session from a question bank using the synced config."""
    bank = _load_json(questions_file)

    def build(state: StudyState):
        config = state.get_config()
        pool = filter_questions(bank, config)
        return pool, create_session_questions(pool, state.seen_ids.get(), config)

    pool, session = _context(ctx).run(build)
    rprint(f"  Pool: {len(pool)} questions, session: {len(session)}")

    if output:
        output.write_text(json.dumps(session, ensure_ascii=False, indent=2), encoding="utf-8")
        rprint(f"[green]✓[/green] Session written to {output}")
        return

    table = Table(title="Session", show_header=True)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Id", style="cyan")
    table.add_column("Codes", style="dim")
    table.add_column("Question")
    for idx, question in enumerate(session, start=1):
        table.add_row(
            str(idx),
            str(question["id"]),
            ", ".join(question.get("subjects", [])),
            str(question.get("question", ""))[:60],
        )
    console.print(table)


@quiz_app.command("record")
def quiz_record(
    ctx: typer.Context,
    result_file: Path = typer.Argument(..., help="JSON {category, round, questions, answers, timeTaken}"),
) -> None:
    """Record a finished quiz: history, wrong notes, seen ids and missions."""
    data = _load_json(result_file)
    try:
        category = parse_category(data["category"]).value
        questions = data["questions"]
        answers = {int(k): int(v) for k, v in data.get("answers", {}).items()}
    except (KeyError, TypeError, ValueError) as e:
        _fail(f"Invalid quiz result: {e}")

    result = _context(ctx).run(
        lambda state: state.record_quiz(
            questions,
            answers,
            category=category,
            round_name=data.get("round", ""),
            time_taken=int(data.get("timeTaken", 0)),
        )
    )
    style = "bold green" if result.is_perfect else "cyan"
    rprint(f"[{style}]{result.correct}/{result.total} ({result.percentage}%)[/{style}]")


# ========================================
# CODES COMMANDS
# ========================================

codes_app = typer.Typer(help="Classification codes")
app.add_typer(codes_app, name="codes")


@codes_app.command("expand")
def codes_expand(
    code: str = typer.Argument(..., help="Classification code"),
    master_codes: Path | None = typer.Option(None, "--master-codes", help="Override master_codes.json"),
) -> None:
    """List a code and every known descendant."""
    code = _validated_codes([code])[0]
    universe = CodeUniverse.load(master_codes or get_settings().master_codes_path)
    expanded = sorted(universe.expand(code))

    table = Table(title=f"{code} ({len(expanded)} codes)", show_header=True)
    table.add_column("Code", style="cyan")
    table.add_column("Subject")
    table.add_column("Path", style="dim")
    for known in expanded:
        table.add_row(known, universe.subject_of(known) or "-", universe.path_of(known))
    console.print(table)


@codes_app.command("match")
def codes_match(
    tags: list[str] = typer.Option(..., "--tag", "-t", help="Item tag (repeatable)"),
    selected: list[str] | None = typer.Option(None, "--selected", "-s", help="Selected code (repeatable)"),
) -> None:
    """Check whether an item's tags pass a code filter."""
    tags = _validated_codes(tags)
    selected = _validated_codes(selected)
    if matches(tags, selected):
        rprint("[green]✓ match[/green]")
    else:
        rprint("[yellow]✗ no match[/yellow]")
        raise typer.Exit(code=1)


# ========================================
# CONFIG COMMANDS
# ========================================

config_app = typer.Typer(help="Synced quiz configuration")
app.add_typer(config_app, name="config")


@config_app.command("show")
def config_show(ctx: typer.Context) -> None:
    """Show the quiz config and where it is stored."""
    cli = _context(ctx)
    config = cli.run(lambda state: state.get_config())

    table = Table(title="Quiz Config")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    for name, value in config.model_dump(mode="json").items():
        table.add_row(name, ", ".join(map(str, value)) if isinstance(value, list) else str(value))
    table.add_section()
    table.add_row("Identity", cli.user or "guest (local)")
    table.add_row("Remote", cli.settings.remote_url or "Not set")
    table.add_row("Local DB", str(cli.settings.local_db_path))
    console.print(table)


@config_app.command("set-codes")
def config_set_codes(
    ctx: typer.Context,
    codes: list[str] | None = typer.Argument(None, help="Codes to select (none clears the filter)"),
) -> None:
    """Replace the selected classification codes."""
    codes = _validated_codes(codes)
    try:
        config = _context(ctx).run(lambda state: state.update_config(selected_codes=codes))
    except ValidationError as e:
        _fail(f"Invalid config: {e}")
    rprint(f"[green]✓[/green] Selected codes: {', '.join(config.selected_codes) or '(all)'}")


@app.command("version")
def show_version() -> None:
    """Show version information."""
    rprint(f"[bold]quizstate[/bold] v{__version__}")


def run() -> None:
    """Entry point for the CLI."""
    configure_logging()
    app()


if __name__ == "__main__":
    run()
