"""
flashdrill: terminal flashcard trainer.

A Rich terminal interface for score-based flashcard review.

Commands:
- flashdrill import FILE        - Import user lesson text
- flashdrill text               - Print stored lesson text
- flashdrill lessons            - List sections with card counts
- flashdrill builtin list       - List available built-in lessons
- flashdrill builtin use NAME   - Opt into built-in lessons
- flashdrill builtin refresh    - Re-fetch opted-in built-in lessons
- flashdrill study              - Start a training session
- flashdrill stats              - Show rating breakdown
"""
from __future__ import annotations

import asyncio
import re
import sys
from pathlib import Path
from typing import List, Optional

import typer
from loguru import logger
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from ..config import Settings, get_settings
from ..content.builtin import HttpLessonSource, make_source
from ..content.models import Card, Rating
from ..content.parser import LessonTextParser
from ..errors import FetchError, HeaderFormatError, LessonParseError
from .card_store import CardRepository, LessonLibrary, Origin
from .scheduler import SchedulerConfig, ScoreScheduler
from .session import ReviewSession, rating_band, rating_breakdown
from .state_store import SQLiteStateStore


# =============================================================================
# CLI Setup
# =============================================================================

app = typer.Typer(
    name="flashdrill",
    help="flashdrill: flashcard trainer",
    no_args_is_help=True,
)
builtin_app = typer.Typer(help="Manage built-in lessons", no_args_is_help=True)
app.add_typer(builtin_app, name="builtin")

console = Console()


# =============================================================================
# Styling
# =============================================================================

BAND_STYLES = {
    "grey": "grey50",
    "red": "red",
    "orange": "orange1",
    "green": "green",
}

RATING_KEYS = {
    "f": Rating.FAIL,
    "p": Rating.PARTIAL,
    "g": Rating.GOOD,
}

EMPHASIS_PATTERN = re.compile(r"\*(.+?)\*")


def render_text(text: str) -> str:
    """Escape Rich markup and render *emphasis* as bold."""
    return EMPHASIS_PATTERN.sub(r"[bold]\1[/bold]", escape(text))


# =============================================================================
# Wiring
# =============================================================================


def open_library(settings: Settings) -> LessonLibrary:
    """Open the state store and load the repository."""
    store = SQLiteStateStore(settings.db_path)
    repository = CardRepository(store)
    repository.load()

    return LessonLibrary(
        store=store,
        repository=repository,
        parser=LessonTextParser(settings.default_language),
        source=make_source(settings.builtin_source, settings.http_timeout_seconds),
        manifest=settings.builtin_manifest,
    )


def run_async(library: LessonLibrary, coro_factory):
    """Run a built-in lesson operation and close the HTTP client afterwards."""

    async def runner():
        try:
            return await coro_factory()
        finally:
            if isinstance(library.source, HttpLessonSource):
                await library.source.close()

    return asyncio.run(runner())


def sync_builtin(library: LessonLibrary) -> None:
    """Refresh opted-in built-in lessons, keeping the stored cards if a fetch fails."""
    if not library.selected_builtin():
        return

    try:
        cards = run_async(library, library.refresh_builtin)
    except FetchError as e:
        logger.warning(f"Built-in lessons not refreshed: {e}")
        return

    logger.info(f"Refreshed {len(cards)} built-in cards")


def report_parse_error(error: LessonParseError | HeaderFormatError) -> None:
    """Print every rejected line."""
    errors = error.errors if isinstance(error, LessonParseError) else [error]

    console.print(f"\n[bold red]Lesson text rejected ({len(errors)} line(s)):[/bold red]")
    for line_error in errors:
        console.print(
            f"  Line {line_error.line_number}: {escape(line_error.raw_line)}\n"
            f"    [dim]{line_error.reason}[/dim]"
        )


# =============================================================================
# Display Helpers
# =============================================================================


def display_question(card: Card, position: int, total: int) -> None:
    """Display the question side of a card."""
    style = BAND_STYLES[rating_band(card.metadata.last_rating)]
    header = f"{escape(card.section)}  |  #{card.metadata.id}  |  {position}/{total}"

    content = render_text(card.question)
    if card.question_note:
        content += f"\n[dim]{escape(card.question_note)}[/dim]"

    console.print(Panel(
        content,
        title=header,
        title_align="left",
        border_style=style,
        padding=(1, 2),
    ))


def display_answer(card: Card) -> None:
    """Display the answer side of a card."""
    content = render_text(card.answer)
    if card.answer_note:
        content += f"\n[dim]{escape(card.answer_note)}[/dim]"

    console.print(Panel(content, border_style="cyan", padding=(1, 2)))


def display_breakdown(cards: list[Card]) -> None:
    breakdown = rating_breakdown(cards)

    table = Table(show_header=False, box=None)
    table.add_column("Rating", style="dim")
    table.add_column("Share", style="bold")

    table.add_row("[grey50]new[/grey50]", f"{breakdown[None]:.2f}%")
    table.add_row("[red]fail[/red]", f"{breakdown[0]:.2f}%")
    table.add_row("[orange1]partial[/orange1]", f"{breakdown[50]:.2f}%")
    table.add_row("[green]good[/green]", f"{breakdown[100]:.2f}%")

    console.print(table)


# =============================================================================
# Commands
# =============================================================================


@app.command("import")
def import_text(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Lesson text file"),
) -> None:
    """
    Import user lesson text from a file.

    Replaces all user cards; built-in cards are kept. Review history of
    unchanged cards is preserved.
    """
    library = open_library(get_settings())
    text = path.read_text(encoding="utf-8")

    try:
        result = library.commit_user_text(text)
    except (LessonParseError, HeaderFormatError) as e:
        report_parse_error(e)
        raise typer.Exit(1)

    console.print(
        f"[green]Imported {len(result.cards)} cards in {len(result.lessons)} lessons[/green]"
    )


@app.command()
def text() -> None:
    """Print the stored user lesson text."""
    library = open_library(get_settings())
    console.print(escape(library.load_user_text()))


@app.command()
def lessons() -> None:
    """List sections with card counts, user lessons first."""
    library = open_library(get_settings())
    library.bootstrap()
    sync_builtin(library)
    repository = library.repository

    table = Table(title="Lessons")
    table.add_column("Section")
    table.add_column("Cards", justify="right")
    table.add_column("Origin")

    for origin in (Origin.USER, Origin.BUILTIN):
        for section in repository.sections(origin):
            table.add_row(escape(section), str(repository.count(section)), origin.value)

    console.print(table)


@builtin_app.command("list")
def builtin_list() -> None:
    """List the available built-in lessons."""
    library = open_library(get_settings())

    try:
        available = run_async(library, library.fetch_builtin)
    except FetchError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1)

    selected = set(library.selected_builtin())

    table = Table(title="Built-in Lessons")
    table.add_column("")
    table.add_column("Lesson")
    table.add_column("Cards", justify="right")
    table.add_column("Note", style="dim")

    for lesson in available.lessons:
        mark = "[green]*[/green]" if lesson.name in selected else ""
        table.add_row(
            mark,
            escape(lesson.name),
            str(available.count(lesson.name)),
            escape(lesson.note),
        )

    console.print(table)


@builtin_app.command("use")
def builtin_use(
    sections: List[str] = typer.Argument(None, help="Built-in lesson names (none = clear)"),
) -> None:
    """Opt into built-in lessons, replacing the current selection."""
    library = open_library(get_settings())
    sections = sections or []

    try:
        available = run_async(library, library.fetch_builtin)
    except FetchError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1)

    unknown = [name for name in sections if name not in available.sections]
    if unknown:
        console.print(f"[red]Unknown built-in lessons: {escape(', '.join(unknown))}[/red]")
        raise typer.Exit(1)

    cards = asyncio.run(library.activate_builtin(sections, available=available))
    if sections:
        console.print(f"[green]Using {len(sections)} built-in lessons ({len(cards)} cards)[/green]")
    else:
        console.print("[yellow]No built-in lessons in use.[/yellow]")


@builtin_app.command("refresh")
def builtin_refresh() -> None:
    """Re-fetch the opted-in built-in lessons."""
    library = open_library(get_settings())

    try:
        cards = run_async(library, library.refresh_builtin)
    except FetchError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]Refreshed {len(cards)} built-in cards[/green]")


@app.command()
def study(
    sections: Optional[List[str]] = typer.Option(
        None,
        "--section", "-s",
        help="Section to train (repeatable, default: all)",
    ),
) -> None:
    """
    Start an interactive training session.

    Cards with the lowest score come first. Rate each card
    f(ail), p(artial) or g(ood); q quits.
    Opted-in built-in lessons are refreshed before the deck is built.
    """
    settings = get_settings()
    library = open_library(settings)
    library.bootstrap()
    sync_builtin(library)

    repository = library.repository
    chosen = sections or repository.sections()
    scheduler = ScoreScheduler(SchedulerConfig(min_gap=settings.reinsert_min_gap))
    session = ReviewSession.start(repository, chosen, scheduler)

    if session.is_finished:
        console.print("\n[yellow]No cards in the selected sections.[/yellow]")
        raise typer.Exit(0)

    console.print(f"\n[bold cyan]flashdrill[/bold cyan] - {len(session.deck)} cards")
    console.print("=" * 40)

    try:
        while not session.is_finished:
            card = session.show_question()
            console.print()
            display_question(card, session.reviews + 1, len(session.deck))
            Prompt.ask("[dim]Press Enter to reveal[/dim]", default="", show_default=False)

            display_answer(session.reveal_answer())
            choice = Prompt.ask(
                "Rate [red]f[/red]/[orange1]p[/orange1]/[green]g[/green], q to quit",
                choices=["f", "p", "g", "q"],
                show_choices=False,
            )
            if choice == "q":
                break

            rated = session.rate(RATING_KEYS[choice])
            console.print(f"[dim]Score: {rated.metadata.score}[/dim]")

    except KeyboardInterrupt:
        console.print("\n\n[yellow]Session interrupted.[/yellow]")

    console.print(Panel(
        f"[bold]Session ended[/bold]\n\nCards reviewed: {session.reviews}",
        title="Summary",
        border_style="green",
    ))
    display_breakdown(session.deck)


@app.command()
def stats() -> None:
    """Show the rating breakdown over all known cards."""
    library = open_library(get_settings())
    cards = library.repository.all()

    console.print(f"\n[bold cyan]Cards: {len(cards)}[/bold cyan]")
    display_breakdown(cards)


# =============================================================================
# Entry Point
# =============================================================================


def main() -> None:
    """CLI entry point."""
    # Configure logging
    logger.remove()
    logger.add(
        sys.stderr,
        level=get_settings().log_level,
        format="<level>{message}</level>",
    )

    app()


if __name__ == "__main__":
    main()
