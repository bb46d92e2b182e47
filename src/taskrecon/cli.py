"""Command-line interface for taskrecon."""

import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from taskrecon.analysis import StaticAnalyzer, StaticSuggester
from taskrecon.board.ranking import compute_rank
from taskrecon.errors import ReconcileError
from taskrecon.jobs import MeetingRescanJob
from taskrecon.logging_setup import configure_logging
from taskrecon.models import ReconcileSettings, RescanMode
from taskrecon.storage import JsonFileDatabase

app = typer.Typer(
    name="taskrecon",
    help="Reconcile extracted meeting tasks across sessions, the task list and boards",
    add_completion=False,
)
console = Console()


@app.command()
def rescan(
    user_id: str = typer.Argument(..., help="Owner of the meeting"),
    meeting_id: str = typer.Argument(..., help="Meeting id to rescan"),
    mode: RescanMode = typer.Option(RescanMode.BOTH, "--mode", "-m", help="new, completed or both"),
    data: Optional[Path] = typer.Option(None, "--data", "-d", help="JSON data file"),
    analysis: Optional[Path] = typer.Option(None, "--analysis", "-a", help="Analyzer output JSON"),
    suggestions: Optional[Path] = typer.Option(
        None, "--suggestions", "-s", help="Completion candidates JSON"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Rescan a meeting and reconcile its tasks."""
    settings = ReconcileSettings()
    configure_logging("DEBUG" if verbose else settings.log_level, settings.log_json)

    try:
        db = JsonFileDatabase(data or settings.data_file)
        job = MeetingRescanJob.from_database(
            db,
            analyzer=StaticAnalyzer.from_file(analysis) if analysis else None,
            suggester=StaticSuggester.from_file(suggestions) if suggestions else None,
            settings=settings,
        )
        result = asyncio.run(job.run(user_id, meeting_id, mode))
    except ReconcileError as e:
        console.print(f"[bold red]Error:[/bold red] {e.message} [dim]({e.code})[/dim]")
        raise typer.Exit(1)
    except (OSError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    table = Table(title=f"Rescan of {meeting_id}")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Mode", result.stats.mode.value)
    table.add_row("New tasks added", str(result.stats.new_tasks_added))
    table.add_row("Completion updates", str(result.stats.completion_updates))
    table.add_row("Auto-approved", "yes" if result.stats.auto_approved else "no")
    console.print(table)


@app.command()
def rank(
    before: Optional[float] = typer.Argument(None, help="Rank of the item above"),
    after: Optional[float] = typer.Argument(None, help="Rank of the item below"),
) -> None:
    """Print the rank for an item inserted between two neighbours."""
    settings = ReconcileSettings()
    console.print(compute_rank(before, after, step=settings.rank_step, epsilon=settings.rank_epsilon))


@app.command()
def show_board(
    user_id: str = typer.Argument(..., help="Board owner"),
    data: Optional[Path] = typer.Option(None, "--data", "-d", help="JSON data file"),
) -> None:
    """List board items per column in rank order."""
    settings = ReconcileSettings()
    try:
        db = JsonFileDatabase(data or settings.data_file)
    except (OSError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    async def render() -> None:
        boards = await db.list_boards(user_id)
        if not boards:
            console.print("[yellow]No boards found.[/yellow]")
            return
        titles = {record.id: record.title for record in db.all("tasks")}
        for board in boards:
            items = await db.list_items(board.id)
            table = Table(title=board.name)
            table.add_column("Column", style="cyan")
            table.add_column("Rank", justify="right")
            table.add_column("Task")
            for status in await db.list_statuses(board.id):
                for item in items:
                    if item.board_status_id != status.id:
                        continue
                    table.add_row(status.label, f"{item.rank:g}", titles.get(item.task_id, item.task_id))
            console.print(table)

    asyncio.run(render())


if __name__ == "__main__":
    app()
