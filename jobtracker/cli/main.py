from __future__ import annotations
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional
import typer

from ..backup.drive import resolve_backup
from ..config import get_settings
from ..domain import Platform, Status
from ..errors import DuplicateRecordError, ExtractionError, StorageError, TrackerError, ValidationError
from ..parsing import parse_job_from_text
from ..schemas import JobApplication
from ..storage.sqlite_storage import SqliteStorage
from ..tracker import JobTracker
from ..utils.dates import format_date_only, parse_date
from ..utils.logging import configure_logging

cli = typer.Typer(help="Job application tracker CLI")


@cli.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging")):
    settings = get_settings()
    configure_logging(debug=verbose or settings.DEBUG)


@contextmanager
def _open_tracker(with_backup: bool = False) -> Iterator[JobTracker]:
    settings = get_settings()
    try:
        storage = SqliteStorage(
            settings.DB_PATH,
            result_limit=settings.RESULT_LIMIT,
            lock_timeout=settings.LOCK_TIMEOUT_SECONDS,
        )
    except StorageError as e:
        typer.secho(str(e), fg=typer.colors.RED)
        raise typer.Exit(code=1)
    backup = resolve_backup(settings) if with_backup else None
    tracker = JobTracker(storage, backup=backup)
    try:
        yield tracker
    except DuplicateRecordError as e:
        typer.secho(f"Already tracked: {e}", fg=typer.colors.YELLOW)
        raise typer.Exit(code=1)
    except ValidationError as e:
        typer.secho(f"Invalid application: {e}", fg=typer.colors.RED)
        raise typer.Exit(code=2)
    except TrackerError as e:
        typer.secho(str(e), fg=typer.colors.RED)
        raise typer.Exit(code=1)
    finally:
        tracker.shutdown(timeout=settings.BACKUP_TIMEOUT_SECONDS)


def _summary(job: JobApplication) -> str:
    applied = format_date_only(job.date_applied) or "-"
    return f"#{job.id} | {job.position} @ {job.company} | {job.status.value} | applied: {applied}"


def _print_jobs(items: List[JobApplication], empty_message: str) -> None:
    if not items:
        typer.secho(empty_message, fg=typer.colors.YELLOW)
        raise typer.Exit(code=0)
    for job in items:
        typer.echo(_summary(job))


@cli.command("init-db")
def init_db_cmd():
    """Create the database and search index."""
    settings = get_settings()
    with _open_tracker():
        pass
    typer.secho(f"Database initialized at {settings.DB_PATH}.", fg=typer.colors.GREEN)


@cli.command("track")
def track(
    source: Optional[Path] = typer.Argument(None, help="File with the pasted page (default: read stdin)"),
    platform: str = typer.Option(
        Platform.linkedin.value,
        "--platform",
        "-p",
        help="linkedin or greenhouse; anything else is parsed as linkedin",
    ),
    save: bool = typer.Option(True, "--save/--dry-run", help="Store the parsed application"),
):
    """Parse a pasted job page and track it."""
    if source is not None:
        try:
            raw_text = source.read_text(encoding="utf-8")
        except OSError as e:
            typer.secho(f"Could not read {source}: {e}", fg=typer.colors.RED)
            raise typer.Exit(code=2)
    else:
        raw_text = sys.stdin.read()

    try:
        job = parse_job_from_text(raw_text, platform)
    except ExtractionError as e:
        typer.secho(f"Could not parse pasted content: {e}", fg=typer.colors.RED)
        raise typer.Exit(code=2)

    if not job.position:
        typer.secho("Warning: Could not extract the position.", fg=typer.colors.YELLOW)
    if not job.company:
        typer.secho("Warning: Could not extract the company.", fg=typer.colors.YELLOW)

    if not save:
        # Dry runs never touch the database.
        typer.echo(job.to_json())
        return

    with _open_tracker(with_backup=True) as tracker:
        tracker.save(job)
        typer.secho(f"Saved: {_summary(job)}", fg=typer.colors.GREEN)


@cli.command("list")
def list_cmd(
    limit: Optional[int] = typer.Option(None, "--limit", "-n", help="Maximum results to show"),
    offset: int = typer.Option(0, help="Skip this many of the most recent applications"),
):
    """Show the most recent applications."""
    with _open_tracker() as tracker:
        items = tracker.list_all(limit=limit, offset=offset)
    _print_jobs(items, "No applications found.")


@cli.command("show")
def show_cmd(item_id: int):
    """Print one application as JSON."""
    with _open_tracker() as tracker:
        job = tracker.get(item_id)
    if job is None:
        typer.secho("Not found.", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    typer.echo(job.to_json())


@cli.command("search")
def search_cmd(
    company: str,
    limit: Optional[int] = typer.Option(None, "--limit", "-n", help="Maximum results to show"),
):
    """Find applications whose company contains COMPANY (case-insensitive)."""
    with _open_tracker() as tracker:
        items = tracker.search_by_company(company, limit=limit)
    _print_jobs(items, "No matches found.")


@cli.command("find")
def find_cmd(
    query: str,
    limit: Optional[int] = typer.Option(None, "--limit", "-n", help="Maximum results to show"),
):
    """Full-text search over company, position and notes.

    Words must all match; wrap several words in double quotes to match a phrase.
    Best matches are listed first.
    """
    with _open_tracker() as tracker:
        items = tracker.full_text_search(query, limit=limit)
    _print_jobs(items, "No matches found.")


@cli.command("update")
def update_cmd(
    item_id: int,
    status: Optional[Status] = typer.Option(None, help="New application status"),
    company: Optional[str] = typer.Option(None),
    position: Optional[str] = typer.Option(None),
    location: Optional[str] = typer.Option(None),
    salary_range: Optional[str] = typer.Option(None),
    workplace_type: Optional[str] = typer.Option(None),
    website: Optional[str] = typer.Option(None),
    note: Optional[str] = typer.Option(None, help="Append a line to the notes"),
    date_applied: Optional[str] = typer.Option(None, help="Date applied, e.g. 2025-09-10 or 'yesterday'"),
):
    """Change an application; unspecified fields keep their current value."""
    changes = {
        "status": status,
        "company": company,
        "position": position,
        "location": location,
        "salary_range": salary_range,
        "workplace_type": workplace_type,
        "website": website,
    }
    if date_applied is not None:
        try:
            changes["date_applied"] = parse_date(date_applied)
        except ValidationError as e:
            typer.secho(f"Invalid date_applied: {e}", fg=typer.colors.RED)
            raise typer.Exit(code=2)

    with _open_tracker(with_backup=True) as tracker:
        job = tracker.get(item_id)
        if job is None:
            typer.secho("Not found.", fg=typer.colors.RED)
            raise typer.Exit(code=1)
        job = job.model_copy(update={k: v for k, v in changes.items() if v is not None})
        if note:
            job.add_note(note)
        tracker.update(job)
    typer.secho(f"Updated {_summary(job)}", fg=typer.colors.GREEN)


@cli.command("remove")
def remove_cmd(item_id: int):
    """Remove an entry by numeric ID."""
    with _open_tracker(with_backup=True) as tracker:
        job = tracker.delete(item_id)
    if job is None:
        typer.secho("Not found.", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    typer.secho(f"Removed #{job.id} | {job.position} @ {job.company}", fg=typer.colors.GREEN)


@cli.command("export")
def export_cmd(
    format: str = typer.Option("excel", help="excel or csv", case_sensitive=False),
    out: Optional[str] = typer.Option(None, help="Output file path"),
):
    """Write every application to a spreadsheet."""
    format = format.lower()
    if format not in {"excel", "csv"}:
        typer.secho("Format must be 'excel' or 'csv'", fg=typer.colors.RED)
        raise typer.Exit(code=2)

    if out is None:
        out = "Applications.xlsx" if format == "excel" else "Applications.csv"
    with _open_tracker() as tracker:
        count = tracker.export(out, fmt=format)
    typer.secho(f"Exported {count} applications to {out}", fg=typer.colors.GREEN)


@cli.command("backup")
def backup_cmd():
    """Upload the database to Google Drive now."""
    settings = get_settings()
    backup = resolve_backup(settings)
    if backup is None:
        typer.secho(
            "Backup is not configured. Set JOBTRACKER_BACKUP_ENABLED=true and provide credentials.json.",
            fg=typer.colors.YELLOW,
        )
        raise typer.Exit(code=1)
    try:
        file_id = backup.backup_database(settings.DB_PATH)
    except TrackerError as e:
        typer.secho(str(e), fg=typer.colors.RED)
        raise typer.Exit(code=1)
    typer.secho(f"Backed up {settings.DB_PATH} (Drive file {file_id})", fg=typer.colors.GREEN)


if __name__ == "__main__":
    # Allow running via: python -m jobtracker.cli.main [COMMANDS]
    cli()
