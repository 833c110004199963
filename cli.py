#!/usr/bin/env python3
"""
Note Store CLI.

Primary entry point for operating a notebook from a shell.
Use --service to select what to run.

Usage:
    python cli.py --help
    python cli.py --service list --view favorites --query milk
    python cli.py --service export --output backups/
    python cli.py --service import --input backups/notes_backup_2024-01-15_14-30-00.json
    python cli.py --service sweep --verbose
    python cli.py --service config
"""

import asyncio
import sys
from pathlib import Path

import click
import structlog
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree

PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

from modules.notestore.core.exceptions import ApplicationError
from modules.notestore.core.logging import get_logger, log_with_source, setup_logging
from modules.notestore.models.note import Note, NoteView
from modules.notestore.services.notebook import Notebook
from modules.notestore.services.privacy import GateOutcome

console = Console()


def validate_project_root() -> Path:
    """Validate that we're running from the project root."""
    if not (PROJECT_ROOT / ".project_root").exists():
        click.echo(
            click.style("Error: .project_root not found. Run from project root.", fg="red"),
            err=True,
        )
        sys.exit(1)
    return PROJECT_ROOT


@click.command()
@click.option(
    "--service", "-s",
    type=click.Choice(["info", "config", "list", "export", "import", "sweep", "trash", "restore", "purge"]),
    default="info",
    help="Service or command to run.",
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    help="Enable verbose output (INFO level logging).",
)
@click.option(
    "--debug", "-d",
    is_flag=True,
    help="Enable debug output (DEBUG level logging).",
)
@click.option(
    "--view",
    type=click.Choice([view.value for view in NoteView]),
    default=NoteView.ALL.value,
    help="Collection to list.",
)
@click.option(
    "--query", "-q",
    default="",
    help="Case-insensitive search text (list only).",
)
@click.option(
    "--input", "-i", "input_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Backup file to import.",
)
@click.option(
    "--output", "-o", "output_dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory to write the backup into (defaults to notes.yaml).",
)
@click.option(
    "--note-id", "-n",
    default=None,
    help="Note id (trash, restore, purge).",
)
@click.option(
    "--pin",
    default=None,
    help="PIN to set when importing locked notes and none exists yet.",
)
def main(
    service: str,
    verbose: bool,
    debug: bool,
    view: str,
    query: str,
    input_path: Path | None,
    output_dir: Path | None,
    note_id: str | None,
    pin: str | None,
) -> None:
    """
    Note Store CLI.

    Use --service to select what to run.

    \b
    Examples:
        python cli.py --service info
        python cli.py --service config
        python cli.py --service list --view trash
        python cli.py --service list --query groceries
        python cli.py --service export --output backups/
        python cli.py --service import --input backup.json --pin 1234
        python cli.py --service trash --note-id 3f2a...
        python cli.py --service restore --note-id 3f2a...
        python cli.py --service purge --note-id 3f2a...
        python cli.py --service sweep --verbose
    """
    validate_project_root()

    if debug:
        log_level = "DEBUG"
    elif verbose:
        log_level = "INFO"
    else:
        log_level = "WARNING"

    setup_logging(level=log_level, format_type="console")

    structlog.contextvars.bind_contextvars(source="cli")

    logger = get_logger(__name__)

    logger.debug("CLI invoked", extra={"service": service, "log_level": log_level})

    if service == "info":
        show_info(logger)
        return
    if service == "config":
        show_config(logger)
        return

    if service in {"trash", "restore", "purge"} and not note_id:
        click.echo(click.style(f"Error: --note-id is required for {service}.", fg="red"), err=True)
        sys.exit(2)
    if service == "import" and input_path is None:
        click.echo(click.style("Error: --input is required for import.", fg="red"), err=True)
        sys.exit(2)

    try:
        asyncio.run(
            run_notebook_service(
                logger, service,
                view=view, query=query,
                input_path=input_path, output_dir=output_dir,
                note_id=note_id, pin=pin,
            )
        )
    except ApplicationError as e:
        logger.error("Command failed", extra={"service": service, "code": e.code, "error": e.message})
        click.echo(click.style(f"Error: {e.message}", fg="red"), err=True)
        sys.exit(1)


async def run_notebook_service(logger, service: str, **options) -> None:
    """Open the configured notebook, run one service and close it."""
    notebook = await Notebook.from_config()
    try:
        if service == "list":
            list_notes(notebook, options["view"], options["query"])
        elif service == "export":
            await export_notes(logger, notebook, options["output_dir"])
        elif service == "import":
            await import_notes(logger, notebook, options["input_path"], options["pin"])
        elif service == "sweep":
            await sweep_trash(logger, notebook)
        else:
            await change_note(logger, notebook, service, options["note_id"])
    finally:
        await notebook.close()


def list_notes(notebook: Notebook, view: str, query: str) -> None:
    """Print one view of the notes as a table."""
    notes = notebook.list_notes(view, query)
    title = f"Notes ({view})" + (f" matching '{query}'" if query.strip() else "")

    table = Table(title=title)
    table.add_column("ID", style="dim")
    table.add_column("Title")
    table.add_column("Type")
    table.add_column("Fav", justify="center")
    table.add_column("Private", justify="center")
    table.add_column("Theme", justify="right")
    table.add_column("Date")
    if view == NoteView.TRASH.value:
        table.add_column("Deleted")

    for note in notes:
        row = [
            note.id,
            note.title or "[dim](untitled)[/dim]",
            note.type,
            "★" if note.is_favorite else "",
            "🔒" if note.is_private else "",
            str(notebook.palette_index(note)),
            _format_date(note.date),
        ]
        if view == NoteView.TRASH.value:
            row.append(_format_date(note.deleted_at))
        table.add_row(*row)

    console.print(table)
    console.print(f"[dim]{len(notes)} note(s)[/dim]")


async def export_notes(logger, notebook: Notebook, output_dir: Path | None) -> None:
    """Write a backup file of the active notes."""
    document = notebook.export_backup()
    path = await notebook.write_backup(output_dir)
    log_with_source(logger, "cli", "info", "Backup exported", path=str(path), note_count=document.note_count)
    console.print(Panel(
        f"[bold]{path.name}[/bold]\n"
        f"Notes: {document.note_count}\n"
        f"Location: {path.parent}",
        title="Backup Created",
    ))


async def import_notes(logger, notebook: Notebook, input_path: Path, pin: str | None) -> None:
    """Import a backup file additively."""
    result = await notebook.import_backup_file(input_path)

    if result.outcome is GateOutcome.PIN_REQUIRED:
        if pin is None:
            notebook.cancel_pin()
            click.echo(click.style(f"{result.message} Re-run with --pin.", fg="yellow"), err=True)
            sys.exit(1)
        result = await notebook.set_pin(pin, pin)
        if not result.ok:
            click.echo(click.style(f"Error: {result.message}", fg="red"), err=True)
            sys.exit(1)

    imported: list[Note] = result.value
    log_with_source(logger, "cli", "info", "Backup imported", path=str(input_path), imported=len(imported))
    console.print(
        f"[green]Successfully imported {len(imported)} note(s).[/green] "
        f"You now have {len(notebook.list_notes())} note(s)."
    )


async def sweep_trash(logger, notebook: Notebook) -> None:
    """Purge trashed notes past the retention period."""
    purged = await notebook.sweep_trash()
    log_with_source(logger, "cli", "info", "Trash swept", purged=len(purged))
    if purged:
        console.print(f"[green]Purged {len(purged)} expired note(s) from the trash.[/green]")
    else:
        console.print("[dim]No expired notes in the trash.[/dim]")


async def change_note(logger, notebook: Notebook, service: str, note_id: str) -> None:
    """Move a note to the trash, restore it, or purge it."""
    actions = {
        "trash": (notebook.move_to_trash, "Moved to trash"),
        "restore": (notebook.restore, "Restored"),
        "purge": (notebook.purge, "Permanently deleted"),
    }
    action, verb = actions[service]
    note = await action(note_id)
    if note is None:
        click.echo(click.style(f"Error: note {note_id} not found.", fg="red"), err=True)
        sys.exit(1)
    log_with_source(logger, "cli", "info", "Note changed", service=service, note_id=note_id)
    console.print(f"[green]{verb}:[/green] {note.title or note.id}")


def show_config(logger) -> None:
    """Display loaded configuration."""
    try:
        from modules.notestore.core.config import get_app_config

        app_config = get_app_config()
        sections = {
            "application": app_config.application,
            "logging": app_config.logging,
            "storage": app_config.storage,
            "notes": app_config.notes,
        }

        for name, schema in sections.items():
            tree = Tree(f"[bold]{name}[/bold]")
            _add_config_branch(tree, schema.model_dump())
            console.print(tree)
            console.print()

        logger.info("Configuration displayed successfully")

    except (FileNotFoundError, ValueError) as e:
        logger.error("Failed to load configuration", extra={"error": str(e)})
        click.echo(click.style(f"Error loading configuration: {e}", fg="red"), err=True)
        sys.exit(1)


def _add_config_branch(tree: Tree, data: dict) -> None:
    for key, value in data.items():
        if isinstance(value, dict):
            _add_config_branch(tree.add(f"[cyan]{key}[/cyan]"), value)
        else:
            tree.add(f"[cyan]{key}[/cyan]: {value}")


def show_info(logger) -> None:
    """Display application information."""
    try:
        from modules.notestore.core.config import get_app_config

        application = get_app_config().application
    except (FileNotFoundError, ValueError) as e:
        logger.error(
            "Failed to load application configuration",
            extra={"error": str(e)},
        )
        click.echo(
            click.style(
                "Error: Could not load application.yaml configuration.",
                fg="red",
            ),
            err=True,
        )
        sys.exit(1)

    console.print(Panel(
        f"[bold]{application.name}[/bold]\n"
        f"Version: {application.version}\n"
        f"Description: {application.description}",
        title="Application Info",
    ))

    table = Table(title="Services (--service)", show_header=False)
    table.add_column("Service", style="cyan")
    table.add_column("Description")
    table.add_row("list", "List notes (--view all|favorites|trash, --query)")
    table.add_row("export", "Write a backup file (--output)")
    table.add_row("import", "Import a backup file additively (--input, --pin)")
    table.add_row("trash", "Move a note to the trash (--note-id)")
    table.add_row("restore", "Restore a trashed note (--note-id)")
    table.add_row("purge", "Permanently delete a trashed note (--note-id)")
    table.add_row("sweep", "Purge trashed notes past the retention period")
    table.add_row("config", "Display configuration")
    table.add_row("info", "Show this information")
    console.print(table)

    logger.debug("Info displayed")


def _format_date(value) -> str:
    return value.strftime("%Y-%m-%d %H:%M") if value else ""


if __name__ == "__main__":
    main()
