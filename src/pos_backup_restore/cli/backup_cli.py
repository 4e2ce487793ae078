"""
Command-line interface for export operations.

This module provides a user-friendly CLI for exporting the POS store using
Typer with options for output directory, logging and progress display.
"""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table
from rich.panel import Panel

from ..backup.manager import BackupManager
from ..config import get_backup_config, EXPORT_COLLECTIONS, CHILD_COLLECTIONS, DESTRUCTIBLE_COLLECTIONS

# Create Typer app
backup_app = typer.Typer(
    name="backup",
    help="Export the POS Firestore store to a portable JSON snapshot.",
    add_completion=False
)

# Rich console for pretty output
console = Console()


@backup_app.command("export")
def export(
    output_dir: Optional[Path] = typer.Option(
        None,
        "--output-dir", "-o",
        help="Directory to store the snapshot (default: ./backups)"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Enable verbose logging"
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug logging"
    ),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file", "-l",
        help="Log file path (default: no file logging)"
    )
):
    """
    Export every configured collection to a snapshot file.

    Timestamps are written as ISO-8601 strings and shift payouts are carried
    inside their shift records.
    """

    console.print(Panel.fit(
        "[bold blue]POS Backup & Restore[/bold blue]\n"
        "[dim]Exporting store snapshot...[/dim]",
        border_style="blue"
    ))

    try:
        config_overrides = {
            "verbose": verbose,
            "debug": debug,
        }

        if output_dir:
            config_overrides["output_dir"] = output_dir

        if log_file:
            config_overrides["log_file"] = str(log_file)

        config = get_backup_config(**config_overrides)

        console.print(f"[dim]Collections:[/dim] {', '.join(EXPORT_COLLECTIONS)}")
        console.print(f"[dim]Output directory:[/dim] {config.output_dir}")
        console.print()

        backup_manager = BackupManager(config)

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True
        ) as progress:

            task = progress.add_task("Starting export...", total=None)

            def update_progress(message: str):
                progress.update(task, description=message)

            backup_file = backup_manager.export_to_file(on_progress=update_progress)

        console.print()
        console.print("[green]✓[/green] Export completed successfully!")

        _display_backup_stats(backup_manager.get_backup_stats())

        console.print(f"\n[green]Snapshot saved to:[/green] [bold]{backup_file}[/bold]")

    except typer.Exit:
        raise

    except KeyboardInterrupt:
        console.print("\n[yellow]Export cancelled by user[/yellow]")
        raise typer.Exit(1)

    except Exception as e:
        console.print(f"\n[red]Error:[/red] {e}")
        if debug:
            console.print_exception()
        raise typer.Exit(1)


def _display_backup_stats(stats: dict):
    """Display export statistics in a formatted table."""

    table = Table(title="Export Statistics", show_header=True, header_style="bold magenta")
    table.add_column("Collection", style="cyan")
    table.add_column("Records", style="green")

    for collection, count in stats.get("record_counts", {}).items():
        table.add_row(collection, str(count))

    table.add_row("[bold]Total[/bold]", f"[bold]{stats.get('total_records', 0)}[/bold]")

    store_stats = stats.get("store_stats", {})
    if store_stats:
        table.add_row("Store Requests", str(store_stats.get("total_requests", 0)))
        table.add_row("Store Errors", str(store_stats.get("total_errors", 0)))

    console.print()
    console.print(table)


@backup_app.command("list-collections")
def list_collections():
    """List the collections covered by export, import and reset."""

    console.print(Panel.fit(
        "[bold blue]Store Collections[/bold blue]",
        border_style="blue"
    ))

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Collection", style="cyan")
    table.add_column("Child Collection", style="green")
    table.add_column("Wiped by Reset", style="yellow")

    for collection in EXPORT_COLLECTIONS:
        child = CHILD_COLLECTIONS.get(collection)
        table.add_row(
            collection,
            f"{child.name} ({child.reserved_key})" if child else "-",
            "yes" if collection in DESTRUCTIBLE_COLLECTIONS else "no"
        )

    console.print(table)
    console.print(f"\n[dim]Total collections:[/dim] {len(EXPORT_COLLECTIONS)}")


if __name__ == "__main__":
    backup_app()
