"""
Command-line interface for import operations.

This module provides a user-friendly CLI for restoring a snapshot file into
the POS store using Typer, with envelope inspection, validation and a
confirmation prompt before anything is written.
"""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table
from rich.panel import Panel
from rich.prompt import Confirm

from ..config import get_backup_config, get_restore_config
from ..envelope import Envelope
from ..errors import FormatError, WriteError
from ..restore.importer import ImportResult
from ..restore.manager import RestoreManager
from ..validation.integrity_checker import IntegrityChecker

# Create Typer app
restore_app = typer.Typer(
    name="restore",
    help="Restore the POS Firestore store from a snapshot file.",
    add_completion=False
)

# Rich console for pretty output
console = Console()


@restore_app.command("import")
def import_snapshot(
    snapshot_file: Path = typer.Argument(
        ...,
        help="Snapshot JSON file produced by an export"
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
    ),
    force: bool = typer.Option(
        False,
        "--force", "-f",
        help="Skip confirmation prompt"
    )
):
    """
    Import a snapshot file.

    Documents are written by id and fully replace what is stored under the
    same id. A failed batch stops the import; earlier batches stay written.
    """

    console.print(Panel.fit(
        "[bold blue]POS Backup & Restore[/bold blue]\n"
        "[dim]Restoring from snapshot...[/dim]",
        border_style="blue"
    ))

    try:
        if not snapshot_file.exists():
            console.print(f"[red]Error:[/red] Snapshot file not found: {snapshot_file}")
            raise typer.Exit(1)

        # Refuse bad files before connecting to the store
        envelope = Envelope.parse(snapshot_file.read_text(encoding="utf-8"))
        _display_snapshot_info(envelope, snapshot_file)

        if not force:
            if not Confirm.ask("\nOverwrite matching documents in the store?"):
                console.print("[yellow]Restoration cancelled by user[/yellow]")
                raise typer.Exit(0)

        config_overrides = {
            "verbose": verbose,
            "debug": debug,
        }

        if log_file:
            config_overrides["log_file"] = str(log_file)

        config = get_restore_config(**config_overrides)
        restore_manager = RestoreManager(config)

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True
        ) as progress:

            task = progress.add_task("Starting restoration...", total=None)

            def update_progress(message: str):
                progress.update(task, description=message)

            result = restore_manager.restore_from_file(snapshot_file, on_progress=update_progress)

        console.print()
        console.print("[green]✓[/green] Restoration completed successfully!")
        _display_restoration_stats(result)

    except typer.Exit:
        raise

    except KeyboardInterrupt:
        console.print("\n[yellow]Restoration interrupted; the store may be partially restored[/yellow]")
        raise typer.Exit(1)

    except FormatError as e:
        console.print(f"\n[red]Invalid snapshot:[/red] {e}")
        console.print("[dim]Nothing was written to the store.[/dim]")
        raise typer.Exit(1)

    except WriteError as e:
        console.print(f"\n[red]Error:[/red] {e}")
        console.print(
            f"[yellow]{e.committed} records of '{e.collection}' and all earlier collections "
            "were already written and remain in the store.[/yellow]"
        )
        if debug:
            console.print_exception()
        raise typer.Exit(1)

    except Exception as e:
        console.print(f"\n[red]Error:[/red] {e}")
        if debug:
            console.print_exception()
        raise typer.Exit(1)


def _display_snapshot_info(envelope: Envelope, snapshot_file: Path):
    """Display envelope metadata and record counts."""

    console.print(Panel.fit(
        "[bold blue]Snapshot Information[/bold blue]",
        border_style="blue"
    ))

    console.print(f"[dim]Exported:[/dim] {envelope.export_date or 'Unknown'}")
    console.print(f"[dim]Format version:[/dim] {envelope.version}")
    console.print(f"[dim]File:[/dim] {snapshot_file}")

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Collection", style="cyan")
    table.add_column("Records", style="green")

    for collection, count in envelope.record_counts().items():
        table.add_row(collection, str(count))

    console.print(table)
    console.print(f"\n[dim]Total records:[/dim] {envelope.total_records}")


def _display_restoration_stats(result: ImportResult):
    """Display import statistics."""

    table = Table(title="Restoration Statistics", show_header=True, header_style="bold magenta")
    table.add_column("Collection", style="cyan")
    table.add_column("Written", style="green")

    for collection, count in result.collections.items():
        table.add_row(collection, str(count))

    table.add_row("Child records", str(result.child_records))
    table.add_row("Batch commits", str(result.commits))

    console.print()
    console.print(table)

    if result.skipped:
        console.print(f"\n[yellow]Skipped {len(result.skipped)} records:[/yellow]")
        for skipped in result.skipped:
            location = f"{skipped.collection}[{skipped.index}]"
            if skipped.parent_id:
                location += f" (parent {skipped.parent_id})"
            console.print(f"  • {location}: {skipped.reason}")


@restore_app.command("validate")
def validate_snapshot(
    snapshot_file: Path = typer.Argument(
        ...,
        help="Snapshot JSON file to validate"
    )
):
    """Validate a snapshot file without writing anything."""

    console.print(Panel.fit(
        "[bold blue]Snapshot Validation[/bold blue]",
        border_style="blue"
    ))

    try:
        if not snapshot_file.exists():
            console.print(f"[red]Error:[/red] Snapshot file not found: {snapshot_file}")
            raise typer.Exit(1)

        envelope = Envelope.parse(snapshot_file.read_text(encoding="utf-8"))
        console.print("[green]✓[/green] Snapshot format is valid")

        result = IntegrityChecker().validate_envelope(envelope)

        for warning in result.warnings:
            console.print(f"[yellow]![/yellow] {warning}")

        if not result.passed:
            console.print("\n[red]Integrity errors:[/red]")
            for error in result.errors:
                console.print(f"  • {error}")
            raise typer.Exit(1)

        _display_snapshot_info(envelope, snapshot_file)

        console.print("\n[green]Snapshot validation passed![/green]")
        console.print("[dim]This snapshot can be used for restoration.[/dim]")

    except typer.Exit:
        raise

    except Exception as e:
        console.print(f"\n[red]Validation error:[/red] {e}")
        raise typer.Exit(1)


@restore_app.command("list-backups")
def list_backups(
    backups_dir: Optional[Path] = typer.Option(
        None,
        "--backups-dir", "-d",
        help="Directory containing snapshot files (default: BACKUP_OUTPUT_DIR or ./backups)"
    )
):
    """List snapshot files, newest first."""

    if backups_dir is None:
        backups_dir = get_backup_config().output_dir

    console.print(Panel.fit(
        "[bold blue]Available Snapshots[/bold blue]",
        border_style="blue"
    ))

    if not backups_dir.exists():
        console.print(f"[yellow]Backups directory not found:[/yellow] {backups_dir}")
        console.print("Run an export first to create snapshot files.")
        return

    snapshot_files = sorted(
        backups_dir.glob("*.json"),
        key=lambda path: path.stat().st_mtime,
        reverse=True
    )

    if not snapshot_files:
        console.print(f"[yellow]No snapshot files found in:[/yellow] {backups_dir}")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("File", style="cyan")
    table.add_column("Exported", style="green")
    table.add_column("Collections", style="yellow")
    table.add_column("Records", style="blue")

    for snapshot_file in snapshot_files:
        try:
            envelope = Envelope.parse(snapshot_file.read_text(encoding="utf-8"))
            table.add_row(
                snapshot_file.name,
                envelope.export_date,
                str(len(envelope.data)),
                str(envelope.total_records)
            )
        except (OSError, FormatError):
            table.add_row(snapshot_file.name, "[red]Not a valid snapshot[/red]", "?", "?")

    console.print(table)
    console.print(f"\n[dim]Found {len(snapshot_files)} file(s) in {backups_dir}[/dim]")


if __name__ == "__main__":
    restore_app()
