"""
Command-line interface for the factory reset.

The operator has to type the confirmation phrase exactly. The reset itself
always writes and verifies an emergency backup before deleting anything.
"""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from ..config import get_reset_config, DESTRUCTIBLE_COLLECTIONS, RESET_CONFIRMATION_PHRASE
from ..reset.manager import ResetManager

# Create Typer app
reset_app = typer.Typer(
    name="reset",
    help="Wipe POS history, inventory and shift data after a mandatory backup.",
    add_completion=False
)

# Rich console for pretty output
console = Console()


@reset_app.command()
def main(
    output_dir: Optional[Path] = typer.Option(
        None,
        "--output-dir", "-o",
        help="Directory for the emergency backup (default: ./backups)"
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
    Factory reset.

    Exports the whole store to an emergency backup file, verifies it, then
    deletes every document of the destructible collections.
    """

    console.print(Panel.fit(
        "[bold red]POS Factory Reset[/bold red]\n"
        "[dim]This permanently deletes store data.[/dim]",
        border_style="red"
    ))

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Collections to wipe", style="red")
    for collection in DESTRUCTIBLE_COLLECTIONS:
        table.add_row(collection)
    console.print(table)

    phrase = Prompt.ask(f"\nType [bold]{RESET_CONFIRMATION_PHRASE}[/bold] to continue")
    if phrase != RESET_CONFIRMATION_PHRASE:
        console.print("[yellow]Confirmation phrase did not match. Nothing was deleted.[/yellow]")
        raise typer.Exit(1)

    reported = []
    try:
        config_overrides = {
            "verbose": verbose,
            "debug": debug,
        }

        if output_dir:
            config_overrides["output_dir"] = output_dir

        if log_file:
            config_overrides["log_file"] = str(log_file)

        config = get_reset_config(**config_overrides)
        reset_manager = ResetManager(config)

        def on_progress(message: str):
            console.print(f"[dim]{message}[/dim]")

        def on_error(error: Exception):
            reported.append(error)
            console.print(f"\n[red]Factory reset failed:[/red] {error}")

        result = reset_manager.run(on_progress=on_progress, on_error=on_error)

        console.print()
        console.print("[green]✓[/green] Factory reset completed successfully!")
        console.print(f"[dim]Emergency backup:[/dim] [bold]{result.backup_path}[/bold]")
        console.print(f"[dim]Documents deleted:[/dim] {result.total_deleted}")
        if result.deleted_children:
            console.print(f"[dim]Child documents deleted:[/dim] {result.deleted_children}")

    except KeyboardInterrupt:
        console.print("\n[yellow]Reset interrupted; collections already wiped stay wiped[/yellow]")
        raise typer.Exit(1)

    except Exception as e:
        if not reported:
            console.print(f"\n[red]Error:[/red] {e}")
        if debug:
            console.print_exception()
        raise typer.Exit(1)


if __name__ == "__main__":
    reset_app()
