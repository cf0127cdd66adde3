"""CLI error handling utilities."""

from collections.abc import Generator
from contextlib import contextmanager

import typer
from rich.console import Console

from frontpack.config.exceptions import ConfigError, MissingEntryError
from frontpack.exceptions import (
    CollaboratorError,
    NameCollisionError,
    ResolutionError,
    WriteError,
)

console = Console()


@contextmanager
def handle_cli_errors(*, debug: bool = False) -> Generator[None, None, None]:
    """Context manager to handle CLI errors gracefully.

    Args:
        debug: If True, re-raise (or print the full traceback). If False, print
            a user-friendly error and exit with status 1.

    """
    try:
        yield
    except (KeyboardInterrupt, SystemExit, typer.Exit):
        raise
    except ResolutionError as e:
        if debug:
            raise
        console.print(f"[bold red]🔍 Missing File:[/bold red] {e}")
        console.print("Check the entry points and asset list; paths starting with '/' are under the root path.")
        raise typer.Exit(1) from e
    except NameCollisionError as e:
        if debug:
            raise
        console.print(f"[bold red]💥 Name Collision:[/bold red] {e}")
        console.print("Assets are copied flat into the output directory, so their file names must be unique.")
        raise typer.Exit(1) from e
    except CollaboratorError as e:
        if debug:
            raise
        console.print(f"[bold red]🧰 Bundling Failed:[/bold red] {e}")
        raise typer.Exit(1) from e
    except WriteError as e:
        if debug:
            raise
        console.print(f"[bold red]💾 Write Failed:[/bold red] {e}")
        console.print("Files already moved into the output directory were left in place.")
        raise typer.Exit(1) from e
    except MissingEntryError as e:
        if debug:
            raise
        console.print(f"[bold red]📍 Missing Entry Point:[/bold red] {e}")
        raise typer.Exit(1) from e
    except ConfigError as e:
        if debug:
            raise
        console.print(f"[bold red]⚙️ Configuration Error:[/bold red] {e}")
        raise typer.Exit(1) from e
    except Exception as e:
        if debug:
            console.print_exception(show_locals=False)
            raise typer.Exit(1) from e

        console.print(f"[bold red]💥 An unexpected error occurred:[/bold red] {e}")
        console.print("[dim]Run with [bold]--debug[/bold] for more details.[/dim]")
        raise typer.Exit(1) from e
