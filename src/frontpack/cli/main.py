"""Main Typer application for frontpack."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.panel import Panel
from rich.table import Table

from frontpack.cli.errorhandler import handle_cli_errors
from frontpack.config import load_config
from frontpack.logging_setup import configure_logging, console
from frontpack.orchestration.build import BuildOrchestrator, BuildSpec, clean_build

app = typer.Typer(
    name="frontpack",
    help="Bundle script, style and markup entry points into one self-consistent build",
    add_completion=False,
)

logger = logging.getLogger(__name__)

ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", "-c", help="Config file (default: search for frontpack.toml upwards)"),
]
DebugOption = Annotated[bool, typer.Option("--debug", help="Show full tracebacks")]


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")] = False,
) -> None:
    """Initialize logging for every command."""
    configure_logging("DEBUG" if verbose else None)


@app.command()
def build(
    *,
    root: Annotated[Path | None, typer.Option("--root", help="Project root for '/'-prefixed references")] = None,
    output: Annotated[Path | None, typer.Option("--output", "-o", help="Output directory")] = None,
    script: Annotated[str | None, typer.Option("--script", help="JavaScript entry point")] = None,
    style: Annotated[str | None, typer.Option("--style", help="CSS entry point")] = None,
    markup: Annotated[str | None, typer.Option("--markup", help="HTML entry point")] = None,
    asset: Annotated[
        list[str] | None, typer.Option("--asset", "-a", help="Asset to relocate (repeatable)")
    ] = None,
    clean: Annotated[bool, typer.Option("--clean", help="Remove the output directory first")] = False,
    config: ConfigOption = None,
    debug: DebugOption = False,
) -> None:
    """Bundle the three entry points, relocate assets and write the output directory."""
    with handle_cli_errors(debug=debug):
        settings = load_config(config).with_overrides(
            root=root.resolve() if root else None,
            output=output.resolve() if output else None,
            script_entry=script,
            style_entry=style,
            markup_entry=markup,
            assets=asset or None,
        )
        script_entry, style_entry, markup_entry = settings.require_entries()

        if clean:
            clean_build(settings.paths.output)

        spec = BuildSpec(
            script_entry=script_entry,
            style_entry=style_entry,
            markup_entry=markup_entry,
            asset_paths=tuple(settings.build.assets),
            root_path=settings.paths.root,
            output_path=settings.paths.output,
        )
        artifact = BuildOrchestrator.from_config(settings).build(spec)

    table = Table(title=f"Build output: {artifact.output_path}", show_header=True)
    table.add_column("File", style="cyan")
    table.add_column("Size", justify="right")
    for path in artifact.files:
        table.add_row(path.name, f"{path.stat().st_size:,} B")
    console.print(table)


@app.command()
def clean(
    output: Annotated[Path | None, typer.Argument(help="Output directory to remove")] = None,
    *,
    config: ConfigOption = None,
    debug: DebugOption = False,
) -> None:
    """Remove a previous build output directory."""
    with handle_cli_errors(debug=debug):
        target = output.resolve() if output else load_config(config).paths.output
        removed = clean_build(target)
    if removed:
        console.print(f"[green]Removed {target}[/green]")
    else:
        console.print(f"[dim]Nothing to clean at {target}[/dim]")


@app.command("config")
def show_config(
    *,
    config: ConfigOption = None,
    debug: DebugOption = False,
) -> None:
    """Print the resolved configuration."""
    with handle_cli_errors(debug=debug):
        settings = load_config(config)
    console.print(Panel(json.dumps(settings.model_dump(mode="json"), indent=2), title="frontpack config"))


if __name__ == "__main__":
    app()
