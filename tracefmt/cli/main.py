"""
tracefmt CLI.

Commands:
- inspect: Build and show the record layout for a format file
- decode: Decode one raw event record against a format file
- config: Configuration management
- version: Show version information
"""

import json
import logging
from enum import Enum
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from .. import __version__
from ..adapters import DecodedEvent, adapter_for
from ..config import TracefmtConfig, load_config, generate_default_config
from ..core.errors import TraceFormatError
from ..formats.layout import DataField, LayoutResult, load_layout


app = typer.Typer(
    name="tracefmt",
    help="Record layouts and decoders for kernel trace event formats",
    add_completion=False,
)
console = Console()


class OutputFormat(str, Enum):
    json = "json"
    table = "table"


def _setup(config_path: Optional[Path], verbose: bool) -> TracefmtConfig:
    """Load config and configure logging."""
    try:
        cfg = load_config(config_path)
    except TraceFormatError as e:
        console.print(f"[red]Error:[/] {e}")
        raise typer.Exit(1)

    level = logging.DEBUG if verbose else cfg.logging.level_value
    if not isinstance(level, int):
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return cfg


def _load(format_file: Path) -> LayoutResult:
    with open(format_file) as f:
        return load_layout(f)


def _layout_table(result: LayoutResult) -> Table:
    layout = result.layout
    table = Table(title=f"{layout.name} (id={layout.id}, size={layout.total_size})")
    table.add_column("Idx", justify="right")
    table.add_column("Field")
    table.add_column("C type")
    table.add_column("Offset", justify="right")
    table.add_column("Size", justify="right")
    table.add_column("Type")

    for i, f in enumerate(layout.fields):
        if isinstance(f, DataField):
            typ = str(f.type)
            if f.alignment_fallback:
                typ = f"[yellow]{typ} (unaligned)[/]"
            table.add_row(str(i), f.display_name, f.ctyp, str(f.offset), str(f.size), typ)
        else:
            table.add_row(str(i), f"[dim]{f.name}[/]", "", str(f.offset), str(f.size), "[dim]padding[/]")
    return table


def _format_value(value) -> str:
    if isinstance(value, memoryview):
        if value.format == 'B':
            return repr(value.tobytes())
        return str(value.tolist())
    if isinstance(value, tuple):
        return str(list(value))
    return str(value)


def _event_table(event: DecodedEvent) -> Table:
    table = Table(title=f"{event.name} (id={event.id})")
    table.add_column("Field")
    table.add_column("Value", justify="right")
    for name, value in event.by_display_name().items():
        table.add_row(name, _format_value(value))
    return table


# === INSPECT COMMAND ===

@app.command()
def inspect(
    format_file: Path = typer.Argument(..., help="Event format description", exists=True),
    as_json: bool = typer.Option(False, "--json", help="Print the layout description as JSON"),
    config_path: Optional[Path] = typer.Option(None, "-c", "--config"),
    verbose: bool = typer.Option(False, "-v", "--verbose"),
):
    """Build and show the record layout for a format file."""
    cfg = _setup(config_path, verbose)

    try:
        result = _load(format_file)
        # Fails the same way registration would.
        adapter_for(result, cfg.abi.name)
    except TraceFormatError as e:
        console.print(f"[red]Error:[/] {e}")
        raise typer.Exit(1)

    if as_json:
        desc = result.layout.describe()
        desc['report'] = result.report.to_dict() if result.report else None
        typer.echo(json.dumps(desc, indent=2))
        return

    console.print(_layout_table(result))
    if result.report is not None:
        console.print(f"[yellow]warning:[/] {result.report}")


# === DECODE COMMAND ===

@app.command()
def decode(
    format_file: Path = typer.Argument(..., help="Event format description", exists=True),
    event_file: Path = typer.Argument(..., help="Raw event record", exists=True),
    format: OutputFormat = typer.Option(OutputFormat.json, "-f", "--format"),
    config_path: Optional[Path] = typer.Option(None, "-c", "--config"),
    verbose: bool = typer.Option(False, "-v", "--verbose"),
):
    """Decode one raw event record against a format file."""
    cfg = _setup(config_path, verbose)

    try:
        adapter = adapter_for(_load(format_file), cfg.abi.name)
        event = adapter.decode_file(event_file)
    except TraceFormatError as e:
        console.print(f"[red]Error:[/] {e}")
        raise typer.Exit(1)

    problem = adapter.validate(event)
    if problem:
        console.print(f"[yellow]warning:[/] {problem}")

    if format == OutputFormat.json:
        typer.echo(json.dumps(event.to_dict(), indent=2))
    else:
        console.print(_event_table(event))


# === CONFIG COMMAND ===

@app.command("config")
def config_cmd(
    action: str = typer.Argument(..., help="Action: init|validate|dump"),
    path: Optional[Path] = typer.Argument(None, help="Config file path"),
):
    """Configuration management."""
    if action == "init":
        typer.echo(generate_default_config())

    elif action == "validate":
        if not path:
            console.print("[red]Path required for validate[/]")
            raise typer.Exit(1)
        try:
            cfg = TracefmtConfig.load(path)
        except (TraceFormatError, FileNotFoundError) as e:
            console.print(f"[red]Error:[/] {e}")
            raise typer.Exit(1)
        errors = cfg.validate()
        if errors:
            console.print("[red]Invalid configuration:[/]")
            for e in errors:
                console.print(f"  - {e}")
            raise typer.Exit(1)
        console.print(f"[green]Valid:[/] {path}")

    elif action == "dump":
        cfg = TracefmtConfig.load(path) if path else load_config()
        typer.echo(cfg.to_yaml())

    else:
        console.print(f"[red]Unknown action:[/] {action}")
        console.print("Valid actions: init, validate, dump")
        raise typer.Exit(1)


# === VERSION COMMAND ===

@app.command()
def version():
    """Show version information."""
    console.print(f"[bold blue]tracefmt v{__version__}[/]")


def main():
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
