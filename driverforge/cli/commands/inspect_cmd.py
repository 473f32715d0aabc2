"""``driverforge inspect [PATH]``: verify a generated driver source file.

Decodes the embedded driver literal, checks it against the declared size,
and prints the build identifier broken into its parts.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from driverforge.config import BuildConfig
from driverforge.core.embedder import parse_embedded_source
from driverforge.core.hasher import content_address
from driverforge.models.build import BuildIdentifier

console = Console()


def inspect_cmd(
    path: Path = typer.Argument(
        None,
        help="Generated source file (default: the configured output path).",
    ),
) -> None:
    """Summarize the driver embedded in a generated source file."""
    target = path if path is not None else BuildConfig().resolved_output_path
    if not target.is_file():
        console.print(f"[bold red]Generated source not found:[/bold red] {target}")
        raise typer.Exit(code=1)

    try:
        source = parse_embedded_source(target.read_text(encoding="ascii"))
    except (ValueError, UnicodeDecodeError) as exc:
        console.print(f"[bold red]Invalid generated source:[/bold red] {exc}")
        raise typer.Exit(code=1)

    table = Table(title=str(target), show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("Build ID", source.build_id)
    try:
        parts = BuildIdentifier.parse(source.build_id)
    except ValueError:
        table.add_row("", "[yellow]not a well-formed build identifier[/yellow]")
    else:
        table.add_row("Platform", parts.platform.value)
        table.add_row("Date", parts.date)
        table.add_row("Host revision", parts.host_hash)
        table.add_row("Driver revision", parts.artifact_hash)
    table.add_row("Payload size", f"{source.payload_size} bytes")
    table.add_row("Payload digest", content_address(source.payload))
    console.print(table)
