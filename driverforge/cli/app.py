"""Main Typer application: imports and registers all CLI commands.

Entry point: ``driverforge`` (configured via pyproject.toml scripts).
"""

from __future__ import annotations

import logging

import typer
from rich.console import Console
from rich.logging import RichHandler

from driverforge.cli.commands.build import build_cmd
from driverforge.cli.commands.inspect_cmd import inspect_cmd
from driverforge.core.errors import UnsupportedPlatform
from driverforge.core.platform_resolver import resolve_platform

app = typer.Typer(
    name="driverforge",
    help="driverforge: embed the record/replay driver into node and build it.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# Register subcommands
app.command(name="build", help="Fetch the driver, embed it, and run the node build.")(build_cmd)
app.command(name="inspect", help="Verify and summarize a generated driver source file.")(inspect_cmd)


def configure_logging(level: str) -> None:
    """Send log records to stderr through Rich."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@app.callback()
def _global_options(
    log_level: str = typer.Option(
        "INFO",
        "--log-level",
        help="Logging level (DEBUG, INFO, WARNING, ERROR).",
        envvar="DRIVERFORGE_LOG_LEVEL",
    ),
) -> None:
    """Global options applied to every command."""
    configure_logging(log_level)


@app.command(name="platform", help="Print the platform tag of this host.")
def platform_cmd() -> None:
    """Print the resolved platform tag, or fail on unsupported hosts."""
    console = Console()
    try:
        tag = resolve_platform()
    except UnsupportedPlatform as exc:
        console.print(f"[bold red]{exc}[/bold red]")
        raise typer.Exit(code=1)
    console.print(tag.value)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
