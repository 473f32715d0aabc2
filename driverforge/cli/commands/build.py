"""``driverforge build``: run the full embed-and-build pipeline.

Fetches the driver for this host, stamps it with the build identifier,
writes the generated source file into the node tree and runs the native
build.  Any stage failure aborts the run with exit code 1.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from driverforge.config import BuildConfig
from driverforge.core.errors import BuildFailed, PipelineError
from driverforge.core.pipeline import BuildPipeline
from driverforge.models.build import PipelineReport
from driverforge.models.stages import StageRecord, StageState

console = Console(stderr=True)

_STATE_ICONS: dict[StageState, str] = {
    StageState.PASSED: "[green]PASSED[/green]",
    StageState.FAILED: "[bold red]FAILED[/bold red]",
    StageState.RUNNING: "[yellow]RUNNING[/yellow]",
    StageState.NOT_STARTED: "[dim]NOT STARTED[/dim]",
}


def stage_table(records: list[StageRecord]) -> Table:
    """Rich table of stage outcomes."""
    table = Table(title="Stages", show_lines=False)
    table.add_column("Stage", style="cyan")
    table.add_column("State", justify="center")
    table.add_column("Output hash", style="dim")
    for record in records:
        table.add_row(
            record.display_name,
            _STATE_ICONS.get(record.state, record.state.value),
            record.output_hash[:12] if record.output_hash else (record.error or ""),
        )
    return table


def summary_panel(report: PipelineReport) -> Panel:
    """Rich panel summarizing a finished run."""
    lines = [
        "[bold green]Driver embedded![/bold green]" if not report.built
        else "[bold green]Build complete![/bold green]",
        "",
        f"[bold]Build ID:[/bold]  {report.build_id}",
        f"[bold]Platform:[/bold]  {report.platform.value}",
        f"[bold]Driver:[/bold]    {report.artifact.revision_hash} ({report.artifact.revision_date})"
        f" from {report.download_name}",
        f"[bold]Host:[/bold]      {report.host.revision_hash} ({report.host.revision_date})",
        f"[bold]Payload:[/bold]   {report.payload_size} bytes, {report.payload_digest}",
        f"[bold]Source:[/bold]    {report.output_path}",
    ]
    if report.parallelism is not None:
        lines.append(f"[bold]Jobs:[/bold]      {report.parallelism}")
    return Panel(
        "\n".join(lines),
        title="[bold]driverforge[/bold]",
        border_style="green",
        padding=(1, 2),
    )


def build_cmd(
    source_root: Path = typer.Option(
        None,
        "--source-root",
        "-s",
        help="Root of the node source tree (default: DRIVERFORGE_SOURCE_ROOT or cwd).",
    ),
    driver_revision: str = typer.Option(
        None,
        "--driver-revision",
        help="Fetch this driver build instead of the latest (overrides DRIVER_REVISION).",
    ),
    jobs: int = typer.Option(
        None,
        "--jobs",
        "-j",
        min=1,
        help="Parallel build jobs (default: logical core count).",
    ),
    configure: bool = typer.Option(
        None,
        "--configure/--no-configure",
        help="Run ./configure before building (default: CONFIGURE_NODE).",
    ),
    skip_build: bool = typer.Option(
        False,
        "--skip-build",
        help="Stop after writing the generated source file.",
    ),
) -> None:
    """Run the driverforge pipeline for this host."""
    overrides: dict[str, Any] = {}
    if source_root is not None:
        overrides["source_root"] = source_root
    if driver_revision:
        overrides["driver_revision"] = driver_revision
    if jobs is not None:
        overrides["jobs"] = jobs
    if configure is not None:
        overrides["configure_node"] = configure

    try:
        config = BuildConfig().model_copy(update=overrides)
    except ValidationError as exc:
        console.print(f"[bold red]Invalid configuration:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=1)

    pipeline = BuildPipeline(config)

    try:
        report = pipeline.run(skip_build=skip_build)
    except BuildFailed as exc:
        console.print(stage_table(pipeline.run_context.get("stage_records", [])))
        console.print(f"[bold red]Build failed (exit code {exc.exit_code}):[/bold red] {exc.command}")
        raise typer.Exit(code=1)
    except PipelineError as exc:
        console.print(stage_table(pipeline.run_context.get("stage_records", [])))
        console.print(f"[bold red]{type(exc).__name__}:[/bold red] {exc}")
        raise typer.Exit(code=1)

    console.print(stage_table(report.stages))
    console.print(summary_panel(report))
