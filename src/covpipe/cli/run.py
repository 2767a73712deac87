"""covpipe run command - execute the full coverage pipeline."""

import json
from pathlib import Path

import click
from rich.table import Table

from covpipe.cli.utils import configure_run_logging, find_project_root, load_project_config
from covpipe.config.constants import OPTIONS_ENV_VAR
from covpipe.core.logging import get_log_file_path
from covpipe.core.progress import get_console, status
from covpipe.pipeline.runner import CoveragePipeline, PipelineResult, StepResult, StepStatus

_STATUS_STYLES = {
    StepStatus.SUCCEEDED: "success",
    StepStatus.FAILED: "error",
    StepStatus.SKIPPED: "skipped",
}

_STEP_LABELS = {
    "configure": "Configure environment",
    "fetch_tool": "Fetch aggregation tool",
    "build": "Build",
    "test": "Test",
    "archive": "Archive counter files",
    "report": "Generate report",
    "upload": "Upload report",
    "cleanup": "Clean up",
}


def _on_step_start(name: str) -> None:
    status(f"{_STEP_LABELS.get(name, name)}...", style="none")


def _on_step_end(step: StepResult) -> None:
    label = _STEP_LABELS.get(step.name, step.name)
    style = _STATUS_STYLES[step.status]
    if step.status is StepStatus.FAILED and step.error is not None:
        status(f"{label}: {step.error.message}", style=style)
    elif step.status is StepStatus.SKIPPED:
        status(f"{label} skipped ({step.details.get('reason', '')})", style=style)
    else:
        status(f"{label} ({step.elapsed_sec:.1f}s)", style=style)


def _print_result(result: PipelineResult) -> None:
    console = get_console()

    table = Table(show_header=True, box=None, padding=(0, 2), pad_edge=False)
    table.add_column("step", style="cyan")
    table.add_column("status")
    table.add_column("time", justify="right")
    for step in result.steps:
        color = {"succeeded": "green", "failed": "red", "skipped": "dim"}[step.status.value]
        table.add_row(
            _STEP_LABELS.get(step.name, step.name),
            f"[{color}]{step.status.value}[/{color}]",
            f"{step.elapsed_sec:.1f}s" if step.status is not StepStatus.SKIPPED else "",
        )
    console.print()
    console.print(table)

    if result.report is not None:
        s = result.report.summary
        console.print()
        console.print(
            f"  Coverage: {s.line_percent:.2f}% ({s.lines_hit}/{s.lines_found} lines)",
            style="bold",
            highlight=False,
        )
        console.print(f"  Report:   {result.report.path}", style="dim", highlight=False)


@click.command()
@click.argument(
    "path",
    default=None,
    required=False,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Config file (default: covpipe.yaml in the project root)",
)
@click.option(
    "--cargo-options",
    envvar=OPTIONS_ENV_VAR,
    default=None,
    help=f"Options appended to build and test (env: {OPTIONS_ENV_VAR})",
)
@click.option(
    "--on-failure",
    type=click.Choice(["stop", "continue"]),
    default=None,
    help="Halt at the first failed step (stop) or keep going (continue)",
)
@click.option("--no-upload", is_flag=True, help="Skip the upload step")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON on stdout")
@click.pass_context
def run_pipeline_command(
    ctx: click.Context,
    path: Path | None,
    config_path: Path | None,
    cargo_options: str | None,
    on_failure: str | None,
    no_upload: bool,
    as_json: bool,
) -> None:
    """Build, test, aggregate and upload coverage for a Cargo project.

    PATH is the project root. If not specified, auto-detects by walking up
    from the current directory to the nearest Cargo.toml or covpipe.yaml.
    """
    verbose = bool(ctx.obj and ctx.obj.get("verbose"))
    project_root = find_project_root(path)

    overrides: dict[str, dict[str, object]] = {}
    if on_failure:
        overrides["pipeline"] = {"on_failure": on_failure}
    if no_upload:
        overrides["upload"] = {"enabled": False}
    config = load_project_config(project_root, config_path, **overrides)

    configure_run_logging(project_root, verbose=verbose)

    pipeline = CoveragePipeline(
        config,
        project_root,
        options=cargo_options,
        on_step_start=None if as_json else _on_step_start,
        on_step_end=None if as_json else _on_step_end,
    )
    try:
        result = pipeline.run()
    except KeyboardInterrupt:
        click.echo("\nInterrupted", err=True)
        ctx.exit(130)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        _print_result(result)
        if not result.succeeded and (log_file := get_log_file_path()) is not None:
            status(f"Details: {log_file}", style="info")

    ctx.exit(result.exit_code)
