"""covpipe summary command - summarize an lcov report."""

import json
from pathlib import Path

import click
from rich.table import Table

from covpipe.coverage.lcov import parse_lcov
from covpipe.coverage.models import CoverageParseError
from covpipe.coverage.report import build_summary, build_text_summary
from covpipe.core.progress import get_console


@click.command()
@click.argument("report", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.option(
    "--max-files",
    type=click.IntRange(min=0),
    default=10,
    show_default=True,
    help="Files to list, lowest coverage first",
)
def summary_command(report: Path, as_json: bool, max_files: int) -> None:
    """Summarize an lcov REPORT."""
    try:
        coverage = parse_lcov(report)
    except CoverageParseError as e:
        raise click.ClickException(str(e)) from e

    if as_json:
        click.echo(json.dumps(build_summary(coverage, max_files=max_files), indent=2))
        return

    click.echo(build_text_summary(coverage))
    files = build_summary(coverage, max_files=max_files)["files"]
    if not files:
        return

    table = Table(show_header=True, box=None, padding=(0, 2), pad_edge=False)
    table.add_column("file", style="cyan")
    table.add_column("coverage", justify="right")
    table.add_column("lines", justify="right")
    table.add_column("missed")
    for f in files:
        table.add_row(
            f["path"],
            f"{f['coverage_percent']:.1f}%",
            f"{f['covered_lines']}/{f['total_lines']}",
            f["missed_lines"],
        )
    get_console().print(table)
