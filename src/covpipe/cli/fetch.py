"""covpipe fetch-tool command - install the coverage aggregator."""

from pathlib import Path

import click

from covpipe.cli.utils import find_project_root, load_project_config
from covpipe.core.errors import ToolError
from covpipe.core.progress import spinner, status
from covpipe.pipeline.tools import AggregatorFetcher


@click.command()
@click.argument(
    "path",
    default=None,
    required=False,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
)
@click.option("--config", "config_path", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--force", is_flag=True, help="Download again even if already installed")
def fetch_tool_command(path: Path | None, config_path: Path | None, force: bool) -> None:
    """Download and install the coverage aggregator (grcov)."""
    project_root = find_project_root(path)
    config = load_project_config(project_root, config_path)
    fetcher = AggregatorFetcher(
        config.aggregator,
        project_root,
        timeout=config.timeouts.download_sec,
    )

    try:
        with spinner(f"Fetching {config.aggregator.name}"):
            result = fetcher.ensure(force=force)
    except ToolError as e:
        raise click.ClickException(str(e)) from e

    if result.downloaded:
        status(f"Installed {config.aggregator.name} at {result.path}", style="success")
        if result.sha256 and not config.aggregator.sha256:
            status(f"sha256: {result.sha256}", style="info")
            status("Pin it with aggregator.sha256 in covpipe.yaml", style="info")
    else:
        status(f"{config.aggregator.name} already installed at {result.path}", style="success")
