"""covpipe env command - print the toolchain environment."""

import json
from pathlib import Path

import click

from covpipe.cli.utils import find_project_root, load_project_config
from covpipe.pipeline.environment import ToolchainEnvironment


@click.command()
@click.argument(
    "path",
    default=None,
    required=False,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
)
@click.option("--config", "config_path", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def env_command(path: Path | None, config_path: Path | None, as_json: bool) -> None:
    """Print the variables exported to cargo.

    The output is shell syntax, so it can be sourced:

        eval "$(covpipe env)"
    """
    project_root = find_project_root(path)
    config = load_project_config(project_root, config_path)
    environment = ToolchainEnvironment.from_config(config.toolchain)

    if as_json:
        click.echo(json.dumps(dict(environment), indent=2, sort_keys=True))
    else:
        click.echo(environment.as_exports())
