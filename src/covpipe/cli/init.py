"""covpipe init command - write a default covpipe.yaml."""

from pathlib import Path

import click

from covpipe.config.constants import CONFIG_FILE_NAME
from covpipe.config.user_config import write_user_config
from covpipe.core.progress import status


@click.command()
@click.argument(
    "path",
    default=".",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
)
@click.option("--force", "-f", is_flag=True, help="Overwrite an existing covpipe.yaml")
def init_command(path: Path, force: bool) -> None:
    """Write covpipe.yaml with every setting at its default.

    PATH is the project root (default: current directory).
    """
    config_path = path.resolve() / CONFIG_FILE_NAME

    if config_path.exists() and not force:
        status(f"Already initialized: {config_path}", style="info")
        status("Use --force to overwrite", style="info")
        return

    write_user_config(config_path)
    status(f"Wrote {config_path}", style="success")
    status("Next: run 'covpipe vendor-uploader' and pin upload.sha256", style="info")
