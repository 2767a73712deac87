"""covpipe vendor-uploader command - download and pin the uploader script."""

from pathlib import Path

import click

from covpipe.cli.utils import find_project_root, load_project_config
from covpipe.config.constants import CODECOV_SCRIPT_URL
from covpipe.core.errors import ToolError
from covpipe.core.progress import spinner, status
from covpipe.pipeline.upload import vendor_uploader


@click.command()
@click.argument(
    "path",
    default=None,
    required=False,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
)
@click.option("--url", default=CODECOV_SCRIPT_URL, show_default=True, help="Script to download")
@click.option(
    "--dest",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Where to store the script (default: upload.script)",
)
@click.option("--config", "config_path", type=click.Path(dir_okay=False, path_type=Path))
def vendor_uploader_command(
    path: Path | None,
    url: str,
    dest: Path | None,
    config_path: Path | None,
) -> None:
    """Download the uploader script into the project and print its checksum.

    Review the script, commit it, then pin the printed sha256 in covpipe.yaml.
    Uploads never fetch the script at run time.
    """
    project_root = find_project_root(path)
    config = load_project_config(project_root, config_path)
    target = dest or Path(config.upload.script)
    if not target.is_absolute():
        target = project_root / target

    try:
        with spinner(f"Downloading {url}"):
            digest = vendor_uploader(url, target, timeout=config.timeouts.download_sec)
    except ToolError as e:
        raise click.ClickException(str(e)) from e

    status(f"Saved {target}", style="success")
    status(f"sha256: {digest}", style="info")
    click.echo("upload:")
    shown = target.relative_to(project_root) if target.is_relative_to(project_root) else target
    click.echo(f"  script: {shown}")
    click.echo(f"  sha256: {digest}")
