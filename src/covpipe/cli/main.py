"""covpipe CLI."""

import click

from covpipe.cli.env import env_command
from covpipe.cli.fetch import fetch_tool_command
from covpipe.cli.init import init_command
from covpipe.cli.run import run_pipeline_command
from covpipe.cli.summary import summary_command
from covpipe.cli.vendor import vendor_uploader_command
from covpipe.core.logging import configure_logging


@click.group()
@click.version_option(version="0.1.0", prog_name="covpipe")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """covpipe - build, aggregate and upload Rust coverage."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    configure_logging(level="DEBUG" if verbose else "WARNING")


cli.add_command(init_command, name="init")
cli.add_command(run_pipeline_command, name="run")
cli.add_command(env_command, name="env")
cli.add_command(fetch_tool_command, name="fetch-tool")
cli.add_command(vendor_uploader_command, name="vendor-uploader")
cli.add_command(summary_command, name="summary")


if __name__ == "__main__":
    cli()
