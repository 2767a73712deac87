"""CLI utilities."""

from datetime import datetime
from pathlib import Path
from typing import Any
from uuid import uuid4

import click

from covpipe.config.constants import CONFIG_FILE_NAME, STATE_DIR
from covpipe.config.loader import load_config
from covpipe.config.models import CovPipeConfig, LoggingConfig, LogOutputConfig
from covpipe.core.errors import ConfigError
from covpipe.core.logging import configure_logging

PROJECT_MARKERS = (CONFIG_FILE_NAME, "Cargo.toml")


def find_project_root(start_path: Path | None = None) -> Path:
    """Find the project root from the given path.

    Walks up the directory tree looking for covpipe.yaml or Cargo.toml.
    If start_path is None, uses the current working directory.

    Raises:
        click.ClickException: If no project marker is found
    """
    if start_path is None:
        start_path = Path.cwd()

    current = start_path.resolve()
    for candidate in (current, *current.parents):
        if any((candidate / marker).exists() for marker in PROJECT_MARKERS):
            return candidate

    raise click.ClickException(
        f"Not inside a Cargo project: {start_path}\n"
        f"Run from a directory containing Cargo.toml or {CONFIG_FILE_NAME}, "
        "or create one with 'covpipe init'."
    )


def load_project_config(
    project_root: Path,
    config_path: Path | None = None,
    **overrides: Any,
) -> CovPipeConfig:
    """Load config, turning ConfigError into a CLI error."""
    try:
        return load_config(project_root, config_path=config_path, **overrides)
    except ConfigError as e:
        raise click.ClickException(str(e)) from e


def configure_run_logging(project_root: Path, *, verbose: bool) -> Path:
    """Console WARNING (DEBUG when verbose) plus a DEBUG JSON log file.

    Log file: .covpipe/logs/YYYY-MM-DD/HHMMSS-<6-digit-hash>.log
    """
    now = datetime.now()
    log_dir = project_root / STATE_DIR / "logs" / now.strftime("%Y-%m-%d")
    log_file = log_dir / f"{now.strftime('%H%M%S')}-{uuid4().hex[:6]}.log"

    configure_logging(
        config=LoggingConfig(
            level="DEBUG",
            outputs=[
                LogOutputConfig(
                    destination="stderr",
                    format="console",
                    level="DEBUG" if verbose else "WARNING",
                ),
                LogOutputConfig(destination=str(log_file), format="json", level="DEBUG"),
            ],
        ),
    )
    return log_file
