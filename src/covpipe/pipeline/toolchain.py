"""Build and test invocations (cargo +nightly build/test --verbose <options>)."""

from __future__ import annotations

import shlex
from pathlib import Path
from typing import Literal

from covpipe.config.models import TimeoutsConfig, ToolchainConfig
from covpipe.core.errors import ToolchainError
from covpipe.core.logging import get_logger
from covpipe.pipeline.environment import ToolchainEnvironment
from covpipe.pipeline.process import CommandResult, run_command

log = get_logger("pipeline.toolchain")

Phase = Literal["build", "test"]


def split_options(options: str | None) -> list[str]:
    """Split an options string the way a POSIX shell would."""
    if not options:
        return []
    return shlex.split(options)


def toolchain_command(
    config: ToolchainConfig, phase: Phase, options: str | None = None
) -> list[str]:
    """Full command line for the build or test phase."""
    args = config.build_args if phase == "build" else config.test_args
    return [*config.command, *args, *split_options(options)]


def run_phase(
    phase: Phase,
    *,
    config: ToolchainConfig,
    environment: ToolchainEnvironment,
    project_root: Path,
    options: str | None = None,
    timeouts: TimeoutsConfig | None = None,
) -> CommandResult:
    """Run the build or test phase.

    Raises:
        ToolchainError: Non-zero exit (build_failed / tests_failed) or missing executable.
    """
    timeouts = timeouts or TimeoutsConfig()
    timeout = timeouts.build_sec if phase == "build" else timeouts.test_sec
    cmd = toolchain_command(config, phase, options)

    log.info(f"{phase}_start", command=cmd)
    result = run_command(cmd, cwd=project_root, env=environment.apply(), timeout=timeout)
    if not result.succeeded:
        log.error(f"{phase}_failed", returncode=result.returncode)
        if phase == "build":
            raise ToolchainError.build_failed(result.returncode, result.command)
        raise ToolchainError.tests_failed(result.returncode, result.command)

    log.info(f"{phase}_done", elapsed_s=round(result.elapsed_sec, 2))
    return result
