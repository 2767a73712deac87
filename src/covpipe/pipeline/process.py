"""Subprocess execution for pipeline steps.

Commands inherit stdout/stderr by default so toolchain output streams
straight into CI logs, as it did when the pipeline was a shell script.
"""

from __future__ import annotations

import subprocess
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

from covpipe.core.errors import InternalError, ToolchainError
from covpipe.core.logging import get_logger

log = get_logger("pipeline.process")


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Outcome of one external command."""

    command: list[str]
    returncode: int
    elapsed_sec: float
    stdout: str | None = None
    stderr: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.returncode == 0


def run_command(
    command: Sequence[str],
    *,
    cwd: Path,
    env: Mapping[str, str] | None = None,
    timeout: float | None = None,
    capture: bool = False,
) -> CommandResult:
    """Run a command to completion and report its exit status.

    A non-zero exit is returned, not raised; callers decide what it means.

    Raises:
        ToolchainError: The executable does not exist.
        InternalError: The command exceeded its timeout.
    """
    cmd = [str(part) for part in command]
    log.debug("command_start", command=cmd, cwd=str(cwd), timeout=timeout)
    start = time.perf_counter()
    try:
        proc = subprocess.run(
            cmd,
            cwd=cwd,
            env=dict(env) if env is not None else None,
            timeout=timeout,
            capture_output=capture,
            text=capture,
            check=False,
        )
    except FileNotFoundError as e:
        raise ToolchainError.command_not_found(cmd[0]) from e
    except subprocess.TimeoutExpired as e:
        log.error("command_timeout", command=cmd, timeout=timeout)
        raise InternalError.timeout(cmd, timeout or 0.0) from e

    elapsed = time.perf_counter() - start
    log.debug("command_done", command=cmd, returncode=proc.returncode, elapsed_s=elapsed)
    return CommandResult(
        command=cmd,
        returncode=proc.returncode,
        elapsed_sec=elapsed,
        stdout=proc.stdout if capture else None,
        stderr=proc.stderr if capture else None,
    )
