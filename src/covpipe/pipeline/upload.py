"""Report upload through a vendored, checksum-pinned uploader script.

The uploader is never fetched at run time. 'covpipe vendor-uploader'
downloads it once into the repository and prints the SHA256 to pin in
covpipe.yaml; every upload re-verifies the script against that pin before
executing it.
"""

from __future__ import annotations

from pathlib import Path

import httpx

from covpipe.config.models import UploadConfig
from covpipe.core.errors import UploadError
from covpipe.core.logging import get_logger
from covpipe.pipeline.process import CommandResult, run_command
from covpipe.pipeline.tools import compute_sha256, download_file

log = get_logger("pipeline.upload")


def uploader_path(config: UploadConfig, project_root: Path) -> Path:
    path = Path(config.script).expanduser()
    return path if path.is_absolute() else project_root / path


def verify_uploader(config: UploadConfig, project_root: Path) -> Path:
    """Check the vendored script exists and matches its pinned checksum.

    Raises:
        UploadError: Missing script, no pin configured, or checksum mismatch.
    """
    script = uploader_path(config, project_root)
    if not script.is_file():
        raise UploadError.script_missing(str(script))
    if not config.sha256:
        raise UploadError.unpinned(str(script))

    actual = compute_sha256(script)
    if actual != config.sha256:
        raise UploadError.checksum_mismatch(str(script), config.sha256, actual)
    return script


def upload_command(config: UploadConfig, script: Path, report: Path) -> list[str]:
    return [*config.interpreter, str(script), "-f", str(report), *config.extra_args]


def upload_report(
    report: Path,
    *,
    config: UploadConfig,
    project_root: Path,
    timeout: float | None = None,
) -> CommandResult:
    """Verify the uploader, then run it against the report.

    The uploader inherits the process environment (for tokens such as
    CODECOV_TOKEN) but not the coverage toolchain flags.

    Raises:
        UploadError: Verification failure or non-zero exit.
    """
    script = verify_uploader(config, project_root)
    cmd = upload_command(config, script, report)

    log.info("upload_start", script=str(script), report=str(report))
    result = run_command(cmd, cwd=project_root, timeout=timeout)
    if not result.succeeded:
        raise UploadError.upload_failed(result.returncode, result.command)

    log.info("upload_done", elapsed_s=round(result.elapsed_sec, 2))
    return result


def vendor_uploader(
    url: str,
    dest: Path,
    *,
    client: httpx.Client | None = None,
    timeout: float = 300.0,
) -> str:
    """Download the uploader script to dest and return its SHA256.

    Raises:
        ToolError: On download failure.
    """
    dest.parent.mkdir(parents=True, exist_ok=True)
    tmp = dest.with_name(dest.name + ".part")
    try:
        digest = download_file(url, tmp, client=client, timeout=timeout)
        tmp.replace(dest)
    finally:
        tmp.unlink(missing_ok=True)
    log.info("uploader_vendored", url=url, path=str(dest), sha256=digest)
    return digest
