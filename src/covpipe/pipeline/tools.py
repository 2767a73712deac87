"""Aggregation tool (grcov) download and installation.

The tool is installed into the project's .covpipe/bin directory, never
system-wide. A configured aggregator.path bypasses the download entirely.

Downloads go through httpx with redirects followed (GitHub release URLs
redirect to a CDN) and a bounded timeout. When a sha256 is pinned the archive
is verified before anything is extracted.
"""

from __future__ import annotations

import hashlib
import shutil
import stat
import tarfile
import tempfile
import zipfile
from dataclasses import dataclass
from pathlib import Path

import httpx

from covpipe.config.models import AggregatorConfig
from covpipe.core.errors import ToolError
from covpipe.core.logging import get_logger

log = get_logger("pipeline.tools")

_TAR_MODES = {"tar.bz2": "r:bz2", "tar.gz": "r:gz"}


@dataclass(frozen=True, slots=True)
class FetchResult:
    """Location of a ready-to-run aggregation tool."""

    path: Path
    downloaded: bool
    sha256: str | None = None


def compute_sha256(path: Path) -> str:
    """Compute SHA256 checksum of a file."""
    sha256 = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(8192), b""):
            sha256.update(chunk)
    return sha256.hexdigest()


def download_file(
    url: str,
    dest: Path,
    *,
    client: httpx.Client | None = None,
    timeout: float = 300.0,
) -> str:
    """Stream url into dest and return the SHA256 of the written bytes.

    Raises:
        ToolError: On transport errors or a non-2xx response.
    """
    own_client = client is None
    http = client or httpx.Client(follow_redirects=True, timeout=timeout)
    sha256 = hashlib.sha256()
    try:
        with http.stream("GET", url) as response:
            response.raise_for_status()
            with open(dest, "wb") as f:
                for chunk in response.iter_bytes():
                    sha256.update(chunk)
                    f.write(chunk)
    except httpx.HTTPStatusError as e:
        raise ToolError.download_failed(url, f"HTTP {e.response.status_code}") from e
    except httpx.HTTPError as e:
        raise ToolError.download_failed(url, str(e) or type(e).__name__) from e
    finally:
        if own_client:
            http.close()
    return sha256.hexdigest()


def _make_executable(path: Path) -> None:
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)


class AggregatorFetcher:
    """Fetch-on-demand for the coverage aggregation tool.

    Usage::

        fetcher = AggregatorFetcher(config.aggregator, project_root)
        tool = fetcher.ensure()
        subprocess.run([tool.path, ...])
    """

    def __init__(
        self,
        config: AggregatorConfig,
        project_root: Path,
        *,
        client: httpx.Client | None = None,
        timeout: float = 300.0,
    ) -> None:
        self._config = config
        self._root = project_root
        self._client = client
        self._timeout = timeout

    @property
    def install_path(self) -> Path:
        """Where the tool binary lives (or will live) for this project."""
        if self._config.path:
            path = Path(self._config.path).expanduser()
            return path if path.is_absolute() else self._root / path
        return self._root / self._config.install_dir / self._config.name

    def is_installed(self) -> bool:
        return self.install_path.is_file()

    def ensure(self, *, force: bool = False) -> FetchResult:
        """Return the tool, downloading it first when missing (or when forced).

        Raises:
            ToolError: Download failure, checksum mismatch, malformed archive,
                       or a configured path that does not exist.
        """
        path = self.install_path
        if self._config.path:
            if not path.is_file():
                raise ToolError.not_found(self._config.name, str(path))
            log.info("aggregator_preinstalled", path=str(path))
            return FetchResult(path=path, downloaded=False)

        if path.is_file() and not force:
            log.info("aggregator_cached", path=str(path))
            return FetchResult(path=path, downloaded=False)

        return self._install()

    def _install(self) -> FetchResult:
        url = self._config.url
        install_dir = self.install_path.parent
        install_dir.mkdir(parents=True, exist_ok=True)

        log.info("aggregator_download_start", url=url)
        with tempfile.TemporaryDirectory(prefix="covpipe-") as tmp:
            archive_path = Path(tmp) / "download"
            actual = download_file(url, archive_path, client=self._client, timeout=self._timeout)

            expected = self._config.sha256
            if expected and actual != expected:
                raise ToolError.checksum_mismatch(url, expected, actual)

            try:
                self._extract(archive_path)
            except ToolError:
                # A partial binary would otherwise be reused as cached
                self.install_path.unlink(missing_ok=True)
                raise

        tool_path = self.install_path
        if not tool_path.is_file():
            raise ToolError.bad_archive(url, f"no '{self._config.name}' binary inside")
        _make_executable(tool_path)

        log.info("aggregator_installed", path=str(tool_path), sha256=actual)
        return FetchResult(path=tool_path, downloaded=True, sha256=actual)

    def _extract(self, archive_path: Path) -> None:
        """Extract the tool binary from the archive into install_path."""
        archive_type = self._config.archive_type
        name = self._config.name
        dest = self.install_path

        try:
            if archive_type == "binary":
                shutil.copyfile(archive_path, dest)
            elif archive_type in _TAR_MODES:
                with tarfile.open(archive_path, _TAR_MODES[archive_type]) as tar:
                    member = next(
                        (m for m in tar.getmembers() if m.isfile() and Path(m.name).name == name),
                        None,
                    )
                    if member is None:
                        raise ToolError.bad_archive(str(archive_path), f"'{name}' not in archive")
                    src = tar.extractfile(member)
                    if src is None:
                        raise ToolError.bad_archive(str(archive_path), f"cannot read '{name}'")
                    with src, open(dest, "wb") as out:
                        shutil.copyfileobj(src, out)
            else:
                with zipfile.ZipFile(archive_path) as zf:
                    entry = next((n for n in zf.namelist() if Path(n).name == name), None)
                    if entry is None:
                        raise ToolError.bad_archive(str(archive_path), f"'{name}' not in archive")
                    with zf.open(entry) as src, open(dest, "wb") as out:
                        shutil.copyfileobj(src, out)
        except (tarfile.TarError, zipfile.BadZipFile, EOFError, OSError) as e:
            raise ToolError.bad_archive(self._config.url, str(e)) from e
