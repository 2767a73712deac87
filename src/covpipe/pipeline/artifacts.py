"""Counter file discovery and archiving.

The archive holds exactly the files whose name matches a counter pattern,
stored uncompressed (like ``zip -0``) under their path relative to the
project root, in sorted order.
"""

from __future__ import annotations

import fnmatch
import os
import zipfile
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path

from covpipe.config.constants import STATE_DIR
from covpipe.core.errors import ArtifactError
from covpipe.core.logging import get_logger

log = get_logger("pipeline.artifacts")

# Never descended into while looking for counter files
SKIP_DIRS = frozenset({".git", STATE_DIR})


@dataclass(frozen=True, slots=True)
class ArchiveResult:
    """A written coverage archive and its member names."""

    path: Path
    members: tuple[str, ...]


def matches_counter_pattern(name: str, patterns: Sequence[str]) -> bool:
    """True when a file name matches any counter glob (case-sensitive)."""
    return any(fnmatch.fnmatchcase(name, pattern) for pattern in patterns)


def find_counter_files(
    root: Path,
    patterns: Sequence[str],
    *,
    exclude: Iterable[Path] = (),
) -> list[Path]:
    """Every file under root whose name matches a counter pattern, sorted.

    Args:
        root: Directory to search recursively.
        patterns: fnmatch-style globs tested against the file name only.
        exclude: Specific files to leave out (e.g. the archive itself).
    """
    excluded = {p.resolve() for p in exclude}
    found: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in SKIP_DIRS)
        for filename in filenames:
            if not matches_counter_pattern(filename, patterns):
                continue
            path = Path(dirpath) / filename
            if path.resolve() in excluded or not path.is_file():
                continue
            found.append(path)
    return sorted(found)


def create_archive(files: Sequence[Path], root: Path, archive_path: Path) -> ArchiveResult:
    """Store files in a zip archive without compression.

    Raises:
        ArtifactError: When there are no files, or the archive cannot be written.
    """
    if not files:
        raise ArtifactError.no_counter_files(str(root), [])

    members: list[str] = []
    try:
        with zipfile.ZipFile(archive_path, "w", compression=zipfile.ZIP_STORED) as zf:
            for path in sorted(files):
                arcname = path.relative_to(root).as_posix()
                zf.write(path, arcname)
                members.append(arcname)
    except (OSError, ValueError, zipfile.BadZipFile) as e:
        archive_path.unlink(missing_ok=True)
        raise ArtifactError.archive_failed(str(archive_path), str(e)) from e

    log.info("archive_written", path=str(archive_path), members=len(members))
    return ArchiveResult(path=archive_path, members=tuple(members))


def archive_counter_files(root: Path, patterns: Sequence[str], archive_path: Path) -> ArchiveResult:
    """Find counter files under root and archive them.

    Raises:
        ArtifactError: No counter file matched, or the archive failed.
    """
    archive_path.unlink(missing_ok=True)
    files = find_counter_files(root, patterns, exclude=[archive_path])
    if not files:
        raise ArtifactError.no_counter_files(str(root), list(patterns))
    log.info("counter_files_found", count=len(files))
    return create_archive(files, root, archive_path)


def remove_files(paths: Iterable[Path]) -> int:
    """Delete files that still exist; return how many were removed."""
    removed = 0
    for path in paths:
        if path.is_file():
            path.unlink()
            removed += 1
    return removed
