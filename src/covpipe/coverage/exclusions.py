"""Boilerplate line exclusion.

Lines whose source text matches an exclusion pattern (assertions, derive
attributes, unwrap calls, await suspension points) are removed from the
report entirely: they count neither as covered nor as uncovered.

The aggregator is asked to do the same with --excl-line/--excl-br-line;
re-applying here keeps the result independent of the aggregator version and
of which lines it chooses to instrument.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from covpipe.core.logging import get_logger
from covpipe.coverage.models import CoverageReport

log = get_logger("coverage.exclusions")


@dataclass(slots=True)
class ExclusionResult:
    """Filtered report plus the lines that were dropped, per file."""

    report: CoverageReport
    excluded: dict[str, list[int]] = field(default_factory=dict)

    @property
    def excluded_count(self) -> int:
        return sum(len(lines) for lines in self.excluded.values())


def compile_patterns(patterns: Sequence[str]) -> re.Pattern[str] | None:
    """Combine exclusion patterns into one regex, or None when there are none."""
    if not patterns:
        return None
    return re.compile("|".join(f"(?:{p})" for p in patterns))


def excluded_lines(source: str, regex: re.Pattern[str]) -> set[int]:
    """1-based numbers of the source lines matching regex."""
    return {
        number
        for number, text in enumerate(source.splitlines(), start=1)
        if regex.search(text)
    }


def apply_exclusions(
    report: CoverageReport,
    source_root: Path,
    patterns: Sequence[str],
) -> ExclusionResult:
    """Drop boilerplate lines from every file whose source can be read.

    Files that no longer exist on disk are kept unchanged.
    """
    regex = compile_patterns(patterns)
    if regex is None:
        return ExclusionResult(report=report)

    result = ExclusionResult(report=CoverageReport(source_format=report.source_format))
    for path, fc in report.files.items():
        source_path = Path(path)
        if not source_path.is_absolute():
            source_path = source_root / source_path
        try:
            source = source_path.read_text(encoding="utf-8", errors="replace")
        except OSError:
            log.debug("exclusion_source_unreadable", path=path)
            result.report.files[path] = fc
            continue

        matched = excluded_lines(source, regex) & (fc.lines.keys() | {b.line for b in fc.branches})
        if matched:
            result.excluded[path] = sorted(matched)
            result.report.files[path] = fc.without_lines(matched)
        else:
            result.report.files[path] = fc

    if result.excluded:
        log.info(
            "boilerplate_lines_excluded",
            files=len(result.excluded),
            lines=result.excluded_count,
        )
    return result
