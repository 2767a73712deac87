"""Report generation: archive -> lcov via the aggregation tool.

Equivalent of::

    grcov ccov.zip -s . -t lcov --llvm --branch --excl-line <P> --excl-br-line <P> \\
        --ignore-not-existing --ignore "/*" -o lcov.info

followed by parsing, boilerplate exclusion and a deterministic rewrite of
the report.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from covpipe.config.models import AggregatorConfig, ReportConfig
from covpipe.core.errors import ReportError
from covpipe.core.logging import get_logger
from covpipe.coverage import (
    CoverageParseError,
    CoverageReport,
    CoverageSummary,
    apply_exclusions,
    parse_lcov,
    write_lcov,
)
from covpipe.pipeline.process import run_command

log = get_logger("pipeline.aggregate")


@dataclass(frozen=True, slots=True)
class ReportResult:
    """A validated lcov report on disk."""

    path: Path
    report: CoverageReport
    excluded_lines: int = 0

    @property
    def summary(self) -> CoverageSummary:
        return self.report.summary


def aggregator_command(
    tool: Path,
    archive: Path,
    output: Path,
    *,
    report: ReportConfig,
    aggregator: AggregatorConfig,
    project_root: Path,
) -> list[str]:
    """Command line converting the archive into an lcov report."""
    source_dir = project_root / report.source_dir
    cmd = [str(tool), str(archive), "-s", str(source_dir), "-t", "lcov"]
    if report.llvm:
        cmd.append("--llvm")
    if report.branch:
        cmd.append("--branch")
    if (regex := report.exclude_regex) is not None:
        cmd.extend(["--excl-line", regex, "--excl-br-line", regex])
    if report.ignore_not_existing:
        cmd.append("--ignore-not-existing")
    for pattern in report.ignore:
        cmd.extend(["--ignore", pattern])
    cmd.extend(aggregator.extra_args)
    cmd.extend(["-o", str(output)])
    return cmd


def load_report(path: Path) -> CoverageReport:
    """Parse and validate a report file.

    Raises:
        ReportError: Missing, unparsable, or without any instrumented line.
    """
    if not path.is_file() or path.stat().st_size == 0:
        raise ReportError.empty_report(str(path))
    try:
        report = parse_lcov(path)
    except CoverageParseError as e:
        raise ReportError.parse_error(str(path), str(e)) from e
    if report.is_empty:
        raise ReportError.empty_report(str(path))
    return report


def generate_report(
    tool: Path,
    archive: Path,
    *,
    report: ReportConfig,
    aggregator: AggregatorConfig,
    project_root: Path,
    timeout: float | None = None,
) -> ReportResult:
    """Run the aggregator and post-process its output.

    Raises:
        ReportError: Aggregator failure or an empty/invalid report.
    """
    output = project_root / report.output
    output.unlink(missing_ok=True)

    cmd = aggregator_command(
        tool,
        archive,
        output,
        report=report,
        aggregator=aggregator,
        project_root=project_root,
    )
    log.info("report_start", command=cmd)
    result = run_command(cmd, cwd=project_root, timeout=timeout)
    if not result.succeeded:
        raise ReportError.aggregator_failed(result.returncode, result.command)

    parsed = load_report(output)

    excluded = 0
    if report.reapply_exclusions and report.exclude_patterns:
        filtered = apply_exclusions(
            parsed, project_root / report.source_dir, report.exclude_patterns
        )
        parsed, excluded = filtered.report, filtered.excluded_count
        if parsed.is_empty:
            raise ReportError.empty_report(str(output))

    # Always rewrite: sorted output makes reruns byte-comparable
    write_lcov(parsed, output)

    summary = parsed.summary
    log.info(
        "report_done",
        path=str(output),
        files=summary.files,
        lines_found=summary.lines_found,
        lines_hit=summary.lines_hit,
        line_percent=summary.line_percent,
        excluded_lines=excluded,
    )
    return ReportResult(path=output, report=parsed, excluded_lines=excluded)
