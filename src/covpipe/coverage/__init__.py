"""LCOV coverage parsing, boilerplate exclusion and summaries.

Usage:
    from covpipe.coverage import parse_lcov, apply_exclusions, write_lcov, build_summary

    report = parse_lcov(Path("lcov.info"))
    filtered = apply_exclusions(report, Path("."), patterns).report
    write_lcov(filtered, Path("lcov.info"))
    summary = build_summary(filtered)
"""

from covpipe.coverage.exclusions import (
    ExclusionResult,
    apply_exclusions,
    compile_patterns,
    excluded_lines,
)
from covpipe.coverage.lcov import LcovParser, parse_lcov, render_lcov, write_lcov
from covpipe.coverage.models import (
    BranchCoverage,
    CoverageParseError,
    CoverageReport,
    CoverageSummary,
    FileCoverage,
    FunctionCoverage,
)
from covpipe.coverage.report import (
    build_summary,
    build_text_summary,
    compute_file_stats,
)

__all__ = [
    # Models
    "BranchCoverage",
    "CoverageParseError",
    "CoverageReport",
    "CoverageSummary",
    "FileCoverage",
    "FunctionCoverage",
    # LCOV
    "LcovParser",
    "parse_lcov",
    "render_lcov",
    "write_lcov",
    # Exclusions
    "ExclusionResult",
    "apply_exclusions",
    "compile_patterns",
    "excluded_lines",
    # Report
    "build_summary",
    "build_text_summary",
    "compute_file_stats",
]
