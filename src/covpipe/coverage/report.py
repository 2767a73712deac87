"""Coverage summaries for CLI and JSON output.

Output schema for build_summary:
{
    "summary": {
        "total_files": int,
        "total_lines": int,
        "covered_lines": int,
        "line_coverage_percent": float,
        "total_branches": int,          # only when branches exist
        "covered_branches": int,
        "branch_coverage_percent": float,
        "total_functions": int,         # only when functions exist
        "covered_functions": int,
        "function_coverage_percent": float
    },
    "files": [                          # lowest coverage first
        {
            "path": str,
            "total_lines": int,
            "covered_lines": int,
            "coverage_percent": float,
            "missed_lines": str         # compressed ranges, e.g. "3-5,9"
        },
        ...
    ],
    "source_format": str
}
"""

from typing import Any

from covpipe.coverage.models import CoverageReport


def _percent(hit: int, found: int) -> float:
    return round(hit / found * 100.0, 2) if found > 0 else 100.0


def _compress_ranges(lines: list[int]) -> str:
    """Render sorted line numbers as ranges: [1, 2, 3, 5] -> "1-3,5"."""
    if not lines:
        return ""
    parts: list[str] = []
    start = prev = lines[0]
    for n in lines[1:]:
        if n == prev + 1:
            prev = n
            continue
        parts.append(f"{start}-{prev}" if prev != start else str(start))
        start = prev = n
    parts.append(f"{start}-{prev}" if prev != start else str(start))
    return ",".join(parts)


def compute_file_stats(report: CoverageReport) -> list[dict[str, Any]]:
    """Per-file statistics sorted by path."""
    stats = []
    for path in sorted(report.files):
        fc = report.files[path]
        stats.append(
            {
                "path": path,
                "total_lines": fc.lines_found,
                "covered_lines": fc.lines_hit,
                "coverage_percent": _percent(fc.lines_hit, fc.lines_found),
                "missed_lines": _compress_ranges(fc.uncovered_lines),
            }
        )
    return stats


def build_summary(
    report: CoverageReport,
    *,
    include_files: bool = True,
    max_files: int | None = None,
) -> dict[str, Any]:
    """Build a structured coverage summary from a report.

    Args:
        report: The coverage report to summarize.
        include_files: Whether to include per-file details.
        max_files: Limit number of files (lowest coverage first). None = all.
    """
    s = report.summary
    summary: dict[str, Any] = {
        "total_files": s.files,
        "total_lines": s.lines_found,
        "covered_lines": s.lines_hit,
        "line_coverage_percent": _percent(s.lines_hit, s.lines_found),
    }
    if s.branches_found:
        summary["total_branches"] = s.branches_found
        summary["covered_branches"] = s.branches_hit
        summary["branch_coverage_percent"] = _percent(s.branches_hit, s.branches_found)
    if s.functions_found:
        summary["total_functions"] = s.functions_found
        summary["covered_functions"] = s.functions_hit
        summary["function_coverage_percent"] = _percent(s.functions_hit, s.functions_found)

    result: dict[str, Any] = {"summary": summary, "source_format": report.source_format}

    if include_files:
        file_stats = compute_file_stats(report)
        file_stats.sort(key=lambda f: f["coverage_percent"])
        if max_files is not None:
            file_stats = file_stats[:max_files]
        result["files"] = file_stats

    return result


def build_text_summary(report: CoverageReport) -> str:
    """One-line human-readable summary."""
    s = report.summary
    if s.lines_found == 0:
        return "No coverage data"
    return f"Coverage: {s.line_rate * 100.0:.1f}% ({s.lines_hit}/{s.lines_found} lines)"
