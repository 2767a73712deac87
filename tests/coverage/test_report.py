"""Tests for coverage summaries."""

import pytest

from covpipe.coverage import (
    CoverageReport,
    FileCoverage,
    build_summary,
    build_text_summary,
    compute_file_stats,
)
from covpipe.coverage.models import BranchCoverage, FunctionCoverage
from covpipe.coverage.report import _compress_ranges


class TestCompressRanges:
    """Tests for _compress_ranges helper."""

    @pytest.mark.parametrize(
        ("lines", "expected"),
        [
            ([], ""),
            ([5], "5"),
            ([1, 2], "1-2"),
            ([1, 5], "1,5"),
            ([1, 2, 3, 5, 7, 8, 9], "1-3,5,7-9"),
        ],
    )
    def test_ranges(self, lines: list[int], expected: str) -> None:
        assert _compress_ranges(lines) == expected


@pytest.fixture
def report() -> CoverageReport:
    return CoverageReport(
        files={
            "src/full.rs": FileCoverage("src/full.rs", lines={1: 1, 2: 3}),
            "src/half.rs": FileCoverage(
                "src/half.rs",
                lines={1: 1, 2: 0, 3: 0, 4: 1},
                branches=[BranchCoverage(1, 0, 0, 1), BranchCoverage(1, 0, 1, 0)],
                functions={"f": FunctionCoverage("f", 1, 1)},
            ),
        }
    )


class TestComputeFileStats:
    """Tests for compute_file_stats."""

    def test_per_file_stats_sorted_by_path(self, report: CoverageReport) -> None:
        stats = compute_file_stats(report)

        assert [s["path"] for s in stats] == ["src/full.rs", "src/half.rs"]
        assert stats[1] == {
            "path": "src/half.rs",
            "total_lines": 4,
            "covered_lines": 2,
            "coverage_percent": 50.0,
            "missed_lines": "2-3",
        }


class TestBuildSummary:
    """Tests for build_summary."""

    def test_totals(self, report: CoverageReport) -> None:
        summary = build_summary(report)["summary"]

        assert summary["total_files"] == 2
        assert summary["total_lines"] == 6
        assert summary["covered_lines"] == 4
        assert summary["line_coverage_percent"] == 66.67
        assert summary["branch_coverage_percent"] == 50.0
        assert summary["function_coverage_percent"] == 100.0

    def test_lowest_coverage_first(self, report: CoverageReport) -> None:
        files = build_summary(report)["files"]

        assert files[0]["path"] == "src/half.rs"

    def test_max_files(self, report: CoverageReport) -> None:
        assert len(build_summary(report, max_files=1)["files"]) == 1

    def test_without_files(self, report: CoverageReport) -> None:
        assert "files" not in build_summary(report, include_files=False)

    def test_branch_keys_omitted_without_branches(self) -> None:
        plain = CoverageReport(files={"a.rs": FileCoverage("a.rs", lines={1: 1})})

        summary = build_summary(plain)["summary"]

        assert "total_branches" not in summary
        assert "total_functions" not in summary


class TestBuildTextSummary:
    """Tests for build_text_summary."""

    def test_empty_report(self) -> None:
        assert build_text_summary(CoverageReport()) == "No coverage data"

    def test_one_line(self, report: CoverageReport) -> None:
        assert build_text_summary(report) == "Coverage: 66.7% (4/6 lines)"
