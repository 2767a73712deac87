"""Tests for coverage data models."""

from covpipe.coverage import CoverageReport, FileCoverage
from covpipe.coverage.models import BranchCoverage, FunctionCoverage


class TestFileCoverage:
    """FileCoverage derived properties."""

    def test_line_counts(self) -> None:
        fc = FileCoverage("a.rs", lines={1: 2, 2: 0, 5: 0})

        assert fc.lines_found == 3
        assert fc.lines_hit == 1
        assert fc.uncovered_lines == [2, 5]

    def test_line_rate_without_lines_is_zero(self) -> None:
        assert FileCoverage("a.rs").line_rate == 0.0

    def test_branch_and_function_counts(self) -> None:
        fc = FileCoverage(
            "a.rs",
            branches=[BranchCoverage(1, 0, 0, 1), BranchCoverage(1, 0, 1, 0)],
            functions={"f": FunctionCoverage("f", 1, 0), "g": FunctionCoverage("g", 5, 2)},
        )

        assert (fc.branches_found, fc.branches_hit) == (2, 1)
        assert (fc.functions_found, fc.functions_hit) == (2, 1)

    def test_without_lines_returns_copy(self) -> None:
        fc = FileCoverage("a.rs", lines={1: 1, 2: 1}, branches=[BranchCoverage(2, 0, 0, 1)])

        trimmed = fc.without_lines({2})

        assert trimmed.lines == {1: 1}
        assert trimmed.branches == []
        assert fc.lines == {1: 1, 2: 1}


class TestCoverageReport:
    """CoverageReport aggregate properties."""

    def test_empty_when_no_files(self) -> None:
        assert CoverageReport().is_empty

    def test_empty_when_files_have_no_lines(self) -> None:
        assert CoverageReport(files={"a.rs": FileCoverage("a.rs")}).is_empty

    def test_summary_line_percent(self) -> None:
        report = CoverageReport(files={"a.rs": FileCoverage("a.rs", lines={1: 1, 2: 0, 3: 0})})

        assert report.summary.line_percent == 33.33
