"""Tests for LCOV parsing and rendering."""

from pathlib import Path

import pytest

from covpipe.coverage import (
    CoverageParseError,
    CoverageReport,
    FileCoverage,
    LcovParser,
    parse_lcov,
    render_lcov,
    write_lcov,
)
from covpipe.coverage.models import BranchCoverage, FunctionCoverage

SAMPLE = """\
TN:
SF:src/lib.rs
FN:3,demo::add
FN:10,15,demo::sub
FNDA:4,demo::add
FNDA:0,demo::sub
FNF:2
FNH:1
BRDA:5,0,0,2
BRDA:5,0,1,-
BRF:2
BRH:1
DA:3,4
DA:5,4
DA:11,0
LF:3
LH:2
end_of_record
SF:src/main.rs
DA:1,1
end_of_record
"""


class TestLcovParser:
    """Tests for LcovParser.parse_text."""

    def test_parses_lines_branches_and_functions(self) -> None:
        report = LcovParser().parse_text(SAMPLE)

        lib = report.files["src/lib.rs"]
        assert lib.lines == {3: 4, 5: 4, 11: 0}
        assert lib.branches == [BranchCoverage(5, 0, 0, 2), BranchCoverage(5, 0, 1, 0)]
        assert lib.functions["demo::add"] == FunctionCoverage("demo::add", 3, 4)
        assert lib.functions["demo::sub"] == FunctionCoverage("demo::sub", 10, 0)
        assert set(report.files) == {"src/lib.rs", "src/main.rs"}

    def test_summary_counters_recomputed(self) -> None:
        summary = LcovParser().parse_text(SAMPLE).summary

        assert summary.files == 2
        assert summary.lines_found == 4
        assert summary.lines_hit == 3
        assert summary.branches_found == 2
        assert summary.branches_hit == 1
        assert summary.functions_hit == 1

    def test_repeated_source_file_sums_hits(self) -> None:
        content = "SF:a.rs\nDA:1,1\nend_of_record\nSF:a.rs\nDA:1,2\nDA:2,0\nend_of_record\n"

        report = LcovParser().parse_text(content)

        assert report.files["a.rs"].lines == {1: 3, 2: 0}

    def test_trailing_record_without_end_marker_kept(self) -> None:
        report = LcovParser().parse_text("SF:a.rs\nDA:7,1\n")

        assert report.files["a.rs"].lines == {7: 1}

    def test_da_checksum_field_ignored(self) -> None:
        report = LcovParser().parse_text("SF:a.rs\nDA:2,5,abcdef\nend_of_record\n")

        assert report.files["a.rs"].lines == {2: 5}

    def test_malformed_record_raises(self) -> None:
        with pytest.raises(CoverageParseError, match="Malformed DA record at line 2"):
            LcovParser().parse_text("SF:a.rs\nDA:x,1\nend_of_record\n")

    def test_records_outside_file_ignored(self) -> None:
        report = LcovParser().parse_text("DA:1,1\nTN:t\n")

        assert report.files == {}

    def test_base_path_relativizes_absolute_paths(self) -> None:
        report = LcovParser().parse_text(
            "SF:/work/crate/src/lib.rs\nDA:1,1\nend_of_record\n",
            base_path=Path("/work/crate"),
        )

        assert "src/lib.rs" in report.files


class TestParseFile:
    """Tests for file-based parsing."""

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(CoverageParseError, match="not found"):
            parse_lcov(tmp_path / "lcov.info")

    def test_reads_file(self, tmp_path: Path) -> None:
        path = tmp_path / "lcov.info"
        path.write_text(SAMPLE)

        assert parse_lcov(path).summary.lines_found == 4


class TestRenderLcov:
    """Tests for render_lcov."""

    def test_empty_report_renders_empty_string(self) -> None:
        assert render_lcov(CoverageReport()) == ""

    def test_output_is_sorted(self) -> None:
        report = CoverageReport(
            files={
                "b.rs": FileCoverage("b.rs", lines={9: 0, 2: 1}),
                "a.rs": FileCoverage("a.rs", lines={1: 1}),
            }
        )

        text = render_lcov(report)

        assert text.index("SF:a.rs") < text.index("SF:b.rs")
        assert text.index("DA:2,1") < text.index("DA:9,0")

    def test_render_writes_counters(self) -> None:
        report = LcovParser().parse_text(SAMPLE)

        text = render_lcov(report)

        assert "LF:3\nLH:2\n" in text
        assert "BRF:2\nBRH:1\n" in text
        assert "FNF:2\nFNH:1\n" in text
        assert text.endswith("end_of_record\n")

    def test_reparse_of_rendered_report_is_identical(self) -> None:
        report = LcovParser().parse_text(SAMPLE)
        text = render_lcov(report)

        assert render_lcov(LcovParser().parse_text(text)) == text

    def test_write_lcov(self, tmp_path: Path) -> None:
        report = LcovParser().parse_text(SAMPLE)

        path = write_lcov(report, tmp_path / "out.info")

        assert path.read_text() == render_lcov(report)
