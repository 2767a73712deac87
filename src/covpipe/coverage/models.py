"""Line-coverage data model.

File-centric model of an lcov report: per-file line hits, branch points and
functions. Paths are kept exactly as the aggregator wrote them (relative to
the source directory).
"""

from __future__ import annotations

from dataclasses import dataclass, field


class CoverageParseError(Exception):
    """Error parsing coverage data."""

    pass


@dataclass(frozen=True, slots=True)
class BranchCoverage:
    """A single branch outcome at a line (lcov BRDA record)."""

    line: int
    block_id: int
    branch_id: int
    hits: int


@dataclass(frozen=True, slots=True)
class FunctionCoverage:
    """Function coverage (lcov FN/FNDA records)."""

    name: str
    start_line: int
    hits: int


@dataclass(slots=True)
class FileCoverage:
    """Coverage data for a single source file.

    Lines map 1-based line number to hit count.
    """

    path: str
    lines: dict[int, int] = field(default_factory=dict)
    branches: list[BranchCoverage] = field(default_factory=list)
    functions: dict[str, FunctionCoverage] = field(default_factory=dict)

    @property
    def lines_found(self) -> int:
        return len(self.lines)

    @property
    def lines_hit(self) -> int:
        return sum(1 for hits in self.lines.values() if hits > 0)

    @property
    def line_rate(self) -> float:
        """Fraction of lines covered (0.0 to 1.0)."""
        if not self.lines:
            return 0.0
        return self.lines_hit / len(self.lines)

    @property
    def uncovered_lines(self) -> list[int]:
        return sorted(line for line, hits in self.lines.items() if hits == 0)

    @property
    def branches_found(self) -> int:
        return len(self.branches)

    @property
    def branches_hit(self) -> int:
        return sum(1 for b in self.branches if b.hits > 0)

    @property
    def functions_found(self) -> int:
        return len(self.functions)

    @property
    def functions_hit(self) -> int:
        return sum(1 for f in self.functions.values() if f.hits > 0)

    def without_lines(self, excluded: set[int]) -> FileCoverage:
        """Copy of this file with the given lines dropped from all accounting."""
        return FileCoverage(
            path=self.path,
            lines={ln: hits for ln, hits in self.lines.items() if ln not in excluded},
            branches=[b for b in self.branches if b.line not in excluded],
            functions=dict(self.functions),
        )


@dataclass(frozen=True, slots=True)
class CoverageSummary:
    """Aggregate coverage statistics, computed from a CoverageReport."""

    files: int
    lines_found: int
    lines_hit: int
    branches_found: int
    branches_hit: int
    functions_found: int
    functions_hit: int

    @property
    def line_rate(self) -> float:
        return self.lines_hit / self.lines_found if self.lines_found > 0 else 0.0

    @property
    def line_percent(self) -> float:
        """Line coverage percentage rounded to two decimals."""
        return round(self.line_rate * 100.0, 2)

    @property
    def branch_rate(self) -> float:
        return self.branches_hit / self.branches_found if self.branches_found > 0 else 0.0

    @property
    def function_rate(self) -> float:
        return self.functions_hit / self.functions_found if self.functions_found > 0 else 0.0


@dataclass(slots=True)
class CoverageReport:
    """Complete coverage report, files keyed by path."""

    source_format: str = "lcov"
    files: dict[str, FileCoverage] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        """True when the report has no instrumented lines at all."""
        return not any(fc.lines for fc in self.files.values())

    @property
    def summary(self) -> CoverageSummary:
        files = self.files.values()
        return CoverageSummary(
            files=len(self.files),
            lines_found=sum(f.lines_found for f in files),
            lines_hit=sum(f.lines_hit for f in files),
            branches_found=sum(f.branches_found for f in files),
            branches_hit=sum(f.branches_hit for f in files),
            functions_found=sum(f.functions_found for f in files),
            functions_hit=sum(f.functions_hit for f in files),
        )
