"""LCOV format reading and writing.

LCOV is a plain text format with records like:
- TN:<test name>
- SF:<source file path>
- FN:<line>,<name>  (lcov 2.x also writes FN:<line>,<end line>,<name>)
- FNDA:<hit count>,<name>
- BRDA:<line>,<block>,<branch>,<taken>
- DA:<line>,<hit count>[,<checksum>]
- LF/LH, BRF/BRH, FNF/FNH summary counters
- end_of_record

grcov writes this format with ``-t lcov``. Summary counters are ignored on
read and recomputed on write, so a rewritten report is always consistent.
"""

from __future__ import annotations

import contextlib
from pathlib import Path

from covpipe.coverage.models import (
    BranchCoverage,
    CoverageParseError,
    CoverageReport,
    FileCoverage,
    FunctionCoverage,
)


def _hits(value: str) -> int:
    # '-' marks a branch whose block was never executed
    return 0 if value == "-" else int(value)


class LcovParser:
    """Parser for LCOV coverage files."""

    format_id = "lcov"

    def parse(self, path: Path, *, base_path: Path | None = None) -> CoverageReport:
        """Parse an LCOV file into a CoverageReport.

        Args:
            path: The .info file.
            base_path: When given, absolute SF paths under it are made relative.

        Raises:
            CoverageParseError: If the file is missing or unreadable.
        """
        if not path.exists():
            raise CoverageParseError(f"LCOV file not found: {path}")
        try:
            content = path.read_text()
        except (OSError, UnicodeDecodeError) as e:
            raise CoverageParseError(f"Failed to read LCOV file: {e}") from e
        return self.parse_text(content, base_path=base_path)

    def parse_text(self, content: str, *, base_path: Path | None = None) -> CoverageReport:
        files: dict[str, FileCoverage] = {}
        current: FileCoverage | None = None
        fn_lines: dict[str, int] = {}

        for lineno, raw in enumerate(content.splitlines(), start=1):
            line = raw.strip()
            if not line or line.startswith("#"):
                continue

            if line == "end_of_record":
                if current is not None:
                    files[current.path] = current
                current = None
                fn_lines = {}
                continue

            tag, sep, rest = line.partition(":")
            if not sep:
                continue

            if tag == "SF":
                file_path = rest
                if base_path is not None:
                    with contextlib.suppress(ValueError):
                        file_path = str(Path(file_path).relative_to(base_path))
                # A repeated SF for the same path continues that file
                current = files.pop(file_path, None) or FileCoverage(path=file_path)
                fn_lines = {name: fn.start_line for name, fn in current.functions.items()}
                continue

            if current is None:
                continue

            try:
                if tag == "DA":
                    parts = rest.split(",")
                    line_num, hits = int(parts[0]), _hits(parts[1])
                    current.lines[line_num] = current.lines.get(line_num, 0) + hits
                elif tag == "BRDA":
                    ln, block, branch, taken = rest.split(",", 3)
                    current.branches.append(
                        BranchCoverage(
                            line=int(ln),
                            block_id=int(block),
                            branch_id=int(branch),
                            hits=_hits(taken),
                        )
                    )
                elif tag == "FN":
                    parts = rest.split(",", 2)
                    if len(parts) == 3 and parts[1].isdigit():
                        name = parts[2]
                    else:
                        name = rest.split(",", 1)[1]
                    fn_lines[name] = int(parts[0])
                    if name not in current.functions:
                        current.functions[name] = FunctionCoverage(name, int(parts[0]), 0)
                elif tag == "FNDA":
                    count, name = rest.split(",", 1)
                    current.functions[name] = FunctionCoverage(
                        name=name,
                        start_line=fn_lines.get(name, 0),
                        hits=int(count),
                    )
            except (ValueError, IndexError) as e:
                raise CoverageParseError(f"Malformed {tag} record at line {lineno}: {raw!r}") from e

        # Trailing record without end_of_record
        if current is not None:
            files[current.path] = current

        return CoverageReport(source_format=self.format_id, files=files)


def render_lcov(report: CoverageReport, *, test_name: str = "") -> str:
    """Render a report as LCOV text.

    Files, functions, branches and lines are emitted in sorted order so the
    same coverage always produces byte-identical output.
    """
    out: list[str] = []
    for path in sorted(report.files):
        fc = report.files[path]
        out.append(f"TN:{test_name}")
        out.append(f"SF:{path}")

        functions = sorted(fc.functions.values(), key=lambda f: (f.start_line, f.name))
        for fn in functions:
            out.append(f"FN:{fn.start_line},{fn.name}")
        for fn in functions:
            out.append(f"FNDA:{fn.hits},{fn.name}")
        out.append(f"FNF:{fc.functions_found}")
        out.append(f"FNH:{fc.functions_hit}")

        branches = sorted(fc.branches, key=lambda b: (b.line, b.block_id, b.branch_id))
        for br in branches:
            out.append(f"BRDA:{br.line},{br.block_id},{br.branch_id},{br.hits}")
        out.append(f"BRF:{fc.branches_found}")
        out.append(f"BRH:{fc.branches_hit}")

        for line_num in sorted(fc.lines):
            out.append(f"DA:{line_num},{fc.lines[line_num]}")
        out.append(f"LF:{fc.lines_found}")
        out.append(f"LH:{fc.lines_hit}")
        out.append("end_of_record")

    return "\n".join(out) + "\n" if out else ""


def parse_lcov(path: Path, *, base_path: Path | None = None) -> CoverageReport:
    """Convenience wrapper around LcovParser().parse()."""
    return LcovParser().parse(path, base_path=base_path)


def write_lcov(report: CoverageReport, path: Path) -> Path:
    """Write a report to path as LCOV and return the path."""
    path.write_text(render_lcov(report))
    return path
