"""Coverage pipeline runner.

Runs the steps in fixed order:

    configure -> fetch_tool -> build -> test -> archive -> report -> upload -> cleanup

Every step yields a StepResult. With the default ``on_failure: stop`` policy
the first failure halts the run and all later steps are recorded as skipped,
so a failed build can never upload a report. ``on_failure: continue`` keeps
going after a failure (the run as a whole still fails).
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

import httpx
import structlog

from covpipe.config.models import CovPipeConfig
from covpipe.core.errors import CovPipeError, InternalError, ReportError
from covpipe.core.logging import clear_run_id, get_logger, set_run_id
from covpipe.pipeline.aggregate import ReportResult, generate_report
from covpipe.pipeline.artifacts import archive_counter_files, remove_files
from covpipe.pipeline.environment import ToolchainEnvironment
from covpipe.pipeline.tools import AggregatorFetcher
from covpipe.pipeline.toolchain import run_phase
from covpipe.pipeline.upload import upload_report

log = get_logger("pipeline.runner")

STEP_NAMES = (
    "configure",
    "fetch_tool",
    "build",
    "test",
    "archive",
    "report",
    "upload",
    "cleanup",
)


class StepStatus(str, Enum):
    """Outcome of a pipeline step."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(slots=True)
class StepResult:
    """Result of a single pipeline step."""

    name: str
    status: StepStatus
    elapsed_sec: float = 0.0
    error: CovPipeError | None = None
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "status": self.status.value,
            "elapsed_sec": round(self.elapsed_sec, 3),
            "details": self.details,
        }
        if self.error is not None:
            data["error"] = self.error.to_dict()
        return data


@dataclass(slots=True)
class PipelineResult:
    """Result of a complete pipeline run."""

    run_id: str
    steps: list[StepResult] = field(default_factory=list)
    report: ReportResult | None = None

    @property
    def succeeded(self) -> bool:
        return all(s.status is not StepStatus.FAILED for s in self.steps)

    @property
    def first_failure(self) -> StepResult | None:
        return next((s for s in self.steps if s.status is StepStatus.FAILED), None)

    @property
    def exit_code(self) -> int:
        """0 on success, else the exit code of the first failure."""
        failure = self.first_failure
        if failure is None:
            return 0
        return failure.error.exit_code if failure.error else 1

    def step(self, name: str) -> StepResult | None:
        return next((s for s in self.steps if s.name == name), None)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "run_id": self.run_id,
            "succeeded": self.succeeded,
            "exit_code": self.exit_code,
            "steps": [s.to_dict() for s in self.steps],
        }
        if self.report is not None:
            summary = self.report.summary
            data["report"] = {
                "path": str(self.report.path),
                "files": summary.files,
                "lines_found": summary.lines_found,
                "lines_hit": summary.lines_hit,
                "line_coverage_percent": summary.line_percent,
                "excluded_lines": self.report.excluded_lines,
            }
        return data


@dataclass(slots=True)
class _RunState:
    """Artifacts handed from one step to the next."""

    environment: ToolchainEnvironment | None = None
    tool: Path | None = None
    archive: Path | None = None
    counter_files: list[Path] = field(default_factory=list)
    report: ReportResult | None = None
    uploaded: bool = False


StepStartHook = Callable[[str], None]
StepEndHook = Callable[[StepResult], None]


class CoveragePipeline:
    """Sequential coverage pipeline for one project root.

    Usage::

        pipeline = CoveragePipeline(load_config(root), root)
        result = pipeline.run()
        sys.exit(result.exit_code)
    """

    def __init__(
        self,
        config: CovPipeConfig,
        project_root: Path,
        *,
        options: str | None = None,
        client: httpx.Client | None = None,
        on_step_start: StepStartHook | None = None,
        on_step_end: StepEndHook | None = None,
    ) -> None:
        self._config = config
        self._root = project_root
        self._options = options if options is not None else config.toolchain.options
        self._client = client
        self._on_step_start = on_step_start
        self._on_step_end = on_step_end

    @property
    def config(self) -> CovPipeConfig:
        return self._config

    def run(self) -> PipelineResult:
        """Run every step and return the collected results.

        Step failures are recorded, never raised. KeyboardInterrupt propagates.
        """
        run_id = set_run_id()
        result = PipelineResult(run_id=run_id)
        state = _RunState()
        stop_on_failure = self._config.pipeline.on_failure == "stop"

        steps: dict[str, Callable[[_RunState], dict[str, Any]]] = {
            "configure": self._configure,
            "fetch_tool": self._fetch_tool,
            "build": self._build,
            "test": self._test,
            "archive": self._archive,
            "report": self._report,
            "upload": self._upload,
            "cleanup": self._cleanup,
        }

        log.info(
            "pipeline_start",
            project_root=str(self._root),
            on_failure=self._config.pipeline.on_failure,
        )
        try:
            with structlog.contextvars.bound_contextvars(run_id=run_id):
                for name in STEP_NAMES:
                    if (reason := self._skip_reason(name, result, stop_on_failure)) is not None:
                        step = StepResult(name, StepStatus.SKIPPED, details={"reason": reason})
                    else:
                        step = self._run_step(name, steps[name], state)
                    result.steps.append(step)
                    if self._on_step_end is not None:
                        self._on_step_end(step)
        finally:
            clear_run_id()

        result.report = state.report
        log.info("pipeline_done", succeeded=result.succeeded, exit_code=result.exit_code)
        return result

    def _skip_reason(self, name: str, result: PipelineResult, stop_on_failure: bool) -> str | None:
        failed = result.first_failure is not None
        if failed and (stop_on_failure or name == "cleanup"):
            return "previous step failed"
        if name == "upload" and not self._config.upload.enabled:
            return "upload disabled"
        return None

    def _run_step(
        self,
        name: str,
        fn: Callable[[_RunState], dict[str, Any]],
        state: _RunState,
    ) -> StepResult:
        if self._on_step_start is not None:
            self._on_step_start(name)
        log.info("step_start", step=name)
        start = time.perf_counter()
        try:
            details = fn(state)
        except CovPipeError as e:
            elapsed = time.perf_counter() - start
            log.error("step_failed", step=name, error=e.error_name, message=e.message)
            return StepResult(name, StepStatus.FAILED, elapsed, error=e)
        except OSError as e:
            elapsed = time.perf_counter() - start
            error = InternalError.unexpected(str(e), step=name)
            log.exception("step_failed", step=name, error=error.error_name)
            return StepResult(name, StepStatus.FAILED, elapsed, error=error)

        elapsed = time.perf_counter() - start
        log.info("step_done", step=name, elapsed_s=round(elapsed, 3))
        return StepResult(name, StepStatus.SUCCEEDED, elapsed, details=details)

    # -- steps ---------------------------------------------------------------

    def _configure(self, state: _RunState) -> dict[str, Any]:
        state.environment = ToolchainEnvironment.from_config(self._config.toolchain)
        return {"variables": dict(state.environment)}

    def _fetch_tool(self, state: _RunState) -> dict[str, Any]:
        fetched = self._fetcher().ensure()
        state.tool = fetched.path
        return {"path": str(fetched.path), "downloaded": fetched.downloaded}

    def _build(self, state: _RunState) -> dict[str, Any]:
        result = run_phase(
            "build",
            config=self._config.toolchain,
            environment=self._environment(state),
            project_root=self._root,
            options=self._options,
            timeouts=self._config.timeouts,
        )
        return {"command": result.command}

    def _test(self, state: _RunState) -> dict[str, Any]:
        result = run_phase(
            "test",
            config=self._config.toolchain,
            environment=self._environment(state),
            project_root=self._root,
            options=self._options,
            timeouts=self._config.timeouts,
        )
        return {"command": result.command}

    def _archive(self, state: _RunState) -> dict[str, Any]:
        archive = archive_counter_files(
            self._root,
            self._config.archive.counter_patterns,
            self._root / self._config.archive.name,
        )
        state.archive = archive.path
        state.counter_files = [self._root / member for member in archive.members]
        return {"path": str(archive.path), "files": len(archive.members)}

    def _report(self, state: _RunState) -> dict[str, Any]:
        # Under on_failure=continue earlier steps may not have produced these
        tool = state.tool or self._fetcher().install_path
        archive = state.archive or self._root / self._config.archive.name
        report = generate_report(
            tool,
            archive,
            report=self._config.report,
            aggregator=self._config.aggregator,
            project_root=self._root,
            timeout=self._config.timeouts.report_sec,
        )
        state.report = report
        summary = report.summary
        return {
            "path": str(report.path),
            "lines_found": summary.lines_found,
            "lines_hit": summary.lines_hit,
            "line_coverage_percent": summary.line_percent,
            "excluded_lines": report.excluded_lines,
        }

    def _upload(self, state: _RunState) -> dict[str, Any]:
        # Only a report that passed validation is uploaded, never a leftover file
        if state.report is None:
            raise ReportError.empty_report(str(self._root / self._config.report.output))
        report_path = state.report.path
        upload_report(
            report_path,
            config=self._config.upload,
            project_root=self._root,
            timeout=self._config.timeouts.upload_sec,
        )
        state.uploaded = True
        return {"report": str(report_path)}

    def _cleanup(self, state: _RunState) -> dict[str, Any]:
        removed = 0
        if self._config.cleanup.artifacts:
            paths = list(state.counter_files)
            if state.archive is not None:
                paths.append(state.archive)
            removed += remove_files(paths)
        if self._config.cleanup.report and state.uploaded and state.report is not None:
            removed += remove_files([state.report.path])
        return {"removed": removed}

    # -- helpers -------------------------------------------------------------

    def _fetcher(self) -> AggregatorFetcher:
        return AggregatorFetcher(
            self._config.aggregator,
            self._root,
            client=self._client,
            timeout=self._config.timeouts.download_sec,
        )

    def _environment(self, state: _RunState) -> ToolchainEnvironment:
        if state.environment is None:
            state.environment = ToolchainEnvironment.from_config(self._config.toolchain)
        return state.environment
