"""Coverage pipeline: environment, toolchain, archive, report and upload steps."""

from covpipe.pipeline.environment import ToolchainEnvironment
from covpipe.pipeline.runner import (
    STEP_NAMES,
    CoveragePipeline,
    PipelineResult,
    StepResult,
    StepStatus,
)

__all__ = [
    "STEP_NAMES",
    "CoveragePipeline",
    "PipelineResult",
    "StepResult",
    "StepStatus",
    "ToolchainEnvironment",
]
