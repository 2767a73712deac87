"""Config module exports."""

from covpipe.config.loader import load_config
from covpipe.config.models import (
    AggregatorConfig,
    ArchiveConfig,
    CleanupConfig,
    CovPipeConfig,
    LoggingConfig,
    PipelineConfig,
    ReportConfig,
    TimeoutsConfig,
    ToolchainConfig,
    UploadConfig,
)

__all__ = [
    "load_config",
    "AggregatorConfig",
    "ArchiveConfig",
    "CleanupConfig",
    "CovPipeConfig",
    "LoggingConfig",
    "PipelineConfig",
    "ReportConfig",
    "TimeoutsConfig",
    "ToolchainConfig",
    "UploadConfig",
]
