"""Core module exports."""

from covpipe.core.errors import (
    ArtifactError,
    ConfigError,
    CovPipeError,
    ErrorCode,
    InternalError,
    ReportError,
    ToolchainError,
    ToolError,
    UploadError,
)
from covpipe.core.logging import (
    clear_run_id,
    configure_logging,
    get_logger,
    get_run_id,
    set_run_id,
)
from covpipe.core.progress import status

__all__ = [
    # Errors
    "ArtifactError",
    "ConfigError",
    "CovPipeError",
    "ErrorCode",
    "InternalError",
    "ReportError",
    "ToolchainError",
    "ToolError",
    "UploadError",
    # Logging
    "clear_run_id",
    "configure_logging",
    "get_logger",
    "get_run_id",
    "set_run_id",
    # Progress
    "status",
]
