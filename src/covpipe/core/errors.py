"""covpipe error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Aggregation tool
- 4xxx: Toolchain (build/test)
- 5xxx: Artifacts (counter files, archive)
- 6xxx: Report
- 7xxx: Upload
- 9xxx: Internal
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002
    CONFIG_MISSING_REQUIRED = 2003
    CONFIG_FILE_NOT_FOUND = 2004

    # Aggregation tool (3xxx)
    TOOL_DOWNLOAD_FAILED = 3001
    TOOL_CHECKSUM_MISMATCH = 3002
    TOOL_BAD_ARCHIVE = 3003
    TOOL_NOT_FOUND = 3004

    # Toolchain (4xxx)
    TOOLCHAIN_BUILD_FAILED = 4001
    TOOLCHAIN_TESTS_FAILED = 4002
    TOOLCHAIN_COMMAND_NOT_FOUND = 4003

    # Artifacts (5xxx)
    ARTIFACT_NO_COUNTER_FILES = 5001
    ARTIFACT_ARCHIVE_FAILED = 5002

    # Report (6xxx)
    REPORT_AGGREGATOR_FAILED = 6001
    REPORT_EMPTY = 6002
    REPORT_PARSE_ERROR = 6003

    # Upload (7xxx)
    UPLOAD_SCRIPT_MISSING = 7001
    UPLOAD_CHECKSUM_MISMATCH = 7002
    UPLOAD_UNPINNED = 7003
    UPLOAD_FAILED = 7004

    # Internal (9xxx)
    INTERNAL_ERROR = 9001
    INTERNAL_TIMEOUT = 9002


@dataclass(frozen=True)
class CovPipeError(Exception):
    """Base error with structured context for CLI and JSON output."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'CONFIG_PARSE_ERROR')."""
        return self.code.name

    @property
    def exit_code(self) -> int:
        """Process exit code to report for this error.

        Failed external commands propagate their own exit status.
        """
        returncode = self.details.get("returncode")
        if isinstance(returncode, int) and returncode > 0:
            return returncode
        return 1

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON responses."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(CovPipeError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )

    @classmethod
    def missing_required(cls, field: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_MISSING_REQUIRED,
            message=f"Missing required config field: {field}",
            details={"field": field},
        )

    @classmethod
    def file_not_found(cls, path: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_FILE_NOT_FOUND,
            message=f"Config file not found: {path}",
            details={"path": path},
        )


class ToolError(CovPipeError):
    """Errors fetching or locating the aggregation tool."""

    @classmethod
    def download_failed(cls, url: str, reason: str) -> "ToolError":
        return cls(
            code=ErrorCode.TOOL_DOWNLOAD_FAILED,
            message=f"Failed to download {url}: {reason}",
            retryable=True,
            details={"url": url, "reason": reason},
        )

    @classmethod
    def checksum_mismatch(cls, url: str, expected: str, actual: str) -> "ToolError":
        return cls(
            code=ErrorCode.TOOL_CHECKSUM_MISMATCH,
            message=f"Checksum verification failed for {url}",
            details={"url": url, "expected": expected, "actual": actual},
        )

    @classmethod
    def bad_archive(cls, path: str, reason: str) -> "ToolError":
        return cls(
            code=ErrorCode.TOOL_BAD_ARCHIVE,
            message=f"Cannot extract tool archive {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def not_found(cls, name: str, path: str) -> "ToolError":
        return cls(
            code=ErrorCode.TOOL_NOT_FOUND,
            message=f"Aggregation tool '{name}' not found at {path}",
            details={"name": name, "path": path},
        )


class ToolchainError(CovPipeError):
    """Build or test invocation failures."""

    @classmethod
    def build_failed(cls, returncode: int, command: list[str]) -> "ToolchainError":
        return cls(
            code=ErrorCode.TOOLCHAIN_BUILD_FAILED,
            message=f"Build failed with exit code {returncode}",
            details={"returncode": returncode, "command": command},
        )

    @classmethod
    def tests_failed(cls, returncode: int, command: list[str]) -> "ToolchainError":
        return cls(
            code=ErrorCode.TOOLCHAIN_TESTS_FAILED,
            message=f"Tests failed with exit code {returncode}",
            details={"returncode": returncode, "command": command},
        )

    @classmethod
    def command_not_found(cls, executable: str) -> "ToolchainError":
        return cls(
            code=ErrorCode.TOOLCHAIN_COMMAND_NOT_FOUND,
            message=f"Command not found: {executable}",
            details={"executable": executable},
        )


class ArtifactError(CovPipeError):
    """Counter file and archive errors."""

    @classmethod
    def no_counter_files(cls, root: str, patterns: list[str]) -> "ArtifactError":
        return cls(
            code=ErrorCode.ARTIFACT_NO_COUNTER_FILES,
            message=f"No counter files matching {', '.join(patterns)} under {root}",
            details={"root": root, "patterns": patterns},
        )

    @classmethod
    def archive_failed(cls, path: str, reason: str) -> "ArtifactError":
        return cls(
            code=ErrorCode.ARTIFACT_ARCHIVE_FAILED,
            message=f"Failed to write archive {path}: {reason}",
            details={"path": path, "reason": reason},
        )


class ReportError(CovPipeError):
    """Report generation and validation errors."""

    @classmethod
    def aggregator_failed(cls, returncode: int, command: list[str]) -> "ReportError":
        return cls(
            code=ErrorCode.REPORT_AGGREGATOR_FAILED,
            message=f"Aggregation tool failed with exit code {returncode}",
            details={"returncode": returncode, "command": command},
        )

    @classmethod
    def empty_report(cls, path: str) -> "ReportError":
        return cls(
            code=ErrorCode.REPORT_EMPTY,
            message=f"Coverage report is missing or empty: {path}",
            details={"path": path},
        )

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ReportError":
        return cls(
            code=ErrorCode.REPORT_PARSE_ERROR,
            message=f"Failed to parse coverage report {path}: {reason}",
            details={"path": path, "reason": reason},
        )


class UploadError(CovPipeError):
    """Uploader verification and execution errors."""

    @classmethod
    def script_missing(cls, path: str) -> "UploadError":
        return cls(
            code=ErrorCode.UPLOAD_SCRIPT_MISSING,
            message=f"Uploader script not found: {path}. Run 'covpipe vendor-uploader' first.",
            details={"path": path},
        )

    @classmethod
    def checksum_mismatch(cls, path: str, expected: str, actual: str) -> "UploadError":
        return cls(
            code=ErrorCode.UPLOAD_CHECKSUM_MISMATCH,
            message=f"Uploader script {path} does not match its pinned checksum",
            details={"path": path, "expected": expected, "actual": actual},
        )

    @classmethod
    def unpinned(cls, path: str) -> "UploadError":
        return cls(
            code=ErrorCode.UPLOAD_UNPINNED,
            message=f"Uploader script {path} has no pinned sha256 (set upload.sha256)",
            details={"path": path},
        )

    @classmethod
    def upload_failed(cls, returncode: int, command: list[str]) -> "UploadError":
        return cls(
            code=ErrorCode.UPLOAD_FAILED,
            message=f"Uploader exited with code {returncode}",
            retryable=True,
            details={"returncode": returncode, "command": command},
        )


class InternalError(CovPipeError):
    """Internal/unexpected errors."""

    @classmethod
    def unexpected(cls, reason: str, **details: Any) -> "InternalError":
        return cls(
            code=ErrorCode.INTERNAL_ERROR,
            message=f"Internal error: {reason}",
            details=details,
        )

    @classmethod
    def timeout(cls, command: list[str], timeout_sec: float) -> "InternalError":
        return cls(
            code=ErrorCode.INTERNAL_TIMEOUT,
            message=f"Command timed out after {timeout_sec:g}s: {' '.join(command)}",
            retryable=True,
            details={"command": command, "timeout_sec": timeout_sec},
        )
