"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config() (CLI overrides)
2. Environment variables (COVPIPE__SECTION__KEY)
3. Project YAML (covpipe.yaml, or the file passed with --config)
4. Built-in defaults (this file, see constants.py)

Environment Variable Format:
    COVPIPE__<SECTION>__<KEY>=<VALUE>

Examples:
    COVPIPE__LOGGING__LEVEL=DEBUG
    COVPIPE__PIPELINE__ON_FAILURE=continue
    COVPIPE__UPLOAD__ENABLED=false
"""

import re
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from covpipe.config.constants import (
    ARCHIVE_NAME,
    DEFAULT_BUILD_ARGS,
    DEFAULT_COUNTER_PATTERNS,
    DEFAULT_EXCLUDE_PATTERNS,
    DEFAULT_RUSTFLAGS,
    DEFAULT_TEST_ARGS,
    DEFAULT_TOOLCHAIN_COMMAND,
    DEFAULT_UPLOADER_PATH,
    GRCOV_BINARY,
    GRCOV_URL,
    REPORT_NAME,
    SHA256_HEX_LENGTH,
    STATE_DIR,
)

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
ArchiveType = Literal["tar.bz2", "tar.gz", "zip", "binary"]
FailurePolicy = Literal["stop", "continue"]

_SHA256_RE = re.compile(rf"^[0-9a-f]{{{SHA256_HEX_LENGTH}}}$")


def _validate_sha256(v: str | None) -> str | None:
    if v is None:
        return v
    v = v.strip().lower()
    if not _SHA256_RE.match(v):
        raise ValueError(f"sha256 must be {SHA256_HEX_LENGTH} hex characters, got {v!r}")
    return v


class LogOutputConfig(BaseModel):
    """Single logging output configuration.

    Env vars: Not directly configurable via env (use YAML for multi-output).
    """

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        COVPIPE__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class ToolchainConfig(BaseModel):
    """Build/test toolchain invocation and coverage environment.

    Env vars:
        COVPIPE__TOOLCHAIN__OPTIONS: Options string appended to build and test
    """

    command: list[str] = Field(
        default_factory=lambda: list(DEFAULT_TOOLCHAIN_COMMAND),
        description="Toolchain executable and leading arguments.",
    )
    build_args: list[str] = Field(default_factory=lambda: list(DEFAULT_BUILD_ARGS))
    test_args: list[str] = Field(default_factory=lambda: list(DEFAULT_TEST_ARGS))
    options: str = Field(
        default="",
        description="Extra options (shell-style string) appended to build and test. "
        "The CARGO_OPTIONS environment variable and --cargo-options take precedence.",
    )
    incremental: bool = Field(
        default=False,
        description="Incremental compilation. Must stay off for stable counter files.",
    )
    rustflags: list[str] = Field(default_factory=lambda: list(DEFAULT_RUSTFLAGS))
    extra_env: dict[str, str] = Field(default_factory=dict)

    @field_validator("command")
    @classmethod
    def validate_command(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("toolchain command must not be empty")
        return v


class AggregatorConfig(BaseModel):
    """Coverage aggregation tool (grcov) download and invocation.

    Env vars:
        COVPIPE__AGGREGATOR__URL: Release archive URL
        COVPIPE__AGGREGATOR__PATH: Use a pre-installed binary instead of downloading
    """

    name: str = GRCOV_BINARY
    url: str = GRCOV_URL
    archive_type: ArchiveType = "tar.bz2"
    sha256: str | None = Field(
        default=None,
        description="Optional pin for the downloaded archive. "
        "Release 'latest' URLs change over time, so pin together with a fixed version URL.",
    )
    path: str | None = Field(
        default=None,
        description="Pre-installed aggregator binary. Skips the download when set.",
    )
    install_dir: str = f"{STATE_DIR}/bin"
    extra_args: list[str] = Field(default_factory=list)

    @field_validator("sha256")
    @classmethod
    def validate_sha256(cls, v: str | None) -> str | None:
        return _validate_sha256(v)


class ArchiveConfig(BaseModel):
    """Counter file discovery and archiving."""

    counter_patterns: list[str] = Field(
        default_factory=lambda: list(DEFAULT_COUNTER_PATTERNS),
        description="Glob patterns matched against file names (e.g. 'mycrate*.gc*').",
    )
    name: str = ARCHIVE_NAME

    @field_validator("counter_patterns")
    @classmethod
    def validate_patterns(cls, v: list[str]) -> list[str]:
        if not v or not all(p.strip() for p in v):
            raise ValueError("counter_patterns must contain at least one non-empty pattern")
        return v


class ReportConfig(BaseModel):
    """Report generation options passed to the aggregator."""

    output: str = REPORT_NAME
    source_dir: str = "."
    llvm: bool = True
    branch: bool = True
    ignore_not_existing: bool = True
    ignore: list[str] = Field(
        default_factory=lambda: ["/*"],
        description="Path globs dropped from the report (default drops absolute paths).",
    )
    exclude_patterns: list[str] = Field(
        default_factory=lambda: list(DEFAULT_EXCLUDE_PATTERNS),
        description="Regexes for boilerplate lines excluded from coverage accounting.",
    )
    reapply_exclusions: bool = Field(
        default=True,
        description="Re-check excluded lines against the sources after aggregation.",
    )

    @field_validator("exclude_patterns")
    @classmethod
    def validate_exclude_patterns(cls, v: list[str]) -> list[str]:
        for pattern in v:
            try:
                re.compile(pattern)
            except re.error as e:
                raise ValueError(f"Invalid exclusion pattern {pattern!r}: {e}") from e
        return v

    @property
    def exclude_regex(self) -> str | None:
        """All exclusion patterns combined into one alternation."""
        if not self.exclude_patterns:
            return None
        return "|".join(f"(?:{p})" for p in self.exclude_patterns)


class UploadConfig(BaseModel):
    """Vendored uploader script.

    Env vars:
        COVPIPE__UPLOAD__ENABLED: Set to false to skip the upload step
        COVPIPE__UPLOAD__SHA256: Pinned checksum of the vendored script
    """

    enabled: bool = True
    script: str = DEFAULT_UPLOADER_PATH
    sha256: str | None = Field(
        default=None,
        description="Pinned checksum of the script. Required when enabled. "
        "Printed by 'covpipe vendor-uploader'.",
    )
    interpreter: list[str] = Field(default_factory=lambda: ["bash"])
    extra_args: list[str] = Field(default_factory=list)

    @field_validator("sha256")
    @classmethod
    def validate_sha256(cls, v: str | None) -> str | None:
        return _validate_sha256(v)


class PipelineConfig(BaseModel):
    """Step sequencing policy.

    Env vars:
        COVPIPE__PIPELINE__ON_FAILURE: stop (default) or continue
    """

    on_failure: FailurePolicy = Field(
        default="stop",
        description="stop: halt at the first failed step. "
        "continue: keep running later steps (the overall run still fails).",
    )


class CleanupConfig(BaseModel):
    """Removal of intermediate artifacts after a successful run."""

    artifacts: bool = Field(
        default=True,
        description="Delete counter files and the archive once the report exists.",
    )
    report: bool = Field(
        default=False,
        description="Delete the report after a successful upload.",
    )


class TimeoutsConfig(BaseModel):
    """Timeouts for network and subprocess calls. None means no limit."""

    download_sec: float = 300.0
    build_sec: float | None = None
    test_sec: float | None = None
    report_sec: float | None = None
    upload_sec: float | None = None


class CovPipeConfig(BaseModel):
    """Root configuration for covpipe.

    All settings can be configured via:
    1. Environment variables: COVPIPE__SECTION__KEY
    2. covpipe.yaml in the project root
    3. Direct kwargs to load_config()
    """

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    toolchain: ToolchainConfig = Field(default_factory=ToolchainConfig)
    aggregator: AggregatorConfig = Field(default_factory=AggregatorConfig)
    archive: ArchiveConfig = Field(default_factory=ArchiveConfig)
    report: ReportConfig = Field(default_factory=ReportConfig)
    upload: UploadConfig = Field(default_factory=UploadConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    cleanup: CleanupConfig = Field(default_factory=CleanupConfig)
    timeouts: TimeoutsConfig = Field(default_factory=TimeoutsConfig)
