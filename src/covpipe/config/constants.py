"""Configuration constants.

Default values for the coverage toolchain. These mirror the flags and
endpoints the pipeline was originally run with; every one of them can be
overridden in covpipe.yaml (see models.py).
"""

# =============================================================================
# Toolchain
# =============================================================================

DEFAULT_RUSTFLAGS = (
    "-Zinstrument-coverage",
    "-Zprofile",
    "-Ccodegen-units=1",
    "-Copt-level=0",
    "-Clink-dead-code",
    "-Coverflow-checks=off",
    "-Zpanic_abort_tests",
    "-Cpanic=abort",
)
"""Code-generation flags for coverage builds (no optimizations, abort on panic)."""

DEFAULT_TOOLCHAIN_COMMAND = ("cargo", "+nightly")
DEFAULT_BUILD_ARGS = ("build", "--verbose")
DEFAULT_TEST_ARGS = ("test", "--verbose")

OPTIONS_ENV_VAR = "CARGO_OPTIONS"
"""Externally supplied options string appended to build and test."""

# =============================================================================
# Aggregation tool
# =============================================================================

GRCOV_URL = "https://github.com/mozilla/grcov/releases/latest/download/grcov-linux-x86_64.tar.bz2"
GRCOV_BINARY = "grcov"

# =============================================================================
# Artifacts
# =============================================================================

DEFAULT_COUNTER_PATTERNS = ("*.gcda", "*.gcno")
ARCHIVE_NAME = "ccov.zip"
REPORT_NAME = "lcov.info"

STATE_DIR = ".covpipe"
"""Per-project working directory (tool binaries, logs)."""

CONFIG_FILE_NAME = "covpipe.yaml"

# =============================================================================
# Boilerplate exclusion patterns
# =============================================================================

EXCLUDE_ASSERT = r"^\s*(debug_)?assert(_eq|_ne)?!"
EXCLUDE_DERIVE = r"^\s*#\[derive\("
EXCLUDE_UNWRAP = r"^\s*\.unwrap\(\)"
EXCLUDE_AWAIT = r"^\s*\.await"

DEFAULT_EXCLUDE_PATTERNS = (EXCLUDE_ASSERT, EXCLUDE_DERIVE, EXCLUDE_UNWRAP, EXCLUDE_AWAIT)

# =============================================================================
# Upload
# =============================================================================

CODECOV_SCRIPT_URL = "https://codecov.io/bash"
DEFAULT_UPLOADER_PATH = "ci/codecov.sh"

SHA256_HEX_LENGTH = 64
