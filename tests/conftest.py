"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages, and
provides a fake Cargo project with stand-in cargo, grcov and uploader
executables so the pipeline can run end to end without a Rust toolchain.
"""

import hashlib
import logging
import sys
from pathlib import Path
from typing import Any

import pytest
import structlog

# Insert local src directory at the beginning of sys.path
# This ensures that the local covpipe package is used, not any installed one
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

# Force reimport of covpipe modules if already imported
for module_name in list(sys.modules.keys()):
    if module_name.startswith("covpipe"):
        del sys.modules[module_name]

from covpipe.config.models import CovPipeConfig  # noqa: E402

# Logs every invocation; fails when a fail-<phase> marker exists in the cwd;
# the test phase leaves counter files behind like an instrumented test binary.
FAKE_CARGO = """
import json
import os
import sys
from pathlib import Path

args = sys.argv[1:]
with open("cargo.log", "a") as log:
    record = {
        "args": args,
        "CARGO_INCREMENTAL": os.environ.get("CARGO_INCREMENTAL"),
        "RUSTFLAGS": os.environ.get("RUSTFLAGS"),
    }
    log.write(json.dumps(record) + "\\n")

phase = next(a for a in args if a in ("build", "test"))
if Path("fail-" + phase).exists():
    sys.exit(101)

if phase == "test":
    deps = Path("target") / "debug" / "deps"
    deps.mkdir(parents=True, exist_ok=True)
    (deps / "demo-1234.gcda").write_bytes(b"gcda")
    (deps / "demo-1234.gcno").write_bytes(b"gcno")
"""

# Writes unsorted lcov that still contains the boilerplate lines of
# RUST_SOURCE; exits 2 when the archive is not a zip file.
FAKE_GRCOV = """
import sys
import zipfile
from pathlib import Path

args = sys.argv[1:]
archive = Path(args[0])
output = Path(args[args.index("-o") + 1])
if not zipfile.is_zipfile(archive):
    sys.exit(2)

Path("grcov.args").write_text("\\n".join(args))
output.write_text(
    "SF:src/lib.rs\\n"
    "FN:4,covered\\n"
    "FNDA:3,covered\\n"
    "DA:16,0\\n"
    "DA:1,1\\n"
    "DA:4,3\\n"
    "DA:5,3\\n"
    "DA:8,3\\n"
    "DA:14,0\\n"
    "end_of_record\\n"
)
"""

FAKE_UPLOADER = """
import sys
from pathlib import Path

if Path("fail-upload").exists():
    sys.exit(3)
Path("upload.log").write_text(" ".join(sys.argv[1:]))
"""

# Line 4 is covered, line 16 is not; lines 1, 5, 8 and 14 are boilerplate.
RUST_SOURCE = """\
#[derive(Debug)]
pub struct Thing;

pub fn covered() -> u32 {
    assert!(true);
    let v: Option<u32> = Some(1);
    v
        .unwrap()
}

pub async fn waits() {
    let fut = async {};
    fut
        .await;
}
pub fn uncovered() {}
"""


def write_script(path: Path, body: str) -> Path:
    """Write an executable Python script run by the current interpreter."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(f"#!{sys.executable}\n{body}")
    path.chmod(0o755)
    return path


@pytest.fixture
def fake_tools(tmp_path: Path) -> dict[str, Path]:
    """Executable stand-ins for cargo and grcov, outside the project tree."""
    bin_dir = tmp_path / "bin"
    return {
        "cargo": write_script(bin_dir / "cargo", FAKE_CARGO),
        "grcov": write_script(bin_dir / "grcov", FAKE_GRCOV),
    }


@pytest.fixture
def cargo_project(tmp_path: Path) -> Path:
    """A minimal Cargo project with a vendored uploader script."""
    root = tmp_path / "project"
    (root / "src").mkdir(parents=True)
    (root / "Cargo.toml").write_text('[package]\nname = "demo"\nversion = "0.1.0"\n')
    (root / "src" / "lib.rs").write_text(RUST_SOURCE)
    (root / "ci").mkdir()
    (root / "ci" / "codecov.py").write_text(FAKE_UPLOADER)
    return root


@pytest.fixture
def pipeline_settings(cargo_project: Path, fake_tools: dict[str, Path]) -> dict[str, Any]:
    """Config dict wiring the fake tools into the fake project."""
    uploader = cargo_project / "ci" / "codecov.py"
    return {
        "toolchain": {"command": [str(fake_tools["cargo"]), "+nightly"]},
        "aggregator": {"path": str(fake_tools["grcov"])},
        "upload": {
            "script": "ci/codecov.py",
            "sha256": hashlib.sha256(uploader.read_bytes()).hexdigest(),
            "interpreter": [sys.executable],
        },
    }


@pytest.fixture
def pipeline_config(pipeline_settings: dict[str, Any]) -> CovPipeConfig:
    return CovPipeConfig.model_validate(pipeline_settings)


@pytest.fixture(autouse=True)
def _reset_logging() -> None:
    """Start every test from a clean logging setup."""
    structlog.reset_defaults()
    root = logging.getLogger()
    for handler in list(root.handlers):
        handler.close()
    root.handlers.clear()
