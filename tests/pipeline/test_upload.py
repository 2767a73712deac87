"""Tests for the vendored uploader."""

import hashlib
import sys
from pathlib import Path

import httpx
import pytest

from covpipe.config.models import UploadConfig
from covpipe.core.errors import ErrorCode, ToolError, UploadError
from covpipe.pipeline.upload import (
    upload_command,
    upload_report,
    vendor_uploader,
    verify_uploader,
)


def _pinned(project: Path, **overrides: object) -> UploadConfig:
    script = project / "ci" / "codecov.py"
    return UploadConfig.model_validate(
        {
            "script": "ci/codecov.py",
            "sha256": hashlib.sha256(script.read_bytes()).hexdigest(),
            "interpreter": [sys.executable],
            **overrides,
        }
    )


class TestVerifyUploader:
    """Tests for verify_uploader."""

    def test_pinned_script_verified(self, cargo_project: Path) -> None:
        script = verify_uploader(_pinned(cargo_project), cargo_project)

        assert script == cargo_project / "ci" / "codecov.py"

    def test_missing_script(self, cargo_project: Path) -> None:
        config = _pinned(cargo_project, script="ci/missing.sh")

        with pytest.raises(UploadError) as exc_info:
            verify_uploader(config, cargo_project)
        assert exc_info.value.code == ErrorCode.UPLOAD_SCRIPT_MISSING

    def test_unpinned_script_refused(self, cargo_project: Path) -> None:
        config = _pinned(cargo_project, sha256=None)

        with pytest.raises(UploadError) as exc_info:
            verify_uploader(config, cargo_project)
        assert exc_info.value.code == ErrorCode.UPLOAD_UNPINNED

    def test_modified_script_refused(self, cargo_project: Path) -> None:
        config = _pinned(cargo_project)
        script = cargo_project / "ci" / "codecov.py"
        script.write_text(script.read_text() + "\nimport os\n")

        with pytest.raises(UploadError) as exc_info:
            verify_uploader(config, cargo_project)
        assert exc_info.value.code == ErrorCode.UPLOAD_CHECKSUM_MISMATCH
        assert exc_info.value.details["expected"] == config.sha256


class TestUploadReport:
    """Tests for upload_report."""

    def test_command_shape(self) -> None:
        config = UploadConfig(interpreter=["bash"], extra_args=["-Z"])

        cmd = upload_command(config, Path("ci/codecov.sh"), Path("lcov.info"))

        assert cmd == ["bash", "ci/codecov.sh", "-f", "lcov.info", "-Z"]

    def test_runs_script_with_report(self, cargo_project: Path) -> None:
        report = cargo_project / "lcov.info"
        report.write_text("SF:a\nDA:1,1\nend_of_record\n")

        upload_report(report, config=_pinned(cargo_project), project_root=cargo_project)

        assert (cargo_project / "upload.log").read_text() == f"-f {report}"

    def test_non_zero_exit_raises(self, cargo_project: Path) -> None:
        (cargo_project / "fail-upload").touch()

        with pytest.raises(UploadError) as exc_info:
            upload_report(
                cargo_project / "lcov.info",
                config=_pinned(cargo_project),
                project_root=cargo_project,
            )
        assert exc_info.value.code == ErrorCode.UPLOAD_FAILED
        assert exc_info.value.exit_code == 3

    def test_tampered_script_never_runs(self, cargo_project: Path) -> None:
        config = _pinned(cargo_project)
        script = cargo_project / "ci" / "codecov.py"
        script.write_text(script.read_text().replace("upload.log", "tampered.log"))

        with pytest.raises(UploadError):
            upload_report(cargo_project / "lcov.info", config=config, project_root=cargo_project)
        assert not (cargo_project / "tampered.log").exists()


class TestVendorUploader:
    """Tests for vendor_uploader."""

    def test_downloads_and_returns_digest(self, tmp_path: Path) -> None:
        body = b"#!/bin/bash\necho upload\n"
        client = httpx.Client(
            transport=httpx.MockTransport(lambda r: httpx.Response(200, content=body))
        )
        dest = tmp_path / "ci" / "codecov.sh"

        digest = vendor_uploader("https://codecov.example/bash", dest, client=client)

        assert dest.read_bytes() == body
        assert digest == hashlib.sha256(body).hexdigest()
        assert not dest.with_name("codecov.sh.part").exists()

    def test_failed_download_leaves_existing_script(self, tmp_path: Path) -> None:
        dest = tmp_path / "codecov.sh"
        dest.write_text("vendored")
        client = httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(500)))

        with pytest.raises(ToolError):
            vendor_uploader("https://codecov.example/bash", dest, client=client)
        assert dest.read_text() == "vendored"
        assert not dest.with_name("codecov.sh.part").exists()
