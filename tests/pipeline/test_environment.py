"""Tests for the immutable toolchain environment."""

import os

import pytest

from covpipe.config.models import ToolchainConfig
from covpipe.pipeline.environment import ToolchainEnvironment


class TestFromConfig:
    """ToolchainEnvironment.from_config."""

    def test_default_coverage_variables(self) -> None:
        env = ToolchainEnvironment.from_config(ToolchainConfig())

        assert env["CARGO_INCREMENTAL"] == "0"
        assert env["RUSTFLAGS"] == " ".join(ToolchainConfig().rustflags)

    def test_incremental_enabled(self) -> None:
        env = ToolchainEnvironment.from_config(ToolchainConfig(incremental=True))

        assert env["CARGO_INCREMENTAL"] == "1"

    def test_empty_rustflags_omitted(self) -> None:
        env = ToolchainEnvironment.from_config(ToolchainConfig(rustflags=[]))

        assert "RUSTFLAGS" not in env

    def test_extra_env_wins(self) -> None:
        env = ToolchainEnvironment.from_config(
            ToolchainConfig(extra_env={"RUSTDOCFLAGS": "-Cpanic=abort", "CARGO_INCREMENTAL": "1"})
        )

        assert env["RUSTDOCFLAGS"] == "-Cpanic=abort"
        assert env["CARGO_INCREMENTAL"] == "1"


class TestImmutability:
    """The environment is a value; it never leaks into os.environ."""

    def test_source_dict_mutation_has_no_effect(self) -> None:
        source = {"A": "1"}
        env = ToolchainEnvironment(source)

        source["A"] = "2"

        assert env["A"] == "1"

    def test_variables_cannot_be_assigned(self) -> None:
        env = ToolchainEnvironment({"A": "1"})

        with pytest.raises(TypeError):
            env.variables["A"] = "2"  # type: ignore[index]

    def test_apply_returns_new_dict_and_leaves_os_environ_alone(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv("RUSTFLAGS", raising=False)
        monkeypatch.setenv("CODECOV_TOKEN", "secret")
        env = ToolchainEnvironment.from_config(ToolchainConfig())

        applied = env.apply()

        assert applied["CODECOV_TOKEN"] == "secret"
        assert applied["RUSTFLAGS"] == env["RUSTFLAGS"]
        assert "RUSTFLAGS" not in os.environ

    def test_apply_overrides_base_env(self) -> None:
        env = ToolchainEnvironment({"CARGO_INCREMENTAL": "0"})

        applied = env.apply({"CARGO_INCREMENTAL": "1", "PATH": "/bin"})

        assert applied == {"CARGO_INCREMENTAL": "0", "PATH": "/bin"}


class TestAsExports:
    """Shell export rendering."""

    def test_sorted_and_quoted(self) -> None:
        env = ToolchainEnvironment({"RUSTFLAGS": "-Zprofile -Ccodegen-units=1", "A": "x"})

        assert env.as_exports() == "export A=x\nexport RUSTFLAGS='-Zprofile -Ccodegen-units=1'"

    def test_mapping_protocol(self) -> None:
        env = ToolchainEnvironment({"B": "2", "A": "1"})

        assert len(env) == 2
        assert dict(env) == {"A": "1", "B": "2"}
