"""Coverage toolchain environment.

The coverage flags are an immutable value applied to a *copy* of the base
environment for every subprocess. Nothing here touches os.environ, so
repeated or concurrent pipeline runs in one process cannot leak settings
into each other.
"""

from __future__ import annotations

import os
import shlex
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from covpipe.config.models import ToolchainConfig


@dataclass(frozen=True, slots=True)
class ToolchainEnvironment(Mapping[str, str]):
    """Read-only set of environment variables for the build/test toolchain."""

    variables: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self) -> None:
        # Freeze a private copy so later mutation of the source dict has no effect
        object.__setattr__(self, "variables", MappingProxyType(dict(self.variables)))

    @classmethod
    def from_config(cls, config: ToolchainConfig) -> ToolchainEnvironment:
        """Build the coverage environment described by the toolchain config."""
        variables: dict[str, str] = {
            "CARGO_INCREMENTAL": "1" if config.incremental else "0",
        }
        if config.rustflags:
            variables["RUSTFLAGS"] = " ".join(config.rustflags)
        variables.update(config.extra_env)
        return cls(variables)

    def apply(self, base_env: Mapping[str, str] | None = None) -> dict[str, str]:
        """Return a new environment dict: base_env (default os.environ) plus these variables."""
        env = dict(base_env) if base_env is not None else dict(os.environ)
        env.update(self.variables)
        return env

    def as_exports(self) -> str:
        """Render as POSIX shell export lines, e.g. for `eval $(covpipe env)`."""
        return "\n".join(
            f"export {name}={shlex.quote(value)}" for name, value in sorted(self.variables.items())
        )

    def __getitem__(self, key: str) -> str:
        return self.variables[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self.variables)

    def __len__(self) -> int:
        return len(self.variables)
