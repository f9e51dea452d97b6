"""Environment driven settings for the container layer."""

from __future__ import annotations

from dataclasses import dataclass
import os

ENGINE_ENV_VAR = "DNSTEST_ENGINE"
DEFAULT_ENGINE_BINARY = "docker"


@dataclass(frozen=True)
class EngineConfig:
    binary: str = DEFAULT_ENGINE_BINARY

    @classmethod
    def from_env(cls, binary: str | None = None) -> EngineConfig:
        return cls(binary=binary or os.getenv(ENGINE_ENV_VAR) or DEFAULT_ENGINE_BINARY)
