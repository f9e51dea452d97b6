"""Data models for command execution."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class CommandOutput:
    status: int
    stdout: str
    stderr: str

    @property
    def success(self) -> bool:
        return self.status == 0
