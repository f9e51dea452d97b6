"""Container engine interface."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Protocol, Sequence

from dnstest.models.output import CommandOutput


class ContainerEngine(Protocol):
    def build_image(self, tag: str, context_dir: Path) -> None:
        ...

    def run_container(self, name: str, tag: str, command: Sequence[str]) -> str:
        ...

    def exec(self, container_id: str, command: Sequence[str]) -> CommandOutput:
        ...

    def exec_status(self, container_id: str, command: Sequence[str]) -> int:
        ...

    def exec_spawn(
        self, container_id: str, command: Sequence[str]
    ) -> subprocess.Popen[bytes]:
        ...

    def copy_into(self, container_id: str, src: Path, dest: str) -> None:
        ...

    def inspect_ipv4_addr(self, container_id: str) -> str:
        ...

    def remove_container(self, container_id: str) -> None:
        ...
