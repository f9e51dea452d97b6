"""Shared fixtures: a recording engine that runs commands on the host."""

from __future__ import annotations

import subprocess
import threading
import time
from pathlib import Path
from typing import Sequence

import pytest

from dnstest import runner
from dnstest.errors import ImageBuildError, SpawnError
from dnstest.image import ImageBuilder
from dnstest.models.output import CommandOutput
from dnstest.providers.engine.base import ContainerEngine


class FakeEngine(ContainerEngine):
    """Records engine calls; ``exec`` runs on the host except for copied files."""

    def __init__(
        self,
        ipv4_output: str = "172.17.0.2 ",
        build_delay_s: float = 0.0,
        fail_builds: bool = False,
        fail_removal: bool = False,
    ) -> None:
        self.ipv4_output = ipv4_output
        self.build_delay_s = build_delay_s
        self.fail_builds = fail_builds
        self.fail_removal = fail_removal
        self.builds: list[str] = []
        self.build_contexts: dict[str, dict[str, str]] = {}
        self.started: list[tuple[str, str, tuple[str, ...]]] = []
        self.removed: list[str] = []
        self.files: dict[tuple[str, str], str] = {}
        self._lock = threading.Lock()

    def build_image(self, tag: str, context_dir: Path) -> None:
        with self._lock:
            self.builds.append(tag)
            self.build_contexts[tag] = {
                path.name: path.read_text(encoding="utf-8")
                for path in context_dir.iterdir()
            }
        time.sleep(self.build_delay_s)
        if self.fail_builds:
            raise ImageBuildError(tag, CommandOutput(1, "", "no space left on device"))

    def run_container(self, name: str, tag: str, command: Sequence[str]) -> str:
        with self._lock:
            self.started.append((name, tag, tuple(command)))
            return f"container-{len(self.started)}"

    def exec(self, container_id: str, command: Sequence[str]) -> CommandOutput:
        if len(command) == 2 and command[0] == "cat":
            key = (container_id, command[1])
            if key in self.files:
                return CommandOutput(0, self.files[key], "")
        return runner.run(command)

    def exec_status(self, container_id: str, command: Sequence[str]) -> int:
        if command and command[0] == "chmod":
            return 0 if (container_id, command[-1]) in self.files else 1
        return runner.status(command)

    def exec_spawn(
        self, container_id: str, command: Sequence[str]
    ) -> subprocess.Popen[bytes]:
        return runner.spawn(command)

    def copy_into(self, container_id: str, src: Path, dest: str) -> None:
        self.files[(container_id, dest)] = src.read_bytes().decode("utf-8")

    def inspect_ipv4_addr(self, container_id: str) -> str:
        return self.ipv4_output

    def remove_container(self, container_id: str) -> None:
        with self._lock:
            self.removed.append(container_id)
        if self.fail_removal:
            raise SpawnError(["docker", "rm", "-f", container_id], "engine unreachable")


@pytest.fixture
def engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def builder(engine: FakeEngine) -> ImageBuilder:
    return ImageBuilder(engine)
