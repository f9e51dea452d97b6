"""Container engine backed by the docker command line client."""

from __future__ import annotations

import subprocess
import threading
from pathlib import Path
from typing import Sequence

from loguru import logger

from dnstest import runner
from dnstest.config import EngineConfig
from dnstest.errors import ImageBuildError
from dnstest.models.output import CommandOutput
from dnstest.providers.engine.base import ContainerEngine

# one entry per attached network, space separated
IPV4_ADDR_FORMAT = "{{range .NetworkSettings.Networks}}{{.IPAddress}} {{end}}"


class DockerEngine(ContainerEngine):
    """Drives ``docker`` (or any CLI compatible binary such as ``podman``)."""

    def __init__(self, binary: str | None = None) -> None:
        self._binary = EngineConfig.from_env(binary).binary

    @property
    def binary(self) -> str:
        return self._binary

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DockerEngine):
            return NotImplemented
        return self._binary == other._binary

    def __hash__(self) -> int:
        return hash((DockerEngine, self._binary))

    def __repr__(self) -> str:
        return f"DockerEngine(binary={self._binary!r})"

    def build_image(self, tag: str, context_dir: Path) -> None:
        output = runner.run(self._command("build", "-t", tag, str(context_dir)))
        if not output.success:
            raise ImageBuildError(tag, output)

    def run_container(self, name: str, tag: str, command: Sequence[str]) -> str:
        output = runner.run_checked(
            self._command("run", "--rm", "--detach", "--name", name, "-it", tag, *command)
        )
        return output.stdout

    def exec(self, container_id: str, command: Sequence[str]) -> CommandOutput:
        return runner.run(self._exec_command(container_id, command))

    def exec_status(self, container_id: str, command: Sequence[str]) -> int:
        return runner.status(self._exec_command(container_id, command))

    def exec_spawn(
        self, container_id: str, command: Sequence[str]
    ) -> subprocess.Popen[bytes]:
        return runner.spawn(self._exec_command(container_id, command))

    def copy_into(self, container_id: str, src: Path, dest: str) -> None:
        runner.run_checked(self._command("cp", str(src), f"{container_id}:{dest}"))

    def inspect_ipv4_addr(self, container_id: str) -> str:
        output = runner.run_checked(
            self._command("inspect", "-f", IPV4_ADDR_FORMAT, container_id)
        )
        return output.stdout

    def remove_container(self, container_id: str) -> None:
        # waiting on `rm -f` would block the releasing thread for seconds
        runner.start_detached(self._command("rm", "-f", container_id))

    def _exec_command(self, container_id: str, command: Sequence[str]) -> list[str]:
        return self._command("exec", "-t", container_id, *command)

    def _command(self, *args: str) -> list[str]:
        return [self._binary, *args]


_default_engine: DockerEngine | None = None
_default_engine_lock = threading.Lock()


def default_engine() -> DockerEngine:
    """Process-wide engine configured from the environment."""
    global _default_engine
    with _default_engine_lock:
        if _default_engine is None:
            _default_engine = DockerEngine()
            logger.debug("Using container engine {}", _default_engine.binary)
        return _default_engine
