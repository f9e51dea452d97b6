"""Reference counted handles to running containers and their background processes."""

from __future__ import annotations

import itertools
import os
import subprocess
import tempfile
import threading
import weakref
from ipaddress import IPv4Address
from pathlib import Path
from types import TracebackType
from typing import Sequence

from loguru import logger

from dnstest.errors import (
    ChildConsumedError,
    CommandFailedError,
    DnsTestError,
)
from dnstest.image import PACKAGE_NAME, ImageBuilder, image_builder
from dnstest.models.implementation import Implementation
from dnstest.models.output import CommandOutput
from dnstest.network import resolve_ipv4_addr
from dnstest.providers.engine.base import ContainerEngine
from dnstest.providers.engine.docker import default_engine
from dnstest.runner import decode_output

IDLE_COMMAND = ("sleep", "infinity")
CHMOD_RW_EVERYONE = "666"
KILL_WAIT_TIMEOUT_S = 5

_container_count = itertools.count()
_container_count_lock = threading.Lock()


def container_count() -> int:
    with _container_count_lock:
        return next(_container_count)


def _remove(engine: ContainerEngine, container_id: str, name: str) -> None:
    logger.info("Removing container {} ({})", name, container_id)
    try:
        engine.remove_container(container_id)
    except DnsTestError as exc:
        logger.debug("Could not remove container {}: {}", name, exc)


class _Inner:
    """State shared by every handle to one container.

    The container is removed when the last handle releases its share.
    """

    def __init__(
        self,
        engine: ContainerEngine,
        container_id: str,
        name: str,
        ipv4_addr: IPv4Address,
    ) -> None:
        self.engine = engine
        self.id = container_id
        self.name = name
        self.ipv4_addr = ipv4_addr
        self._lock = threading.Lock()
        self._shares = 0
        self._removed = False

    def acquire(self) -> None:
        with self._lock:
            if self._removed:
                raise DnsTestError(f"Container {self.name} was already removed")
            self._shares += 1

    def release(self) -> None:
        with self._lock:
            self._shares -= 1
            if self._shares > 0 or self._removed:
                return
            self._removed = True
        _remove(self.engine, self.id, self.name)


class Container:
    def __init__(self, inner: _Inner) -> None:
        inner.acquire()
        self._inner = inner
        self._finalizer = weakref.finalize(self, inner.release)

    @classmethod
    def run(
        cls,
        implementation: Implementation,
        engine: ContainerEngine | None = None,
        builder: ImageBuilder | None = None,
    ) -> Container:
        """Starts a container in a "parked" state."""
        engine = engine or default_engine()
        builder = builder or image_builder(engine)
        tag = builder.ensure_built(implementation)

        name = f"{PACKAGE_NAME}-{implementation}-{os.getpid()}-{container_count()}"
        container_id = engine.run_container(name, tag, IDLE_COMMAND)
        try:
            ipv4_addr = resolve_ipv4_addr(engine, container_id)
        except DnsTestError:
            _remove(engine, container_id, name)
            raise

        logger.info("Started container {} ({}) at {}", name, container_id, ipv4_addr)
        return cls(_Inner(engine, container_id, name, ipv4_addr))

    @property
    def id(self) -> str:
        return self._inner.id

    @property
    def name(self) -> str:
        return self._inner.name

    @property
    def closed(self) -> bool:
        return not self._finalizer.alive

    def ipv4_addr(self) -> IPv4Address:
        return self._inner.ipv4_addr

    def clone(self) -> Container:
        """Another handle to the same container."""
        return Container(self._live_inner())

    def close(self) -> None:
        """Releases this handle; the last release removes the container."""
        self._finalizer()

    def cp(self, path_in_container: str, file_contents: str) -> None:
        inner = self._live_inner()
        with tempfile.TemporaryDirectory(prefix=f"{inner.name}-") as tmp_dir:
            src = Path(tmp_dir) / "contents"
            with src.open("w", encoding="utf-8", newline="") as handle:
                handle.write(file_contents)
            inner.engine.copy_into(inner.id, src, path_in_container)

        self.status_ok(["chmod", CHMOD_RW_EVERYONE, path_in_container])

    def output(self, command: Sequence[str]) -> CommandOutput:
        """Runs ``command`` in the container and captures its output."""
        inner = self._live_inner()
        return inner.engine.exec(inner.id, command)

    def stdout(self, command: Sequence[str]) -> str:
        """Like ``output`` but checks that ``command`` succeeded and only
        returns its stdout."""
        output = self.output(command)
        if output.success:
            return output.stdout

        logger.error("STDOUT:\n{}\nSTDERR:\n{}", output.stdout, output.stderr)
        raise CommandFailedError(command, output, container_name=self.name)

    def status(self, command: Sequence[str]) -> int:
        inner = self._live_inner()
        return inner.engine.exec_status(inner.id, command)

    def status_ok(self, command: Sequence[str]) -> None:
        if self.status(command) != 0:
            raise CommandFailedError(command, container_name=self.name)

    def spawn(self, command: Sequence[str]) -> Child:
        inner = self._live_inner()
        process = inner.engine.exec_spawn(inner.id, command)
        return Child(process, inner)

    def _live_inner(self) -> _Inner:
        if self.closed:
            raise DnsTestError(f"Handle to container {self._inner.name} is closed")
        return self._inner

    def __enter__(self) -> Container:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"Container(name={self.name!r}, id={self.id!r})"


class _ChildProcess:
    def __init__(self, process: subprocess.Popen[bytes]) -> None:
        self._lock = threading.Lock()
        self._process: subprocess.Popen[bytes] | None = process

    def peek(self) -> subprocess.Popen[bytes] | None:
        with self._lock:
            return self._process

    def take(self) -> subprocess.Popen[bytes] | None:
        with self._lock:
            process, self._process = self._process, None
            return process


def _kill(process: subprocess.Popen[bytes]) -> None:
    try:
        process.kill()
        process.wait(timeout=KILL_WAIT_TIMEOUT_S)
    except (OSError, subprocess.TimeoutExpired):
        pass
    for stream in (process.stdout, process.stderr):
        if stream is not None:
            stream.close()


def _abandon(child_process: _ChildProcess, inner: _Inner) -> None:
    process = child_process.take()
    if process is not None:
        logger.debug("Killing abandoned process {} in {}", process.pid, inner.name)
        _kill(process)
    inner.release()


class Child:
    """A process running inside a container.

    Unlike ``subprocess.Popen``, a child that is closed or garbage collected
    without ``wait`` gets killed. The child keeps its container alive so the
    container cannot be removed before the process is gone.
    """

    def __init__(self, process: subprocess.Popen[bytes], inner: _Inner) -> None:
        inner.acquire()
        self._process = _ChildProcess(process)
        self._container_name = inner.name
        self._finalizer = weakref.finalize(self, _abandon, self._process, inner)

    @property
    def pid(self) -> int | None:
        process = self._process.peek()
        return process.pid if process is not None else None

    def wait(self) -> CommandOutput:
        process = self._process.take()
        if process is None:
            raise ChildConsumedError(
                f"Process in {self._container_name} was already waited on"
            )
        try:
            stdout, stderr = process.communicate()
        finally:
            if process.returncode is None:
                _kill(process)
            self._finalizer()
        return decode_output(process.args, process.returncode, stdout, stderr)

    def close(self) -> None:
        """Kills the process unless it was waited on."""
        self._finalizer()

    def __enter__(self) -> Child:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
