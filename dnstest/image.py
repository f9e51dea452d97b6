"""Builds each implementation's image at most once per process."""

from __future__ import annotations

import tempfile
import threading
from pathlib import Path
from typing import Callable

from loguru import logger

from dnstest.errors import DnsTestError, ImageBuildError
from dnstest.models.implementation import Implementation
from dnstest.providers.engine.base import ContainerEngine

PACKAGE_NAME = "dnstest"


def image_tag(implementation: Implementation) -> str:
    return f"{PACKAGE_NAME}-{implementation}"


class _Once:
    """Runs a callable once; a failure is remembered and re-raised."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._done = False
        self._error: ImageBuildError | None = None

    def call_once(self, func: Callable[[], None]) -> None:
        with self._lock:
            if self._error is not None:
                raise self._error
            if self._done:
                return
            try:
                func()
            except ImageBuildError as exc:
                self._error = exc
                raise
            self._done = True


class ImageBuilder:
    def __init__(self, engine: ContainerEngine) -> None:
        self._engine = engine
        self._gates: dict[Implementation, _Once] = {}
        self._gates_lock = threading.Lock()

    def ensure_built(self, implementation: Implementation) -> str:
        tag = image_tag(implementation)
        self._gate(implementation).call_once(lambda: self._build(implementation, tag))
        return tag

    def _gate(self, implementation: Implementation) -> _Once:
        with self._gates_lock:
            gate = self._gates.get(implementation)
            if gate is None:
                gate = self._gates[implementation] = _Once()
            return gate

    def _build(self, implementation: Implementation, tag: str) -> None:
        logger.info("Building image {}", tag)
        with tempfile.TemporaryDirectory(prefix=f"{tag}-") as build_dir:
            context_dir = Path(build_dir)
            try:
                for name, contents in implementation.build_context().items():
                    (context_dir / name).write_text(contents, encoding="utf-8")
                self._engine.build_image(tag, context_dir)
            except ImageBuildError:
                raise
            except (DnsTestError, OSError) as exc:
                raise ImageBuildError(tag) from exc
        logger.info("Built image {}", tag)


# keyed by engine equality so equivalent engines share one set of gates
_builders: dict[ContainerEngine, ImageBuilder] = {}
_builders_lock = threading.Lock()


def image_builder(engine: ContainerEngine) -> ImageBuilder:
    """Process-wide builder shared by every caller of an equivalent ``engine``."""
    with _builders_lock:
        builder = _builders.get(engine)
        if builder is None:
            builder = _builders[engine] = ImageBuilder(engine)
        return builder
