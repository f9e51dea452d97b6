"""Blocking helpers around ``subprocess`` used by every engine command."""

from __future__ import annotations

import subprocess
import threading
from typing import Sequence

from loguru import logger

from dnstest.errors import (
    CommandFailedError,
    OutputEncodingError,
    SpawnError,
    format_command,
)
from dnstest.models.output import CommandOutput

_TRAILING_NEWLINES = "\r\n"


def decode_output(
    command: Sequence[str], status: int, stdout: bytes, stderr: bytes
) -> CommandOutput:
    """Decode captured streams and strip every trailing ``\\n`` / ``\\r``."""
    return CommandOutput(
        status=status,
        stdout=_decode(command, stdout, "stdout").rstrip(_TRAILING_NEWLINES),
        stderr=_decode(command, stderr, "stderr").rstrip(_TRAILING_NEWLINES),
    )


def run(command: Sequence[str]) -> CommandOutput:
    logger.debug("Running {}", format_command(command))
    try:
        process = subprocess.run(
            list(command),
            capture_output=True,
            check=False,
        )
    except OSError as exc:
        raise SpawnError(command, str(exc)) from exc
    return decode_output(command, process.returncode, process.stdout, process.stderr)


def run_checked(command: Sequence[str]) -> CommandOutput:
    output = run(command)
    if not output.success:
        logger.error("STDOUT:\n{}\nSTDERR:\n{}", output.stdout, output.stderr)
        raise CommandFailedError(command, output)
    return output


def status(command: Sequence[str]) -> int:
    logger.debug("Running {} (status only)", format_command(command))
    try:
        return subprocess.run(list(command), check=False).returncode
    except OSError as exc:
        raise SpawnError(command, str(exc)) from exc


def spawn(command: Sequence[str]) -> subprocess.Popen[bytes]:
    logger.debug("Spawning {}", format_command(command))
    try:
        return subprocess.Popen(
            list(command),
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
        )
    except OSError as exc:
        raise SpawnError(command, str(exc)) from exc


def start_detached(command: Sequence[str]) -> None:
    """Start ``command`` with discarded output and never wait on it."""
    logger.debug("Starting {} in the background", format_command(command))
    try:
        process = subprocess.Popen(
            list(command),
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )
    except OSError as exc:
        raise SpawnError(command, str(exc)) from exc
    # the caller never waits; a daemon thread reaps the process
    threading.Thread(target=process.wait, daemon=True).start()


def _decode(command: Sequence[str], data: bytes, stream: str) -> str:
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise OutputEncodingError(command, stream) from exc
