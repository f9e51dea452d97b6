"""Exceptions raised by the container layer."""

from __future__ import annotations

from typing import Sequence, TYPE_CHECKING

if TYPE_CHECKING:
    from dnstest.models.output import CommandOutput


def format_command(command: Sequence[str]) -> str:
    return " ".join(command)


class DnsTestError(Exception):
    """Base class for every error raised by dnstest."""


class ImageBuildError(DnsTestError):
    """An image could not be built; the fixture cannot exist without it."""

    def __init__(self, tag: str, output: CommandOutput | None = None) -> None:
        message = f"Failed to build image {tag}"
        if output is not None:
            message = (
                f"{message}\n--- STDOUT ---\n{output.stdout}"
                f"\n--- STDERR ---\n{output.stderr}"
            )
        super().__init__(message)
        self.tag = tag
        self.output = output


class SpawnError(DnsTestError):
    def __init__(self, command: Sequence[str], reason: str) -> None:
        super().__init__(f"Failed to spawn `{format_command(command)}`: {reason}")
        self.command = list(command)


class CommandFailedError(DnsTestError):
    """A checked command exited with a non-zero status."""

    def __init__(
        self,
        command: Sequence[str],
        output: CommandOutput | None = None,
        container_name: str | None = None,
    ) -> None:
        prefix = f"[{container_name}] " if container_name else ""
        status = f" (exit status {output.status})" if output is not None else ""
        message = f"{prefix}`{list(command)!r}` failed{status}"
        if output is not None and output.stderr:
            message = f"{message}: {output.stderr}"
        super().__init__(message)
        self.command = list(command)
        self.output = output
        self.container_name = container_name


class OutputEncodingError(DnsTestError):
    def __init__(self, command: Sequence[str], stream: str) -> None:
        super().__init__(
            f"`{format_command(command)}` wrote non UTF-8 data to {stream}"
        )
        self.command = list(command)
        self.stream = stream


class AddressParseError(DnsTestError):
    def __init__(self, container_id: str, raw: str) -> None:
        super().__init__(
            f"Container {container_id} reported an invalid IPv4 address: {raw!r}"
        )
        self.container_id = container_id
        self.raw = raw


class ChildConsumedError(DnsTestError):
    """The background process was already waited on."""
