"""DNS implementations that containers can be built for."""

from __future__ import annotations

from enum import StrEnum
from types import MappingProxyType
from typing import Mapping

_BASE_IMAGE = "debian:bookworm-slim"

_COMMON_PACKAGES = "ca-certificates iputils-ping dnsutils tshark"

_UNBOUND_DOCKERFILE = f"""\
FROM {_BASE_IMAGE}

RUN apt-get update && \\
    DEBIAN_FRONTEND=noninteractive apt-get install -y {_COMMON_PACKAGES} unbound && \\
    rm -rf /var/lib/apt/lists/*
"""

_BIND_DOCKERFILE = f"""\
FROM {_BASE_IMAGE}

RUN apt-get update && \\
    DEBIAN_FRONTEND=noninteractive apt-get install -y {_COMMON_PACKAGES} bind9 && \\
    rm -rf /var/lib/apt/lists/*
"""

_HICKORY_DOCKERFILE = f"""\
FROM rust:1-slim-bookworm

RUN apt-get update && \\
    DEBIAN_FRONTEND=noninteractive apt-get install -y {_COMMON_PACKAGES} && \\
    rm -rf /var/lib/apt/lists/*

RUN cargo install hickory-dns --features recursor --bin hickory-dns
"""


class Implementation(StrEnum):
    UNBOUND = "unbound"
    BIND = "bind"
    HICKORY = "hickory"

    def dockerfile(self) -> str:
        return _DOCKERFILES[self]

    def build_context(self) -> Mapping[str, str]:
        """Files to write into an empty directory before building the image."""
        return MappingProxyType({"Dockerfile": self.dockerfile()})


_DOCKERFILES = {
    Implementation.UNBOUND: _UNBOUND_DOCKERFILE,
    Implementation.BIND: _BIND_DOCKERFILE,
    Implementation.HICKORY: _HICKORY_DOCKERFILE,
}
