"""Provider package for container engine integrations."""

from dnstest.providers.engine import ContainerEngine, DockerEngine, default_engine

__all__ = [
    "ContainerEngine",
    "DockerEngine",
    "default_engine",
]
