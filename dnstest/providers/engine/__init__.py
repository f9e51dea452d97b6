"""Container engine implementations and interfaces."""

from dnstest.providers.engine.base import ContainerEngine
from dnstest.providers.engine.docker import DockerEngine, default_engine

__all__ = ["ContainerEngine", "DockerEngine", "default_engine"]
