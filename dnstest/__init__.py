"""Disposable containers for DNS conformance tests."""

from dnstest.container import Child, Container
from dnstest.errors import (
    AddressParseError,
    ChildConsumedError,
    CommandFailedError,
    DnsTestError,
    ImageBuildError,
    OutputEncodingError,
    SpawnError,
)
from dnstest.image import ImageBuilder, image_builder
from dnstest.models import CommandOutput, Implementation

__all__ = [
    "AddressParseError",
    "Child",
    "ChildConsumedError",
    "CommandFailedError",
    "CommandOutput",
    "Container",
    "DnsTestError",
    "ImageBuildError",
    "ImageBuilder",
    "Implementation",
    "OutputEncodingError",
    "SpawnError",
    "image_builder",
]
