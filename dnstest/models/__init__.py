"""Shared data models for the dnstest container layer."""

from dnstest.models.implementation import Implementation
from dnstest.models.output import CommandOutput

__all__ = [
    "CommandOutput",
    "Implementation",
]
