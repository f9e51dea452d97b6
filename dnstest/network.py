"""Looks up the address a container was assigned on its network."""

from __future__ import annotations

from ipaddress import IPv4Address

from dnstest.errors import AddressParseError
from dnstest.providers.engine.base import ContainerEngine


def resolve_ipv4_addr(engine: ContainerEngine, container_id: str) -> IPv4Address:
    raw = engine.inspect_ipv4_addr(container_id)
    addresses = raw.split()
    if not addresses:
        raise AddressParseError(container_id, raw)
    try:
        return IPv4Address(addresses[0].strip())
    except ValueError as exc:
        raise AddressParseError(container_id, raw) from exc
